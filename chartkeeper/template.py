"""Library for rendering the templates of a chart into cluster objects.

Templates live in the `templates/` directory of a chart and are sandboxed Jinja2
templates producing YAML documents. Files starting with an underscore are
helpers (e.g. macros) and are never rendered on their own.

```python
from chartkeeper import template

text = template.render(chart_dir / "templates", {"values": {"replicas": 2}})
objects = template.decode(text)
```
"""

import base64
from collections.abc import Mapping
from fnmatch import fnmatch
import logging
from pathlib import Path
from typing import Any

import jinja2
from jinja2.sandbox import SandboxedEnvironment
import yaml

from .exceptions import TemplateException
from .jewel import Jewel
from .values import unwrap

__all__ = [
    "render",
    "decode",
]

_LOGGER = logging.getLogger(__name__)

TEMPLATE_SUFFIXES = (".yaml", ".yml", ".j2")


def _plain(value: Any) -> Any:
    """Convert template values into plain YAML serializable data."""
    value = unwrap(value)
    if isinstance(value, Jewel):
        return value._template_values()
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _to_yaml(value: Any) -> str:
    return yaml.dump(_plain(value), sort_keys=False).rstrip("\n")


def _b64enc(value: Any) -> str:
    return base64.b64encode(str(value).encode("utf-8")).decode("ascii")


def _b64dec(value: Any) -> str:
    return base64.b64decode(str(value)).decode("utf-8")


def _environment(templates_dir: Path) -> SandboxedEnvironment:
    env = SandboxedEnvironment(
        loader=jinja2.FileSystemLoader(str(templates_dir)),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["toyaml"] = _to_yaml
    env.filters["b64enc"] = _b64enc
    env.filters["b64dec"] = _b64dec
    return env


def _is_template(name: str, glob: str) -> bool:
    if Path(name).name.startswith("_"):
        return False
    if not name.endswith(TEMPLATE_SUFFIXES):
        return False
    return not glob or fnmatch(name, glob)


def render(templates_dir: Path, context: dict[str, Any], glob: str = "") -> str:
    """Render all templates matching the glob into one YAML stream."""
    if not templates_dir.is_dir():
        _LOGGER.debug("No templates in %s", templates_dir)
        return ""
    env = _environment(templates_dir)
    names = env.list_templates(filter_func=lambda name: _is_template(name, glob))
    parts = []
    for name in sorted(names):
        _LOGGER.debug("Rendering template %s", name)
        try:
            content = env.get_template(name).render(context)
        except jinja2.TemplateError as err:
            raise TemplateException(
                f"Unable to render template {templates_dir / name}: {err}"
            ) from err
        parts.append(f"---\n# Source: {name}\n{content}")
    return "\n".join(parts)


def decode(text: str) -> list[dict[str, Any]]:
    """Parse a YAML stream into a list of objects, dropping empty documents."""
    try:
        docs = list(yaml.load_all(text, Loader=yaml.SafeLoader))
    except yaml.YAMLError as err:
        raise TemplateException(f"Unable to parse rendered templates: {err}") from err
    objects = []
    for doc in docs:
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise TemplateException(f"Expected rendered object to be a mapping: {doc}")
        objects.append(doc)
    return objects
