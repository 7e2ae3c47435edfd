"""Library for loading charts from a local directory.

A chart directory may contain:

- `Chart.yaml`: metadata, most importantly the chart version
- `values.yaml`: default values
- `chart.py`: the chart script
- `templates/`: templates rendered into the manifests of the chart

The chart script is a Python module. Its `init(self, *args, **kwargs)`
function is called once the defaults are loaded, and every other public
function of the module becomes a hook of the chart, receiving the chart as
first argument. A script typically declares sub-charts and secrets:

```python
from chartkeeper.script import chart, user_credential


def init(self, replicas=1):
    self.replicas = replicas
    self.database = chart("../mariadb")
    self.admin = user_credential("admin")
```

Caller supplied values are merged last and win over defaults and anything
the script assigned.
"""

import contextvars
import importlib.util
import inspect
import itertools
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .chart import Chart
from .exceptions import InputException
from .manifest import DEFAULT_NAMESPACE, ChartMetadata
from .values import load_values

__all__ = [
    "load_chart",
    "chart",
]

_LOGGER = logging.getLogger(__name__)

CHART_YAML = "Chart.yaml"
VALUES_YAML = "values.yaml"
CHART_SCRIPT = "chart.py"
INIT_FUNCTION = "init"

_current_chart = contextvars.ContextVar[Chart | None]("current_chart", default=None)
_module_ids = itertools.count()


def _load_metadata(directory: Path, name: str) -> ChartMetadata:
    if not (chart_yaml := directory / CHART_YAML).exists():
        return ChartMetadata(name=name)
    try:
        doc = yaml.load(chart_yaml.read_text(), Loader=yaml.SafeLoader)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse {chart_yaml}: {err}") from err
    return ChartMetadata.parse_doc(doc or {}, name)


def _run_script(
    instance: Chart, script: Path, args: Sequence[Any], kwargs: Mapping[str, Any]
) -> None:
    module_name = f"chartkeeper_script_{instance.chart_class.name}_{next(_module_ids)}"
    spec = importlib.util.spec_from_file_location(module_name, script)
    if spec is None or spec.loader is None:
        raise InputException(f"Unable to load chart script {script}")
    module = importlib.util.module_from_spec(spec)
    token = _current_chart.set(instance)
    try:
        try:
            spec.loader.exec_module(module)
        except SyntaxError as err:
            raise InputException(f"Invalid chart script {script}: {err}") from err
        for attr, fn in vars(module).items():
            if (
                attr.startswith("_")
                or attr == INIT_FUNCTION
                or not inspect.isfunction(fn)
                or fn.__module__ != module_name
            ):
                continue
            _LOGGER.debug("Registering hook %s of chart %s", attr, instance.name)
            instance._bind(attr, fn)
        if (init := getattr(module, INIT_FUNCTION, None)) is not None:
            init(instance, *args, **kwargs)
    finally:
        _current_chart.reset(token)


def load_chart(
    path: Path | str,
    *,
    namespace: str = DEFAULT_NAMESPACE,
    suffix: str = "",
    values: Mapping[str, Any] | None = None,
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
) -> Chart:
    """Load the chart in the given directory."""
    directory = Path(path).resolve()
    if not directory.is_dir():
        raise InputException(f"Chart directory {path} does not exist")
    name = directory.name.split(":")[0]
    _LOGGER.debug("Loading chart %s from %s", name, directory)
    instance = Chart(_load_metadata(directory, name), directory, namespace, suffix)
    if (values_yaml := directory / VALUES_YAML).exists():
        instance._merge_values(load_values(values_yaml))
    if (script := directory / CHART_SCRIPT).exists():
        _run_script(instance, script, args, kwargs or {})
    if values:
        instance._merge_values(values)
    return instance


def chart(
    path: Path | str,
    *args: Any,
    namespace: str | None = None,
    suffix: str = "",
    values: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> Chart:
    """Load a sub-chart from a chart script.

    Relative paths are resolved against the directory of the chart whose
    script is running and the namespace of that chart is inherited.
    """
    parent = _current_chart.get()
    base = parent._dir if parent is not None and parent._dir else Path.cwd()
    if namespace is None:
        namespace = parent.namespace if parent is not None else DEFAULT_NAMESPACE
    return load_chart(
        base / path,
        namespace=namespace,
        suffix=suffix,
        values=values,
        args=args,
        kwargs=kwargs,
    )
