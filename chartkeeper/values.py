"""Module for working with chart values.

Chart values are layered: the defaults shipped in `values.yaml`, assignments
made by the chart script and overrides supplied by the caller. Layers are
reconciled with `merge`, which works like the way Helm merges values: mappings
are merged key by key and anything else is replaced entirely.

```python
from chartkeeper.values import merge

merge({"a": 1, "b": {"x": 1}}, {"b": {"y": 2}, "c": 3})
# {"a": 1, "b": {"x": 1, "y": 2}, "c": 3}
```
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, MutableMapping
import logging
from pathlib import Path
import re
from typing import Any

import yaml

from .exceptions import InputException

__all__ = [
    "merge",
    "wrap",
    "unwrap",
    "ValueDict",
    "load_values",
    "parse_set",
]

_LOGGER = logging.getLogger(__name__)


class MergeTarget(ABC):
    """A value that absorbs mapping overrides in place instead of being replaced."""

    @abstractmethod
    def _merge_values(self, values: Mapping[str, Any]) -> None:
        """Merge the override mapping into this object."""


class ValueDict(MutableMapping[str, Any]):
    """Attribute-addressable view of a nested values mapping.

    The view shares storage with the wrapped dict so that scripts mutating
    `self.database.host` update the chart values in place.

    Attribute access looks up the values first, so a key such as `items` or
    `keys` hides the mapping method of the same name. Use the subscript form
    or `unwrap` when the mapping methods are needed on such a dict.
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, Any]) -> None:
        object.__setattr__(self, "_data", data)

    def __getattribute__(self, name: str) -> Any:
        if not name.startswith("_"):
            data = object.__getattribute__(self, "_data")
            if name in data:
                return wrap(data[name])
        return object.__getattribute__(self, name)

    def __getitem__(self, key: str) -> Any:
        return wrap(self._data[key])

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = unwrap(value)

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValueDict):
            other = other._data
        if not isinstance(other, Mapping):
            return NotImplemented
        return self._data == other

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"dict has no .{name} attribute") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value

    def __repr__(self) -> str:
        return repr(self._data)


def wrap(value: Any) -> Any:
    """Expose a plain host dict as a `ValueDict`, leaving other values alone."""
    if isinstance(value, dict):
        return ValueDict(value)
    return value


def unwrap(value: Any) -> Any:
    """Convert `ValueDict` wrappers back into the plain dicts they view."""
    if isinstance(value, ValueDict):
        return value._data
    if isinstance(value, dict):
        return {k: unwrap(v) for k, v in value.items()}
    if isinstance(value, list):
        return [unwrap(v) for v in value]
    return value


def _copy_tree(value: Any) -> Any:
    """Copy plain containers so merged results never alias their inputs."""
    if isinstance(value, Mapping) and not isinstance(value, MergeTarget):
        return {k: _copy_tree(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy_tree(v) for v in value]
    return value


def merge(existing: Any, incoming: Any) -> Any:
    """Merge an incoming value on top of an existing value.

    Mappings merge recursively with the incoming side winning conflicts on
    non-mapping leaves. A mapping merged into a sub-chart is propagated into
    that chart's own values. Any other combination returns the incoming value.
    """
    existing = unwrap(existing)
    incoming = unwrap(incoming)
    if isinstance(existing, MergeTarget) and isinstance(incoming, Mapping):
        existing._merge_values(incoming)
        return existing
    if isinstance(existing, Mapping) and isinstance(incoming, Mapping):
        result = _copy_tree(existing)
        for key, value in incoming.items():
            if key in result:
                result[key] = merge(result[key], value)
            else:
                result[key] = _copy_tree(value)
        return result
    return _copy_tree(incoming)


def load_values(path: Path) -> dict[str, Any]:
    """Load a YAML values file into a plain dict."""
    _LOGGER.debug("Loading values from %s", path)
    try:
        obj = yaml.load(path.read_text(), Loader=yaml.SafeLoader)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse values file {path}: {err}") from err
    # Handle empty YAML file case
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise InputException(
            f"Expected values file {path} to contain a mapping, found {type(obj)}"
        )
    return obj


def parse_set(expr: str) -> dict[str, Any]:
    """Parse a `path.to.key=value` override into a nested values dict.

    Dots may be escaped with a backslash to be part of a key. The value is
    parsed as a YAML scalar so `replicas=3` yields an integer.
    """
    if "=" not in expr:
        raise InputException(f"Expected key=value override, found '{expr}'")
    path, raw = expr.split("=", 1)
    raw_parts = re.split(r"(?<!\\)\.", path)
    parts = [re.sub(r"\\(.)", r"\1", raw_part) for raw_part in raw_parts]
    if not all(parts):
        raise InputException(f"Invalid override key '{path}'")
    try:
        value: Any = yaml.load(raw, Loader=yaml.SafeLoader) if raw else ""
    except yaml.YAMLError:
        value = raw
    for part in reversed(parts):
        value = {part: value}
    return value
