"""The runtime object representing an instance of a chart.

A `Chart` is the value chart scripts and templates work with. Attributes of a
chart are resolved in a fixed order by `Chart.__getattr__`:

1. reserved identity attributes: `name`, `namespace` and `chart_class`
   (the static `ChartMetadata` with name and version), which shadow values
2. the values mapping, with nested mappings exposed as `ValueDict`
3. the hooks table (`apply`, `delete`, `apply_local`, `delete_local` and any
   hook defined by the chart script)
4. anything else raises `NoSuchAttributeError` naming the chart

Assigning an attribute stores it into the values mapping. Values holding a
`Chart` are sub-charts and values holding a `Jewel` are secrets owned by the
chart. Both are driven entirely by the apply and delete hooks of the chart
that holds them.
"""

from collections.abc import Callable, Generator, Mapping
import dataclasses
import functools
import inspect
import logging
from pathlib import Path
from typing import Any

from .context import trace_context
from .exceptions import (
    MissingHookError,
    NoSuchAttributeError,
    ReservedAttributeError,
)
from .jewel import Jewel
from .k8s import K8s
from .manifest import DEFAULT_NAMESPACE, ChartMetadata, K8sOptions
from .template import decode, render
from .values import MergeTarget, ValueDict, merge, unwrap, wrap
from .vault import K8sVault

__all__ = [
    "Chart",
    "call_hook",
]

_LOGGER = logging.getLogger(__name__)

RESERVED_ATTRIBUTES = frozenset({"name", "namespace", "chart_class"})

APPLY_HOOK = "apply"
DELETE_HOOK = "delete"
APPLY_LOCAL_HOOK = "apply_local"
DELETE_LOCAL_HOOK = "delete_local"

_HASH_SEED_X = 8731
_HASH_SEED_M = 9839
_HASH_KEY_MULTIPLIER = 3
_HASH_STEP = 7349
_HASH_MASK = 0xFFFFFFFF

Hook = Callable[..., Any]


async def call_hook(chart: "Chart", hook: str, *args: Any, **kwargs: Any) -> Any:
    """Invoke a hook of the chart, awaiting it if it is a coroutine."""
    try:
        fn = chart._methods[hook]
    except KeyError:
        raise MissingHookError(chart.name, hook) from None
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def _local_options(options: K8sOptions | None, overrides: dict[str, Any]) -> K8sOptions:
    # Templates may target objects outside of the chart namespace
    return dataclasses.replace(options or K8sOptions(), **{**overrides, "namespaced": False})


class Chart(MergeTarget):
    """An instance of a chart with values, hooks and identity."""

    def __init__(
        self,
        chart_class: ChartMetadata,
        directory: Path | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        suffix: str = "",
    ) -> None:
        """Initialize Chart."""
        object.__setattr__(self, "_chart_class", chart_class)
        object.__setattr__(self, "_dir", directory)
        object.__setattr__(self, "_namespace", namespace)
        object.__setattr__(self, "_suffix", suffix)
        object.__setattr__(self, "_values", {})
        object.__setattr__(
            self,
            "_methods",
            {
                APPLY_HOOK: self._apply,
                DELETE_HOOK: self._delete,
                APPLY_LOCAL_HOOK: self._apply_local,
                DELETE_LOCAL_HOOK: self._delete_local,
            },
        )

    @property
    def name(self) -> str:
        """Name of the chart, suffixed when installed more than once."""
        if not self._suffix:
            return self._chart_class.name
        return f"{self._chart_class.name}-{self._suffix}"

    @property
    def namespace(self) -> str:
        """Namespace the chart is installed into."""
        return self._namespace

    @property
    def chart_class(self) -> ChartMetadata:
        """Static package metadata of the chart."""
        return self._chart_class

    def __getattr__(self, attr: str) -> Any:
        if attr.startswith("__"):
            raise AttributeError(attr)
        try:
            values = object.__getattribute__(self, "_values")
            methods = object.__getattribute__(self, "_methods")
        except AttributeError:
            raise AttributeError(attr) from None
        if attr in values:
            return wrap(values[attr])
        if attr in methods:
            return methods[attr]
        raise NoSuchAttributeError(f"chart {self.name}", attr)

    def __setattr__(self, attr: str, value: Any) -> None:
        if attr in RESERVED_ATTRIBUTES:
            raise ReservedAttributeError(f"chart {self.name}", attr)
        self._values[attr] = unwrap(value)

    def __dir__(self) -> list[str]:
        return sorted(RESERVED_ATTRIBUTES | set(self._values) | set(self._methods))

    def __bool__(self) -> bool:
        # Even when empty
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chart):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        # Entries are visited sorted by key so the result does not depend on
        # the order values were assigned in.
        x, m = _HASH_SEED_X, _HASH_SEED_M
        for key in sorted(self._values):
            x ^= (_HASH_KEY_MULTIPLIER * hash(key)) & _HASH_MASK
            x ^= (hash(self._values[key]) * m) & _HASH_MASK
            m = (m + _HASH_STEP) & _HASH_MASK
        return x

    def __str__(self) -> str:
        entries = ", ".join(
            f"{key} = {_format_value(value)}" for key, value in self._values.items()
        )
        return f"chart({entries})"

    def __repr__(self) -> str:
        return f"<Chart {self.name} ({self._chart_class.version}) in {self._namespace}>"

    def _bind(self, hook: str, fn: Hook) -> None:
        """Register a script function as hook, receiving the chart as first argument."""
        self._methods[hook] = functools.partial(fn, self)

    def _merge_values(self, values: Mapping[str, Any]) -> None:
        for key, value in unwrap(values).items():
            self._values[key] = merge(self._values.get(key), value)

    def _sub_charts(self) -> Generator["Chart", None, None]:
        for value in self._values.values():
            if isinstance(value, Chart):
                yield value

    def _jewels(self) -> Generator[Jewel, None, None]:
        for value in self._values.values():
            if isinstance(value, Jewel):
                yield value

    def _template(self, glob: str = "", for_delete: bool = False) -> list[dict[str, Any]]:
        """Render the manifests of this chart, excluding sub-charts."""
        if self._dir is None:
            return []
        context = {
            "chart": self,
            "values": ValueDict(self._values),
            "release": {
                "name": self.name,
                "namespace": self._namespace,
                "version": self._chart_class.version,
                "chart": self._chart_class.to_dict(),
                "is_install": not for_delete,
                "is_delete": for_delete,
            },
        }
        return decode(render(self._dir / "templates", context, glob))

    async def _apply(self, k8s: K8s) -> None:
        for sub_chart in self._sub_charts():
            await call_hook(sub_chart, APPLY_HOOK, k8s)
        await self._apply_local(k8s)

    async def _delete(self, k8s: K8s) -> None:
        await self._delete_local(k8s)
        for sub_chart in self._sub_charts():
            await call_hook(sub_chart, DELETE_HOOK, k8s)

    async def _apply_local(
        self,
        k8s: K8s,
        glob: str = "",
        options: K8sOptions | None = None,
        **kwargs: Any,
    ) -> None:
        """Apply the manifests and secrets of this chart, excluding sub-charts.

        Keyword arguments override fields of `options`.
        """
        options = _local_options(options, kwargs)
        with trace_context(f"Apply {self.name}"):
            secrets: list[dict[str, Any]] = []
            vault = K8sVault(k8s, secrets.append, self._namespace)
            for jewel in self._jewels():
                await jewel._read(vault)
            objects = self._template(glob)
            for jewel in self._jewels():
                jewel._ensure()
                jewel._write(vault)
            await k8s.apply(secrets + objects, options)

    async def _delete_local(
        self,
        k8s: K8s,
        glob: str = "",
        options: K8sOptions | None = None,
        **kwargs: Any,
    ) -> None:
        """Delete the manifests and then the secrets of this chart, excluding sub-charts.

        Keyword arguments override fields of `options`.
        """
        options = _local_options(options, kwargs)
        with trace_context(f"Delete {self.name}"):
            secrets: list[dict[str, Any]] = []
            vault = K8sVault(k8s, secrets.append, self._namespace)
            objects = self._template(glob, for_delete=True)
            for jewel in self._jewels():
                jewel._write(vault)
            await k8s.delete(objects, options)
            if secrets:
                await k8s.delete(secrets, options)
            for jewel in self._jewels():
                jewel._delete()
