"""Managed secrets exposed to chart scripts and templates.

A `Jewel` wraps a `JewelBackend` that knows how to produce a secret payload.
The payload is produced lazily, the first time a template or script reads one
of its fields, and exactly once per apply cycle:

- `INIT`: nothing known yet. The backend generates a fresh payload.
- `LOADED`: a secret with the same name was read from the cluster. The
  backend only fills in missing fields so existing credentials are kept.
- `READY`: the payload is final and further access does not call the backend.

States only advance. A failing backend call leaves the state unchanged.

Scripts and templates only see `name` and the fields declared by the backend
`keys()`. The lifecycle methods used by charts are underscore prefixed so a
backend may declare fields such as `state` or `delete`.
"""

from abc import ABC, abstractmethod
from enum import IntEnum
import logging
from typing import Any

from .exceptions import NoSuchAttributeError, ReservedAttributeError
from .vault import Vault

__all__ = [
    "JewelBackend",
    "ComplexJewelBackend",
    "JewelState",
    "Jewel",
]

_LOGGER = logging.getLogger(__name__)


class JewelBackend(ABC):
    """Generator and transformer of a jewel payload."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the backend, used as the type name of its jewels."""

    @abstractmethod
    def keys(self) -> dict[str, str]:
        """Mapping of user facing field name to payload key."""

    @abstractmethod
    def apply(self, data: dict[str, bytes]) -> dict[str, bytes]:
        """Return the payload derived from the existing (possibly empty) payload.

        Fields already present must be preserved.
        """


class ComplexJewelBackend(JewelBackend):
    """Backend that generates payloads from scratch and owns external state."""

    @abstractmethod
    def template(self) -> dict[str, bytes]:
        """Return a newly generated payload."""

    @abstractmethod
    def delete(self) -> None:
        """Release any state held outside of the cluster secret."""


class JewelState(IntEnum):
    """Lifecycle state of a jewel payload."""

    INIT = 0
    LOADED = 1
    READY = 2


def _data_value(data: bytes | None) -> str:
    if data is None:
        return ""
    return data.decode("utf-8")


class Jewel:
    """A secret value with lazily materialized fields."""

    def __init__(self, backend: JewelBackend, name: str) -> None:
        """Initialize Jewel."""
        object.__setattr__(self, "_backend", backend)
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_state", JewelState.INIT)
        object.__setattr__(self, "_data", {})
        object.__setattr__(
            self,
            "_complex",
            backend if isinstance(backend, ComplexJewelBackend) else None,
        )

    @property
    def name(self) -> str:
        """Name of the cluster secret holding the payload."""
        return self._name

    def _advance(self, state: JewelState, data: dict[str, bytes]) -> None:
        if state < self._state:
            raise ValueError(f"Jewel {self._name} can't go from {self._state!r} to {state!r}")
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_state", state)

    async def _read(self, vault: Vault) -> None:
        """Load the payload of an already existing secret from the cluster.

        A missing secret is expected on first install and keeps the jewel in
        the `INIT` state.
        """
        if self._state != JewelState.INIT:
            return
        try:
            data = await vault.read(self._name)
        except Exception as err:
            if not vault.is_not_exist(err):
                raise
            _LOGGER.debug("Secret %s does not exist yet", self._name)
            return
        _LOGGER.debug("Loaded secret %s with keys %s", self._name, sorted(data))
        self._advance(JewelState.LOADED, data)

    def _write(self, vault: Vault) -> None:
        """Store the current payload in the vault."""
        vault.write(self._name, self._data)

    def _ensure(self) -> None:
        """Materialize the payload if that did not happen yet."""
        if self._state == JewelState.READY:
            return
        if self._state == JewelState.LOADED:
            data = self._backend.apply(dict(self._data))
        elif self._complex is not None:
            data = self._complex.template()
        else:
            data = self._backend.apply({})
        _LOGGER.debug("Jewel %s is ready", self._name)
        self._advance(JewelState.READY, data)

    def _delete(self) -> None:
        """Release external state of the backend, if it has any."""
        if self._complex is not None:
            _LOGGER.debug("Deleting external state of jewel %s", self._name)
            self._complex.delete()

    def _template_values(self) -> dict[str, str]:
        """Return all fields of the jewel as text."""
        self._ensure()
        return {
            field: _data_value(self._data.get(key))
            for field, key in self._backend.keys().items()
        }

    def __getattr__(self, attr: str) -> Any:
        if attr.startswith("_"):
            raise AttributeError(attr)
        if (key := self._backend.keys().get(attr)) is None:
            raise NoSuchAttributeError(self._backend.name, attr)
        self._ensure()
        return _data_value(self._data.get(key))

    def __setattr__(self, attr: str, value: Any) -> None:
        raise ReservedAttributeError(str(self), attr)

    def __dir__(self) -> list[str]:
        return ["name", *self._backend.keys()]

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self._backend.name}(name = {self._name})"

    def __repr__(self) -> str:
        return f"<Jewel {self} state={self._state.name}>"
