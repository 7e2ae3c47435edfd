"""Storage of named secret payloads in the cluster.

A vault maps a named byte map onto exactly one `Opaque` Secret object. Writes
are emitted into the manifest stream of the chart being applied so the secret
is created together with the resources that reference it.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
import logging
from typing import Any

from .exceptions import ObjectNotFoundError
from .k8s import K8s
from .manifest import K8sOptions, secret_data, secret_object

__all__ = [
    "Vault",
    "ManifestVault",
    "K8sVault",
]

_LOGGER = logging.getLogger(__name__)

ObjectWriter = Callable[[dict[str, Any]], None]


class Vault(ABC):
    """Read and write named secret payloads."""

    @abstractmethod
    def write(self, name: str, data: dict[str, bytes]) -> None:
        """Persist the payload under the given name."""

    @abstractmethod
    async def read(self, name: str) -> dict[str, bytes]:
        """Return the payload stored under the given name."""

    @abstractmethod
    def is_not_exist(self, err: BaseException) -> bool:
        """Return True if the error means nothing is stored under the name."""


class ManifestVault(Vault):
    """Vault writing Secret objects into a manifest stream.

    Nothing is ever stored before, so reads always report a missing secret.
    """

    def __init__(self, object_writer: ObjectWriter, namespace: str) -> None:
        """Initialize ManifestVault."""
        self._object_writer = object_writer
        self._namespace = namespace

    def write(self, name: str, data: dict[str, bytes]) -> None:
        _LOGGER.debug("Writing secret %s/%s", self._namespace, name)
        self._object_writer(secret_object(name, self._namespace, data))

    async def read(self, name: str) -> dict[str, bytes]:
        raise ObjectNotFoundError("secret", name)

    def is_not_exist(self, err: BaseException) -> bool:
        return isinstance(err, ObjectNotFoundError)


class K8sVault(ManifestVault):
    """Vault backed by Secret objects in a cluster namespace."""

    def __init__(
        self, k8s: K8s, object_writer: ObjectWriter, namespace: str | None = None
    ) -> None:
        """Initialize K8sVault."""
        super().__init__(object_writer, namespace or k8s.namespace)
        self._k8s = k8s

    async def read(self, name: str) -> dict[str, bytes]:
        obj = await self._k8s.get(
            "secret", name, K8sOptions(namespaced=True, namespace=self._namespace)
        )
        return secret_data(obj)

    def is_not_exist(self, err: BaseException) -> bool:
        return self._k8s.is_not_exist(err)
