"""Library for talking to the cluster a chart is applied to.

The chart runtime only depends on the abstract `K8s` interface. `Kubectl`
implements it on top of the `kubectl` binary:

```python
from chartkeeper.k8s import Kubectl
from chartkeeper.manifest import K8sOptions

k8s = Kubectl(namespace="mariadb")
secret = await k8s.get("secret", "mariadb-root", K8sOptions(namespaced=True))
```
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
import json
import logging
from typing import Any

import yaml

from . import command
from .exceptions import KubectlException, ObjectNotFoundError
from .manifest import K8sOptions, NamedResource

__all__ = [
    "K8s",
    "Kubectl",
]

_LOGGER = logging.getLogger(__name__)

KUBECTL_BIN = "kubectl"

_NOT_FOUND_MARKERS = ("(NotFound)", "NotFound")


class K8s(ABC):
    """Interface of the cluster client used by charts."""

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Namespace used for namespaced operations."""

    @abstractmethod
    async def get(
        self, kind: str, name: str, options: K8sOptions | None = None
    ) -> dict[str, Any]:
        """Return the object with the given kind and name."""

    @abstractmethod
    async def apply(
        self, objects: list[dict[str, Any]], options: K8sOptions | None = None
    ) -> None:
        """Create or update the objects in the cluster."""

    @abstractmethod
    async def delete(
        self, objects: list[dict[str, Any]], options: K8sOptions | None = None
    ) -> None:
        """Remove the objects from the cluster."""

    @abstractmethod
    def progress(self, percent: int) -> None:
        """Report progress of the current operation."""

    def is_not_exist(self, err: BaseException) -> bool:
        """Return True if the error means the object is absent from the cluster."""
        return isinstance(err, ObjectNotFoundError)


def _dump_stream(objects: list[dict[str, Any]]) -> str:
    return yaml.dump_all(objects, sort_keys=False, explicit_start=True)


class Kubectl(K8s):
    """Cluster client invoking the kubectl command."""

    def __init__(
        self,
        namespace: str,
        kubeconfig: str | None = None,
        context: str | None = None,
        on_progress: Callable[[int], None] | None = None,
    ) -> None:
        """Initialize Kubectl."""
        self._namespace = namespace
        self._flags: list[str] = []
        if kubeconfig:
            self._flags.extend(["--kubeconfig", kubeconfig])
        if context:
            self._flags.extend(["--context", context])
        self._on_progress = on_progress

    @property
    def namespace(self) -> str:
        return self._namespace

    def _args(self, options: K8sOptions, *args: str) -> list[str]:
        out = [KUBECTL_BIN, *self._flags, *args]
        if options.namespaced:
            out.extend(["--namespace", options.namespace or self._namespace])
        return out

    async def get(
        self, kind: str, name: str, options: K8sOptions | None = None
    ) -> dict[str, Any]:
        options = options or K8sOptions()
        cmd = command.Command(
            self._args(options, "get", kind, name, "--output", "json"),
            exc=KubectlException,
        )
        try:
            out = await command.run(cmd)
        except KubectlException as err:
            if any(marker in str(err) for marker in _NOT_FOUND_MARKERS):
                raise ObjectNotFoundError(kind, name, str(err)) from err
            raise
        try:
            return json.loads(out)
        except json.JSONDecodeError as err:
            raise KubectlException(
                f"Unable to parse output of '{cmd}': {err}"
            ) from err

    async def apply(
        self, objects: list[dict[str, Any]], options: K8sOptions | None = None
    ) -> None:
        options = options or K8sOptions()
        if not objects:
            _LOGGER.debug("Nothing to apply")
            return
        _LOGGER.info(
            "Applying %s", ", ".join(str(NamedResource.parse_doc(o)) for o in objects)
        )
        args = self._args(options, "apply", "--filename", "-")
        if options.wait:
            args.append("--wait")
        await command.run(
            command.Command(args, exc=KubectlException), stdin=_dump_stream(objects)
        )

    async def delete(
        self, objects: list[dict[str, Any]], options: K8sOptions | None = None
    ) -> None:
        options = options or K8sOptions()
        if not objects:
            _LOGGER.debug("Nothing to delete")
            return
        _LOGGER.info(
            "Deleting %s", ", ".join(str(NamedResource.parse_doc(o)) for o in objects)
        )
        args = self._args(options, "delete", "--filename", "-")
        if options.ignore_not_found:
            args.append("--ignore-not-found")
        if options.wait:
            args.append("--wait")
        # Remove dependents before the objects they were created from
        await command.run(
            command.Command(args, exc=KubectlException),
            stdin=_dump_stream(list(reversed(objects))),
        )

    def progress(self, percent: int) -> None:
        _LOGGER.info("Progress %d%%", percent)
        if self._on_progress:
            self._on_progress(percent)
