"""Test fixtures for chartkeeper."""

import copy
from pathlib import Path
from typing import Any

import pytest

from chartkeeper.exceptions import KubectlException, ObjectNotFoundError
from chartkeeper.k8s import K8s
from chartkeeper.manifest import K8sOptions, NamedResource

TESTDATA_DIR = Path(__file__).parent / "testdata" / "charts"


class FakeK8s(K8s):
    """Cluster client recording every call and keeping objects in memory."""

    def __init__(self, namespace: str = "default") -> None:
        self._namespace = namespace
        self.objects: dict[NamedResource, dict[str, Any]] = {}
        self.calls: list[tuple[str, list[str]]] = []
        self.options: list[K8sOptions | None] = []
        self.progress_reports: list[int] = []
        self.fail_on: str | None = None

    @property
    def namespace(self) -> str:
        return self._namespace

    def _check_failure(self, op: str) -> None:
        if self.fail_on == op:
            raise KubectlException(f"{op} failed")

    async def get(
        self, kind: str, name: str, options: K8sOptions | None = None
    ) -> dict[str, Any]:
        namespace = self._namespace
        if options and options.namespaced and options.namespace:
            namespace = options.namespace
        self.calls.append(("get", [f"{kind.title()}/{namespace}/{name}"]))
        self._check_failure("get")
        resource = NamedResource(kind.title(), namespace, name)
        if (obj := self.objects.get(resource)) is None:
            raise ObjectNotFoundError(kind, name)
        return copy.deepcopy(obj)

    async def apply(
        self, objects: list[dict[str, Any]], options: K8sOptions | None = None
    ) -> None:
        ids = [NamedResource.parse_doc(obj) for obj in objects]
        self.calls.append(("apply", [str(i) for i in ids]))
        self.options.append(options)
        self._check_failure("apply")
        for resource, obj in zip(ids, objects):
            self.objects[resource] = copy.deepcopy(obj)

    async def delete(
        self, objects: list[dict[str, Any]], options: K8sOptions | None = None
    ) -> None:
        ids = [NamedResource.parse_doc(obj) for obj in objects]
        self.calls.append(("delete", [str(i) for i in ids]))
        self.options.append(options)
        self._check_failure("delete")
        for resource in ids:
            self.objects.pop(resource, None)

    def progress(self, percent: int) -> None:
        self.progress_reports.append(percent)


@pytest.fixture(name="k8s")
def k8s_fixture() -> FakeK8s:
    """Fixture for an empty fake cluster."""
    return FakeK8s()
