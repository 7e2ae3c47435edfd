"""Tests for the kubectl cluster client."""

import json
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from chartkeeper.exceptions import KubectlException, ObjectNotFoundError
from chartkeeper.k8s import Kubectl
from chartkeeper.manifest import K8sOptions, secret_object

OBJECTS = [
    {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "apps"}},
    {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "db", "namespace": "apps"},
    },
]


@pytest.fixture(name="mock_run")
def mock_run_fixture():
    """Fixture replacing command execution."""
    with patch("chartkeeper.k8s.command.run", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = ""
        yield mock_run


async def test_get(mock_run: AsyncMock) -> None:
    """Test reading an object from the namespace of the client."""
    secret = secret_object("db", "apps", {"password": b"pwd"})
    mock_run.return_value = json.dumps(secret)
    k8s = Kubectl("apps", kubeconfig="/tmp/kubeconfig", context="dev")
    assert await k8s.get("secret", "db", K8sOptions(namespaced=True)) == secret

    cmd = mock_run.await_args.args[0]
    assert cmd.cmd == [
        "kubectl",
        "--kubeconfig",
        "/tmp/kubeconfig",
        "--context",
        "dev",
        "get",
        "secret",
        "db",
        "--output",
        "json",
        "--namespace",
        "apps",
    ]
    assert cmd.exc is KubectlException


async def test_get_other_namespace(mock_run: AsyncMock) -> None:
    """Test reading an object from an explicit namespace."""
    mock_run.return_value = "{}"
    await Kubectl("apps").get("secret", "db", K8sOptions(namespaced=True, namespace="db"))
    assert mock_run.await_args.args[0].cmd[-2:] == ["--namespace", "db"]


async def test_get_not_found(mock_run: AsyncMock) -> None:
    """Test that a missing object is reported distinctly."""
    mock_run.side_effect = KubectlException(
        'Error from server (NotFound): secrets "db" not found'
    )
    k8s = Kubectl("apps")
    with pytest.raises(ObjectNotFoundError) as exc_info:
        await k8s.get("secret", "db")
    assert k8s.is_not_exist(exc_info.value)
    assert exc_info.value.name == "db"


async def test_get_failure(mock_run: AsyncMock) -> None:
    """Test that other errors are not treated as a missing object."""
    mock_run.side_effect = KubectlException("Unable to connect to the server")
    k8s = Kubectl("apps")
    with pytest.raises(KubectlException) as exc_info:
        await k8s.get("secret", "db")
    assert not k8s.is_not_exist(exc_info.value)


async def test_get_invalid_output(mock_run: AsyncMock) -> None:
    """Test output that is not json."""
    mock_run.return_value = "not json"
    with pytest.raises(KubectlException, match="Unable to parse"):
        await Kubectl("apps").get("secret", "db")


async def test_apply(mock_run: AsyncMock) -> None:
    """Test applying a stream of objects."""
    await Kubectl("apps").apply(OBJECTS, K8sOptions(wait=True))
    cmd = mock_run.await_args.args[0]
    assert cmd.cmd == ["kubectl", "apply", "--filename", "-", "--wait"]
    stdin = mock_run.await_args.kwargs["stdin"]
    assert list(yaml.safe_load_all(stdin)) == OBJECTS


async def test_delete_reverses_order(mock_run: AsyncMock) -> None:
    """Test that objects are deleted in reverse order of creation."""
    await Kubectl("apps").delete(OBJECTS, K8sOptions(ignore_not_found=True))
    cmd = mock_run.await_args.args[0]
    assert cmd.cmd == ["kubectl", "delete", "--filename", "-", "--ignore-not-found"]
    stdin = mock_run.await_args.kwargs["stdin"]
    assert list(yaml.safe_load_all(stdin)) == list(reversed(OBJECTS))


async def test_empty_stream(mock_run: AsyncMock) -> None:
    """Test that nothing runs without objects."""
    k8s = Kubectl("apps")
    await k8s.apply([])
    await k8s.delete([])
    mock_run.assert_not_awaited()


def test_progress() -> None:
    """Test that progress is forwarded to the callback."""
    reports: list[int] = []
    k8s = Kubectl("apps", on_progress=reports.append)
    k8s.progress(100)
    assert reports == [100]
    assert k8s.namespace == "apps"
