"""Tests for the chart runtime object."""

from typing import Any

import pytest

from chartkeeper.backends import user_credential
from chartkeeper.chart import Chart, call_hook
from chartkeeper.exceptions import (
    MissingHookError,
    NoSuchAttributeError,
    ReservedAttributeError,
)
from chartkeeper.manifest import ChartMetadata, K8sOptions
from chartkeeper.values import ValueDict

from conftest import TESTDATA_DIR, FakeK8s


@pytest.fixture(name="chart")
def chart_fixture() -> Chart:
    """Fixture for a chart without templates."""
    return Chart(ChartMetadata(name="mariadb", version="1.2.3"), namespace="db")


def test_identity(chart: Chart) -> None:
    """Test the reserved identity attributes."""
    assert chart.name == "mariadb"
    assert chart.namespace == "db"
    assert chart.chart_class.version == "1.2.3"
    assert repr(chart) == "<Chart mariadb (1.2.3) in db>"


def test_suffix() -> None:
    """Test that a suffix distinguishes multiple installs of a chart."""
    chart = Chart(ChartMetadata(name="mariadb"), suffix="replica")
    assert chart.name == "mariadb-replica"
    assert chart.chart_class.name == "mariadb"


def test_values_resolution(chart: Chart) -> None:
    """Test attributes resolve from the values with nested mappings wrapped."""
    chart.replicas = 2
    chart.image = {"repository": "mariadb", "tag": "10.6"}
    assert chart.replicas == 2
    assert isinstance(chart.image, ValueDict)
    assert chart.image.tag == "10.6"

    chart.image.tag = "10.7"
    assert chart.image == {"repository": "mariadb", "tag": "10.7"}


def test_values_shadow_hooks(chart: Chart) -> None:
    """Test that a value with the name of a hook wins over the hook."""
    assert callable(chart.apply)
    chart.apply = "not a hook"
    assert chart.apply == "not a hook"


def test_reserved_attributes(chart: Chart) -> None:
    """Test that identity attributes can't be replaced by scripts."""
    with pytest.raises(ReservedAttributeError, match=r"\.name"):
        chart.name = "other"
    with pytest.raises(ReservedAttributeError):
        chart.namespace = "other"
    with pytest.raises(ReservedAttributeError):
        chart.chart_class = "other"
    assert chart.name == "mariadb"


def test_missing_attribute(chart: Chart) -> None:
    """Test that unknown attributes are errors naming the chart."""
    with pytest.raises(NoSuchAttributeError, match=r"^chart mariadb has no \.replicas attribute$"):
        chart.replicas
    assert not hasattr(chart, "replicas")
    assert getattr(chart, "replicas", 1) == 1


def test_dir(chart: Chart) -> None:
    """Test that all resolvable attributes are listed."""
    chart.replicas = 1
    assert dir(chart) == [
        "apply",
        "apply_local",
        "chart_class",
        "delete",
        "delete_local",
        "name",
        "namespace",
        "replicas",
    ]


def test_truth(chart: Chart) -> None:
    """Test that a chart is truthy even without values."""
    assert chart


def test_equality() -> None:
    """Test that charts compare by their values."""
    first = Chart(ChartMetadata(name="a"))
    second = Chart(ChartMetadata(name="b"))
    first.replicas = 1
    second.replicas = 1
    assert first == second
    second.replicas = 2
    assert first != second
    assert first != {"replicas": 1}


def test_hash_independent_of_assignment_order() -> None:
    """Test that equal charts hash equally regardless of assignment order."""
    first = Chart(ChartMetadata(name="a"))
    first.replicas = 1
    first.image = "mariadb"
    second = Chart(ChartMetadata(name="a"))
    second.image = "mariadb"
    second.replicas = 1
    assert hash(first) == hash(second)
    assert 0 <= hash(first) <= 0xFFFFFFFF

    second.replicas = 2
    assert hash(first) != hash(second)


def test_hash_unhashable_value(chart: Chart) -> None:
    """Test that charts holding mutable values are not hashable."""
    chart.image = {"tag": "10.6"}
    with pytest.raises(TypeError):
        hash(chart)


def test_str(chart: Chart) -> None:
    """Test the string form lists values with quoted strings."""
    assert str(chart) == "chart()"
    chart.replicas = 2
    chart.image = "mariadb"
    assert str(chart) == 'chart(replicas = 2, image = "mariadb")'


def test_sub_charts_and_jewels(chart: Chart) -> None:
    """Test that sub-charts and jewels are discovered in the values."""
    sub_chart = Chart(ChartMetadata(name="metrics"))
    root = user_credential("root")
    chart.metrics = sub_chart
    chart.root = root
    chart.replicas = 1
    assert list(chart._sub_charts()) == [sub_chart]
    assert list(chart._jewels()) == [root]
    assert chart.metrics is sub_chart


async def test_call_hook(chart: Chart) -> None:
    """Test that script hooks receive the chart and may be async."""
    calls: list[tuple[Any, ...]] = []

    def scale(self: Chart, replicas: int) -> int:
        self.replicas = replicas
        return replicas

    async def ping(self: Chart, *args: Any, **kwargs: Any) -> str:
        calls.append((self, args, kwargs))
        return "pong"

    chart._bind("scale", scale)
    chart._bind("ping", ping)
    assert await call_hook(chart, "scale", 3) == 3
    assert chart.replicas == 3
    assert await call_hook(chart, "ping", 1, key="value") == "pong"
    assert calls == [(chart, (1,), {"key": "value"})]

    chart.scale(4)
    assert chart.replicas == 4


async def test_call_missing_hook(chart: Chart) -> None:
    """Test calling a hook the chart does not define."""
    with pytest.raises(MissingHookError, match="chart mariadb has no upgrade hook"):
        await call_hook(chart, "upgrade")


def test_template_without_directory(chart: Chart) -> None:
    """Test that a chart without a directory renders no objects."""
    assert chart._template() == []


def test_template_release_context() -> None:
    """Test the release information available to templates."""
    chart = Chart(ChartMetadata(name="plain"), TESTDATA_DIR / "plain", "apps")
    assert chart._template() == [
        {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "plain", "namespace": "apps"},
            "data": {"deleting": "False"},
        }
    ]
    [obj] = chart._template(for_delete=True)
    assert obj["data"] == {"deleting": "True"}


async def test_local_hooks_merge_options(k8s: FakeK8s) -> None:
    """Test that keyword arguments of the local hooks override the given options."""
    chart = Chart(ChartMetadata(name="plain"), TESTDATA_DIR / "plain", "apps")
    await chart._apply_local(k8s, options=K8sOptions(wait=True), ignore_not_found=True)
    await chart._delete_local(k8s, options=K8sOptions(wait=True), wait=False)
    await call_hook(chart, "apply_local", k8s, wait=True)
    assert k8s.options == [
        K8sOptions(wait=True, ignore_not_found=True, namespaced=False),
        K8sOptions(namespaced=False),
        K8sOptions(wait=True, namespaced=False),
    ]


async def test_local_hooks_unknown_option(k8s: FakeK8s) -> None:
    """Test that unknown keyword arguments are rejected."""
    chart = Chart(ChartMetadata(name="plain"), TESTDATA_DIR / "plain", "apps")
    with pytest.raises(TypeError):
        await chart._apply_local(k8s, options=K8sOptions(), bogus=True)
    assert not k8s.calls
