"""Entry points applying or deleting a chart tree against a cluster.

The orchestrator invokes the `apply` or `delete` hook of the root chart with
the cluster client as only argument. The built-in hooks cascade through the
chart tree in this order:

- apply: sub-charts first (depth-first), then the chart's own secrets and
  manifests, so namespaces or CRDs provided by sub-charts exist in time.
- delete: the chart's own manifests first, then its secret objects, then
  the external state of its secrets, then its sub-charts.

Any failure aborts the cascade. Objects applied before the failure stay in
the cluster and progress is only reported after complete success.
"""

import logging
from typing import Any

from .chart import APPLY_HOOK, DELETE_HOOK, Chart, call_hook
from .context import trace_context
from .k8s import K8s
from .vault import ManifestVault

__all__ = [
    "apply",
    "delete",
    "template",
]

_LOGGER = logging.getLogger(__name__)


async def apply(chart: Chart, k8s: K8s) -> None:
    """Apply the chart and all of its sub-charts to the cluster."""
    _LOGGER.info("Applying chart %s to namespace %s", chart.name, chart.namespace)
    with trace_context(f"Chart {chart.name}"):
        await call_hook(chart, APPLY_HOOK, k8s)
    k8s.progress(100)


async def delete(chart: Chart, k8s: K8s) -> None:
    """Delete the chart and all of its sub-charts from the cluster."""
    _LOGGER.info("Deleting chart %s from namespace %s", chart.name, chart.namespace)
    with trace_context(f"Chart {chart.name}"):
        await call_hook(chart, DELETE_HOOK, k8s)
    k8s.progress(100)


def template(chart: Chart, glob: str = "") -> list[dict[str, Any]]:
    """Render the objects of the chart tree without talking to a cluster.

    Secrets are generated as on a first install since nothing is read from
    the cluster.
    """
    objects: list[dict[str, Any]] = []
    for sub_chart in chart._sub_charts():
        objects.extend(template(sub_chart, glob))
    secrets: list[dict[str, Any]] = []
    vault = ManifestVault(secrets.append, chart.namespace)
    rendered = chart._template(glob)
    for jewel in chart._jewels():
        jewel._ensure()
        jewel._write(vault)
    return objects + secrets + rendered
