"""Library for the flags configuring the cluster connection."""

from argparse import ArgumentParser
from typing import Any

from chartkeeper.k8s import Kubectl


def add_k8s_flags(args: ArgumentParser) -> None:
    """Add flags selecting the cluster to the arguments object."""
    args.add_argument(
        "--kubeconfig",
        help="Path of the kubeconfig file used by kubectl",
        type=str,
        default=None,
    )
    args.add_argument(
        "--context",
        help="Name of the kubeconfig context used by kubectl",
        type=str,
        default=None,
    )


def build_k8s(
    namespace: str,
    kubeconfig: str | None = None,
    context: str | None = None,
    **kwargs: Any,
) -> Kubectl:
    """Build the cluster client from the command line flags."""
    return Kubectl(namespace, kubeconfig=kubeconfig, context=context)
