"""Chartkeeper apply action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast

from chartkeeper import orchestrator

from . import selector
from .k8s_flags import add_k8s_flags, build_k8s

_LOGGER = logging.getLogger(__name__)


class ApplyAction:
    """Chartkeeper apply action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "apply",
                help="Apply a chart and its sub-charts to the cluster",
                description=(
                    "Apply a chart to the cluster. Sub-charts are applied before "
                    "the chart itself and existing secrets are reused."
                ),
            ),
        )
        selector.add_chart_flags(args)
        add_k8s_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(self, **kwargs: Any) -> None:
        """Async Action implementation."""
        chart = selector.load_chart(**kwargs)
        k8s = build_k8s(**kwargs)
        await orchestrator.apply(chart, k8s)
