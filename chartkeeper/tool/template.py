"""Chartkeeper template action, rendering a chart without a cluster."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast

import aiofiles
import yaml

from chartkeeper import orchestrator

from . import selector

_LOGGER = logging.getLogger(__name__)


class TemplateAction:
    """Chartkeeper template action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "template",
                help="Render the objects of a chart and its sub-charts",
                description=(
                    "Render the objects of a chart locally. Secrets are "
                    "generated as on a first install."
                ),
            ),
        )
        selector.add_chart_flags(args)
        args.add_argument(
            "--glob",
            help="Only render templates with a file name matching the glob",
            type=str,
            default="",
        )
        args.add_argument(
            "--output-file",
            type=str,
            default="/dev/stdout",
            help="Output file for the results of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(self, output_file: str, glob: str, **kwargs: Any) -> None:
        """Async Action implementation."""
        chart = selector.load_chart(**kwargs)
        objects = orchestrator.template(chart, glob)
        content = yaml.dump_all(objects, sort_keys=False, explicit_start=True)
        async with aiofiles.open(output_file, mode="w") as output:
            await output.write(content)
