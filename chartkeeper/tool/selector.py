"""Library for the flags selecting and configuring the chart to operate on."""

from argparse import (
    ArgumentParser,
    Action,
    ArgumentError,
    Namespace,
)
import logging
import pathlib
from typing import Any

from chartkeeper import loader
from chartkeeper.chart import Chart
from chartkeeper.exceptions import InputException
from chartkeeper.manifest import DEFAULT_NAMESPACE
from chartkeeper.values import load_values, merge, parse_set

_LOGGER = logging.getLogger(__name__)


class SetAppendAction(Action):
    """Append a key=value override to the argument list."""

    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        result = getattr(namespace, self.dest) or []
        try:
            result.append(parse_set(values))
        except InputException as err:
            raise ArgumentError(self, str(err))
        setattr(namespace, self.dest, result)


def add_chart_flags(args: ArgumentParser) -> None:
    """Add common chart flags to the arguments object."""
    args.add_argument(
        "chart",
        help="Path to the chart directory",
        type=pathlib.Path,
    )
    args.add_argument(
        "--namespace",
        "-n",
        help="Namespace the chart is installed into",
        type=str,
        default=DEFAULT_NAMESPACE,
    )
    args.add_argument(
        "--suffix",
        help="Suffix of the chart name to install a chart more than once",
        type=str,
        default="",
    )
    args.add_argument(
        "--values",
        "-f",
        help="YAML file with values overriding the chart defaults (repeatable)",
        type=pathlib.Path,
        action="append",
        default=None,
        dest="values_files",
    )
    args.add_argument(
        "--set",
        help="Override a value with path.to.key=value (repeatable)",
        action=SetAppendAction,
        default=None,
        dest="set_values",
    )


def build_values(
    values_files: list[pathlib.Path] | None, set_values: list[dict[str, Any]] | None
) -> dict[str, Any]:
    """Layer values files and then --set overrides in command line order."""
    values: dict[str, Any] = {}
    for values_file in values_files or []:
        values = merge(values, load_values(values_file))
    for override in set_values or []:
        values = merge(values, override)
    return values


def load_chart(
    chart: pathlib.Path,
    namespace: str,
    suffix: str,
    values_files: list[pathlib.Path] | None = None,
    set_values: list[dict[str, Any]] | None = None,
    **kwargs: Any,
) -> Chart:
    """Load the chart selected by the command line flags."""
    values = build_values(values_files, set_values)
    _LOGGER.debug("Loading chart %s with overrides %s", chart, values)
    return loader.load_chart(chart, namespace=namespace, suffix=suffix, values=values)
