"""Exceptions related to chartkeeper."""

__all__ = [
    "ChartKeeperException",
    "InputException",
    "CommandException",
    "KubectlException",
    "ObjectNotFoundError",
    "TemplateException",
    "JewelException",
    "NoSuchAttributeError",
    "ReservedAttributeError",
    "MissingHookError",
]


class ChartKeeperException(Exception):
    """Generic base exception used for this library."""


class InputException(ChartKeeperException):
    """Raised when the chart files or values are not formatted as expected."""


class CommandException(ChartKeeperException):
    """Raised when there is a failure running a subcommand."""


class KubectlException(CommandException):
    """Raised when there is a failure running a kubectl command."""


class ObjectNotFoundError(KubectlException):
    """Raised when an object does not exist in the cluster."""

    def __init__(self, kind: str, name: str, message: str | None = None) -> None:
        super().__init__(message or f"{kind} {name} not found")
        self.kind = kind
        self.name = name


class TemplateException(ChartKeeperException):
    """Raised when chart templates can't be rendered or decoded."""


class JewelException(ChartKeeperException):
    """Raised when a jewel backend fails to produce its payload."""


class NoSuchAttributeError(ChartKeeperException, AttributeError):
    """Raised for access to an attribute a chart or jewel does not have."""

    def __init__(self, owner: str, attr: str) -> None:
        super().__init__(f"{owner} has no .{attr} attribute")
        self.owner = owner
        self.attr = attr


class ReservedAttributeError(ChartKeeperException, AttributeError):
    """Raised when a script assigns to a reserved or read-only attribute."""

    def __init__(self, owner: str, attr: str) -> None:
        super().__init__(f"can't assign reserved attribute .{attr} of {owner}")
        self.owner = owner
        self.attr = attr


class MissingHookError(ChartKeeperException):
    """Raised when a chart hook is invoked that the chart does not define."""

    def __init__(self, chart_name: str, hook: str) -> None:
        super().__init__(f"chart {chart_name} has no {hook} hook")
        self.chart_name = chart_name
        self.hook = hook
