"""Representation of chart metadata and the cluster objects a chart produces."""

import base64
import binascii
from dataclasses import dataclass, field
import logging
import re
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from .exceptions import InputException

__all__ = [
    "ChartMetadata",
    "K8sOptions",
    "NamedResource",
    "secret_object",
    "secret_data",
]

_LOGGER = logging.getLogger(__name__)


SECRET_KIND = "Secret"
SECRET_API_VERSION = "v1"
SECRET_TYPE_OPAQUE = "Opaque"
DEFAULT_VERSION = "0.0.0"
DEFAULT_NAMESPACE = "default"

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@dataclass
class ChartMetadata(DataClassDictMixin):
    """Static package metadata of a chart read from `Chart.yaml`."""

    name: str
    """The name of the chart."""

    version: str = DEFAULT_VERSION
    """The semantic version of the chart."""

    description: str | None = None
    """Human readable description of the chart."""

    api_version: str | None = field(
        default=None, metadata=field_options(alias="apiVersion")
    )
    """The Chart.yaml apiVersion."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any], default_name: str) -> "ChartMetadata":
        """Parse a ChartMetadata from a Chart.yaml document.

        The chart name always comes from the location of the chart so that a
        renamed copy of a chart is a different chart.
        """
        if not isinstance(doc, dict):
            raise InputException(f"Invalid Chart.yaml, expected a mapping: {doc}")
        version = str(doc.get("version", DEFAULT_VERSION))
        if not _SEMVER_RE.match(version):
            raise InputException(
                f"Invalid Chart.yaml version '{version}' for chart {default_name}"
            )
        return cls(
            name=default_name,
            version=version,
            description=doc.get("description"),
            api_version=doc.get("apiVersion"),
        )

    def __str__(self) -> str:
        return f"{self.name}:{self.version}"

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class K8sOptions:
    """Options passed along with cluster operations."""

    namespaced: bool = False
    """Force objects into the namespace of the client instead of their own."""

    ignore_not_found: bool = False
    """Treat deletion of objects that don't exist as success."""

    wait: bool = False
    """Wait for applied objects to become ready."""

    namespace: str | None = None
    """Namespace for namespaced operations instead of the client default."""


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "NamedResource":
        """Build the identifier of a raw kubernetes object."""
        if not (kind := doc.get("kind")):
            raise InputException(f"Invalid object missing kind: {doc}")
        if not (metadata := doc.get("metadata")) or not metadata.get("name"):
            raise InputException(f"Invalid object missing metadata.name: {doc}")
        return cls(kind, metadata.get("namespace"), metadata["name"])

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


def secret_object(name: str, namespace: str, data: dict[str, bytes]) -> dict[str, Any]:
    """Return an Opaque Secret object holding the byte map as its data."""
    return {
        "apiVersion": SECRET_API_VERSION,
        "kind": SECRET_KIND,
        "metadata": {
            "name": name,
            "namespace": namespace,
        },
        "type": SECRET_TYPE_OPAQUE,
        "data": {k: base64.b64encode(v).decode("ascii") for k, v in data.items()},
    }


def secret_data(obj: dict[str, Any]) -> dict[str, bytes]:
    """Return the byte map stored in the data field of a Secret object."""
    name = obj.get("metadata", {}).get("name")
    encoded = obj.get("data") or {}
    if not isinstance(encoded, dict):
        raise InputException(f"Invalid Secret {name} data, expected a mapping")
    try:
        return {k: base64.b64decode(v, validate=True) for k, v in encoded.items()}
    except (binascii.Error, TypeError) as err:
        raise InputException(f"Unable to decode data of Secret {name}: {err}") from err
