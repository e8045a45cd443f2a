"""Resource blocks, resource kinds and the resource interfaces."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from bubbly.data import Data, DataFields
from bubbly.types import RESOURCE_TABLE_NAME, ResourceOutput


class ResourceKind(str, Enum):
    """The kinds of resource."""

    EXTRACT = "extract"
    TRANSFORM = "transform"
    LOAD = "load"
    PIPELINE = "pipeline"
    RUN = "run"
    QUERY = "query"
    CRITERIA = "criteria"

    def __str__(self) -> str:
        return self.value


def resource_kind_priority() -> list[ResourceKind]:
    """Return the resource kinds in the order they should be applied."""
    return [
        ResourceKind.EXTRACT,
        ResourceKind.TRANSFORM,
        ResourceKind.LOAD,
        ResourceKind.QUERY,
        # pipeline and criteria reference other resources
        ResourceKind.PIPELINE,
        ResourceKind.CRITERIA,
        ResourceKind.RUN,
    ]


def resource_run_kinds() -> list[ResourceKind]:
    """Return the resource kinds that start runs."""
    return [ResourceKind.RUN]


@dataclass
class Metadata:
    """The metadata of a resource."""

    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class ResourceBlock:
    """A ``resource "<kind>" "<name>" {...}`` block.

    The spec is kept as raw text. When it is empty it can be read from
    ``spec_file``, where ``spec_range`` gives the byte offsets of the spec
    block including its braces.
    """

    kind: str
    name: str
    api_version: str = ""
    metadata: Optional[Metadata] = None
    spec_raw: str = ""
    spec_file: Optional[str] = None
    spec_range: Optional[tuple[int, int]] = None

    def __post_init__(self) -> None:
        self.kind = str(self.kind)

    @property
    def id(self) -> str:
        """The ``kind/name`` identifier of the resource."""
        return f"{self.kind}/{self.name}"

    @property
    def labels(self) -> Optional[dict[str, str]]:
        """The metadata labels, or None without metadata."""
        return self.metadata.labels if self.metadata is not None else None

    def __str__(self) -> str:
        return self.id

    def _spec_text(self) -> str:
        if self.spec_file is None or self.spec_range is None:
            raise ValueError(f"cannot get src range for resource {self}")
        try:
            file_bytes = Path(self.spec_file).read_bytes()
        except OSError as err:
            raise ValueError(f"failed to read resource file: {err}") from err
        start, end = self.spec_range
        if not 0 <= start <= end <= len(file_bytes) or end - start < 2:
            raise ValueError(
                f"cannot slice bytes for resource {self} "
                f"in filename {self.spec_file}"
            )
        # the slice holds the enclosing braces; drop them
        return file_bytes[start + 1 : end - 1].decode("utf-8")

    def _metadata_json(self) -> Optional[dict]:
        if self.metadata is None:
            return None
        if self.metadata.labels:
            return {"labels": dict(self.metadata.labels)}
        return {}

    def to_json(self) -> dict:
        """Return the block as a JSON-ready dict."""
        spec = self.spec_raw
        if not spec:
            try:
                spec = self._spec_text()
            except ValueError as err:
                raise ValueError(
                    f"failed to get raw spec for resource: {self}: {err}"
                ) from err
        return {
            "kind": self.kind,
            "name": self.name,
            "api_version": self.api_version,
            "metadata": self._metadata_json(),
            "spec": spec,
        }

    def data(self) -> Data:
        """Return the block as a data block for the resource table."""
        if not self.spec_raw:
            try:
                self.spec_raw = self._spec_text()
            except ValueError as err:
                raise ValueError(
                    f"unable to get the raw spec for resource {self.id}: {err}"
                ) from err
        metadata: dict[str, Any] = {}
        if self.metadata is not None:
            metadata["labels"] = dict(self.metadata.labels)
        return Data(
            table_name=RESOURCE_TABLE_NAME,
            fields=DataFields(
                values={
                    "id": str(self),
                    "name": self.name,
                    "kind": self.kind,
                    "api_version": self.api_version,
                    "metadata": metadata,
                    "spec": self.spec_raw,
                }
            ),
        )


def _metadata_from_value(value: Any, what: str) -> Optional[Metadata]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError(f"{what}: metadata must be an object")
    labels = value.get("labels") or {}
    if not isinstance(labels, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in labels.items()
    ):
        raise ValueError(f"{what}: metadata labels must map strings to strings")
    return Metadata(labels=dict(labels))


def resource_block_from_json(obj: Any) -> ResourceBlock:
    """Build a ResourceBlock from its JSON form, given as text or a dict."""
    if isinstance(obj, (str, bytes)):
        obj = json.loads(obj)
    if not isinstance(obj, Mapping):
        raise ValueError("failed to unmarshal resource: expected an object")
    values: dict[str, str] = {}
    for key in ("kind", "name", "api_version", "spec"):
        value = obj.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError(
                f"failed to unmarshal resource: {key} must be a string"
            )
        values[key] = value
    return ResourceBlock(
        kind=values["kind"],
        name=values["name"],
        api_version=values["api_version"],
        metadata=_metadata_from_value(
            obj.get("metadata"), "failed to unmarshal resource"
        ),
        spec_raw=values["spec"],
    )


_STRING_FIELDS = {
    "kind": "kind",
    "name": "name",
    "api_version": "api_version",
    "spec": "spec_raw",
}


def resource_from_data(data: Data) -> ResourceBlock:
    """Build a ResourceBlock from a data block of the resource table."""
    kwargs: dict[str, Any] = {"kind": "", "name": ""}
    values = data.fields.values if data.fields is not None else {}
    for key, value in values.items():
        if key in _STRING_FIELDS:
            if not isinstance(value, str):
                raise ValueError(
                    f"error converting resource field {key} with type "
                    f"{type(value).__name__}: expected a string"
                )
            kwargs[_STRING_FIELDS[key]] = value
        elif key == "metadata":
            kwargs["metadata"] = _metadata_from_value(
                value, f"error converting resource field {key}"
            )
        elif key == "id":
            # derived from kind and name
            continue
        else:
            raise ValueError(f"unknown resource data field: {key}")
    if not kwargs.get("spec_raw"):
        raise ValueError("resource raw spec is empty")
    return ResourceBlock(**kwargs)


class SubResource(ABC):
    """Anything that can be run within a resource context."""

    @abstractmethod
    def run(self, bctx: Any, ctx: Any) -> ResourceOutput:
        """Run and return the output."""


class Resource(SubResource):
    """A named, versioned resource that can be stored and run."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The name of the resource."""

    @property
    @abstractmethod
    def kind(self) -> ResourceKind:
        """The kind of the resource."""

    @property
    @abstractmethod
    def api_version(self) -> str:
        """The API version of the resource."""

    @property
    def id(self) -> str:
        """The ``kind/name`` identifier of the resource."""
        return f"{self.kind}/{self.name}"

    def __str__(self) -> str:
        return self.id

    @abstractmethod
    def data(self) -> Data:
        """Return a data block representing the resource."""