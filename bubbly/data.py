"""Data blocks sent to the store, with their JSON form."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class DataBlockPolicy(str, Enum):
    """How the store treats a data block when saving it."""

    EMPTY = ""
    CREATE_UPDATE = "create_update"
    DEFAULT = "create_update"
    CREATE = "create"
    REFERENCE = "reference"
    REFERENCE_IF_EXISTS = "reference_if_exists"


@dataclass(frozen=True)
class DataRef:
    """A reference to a field of another table."""

    table_name: str
    field: str


def _parse_time(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass
class DataFields:
    """Named field values of a data block."""

    values: dict = field(default_factory=dict)

    def to_json(self) -> list:
        """Return the fields as a JSON-ready list of named entries."""
        items = []
        for name, value in self.values.items():
            if isinstance(value, DataRef):
                items.append(
                    {
                        "name": name,
                        "data_ref": {
                            "table": value.table_name,
                            "field": value.field,
                        },
                    }
                )
            elif isinstance(value, datetime):
                items.append({"name": name, "time": value.isoformat()})
            else:
                items.append({"name": name, "value": value})
        return items


@dataclass
class Data:
    """A block of data for one table, possibly with nested blocks."""

    table_name: str
    fields: Optional[DataFields] = None
    joins: list = field(default_factory=list)
    policy: DataBlockPolicy = DataBlockPolicy.EMPTY
    ignore_nesting: bool = False
    data: list = field(default_factory=list)

    def to_json(self) -> dict:
        """Return the block as a JSON-ready dict, leaving out empty parts."""
        obj: dict[str, Any] = {"table": self.table_name}
        if self.fields is not None:
            obj["fields"] = self.fields.to_json()
        if self.joins:
            obj["joins"] = list(self.joins)
        policy = DataBlockPolicy(self.policy)
        if policy is not DataBlockPolicy.EMPTY:
            obj["policy"] = policy.value
        if self.ignore_nesting:
            obj["ignore_nesting"] = True
        if self.data:
            obj["data"] = [block.to_json() for block in self.data]
        return obj

    def is_valid_resource(self) -> bool:
        """True if every field other than ``metadata`` has a value."""
        if self.fields is None:
            return True
        return all(
            value is not None
            for name, value in self.fields.values.items()
            if name != "metadata"
        )


def data_fields_from_json(items: Any) -> DataFields:
    """Build DataFields from their JSON list form; null values are dropped."""
    if not isinstance(items, list):
        raise ValueError("failed to unmarshal DataFields: expected a list")
    values: dict = {}
    for item in items:
        if not isinstance(item, dict) or "name" not in item:
            raise ValueError("failed to unmarshal DataFields: invalid entry")
        name = item["name"]
        if item.get("value") is not None:
            values[name] = item["value"]
        elif item.get("data_ref") is not None:
            ref = item["data_ref"]
            values[name] = DataRef(
                table_name=ref.get("table", ""), field=ref.get("field", "")
            )
        elif item.get("time") is not None:
            values[name] = _parse_time(item["time"])
    return DataFields(values=values)


def data_from_json(obj: Any) -> Data:
    """Build a Data block from its JSON dict form."""
    if not isinstance(obj, dict):
        raise ValueError("failed to unmarshal data block: expected an object")
    fields_obj = obj.get("fields")
    return Data(
        table_name=obj.get("table", ""),
        fields=None if fields_obj is None else data_fields_from_json(fields_obj),
        joins=list(obj.get("joins") or []),
        policy=DataBlockPolicy(obj.get("policy") or ""),
        ignore_nesting=bool(obj.get("ignore_nesting", False)),
        data=[data_from_json(child) for child in obj.get("data") or []],
    )


def dump_data_blocks(blocks: list) -> str:
    """Serialise a list of data blocks to JSON text."""
    return json.dumps([block.to_json() for block in blocks])


def load_data_blocks(text: str | bytes) -> list:
    """Parse JSON text into a list of data blocks."""
    parsed = json.loads(text)
    if parsed is None:
        return []
    if not isinstance(parsed, list):
        raise ValueError("data blocks must be a JSON list")
    return [data_from_json(obj) for obj in parsed]