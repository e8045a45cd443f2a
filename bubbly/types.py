"""Resource run outputs and criteria results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from bubbly.data import Data, DataBlockPolicy, DataFields

RESOURCE_TABLE_NAME = "_resource"
SCHEMA_TABLE_NAME = "_schema"
EVENT_TABLE_NAME = "_event"


class ResourceStatus(str, Enum):
    """Outcome of running a resource."""

    SUCCESS = "success"
    FAILURE = "failure"

    def __str__(self) -> str:
        return self.value


@dataclass(kw_only=True)
class ResourceOutput:
    """The result of running a resource."""

    status: ResourceStatus
    id: str = ""
    error: Optional[BaseException] = None
    value: Any = None

    def output(self) -> dict:
        """Return the output as an object usable when evaluating expressions."""
        return {
            "id": self.id,
            "status": ResourceStatus(self.status).value,
            "value": self.value,
        }

    def event_data(self) -> list:
        """Return the data blocks that record this run as an event."""
        if not self.id:
            raise ValueError(
                "unsafe to produce datablocks from ResourceOutput due to missing ID"
            )
        error_msg = "" if self.error is None else str(self.error)
        return [
            Data(
                table_name=RESOURCE_TABLE_NAME,
                fields=DataFields(values={"id": self.id}),
                policy=DataBlockPolicy.REFERENCE,
            ),
            Data(
                table_name=EVENT_TABLE_NAME,
                fields=DataFields(
                    values={
                        "status": ResourceStatus(self.status).value,
                        "time": datetime.now(timezone.utc).isoformat(),
                        "error": error_msg,
                    }
                ),
                joins=[RESOURCE_TABLE_NAME],
            ),
        ]


@dataclass
class CriteriaResult:
    """Whether a criteria passed, and why not if it did not."""

    result: bool
    reason: str = ""

    def value(self) -> dict:
        """Return the result as an object value."""
        return {"result": bool(self.result), "reason": str(self.reason)}