"""Response envelope types for the FileMaker Data API."""

from dataclasses import dataclass, field
from typing import Any, TypeVar

from .mapping import to_record

T = TypeVar("T")


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass
class Message:
    """A status message from the Data API."""

    code: str
    message: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(code=str(data.get("code", "")), message=data.get("message", ""))


@dataclass
class DataInfo:
    """Counts and names reported alongside find results."""

    database: str = ""
    layout: str = ""
    table: str = ""
    total_record_count: int = 0
    found_count: int = 0
    returned_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataInfo":
        return cls(
            database=data.get("database", ""),
            layout=data.get("layout", ""),
            table=data.get("table", ""),
            total_record_count=_as_int(data.get("totalRecordCount")),
            found_count=_as_int(data.get("foundCount")),
            returned_count=_as_int(data.get("returnedCount")),
        )


@dataclass
class Record:
    """One record of a find response."""

    field_data: dict[str, Any]
    portal_data: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    record_id: int = 0
    mod_id: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Create Record from a ``data`` entry."""
        return cls(
            field_data=data.get("fieldData", {}),
            portal_data=data.get("portalData", {}),
            record_id=_as_int(data.get("recordId")),
            mod_id=_as_int(data.get("modId")),
        )

    def to_record(self, record_type: type[T]) -> T:
        """Hydrate ``field_data`` into ``record_type``."""
        return to_record(self.field_data, record_type)

    def portal_records(self, name: str, record_type: type[T]) -> list[T]:
        """Hydrate the rows of portal ``name`` into ``record_type``.

        Portal row keys are qualified as ``Table::Field``; the qualifier is
        dropped before matching.
        """
        rows = []
        for row in self.portal_data.get(name, []):
            unqualified = {key.rsplit("::", 1)[-1]: value for key, value in row.items()}
            rows.append(to_record(unqualified, record_type))
        return rows


@dataclass
class FindResponse:
    """Result of a find or ranged read."""

    records: list[Record] = field(default_factory=list)
    data_info: DataInfo | None = None
    messages: list[Message] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "FindResponse":
        """Create FindResponse from the Data API envelope."""
        body = response.get("response")
        if not isinstance(body, dict):
            body = {}
        data_info = body.get("dataInfo")
        return cls(
            records=[Record.from_dict(r) for r in body.get("data", [])],
            data_info=DataInfo.from_dict(data_info) if data_info else None,
            messages=[Message.from_dict(m) for m in response.get("messages", [])],
        )
