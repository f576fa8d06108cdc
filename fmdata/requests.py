"""Find request model."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

from .exceptions import SerializationError
from .mapping import layout_for, to_map, to_record

T = TypeVar("T")

DEFAULT_LIMIT = 100
# The Data API counts records from 1.
DEFAULT_OFFSET = 1

OMIT_KEY = "omit"
OMIT_VALUE = "true"


class SortOrder(str, Enum):
    """Sort direction as spelled on the wire."""

    ASCEND = "ascend"
    DESCEND = "descend"


@dataclass(frozen=True)
class SortField:
    """One entry of a find request's sort specification."""

    field_name: str
    sort_order: SortOrder = SortOrder.ASCEND

    def to_wire(self) -> dict[str, str]:
        return {
            "fieldName": self.field_name,
            "sortOrder": SortOrder(self.sort_order).value,
        }


@dataclass(frozen=True)
class QueryInstance(Generic[T]):
    """A single find or omit clause.

    ``criteria`` is either a dataclass record or a plain mapping of field
    name to value.
    """

    criteria: T
    is_omit: bool = False

    def to_field_map(self) -> dict[str, Any]:
        """Return the clause fields, with ``"omit": "true"`` on omit clauses.

        Mappings are used as given. Records go through ``to_map`` with unset
        and zero-valued fields dropped.
        """
        if isinstance(self.criteria, Mapping):
            fields = dict(self.criteria)
        else:
            fields = to_map(self.criteria, include_nulls=False)
        if self.is_omit:
            fields[OMIT_KEY] = OMIT_VALUE
        return fields


@dataclass
class FindRequest(Generic[T]):
    """Parameters of a find against one layout.

    Clauses are evaluated by the server in the order they were added. An
    empty query matches every record on the layout.

    Example:
        >>> request = FindRequest(layout="Users", limit=10)
        >>> request.add_query({"Name": "fuzzzerd"}).add_query({"Name": "Admin"}, omit=True)
    """

    layout: str | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET
    sort: list[SortField] | None = None
    load_container_data: bool = False
    query: list[QueryInstance[T]] = field(default_factory=list)

    @classmethod
    def for_record(cls, record_type: type, **kwargs: Any) -> "FindRequest":
        """Create a request targeting the layout of ``record_type``."""
        return cls(layout=layout_for(record_type), **kwargs)

    def add_query(self, criteria: T, omit: bool = False) -> "FindRequest[T]":
        """Append a find (or omit) clause and return the request."""
        self.query.append(QueryInstance(criteria, omit))
        return self

    def add_sort(
        self, field_name: str, order: SortOrder | str = SortOrder.ASCEND
    ) -> "FindRequest[T]":
        """Append a sort entry and return the request."""
        if self.sort is None:
            self.sort = []
        self.sort.append(SortField(field_name, SortOrder(order)))
        return self

    @classmethod
    def from_json(cls, text: str, record_type: type | None = None) -> "FindRequest":
        """Parse a wire find document.

        Clauses carrying ``"omit": "true"`` become omit clauses. With
        ``record_type`` the clause maps are hydrated into records, otherwise
        they stay plain dicts. The layout is not part of the body and is
        left unset.

        Raises:
            SerializationError: If ``text`` is not a JSON object.
        """
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Invalid find request JSON: {e}") from e
        if not isinstance(document, dict):
            raise SerializationError("Find request JSON must be an object")

        request = cls(
            limit=document.get("limit", DEFAULT_LIMIT),
            offset=document.get("offset", DEFAULT_OFFSET),
        )
        query = document.get("query", [])
        if not isinstance(query, list):
            raise SerializationError("Find request 'query' must be an array")
        for clause in query:
            if not isinstance(clause, dict):
                raise SerializationError(f"Find clause must be an object, got {clause!r}")
            clause = dict(clause)
            omit = str(clause.pop(OMIT_KEY, "")).lower() == OMIT_VALUE
            criteria = to_record(clause, record_type) if record_type else clause
            request.add_query(criteria, omit)

        sort = document.get("sort") or []
        if not isinstance(sort, list):
            raise SerializationError("Find request 'sort' must be an array")
        for entry in sort:
            if not isinstance(entry, dict) or not isinstance(entry.get("fieldName"), str):
                raise SerializationError(f"Sort entry needs a fieldName, got {entry!r}")
            try:
                order = SortOrder(entry.get("sortOrder", SortOrder.ASCEND))
            except ValueError as e:
                raise SerializationError(f"Unknown sortOrder in {entry!r}") from e
            request.add_sort(entry["fieldName"], order)
        return request
