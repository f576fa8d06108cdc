"""Wire serialization of find requests.

The document shape is::

    {"query": [{"Name": "Buzz"}, {"Name": "Admin", "omit": "true"}],
     "limit": 100, "offset": 1,
     "sort": [{"fieldName": "Name", "sortOrder": "ascend"}]}

``query`` is always present. Clause values go out as text. ``limit`` and
``offset`` stay numbers and are dropped only when zero. The layout and the
container data flag never appear in the body.
"""

import json
import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from .exceptions import SerializationError
from .mapping import is_default
from .requests import FindRequest, QueryInstance

DATE_FORMAT = "%m/%d/%Y"
DATETIME_FORMAT = "%m/%d/%Y %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"


def render_criteria_value(name: str, value: Any) -> str:
    """Render one clause value as the text the Data API expects.

    Raises:
        SerializationError: For values with no text form in a find clause.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float, Decimal)):
        if isinstance(value, float) and not math.isfinite(value):
            raise SerializationError(f"Field {name!r}: non-finite number {value!r}")
        if isinstance(value, Decimal) and not value.is_finite():
            raise SerializationError(f"Field {name!r}: non-finite number {value!r}")
        return str(value)
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, time):
        return value.strftime(TIME_FORMAT)
    if isinstance(value, UUID):
        return str(value)
    raise SerializationError(
        f"Field {name!r}: cannot send {type(value).__name__} as find criteria"
    )


def clause_map(instance: QueryInstance) -> dict[str, str]:
    """Flatten a clause into its wire field map."""
    result: dict[str, str] = {}
    for name, value in instance.to_field_map().items():
        if value is None:
            continue
        result[str(name)] = render_criteria_value(str(name), value)
    return result


def build_document(request: FindRequest) -> dict[str, Any]:
    """Build the ordered find document for ``request``."""
    for member in ("limit", "offset"):
        value = getattr(request, member)
        if isinstance(value, bool) or not isinstance(value, int):
            raise SerializationError(
                f"{member} must be an integer, got {type(value).__name__}"
            )

    document: dict[str, Any] = {"query": [clause_map(q) for q in request.query]}
    if not is_default(request.limit):
        document["limit"] = request.limit
    if not is_default(request.offset):
        document["offset"] = request.offset
    if request.sort:
        document["sort"] = [s.to_wire() for s in request.sort]
    return document


def serialize_find_request(request: FindRequest) -> str:
    """Serialize ``request`` to a compact JSON find document.

    Raises:
        SerializationError: If any value cannot be represented.
    """
    document = build_document(request)
    try:
        return json.dumps(document, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize find request: {e}") from e
