"""Conversion between dataclass records and flat field maps.

Records are plain dataclasses. Wire naming and exclusions are declared per
field with :func:`wire_field`::

    @dataclass
    class User:
        __layout__ = "Users"

        id: int = wire_field(default=0, name="Id")
        name: str | None = None
        record_id: int = wire_field(default=0, mapped=False)

The per-type metadata is computed once and cached for the life of the
process.
"""

import dataclasses
import functools
import inspect
import types
import typing
from dataclasses import MISSING, dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping, TypeVar
from uuid import UUID

from .exceptions import ConstructionError, SerializationError
from .logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

WIRE_NAME = "fmdata.wire_name"
MAPPED = "fmdata.mapped"
CONTAINER_DATA_FOR = "fmdata.container_data_for"

_ZERO_VALUES: dict[type, Any] = {
    str: "",
    bool: False,
    int: 0,
    float: 0.0,
    Decimal: Decimal(0),
    datetime: datetime.min,
    date: date.min,
    time: time(),
    UUID: UUID(int=0),
}

_DATETIME_FORMATS = ("%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M", "%m/%d/%Y")
_DATE_FORMATS = ("%m/%d/%Y",)
_TIME_FORMATS = ("%H:%M:%S", "%H:%M")

_TRUE_STRINGS = frozenset({"1", "true", "yes"})
_FALSE_STRINGS = frozenset({"0", "false", "no"})

# Returned by the coercer when the incoming value should leave the default.
_KEEP_DEFAULT = object()


def wire_field(
    default: Any = MISSING,
    *,
    default_factory: Any = MISSING,
    name: str | None = None,
    mapped: bool = True,
    container_data_for: str | None = None,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with wire metadata.

    Args:
        default: Field default, as for ``dataclasses.field``.
        default_factory: Field default factory, as for ``dataclasses.field``.
        name: Wire name used instead of the attribute name.
        mapped: ``False`` keeps the field out of field maps entirely.
        container_data_for: Wire name of a container field whose downloaded
            bytes are stored in this field. Implies ``mapped=False``.
        **kwargs: Passed through to ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[WIRE_NAME] = name
    metadata[MAPPED] = mapped and container_data_for is None
    metadata[CONTAINER_DATA_FOR] = container_data_for
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


@dataclass(frozen=True)
class FieldSpec:
    """Wire metadata for one declared field of a record type."""

    attr: str
    wire_name: str
    mapped: bool
    annotation: Any
    container_data_for: str | None = None


def is_default(value: Any) -> bool:
    """Return True for ``None`` and for the zero value of a value type.

    An empty string is the zero value of ``str``. Bytes and containers only
    count as default when ``None``.
    """
    if value is None:
        return True
    zero = _ZERO_VALUES.get(type(value), _KEEP_DEFAULT)
    if zero is _KEEP_DEFAULT:
        return False
    return value == zero


def is_record(obj: Any) -> bool:
    """Return True if ``obj`` is a dataclass instance."""
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


def layout_for(record_or_type: Any) -> str:
    """Return the layout name for a record type or instance.

    Uses the ``__layout__`` class attribute when set, else the class name.
    """
    cls = record_or_type if isinstance(record_or_type, type) else type(record_or_type)
    return getattr(cls, "__layout__", None) or cls.__name__


@functools.lru_cache(maxsize=None)
def field_specs(record_type: type) -> tuple[FieldSpec, ...]:
    """Return the field metadata for fields declared on ``record_type`` itself.

    Fields inherited from base dataclasses are not included. Order follows
    declaration order.
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise TypeError(f"{record_type!r} is not a dataclass type")

    own = inspect.get_annotations(record_type)
    hints = _type_hints(record_type)
    specs = []
    for f in dataclasses.fields(record_type):
        if f.name not in own:
            continue
        specs.append(
            FieldSpec(
                attr=f.name,
                wire_name=f.metadata.get(WIRE_NAME) or f.name,
                mapped=f.metadata.get(MAPPED, True),
                annotation=hints.get(f.name, f.type),
                container_data_for=f.metadata.get(CONTAINER_DATA_FOR),
            )
        )
    return tuple(specs)


@functools.lru_cache(maxsize=None)
def _lookup(record_type: type) -> dict[str, FieldSpec]:
    """Case-folded attribute and wire names to the first matching field."""
    table: dict[str, FieldSpec] = {}
    for spec in field_specs(record_type):
        if spec.container_data_for is not None:
            continue
        table.setdefault(spec.attr.casefold(), spec)
        table.setdefault(spec.wire_name.casefold(), spec)
    return table


def container_fields(record_type: type) -> tuple[FieldSpec, ...]:
    """Fields that receive downloaded container data."""
    return tuple(s for s in field_specs(record_type) if s.container_data_for)


def to_map(record: Any, include_nulls: bool = True) -> dict[str, Any]:
    """Convert a dataclass record to an ordered field map.

    Args:
        record: Dataclass instance.
        include_nulls: When False, fields holding ``None`` or their type's
            zero value are left out.

    Returns:
        Mapping of wire name to value in declaration order.

    Raises:
        SerializationError: If ``record`` is not a dataclass instance.
    """
    if not is_record(record):
        raise SerializationError(
            f"Cannot map {type(record).__name__!r}: not a dataclass record"
        )

    result: dict[str, Any] = {}
    for spec in field_specs(type(record)):
        if not spec.mapped:
            continue
        value = getattr(record, spec.attr)
        if not include_nulls and is_default(value):
            continue
        result[spec.wire_name] = value
    return result


def to_record(data: Mapping[str, Any], record_type: type[T]) -> T:
    """Build a ``record_type`` instance from a field map.

    Keys match a declared field by attribute name or wire name, ignoring case.
    Unknown keys are ignored and unmatched fields keep their defaults. Values
    that cannot be coerced to the field's type are logged and skipped.

    Raises:
        ConstructionError: If ``record_type`` is not a dataclass or cannot be
            built without arguments.
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise ConstructionError(f"{record_type!r} is not a dataclass record type")

    try:
        record = record_type()
    except TypeError as e:
        raise ConstructionError(
            f"Cannot construct {record_type.__name__} without arguments: {e}"
        ) from e

    lookup = _lookup(record_type)
    for key, value in data.items():
        spec = lookup.get(str(key).casefold())
        if spec is None:
            continue
        try:
            coerced = coerce_value(value, spec.annotation)
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning(
                "Skipping %s.%s: cannot convert %r (%s)",
                record_type.__name__,
                spec.attr,
                value,
                e,
            )
            continue
        if coerced is _KEEP_DEFAULT:
            continue
        # object.__setattr__ so frozen records hydrate too
        object.__setattr__(record, spec.attr, coerced)
    return record


def coerce_value(value: Any, annotation: Any) -> Any:
    """Coerce a wire value to the type named by ``annotation``.

    Unknown or non-class annotations pass the value through unchanged.
    """
    target = _unwrap_optional(annotation)
    if value is None or not isinstance(target, type):
        return value

    if target is str:
        return value if isinstance(value, str) else str(value)

    if isinstance(value, str) and not value.strip():
        return _KEEP_DEFAULT

    if target is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError(f"not a boolean: {value!r}")
        return bool(value)
    if target is int:
        if isinstance(value, (str, float, Decimal)):
            number = Decimal(str(value).strip())
            if number != number.to_integral_value():
                raise ValueError(f"not an integer: {value!r}")
            return int(number)
        return int(value)
    if target is float:
        return float(value)
    if target is Decimal:
        return Decimal(str(value).strip())
    if target is datetime:
        return _parse_datetime(value)
    if target is date:
        return _parse_date(value)
    if target is time:
        return _parse_time(value)
    if target is UUID:
        return value if isinstance(value, UUID) else UUID(str(value).strip())
    return value


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    text = str(value).strip()
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return datetime.fromisoformat(text)


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return date.fromisoformat(text)


def _parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return time.fromisoformat(text)


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _type_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        # unresolved forward references: fall back to raw field types
        return {}
