import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from uuid import UUID

import pytest

from fmdata import ConstructionError, SerializationError
from fmdata.mapping import field_specs, is_default, layout_for, to_map, to_record
from .models import Document, Invoice, NeedsArguments, Photo, Tag, User


def test_untouched_record_maps_to_empty_without_nulls():
    assert to_map(User(), include_nulls=False) == {}
    assert to_map(Tag(), include_nulls=False) == {}


def test_to_map_keeps_declaration_order_and_wire_names():
    mapped = to_map(User(id=3, name="Buzz"))

    assert list(mapped) == ["Id", "Name", "created", "balance", "active"]
    assert mapped["Id"] == 3
    assert mapped["Name"] == "Buzz"


def test_to_map_never_includes_unmapped_fields():
    mapped = to_map(User(record_id=9, mod_id=2), include_nulls=True)

    assert "record_id" not in mapped
    assert "mod_id" not in mapped


def test_container_data_fields_are_not_mapped():
    mapped = to_map(Photo(title="Beach", photo_data=b"raw"))

    assert mapped == {"title": "Beach", "Photo": None}


def test_to_map_drops_zero_values_including_empty_text():
    record = User(id=0, name="", active=False, balance=Decimal("0.00"))

    assert to_map(record, include_nulls=False) == {}
    assert to_map(Tag(label="red"), include_nulls=False) == {"label": "red"}


def test_to_map_only_uses_fields_declared_on_the_type():
    invoice = Invoice(number="INV-1")

    assert to_map(invoice) == {"number": "INV-1"}


@pytest.mark.parametrize("value", [{"Name": "Buzz"}, User, "text", 42])
def test_to_map_rejects_non_records(value):
    with pytest.raises(SerializationError):
        to_map(value)


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        False,
        0,
        0.0,
        Decimal(0),
        datetime.min,
        date.min,
        time(),
        UUID(int=0),
    ],
)
def test_is_default_for_zero_values(value):
    assert is_default(value)


@pytest.mark.parametrize(
    "value",
    [" ", b"", [], True, 1, -0.5, date(2024, 1, 1), timedelta(0), UUID(int=5)],
)
def test_is_default_false_for_set_values(value):
    assert not is_default(value)


def test_to_record_matches_names_ignoring_case():
    user = to_record({"id": "7", "NAME": "Buzz", "Unknown": "ignored"}, User)

    assert user.id == 7
    assert user.name == "Buzz"


def test_to_record_matches_attribute_name_as_well_as_wire_name():
    user = to_record({"record_id": "12"}, User)

    assert user.record_id == 12


def test_to_record_leaves_unmatched_fields_at_default():
    user = to_record({"Name": "Woody"}, User)

    assert user.id == 0
    assert user.created is None
    assert user.active is False


def test_to_record_coerces_wire_text():
    user = to_record(
        {"created": "03/14/2024", "balance": "12.50", "active": "1", "Id": 4.0},
        User,
    )

    assert user.created == date(2024, 3, 14)
    assert user.balance == Decimal("12.50")
    assert user.active is True
    assert user.id == 4


def test_to_record_accepts_iso_dates():
    user = to_record({"created": "2024-03-14"}, User)

    assert user.created == date(2024, 3, 14)


def test_to_record_empty_text_keeps_default():
    user = to_record({"Id": "", "Name": ""}, User)

    assert user.id == 0
    assert user.name == ""


def test_to_record_parses_guids():
    document = to_record({"GUID": "00000000-0000-0000-0000-000000000005"}, Document)

    assert document.guid == UUID(int=5)


def test_untouched_text_field_is_left_out_of_clause_fields():
    assert to_map(Document(), include_nulls=False) == {}
    assert to_map(Document(guid=UUID(int=5)), include_nulls=False) == {"guid": UUID(int=5)}


def test_to_record_logs_and_skips_unconvertible_values(caplog):
    with caplog.at_level(logging.WARNING, logger="fmdata.mapping"):
        user = to_record({"Id": "abc", "Name": "Buzz"}, User)

    assert user.id == 0
    assert user.name == "Buzz"
    assert "Skipping User.id" in caplog.text


def test_to_record_hydrates_frozen_records():
    tag = to_record({"Label": "red", "weight": "0.5"}, Tag)

    assert tag == Tag(label="red", weight=0.5)


def test_to_record_requires_no_argument_construction():
    with pytest.raises(ConstructionError):
        to_record({"value": 1}, NeedsArguments)


def test_to_record_requires_dataclass_type():
    with pytest.raises(ConstructionError):
        to_record({"value": 1}, dict)


def test_round_trip_preserves_mapped_keys():
    source = {"Id": "3", "Name": "Buzz", "balance": "1.5", "extra": "dropped"}

    first = to_record(source, User)
    second = to_record(to_map(first, include_nulls=True), User)

    assert second == first
    assert second.id == 3
    assert second.name == "Buzz"
    assert second.balance == Decimal("1.5")


def test_field_specs_are_cached_per_type():
    assert field_specs(User) is field_specs(User)
    assert [s.attr for s in field_specs(Invoice)] == ["number"]


def test_layout_for_uses_layout_attribute_or_class_name():
    assert layout_for(User) == "Users"
    assert layout_for(User()) == "Users"
    assert layout_for(Invoice) == "Invoice"
