import dataclasses

import pytest

from fmdata import FindRequest, QueryInstance, SerializationError, SortField, SortOrder
from .models import User


def test_find_request_defaults():
    request = FindRequest()

    assert request.query == []
    assert request.limit == 100
    assert request.offset == 1
    assert request.sort is None
    assert request.load_container_data is False
    assert request.layout is None


def test_add_query_preserves_order_and_omit_flag():
    request = (
        FindRequest(layout="layout")
        .add_query({"Name": "fuzzzerd"})
        .add_query({"Name": "Admin"}, omit=True)
    )

    assert [q.criteria for q in request.query] == [{"Name": "fuzzzerd"}, {"Name": "Admin"}]
    assert [q.is_omit for q in request.query] == [False, True]


def test_add_query_does_not_deduplicate():
    request = FindRequest().add_query({"Name": "a"}).add_query({"Name": "a"})

    assert len(request.query) == 2


def test_record_clause_uses_set_fields_only():
    clause = QueryInstance(User(id=1))

    assert clause.to_field_map() == {"Id": 1}


def test_omit_clause_adds_text_flag():
    clause = QueryInstance(User(name="Admin"), is_omit=True)

    assert clause.to_field_map() == {"Name": "Admin", "omit": "true"}


def test_mapping_clause_is_used_directly():
    criteria = {"Name": "Buzz", "Nick": None}

    assert QueryInstance(criteria).to_field_map() == {"Name": "Buzz", "Nick": None}
    assert QueryInstance(criteria, True).to_field_map()["omit"] == "true"
    assert "omit" not in criteria


def test_query_instance_is_immutable():
    clause = QueryInstance({"Name": "Buzz"})

    with pytest.raises(dataclasses.FrozenInstanceError):
        clause.is_omit = True


def test_for_record_targets_record_layout():
    request = FindRequest.for_record(User, limit=5)

    assert request.layout == "Users"
    assert request.limit == 5


def test_add_sort_appends_entries():
    request = FindRequest().add_sort("Name").add_sort("Id", "descend")

    assert request.sort == [
        SortField("Name", SortOrder.ASCEND),
        SortField("Id", SortOrder.DESCEND),
    ]
    assert request.sort[1].to_wire() == {"fieldName": "Id", "sortOrder": "descend"}


def test_from_json_reads_clauses_and_paging():
    request = FindRequest.from_json(
        '{"query":[{"Name":"Buzz"},{"Name":"Admin","omit":"true"}],'
        '"limit":5,"offset":2,"sort":[{"fieldName":"Name","sortOrder":"descend"}]}'
    )

    assert [q.criteria for q in request.query] == [{"Name": "Buzz"}, {"Name": "Admin"}]
    assert [q.is_omit for q in request.query] == [False, True]
    assert request.limit == 5
    assert request.offset == 2
    assert request.sort == [SortField("Name", SortOrder.DESCEND)]
    assert request.layout is None


def test_from_json_hydrates_records():
    request = FindRequest.from_json('{"query":[{"Id":"1"}]}', User)

    assert request.query[0].criteria == User(id=1)
    assert request.limit == 100
    assert request.offset == 1


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2]",
        '{"query":["x"]}',
        '{"query":{"Name":"Buzz"}}',
        '{"query":[],"sort":[{"sortOrder":"ascend"}]}',
        '{"query":[],"sort":[{"fieldName":"Name","sortOrder":"up"}]}',
        '{"query":[],"sort":"Name"}',
    ],
)
def test_from_json_rejects_bad_documents(text):
    with pytest.raises(SerializationError):
        FindRequest.from_json(text)
