from __future__ import annotations

import pytest

from store.errors import ErrorKind, SchemaInvalidError
from store.models import Store
from store.schema import validate_store


def test_valid_value_returns_store():
    store = validate_store({"value": "hello"})
    assert store == Store(value="hello")


def test_single_character_is_enough():
    assert validate_store({"value": "x"}).value == "x"


@pytest.mark.parametrize(
    "candidate, field",
    [
        ({}, "value"),
        ({"value": ""}, "value"),
        ({"value": 42}, "value"),
        ({"value": None}, "value"),
        ({"value": "ok", "owner": "alice"}, "owner"),
    ],
)
def test_invalid_shapes_name_the_field(candidate, field):
    with pytest.raises(SchemaInvalidError) as ei:
        validate_store(candidate, store_id="s1")
    err = ei.value
    assert err.kind is ErrorKind.SCHEMA_INVALID
    assert err.field == field
    assert err.reason
    assert err.store_id == "s1"


def test_non_mapping_candidate_is_rejected():
    with pytest.raises(SchemaInvalidError) as ei:
        validate_store(["value", "x"])
    assert ei.value.field == "record"


def test_existing_store_is_revalidated():
    assert validate_store(Store(value="again")).value == "again"


def test_error_dict_carries_field_and_reason():
    with pytest.raises(SchemaInvalidError) as ei:
        validate_store({"value": ""})
    d = ei.value.to_dict()
    assert d["kind"] == "schema_invalid"
    assert d["field"] == "value"
    assert "reason" in d
