from __future__ import annotations

from typing import Any, Optional

import pytest

from ledger.memory import MemoryLedger
from store.context import TxContext
from store.errors import (
    AlreadyExistsError,
    ErrorKind,
    NotFoundError,
    SchemaInvalidError,
    TxNotFoundError,
)
from store.manager import StoreManager
from store.models import Store


@pytest.fixture
def ledger() -> MemoryLedger:
    return MemoryLedger()


def _call(ledger: MemoryLedger, op: str, *args: Any, tx_id: Optional[str] = None) -> Any:
    with ledger.transaction(tx_id) as txn:
        return getattr(StoreManager(), op)(TxContext(txn), *args)


def test_unknown_store_is_absent(ledger):
    assert _call(ledger, "store_exists", "s1") is False
    with pytest.raises(NotFoundError) as ei:
        _call(ledger, "read_store", "s1")
    assert ei.value.kind is ErrorKind.NOT_FOUND


def test_create_then_read(ledger):
    created = _call(ledger, "create_store", "s1", "hello")
    assert created == Store(value="hello")
    assert _call(ledger, "store_exists", "s1") is True
    assert _call(ledger, "read_store", "s1").value == "hello"


def test_create_twice_fails_and_keeps_record(ledger):
    _call(ledger, "create_store", "s1", "first")
    with pytest.raises(AlreadyExistsError):
        _call(ledger, "create_store", "s1", "second")
    assert _call(ledger, "read_store", "s1").value == "first"


def test_create_empty_value_fails_without_writing(ledger):
    with pytest.raises(SchemaInvalidError) as ei:
        _call(ledger, "create_store", "s1", "")
    assert ei.value.field == "value"
    assert _call(ledger, "store_exists", "s1") is False
    with pytest.raises(NotFoundError):
        _call(ledger, "get_history_for_key", "s1")


def test_update_replaces_value(ledger):
    _call(ledger, "create_store", "s1", "v1")
    updated = _call(ledger, "update_store", "s1", "v2")
    assert updated.value == "v2"
    assert _call(ledger, "read_store", "s1").value == "v2"


def test_update_missing_fails(ledger):
    with pytest.raises(NotFoundError):
        _call(ledger, "update_store", "nope", "v")


def test_update_with_empty_value_keeps_previous(ledger):
    _call(ledger, "create_store", "s1", "v1")
    with pytest.raises(SchemaInvalidError):
        _call(ledger, "update_store", "s1", "")
    assert _call(ledger, "read_store", "s1").value == "v1"


def test_delete_returns_prior_and_keeps_history(ledger):
    _call(ledger, "create_store", "s1", "v1")
    prior = _call(ledger, "delete_store", "s1")
    assert prior.value == "v1"
    assert _call(ledger, "store_exists", "s1") is False
    with pytest.raises(NotFoundError):
        _call(ledger, "read_store", "s1")

    events = _call(ledger, "get_history_for_key", "s1")
    assert any(e.is_delete for e in events)


def test_delete_missing_fails(ledger):
    with pytest.raises(NotFoundError):
        _call(ledger, "delete_store", "nope")


def test_history_after_create_update_delete(ledger):
    _call(ledger, "create_store", "s1", "v1", tx_id="tx-create")
    _call(ledger, "update_store", "s1", "v2", tx_id="tx-update")
    _call(ledger, "delete_store", "s1", tx_id="tx-delete")

    events = _call(ledger, "get_history_for_key", "s1")
    # Ledger order is newest first
    assert [e.tx_id for e in events] == ["tx-delete", "tx-update", "tx-create"]
    assert [e.is_delete for e in events] == [True, False, False]


def test_history_entry_for_update_tx(ledger):
    _call(ledger, "create_store", "s1", "v1", tx_id="tx-create")
    _call(ledger, "update_store", "s1", "v2", tx_id="tx-update")
    _call(ledger, "update_store", "s1", "v3", tx_id="tx-update-2")

    entry = _call(ledger, "get_history_transaction_for_key", "s1", "tx-update")
    assert entry.tx_id == "tx-update"
    assert entry.is_delete is False
    assert entry.value == Store(value="v2")


def test_history_entry_unknown_tx(ledger):
    _call(ledger, "create_store", "s1", "v1")
    with pytest.raises(TxNotFoundError) as ei:
        _call(ledger, "get_history_transaction_for_key", "s1", "missing")
    assert ei.value.kind is ErrorKind.TX_NOT_FOUND


def test_history_of_never_created_key(ledger):
    with pytest.raises(NotFoundError):
        _call(ledger, "get_history_transaction_for_key", "ghost", "tx")


def test_repeated_reads_are_identical(ledger):
    _call(ledger, "create_store", "s1", "v1")
    _call(ledger, "update_store", "s1", "v2")

    assert _call(ledger, "read_store", "s1") == _call(ledger, "read_store", "s1")
    assert _call(ledger, "get_history_for_key", "s1") == _call(ledger, "get_history_for_key", "s1")


def test_recreate_after_delete(ledger):
    _call(ledger, "create_store", "s1", "v1", tx_id="a")
    _call(ledger, "delete_store", "s1", tx_id="b")
    _call(ledger, "create_store", "s1", "v9", tx_id="c")

    assert _call(ledger, "read_store", "s1").value == "v9"
    assert [e.tx_id for e in _call(ledger, "get_history_for_key", "s1")] == ["c", "b", "a"]


@pytest.mark.parametrize(
    "op, args",
    [
        ("store_exists", ("",)),
        ("create_store", ("", "v")),
        ("read_store", ("",)),
        ("update_store", ("", "v")),
        ("delete_store", ("",)),
        ("get_history_for_key", ("",)),
        ("get_history_transaction_for_key", ("", "tx")),
    ],
)
def test_empty_store_id_is_rejected(ledger, op, args):
    with pytest.raises(SchemaInvalidError) as ei:
        _call(ledger, op, *args)
    assert ei.value.field == "store_id"
    assert ei.value.kind is ErrorKind.SCHEMA_INVALID
