from __future__ import annotations

import json

from ledger.stub import LedgerStub

from .errors import NotFoundError
from .models import Store


def dump_store_json(store: Store) -> bytes:
    # Compact JSON, stable key order
    return json.dumps(store.model_dump(), separators=(",", ":"), sort_keys=True).encode("utf-8")


def load_store_json(data: bytes) -> Store:
    raw = json.loads(bytes(data).decode("utf-8"))
    return Store.model_validate(raw)


class StateAccessor:
    """
    Thin adapter over a transaction's ledger stub.

    - `exists` treats missing and empty bytes alike and never raises for absence.
    - `get` raises `NotFoundError` when nothing is stored.
    - `delete` does not re-check existence; callers go through the existence guard.
    - `put` overwrites unconditionally; the write becomes durable at commit.
    """

    def __init__(self, stub: LedgerStub) -> None:
        self._stub = stub

    def exists(self, key: str) -> bool:
        data = self._stub.get_state(key)
        return bool(data)

    def get(self, key: str) -> Store:
        data = self._stub.get_state(key)
        if not data:
            raise NotFoundError(f"The store {key} does not exist", store_id=key)
        return load_store_json(data)

    def put(self, key: str, store: Store) -> None:
        self._stub.put_state(key, dump_store_json(store))

    def delete(self, key: str) -> None:
        self._stub.delete_state(key)


__all__ = ["StateAccessor", "dump_store_json", "load_store_json"]
