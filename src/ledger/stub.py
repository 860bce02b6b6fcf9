from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, List, Protocol, runtime_checkable


@dataclass(frozen=True)
class KeyModification:
    """One committed write or delete of a key, as recorded by the ledger.

    `value` is the raw bytes written by the transaction; it is empty for deletes.
    """

    tx_id: str
    timestamp: datetime
    is_delete: bool
    value: bytes = b""


class HistoryIterator:
    """
    Forward-only cursor over the modifications of a single key.

    - Yields `KeyModification` items in ledger order (newest first).
    - Must be closed by the consumer; iterating a closed cursor stops immediately.
    """

    def __init__(self, items: Iterable[KeyModification]) -> None:
        self._items: List[KeyModification] = list(items)
        self._pos = 0
        self.closed = False

    def __iter__(self) -> Iterator[KeyModification]:
        return self

    def __next__(self) -> KeyModification:
        if self.closed or self._pos >= len(self._items):
            raise StopIteration
        item = self._items[self._pos]
        self._pos += 1
        return item

    def close(self) -> None:
        self.closed = True
        self._items = []


@runtime_checkable
class LedgerStub(Protocol):
    """Per-transaction view of the ledger handed to the store logic."""

    tx_id: str
    timestamp: datetime

    def get_state(self, key: str) -> bytes: ...
    def put_state(self, key: str, value: bytes) -> None: ...
    def delete_state(self, key: str) -> None: ...
    def get_history_for_key(self, key: str) -> HistoryIterator: ...


__all__ = ["KeyModification", "HistoryIterator", "LedgerStub"]
