from __future__ import annotations

from contextlib import closing
from typing import Iterator, List

from ledger.stub import KeyModification, LedgerStub

from .accessor import load_store_json
from .errors import TxNotFoundError
from .models import HistoryEntryDetail, HistoryEvent


class HistoryAdapter:
    """
    Wraps the ledger's per-key history cursor.

    Events come out in the order the ledger produces them (newest first); the
    adapter neither caches nor reorders. Every traversal opens a fresh cursor
    and closes it before the traversal ends, including on early exit or error.
    """

    def __init__(self, stub: LedgerStub) -> None:
        self._stub = stub

    def _modifications(self, key: str) -> Iterator[KeyModification]:
        cursor = self._stub.get_history_for_key(key)
        try:
            for mod in cursor:
                yield mod
        finally:
            cursor.close()

    def iter_history(self, key: str) -> Iterator[HistoryEvent]:
        """Lazily yield the events of `key`; close the generator if not drained."""
        with closing(self._modifications(key)) as mods:
            for mod in mods:
                yield HistoryEvent(tx_id=mod.tx_id, timestamp=mod.timestamp, is_delete=mod.is_delete)

    def list_history(self, key: str) -> List[HistoryEvent]:
        with closing(self.iter_history(key)) as events:
            return list(events)

    def has_history(self, key: str) -> bool:
        with closing(self._modifications(key)) as mods:
            return next(mods, None) is not None

    def find_history_entry(self, key: str, tx_id: str) -> HistoryEntryDetail:
        """Return the version of `key` written by `tx_id`.

        Linear scan from the most recent event; cost grows with the number of
        versions. Raises `TxNotFoundError` if no event matches.
        """
        with closing(self._modifications(key)) as mods:
            for mod in mods:
                if mod.tx_id != tx_id:
                    continue
                value = None if mod.is_delete or not mod.value else load_store_json(mod.value)
                return HistoryEntryDetail(
                    tx_id=mod.tx_id,
                    timestamp=mod.timestamp,
                    is_delete=mod.is_delete,
                    value=value,
                )
        raise TxNotFoundError(key, tx_id)


__all__ = ["HistoryAdapter"]
