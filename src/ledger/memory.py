from __future__ import annotations

import base64
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Dict, Iterator, List, Optional
from uuid import uuid4

from .errors import ConflictError, TransactionClosedError
from .models import LedgerSnapshot, VersionRecord
from .stub import HistoryIterator, KeyModification


logger = logging.getLogger(__name__)


@dataclass
class _PendingWrite:
    value: bytes
    is_delete: bool = False


class Transaction:
    """
    One unit of work against a `MemoryLedger`; implements the `LedgerStub` protocol.

    - Reads see committed state only; the transaction's own buffered writes are
      not visible until commit.
    - Every `get_state` records the version it observed so `commit` can detect
      conflicting concurrent commits.
    """

    def __init__(self, ledger: "MemoryLedger", tx_id: str, timestamp: datetime) -> None:
        self.tx_id = tx_id
        self.timestamp = timestamp
        self._ledger = ledger
        self.read_set: Dict[str, int] = {}
        self.write_set: Dict[str, _PendingWrite] = {}
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise TransactionClosedError(f"transaction {self.tx_id} is closed")

    def get_state(self, key: str) -> bytes:
        self._check_open()
        value, version = self._ledger._read_committed(key)
        self.read_set.setdefault(key, version)
        return value

    def put_state(self, key: str, value: bytes) -> None:
        self._check_open()
        if not key:
            raise ValueError("key must be non-empty")
        self.write_set[key] = _PendingWrite(value=bytes(value))

    def delete_state(self, key: str) -> None:
        self._check_open()
        self.write_set[key] = _PendingWrite(value=b"", is_delete=True)

    def get_history_for_key(self, key: str) -> HistoryIterator:
        self._check_open()
        return HistoryIterator(self._ledger._history(key))


class MemoryLedger:
    """
    Thread-safe in-memory versioned ledger with optimistic concurrency.

    - Each key holds a version chain, newest first; deletes append a tombstone
      so history survives deletion.
    - `commit` fails with `ConflictError` if any key read by the transaction
      gained a version after it was read.
    """

    def __init__(self, *, clock=None) -> None:
        self._chains: Dict[str, List[KeyModification]] = {}
        self._lock = threading.RLock()
        self._clock = clock or (lambda: datetime.now(UTC))

    # -------- Reads (used by transactions) --------
    def _read_committed(self, key: str) -> tuple[bytes, int]:
        with self._lock:
            chain = self._chains.get(key, [])
            if not chain or chain[0].is_delete:
                return (b"", len(chain))
            return (chain[0].value, len(chain))

    def _history(self, key: str) -> List[KeyModification]:
        with self._lock:
            return list(self._chains.get(key, []))

    # -------- Transactions --------
    def begin(self, tx_id: Optional[str] = None, timestamp: Optional[datetime] = None) -> Transaction:
        return Transaction(self, tx_id or uuid4().hex, timestamp or self._clock())

    def commit(self, txn: Transaction) -> None:
        txn._check_open()
        with self._lock:
            for key, seen in txn.read_set.items():
                if len(self._chains.get(key, [])) != seen:
                    txn.closed = True
                    logger.warning("Read conflict on key %r in tx %s", key, txn.tx_id)
                    raise ConflictError(f"key {key!r} changed since read in tx {txn.tx_id}")
            for key, w in txn.write_set.items():
                mod = KeyModification(
                    tx_id=txn.tx_id,
                    timestamp=txn.timestamp,
                    is_delete=w.is_delete,
                    value=w.value,
                )
                self._chains.setdefault(key, []).insert(0, mod)
            txn.closed = True

    def rollback(self, txn: Transaction) -> None:
        txn.write_set.clear()
        txn.read_set.clear()
        txn.closed = True

    @contextmanager
    def transaction(
        self, tx_id: Optional[str] = None, timestamp: Optional[datetime] = None
    ) -> Iterator[Transaction]:
        """Yield a transaction; commit on normal exit, roll back on exception."""
        txn = self.begin(tx_id, timestamp)
        try:
            yield txn
        except BaseException:
            self.rollback(txn)
            raise
        if not txn.closed:
            self.commit(txn)

    # -------- Persistence helpers --------
    def to_snapshot(self) -> LedgerSnapshot:
        with self._lock:
            keys = {
                k: [
                    VersionRecord(
                        tx_id=m.tx_id,
                        timestamp=m.timestamp,
                        is_delete=m.is_delete,
                        value_b64=base64.b64encode(m.value).decode("ascii"),
                    )
                    for m in chain
                ]
                for k, chain in self._chains.items()
            }
        return LedgerSnapshot(keys=keys)

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot, *, clock=None) -> "MemoryLedger":
        ledger = cls(clock=clock)
        for k, chain in snapshot.keys.items():
            ledger._chains[k] = [
                KeyModification(
                    tx_id=r.tx_id,
                    timestamp=r.timestamp,
                    is_delete=r.is_delete,
                    value=base64.b64decode(r.value_b64),
                )
                for r in chain
            ]
        return ledger


__all__ = ["MemoryLedger", "Transaction"]
