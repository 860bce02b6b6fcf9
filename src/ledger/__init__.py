"""
Ledger collaborators for the record store.

- stub: per-transaction interface consumed by the store logic
- memory: in-process MVCC ledger
- s3_ledger: Fernet-encrypted snapshot in S3 with ETag-guarded commits
"""

from .errors import ConflictError, LedgerCorruptError, LedgerError, TransactionClosedError
from .memory import MemoryLedger, Transaction
from .stub import HistoryIterator, KeyModification, LedgerStub

__all__ = [
    "MemoryLedger",
    "Transaction",
    "HistoryIterator",
    "KeyModification",
    "LedgerStub",
    "LedgerError",
    "ConflictError",
    "LedgerCorruptError",
    "TransactionClosedError",
]
