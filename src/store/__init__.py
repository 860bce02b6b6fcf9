"""
Versioned single-field record store on top of a ledger transaction.

Modules:
- models: Store, HistoryEvent, HistoryEntryDetail
- schema: validation before persistence
- accessor, guard, history: ledger adapters and existence checks
- manager: the record operations
"""

from .context import TxContext
from .errors import (
    AlreadyExistsError,
    ErrorKind,
    NotFoundError,
    SchemaInvalidError,
    StoreError,
    TxNotFoundError,
)
from .manager import StoreManager
from .models import HistoryEntryDetail, HistoryEvent, Store

__all__ = [
    "TxContext",
    "StoreManager",
    "Store",
    "HistoryEvent",
    "HistoryEntryDetail",
    "ErrorKind",
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "SchemaInvalidError",
    "TxNotFoundError",
]
