from __future__ import annotations


class LedgerError(RuntimeError):
    """Base error for ledger backends."""


class ConflictError(LedgerError):
    """A concurrent transaction changed state this transaction depended on."""


class TransactionClosedError(LedgerError):
    """The transaction was already committed or rolled back."""


class LedgerCorruptError(LedgerError):
    """Persisted ledger content could not be decrypted or parsed."""


__all__ = [
    "LedgerError",
    "ConflictError",
    "TransactionClosedError",
    "LedgerCorruptError",
]
