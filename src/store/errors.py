from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    SCHEMA_INVALID = "schema_invalid"
    TX_NOT_FOUND = "tx_not_found"


class StoreError(RuntimeError):
    """Base error for store operations; `kind` identifies the failure."""

    kind: ErrorKind

    def __init__(self, message: str, *, store_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.store_id = store_id

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value, "message": str(self)}
        if self.store_id is not None:
            out["store_id"] = self.store_id
        return out


class NotFoundError(StoreError):
    """The operation required an existing record but none is present."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(StoreError):
    """Create was attempted on a key that already holds a record."""

    kind = ErrorKind.ALREADY_EXISTS


class SchemaInvalidError(StoreError):
    """A candidate record failed validation; carries the field and reason."""

    kind = ErrorKind.SCHEMA_INVALID

    def __init__(self, field: str, reason: str, *, store_id: Optional[str] = None) -> None:
        super().__init__(f"Invalid field '{field}': {reason}", store_id=store_id)
        self.field = field
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["field"] = self.field
        out["reason"] = self.reason
        return out


class TxNotFoundError(StoreError):
    """History lookup found no event with the requested transaction id."""

    kind = ErrorKind.TX_NOT_FOUND

    def __init__(self, store_id: str, tx_id: str) -> None:
        super().__init__(f"The store {store_id} has no history for tx {tx_id}", store_id=store_id)
        self.tx_id = tx_id

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["tx_id"] = self.tx_id
        return out


__all__ = [
    "ErrorKind",
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "SchemaInvalidError",
    "TxNotFoundError",
]
