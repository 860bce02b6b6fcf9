from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class VersionRecord(BaseModel):
    """
    A single committed version of a key in the persisted ledger snapshot.

    Fields
    - tx_id: id of the transaction that produced the version.
    - timestamp: transaction time (timezone-aware, UTC).
    - is_delete: True when the version is a deletion marker.
    - value_b64: standard base64 of the written bytes ("" for deletes).
    """

    tx_id: str
    timestamp: datetime
    is_delete: bool = False
    value_b64: str = ""


class LedgerSnapshot(BaseModel):
    """
    Full version store of a ledger, serialized to JSON and encrypted at rest.

    `keys` maps each key to its version chain, newest first.
    """

    keys: Dict[str, List[VersionRecord]] = Field(
        default_factory=dict,
        description="Map of key to version chain (newest first)",
    )

    @classmethod
    def empty(cls) -> "LedgerSnapshot":
        return cls()
