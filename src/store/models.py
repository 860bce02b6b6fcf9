from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Store(BaseModel):
    """
    A single-field record persisted under an external `store_id` key.

    Fields
    - value: the payload; must be a non-empty string.

    Notes
    - The key is not part of the record. The ledger maps `store_id` to the
      compact JSON encoding of this model.
    - Unknown fields are rejected so the stored shape never drifts.
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    value: str = Field(..., min_length=1, description="Record payload")


class HistoryEvent(BaseModel):
    """One past modification of a key, without its payload."""

    model_config = ConfigDict(frozen=True)

    tx_id: str
    timestamp: datetime
    is_delete: bool


class HistoryEntryDetail(HistoryEvent):
    """A history event with the record as of that version (None for deletes)."""

    value: Optional[Store] = None
