from __future__ import annotations

import logging
from typing import List

from .context import TxContext
from .errors import SchemaInvalidError
from .models import HistoryEntryDetail, HistoryEvent, Store
from .schema import validate_store


logger = logging.getLogger(__name__)


def _check_store_id(store_id: str) -> None:
    if not isinstance(store_id, str) or not store_id:
        raise SchemaInvalidError("store_id", "must be a non-empty string")


class StoreManager:
    """
    Record lifecycle operations over a ledger transaction.

    Every operation is a single step inside the caller's transaction:
    - mutations: existence guard, then schema validation, then the write;
    - reads: existence guard, then state or history.

    Failures raise a `StoreError` subclass before anything is written, so an
    aborted transaction leaves no partial state.
    """

    def store_exists(self, ctx: TxContext, store_id: str) -> bool:
        _check_store_id(store_id)
        return ctx.accessor.exists(store_id)

    def create_store(self, ctx: TxContext, store_id: str, value: str) -> Store:
        _check_store_id(store_id)
        ctx.guard.require_absent(store_id)
        store = validate_store({"value": value}, store_id=store_id)
        ctx.accessor.put(store_id, store)
        logger.info("Created store %s in tx %s", store_id, ctx.tx_id)
        return store

    def read_store(self, ctx: TxContext, store_id: str) -> Store:
        _check_store_id(store_id)
        return ctx.guard.require_exists(store_id)

    def update_store(self, ctx: TxContext, store_id: str, new_value: str) -> Store:
        _check_store_id(store_id)
        current = ctx.guard.require_exists(store_id)
        merged = {**current.model_dump(), "value": new_value}
        store = validate_store(merged, store_id=store_id)
        ctx.accessor.put(store_id, store)
        logger.info("Updated store %s in tx %s", store_id, ctx.tx_id)
        return store

    def delete_store(self, ctx: TxContext, store_id: str) -> Store:
        """Delete the record and return it as it was before deletion."""
        _check_store_id(store_id)
        prior = ctx.guard.require_exists(store_id)
        ctx.accessor.delete(store_id)
        logger.info("Deleted store %s in tx %s", store_id, ctx.tx_id)
        return prior

    def get_history_for_key(self, ctx: TxContext, store_id: str) -> List[HistoryEvent]:
        _check_store_id(store_id)
        ctx.guard.require_known(store_id)
        return ctx.history.list_history(store_id)

    def get_history_transaction_for_key(
        self, ctx: TxContext, store_id: str, tx_id: str
    ) -> HistoryEntryDetail:
        _check_store_id(store_id)
        ctx.guard.require_known(store_id)
        return ctx.history.find_history_entry(store_id, tx_id)


__all__ = ["StoreManager"]
