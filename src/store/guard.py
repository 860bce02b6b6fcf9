from __future__ import annotations

import logging

from .accessor import StateAccessor
from .errors import AlreadyExistsError, NotFoundError
from .history import HistoryAdapter
from .models import Store


logger = logging.getLogger(__name__)


class ExistenceGuard:
    """Create-only-if-absent / mutate-only-if-present checks for a key."""

    def __init__(self, accessor: StateAccessor, history: HistoryAdapter) -> None:
        self._accessor = accessor
        self._history = history

    def require_absent(self, key: str) -> None:
        if self._accessor.exists(key):
            logger.debug("Store %s already exists", key)
            raise AlreadyExistsError(f"The store {key} already exists", store_id=key)

    def require_exists(self, key: str) -> Store:
        if not self._accessor.exists(key):
            logger.debug("Store %s does not exist", key)
            raise NotFoundError(f"The store {key} does not exist", store_id=key)
        return self._accessor.get(key)

    def require_known(self, key: str) -> None:
        """Pass if `key` holds a record now or has held one before."""
        if self._accessor.exists(key) or self._history.has_history(key):
            return
        logger.debug("Store %s has never existed", key)
        raise NotFoundError(f"The store {key} does not exist", store_id=key)


__all__ = ["ExistenceGuard"]
