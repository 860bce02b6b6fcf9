from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ledger.stub import LedgerStub

from .accessor import StateAccessor
from .guard import ExistenceGuard
from .history import HistoryAdapter


@dataclass
class TxContext:
    """
    Everything one store operation may touch, bound to a single ledger transaction.

    Built per invocation from the transaction's stub; never shared between calls.
    """

    stub: LedgerStub
    accessor: StateAccessor = field(init=False)
    history: HistoryAdapter = field(init=False)
    guard: ExistenceGuard = field(init=False)

    def __post_init__(self) -> None:
        self.accessor = StateAccessor(self.stub)
        self.history = HistoryAdapter(self.stub)
        self.guard = ExistenceGuard(self.accessor, self.history)

    @property
    def tx_id(self) -> str:
        return self.stub.tx_id

    @property
    def timestamp(self) -> datetime:
        return self.stub.timestamp


__all__ = ["TxContext"]
