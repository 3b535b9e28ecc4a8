"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the JSON repositories
but keep everything in a dict. No file I/O, no side effects.

Records are deep-copied on the way in and out so tests see the same
"reload from the store" behaviour the JSON repositories give.
"""

from __future__ import annotations

import copy
import itertools
from datetime import datetime

from sims.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    StorageError,
)
from sims.domain.model.inventory_movement import InventoryMovement
from sims.domain.model.part import Part
from sims.domain.model.stock_transaction import StockTransaction
from sims.domain.model.value_objects import Money
from sims.domain.repository.audit_log import AuditLog
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.domain.repository.part_repository import PartRepository
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


class FakePartRepository(PartRepository):

    def __init__(self, parts: list[Part] | None = None) -> None:
        self._store: dict[str, Part] = {}
        for p in parts or []:
            self._store[p.id] = copy.deepcopy(p)

    def get_by_id(self, part_id: str) -> Part | None:
        part = self._store.get(part_id)
        return copy.deepcopy(part) if part else None

    def find_by_number_and_location(self, part_number: str, location: str) -> Part | None:
        for p in self._store.values():
            if p.part_number == part_number and p.location == location:
                return copy.deepcopy(p)
        return None

    def list_all(self) -> list[Part]:
        return [copy.deepcopy(p) for p in self._store.values()]

    def save(self, part: Part) -> None:
        self._store[part.id] = copy.deepcopy(part)

    def apply_delta(
        self,
        part_id: str,
        delta: int,
        *,
        consumption: bool = False,
        reversal: bool = False,
        unit_cost: Money | None = None,
    ) -> tuple[int, int]:
        part = self._store.get(part_id)
        if part is None:
            raise EntityNotFoundError(f"Part {part_id} not found")
        previous = part.apply_delta(
            delta, consumption=consumption, reversal=reversal, unit_cost=unit_cost
        )
        return previous, part.quantity

    # --- Test helpers ----------------------------------------------------------

    def quantity_of(self, part_id: str) -> int:
        return self._store[part_id].quantity

    def remove(self, part_id: str) -> None:
        del self._store[part_id]


class StorageFailingPartRepository(FakePartRepository):
    """Fails with StorageError on the N-th ``apply_delta`` call (1-based)."""

    def __init__(self, parts: list[Part] | None = None, fail_on_call: int = 1) -> None:
        super().__init__(parts)
        self._fail_on_call = fail_on_call
        self.calls = 0

    def apply_delta(self, part_id, delta, **kwargs):
        self.calls += 1
        if self.calls == self._fail_on_call:
            raise StorageError("Part store unavailable")
        return super().apply_delta(part_id, delta, **kwargs)


class FakeStockTransactionRepository(StockTransactionRepository):

    def __init__(self) -> None:
        self._store: dict[str, StockTransaction] = {}
        self._ids = itertools.count(1)
        self._sequences: dict[str, int] = {}

    def next_transaction_number(self, at: datetime) -> str:
        period = f"{at:%y%m}"
        self._sequences[period] = self._sequences.get(period, 0) + 1
        return f"ST{period}{self._sequences[period]:04d}"

    def get_by_id(self, transaction_id: str) -> StockTransaction | None:
        t = self._store.get(transaction_id)
        return copy.deepcopy(t) if t else None

    def list_all(self) -> list[StockTransaction]:
        return [copy.deepcopy(t) for t in self._store.values()]

    def save(self, transaction: StockTransaction) -> None:
        if transaction.id is None:
            transaction.id = f"t{next(self._ids)}"
        stored = self._store.get(transaction.id)
        if stored is not None and stored.version != transaction.version:
            raise ConcurrentModificationError(
                f"Transaction {transaction.transaction_number} was modified concurrently"
            )
        transaction.version += 1
        self._store[transaction.id] = copy.deepcopy(transaction)

    def delete(self, transaction_id: str) -> None:
        if transaction_id not in self._store:
            raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")
        del self._store[transaction_id]


class SaveFailingTransactionRepository(FakeStockTransactionRepository):
    """Accepts the initial save, then fails every later one."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_saves = False

    def save(self, transaction: StockTransaction) -> None:
        if self.fail_saves:
            raise StorageError("Transaction store unavailable")
        super().save(transaction)


class FakeAuditLog(AuditLog):

    def __init__(self) -> None:
        self.events: list[dict] = []

    def record(self, event: dict) -> None:
        self.events.append(event)


class FailingAuditLog(AuditLog):

    def record(self, event: dict) -> None:
        raise RuntimeError("audit sink is down")


class FakeInventoryHistory(InventoryHistoryRepository):

    def __init__(self) -> None:
        self.movements: list[InventoryMovement] = []

    def record(self, movement: InventoryMovement) -> None:
        self.movements.append(movement)

    def list_for_part(self, part_id: str) -> list[InventoryMovement]:
        return [m for m in self.movements if m.part_id == part_id]


class FailingInventoryHistory(InventoryHistoryRepository):

    def record(self, movement: InventoryMovement) -> None:
        raise StorageError("history store unavailable")

    def list_for_part(self, part_id: str) -> list[InventoryMovement]:
        return []
