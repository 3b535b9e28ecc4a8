"""Delta rules: which part records a transaction touches, and by how much.

Quantities on line items are positive magnitudes; the sign of each delta
comes from the transaction type (and, for adjustments, the transaction's
``adjustment_direction``).

Both the availability validator and the reconciler plan from here, so
the pre-flight check always simulates exactly what apply will write.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sims.domain.exceptions import EntityNotFoundError, ValidationError
from sims.domain.model.part import Part
from sims.domain.model.stock_transaction import (
    AdjustmentDirection,
    InventoryDelta,
    StockTransaction,
    StockTransactionItem,
    TransactionType,
)
from sims.domain.model.value_objects import Money
from sims.domain.repository.part_repository import PartRepository


@dataclass(frozen=True)
class _Leg:
    location: str | None
    amount: int
    consumption: bool = False
    unit_cost: Money | None = None


@dataclass
class DeltaPlan:
    """Deltas for every resolvable item, plus what could not be planned."""

    deltas: list[InventoryDelta] = field(default_factory=list)
    unresolved: dict[int, str] = field(default_factory=dict)
    skipped: set[int] = field(default_factory=set)

    def for_item(self, item_index: int) -> list[InventoryDelta]:
        return [d for d in self.deltas if d.item_index == item_index]


def plan_deltas(transaction: StockTransaction, part_repo: PartRepository) -> DeltaPlan:
    """Compute the signed deltas of *transaction* against the current records.

    Items whose part is not a stock item are skipped.  Items whose part
    record (or location-scoped counterpart) cannot be found, or whose
    counterpart is not a stock item, end up in ``unresolved`` with a
    message before anything is written; they are never silently dropped.
    """
    plan = DeltaPlan()

    for index, item in enumerate(transaction.items):
        part = part_repo.get_by_id(item.part_id)
        if part is None:
            plan.unresolved[index] = f"Part '{item.part_number}' no longer exists"
            continue
        if not part.is_stock_item:
            plan.skipped.add(index)
            continue

        try:
            item_deltas = []
            for leg in _legs_for(transaction, item):
                record = _resolve_record(part_repo, part, leg.location)
                item_deltas.append(
                    InventoryDelta(
                        item_index=index,
                        part_id=record.id,
                        amount=leg.amount,
                        consumption=leg.consumption,
                        unit_cost=leg.unit_cost,
                        location=record.location,
                    )
                )
        except (EntityNotFoundError, ValidationError) as exc:
            plan.unresolved[index] = str(exc)
            continue

        plan.deltas.extend(item_deltas)

    return plan


def _legs_for(transaction: StockTransaction, item: StockTransactionItem) -> list[_Leg]:
    qty = item.quantity.value
    kind = transaction.transaction_type

    if kind == TransactionType.RECEIPT:
        return [_Leg(item.to_location, qty, unit_cost=item.unit_cost)]
    if kind == TransactionType.ISSUE:
        return [_Leg(item.from_location, -qty, consumption=True)]
    if kind == TransactionType.SCRAP:
        return [_Leg(item.from_location, -qty, consumption=True)]
    if kind == TransactionType.TRANSFER:
        # Source leg first: if it fails the destination is never credited.
        return [_Leg(item.from_location, -qty), _Leg(item.to_location, qty)]
    if kind == TransactionType.ADJUSTMENT:
        if transaction.adjustment_direction == AdjustmentDirection.DECREASE:
            return [_Leg(None, -qty)]
        return [_Leg(None, qty)]

    raise ValidationError(f"Unknown transaction type: {kind}")


def _resolve_record(part_repo: PartRepository, part: Part, location: str | None) -> Part:
    """Find the record of *part* at *location* (same part number)."""
    if location is None or location == part.location:
        return part
    record = part_repo.find_by_number_and_location(part.part_number, location)
    if record is None:
        raise EntityNotFoundError(
            f"No record of part {part.part_number} at location '{location}'"
        )
    if not record.is_stock_item:
        raise ValidationError(
            f"Part {part.part_number} at location '{location}' is not a stock item"
        )
    return record
