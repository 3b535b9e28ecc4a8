"""InventoryMovement: one quantity change on one part record.

Movements are written by the reconciler every time it changes a stock
level, including reversals and rollbacks, so the history of a part
record always adds up to its current quantity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sims.domain.model.value_objects import Money


class ChangeType(Enum):
    TRANSACTION = "transaction"
    ADJUSTMENT = "adjustment"
    CORRECTION = "correction"
    INITIAL = "initial"


class MovementType(Enum):
    RECEIPT = "receipt"
    ISSUE = "issue"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    ADJUSTMENT = "adjustment"
    SCRAP = "scrap"


@dataclass(frozen=True)
class InventoryMovement:
    part_id: str
    part_number: str
    part_name: str
    location: str | None
    department: str
    change_type: ChangeType
    movement_type: MovementType
    previous_quantity: int
    quantity_change: int
    new_quantity: int
    transaction_id: str | None
    transaction_number: str
    performed_by: str
    performed_by_name: str
    reason: str
    cost: Money | None = None
    notes: str | None = None
    performed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
