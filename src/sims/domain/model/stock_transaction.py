"""StockTransaction aggregate — the core of the domain.

A stock transaction moves parts into, out of, or between inventory
records.  It owns its line items, its status and the ledger of deltas it
has applied to the part store.  Business invariants on the transaction
itself are enforced here; cross-aggregate work (touching parts) is done
by the domain services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sims.domain.exceptions import InvalidTransitionError, ValidationError
from sims.domain.model.value_objects import Money, Quantity


class TransactionType(Enum):
    RECEIPT = "receipt"
    ISSUE = "issue"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    SCRAP = "scrap"


class TransactionStatus(Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AdjustmentDirection(Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class Priority(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class RecipientType(Enum):
    EMPLOYEE = "employee"
    DEPARTMENT = "department"
    WORK_ORDER = "work_order"
    ASSET = "asset"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Transition graph
# ---------------------------------------------------------------------------
ALLOWED_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.DRAFT: frozenset(
        {TransactionStatus.PENDING, TransactionStatus.CANCELLED}
    ),
    TransactionStatus.PENDING: frozenset(
        {TransactionStatus.APPROVED, TransactionStatus.DRAFT, TransactionStatus.CANCELLED}
    ),
    TransactionStatus.APPROVED: frozenset(
        {TransactionStatus.COMPLETED, TransactionStatus.CANCELLED}
    ),
    TransactionStatus.COMPLETED: frozenset({TransactionStatus.CANCELLED}),
    TransactionStatus.CANCELLED: frozenset(),
}

# Entering one of these makes the transaction's deltas effective.
INVENTORY_STATUSES = frozenset({TransactionStatus.APPROVED, TransactionStatus.COMPLETED})

MAX_LINE_ITEMS = 50

# Reference prefix of the receipt that books a new part's opening stock.
OPENING_STOCK_PREFIX = "PART-INIT-"


@dataclass(frozen=True)
class StockTransactionItem:
    """One part-quantity entry.  Quantity is always a positive magnitude."""

    part_id: str
    part_number: str
    part_name: str
    quantity: Quantity
    unit_cost: Money | None = None
    from_location: str | None = None
    to_location: str | None = None
    notes: str | None = None

    @property
    def total_cost(self) -> Money | None:
        if self.unit_cost is None:
            return None
        return self.unit_cost * self.quantity.value


@dataclass(frozen=True)
class InventoryDelta:
    """A signed quantity change against one part record.

    ``item_index`` points back at the line item that produced it; a
    transfer item produces two deltas (source leg, destination leg).
    """

    item_index: int
    part_id: str
    amount: int
    consumption: bool = False
    unit_cost: Money | None = None
    location: str | None = None

    @property
    def is_outbound(self) -> bool:
        return self.amount < 0


@dataclass
class StockTransaction:
    """Aggregate root for stock transactions.

    Use ``StockTransaction.create()`` for new transactions; ``__init__``
    stays simple so the repository can reconstitute persisted records
    without re-validating.

    ``inventory_applied`` is internal bookkeeping: it is true exactly while
    ``applied_deltas`` are reflected in the part store.  It is never
    copied into DTOs.
    """

    id: str | None
    transaction_number: str
    transaction_type: TransactionType
    department: str
    description: str
    items: list[StockTransactionItem]
    created_by: str
    created_by_name: str
    status: TransactionStatus = TransactionStatus.DRAFT
    priority: Priority = Priority.NORMAL
    adjustment_direction: AdjustmentDirection | None = None
    reference_number: str | None = None
    source_location: str | None = None
    destination_location: str | None = None
    supplier: str | None = None
    recipient: str | None = None
    recipient_type: RecipientType | None = None
    technician: str | None = None
    asset_id: str | None = None
    asset_name: str | None = None
    work_order_id: str | None = None
    work_order_number: str | None = None
    notes: str | None = None
    internal_notes: str | None = None
    approved_by: str | None = None
    approved_by_name: str | None = None
    approved_at: datetime | None = None
    transaction_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    inventory_applied: bool = False
    applied_deltas: list[InventoryDelta] = field(default_factory=list)
    version: int = 0

    # --- Factory (used for NEW transactions only) -----------------------------

    @staticmethod
    def create(
        transaction_number: str,
        transaction_type: TransactionType,
        department: str,
        description: str,
        items: list[StockTransactionItem],
        created_by: str,
        created_by_name: str,
        *,
        priority: Priority = Priority.NORMAL,
        adjustment_direction: AdjustmentDirection | None = None,
        reference_number: str | None = None,
        source_location: str | None = None,
        destination_location: str | None = None,
        supplier: str | None = None,
        recipient: str | None = None,
        recipient_type: RecipientType | None = None,
        technician: str | None = None,
        asset_id: str | None = None,
        asset_name: str | None = None,
        work_order_id: str | None = None,
        work_order_number: str | None = None,
        notes: str | None = None,
    ) -> StockTransaction:
        """Create a new draft transaction, enforcing all invariants.

        Receipts must name a supplier.  Issues must name the asset the
        parts go to and who takes them (a technician or a recipient).
        """
        if not description or not description.strip():
            raise ValidationError("Description is required")
        if not department or not department.strip():
            raise ValidationError("Department is required")
        if not created_by:
            raise ValidationError("Creator is required")

        supplier = _clean(supplier)
        recipient = _clean(recipient)
        technician = _clean(technician)
        asset_id = _clean(asset_id)
        asset_name = _clean(asset_name)

        if transaction_type == TransactionType.RECEIPT and supplier is None:
            raise ValidationError("Receipt transactions require a supplier")
        if transaction_type == TransactionType.ISSUE:
            if asset_id is None and asset_name is None:
                raise ValidationError("Issue transactions require an asset")
            if technician is None and recipient is None:
                raise ValidationError(
                    "Issue transactions require a technician or a recipient"
                )

        if transaction_type == TransactionType.ADJUSTMENT:
            if adjustment_direction is None:
                raise ValidationError(
                    "Adjustment transactions require a direction (increase or decrease)"
                )
        elif adjustment_direction is not None:
            raise ValidationError(
                "Adjustment direction only applies to adjustment transactions"
            )

        transaction = StockTransaction(
            id=None,
            transaction_number=transaction_number,
            transaction_type=transaction_type,
            department=department.strip(),
            description=description.strip(),
            items=[],
            created_by=created_by,
            created_by_name=created_by_name,
            priority=priority,
            adjustment_direction=adjustment_direction,
            reference_number=reference_number,
            source_location=source_location,
            destination_location=destination_location,
            supplier=supplier,
            recipient=recipient,
            recipient_type=recipient_type,
            technician=technician,
            asset_id=asset_id,
            asset_name=asset_name,
            work_order_id=_clean(work_order_id),
            work_order_number=_clean(work_order_number),
            notes=notes,
        )
        transaction._set_items(items)
        return transaction

    # --- Items ------------------------------------------------------------------

    def replace_items(self, items: list[StockTransactionItem]) -> None:
        """Swap the line items.  Only allowed while the transaction is a draft."""
        if self.status != TransactionStatus.DRAFT:
            raise ValidationError(
                f"Items of transaction {self.transaction_number} are locked "
                f"(status is {self.status.value})"
            )
        self._set_items(items)
        self.updated_at = datetime.now(timezone.utc)

    def _set_items(self, items: list[StockTransactionItem]) -> None:
        if not items:
            raise ValidationError("Transaction must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per transaction")

        if self.transaction_type == TransactionType.TRANSFER:
            for item in items:
                if not item.from_location or not item.to_location:
                    raise ValidationError(
                        f"Transfer of {item.part_number} requires both a source "
                        f"and a destination location"
                    )
                if item.from_location == item.to_location:
                    raise ValidationError(
                        f"Transfer of {item.part_number} must move between "
                        f"different locations"
                    )
        self.items = list(items)

    # --- State transitions ------------------------------------------------------

    def can_transition_to(self, new_status: TransactionStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def ensure_transition(self, new_status: TransactionStatus) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot change transaction {self.transaction_number} from "
                f"{self.status.value} to {new_status.value}"
            )

    def change_status(
        self,
        new_status: TransactionStatus,
        actor_id: str,
        actor_name: str,
        notes: str | None = None,
        at: datetime | None = None,
    ) -> None:
        """Record the new status and its metadata.

        Inventory effects are *not* handled here; the state machine runs
        them before calling this.
        """
        self.ensure_transition(new_status)
        now = at or datetime.now(timezone.utc)

        if new_status == TransactionStatus.APPROVED:
            self.approved_by = actor_id
            self.approved_by_name = actor_name
            self.approved_at = now

        self.status = new_status
        self.updated_at = now

        if notes:
            self.append_note(
                f"Status changed to {new_status.value} by {actor_name}: {notes}", at=now
            )

    def append_note(self, text: str, at: datetime | None = None) -> None:
        """Append a timestamped internal note.  Allowed in every status."""
        if not text or not text.strip():
            raise ValidationError("Note text is required")
        now = at or datetime.now(timezone.utc)
        entry = f"[{now.isoformat()}] {text.strip()}"
        self.internal_notes = (
            f"{self.internal_notes}\n\n{entry}" if self.internal_notes else entry
        )
        self.updated_at = now

    # --- Inventory bookkeeping ---------------------------------------------------

    def record_applied(self, deltas: list[InventoryDelta]) -> None:
        """Remember the deltas an apply run actually wrote to the store."""
        if self.inventory_applied:
            raise ValidationError(
                f"Inventory for {self.transaction_number} is already applied"
            )
        self.applied_deltas = list(deltas)
        self.inventory_applied = bool(self.applied_deltas)

    def record_reversed(self, deltas: list[InventoryDelta]) -> None:
        """Drop the deltas a reverse run undid; the rest stay outstanding."""
        remaining = list(self.applied_deltas)
        for delta in deltas:
            remaining.remove(delta)
        self.applied_deltas = remaining
        self.inventory_applied = bool(remaining)

    # --- Computed properties ------------------------------------------------------

    @property
    def is_deletable(self) -> bool:
        return self.status == TransactionStatus.DRAFT

    @property
    def is_opening_stock(self) -> bool:
        return self.transaction_type == TransactionType.RECEIPT and bool(
            self.reference_number
            and self.reference_number.startswith(OPENING_STOCK_PREFIX)
        )

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity.value for item in self.items)

    @property
    def total_amount(self) -> Money:
        return Money.total(item.total_cost for item in self.items)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
