"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals.  In particular the transaction's
``inventory_applied`` bookkeeping never appears here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sims.domain.model.stock_transaction import StockTransaction


@dataclass(frozen=True)
class Actor:
    """Who is asking.  Authorization has already been decided upstream."""

    id: str
    name: str
    department: str


@dataclass(frozen=True)
class ItemSpec:
    """Input: one requested line item."""

    part_id: str
    quantity: int
    unit_cost: str | None = None
    from_location: str | None = None
    to_location: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransactionSpec:
    """Input: a new stock transaction."""

    transaction_type: str
    description: str
    items: list[ItemSpec]
    department: str | None = None
    priority: str = "normal"
    adjustment_direction: str | None = None
    reference_number: str | None = None
    source_location: str | None = None
    destination_location: str | None = None
    supplier: str | None = None
    recipient: str | None = None
    recipient_type: str | None = None
    technician: str | None = None
    asset_id: str | None = None
    asset_name: str | None = None
    work_order_id: str | None = None
    work_order_number: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class TransactionItemDTO:
    part_id: str
    part_number: str
    part_name: str
    quantity: int
    unit_cost: str | None
    total_cost: str | None
    from_location: str | None
    to_location: str | None
    notes: str | None


@dataclass(frozen=True)
class TransactionDTO:
    """Output: a stock transaction as displayed to the user."""

    id: str
    transaction_number: str
    transaction_type: str
    status: str
    priority: str
    department: str
    description: str
    reference_number: str | None
    adjustment_direction: str | None
    supplier: str | None
    recipient: str | None
    recipient_type: str | None
    technician: str | None
    asset_id: str | None
    asset_name: str | None
    work_order_id: str | None
    work_order_number: str | None
    items: list[TransactionItemDTO]
    total_items: int
    total_quantity: int
    total_amount: str
    created_by: str
    created_by_name: str
    approved_by: str | None
    approved_by_name: str | None
    approved_at: str | None
    notes: str | None
    internal_notes: str | None
    created_at: str
    updated_at: str

    @staticmethod
    def from_domain(transaction: StockTransaction) -> TransactionDTO:
        return TransactionDTO(
            id=transaction.id,  # type: ignore[arg-type]
            transaction_number=transaction.transaction_number,
            transaction_type=transaction.transaction_type.value,
            status=transaction.status.value,
            priority=transaction.priority.value,
            department=transaction.department,
            description=transaction.description,
            reference_number=transaction.reference_number,
            adjustment_direction=(
                transaction.adjustment_direction.value
                if transaction.adjustment_direction
                else None
            ),
            supplier=transaction.supplier,
            recipient=transaction.recipient,
            recipient_type=(
                transaction.recipient_type.value if transaction.recipient_type else None
            ),
            technician=transaction.technician,
            asset_id=transaction.asset_id,
            asset_name=transaction.asset_name,
            work_order_id=transaction.work_order_id,
            work_order_number=transaction.work_order_number,
            items=[
                TransactionItemDTO(
                    part_id=item.part_id,
                    part_number=item.part_number,
                    part_name=item.part_name,
                    quantity=item.quantity.value,
                    unit_cost=str(item.unit_cost) if item.unit_cost else None,
                    total_cost=str(item.total_cost) if item.total_cost else None,
                    from_location=item.from_location,
                    to_location=item.to_location,
                    notes=item.notes,
                )
                for item in transaction.items
            ],
            total_items=transaction.total_items,
            total_quantity=transaction.total_quantity,
            total_amount=str(transaction.total_amount),
            created_by=transaction.created_by,
            created_by_name=transaction.created_by_name,
            approved_by=transaction.approved_by,
            approved_by_name=transaction.approved_by_name,
            approved_at=(
                transaction.approved_at.isoformat() if transaction.approved_at else None
            ),
            notes=transaction.notes,
            internal_notes=transaction.internal_notes,
            created_at=transaction.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            updated_at=transaction.updated_at.strftime("%Y-%m-%d %H:%M UTC"),
        )

    def as_payload(self) -> dict:
        return {
            "id": self.id,
            "transactionNumber": self.transaction_number,
            "transactionType": self.transaction_type,
            "status": self.status,
            "priority": self.priority,
            "department": self.department,
            "description": self.description,
            "referenceNumber": self.reference_number,
            "supplier": self.supplier,
            "recipient": self.recipient,
            "recipientType": self.recipient_type,
            "technician": self.technician,
            "assetId": self.asset_id,
            "assetName": self.asset_name,
            "workOrderId": self.work_order_id,
            "workOrderNumber": self.work_order_number,
            "items": [
                {
                    "partId": i.part_id,
                    "partNumber": i.part_number,
                    "partName": i.part_name,
                    "quantity": i.quantity,
                    "unitCost": i.unit_cost,
                    "fromLocation": i.from_location,
                    "toLocation": i.to_location,
                }
                for i in self.items
            ],
            "totalItems": self.total_items,
            "totalQuantity": self.total_quantity,
            "totalAmount": self.total_amount,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at,
            "internalNotes": self.internal_notes,
        }


@dataclass(frozen=True)
class InventoryUpdateDTO:
    """Summary of the reconciliation run by a status change."""

    success: bool
    total_updated: int
    total_failed: int
    message: str
    failures: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ShortfallDTO:
    part_id: str
    part_number: str
    required: int
    available: int


@dataclass(frozen=True)
class TransitionErrorDTO:
    kind: str
    message: str
    issues: list[ShortfallDTO] = field(default_factory=list)


@dataclass(frozen=True)
class TransactionResult:
    """Output of a status change: either the new state or a rejection."""

    transaction: TransactionDTO
    inventory_update: InventoryUpdateDTO | None = None
    error: TransitionErrorDTO | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_payload(self) -> dict:
        if self.error is not None:
            return {
                "error": {
                    "kind": self.error.kind,
                    "message": self.error.message,
                    "issues": [
                        {
                            "partId": i.part_id,
                            "partNumber": i.part_number,
                            "required": i.required,
                            "available": i.available,
                        }
                        for i in self.error.issues
                    ],
                }
            }
        update = None
        if self.inventory_update is not None:
            update = {
                "success": self.inventory_update.success,
                "totalUpdated": self.inventory_update.total_updated,
                "totalFailed": self.inventory_update.total_failed,
                "message": self.inventory_update.message,
            }
        return {"transaction": self.transaction.as_payload(), "inventoryUpdate": update}


@dataclass(frozen=True)
class PartSpec:
    """Input: a new part record."""

    part_number: str
    name: str
    department: str
    location: str
    quantity: int = 0
    unit_price: str = "0"
    min_stock_level: int = 0
    is_stock_item: bool = True
    supplier: str | None = None


@dataclass(frozen=True)
class PartDTO:
    id: str
    part_number: str
    name: str
    department: str
    location: str
    quantity: int
    min_stock_level: int
    unit_price: str
    total_value: str
    stock_status: str
    is_stock_item: bool
    supplier: str | None
    total_consumed: int
