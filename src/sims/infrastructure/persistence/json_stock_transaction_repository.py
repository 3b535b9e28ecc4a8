"""JSON-file-backed implementation of StockTransactionRepository.

Transactions live in one file; the per-period number sequences live in
another so that allocating a number never rewrites the transaction list.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

from sims.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from sims.domain.model.stock_transaction import (
    AdjustmentDirection,
    InventoryDelta,
    Priority,
    RecipientType,
    StockTransaction,
    StockTransactionItem,
    TransactionStatus,
    TransactionType,
)
from sims.domain.model.value_objects import Money, Quantity
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository
from sims.infrastructure.persistence.json_file import dump_json, ensure_file, load_json, lock_for


def format_transaction_number(at: datetime, sequence: int) -> str:
    return f"ST{at:%y%m}{sequence:04d}"


class JsonStockTransactionRepository(StockTransactionRepository):

    def __init__(self, file_path: Path, sequence_path: Path) -> None:
        self._file_path = file_path
        self._sequence_path = sequence_path
        self._lock = lock_for(file_path)
        self._sequence_lock = lock_for(sequence_path)
        ensure_file(file_path, "[]")
        ensure_file(sequence_path, "{}")

    # --- StockTransactionRepository interface --------------------------------

    def next_transaction_number(self, at: datetime) -> str:
        period = f"{at:%y%m}"
        with self._sequence_lock:
            sequences = load_json(self._sequence_path)
            taken = {raw["transaction_number"] for raw in self._load_raw()}
            sequence = sequences.get(period, 0)
            while True:
                sequence += 1
                number = format_transaction_number(at, sequence)
                if number not in taken:
                    break
            sequences[period] = sequence
            dump_json(self._sequence_path, sequences)
        return number

    def get_by_id(self, transaction_id: str) -> StockTransaction | None:
        for raw in self._load_raw():
            if raw["id"] == transaction_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[StockTransaction]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, transaction: StockTransaction) -> None:
        with self._lock:
            records = self._load_raw()

            if transaction.id is None:
                transaction.id = uuid.uuid4().hex

            # Upsert with optimistic version check
            index = next(
                (i for i, raw in enumerate(records) if raw["id"] == transaction.id), None
            )
            if index is not None and records[index].get("version", 0) != transaction.version:
                raise ConcurrentModificationError(
                    f"Transaction {transaction.transaction_number} was modified concurrently"
                )

            transaction.version += 1
            if index is None:
                records.append(self._to_raw(transaction))
            else:
                records[index] = self._to_raw(transaction)

            try:
                dump_json(self._file_path, records)
            except Exception:
                transaction.version -= 1
                raise

    def delete(self, transaction_id: str) -> None:
        with self._lock:
            records = self._load_raw()
            kept = [raw for raw in records if raw["id"] != transaction_id]
            if len(kept) == len(records):
                raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")
            dump_json(self._file_path, kept)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(t: StockTransaction) -> dict:
        return {
            "id": t.id,
            "transaction_number": t.transaction_number,
            "transaction_type": t.transaction_type.value,
            "status": t.status.value,
            "priority": t.priority.value,
            "adjustment_direction": (
                t.adjustment_direction.value if t.adjustment_direction else None
            ),
            "department": t.department,
            "description": t.description,
            "reference_number": t.reference_number,
            "source_location": t.source_location,
            "destination_location": t.destination_location,
            "supplier": t.supplier,
            "recipient": t.recipient,
            "recipient_type": t.recipient_type.value if t.recipient_type else None,
            "technician": t.technician,
            "asset_id": t.asset_id,
            "asset_name": t.asset_name,
            "work_order_id": t.work_order_id,
            "work_order_number": t.work_order_number,
            "notes": t.notes,
            "internal_notes": t.internal_notes,
            "created_by": t.created_by,
            "created_by_name": t.created_by_name,
            "approved_by": t.approved_by,
            "approved_by_name": t.approved_by_name,
            "approved_at": t.approved_at.isoformat() if t.approved_at else None,
            "transaction_date": t.transaction_date.isoformat(),
            "created_at": t.created_at.isoformat(),
            "updated_at": t.updated_at.isoformat(),
            "inventory_applied": t.inventory_applied,
            "applied_deltas": [
                {
                    "item_index": d.item_index,
                    "part_id": d.part_id,
                    "amount": d.amount,
                    "consumption": d.consumption,
                    "unit_cost": d.unit_cost.to_raw() if d.unit_cost else None,
                    "location": d.location,
                }
                for d in t.applied_deltas
            ],
            "version": t.version,
            "items": [
                {
                    "part_id": item.part_id,
                    "part_number": item.part_number,
                    "part_name": item.part_name,
                    "quantity": item.quantity.value,
                    "unit_cost": item.unit_cost.to_raw() if item.unit_cost else None,
                    "from_location": item.from_location,
                    "to_location": item.to_location,
                    "notes": item.notes,
                }
                for item in t.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockTransaction:
        items = [
            StockTransactionItem(
                part_id=i["part_id"],
                part_number=i["part_number"],
                part_name=i["part_name"],
                quantity=Quantity(i["quantity"]),
                unit_cost=Money.from_raw(i.get("unit_cost")),
                from_location=i.get("from_location"),
                to_location=i.get("to_location"),
                notes=i.get("notes"),
            )
            for i in raw["items"]
        ]
        deltas = [
            InventoryDelta(
                item_index=d["item_index"],
                part_id=d["part_id"],
                amount=d["amount"],
                consumption=d.get("consumption", False),
                unit_cost=Money.from_raw(d.get("unit_cost")),
                location=d.get("location"),
            )
            for d in raw.get("applied_deltas", [])
        ]
        direction = raw.get("adjustment_direction")
        recipient_type = raw.get("recipient_type")
        return StockTransaction(
            id=raw["id"],
            transaction_number=raw["transaction_number"],
            transaction_type=TransactionType(raw["transaction_type"]),
            department=raw["department"],
            description=raw["description"],
            items=items,
            created_by=raw["created_by"],
            created_by_name=raw["created_by_name"],
            status=TransactionStatus(raw["status"]),
            priority=Priority(raw.get("priority", "normal")),
            adjustment_direction=AdjustmentDirection(direction) if direction else None,
            reference_number=raw.get("reference_number"),
            source_location=raw.get("source_location"),
            destination_location=raw.get("destination_location"),
            supplier=raw.get("supplier"),
            recipient=raw.get("recipient"),
            recipient_type=RecipientType(recipient_type) if recipient_type else None,
            technician=raw.get("technician"),
            asset_id=raw.get("asset_id"),
            asset_name=raw.get("asset_name"),
            work_order_id=raw.get("work_order_id"),
            work_order_number=raw.get("work_order_number"),
            notes=raw.get("notes"),
            internal_notes=raw.get("internal_notes"),
            approved_by=raw.get("approved_by"),
            approved_by_name=raw.get("approved_by_name"),
            approved_at=(
                datetime.fromisoformat(raw["approved_at"]) if raw.get("approved_at") else None
            ),
            transaction_date=datetime.fromisoformat(raw["transaction_date"]),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            inventory_applied=raw.get("inventory_applied", False),
            applied_deltas=deltas,
            version=raw.get("version", 0),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        with self._lock:
            return load_json(self._file_path)
