"""Append-only JSON-lines implementation of InventoryHistoryRepository."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from sims.domain.exceptions import StorageError
from sims.domain.model.inventory_movement import ChangeType, InventoryMovement, MovementType
from sims.domain.model.value_objects import Money
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.infrastructure.persistence.json_file import lock_for


class JsonLinesInventoryHistory(InventoryHistoryRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)

    def record(self, movement: InventoryMovement) -> None:
        line = json.dumps(self._to_raw(movement), sort_keys=True)
        with self._lock:
            try:
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                with self._file_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            except OSError as exc:
                raise StorageError(f"Cannot append to {self._file_path}: {exc}") from exc

    def list_for_part(self, part_id: str) -> list[InventoryMovement]:
        return [m for m in self._read_all() if m.part_id == part_id]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(m: InventoryMovement) -> dict:
        return {
            "part_id": m.part_id,
            "part_number": m.part_number,
            "part_name": m.part_name,
            "location": m.location,
            "department": m.department,
            "change_type": m.change_type.value,
            "transaction_type": m.movement_type.value,
            "previous_quantity": m.previous_quantity,
            "quantity_change": m.quantity_change,
            "new_quantity": m.new_quantity,
            "transaction_id": m.transaction_id,
            "transaction_number": m.transaction_number,
            "performed_by": m.performed_by,
            "performed_by_name": m.performed_by_name,
            "performed_at": m.performed_at.isoformat(),
            "reason": m.reason,
            "cost": m.cost.to_raw() if m.cost else None,
            "notes": m.notes,
        }

    @staticmethod
    def _to_domain(raw: dict) -> InventoryMovement:
        return InventoryMovement(
            part_id=raw["part_id"],
            part_number=raw["part_number"],
            part_name=raw["part_name"],
            location=raw.get("location"),
            department=raw["department"],
            change_type=ChangeType(raw["change_type"]),
            movement_type=MovementType(raw["transaction_type"]),
            previous_quantity=raw["previous_quantity"],
            quantity_change=raw["quantity_change"],
            new_quantity=raw["new_quantity"],
            transaction_id=raw.get("transaction_id"),
            transaction_number=raw["transaction_number"],
            performed_by=raw["performed_by"],
            performed_by_name=raw["performed_by_name"],
            performed_at=datetime.fromisoformat(raw["performed_at"]),
            reason=raw["reason"],
            cost=Money.from_raw(raw.get("cost")),
            notes=raw.get("notes"),
        )

    # --- File helpers ---------------------------------------------------------

    def _read_all(self) -> list[InventoryMovement]:
        with self._lock:
            if not self._file_path.exists():
                return []
            try:
                lines = self._file_path.read_text(encoding="utf-8").splitlines()
            except OSError as exc:
                raise StorageError(f"Cannot read {self._file_path}: {exc}") from exc
        try:
            return [self._to_domain(json.loads(line)) for line in lines if line.strip()]
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt history file {self._file_path}: {exc}") from exc
