"""JSON-file-backed implementation of PartRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from sims.domain.exceptions import EntityNotFoundError
from sims.domain.model.part import Part
from sims.domain.model.value_objects import Money
from sims.domain.repository.part_repository import PartRepository
from sims.infrastructure.persistence.json_file import dump_json, ensure_file, load_json, lock_for


class JsonPartRepository(PartRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)
        ensure_file(file_path, "[]")

    # --- PartRepository interface ---------------------------------------------

    def get_by_id(self, part_id: str) -> Part | None:
        for raw in self._load_raw():
            if raw["id"] == part_id:
                return self._to_domain(raw)
        return None

    def find_by_number_and_location(self, part_number: str, location: str) -> Part | None:
        for raw in self._load_raw():
            if raw["part_number"] == part_number and raw["location"] == location:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Part]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, part: Part) -> None:
        with self._lock:
            records = self._load_raw()
            self._upsert(records, part)
            dump_json(self._file_path, records)

    def apply_delta(
        self,
        part_id: str,
        delta: int,
        *,
        consumption: bool = False,
        reversal: bool = False,
        unit_cost: Money | None = None,
    ) -> tuple[int, int]:
        with self._lock:
            records = self._load_raw()
            raw = next((r for r in records if r["id"] == part_id), None)
            if raw is None:
                raise EntityNotFoundError(f"Part {part_id} not found")
            part = self._to_domain(raw)
            previous = part.apply_delta(
                delta, consumption=consumption, reversal=reversal, unit_cost=unit_cost
            )
            self._upsert(records, part)
            dump_json(self._file_path, records)
            return previous, part.quantity

    # --- Serialization --------------------------------------------------------

    def _upsert(self, records: list[dict], part: Part) -> None:
        for i, raw in enumerate(records):
            if raw["id"] == part.id:
                records[i] = self._to_raw(part)
                return
        records.append(self._to_raw(part))

    @staticmethod
    def _to_raw(part: Part) -> dict:
        return {
            "id": part.id,
            "part_number": part.part_number,
            "name": part.name,
            "department": part.department,
            "location": part.location,
            "quantity": part.quantity,
            "min_stock_level": part.min_stock_level,
            "unit_price": part.unit_price.to_raw(),
            "is_stock_item": part.is_stock_item,
            "supplier": part.supplier,
            "total_consumed": part.total_consumed,
            "last_used_at": part.last_used_at.isoformat() if part.last_used_at else None,
            "last_purchase_price": (
                part.last_purchase_price.to_raw() if part.last_purchase_price else None
            ),
            "last_purchase_at": (
                part.last_purchase_at.isoformat() if part.last_purchase_at else None
            ),
            "updated_at": part.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Part:
        return Part(
            id=raw["id"],
            part_number=raw["part_number"],
            name=raw["name"],
            department=raw["department"],
            location=raw["location"],
            quantity=raw["quantity"],
            min_stock_level=raw.get("min_stock_level", 0),
            unit_price=Money.from_raw(raw.get("unit_price")) or Money.zero(),
            is_stock_item=raw.get("is_stock_item", True),
            supplier=raw.get("supplier"),
            total_consumed=raw.get("total_consumed", 0),
            last_used_at=_parse_dt(raw.get("last_used_at")),
            last_purchase_price=Money.from_raw(raw.get("last_purchase_price")),
            last_purchase_at=_parse_dt(raw.get("last_purchase_at")),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        with self._lock:
            return load_json(self._file_path)


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
