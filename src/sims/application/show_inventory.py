"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from sims.application.dto import PartDTO
from sims.domain.model.part import Part
from sims.domain.repository.part_repository import PartRepository


def part_to_dto(part: Part) -> PartDTO:
    return PartDTO(
        id=part.id,
        part_number=part.part_number,
        name=part.name,
        department=part.department,
        location=part.location,
        quantity=part.quantity,
        min_stock_level=part.min_stock_level,
        unit_price=str(part.unit_price),
        total_value=str(part.total_value),
        stock_status=part.stock_status.value,
        is_stock_item=part.is_stock_item,
        supplier=part.supplier,
        total_consumed=part.total_consumed,
    )


class ShowInventoryHandler:

    def __init__(self, part_repo: PartRepository) -> None:
        self._part_repo = part_repo

    def handle(self, department: str | None = None) -> list[PartDTO]:
        parts = [
            p
            for p in self._part_repo.list_all()
            if department is None or p.department == department
        ]
        parts.sort(key=lambda p: (p.part_number, p.location))
        return [part_to_dto(p) for p in parts]
