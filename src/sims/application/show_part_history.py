"""Application service: Show Part History use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from sims.domain.exceptions import EntityNotFoundError
from sims.domain.model.inventory_movement import InventoryMovement
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.domain.repository.part_repository import PartRepository


@dataclass(frozen=True)
class MovementDTO:
    part_id: str
    part_number: str
    part_name: str
    location: str | None
    change_type: str
    transaction_type: str
    previous_quantity: int
    quantity_change: int
    new_quantity: int
    transaction_number: str
    performed_by_name: str
    performed_at: str
    reason: str
    cost: str | None


def movement_to_dto(m: InventoryMovement) -> MovementDTO:
    return MovementDTO(
        part_id=m.part_id,
        part_number=m.part_number,
        part_name=m.part_name,
        location=m.location,
        change_type=m.change_type.value,
        transaction_type=m.movement_type.value,
        previous_quantity=m.previous_quantity,
        quantity_change=m.quantity_change,
        new_quantity=m.new_quantity,
        transaction_number=m.transaction_number,
        performed_by_name=m.performed_by_name,
        performed_at=m.performed_at.strftime("%Y-%m-%d %H:%M UTC"),
        reason=m.reason,
        cost=str(m.cost) if m.cost else None,
    )


class ShowPartHistoryHandler:

    def __init__(
        self,
        part_repo: PartRepository,
        history_repo: InventoryHistoryRepository,
    ) -> None:
        self._part_repo = part_repo
        self._history_repo = history_repo

    def handle(self, part_id: str) -> list[MovementDTO]:
        """Movements of one part record, newest first."""
        if self._part_repo.get_by_id(part_id) is None:
            raise EntityNotFoundError(f"Part {part_id} not found")
        movements = self._history_repo.list_for_part(part_id)
        return [movement_to_dto(m) for m in reversed(movements)]
