"""Per-part inventory history.

Append-only: movements are never edited or removed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sims.domain.model.inventory_movement import InventoryMovement


class InventoryHistoryRepository(ABC):

    @abstractmethod
    def record(self, movement: InventoryMovement) -> None:
        """Append one movement."""

    @abstractmethod
    def list_for_part(self, part_id: str) -> list[InventoryMovement]:
        """Return the movements of one part record, oldest first."""
