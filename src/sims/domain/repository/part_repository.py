"""Abstract repository for the Part aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  Concrete implementations (JSON, in-memory) live in the
infrastructure layer and the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sims.domain.model.part import Part
from sims.domain.model.value_objects import Money


class PartRepository(ABC):

    @abstractmethod
    def get_by_id(self, part_id: str) -> Part | None:
        """Return a part record by its ID, or None if not found."""

    @abstractmethod
    def find_by_number_and_location(self, part_number: str, location: str) -> Part | None:
        """Return the record of *part_number* stocked at *location*, or None."""

    @abstractmethod
    def list_all(self) -> list[Part]:
        """Return every part record."""

    @abstractmethod
    def save(self, part: Part) -> None:
        """Persist a new or updated part record."""

    @abstractmethod
    def apply_delta(
        self,
        part_id: str,
        delta: int,
        *,
        consumption: bool = False,
        reversal: bool = False,
        unit_cost: Money | None = None,
    ) -> tuple[int, int]:
        """Atomically change a part's quantity by a signed *delta*.

        The read-modify-write must not interleave with another
        ``apply_delta`` on the same part.  Returns ``(previous, new)``.

        Raises EntityNotFoundError if the part does not exist and
        ValidationError if the quantity would go negative.
        """
