"""Outcome objects produced by the validator and the reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field

from sims.domain.model.stock_transaction import InventoryDelta, StockTransaction


@dataclass(frozen=True)
class ShortfallIssue:
    part_id: str
    part_number: str
    required: int
    available: int

    def __str__(self) -> str:
        return (
            f"Part {self.part_number}: insufficient stock "
            f"(available {self.available}, required {self.required})"
        )


@dataclass(frozen=True)
class AvailabilityReport:
    issues: list[ShortfallIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues


@dataclass(frozen=True)
class ItemOutcome:
    """What happened to one line item during apply or reverse."""

    item_index: int
    part_id: str
    part_number: str
    success: bool
    message: str
    skipped: bool = False
    previous_quantity: int | None = None
    new_quantity: int | None = None


@dataclass
class ReconciliationResult:
    """Aggregate result of one apply or reverse run.

    ``processed_deltas`` are the deltas (in their original, un-inverted
    form) that actually reached the store.  For ``apply`` they become the
    transaction's ledger; for ``reverse`` they are struck from it.

    The transaction and actor are kept so a later rollback can be
    recorded in the part history under the same names.
    """

    operation: str
    outcomes: list[ItemOutcome] = field(default_factory=list)
    processed_deltas: list[InventoryDelta] = field(default_factory=list)
    transaction: StockTransaction | None = None
    actor_id: str = "system"
    actor_name: str = "System"

    @property
    def total_updated(self) -> int:
        return sum(1 for o in self.outcomes if o.success and not o.skipped)

    @property
    def total_failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def total_skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.skipped)

    @property
    def success(self) -> bool:
        return self.total_failed == 0

    @property
    def failures(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def message(self) -> str:
        if self.operation == "reverse":
            if self.success:
                text = f"Successfully reversed inventory for {self.total_updated} parts"
            else:
                text = f"Reversed {self.total_updated} parts, {self.total_failed} failed"
        else:
            if self.success:
                text = f"Successfully updated inventory for {self.total_updated} parts"
            else:
                text = f"Updated {self.total_updated} parts, {self.total_failed} failed"
        if self.total_skipped:
            text += f" ({self.total_skipped} non-stock skipped)"
        return text
