"""Part aggregate — one inventory record per part per storage location.

A spare part stocked in two stores exists as two records sharing the same
``part_number`` but with different ``location`` values.  Quantities only
ever change through ``apply_delta()`` so usage tracking stays in step
with the stock level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sims.domain.exceptions import ValidationError
from sims.domain.model.value_objects import Money


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


@dataclass
class Part:
    """Aggregate root for a part inventory record.

    Invariants:
    - ``quantity`` is never negative
    - non-stock parts never have their quantity changed by a transaction
    """

    id: str
    part_number: str
    name: str
    department: str
    location: str
    quantity: int = 0
    min_stock_level: int = 0
    unit_price: Money = field(default_factory=Money.zero)
    is_stock_item: bool = True
    supplier: str | None = None
    total_consumed: int = 0
    last_used_at: datetime | None = None
    last_purchase_price: Money | None = None
    last_purchase_at: datetime | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def stock_status(self) -> StockStatus:
        if self.quantity == 0:
            return StockStatus.OUT_OF_STOCK
        if self.quantity <= self.min_stock_level:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    @property
    def total_value(self) -> Money:
        return self.unit_price * self.quantity

    def apply_delta(
        self,
        delta: int,
        *,
        consumption: bool = False,
        reversal: bool = False,
        unit_cost: Money | None = None,
        at: datetime | None = None,
    ) -> int:
        """Change the stock level by a signed *delta* and return the old level.

        ``consumption`` marks issue/scrap movements, which feed
        ``total_consumed``; reversing one gives the consumption back.
        ``unit_cost`` on an inbound, non-reversal movement records the
        purchase price and becomes the new unit price.  Reversing that
        receipt leaves both prices as they are: the previous price is not
        kept anywhere, and the last price paid is still the best estimate.

        Raises ValidationError if the result would be negative.
        """
        if delta == 0:
            raise ValidationError("Quantity change must be non-zero")
        if not self.is_stock_item:
            raise ValidationError(f"Part {self.part_number} is not a stock item")

        new_quantity = self.quantity + delta
        if new_quantity < 0:
            raise ValidationError(
                f"Insufficient stock for {self.part_number} at {self.location} "
                f"(need {-delta}, have {self.quantity})"
            )

        now = at or datetime.now(timezone.utc)
        previous = self.quantity
        self.quantity = new_quantity

        if consumption and not reversal:
            self.total_consumed += abs(delta)
            self.last_used_at = now
        elif consumption and reversal:
            self.total_consumed = max(0, self.total_consumed - abs(delta))

        if unit_cost is not None and delta > 0 and not reversal:
            self.last_purchase_price = unit_cost
            self.last_purchase_at = now
            self.unit_price = unit_cost

        self.updated_at = now
        return previous
