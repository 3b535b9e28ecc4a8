"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sims.domain.exceptions import ValidationError

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """A non-negative price or cost in the store's single currency.

    Unit costs may carry sub-cent precision (bulk fasteners are priced
    per thousand); rounding to cents happens only for display.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if not self.amount.is_finite():
            raise ValidationError(f"Money amount must be finite, got {self.amount}")
        if self.amount < 0:
            raise ValidationError(f"Money amount cannot be negative, got {self.amount}")

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + other.amount)

    def __mul__(self, quantity: int) -> Money:
        if not isinstance(quantity, int):
            raise TypeError(f"Can only multiply Money by int, got {type(quantity).__name__}")
        return Money(self.amount * quantity)

    def __str__(self) -> str:
        return f"${self.amount.quantize(_CENT, rounding=ROUND_HALF_UP)}"

    # --- Construction ---------------------------------------------------------

    @staticmethod
    def zero() -> Money:
        return Money(Decimal("0"))

    @staticmethod
    def of(amount: str | int | Decimal) -> Money:
        """Parse user or file input; raises ValidationError on garbage."""
        try:
            return Money(Decimal(str(amount).strip()))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def total(amounts: Iterable[Money | None]) -> Money:
        """Sum, treating missing costs as zero."""
        result = Decimal("0")
        for money in amounts:
            if money is not None:
                result += money.amount
        return Money(result)

    # --- Storage --------------------------------------------------------------

    def to_raw(self) -> str:
        return str(self.amount)

    @staticmethod
    def from_raw(raw: str | None) -> Money | None:
        return Money.of(raw) if raw else None


@dataclass(frozen=True)
class Quantity:
    """A positive whole number of units on a line item.

    Direction of a stock movement is never encoded in the sign; it comes
    from the transaction type.
    """

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
