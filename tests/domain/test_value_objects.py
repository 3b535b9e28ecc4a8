"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from sims.domain.exceptions import ValidationError
from sims.domain.model.value_objects import Money, Quantity


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        assert Money(Decimal("10.50")).amount == Decimal("10.50")

    def test_of_factory_from_string(self):
        assert Money.of(" 25.99 ").amount == Decimal("25.99")

    def test_of_factory_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("twelve")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError, match="must be finite"):
            Money.of("NaN")

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError, match="must be a Decimal"):
            Money(1.5)

    def test_addition(self):
        assert Money.of("10") + Money.of("5.50") == Money.of("15.50")

    def test_multiplication_by_int(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")

    def test_multiplication_by_float_rejected(self):
        with pytest.raises(TypeError):
            Money.of("7.50") * 1.5

    def test_str_rounds_to_cents(self):
        assert str(Money.of("15")) == "$15.00"
        assert str(Money.of("0.125")) == "$0.13"

    def test_total_skips_missing_costs(self):
        assert Money.total([Money.of("1.10"), None, Money.of("2")]) == Money.of("3.10")
        assert Money.total([]) == Money.zero()

    def test_raw_round_trip(self):
        assert Money.from_raw(Money.of("0.0125").to_raw()) == Money.of("0.0125")
        assert Money.from_raw(None) is None


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid_quantity(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(-3)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)

    def test_str(self):
        assert str(Quantity(7)) == "7"
