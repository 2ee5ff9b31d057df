"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.location import SelectedLocation
from cartsync.domain.model.value_objects import Coordinate, Money


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_of_factory_from_float_keeps_decimal_text(self):
        assert Money.of(0.1).amount == Decimal("0.1")

    def test_invalid_amount_rejected(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("abc")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_addition(self):
        assert Money.of("10") + Money.of("5.50") == Money.of("15.50")

    def test_multiplication_by_int(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")

    def test_multiplication_by_float_rejected(self):
        with pytest.raises(TypeError):
            Money.of("1") * 1.5

    def test_str_formatting(self):
        assert str(Money.of("15")) == "15.00"
        assert str(Money.of("9.5")) == "9.50"


# ── SelectedLocation ─────────────────────────────────────────────────────────


class TestSelectedLocation:

    def test_raw_round_trip(self):
        loc = SelectedLocation(country="NG", name="Ikeja", coordinate=Coordinate(6.6, 3.35))
        assert SelectedLocation.from_raw(loc.to_raw()) == loc

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "NG",
            {"country": "NG"},
            {"country": "NG", "latitude": "x", "longitude": 3},
            {"country": "", "latitude": 1, "longitude": 2},
        ],
    )
    def test_malformed_raw_rejected(self, raw):
        with pytest.raises(ValidationError):
            SelectedLocation.from_raw(raw)
