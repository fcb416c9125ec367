"""Unit tests for Decimal money helpers."""

from decimal import Decimal

import pytest

from src.pm_common.money import (
    money_to_display,
    notional,
    round2,
    validate_limit_price,
)


class TestRound2:
    def test_half_rounds_up(self) -> None:
        assert round2(Decimal("7.005")) == Decimal("7.01")

    def test_below_half_rounds_down(self) -> None:
        assert round2(Decimal("7.004")) == Decimal("7.00")

    def test_negative_half_rounds_away_from_zero(self) -> None:
        assert round2(Decimal("-0.125")) == Decimal("-0.13")

    def test_result_has_two_places(self) -> None:
        assert str(round2(Decimal("8"))) == "8.00"


class TestNotional:
    def test_escrow_for_scenario_a(self) -> None:
        assert notional(Decimal("20"), Decimal("0.40")) == Decimal("8.00")

    def test_fractional_shares(self) -> None:
        assert notional(Decimal("3.3"), Decimal("0.333")) == Decimal("1.10")

    def test_sub_cent_product_rounds(self) -> None:
        assert notional(Decimal("1"), Decimal("0.005")) == Decimal("0.01")


class TestValidateLimitPrice:
    @pytest.mark.parametrize("price", ["0.01", "0.5", "0.99"])
    def test_inside_range_ok(self, price: str) -> None:
        validate_limit_price(Decimal(price))

    @pytest.mark.parametrize("price", ["0", "1", "-0.1", "1.5"])
    def test_boundaries_and_outside_rejected(self, price: str) -> None:
        with pytest.raises(ValueError, match="between 0 and 1"):
            validate_limit_price(Decimal(price))


def test_money_to_display() -> None:
    assert money_to_display(Decimal("1500")) == "$1,500.00"
    assert money_to_display(Decimal("0.5")) == "$0.50"
    assert money_to_display(Decimal("-12")) == "-$12.00"
