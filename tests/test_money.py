"""
Test suite for money module

All amounts must be 2-digit Decimals rounded half away from zero.
"""

import pytest
from decimal import Decimal

from account_ledger.errors import ValidationError
from account_ledger.money import (
    to_money, to_decimal, is_finite_amount, monthly_rate, calculate_interest, format_amount
)


class TestToMoney:
    """Test amount normalization"""

    def test_accepts_supported_types(self):
        assert to_money(Decimal("10")) == Decimal("10.00")
        assert to_money(10) == Decimal("10.00")
        assert to_money(" 10.5 ") == Decimal("10.50")
        assert to_money(10.25) == Decimal("10.25")

    def test_rounds_half_away_from_zero(self):
        """Halves round away from zero in both directions"""
        assert to_money("10.005") == Decimal("10.01")
        assert to_money("10.004") == Decimal("10.00")
        assert to_money("-10.005") == Decimal("-10.01")
        assert to_money("0.125") == Decimal("0.13")

    def test_float_goes_through_string(self):
        """Binary float noise never reaches the ledger"""
        assert to_money(0.1 + 0.2) == Decimal("0.30")
        assert to_money(1.005) == Decimal("1.01")

    @pytest.mark.parametrize("value", [None, True, "abc", "", "NaN", "Infinity", float("inf"),
                                       float("nan"), Decimal("-Infinity"), [1]])
    def test_rejects_invalid_values(self, value):
        with pytest.raises(ValidationError):
            to_money(value)

    def test_to_decimal_keeps_precision(self):
        assert to_decimal("0.005") == Decimal("0.005")

    def test_is_finite_amount(self):
        assert is_finite_amount("12.34")
        assert not is_finite_amount("inf")
        assert not is_finite_amount(None)


class TestInterestMath:
    """Test interest helpers"""

    def test_monthly_rate(self):
        assert monthly_rate(Decimal("0.045")) == Decimal("0.00375")

    def test_monthly_interest_on_ten_thousand(self):
        assert calculate_interest(Decimal("10000.00"), Decimal("0.045")) == Decimal("37.50")

    def test_interest_is_rounded_to_cents(self):
        # 1234.56 * 0.00375 = 4.62960
        assert calculate_interest(Decimal("1234.56"), Decimal("0.045")) == Decimal("4.63")

    def test_format_amount(self):
        assert format_amount(Decimal("5")) == "5.00"
        assert format_amount(Decimal("1000000")) == "1000000.00"
