from decimal import Decimal

from feeledger.shared.utils.money import ZERO, format_money, round_money


class TestRoundMoney:
    """Tests for round_money function."""

    def test_round_half_up(self):
        """Test ROUND_HALF_UP behavior."""
        assert round_money(Decimal("10.125")) == Decimal("10.13")
        assert round_money(Decimal("10.124")) == Decimal("10.12")
        assert round_money("10.115") == Decimal("10.12")

    def test_from_int(self):
        assert round_money(100) == Decimal("100.00")
        assert round_money(0) == ZERO

    def test_negative_numbers(self):
        """Negative halves round toward zero."""
        assert round_money(Decimal("-10.125")) == Decimal("-10.12")
        assert round_money(Decimal("-10.126")) == Decimal("-10.13")

    def test_precision(self):
        """Test that result always has 2 decimal places."""
        assert str(round_money(10)) == "10.00"
        assert str(round_money("7.5")) == "7.50"


class TestFormatMoney:
    def test_with_symbol(self):
        assert format_money(Decimal("9000"), "₹") == "₹9,000.00"

    def test_without_symbol(self):
        assert format_money(Decimal("1234567.891")) == "1,234,567.89"
