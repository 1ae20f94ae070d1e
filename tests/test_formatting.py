"""
Tests for currency formatting.
"""

from yosan.analytics.formatting import format_currency


class TestFormatCurrency:
    """Tests for format_currency."""

    def test_indian_grouping(self):
        """Test the default locale groups lakhs and crores."""
        assert format_currency(1234567, locale="en_IN") == "₹12,34,567"
        assert format_currency(50000, locale="en_IN") == "₹50,000"

    def test_western_grouping(self):
        assert format_currency(1234567.5, symbol="$", locale="en_US") == "$1,234,567.5"

    def test_fraction_digits_capped_at_three(self):
        assert format_currency(1234.5678, symbol="$", locale="en_US") == "$1,234.568"

    def test_small_amounts(self):
        assert format_currency(0, locale="en_IN") == "₹0"
        assert format_currency(999, locale="en_IN") == "₹999"

    def test_non_finite_renders_zero(self):
        assert format_currency(float("nan"), locale="en_IN") == "₹0"
        assert format_currency(float("inf"), locale="en_IN") == "₹0"
