"""Tests for helper utility functions."""

import pytest

from utils.helpers import (
    Percentiles,
    annual_to_monthly_rate,
    format_currency,
    format_months,
)


class TestAnnualToMonthlyRate:
    """Tests for rate conversion."""

    def test_zero_rate(self):
        """Zero annual inflation gives zero monthly inflation."""
        assert annual_to_monthly_rate(0.0) == 0.0

    def test_compounds_back_to_annual(self):
        """Twelve months of the monthly rate give the annual rate."""
        monthly = annual_to_monthly_rate(0.03)
        assert (1 + monthly) ** 12 - 1 == pytest.approx(0.03)


class TestFormatCurrency:
    """Tests for currency formatting."""

    def test_rounds_to_dollars(self):
        """Cents are rounded away."""
        assert format_currency(1234.56) == "$1,235"

    def test_zero(self):
        """Depleted balances format as $0."""
        assert format_currency(0) == "$0"


class TestFormatMonths:
    """Tests for runway duration formatting."""

    @pytest.mark.parametrize(
        "months, expected",
        [
            (0, "0 mo"),
            (7, "7 mo"),
            (12, "1 yr"),
            (50, "4 yr 2 mo"),
            (120, "10 yr"),
        ],
    )
    def test_years_and_months(self, months, expected):
        """Whole years are split out from leftover months."""
        assert format_months(months) == expected

    def test_fractional_months_rounded(self):
        """Interpolated percentiles round to the nearest month."""
        assert format_months(49.6) == "4 yr 2 mo"


class TestPercentiles:
    """Tests for Percentiles dataclass."""

    def test_frozen(self):
        """Percentile bands are immutable."""
        bands = Percentiles(p5=[1.0], p25=[2.0], p50=[3.0], p75=[4.0], p95=[5.0])
        with pytest.raises(AttributeError):
            bands.p50 = [10.0]
