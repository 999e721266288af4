from datetime import date
from decimal import Decimal

from loan_engine.engine.day_count import add_months, day_count_factor, days_in_month
from loan_engine.models.loan import DayCountConvention


class TestThirtyE360:
    def test_one_full_month(self):
        factor = day_count_factor(
            date(2024, 1, 1), date(2024, 2, 1), DayCountConvention.THIRTY_E_360
        )
        assert factor == Decimal(30) / Decimal(360)

    def test_one_full_year_is_exactly_one(self):
        factor = day_count_factor(
            date(2024, 1, 1), date(2025, 1, 1), DayCountConvention.THIRTY_E_360
        )
        assert factor == Decimal("1")

    def test_day_31_treated_as_30(self):
        """Jan 31 -> Mar 31 counts as two 30-day months."""
        factor = day_count_factor(
            date(2024, 1, 31), date(2024, 3, 31), DayCountConvention.THIRTY_E_360
        )
        assert factor == Decimal(60) / Decimal(360)

    def test_february_counts_as_full_month(self):
        factor = day_count_factor(
            date(2023, 2, 1), date(2023, 3, 1), DayCountConvention.THIRTY_E_360
        )
        assert factor == Decimal(30) / Decimal(360)

    def test_reversed_dates_are_not_negative(self):
        forward = day_count_factor(
            date(2024, 1, 31), date(2024, 3, 31), DayCountConvention.THIRTY_E_360
        )
        backward = day_count_factor(
            date(2024, 3, 31), date(2024, 1, 31), DayCountConvention.THIRTY_E_360
        )
        assert backward == forward == Decimal(60) / Decimal(360)

    def test_reversed_dates_positive_under_every_convention(self):
        for convention in DayCountConvention:
            factor = day_count_factor(date(2024, 6, 15), date(2024, 3, 15), convention)
            assert factor > 0


class TestActualConventions:
    def test_act_360_leap_february(self):
        factor = day_count_factor(date(2024, 2, 1), date(2024, 3, 1), DayCountConvention.ACT_360)
        assert factor == Decimal(29) / Decimal(360)

    def test_act_365_leap_year_exceeds_one(self):
        factor = day_count_factor(date(2024, 1, 1), date(2025, 1, 1), DayCountConvention.ACT_365)
        assert factor == Decimal(366) / Decimal(365)
        assert factor > 1

    def test_act_365_normal_year(self):
        factor = day_count_factor(date(2023, 1, 1), date(2024, 1, 1), DayCountConvention.ACT_365)
        assert factor == Decimal("1")

    def test_never_negative(self):
        factor = day_count_factor(date(2024, 3, 1), date(2024, 2, 1), DayCountConvention.ACT_360)
        assert factor == Decimal(29) / Decimal(360)


class TestAddMonths:
    def test_simple(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_clamps_to_leap_february(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_clamps_to_february(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_crosses_year(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_many_years(self):
        assert add_months(date(2024, 1, 1), 360) == date(2054, 1, 1)

    def test_zero_months(self):
        assert add_months(date(2024, 5, 31), 0) == date(2024, 5, 31)


class TestDaysInMonth:
    def test_leap_february(self):
        assert days_in_month(date(2024, 2, 10)) == 29

    def test_common_february(self):
        assert days_in_month(date(2023, 2, 10)) == 28

    def test_thirty_one(self):
        assert days_in_month(date(2024, 12, 1)) == 31
