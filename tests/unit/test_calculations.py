"""
test_calculations.py - Rate calculator and portfolio helpers.

Pure functions, no storage involved.
"""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from hashyield.calculations import (
    daily_rate,
    is_valid_period,
    net_profit,
    next_payment_date,
    period_in_days,
    project_earnings,
    roi,
    round2,
    total_deposits,
    total_earnings,
)


# ── Period table ──────────────────────────────────────────────────────────

class TestPeriodInDays:

    @pytest.mark.parametrize("label,days", [
        ("daily", 1),
        ("weekly", 7),
        ("fortnightly", 14),
        ("monthly", 30),
    ])
    def test_known_periods(self, label, days):
        assert period_in_days(label) == days

    def test_case_insensitive(self):
        assert period_in_days("Weekly") == 7
        assert period_in_days("MONTHLY") == 30

    def test_unknown_period_falls_back_to_one_day(self):
        # Validation rejects these before they reach the calculator;
        # the calculator itself treats them as daily.
        assert period_in_days("quarterly") == 1
        assert period_in_days("") == 1
        assert period_in_days(None) == 1

    def test_unknown_period_is_not_valid(self):
        assert not is_valid_period("quarterly")
        assert not is_valid_period(None)
        assert is_valid_period("fortnightly")


# ── Rates and projection ──────────────────────────────────────────────────

class TestProjection:

    def test_daily_rate(self):
        assert daily_rate(Decimal("1.5"), "daily") == Decimal("0.015")
        assert daily_rate(Decimal("14"), "fortnightly") == Decimal("0.01")

    def test_weekly_example(self):
        # 3% weekly on 1000 over 7 days is exactly 30.00
        assert project_earnings(Decimal("1000"), Decimal("3"), "weekly", 7) == Decimal("30.00")

    def test_single_day_rounds_half_up(self):
        # 1000 * 3/7/100 = 4.2857... -> 4.29
        assert project_earnings(1000, 3, "weekly") == Decimal("4.29")

    def test_half_cent_rounds_up(self):
        assert round2(Decimal("0.005")) == Decimal("0.01")
        assert round2(Decimal("2.675")) == Decimal("2.68")

    def test_float_inputs_have_no_binary_artifacts(self):
        assert round2(2.675) == Decimal("2.68")

    def test_unknown_period_projects_as_daily(self):
        assert project_earnings(100, 2, "yearly", 1) == project_earnings(100, 2, "daily", 1)

    def test_zero_return(self):
        assert project_earnings(1000, 0, "monthly", 30) == Decimal("0.00")

    def test_deterministic(self):
        results = {project_earnings(1234.56, 2.5, "monthly", 11) for _ in range(5)}
        assert len(results) == 1


# ── Portfolio helpers ─────────────────────────────────────────────────────

class TestPortfolio:

    def _subs(self):
        return [
            SimpleNamespace(amount_deposited=Decimal("1000"), earnings=Decimal("120.50")),
            SimpleNamespace(amount_deposited=Decimal("500"), earnings=Decimal("30")),
        ]

    def test_totals(self):
        assert total_deposits(self._subs()) == Decimal("1500")
        assert total_earnings(self._subs()) == Decimal("150.50")

    def test_totals_empty(self):
        assert total_deposits([]) == Decimal("0")
        assert total_earnings([]) == Decimal("0")

    def test_net_profit(self):
        assert net_profit(Decimal("150.50"), Decimal("1500")) == Decimal("-1349.50")

    def test_roi(self):
        assert roi(Decimal("150"), Decimal("1000")) == Decimal("15.00")

    def test_roi_zero_deposit(self):
        assert roi(Decimal("10"), 0) == Decimal("0")


# ── Payment dates ─────────────────────────────────────────────────────────

class TestNextPaymentDate:

    def test_weekly(self):
        assert next_payment_date("weekly", datetime(2024, 1, 1)) == datetime(2024, 1, 8)

    def test_monthly_is_calendar_month(self):
        assert next_payment_date("monthly", datetime(2024, 3, 15)) == datetime(2024, 4, 15)

    def test_monthly_clamps_to_month_end(self):
        assert next_payment_date("monthly", datetime(2024, 1, 31)) == datetime(2024, 2, 29)

    def test_monthly_crosses_year(self):
        assert next_payment_date("monthly", datetime(2024, 12, 10)) == datetime(2025, 1, 10)

    def test_unknown_period_advances_one_day(self):
        assert next_payment_date("hourly", datetime(2024, 1, 1)) == datetime(2024, 1, 2)
