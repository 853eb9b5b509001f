"""
calculations.py - Earnings rate calculator.

Converts a contract's period return (a percentage, e.g. 1.5 for 1.5%) and
payout period into a daily fractional rate, and projects earnings on a
principal over a number of days. All money is Decimal, rounded half-up to
the cent.
"""

import calendar
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")

PERIOD_DAYS = {
    "daily": 1,
    "weekly": 7,
    "fortnightly": 14,
    "monthly": 30,
}

PERIODS = tuple(PERIOD_DAYS)


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def is_valid_period(period: str) -> bool:
    return isinstance(period, str) and period.lower() in PERIOD_DAYS


def period_in_days(period: str) -> int:
    """Length of a payout period in days.

    Unrecognized labels fall back to a one-day period. Callers are expected
    to reject unknown labels with is_valid_period() before getting here.
    """
    return PERIOD_DAYS.get((period or "").lower(), 1)


def daily_rate(period_return: Number, period: str) -> Decimal:
    return to_decimal(period_return) / period_in_days(period) / 100


def project_earnings(amount: Number, period_return: Number, period: str, days: int = 1) -> Decimal:
    """Earnings on `amount` after `days` days at the contract's rate."""
    rate = daily_rate(period_return, period)
    return round2(to_decimal(amount) * rate * days)


def total_deposits(subscriptions: Iterable) -> Decimal:
    return sum((to_decimal(s.amount_deposited) for s in subscriptions), Decimal("0"))


def total_earnings(subscriptions: Iterable) -> Decimal:
    return sum((to_decimal(s.earnings) for s in subscriptions), Decimal("0"))


def net_profit(earnings: Number, deposits: Number) -> Decimal:
    return to_decimal(earnings) - to_decimal(deposits)


def roi(earnings: Number, deposit: Number) -> Decimal:
    """Return on investment as a percentage, 0 when nothing is deposited."""
    deposit = to_decimal(deposit)
    if deposit == 0:
        return Decimal("0")
    return round2(to_decimal(earnings) / deposit * 100)


def add_months(date: datetime, months: int) -> datetime:
    month_index = date.month - 1 + months
    year = date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(date.day, calendar.monthrange(year, month)[1])
    return date.replace(year=year, month=month, day=day)


def next_payment_date(period: str, from_date: Optional[datetime] = None) -> datetime:
    """Date of the next payout after `from_date` (default: now).

    Monthly periods advance one calendar month (clamped to the month's last
    day); unknown labels advance one day, like period_in_days().
    """
    base = from_date or datetime.now()
    label = (period or "").lower()
    if label == "monthly":
        return add_months(base, 1)
    return base + timedelta(days=PERIOD_DAYS.get(label, 1))
