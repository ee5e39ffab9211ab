"""Utility helpers shared across vatledger modules."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")
AMT2 = Decimal("0.01")


def q2(value: Decimal) -> Decimal:
    return value.quantize(AMT2, rounding=ROUND_HALF_UP)


def fmt2(value: Decimal) -> str:
    return f"{q2(value):.2f}"


def fmt_rate(value: Decimal) -> str:
    """Consistent percentage: integral → ``'21'``; otherwise ``'5.5'``."""

    if value == value.to_integral():
        return str(int(value))
    return format(value.normalize(), "f")


def naive_utc(value: datetime) -> datetime:
    """Return *value* without ``tzinfo``, converting aware values to UTC first.

    Stored timestamps are naive, so every moment compared against them goes
    through here.
    """

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def resolve_now(now: datetime | None) -> datetime:
    """The reference moment for time-dependent figures: *now* or the clock."""

    return datetime.now() if now is None else naive_utc(now)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Return the last representable moment of *day*."""

    return datetime.combine(day, time.max)


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``(year, month)`` by *delta* calendar months (month is 1-12)."""

    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


__all__ = [
    "AMT2",
    "HUNDRED",
    "ZERO",
    "end_of_day",
    "fmt2",
    "fmt_rate",
    "last_day_of_month",
    "naive_utc",
    "q2",
    "resolve_now",
    "shift_month",
    "start_of_day",
]
