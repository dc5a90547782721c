"""Answer arbitrary date-range questions against a computed series.

``total_interest`` is cumulative from the start of the series, so the
interest of a window is ``total(end) - total(start)``.  A boundary that does
not fall on a point is linearly interpolated between its neighbours.

Every function here is pure: the series is never mutated, so one cached
series can be re-sliced on every filter change.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from src.interest.models import DailyPoint, Series, date_key, date_to_timestamp


@dataclass(frozen=True)
class InterpolatedPoint:
    """Balance and cumulative interest at an arbitrary timestamp."""

    timestamp: int
    balance: int
    total_interest: int
    is_interpolated: bool


@dataclass(frozen=True)
class PeriodInterest:
    """Interest accrued within a date window."""

    interest: int
    start_point: InterpolatedPoint | None
    end_point: InterpolatedPoint | None


def _lerp(a: int, b: int, num: int, den: int) -> int:
    """``a + (b - a) * num / den`` in integer arithmetic (floor)."""
    if den <= 0:
        return a
    return a + ((b - a) * num) // den


def _surrounding(
    series: Series, target_ts: int, target_date: str
) -> tuple[DailyPoint | None, DailyPoint | None, DailyPoint | None]:
    """Return ``(before, after, exact)`` for a day-start timestamp."""
    before: DailyPoint | None = None
    for point in sorted(series, key=lambda p: p.timestamp):
        if point.date == target_date:
            return None, None, point
        if point.timestamp < target_ts:
            before = point
        elif point.timestamp > target_ts:
            return before, point, None
    return before, None, None


def point_at_date(series: Series, target: str | date) -> InterpolatedPoint | None:
    """Real or interpolated point for a calendar date.

    * exact day in the series -> that point;
    * before the first point -> zero balance and zero interest;
    * after the last point -> the last point's values;
    * otherwise -> linear interpolation by elapsed time.
    """
    if not series:
        return None

    target_ts = date_to_timestamp(target)
    before, after, exact = _surrounding(series, target_ts, date_key(target))

    if exact is not None:
        return InterpolatedPoint(
            timestamp=exact.timestamp,
            balance=exact.balance,
            total_interest=exact.total_interest,
            is_interpolated=False,
        )
    if before is None and after is not None:
        return InterpolatedPoint(target_ts, 0, 0, True)
    if before is not None and after is None:
        return InterpolatedPoint(target_ts, before.balance, before.total_interest, True)

    num = target_ts - before.timestamp
    den = after.timestamp - before.timestamp
    return InterpolatedPoint(
        timestamp=target_ts,
        balance=_lerp(before.balance, after.balance, num, den),
        total_interest=_lerp(before.total_interest, after.total_interest, num, den),
        is_interpolated=True,
    )


@dataclass(frozen=True)
class StartBalance:
    """Balance at the opening edge of a window."""

    balance: int
    is_interpolated: bool


def start_balance(series: Series, start: str | date) -> StartBalance | None:
    """Balance on the opening date of a window, or None for an empty series.

    Follows :func:`point_at_date`: a day before the first point opens at zero
    and a day between points is interpolated.
    """
    point = point_at_date(series, start)
    if point is None:
        return None
    return StartBalance(point.balance, point.is_interpolated)


def query_period_interest(
    series: Series,
    start: str | date,
    end: str | date,
) -> PeriodInterest:
    """Interest accrued between two calendar dates, floored at zero."""
    if not series:
        return PeriodInterest(0, None, None)

    start_point = point_at_date(series, start)
    end_point = point_at_date(series, end)
    if start_point is None or end_point is None:
        return PeriodInterest(0, start_point, end_point)

    interest = end_point.total_interest - start_point.total_interest
    return PeriodInterest(max(0, interest), start_point, end_point)


def points_between(series: Series, start: str | date, end: str | date) -> Series:
    """Points whose date falls inside ``[start, end]``."""
    lo, hi = date_key(start), date_key(end)
    return tuple(p for p in series if lo <= p.date <= hi)
