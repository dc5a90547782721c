"""Extend a reconstructed series to the present moment.

The subgraph only records a snapshot when something touches the user's
position, so the last indexed point can be days old.  A fresh on-chain
``balanceOf`` read closes that gap.  Two policies exist:

* ``direct``: one catch-up point at "now" carries the whole residual.
* ``interpolated``: the residual is spread evenly over the missing calendar
  days as synthetic points, and the "now" point carries the remainder.

Only one policy is active per process (see ``Settings.extrapolation_policy``)
and it is applied to every reserve and protocol version alike.  Points up
to and including the last real snapshot before today are never modified.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from enum import Enum

from src.interest.models import (
    DailyPoint,
    MovementType,
    PointSource,
    Series,
    SideConfig,
    date_to_timestamp,
    normalize_date,
    timestamp_to_date,
)

logger = logging.getLogger(__name__)


class ExtrapolationPolicy(str, Enum):
    DIRECT = "direct"
    INTERPOLATED = "interpolated"


def _signed_movement(point: DailyPoint | None, config: SideConfig) -> int:
    """Principal change booked on *point*: positive for increases."""
    if point is None or point.movement_type is None:
        return 0
    if point.movement_type == config.increase_label:
        return point.movement_amount
    return -point.movement_amount


def _movement_from_signed(signed: int, config: SideConfig) -> tuple[int, MovementType | None]:
    if signed > 0:
        return signed, config.increase_label
    if signed < 0:
        return -signed, config.decrease_label
    return 0, None


def _split_tail(series: Series, today: str) -> tuple[Series, DailyPoint | None]:
    """Split off a trailing point dated *today*, if any."""
    if series and series[-1].date == today:
        return series[:-1], series[-1]
    return series, None


def _residual(reference: DailyPoint, replaced: DailyPoint | None, current_balance: int, config: SideConfig) -> int:
    """Balance change since *reference* that is not principal."""
    residual = current_balance - reference.balance
    if replaced is not None and replaced is not reference:
        # Today's indexed movement is principal, not interest
        residual -= _signed_movement(replaced, config)
    return residual


def _now_point(
    reference: DailyPoint,
    replaced: DailyPoint | None,
    current_balance: int,
    now: int,
    config: SideConfig,
    already_booked: int = 0,
) -> DailyPoint:
    """Build the "now" point against *reference*.

    A replaced point dated today keeps its movement.  A negative residual
    means principal left the position after the last indexed snapshot; it is
    booked as a decrease, never as negative interest.  *already_booked* is
    the part of the residual carried by synthetic points before this one.
    """
    residual = _residual(reference, replaced, current_balance, config)
    interest = max(residual, 0)
    amount, kind = _movement_from_signed(
        _signed_movement(replaced, config) + min(residual, 0), config
    )
    # When the only point is today's, it is replaced in place and keeps its
    # own period interest.
    opening = reference.period_interest if replaced is reference else 0
    return DailyPoint(
        date=timestamp_to_date(now),
        timestamp=now,
        balance=current_balance,
        period_interest=opening + interest - already_booked,
        total_interest=reference.total_interest + interest,
        movement_amount=amount,
        movement_type=kind,
        source=PointSource.REAL,
    )


def extend_direct(
    series: Series,
    current_balance: int,
    config: SideConfig,
    now: int,
) -> Series:
    """Append (or replace today's) point with the whole residual."""
    if not series:
        return series
    prefix, replaced = _split_tail(series, timestamp_to_date(now))
    reference = prefix[-1] if prefix else replaced
    return prefix + (_now_point(reference, replaced, current_balance, now, config),)


def extend_interpolated(
    series: Series,
    current_balance: int,
    config: SideConfig,
    now: int,
) -> Series:
    """Spread the residual evenly over missing days, then add today's point."""
    if not series:
        return series
    today = timestamp_to_date(now)
    prefix, replaced = _split_tail(series, today)
    if not prefix:
        return (_now_point(replaced, replaced, current_balance, now, config),)

    base = prefix[-1]
    days_diff = (normalize_date(today) - normalize_date(base.date)).days
    residual = _residual(base, replaced, current_balance, config)

    if days_diff <= 1 or residual <= 0:
        return prefix + (_now_point(base, replaced, current_balance, now, config),)

    missing = days_diff - 1
    step = residual // missing
    base_day = normalize_date(base.date)
    synthetic: list[DailyPoint] = []
    for k in range(1, missing + 1):
        day = base_day + timedelta(days=k)
        synthetic.append(
            DailyPoint(
                date=day.strftime("%Y%m%d"),
                timestamp=date_to_timestamp(day),
                balance=base.balance + step * k,
                period_interest=step,
                total_interest=base.total_interest + step * k,
                source=PointSource.INTERPOLATED,
            )
        )

    point = _now_point(
        base, replaced, current_balance, now, config, already_booked=step * missing
    )
    logger.debug(
        "Interpolated %d missing days after %s (step %d, remainder %d)",
        missing,
        base.date,
        step,
        point.period_interest,
    )
    return prefix + tuple(synthetic) + (point,)


def extend_to_now(
    series: Series,
    current_balance: int,
    config: SideConfig,
    policy: ExtrapolationPolicy = ExtrapolationPolicy.INTERPOLATED,
    now: int | None = None,
) -> Series:
    """Extend *series* so that it ends at *now* with *current_balance*.

    An empty series is returned unchanged: there is no history to extend.
    So is a series whose last point is later than *now*, which keeps the
    points in date order.
    """
    if not series:
        return series
    if now is None:
        now = int(time.time())
    if now < series[-1].timestamp:
        logger.warning(
            "Extrapolation time %d is before last point %d; series left unchanged",
            now,
            series[-1].timestamp,
        )
        return series
    if policy == ExtrapolationPolicy.DIRECT:
        return extend_direct(series, current_balance, config, now)
    return extend_interpolated(series, current_balance, config, now)
