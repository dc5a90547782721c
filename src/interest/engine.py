"""Accrual engine: turn daily snapshots into an interest series.

Interest for a period is always what the principal present during the whole
period earned:

    period_interest[i] = scaled[i-1] * (index[i] - index[i-1]) / RAY

Principal movements are detected from the scaled balance and converted to
underlying units at the *current* index, because the new principal did not
exist before this point.
"""

from __future__ import annotations

import logging
from typing import Iterable

from src.interest.models import (
    DailyPoint,
    MovementType,
    Series,
    SideConfig,
    Snapshot,
)
from src.interest.reducer import reduce_to_daily
from src.protocol.ray import accrued_interest, scaled_to_underlying

logger = logging.getLogger(__name__)


def classify_movement(
    previous: Snapshot,
    current: Snapshot,
    config: SideConfig,
) -> tuple[int, MovementType | None]:
    """Principal moved between two consecutive snapshots.

    Returns:
        ``(amount, type)`` in underlying units, or ``(0, None)``.
    """
    delta = current.scaled_balance - previous.scaled_balance
    if delta > 0:
        return scaled_to_underlying(delta, current.index), config.increase_label
    if delta < 0:
        return scaled_to_underlying(-delta, current.index), config.decrease_label
    return 0, None


def period_interest(previous: Snapshot, current: Snapshot) -> int:
    """Interest accrued between two snapshots, never negative.

    An index that went backwards is a data-integrity fault in the source;
    it is logged and the period is booked as zero.
    """
    if current.index < previous.index:
        logger.warning(
            "Index regression between %d and %d (%d -> %d); period interest set to 0",
            previous.timestamp,
            current.timestamp,
            previous.index,
            current.index,
        )
        return 0
    return max(0, accrued_interest(previous.scaled_balance, previous.index, current.index))


def accrue(daily: list[Snapshot], config: SideConfig) -> Series:
    """Run the accrual walk over already-deduplicated daily snapshots.

    The first point books a non-zero balance as an initial increase: the
    position existed before the observation window, and its opening balance
    is treated as principal.  This is a modelling assumption about history
    the subgraph does not cover, not something the chain proves.
    """
    points: list[DailyPoint] = []
    total = 0

    for i, current in enumerate(daily):
        if i == 0:
            interest = 0
            if current.raw_balance > 0:
                amount, kind = current.raw_balance, config.increase_label
            else:
                amount, kind = 0, None
        else:
            previous = daily[i - 1]
            amount, kind = classify_movement(previous, current, config)
            interest = period_interest(previous, current)

        total += interest
        points.append(
            DailyPoint(
                date=current.date,
                timestamp=current.timestamp,
                balance=current.raw_balance,
                period_interest=interest,
                total_interest=total,
                movement_amount=amount,
                movement_type=kind,
            )
        )

    return tuple(points)


def compute_series(snapshots: Iterable[Snapshot], config: SideConfig) -> Series:
    """Reduce raw snapshots to days and compute the interest series.

    Deterministic: the same snapshot set (in any order) yields the same
    series.  An empty input yields an empty series.
    """
    daily = reduce_to_daily(snapshots)
    series = accrue(daily, config)
    if series:
        logger.info(
            "Computed %s series: %d days, total interest %d",
            config.side.value,
            len(series),
            series[-1].total_interest,
        )
    return series
