"""Collapse raw balance-history snapshots into one snapshot per UTC day."""

import logging
from typing import Iterable

from src.interest.models import Snapshot

logger = logging.getLogger(__name__)


def reduce_to_daily(snapshots: Iterable[Snapshot]) -> list[Snapshot]:
    """Keep the last snapshot of each calendar day, ordered by time.

    The input may be unsorted and may hold several snapshots per day.  Sorting
    happens before grouping, so a later snapshot always overwrites an earlier
    one of the same day regardless of input order.  Snapshots sharing an
    exact timestamp are ordered by their other fields to keep the result
    independent of input order.
    """
    ordered = sorted(
        snapshots,
        key=lambda s: (s.timestamp, s.index, s.scaled_balance, s.raw_balance),
    )

    by_day: dict[str, Snapshot] = {}
    for snapshot in ordered:
        by_day[snapshot.date] = snapshot

    daily = sorted(by_day.values(), key=lambda s: s.timestamp)
    if len(daily) != len(ordered):
        logger.debug(
            "Collapsed %d snapshots into %d daily snapshots", len(ordered), len(daily)
        )
    return daily
