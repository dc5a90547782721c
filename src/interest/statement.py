"""Summaries and the combined supply/debt daily statement."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.interest.models import MovementType, Series, SideConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesSummary:
    """Totals for one side of one reserve.

    For the supply side, increases are supplies and decreases withdrawals;
    for the debt side, borrows and repays.
    """

    total_increases: int = 0
    total_decreases: int = 0
    current_balance: int = 0
    total_interest: int = 0


def summarize(series: Series, config: SideConfig) -> SeriesSummary:
    """Aggregate a series; an empty series gives an all-zero summary."""
    if not series:
        return SeriesSummary()

    increases = sum(
        p.movement_amount for p in series if p.movement_type == config.increase_label
    )
    decreases = sum(
        p.movement_amount for p in series if p.movement_type == config.decrease_label
    )
    return SeriesSummary(
        total_increases=increases,
        total_decreases=decreases,
        current_balance=series[-1].balance,
        total_interest=series[-1].total_interest,
    )


@dataclass(frozen=True)
class Movement:
    type: MovementType
    amount: int


@dataclass
class StatementRow:
    """Both sides of one reserve on one calendar day."""

    date: str
    timestamp: int
    debt: int = 0
    supply: int = 0
    borrow_interest: int = 0
    supply_interest: int = 0
    movements: list[Movement] = field(default_factory=list)
    source: str = "real"

    @property
    def net_interest(self) -> int:
        """Supply interest earned minus borrow interest paid."""
        return self.supply_interest - self.borrow_interest


def daily_statement(debt_series: Series, supply_series: Series) -> list[StatementRow]:
    """Merge debt and supply series into one row per date, oldest first.

    A side without a point on a given day shows zero balance and zero
    interest for that day, as the subgraph only records days with activity.
    """
    rows: dict[str, StatementRow] = {}

    def _row(date: str, timestamp: int, source: str) -> StatementRow:
        if date not in rows:
            rows[date] = StatementRow(date=date, timestamp=timestamp, source=source)
        return rows[date]

    for point in debt_series:
        row = _row(point.date, point.timestamp, point.source.value)
        row.debt = point.balance
        row.borrow_interest = point.period_interest
        if point.movement_type is not None and point.movement_amount:
            row.movements.append(Movement(point.movement_type, point.movement_amount))

    for point in supply_series:
        row = _row(point.date, point.timestamp, point.source.value)
        row.supply = point.balance
        row.supply_interest = point.period_interest
        if point.movement_type is not None and point.movement_amount:
            row.movements.append(Movement(point.movement_type, point.movement_amount))

    statement = sorted(rows.values(), key=lambda r: r.timestamp)
    logger.debug("Daily statement built: %d days", len(statement))
    return statement
