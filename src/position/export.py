"""Tabular export of interest series and daily statements."""

from __future__ import annotations

import json

import pandas as pd

from src.interest.models import Series
from src.interest.statement import StatementRow
from src.protocol.ray import to_units

_AMOUNT_COLUMNS = ("balance", "period_interest", "total_interest", "movement_amount")


def series_to_frame(series: Series, decimals: int) -> pd.DataFrame:
    """One row per point.

    Amount columns hold exact decimal strings; ``*_units`` companions are
    floats scaled by *decimals* and only meant for charts and tables.
    """
    rows = []
    for p in series:
        row = {
            "date": p.date,
            "timestamp": p.timestamp,
            "balance": str(p.balance),
            "period_interest": str(p.period_interest),
            "total_interest": str(p.total_interest),
            "movement_amount": str(p.movement_amount),
            "movement_type": p.movement_type.value if p.movement_type else "",
            "source": p.source.value,
        }
        for column in _AMOUNT_COLUMNS:
            row[f"{column}_units"] = to_units(getattr(p, column), decimals)
        rows.append(row)

    columns = [
        "date",
        "timestamp",
        *_AMOUNT_COLUMNS,
        "movement_type",
        "source",
        *(f"{c}_units" for c in _AMOUNT_COLUMNS),
    ]
    df = pd.DataFrame(rows, columns=columns)
    df["datetime"] = pd.to_datetime(df["timestamp"].astype("int64"), unit="s", utc=True)
    return df


def statement_to_frame(statement: list[StatementRow], decimals: int) -> pd.DataFrame:
    """Daily statement as a display table (whole-token units)."""
    return pd.DataFrame(
        [
            {
                "date": pd.Timestamp(row.date).strftime("%Y-%m-%d"),
                "debt": to_units(row.debt, decimals),
                "supply": to_units(row.supply, decimals),
                "borrow_interest": to_units(row.borrow_interest, decimals),
                "supply_interest": to_units(row.supply_interest, decimals),
                "net_interest": to_units(row.net_interest, decimals),
                "movements": ", ".join(
                    f"{m.type.value} {to_units(m.amount, decimals):,.2f}" for m in row.movements
                ),
                "source": row.source,
            }
            for row in statement
        ],
        columns=[
            "date",
            "debt",
            "supply",
            "borrow_interest",
            "supply_interest",
            "net_interest",
            "movements",
            "source",
        ],
    )


def export_csv(series: Series, decimals: int) -> str:
    """CSV text of :func:`series_to_frame` without the float helper columns."""
    df = series_to_frame(series, decimals)
    return df[["date", "timestamp", *_AMOUNT_COLUMNS, "movement_type", "source"]].to_csv(
        index=False
    )


def export_json(series: Series) -> str:
    """JSON array of points, amounts as decimal strings."""
    return json.dumps([p.to_dict() for p in series], indent=2)
