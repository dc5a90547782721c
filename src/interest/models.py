"""Domain types for the interest reconstruction pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping

from src.data.constants import Side
from src.protocol.ray import parse_amount


class SnapshotError(ValueError):
    """A balance-history snapshot is missing fields or carries bad numbers."""


class MovementType(str, Enum):
    """Principal movement detected between two consecutive daily points."""

    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    BORROW = "borrow"
    REPAY = "repay"


class PointSource(str, Enum):
    """Whether a point was observed or synthesized."""

    REAL = "real"
    INTERPOLATED = "interpolated"


@dataclass(frozen=True)
class SideConfig:
    """Parameterizes the accrual engine for one position side."""

    side: Side
    increase_label: MovementType
    decrease_label: MovementType


SUPPLY_CONFIG = SideConfig(Side.SUPPLY, MovementType.SUPPLY, MovementType.WITHDRAW)
DEBT_CONFIG = SideConfig(Side.DEBT, MovementType.BORROW, MovementType.REPAY)

SIDE_CONFIGS: dict[Side, SideConfig] = {
    Side.SUPPLY: SUPPLY_CONFIG,
    Side.DEBT: DEBT_CONFIG,
}


# ---------------------------------------------------------------------------
# Date helpers. Every day boundary in the project is a UTC boundary
# ---------------------------------------------------------------------------

def timestamp_to_date(timestamp: int) -> str:
    """Unix seconds -> ``YYYYMMDD`` (UTC)."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y%m%d")


def normalize_date(value: str | date) -> date:
    """Accept ``YYYYMMDD``, ``YYYY-MM-DD`` or a :class:`date`."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    text = value.replace("-", "").strip()
    if len(text) != 8 or not text.isdigit():
        raise ValueError(f"Expected YYYYMMDD or YYYY-MM-DD, got {value!r}")
    return date(int(text[:4]), int(text[4:6]), int(text[6:8]))


def date_to_timestamp(value: str | date) -> int:
    """Start-of-day (00:00 UTC) timestamp for a calendar date."""
    d = normalize_date(value)
    return int(datetime(d.year, d.month, d.day, tzinfo=timezone.utc).timestamp())


def date_key(value: str | date) -> str:
    """Canonical ``YYYYMMDD`` form of a calendar date."""
    return normalize_date(value).strftime("%Y%m%d")


# ---------------------------------------------------------------------------
# Snapshot / DailyPoint
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Snapshot:
    """One observation of a user's position in one reserve.

    ``raw_balance`` is the underlying balance reported at ``index``;
    ``scaled_balance`` only changes when the user acts.
    """

    timestamp: int
    raw_balance: int
    scaled_balance: int
    index: int

    @property
    def date(self) -> str:
        return timestamp_to_date(self.timestamp)

    @classmethod
    def from_raw(cls, item: Mapping[str, Any]) -> Snapshot:
        """Build a snapshot from decimal-string fields.

        Expected keys: ``timestamp``, ``rawBalance``, ``scaledBalance``,
        ``index``.  Anything missing or non-numeric raises
        :class:`SnapshotError`; nothing is coerced to zero.
        """
        try:
            timestamp = parse_amount(item["timestamp"], "timestamp")
            raw_balance = parse_amount(item["rawBalance"], "rawBalance")
            scaled_balance = parse_amount(item["scaledBalance"], "scaledBalance")
            index = parse_amount(item["index"], "index")
        except KeyError as exc:
            raise SnapshotError(f"Snapshot missing field {exc.args[0]!r}: {dict(item)}") from exc
        except ValueError as exc:
            raise SnapshotError(str(exc)) from exc
        if index == 0:
            raise SnapshotError(f"Snapshot index must be positive at timestamp {timestamp}")
        return cls(
            timestamp=timestamp,
            raw_balance=raw_balance,
            scaled_balance=scaled_balance,
            index=index,
        )


@dataclass(frozen=True)
class DailyPoint:
    """One calendar day of a reconstructed series.

    Attributes:
        date: ``YYYYMMDD`` (UTC) of ``timestamp``.
        timestamp: Timestamp of the last snapshot of that day (or "now").
        balance: Underlying balance at ``timestamp``.
        period_interest: Interest accrued since the previous point.
        total_interest: Running sum of ``period_interest``.
        movement_amount: Principal moved at this point (0 when none).
        movement_type: Direction of that movement, or ``None``.
        source: ``real`` for observed points, ``interpolated`` otherwise.
    """

    date: str
    timestamp: int
    balance: int
    period_interest: int
    total_interest: int
    movement_amount: int = 0
    movement_type: MovementType | None = None
    source: PointSource = PointSource.REAL

    def to_dict(self) -> dict[str, Any]:
        """Serialize with every amount as a decimal string."""
        return {
            "date": self.date,
            "timestamp": self.timestamp,
            "balance": str(self.balance),
            "periodInterest": str(self.period_interest),
            "totalInterest": str(self.total_interest),
            "movementAmount": str(self.movement_amount),
            "movementType": self.movement_type.value if self.movement_type else "none",
            "source": self.source.value,
        }


Series = tuple[DailyPoint, ...]
