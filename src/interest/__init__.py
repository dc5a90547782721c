"""Interest-accrual reconstruction from scaled-balance snapshots."""

from src.interest.engine import compute_series
from src.interest.extrapolation import ExtrapolationPolicy, extend_to_now
from src.interest.models import DailyPoint, Snapshot, SnapshotError
from src.interest.periods import query_period_interest

__all__ = [
    "DailyPoint",
    "ExtrapolationPolicy",
    "Snapshot",
    "SnapshotError",
    "compute_series",
    "extend_to_now",
    "query_period_interest",
]
