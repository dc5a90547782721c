"""Tests for the accrual engine."""

import logging
import random

import pytest

from src.data.constants import RAY
from src.interest.engine import accrue, classify_movement, compute_series, period_interest
from src.interest.models import (
    DEBT_CONFIG,
    SUPPLY_CONFIG,
    MovementType,
    PointSource,
    Snapshot,
)
from src.interest.statement import SeriesSummary, summarize

DAY = 86_400
D1 = 1_709_251_200 + 12 * 3_600  # 2024-03-01 12:00 UTC
D2 = D1 + DAY


def _snap(ts: int, scaled: int, index: int) -> Snapshot:
    return Snapshot(timestamp=ts, raw_balance=scaled * index // RAY, scaled_balance=scaled, index=index)


@pytest.fixture
def growing_snapshots() -> list[Snapshot]:
    """Ten days of a supply position with two deposits and one withdrawal."""
    scaled = [1_000_000] * 3 + [1_500_000] * 4 + [1_200_000] * 3
    return [
        _snap(D1 + k * DAY, scaled[k], RAY + k * RAY // 1_000)
        for k in range(10)
    ]


class TestScenarios:
    def test_interest_from_index_growth(self) -> None:
        series = compute_series(
            [_snap(D1, 1000, RAY), _snap(D2, 1000, RAY * 105 // 100)], SUPPLY_CONFIG
        )
        assert series[1].period_interest == 50
        assert series[1].total_interest == 50
        assert series[1].movement_type is None

    def test_pure_deposit_without_time_value(self) -> None:
        series = compute_series([_snap(D1, 1000, RAY), _snap(D2, 1500, RAY)], SUPPLY_CONFIG)
        assert series[1].period_interest == 0
        assert series[1].movement_amount == 500
        assert series[1].movement_type == MovementType.SUPPLY

    def test_same_day_duplicate(self) -> None:
        series = compute_series(
            [_snap(D1 - 3_600, 100, RAY), _snap(D1, 200, RAY)], SUPPLY_CONFIG
        )
        assert len(series) == 1
        assert series[0].date == "20240301"
        assert series[0].balance == 200

    def test_empty(self) -> None:
        series = compute_series([], SUPPLY_CONFIG)
        assert series == ()
        assert summarize(series, SUPPLY_CONFIG) == SeriesSummary()


class TestFirstPoint:
    def test_opening_balance_booked_as_increase(self) -> None:
        series = compute_series([_snap(D1, 1000, RAY)], DEBT_CONFIG)
        assert series[0].period_interest == 0
        assert series[0].movement_amount == 1000
        assert series[0].movement_type == MovementType.BORROW

    def test_zero_opening_balance_has_no_movement(self) -> None:
        series = compute_series([_snap(D1, 0, RAY)], SUPPLY_CONFIG)
        assert series[0].movement_type is None
        assert series[0].movement_amount == 0


class TestMovements:
    def test_decrease_valued_at_current_index(self) -> None:
        prev = _snap(D1, 1000, RAY)
        cur = _snap(D2, 600, RAY * 2)
        assert classify_movement(prev, cur, DEBT_CONFIG) == (800, MovementType.REPAY)

    def test_increase_valued_at_current_index(self) -> None:
        prev = _snap(D1, 1000, RAY)
        cur = _snap(D2, 1100, RAY * 3 // 2)
        assert classify_movement(prev, cur, SUPPLY_CONFIG) == (150, MovementType.SUPPLY)

    def test_interest_uses_previous_scaled_balance(self) -> None:
        prev = _snap(D1, 1000, RAY)
        cur = _snap(D2, 5000, RAY * 11 // 10)
        assert period_interest(prev, cur) == 100

    def test_withdraw_label(self) -> None:
        series = compute_series([_snap(D1, 1000, RAY), _snap(D2, 400, RAY)], SUPPLY_CONFIG)
        assert series[1].movement_type == MovementType.WITHDRAW
        assert series[1].movement_amount == 600


class TestIndexRegression:
    def test_regression_clamped_and_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="src.interest.engine"):
            series = compute_series(
                [_snap(D1, 1000, RAY * 11 // 10), _snap(D2, 1000, RAY)], SUPPLY_CONFIG
            )
        assert series[1].period_interest == 0
        assert series[1].total_interest == 0
        assert "Index regression" in caplog.text


class TestProperties:
    def test_idempotent(self, growing_snapshots: list[Snapshot]) -> None:
        assert compute_series(growing_snapshots, SUPPLY_CONFIG) == compute_series(
            growing_snapshots, SUPPLY_CONFIG
        )

    def test_order_invariant(self, growing_snapshots: list[Snapshot]) -> None:
        expected = compute_series(growing_snapshots, SUPPLY_CONFIG)
        shuffled = growing_snapshots[:]
        random.Random(3).shuffle(shuffled)
        assert compute_series(shuffled, SUPPLY_CONFIG) == expected

    def test_non_negative_and_monotonic(self, growing_snapshots: list[Snapshot]) -> None:
        series = compute_series(growing_snapshots, SUPPLY_CONFIG)
        assert all(p.period_interest >= 0 for p in series)
        totals = [p.total_interest for p in series]
        assert totals == sorted(totals)

    def test_conservation(self, growing_snapshots: list[Snapshot]) -> None:
        series = compute_series(growing_snapshots, SUPPLY_CONFIG)
        assert series[-1].total_interest == sum(p.period_interest for p in series)

    def test_all_points_real(self, growing_snapshots: list[Snapshot]) -> None:
        series = compute_series(growing_snapshots, SUPPLY_CONFIG)
        assert {p.source for p in series} == {PointSource.REAL}

    def test_accrue_matches_compute_on_daily_input(self, growing_snapshots: list[Snapshot]) -> None:
        assert accrue(growing_snapshots, SUPPLY_CONFIG) == compute_series(
            growing_snapshots, SUPPLY_CONFIG
        )
