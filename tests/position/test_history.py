"""Tests for PositionHistoryService: orchestration, validation and partial failure."""

from __future__ import annotations

import threading

import pytest

from src.data.constants import RAY, ReserveKey, Side, Token, Version
from src.data.contracts import reserve_token_address
from src.data.interfaces import (
    BalanceReader,
    ProtocolTransaction,
    ProtocolTransactions,
    SnapshotSource,
    TokenTransfer,
    TransferSource,
)
from src.data.sample_provider import SampleDataProvider
from src.interest.extrapolation import ExtrapolationPolicy
from src.interest.models import PointSource, Snapshot
from src.interest.statement import SeriesSummary
from src.position.history import (
    MAX_ADDRESSES,
    PositionHistoryService,
    is_valid_address,
    validate_addresses,
)

DAY = 86_400
D1 = 1_709_251_200 + 12 * 3_600  # 2024-03-01 12:00 UTC
NOW = D1 + 6 * DAY
ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40


def _snap(ts: int, scaled: int, index: int) -> Snapshot:
    return Snapshot(timestamp=ts, raw_balance=scaled * index // RAY, scaled_balance=scaled, index=index)


class FakeSnapshots(SnapshotSource):
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[ReserveKey] = []
        self.threads: set[int] = set()
        self._lock = threading.Lock()

    def fetch_snapshots(self, user_address, reserve):
        with self._lock:
            self.calls.append(reserve)
            self.threads.add(threading.get_ident())
        if user_address in self.failing:
            raise ConnectionError("subgraph unreachable")
        if reserve.token == Token.WXDAI and reserve.side == Side.DEBT:
            return []
        return [_snap(D1, 10_000, RAY), _snap(D1 + DAY, 10_000, RAY * 101 // 100)]

    def fetch_transactions(self, user_address, version):
        return ProtocolTransactions(
            borrows=[
                ProtocolTransaction("0xb", Token.USDC, "borrow", 10_000, D1, version),
            ]
        )


class FakeBalances(BalanceReader):
    def __init__(self) -> None:
        self.calls: list[str] = []

    def fetch_current_balance(self, token_address, user_address):
        self.calls.append(token_address)
        return 10_600


class FakeTransfers(TransferSource):
    def fetch_supply_transfers(self, user_address, version):
        return {
            Token.USDC: [
                TokenTransfer("0xin", Token.USDC, "0x" + "c" * 40, user_address, 7, D1 + DAY)
            ]
        }


@pytest.fixture
def service() -> PositionHistoryService:
    return PositionHistoryService(
        snapshots=FakeSnapshots(),
        balances=FakeBalances(),
        transfers=FakeTransfers(),
        clock=lambda: NOW,
    )


class TestAddressValidation:
    def test_valid(self) -> None:
        assert is_valid_address(ALICE)
        assert not is_valid_address("0x123")
        assert not is_valid_address("a" * 42)

    def test_strips_and_dedupes(self) -> None:
        assert validate_addresses([f" {ALICE} ", ALICE.upper().replace("0X", "0x"), "", BOB]) == [ALICE, BOB]

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError, match="At least one"):
            validate_addresses(["", "  "])

    def test_too_many_rejected(self) -> None:
        addresses = ["0x" + str(i) * 40 for i in range(MAX_ADDRESSES + 1)]
        with pytest.raises(ValueError, match="At most"):
            validate_addresses(addresses)

    def test_malformed_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid address"):
            validate_addresses([ALICE, "0xnothex"])


class TestCompute:
    def test_reserves_for_v3(self, service: PositionHistoryService) -> None:
        history = service.compute(ALICE, Version.V3)
        assert set(history.reserves) == {Token.USDC, Token.WXDAI}
        assert history.computed_at == NOW

    def test_supply_extended_to_now(self, service: PositionHistoryService) -> None:
        usdc = service.compute(ALICE, Version.V3).reserves[Token.USDC]
        assert usdc.supply[-1].timestamp == NOW
        assert usdc.supply[-1].balance == 10_600
        assert usdc.supply[-1].total_interest == 600
        assert any(p.source == PointSource.INTERPOLATED for p in usdc.supply)
        assert usdc.supply_summary.total_interest == 600
        assert usdc.net_interest == 0

    def test_empty_side_not_extended(self) -> None:
        balances = FakeBalances()
        service = PositionHistoryService(FakeSnapshots(), balances, clock=lambda: NOW)
        wxdai = service.compute(ALICE, Version.V3).reserves[Token.WXDAI]
        assert wxdai.debt == ()
        assert wxdai.debt_summary == SeriesSummary()
        debt_token = reserve_token_address(ReserveKey(Version.V3, Token.WXDAI, Side.DEBT))
        assert debt_token not in balances.calls

    def test_fetches_every_side(self) -> None:
        snapshots = FakeSnapshots()
        service = PositionHistoryService(snapshots, FakeBalances(), clock=lambda: NOW)
        service.compute(ALICE, Version.V3)
        assert sorted(snapshots.calls, key=lambda k: (k.token.value, k.side.value)) == [
            ReserveKey(Version.V3, Token.USDC, Side.DEBT),
            ReserveKey(Version.V3, Token.USDC, Side.SUPPLY),
            ReserveKey(Version.V3, Token.WXDAI, Side.DEBT),
            ReserveKey(Version.V3, Token.WXDAI, Side.SUPPLY),
        ]

    def test_token_filter(self, service: PositionHistoryService) -> None:
        history = service.compute(ALICE, Version.V3, [Token.USDC])
        assert list(history.reserves) == [Token.USDC]

    def test_empty_token_selection(self) -> None:
        snapshots = FakeSnapshots()
        balances = FakeBalances()
        service = PositionHistoryService(snapshots, balances, clock=lambda: NOW)
        history = service.compute(ALICE, Version.V3, [])
        assert history.reserves == {}
        assert snapshots.calls == []
        assert balances.calls == []

    def test_v2_only_wxdai(self, service: PositionHistoryService) -> None:
        history = service.compute(ALICE, Version.V2, [Token.USDC, Token.WXDAI])
        assert list(history.reserves) == [Token.WXDAI]

    def test_statement_and_ledger(self, service: PositionHistoryService) -> None:
        usdc = service.compute(ALICE, Version.V3).reserves[Token.USDC]
        assert usdc.statement[0].date == "20240301"
        assert usdc.statement[-1].timestamp == NOW
        assert [r.kind for r in usdc.transactions.debt] == ["borrow"]
        assert [r.kind for r in usdc.transactions.supply] == ["in_others"]

    def test_direct_policy(self) -> None:
        service = PositionHistoryService(
            FakeSnapshots(), FakeBalances(), policy=ExtrapolationPolicy.DIRECT, clock=lambda: NOW
        )
        usdc = service.compute(ALICE, Version.V3).reserves[Token.USDC]
        assert len(usdc.supply) == 3
        assert usdc.supply[-1].period_interest == 500

    def test_failure_propagates(self) -> None:
        service = PositionHistoryService(FakeSnapshots({ALICE}), FakeBalances(), clock=lambda: NOW)
        with pytest.raises(ConnectionError):
            service.compute(ALICE, Version.V3)


class TestComputeMany:
    def test_partial_failure(self) -> None:
        service = PositionHistoryService(FakeSnapshots({BOB}), FakeBalances(), clock=lambda: NOW)
        results = service.compute_many([ALICE, BOB], Version.V3)
        assert [r.success for r in results] == [True, False]
        assert results[0].data.address == ALICE
        assert results[1].data is None
        assert "unreachable" in results[1].error

    def test_invalid_list_raises(self, service: PositionHistoryService) -> None:
        with pytest.raises(ValueError):
            service.compute_many(["nope"], Version.V3)

    def test_sample_provider_end_to_end(self) -> None:
        sample = SampleDataProvider(now=NOW)
        service = PositionHistoryService(sample, sample, sample, clock=lambda: NOW)
        (result,) = service.compute_many([ALICE], Version.V3)
        assert result.success
        usdc = result.data.reserves[Token.USDC]
        assert usdc.supply_summary.total_interest > 0
        assert usdc.debt_summary.total_interest > 0
        assert [r.kind for r in usdc.transactions.supply].count("in_others") == 1
