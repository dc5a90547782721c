"""Deterministic offline data so the dashboard runs without API keys."""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass

from src.data.constants import (
    RAY,
    SECONDS_PER_DAY,
    TOKEN_DECIMALS,
    VERSION_TOKENS,
    ReserveKey,
    Side,
    Token,
    Version,
)
from src.data.contracts import RESERVE_TOKEN_ADDRESSES, ZERO_ADDRESS
from src.data.interfaces import (
    BalanceReader,
    ProtocolTransaction,
    ProtocolTransactions,
    SnapshotSource,
    TokenTransfer,
    TransferSource,
)
from src.interest.models import Snapshot

_YEAR = 365 * SECONDS_PER_DAY
_SAMPLE_COUNTERPARTY = "0x1111111111111111111111111111111111111111"


@dataclass(frozen=True)
class _Action:
    day: int
    kind: str  # deposit | withdraw | borrow | repay | transfer_in
    units: int  # whole tokens


# Annual rates in basis points, applied linearly to the index
_RATES_BPS: dict[Side, int] = {
    Side.SUPPLY: 400,
    Side.DEBT: 700,
}

_PROFILES: dict[tuple[Token, Side], tuple[_Action, ...]] = {
    (Token.USDC, Side.SUPPLY): (
        _Action(0, "deposit", 10_000),
        _Action(30, "deposit", 5_000),
        _Action(45, "transfer_in", 500),
        _Action(75, "withdraw", 3_000),
    ),
    (Token.USDC, Side.DEBT): (
        _Action(5, "borrow", 4_000),
        _Action(60, "repay", 1_000),
    ),
    (Token.WXDAI, Side.SUPPLY): (
        _Action(2, "deposit", 20_000),
        _Action(50, "withdraw", 2_500),
    ),
    (Token.WXDAI, Side.DEBT): (
        _Action(10, "borrow", 6_000),
        _Action(90, "borrow", 2_000),
    ),
}

_INCREASES = {"deposit", "borrow", "transfer_in"}


def _sample_hash(*parts: object) -> str:
    digest = hashlib.sha256(":".join(str(p) for p in parts).encode()).hexdigest()
    return "0x" + digest


class SampleDataProvider(SnapshotSource, TransferSource, BalanceReader):
    """Synthetic RMM history shared by every address.

    The history starts *days* days before the current UTC day and every
    action lands at noon, so the output only depends on *now*.
    """

    def __init__(self, days: int = 120, now: int | None = None) -> None:
        self._now = int(time.time()) if now is None else now
        today = self._now - self._now % SECONDS_PER_DAY
        self._start = today - days * SECONDS_PER_DAY
        self._addresses = {
            address.lower(): key for key, address in RESERVE_TOKEN_ADDRESSES.items()
        }

    def _index_at(self, side: Side, timestamp: int) -> int:
        elapsed = max(0, timestamp - self._start)
        return RAY + RAY * _RATES_BPS[side] * elapsed // (10_000 * _YEAR)

    def _action_time(self, action: _Action) -> int:
        return self._start + action.day * SECONDS_PER_DAY + SECONDS_PER_DAY // 2

    def _actions(self, token: Token, side: Side) -> tuple[_Action, ...]:
        return tuple(a for a in _PROFILES[(token, side)] if self._action_time(a) <= self._now)

    def _replay(self, token: Token, side: Side) -> list[Snapshot]:
        unit = 10 ** TOKEN_DECIMALS[token]
        scaled = 0
        snapshots: list[Snapshot] = []
        for action in self._actions(token, side):
            ts = self._action_time(action)
            index = self._index_at(side, ts)
            delta = action.units * unit * RAY // index
            scaled = scaled + delta if action.kind in _INCREASES else max(0, scaled - delta)
            snapshots.append(
                Snapshot(
                    timestamp=ts,
                    raw_balance=scaled * index // RAY,
                    scaled_balance=scaled,
                    index=index,
                )
            )
        return snapshots

    # ------------------------------------------------------------------
    # SnapshotSource
    # ------------------------------------------------------------------

    def fetch_snapshots(self, user_address: str, reserve: ReserveKey) -> list[Snapshot]:
        return self._replay(reserve.token, reserve.side)

    def fetch_transactions(self, user_address: str, version: Version) -> ProtocolTransactions:
        result = ProtocolTransactions()
        buckets = {
            "borrow": result.borrows,
            "deposit": result.supplies,
            "withdraw": result.withdraws,
            "repay": result.repays,
        }
        unit_of = {token: 10 ** TOKEN_DECIMALS[token] for token in Token}
        for token in VERSION_TOKENS[version]:
            for side in Side:
                for action in self._actions(token, side):
                    if action.kind not in buckets:
                        continue
                    buckets[action.kind].append(
                        ProtocolTransaction(
                            tx_hash=_sample_hash(version.value, token.value, action.day, action.kind),
                            token=token,
                            kind=action.kind,
                            amount=action.units * unit_of[token],
                            timestamp=self._action_time(action),
                            version=version,
                        )
                    )
        return result

    # ------------------------------------------------------------------
    # TransferSource
    # ------------------------------------------------------------------

    def fetch_supply_transfers(
        self, user_address: str, version: Version
    ) -> dict[Token, list[TokenTransfer]]:
        transfers: dict[Token, list[TokenTransfer]] = {}
        for token in VERSION_TOKENS[version]:
            unit = 10 ** TOKEN_DECIMALS[token]
            rows: list[TokenTransfer] = []
            for action in self._actions(token, Side.SUPPLY):
                kind = action.kind
                tx_hash = _sample_hash(version.value, token.value, action.day, kind)
                if kind == "transfer_in":
                    sender, receiver = _SAMPLE_COUNTERPARTY, user_address
                elif kind == "deposit":
                    sender, receiver = ZERO_ADDRESS, user_address
                else:
                    sender, receiver = user_address, ZERO_ADDRESS
                rows.append(
                    TokenTransfer(
                        tx_hash=tx_hash,
                        token=token,
                        from_address=sender,
                        to_address=receiver,
                        amount=action.units * unit,
                        timestamp=self._action_time(action),
                    )
                )
            transfers[token] = rows
        return transfers

    # ------------------------------------------------------------------
    # BalanceReader
    # ------------------------------------------------------------------

    def fetch_current_balance(self, token_address: str, user_address: str) -> int:
        key = self._addresses.get(token_address.lower())
        if key is None:
            raise ValueError(f"Unknown RMM token address: {token_address}")
        _, token, side = key
        snapshots = self._replay(token, side)
        if not snapshots:
            return 0
        return snapshots[-1].scaled_balance * self._index_at(side, self._now) // RAY
