"""Per-address interest history: fetch, reconstruct, extend and summarize."""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable

from src.data.constants import VERSION_TOKENS, ReserveKey, Side, Token, Version
from src.data.contracts import reserve_token_address
from src.data.interfaces import BalanceReader, SnapshotSource, TransferSource
from src.interest.engine import compute_series
from src.interest.extrapolation import ExtrapolationPolicy, extend_to_now
from src.interest.models import SIDE_CONFIGS, Series
from src.interest.statement import SeriesSummary, StatementRow, daily_statement, summarize
from src.position.transactions import TokenLedger, build_ledgers

logger = logging.getLogger(__name__)

MAX_ADDRESSES = 3
_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(address: str) -> bool:
    return bool(_ADDRESS_RE.match(address or ""))


def validate_addresses(addresses: Iterable[str]) -> list[str]:
    """Strip, check and de-duplicate user addresses (order kept).

    Raises:
        ValueError: No address, more than ``MAX_ADDRESSES``, or a malformed one.
    """
    cleaned: list[str] = []
    for raw in addresses:
        address = raw.strip()
        if not address:
            continue
        if not is_valid_address(address):
            raise ValueError(f"Invalid address: {address!r}")
        if address.lower() not in (a.lower() for a in cleaned):
            cleaned.append(address)
    if not cleaned:
        raise ValueError("At least one address is required")
    if len(cleaned) > MAX_ADDRESSES:
        raise ValueError(f"At most {MAX_ADDRESSES} addresses are supported, got {len(cleaned)}")
    return cleaned


@dataclass(frozen=True)
class ReserveHistory:
    """Both sides of one reserve for one address."""

    token: Token
    debt: Series
    supply: Series
    debt_summary: SeriesSummary
    supply_summary: SeriesSummary
    statement: list[StatementRow]
    transactions: TokenLedger = field(default_factory=TokenLedger)

    @property
    def net_interest(self) -> int:
        return self.supply_summary.total_interest - self.debt_summary.total_interest


@dataclass(frozen=True)
class AddressHistory:
    address: str
    version: Version
    reserves: dict[Token, ReserveHistory]
    computed_at: int


@dataclass(frozen=True)
class AddressResult:
    """Outcome for one address of a multi-address request."""

    address: str
    success: bool
    data: AddressHistory | None = None
    error: str | None = None


class PositionHistoryService:
    """Builds :class:`AddressHistory` objects from injected data sources.

    Parameters
    ----------
    snapshots : SnapshotSource
        Balance-history snapshots and protocol events.
    balances : BalanceReader
        Present-moment ``balanceOf`` reads used to extend series to now.
    transfers : TransferSource | None
        Explorer transfers merged into the supply ledgers; skipped when None.
    policy : ExtrapolationPolicy
        How series are extended to the present moment.
    clock : Callable[[], float]
        Source of "now" in Unix seconds.
    """

    def __init__(
        self,
        snapshots: SnapshotSource,
        balances: BalanceReader,
        transfers: TransferSource | None = None,
        policy: ExtrapolationPolicy = ExtrapolationPolicy.INTERPOLATED,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._snapshots = snapshots
        self._balances = balances
        self._transfers = transfers
        self._policy = policy
        self._clock = clock

    @property
    def policy(self) -> ExtrapolationPolicy:
        return self._policy

    def side_series(self, address: str, key: ReserveKey, now: int) -> Series:
        """Reconstructed series of one reserve side, extended to *now*."""
        config = SIDE_CONFIGS[key.side]
        series = compute_series(self._snapshots.fetch_snapshots(address, key), config)
        if not series:
            return series
        balance = self._balances.fetch_current_balance(reserve_token_address(key), address)
        return extend_to_now(series, balance, config, self._policy, now)

    def compute(
        self,
        address: str,
        version: Version,
        tokens: Iterable[Token] | None = None,
    ) -> AddressHistory:
        """Full history of *address* on *version*.

        Supply and debt sides are fetched concurrently and joined before
        the statement is built.  Any fetch failure propagates.
        """
        listed = VERSION_TOKENS[version]
        selected = [t for t in (listed if tokens is None else tokens) if t in listed]
        now = int(self._clock())

        keys = [ReserveKey(version, token, side) for token in selected for side in Side]
        with ThreadPoolExecutor(max_workers=max(1, len(keys))) as pool:
            futures = {key: pool.submit(self.side_series, address, key, now) for key in keys}
            series = {key: future.result() for key, future in futures.items()}

        events = self._snapshots.fetch_transactions(address, version)
        transfers = (
            self._transfers.fetch_supply_transfers(address, version) if self._transfers else None
        )
        ledgers = build_ledgers(address, version, events, transfers)

        reserves: dict[Token, ReserveHistory] = {}
        for token in selected:
            debt = series[ReserveKey(version, token, Side.DEBT)]
            supply = series[ReserveKey(version, token, Side.SUPPLY)]
            reserves[token] = ReserveHistory(
                token=token,
                debt=debt,
                supply=supply,
                debt_summary=summarize(debt, SIDE_CONFIGS[Side.DEBT]),
                supply_summary=summarize(supply, SIDE_CONFIGS[Side.SUPPLY]),
                statement=daily_statement(debt, supply),
                transactions=ledgers.get(token, TokenLedger()),
            )

        logger.info(
            "History for %s on %s: %s",
            address,
            version.value,
            {t.value: (len(r.supply), len(r.debt)) for t, r in reserves.items()},
        )
        return AddressHistory(address=address, version=version, reserves=reserves, computed_at=now)

    def compute_many(
        self,
        addresses: Iterable[str],
        version: Version,
        tokens: Iterable[Token] | None = None,
    ) -> list[AddressResult]:
        """Compute every address independently; one failure never aborts the rest.

        Raises:
            ValueError: When the address list itself is invalid.
        """
        selected = list(tokens) if tokens is not None else None
        results: list[AddressResult] = []
        for address in validate_addresses(addresses):
            try:
                history = self.compute(address, version, selected)
            except Exception as exc:
                logger.warning("History failed for %s", address, exc_info=True)
                results.append(AddressResult(address=address, success=False, error=str(exc)))
                continue
            results.append(AddressResult(address=address, success=True, data=history))
        return results
