"""Normalize subgraph events and explorer transfers into per-token ledgers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.data.constants import VERSION_TOKENS, Token, Version
from src.data.contracts import ZERO_ADDRESS
from src.data.interfaces import ProtocolTransaction, ProtocolTransactions, TokenTransfer

logger = logging.getLogger(__name__)

# Mints carrying this function name are user supplies routed through a helper
SUPPLY_FUNCTION = "supply(address asset,uint256 amount,address onBehalfOf,uint16 referralCode)"
DISPERSE_FUNCTION = "disperseToken(address token, address[] recipients, uint256[] values)"


@dataclass(frozen=True)
class TransactionRow:
    """One line of the transactions table."""

    tx_hash: str
    kind: str
    amount: int
    timestamp: int
    token: Token
    version: Version

    def to_dict(self) -> dict:
        return {
            "txHash": self.tx_hash,
            "type": self.kind,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
            "token": self.token.value,
            "version": self.version.value,
        }


@dataclass
class TokenLedger:
    """Debt-side and supply-side rows of one token."""

    debt: list[TransactionRow] = field(default_factory=list)
    supply: list[TransactionRow] = field(default_factory=list)

    def all_rows(self) -> list[TransactionRow]:
        return sorted(self.debt + self.supply, key=lambda r: r.timestamp)


def clean_transfers(
    transfers: list[TokenTransfer],
    known_hashes: set[str],
    hash_filter: str | None = None,
) -> list[TokenTransfer]:
    """Drop transfers the subgraph already explains.

    Mints and burns are the protocol's own supply/withdraw bookkeeping and
    are excluded, except mints issued by ``supply(...)`` on behalf of the
    user.  Transfers whose hash is already a subgraph supply or withdraw
    are excluded as duplicates.  *hash_filter* keeps a single transaction
    and is applied before the other rules.
    """
    kept: list[TokenTransfer] = []
    for tx in transfers:
        if hash_filter and tx.tx_hash.lower() != hash_filter.lower():
            continue
        is_mint_or_burn = ZERO_ADDRESS in (tx.from_address.lower(), tx.to_address.lower())
        if is_mint_or_burn and tx.function_name != SUPPLY_FUNCTION:
            continue
        if tx.tx_hash.lower() in known_hashes:
            continue
        kept.append(tx)
    return kept


def transfer_kind(tx: TokenTransfer, user_address: str) -> str:
    """``in_others``, ``out_others``, ``ronday`` or ``unknown``."""
    user = user_address.lower()
    if tx.to_address.lower() == user:
        if DISPERSE_FUNCTION in (tx.function_name or ""):
            return "ronday"
        return "in_others"
    if tx.from_address.lower() == user:
        return "out_others"
    return "unknown"


def _row(tx: ProtocolTransaction) -> TransactionRow:
    return TransactionRow(
        tx_hash=tx.tx_hash,
        kind=tx.kind,
        amount=tx.amount,
        timestamp=tx.timestamp,
        token=tx.token,
        version=tx.version,
    )


def build_ledgers(
    user_address: str,
    version: Version,
    events: ProtocolTransactions,
    transfers: dict[Token, list[TokenTransfer]] | None = None,
) -> dict[Token, TokenLedger]:
    """Per-token ledgers for one user on one deployment.

    Borrows and repays go to ``debt``; deposits, withdrawals and the
    cleaned explorer transfers go to ``supply``.  Both lists are sorted by
    timestamp.
    """
    ledgers = {token: TokenLedger() for token in VERSION_TOKENS[version]}

    for tx in events.borrows + events.repays:
        if tx.token in ledgers:
            ledgers[tx.token].debt.append(_row(tx))
    for tx in events.supplies + events.withdraws:
        if tx.token in ledgers:
            ledgers[tx.token].supply.append(_row(tx))

    known = events.known_hashes
    for token, raw in (transfers or {}).items():
        if token not in ledgers:
            continue
        for tx in clean_transfers(raw, known):
            kind = transfer_kind(tx, user_address)
            if kind == "unknown":
                logger.debug("Skipping transfer %s unrelated to %s", tx.tx_hash, user_address)
                continue
            ledgers[token].supply.append(
                TransactionRow(
                    tx_hash=tx.tx_hash,
                    kind=kind,
                    amount=tx.amount,
                    timestamp=tx.timestamp,
                    token=token,
                    version=version,
                )
            )

    for ledger in ledgers.values():
        ledger.debt.sort(key=lambda r: r.timestamp)
        ledger.supply.sort(key=lambda r: r.timestamp)

    logger.debug(
        "Ledgers for %s: %s",
        user_address,
        {t.value: (len(l.debt), len(l.supply)) for t, l in ledgers.items()},
    )
    return ledgers
