"""Abstract collaborator interfaces consumed by the interest pipeline."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from src.data.constants import ReserveKey, Token, Version
from src.interest.models import Snapshot


@dataclass(frozen=True)
class ProtocolTransaction:
    """A borrow, supply, withdraw or repay event indexed by the subgraph."""

    tx_hash: str
    token: Token
    kind: str  # borrow | repay | deposit | withdraw
    amount: int
    timestamp: int
    version: Version


@dataclass(frozen=True)
class TokenTransfer:
    """An aToken transfer reported by the block explorer."""

    tx_hash: str
    token: Token
    from_address: str
    to_address: str
    amount: int
    timestamp: int
    function_name: str = ""


@dataclass
class ProtocolTransactions:
    """Subgraph events for one user, grouped by kind."""

    borrows: list[ProtocolTransaction] = field(default_factory=list)
    supplies: list[ProtocolTransaction] = field(default_factory=list)
    withdraws: list[ProtocolTransaction] = field(default_factory=list)
    repays: list[ProtocolTransaction] = field(default_factory=list)

    @property
    def known_hashes(self) -> set[str]:
        """Hashes of supply-side events, used to dedupe explorer transfers."""
        return {tx.tx_hash.lower() for tx in self.supplies + self.withdraws}

    def __len__(self) -> int:
        return len(self.borrows) + len(self.supplies) + len(self.withdraws) + len(self.repays)


class SnapshotSource(ABC):
    """Indexed balance-history snapshots for a user."""

    @abstractmethod
    def fetch_snapshots(self, user_address: str, reserve: ReserveKey) -> list[Snapshot]:
        """All snapshots for one side of one reserve, in any order."""

    @abstractmethod
    def fetch_transactions(self, user_address: str, version: Version) -> ProtocolTransactions:
        """Borrow/supply/withdraw/repay events for a user."""


class TransferSource(ABC):
    """Token transfers of the supply tokens, outside of protocol events."""

    @abstractmethod
    def fetch_supply_transfers(
        self, user_address: str, version: Version
    ) -> dict[Token, list[TokenTransfer]]:
        """Raw transfers per token for the supply tokens of *version*."""


class BalanceReader(ABC):
    """Present-moment balance reads."""

    @abstractmethod
    def fetch_current_balance(self, token_address: str, user_address: str) -> int:
        """``balanceOf(user)`` on *token_address*, in raw token units."""
