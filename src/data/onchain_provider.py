"""On-chain balance reader fetching live RMM token balances via web3.py."""

from __future__ import annotations

import logging
import time
from typing import Any

from src.data.contracts import ERC20_BALANCE_ABI
from src.data.interfaces import BalanceReader

logger = logging.getLogger(__name__)


class BalanceReadError(RuntimeError):
    """A ``balanceOf`` call failed or returned something unusable."""


# ---------------------------------------------------------------------------
# TTL cache
# ---------------------------------------------------------------------------

class _TTLCache:
    """Simple dict-based cache with per-entry TTL expiry."""

    def __init__(self, ttl: float) -> None:
        self._ttl = ttl
        self._store: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        ts, value = entry
        if time.monotonic() - ts > self._ttl:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = (time.monotonic(), value)

    def clear(self) -> None:
        self._store.clear()


# ---------------------------------------------------------------------------
# OnChainBalanceReader
# ---------------------------------------------------------------------------

class OnChainBalanceReader(BalanceReader):
    """Reads aToken and debt-token balances from a Gnosis RPC endpoint.

    Parameters
    ----------
    rpc_url : str
        Gnosis JSON-RPC endpoint URL.
    cache_ttl : float
        Seconds before a cached balance expires (default 60).
    """

    def __init__(self, rpc_url: str, cache_ttl: float = 60.0) -> None:
        from web3 import Web3

        self._w3 = Web3(Web3.HTTPProvider(rpc_url))
        self._cache = _TTLCache(cache_ttl)
        self._contracts: dict[str, Any] = {}

    def _contract(self, token_address: str) -> Any:
        checksum = self._w3.to_checksum_address(token_address)
        contract = self._contracts.get(checksum)
        if contract is None:
            contract = self._w3.eth.contract(address=checksum, abi=ERC20_BALANCE_ABI)
            self._contracts[checksum] = contract
        return contract

    def fetch_current_balance(self, token_address: str, user_address: str) -> int:
        cache_key = f"balance:{token_address.lower()}:{user_address.lower()}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            raw = self._contract(token_address).functions.balanceOf(
                self._w3.to_checksum_address(user_address),
            ).call()
        except Exception as exc:
            logger.warning(
                "balanceOf failed for token=%s user=%s", token_address, user_address, exc_info=True
            )
            raise BalanceReadError(f"balanceOf failed for {token_address}") from exc

        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            raise BalanceReadError(f"Unexpected balanceOf result {raw!r} for {token_address}")

        self._cache.set(cache_key, raw)
        return raw

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Invalidate all cached balances, forcing fresh RPC calls."""
        self._cache.clear()

    @property
    def is_connected(self) -> bool:
        """Check if the Web3 provider is connected."""
        try:
            return self._w3.is_connected()
        except Exception:
            return False
