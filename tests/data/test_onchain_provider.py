"""Tests for OnChainBalanceReader: TTL cache and mocked web3 balance reads."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from src.data.constants import ReserveKey, Side, Token, Version
from src.data.contracts import reserve_token_address
from src.data.interfaces import BalanceReader
from src.data.onchain_provider import BalanceReadError, OnChainBalanceReader, _TTLCache

USER = "0x00000000000000000000000000000000000000aa"
USDC_SUPPLY = reserve_token_address(ReserveKey(Version.V3, Token.USDC, Side.SUPPLY))


# ======================================================================
# 1. TTL cache tests
# ======================================================================


class TestTTLCache:
    def test_set_and_get(self):
        cache = _TTLCache(ttl=60.0)
        cache.set("key", 42)
        assert cache.get("key") == 42

    def test_miss_returns_none(self):
        assert _TTLCache(ttl=60.0).get("missing") is None

    def test_expired_entry(self):
        cache = _TTLCache(ttl=0.0)
        cache.set("key", 1)
        with patch("src.data.onchain_provider.time.monotonic", return_value=1e12):
            assert cache.get("key") is None

    def test_clear(self):
        cache = _TTLCache(ttl=60.0)
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None


# ======================================================================
# 2. Mock-based reader tests
# ======================================================================


def _make_reader(balance=1_234_567, **kwargs) -> tuple[OnChainBalanceReader, MagicMock]:
    """Create a reader whose Web3 instance is a MagicMock."""
    mock_w3 = MagicMock()
    mock_w3.is_connected.return_value = True
    mock_w3.to_checksum_address = lambda addr: addr
    contract = MagicMock()
    if isinstance(balance, Exception):
        contract.functions.balanceOf.return_value.call.side_effect = balance
    else:
        contract.functions.balanceOf.return_value.call.return_value = balance
    mock_w3.eth.contract.return_value = contract

    with patch("web3.Web3") as web3_cls:
        web3_cls.return_value = mock_w3
        reader = OnChainBalanceReader(rpc_url="http://localhost:8545", **kwargs)
    return reader, contract


class TestOnChainBalanceReader:
    def test_is_balance_reader(self):
        reader, _ = _make_reader()
        assert isinstance(reader, BalanceReader)

    def test_fetch_current_balance(self):
        reader, contract = _make_reader(balance=10**30)
        assert reader.fetch_current_balance(USDC_SUPPLY, USER) == 10**30
        contract.functions.balanceOf.assert_called_once_with(USER)

    def test_cached_between_calls(self):
        reader, contract = _make_reader()
        reader.fetch_current_balance(USDC_SUPPLY, USER)
        reader.fetch_current_balance(USDC_SUPPLY, USER.upper().replace("0X", "0x"))
        assert contract.functions.balanceOf.return_value.call.call_count == 1

    def test_zero_balance_is_cached_value(self):
        reader, contract = _make_reader(balance=0)
        assert reader.fetch_current_balance(USDC_SUPPLY, USER) == 0

    def test_refresh_invalidates(self):
        reader, contract = _make_reader()
        reader.fetch_current_balance(USDC_SUPPLY, USER)
        reader.refresh()
        reader.fetch_current_balance(USDC_SUPPLY, USER)
        assert contract.functions.balanceOf.return_value.call.call_count == 2

    def test_rpc_failure_raises(self):
        reader, _ = _make_reader(balance=ConnectionError("boom"))
        with pytest.raises(BalanceReadError):
            reader.fetch_current_balance(USDC_SUPPLY, USER)

    @pytest.mark.parametrize("bad", [-1, "12", None])
    def test_unusable_result_raises(self, bad):
        reader, _ = _make_reader(balance=bad)
        with pytest.raises(BalanceReadError):
            reader.fetch_current_balance(USDC_SUPPLY, USER)

    def test_is_connected(self):
        reader, _ = _make_reader()
        assert reader.is_connected is True

    def test_is_connected_swallows_errors(self):
        reader, _ = _make_reader()
        reader._w3.is_connected.side_effect = OSError("down")
        assert reader.is_connected is False
