"""Tests for ExplorerClient: tokentx pagination, rate limiting and status handling."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from src.data.constants import Token, Version
from src.data.contracts import supply_token_addresses
from src.data.explorer_client import ExplorerClient, ExplorerError

USER = "0x00000000000000000000000000000000000000aa"
API = "https://api.example.test/v2/api"


def _response(payload: dict) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    return resp


def _row(tx_hash: str, value: str = "100", ts: str = "1700000000") -> dict:
    return {
        "hash": tx_hash,
        "from": "0x00000000000000000000000000000000000000bb",
        "to": USER,
        "value": value,
        "timeStamp": ts,
        "functionName": "transfer(address to,uint256 amount)",
    }


def _client(*payloads: dict) -> tuple[ExplorerClient, MagicMock, MagicMock]:
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = [_response(p) for p in payloads]
    sleep = MagicMock()
    client = ExplorerClient(API, api_key="k", delay=0.5, session=session, sleep=sleep)
    return client, session, sleep


class TestStatusHandling:
    def test_ok(self) -> None:
        client, session, _ = _client({"status": "1", "message": "OK", "result": [_row("0x1")]})
        rows = client.fetch_token_transactions(USER, "0xtoken", 32_074_665)
        assert rows == [_row("0x1")]
        params = session.get.call_args.kwargs["params"]
        assert params["chainid"] == "100"
        assert params["action"] == "tokentx"
        assert params["startblock"] == "32074665"
        assert params["apikey"] == "k"

    @pytest.mark.parametrize(
        "payload",
        [
            {"status": "0", "message": "No transactions found", "result": []},
            {"status": "0", "message": "NOTOK", "result": "No record found"},
        ],
    )
    def test_empty_results(self, payload: dict) -> None:
        client, _, _ = _client(payload)
        assert client.fetch_token_transactions(USER, "0xtoken", 1) == []

    def test_rate_limit_raises(self) -> None:
        client, _, _ = _client(
            {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"}
        )
        with pytest.raises(ExplorerError, match="rate limit"):
            client.fetch_token_transactions(USER, "0xtoken", 1)

    def test_other_error_raises(self) -> None:
        client, _, _ = _client({"status": "0", "message": "NOTOK", "result": "Invalid API Key"})
        with pytest.raises(ExplorerError, match="Invalid API Key"):
            client.fetch_token_transactions(USER, "0xtoken", 1)

    def test_unexpected_payload_raises(self) -> None:
        client, _, _ = _client({"foo": "bar"})
        with pytest.raises(ExplorerError):
            client.fetch_token_transactions(USER, "0xtoken", 1)


class TestPagination:
    def test_pages_until_short_page_with_delay(self) -> None:
        with patch("src.data.explorer_client.PAGE_SIZE", 2):
            client, session, sleep = _client(
                {"status": "1", "message": "OK", "result": [_row("0x1"), _row("0x2")]},
                {"status": "1", "message": "OK", "result": [_row("0x3")]},
            )
            rows = client.fetch_token_transactions(USER, "0xtoken", 1)
        assert [r["hash"] for r in rows] == ["0x1", "0x2", "0x3"]
        assert [c.kwargs["params"]["page"] for c in session.get.call_args_list] == ["1", "2"]
        sleep.assert_called_once_with(0.5)


class TestFetchSupplyTransfers:
    def test_v3_fetches_both_tokens(self) -> None:
        client, session, sleep = _client(
            {"status": "1", "message": "OK", "result": [_row("0xa", value="250")]},
            {"status": "0", "message": "No transactions found", "result": []},
        )
        transfers = client.fetch_supply_transfers(USER, Version.V3)
        assert set(transfers) == {Token.USDC, Token.WXDAI}
        usdc = transfers[Token.USDC][0]
        assert usdc.amount == 250
        assert usdc.timestamp == 1_700_000_000
        assert usdc.to_address == USER
        assert transfers[Token.WXDAI] == []
        contracts = [c.kwargs["params"]["contractaddress"] for c in session.get.call_args_list]
        assert contracts == list(supply_token_addresses(Version.V3).values())
        # one pause between the two tokens
        sleep.assert_called_once_with(0.5)

    def test_v2_uses_v2_start_block(self) -> None:
        client, session, _ = _client({"status": "1", "message": "OK", "result": []})
        transfers = client.fetch_supply_transfers(USER, Version.V2)
        assert list(transfers) == [Token.WXDAI]
        assert session.get.call_args.kwargs["params"]["startblock"] == "20206607"

    def test_token_failure_yields_empty_list(self) -> None:
        client, _, _ = _client(
            {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"},
            {"status": "1", "message": "OK", "result": [_row("0xb")]},
        )
        transfers = client.fetch_supply_transfers(USER, Version.V3)
        assert transfers[Token.USDC] == []
        assert len(transfers[Token.WXDAI]) == 1
