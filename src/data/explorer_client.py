"""Fetch supply-token transfers from the Gnosis block explorer (Etherscan V2 API)."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from src.data.constants import (
    EXPLORER_END_BLOCK,
    EXPLORER_START_BLOCKS,
    GNOSIS_CHAIN_ID,
    PAGE_SIZE,
    Token,
    Version,
)
from src.data.contracts import supply_token_addresses
from src.data.interfaces import TokenTransfer, TransferSource

logger = logging.getLogger(__name__)

_EMPTY_MESSAGES = ("no transactions found", "no record found")


class ExplorerError(RuntimeError):
    """The explorer API rejected the request or answered unexpectedly."""


def _is_empty_result(message: str) -> bool:
    lowered = message.lower()
    return any(m in lowered for m in _EMPTY_MESSAGES)


class ExplorerClient(TransferSource):
    """``account/tokentx`` client with page-level rate limiting.

    The free API tier allows two requests per second, so the client sleeps
    *delay* seconds between consecutive pages and between tokens.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        delay: float = 0.5,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._delay = delay
        self._session = session or requests.Session()
        self._timeout = timeout
        self._sleep = sleep

    def _get_page(self, params: dict[str, Any]) -> list[dict]:
        resp = self._session.get(self._api_url, params=params, timeout=self._timeout)
        resp.raise_for_status()
        data = resp.json()

        status = str(data.get("status", ""))
        if status == "1" and data.get("result") is not None:
            return list(data["result"])
        if status == "0":
            message = str(data.get("message") or "")
            result = data.get("result")
            if _is_empty_result(message) or (isinstance(result, str) and _is_empty_result(result)):
                return []
            if "rate limit" in message.lower() or (isinstance(result, str) and "rate limit" in result.lower()):
                raise ExplorerError(f"Explorer rate limit reached: {result or message}")
            if message:
                raise ExplorerError(f"Explorer API error: {message} ({result})")
        raise ExplorerError(f"Unexpected explorer response: {data}")

    def fetch_token_transactions(
        self,
        user_address: str,
        token_address: str,
        start_block: int,
        end_block: int = EXPLORER_END_BLOCK,
    ) -> list[dict]:
        """All ``tokentx`` rows for one token contract, oldest first."""
        rows: list[dict] = []
        page = 1
        while True:
            params: dict[str, Any] = {
                "chainid": str(GNOSIS_CHAIN_ID),
                "module": "account",
                "action": "tokentx",
                "address": user_address,
                "contractaddress": token_address,
                "startblock": str(start_block),
                "endblock": str(end_block),
                "sort": "asc",
                "page": str(page),
                "offset": str(PAGE_SIZE),
            }
            if self._api_key:
                params["apikey"] = self._api_key

            batch = self._get_page(params)
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                break
            page += 1
            logger.debug("tokentx %s: page %d, waiting %.2fs", token_address, page, self._delay)
            self._sleep(self._delay)

        if rows:
            logger.info("Fetched %d transfers for %s", len(rows), token_address)
        return rows

    def fetch_supply_transfers(
        self, user_address: str, version: Version
    ) -> dict[Token, list[TokenTransfer]]:
        """Transfers of every supply token of *version*.

        A failure on one token is logged and yields an empty list for that
        token, so the other token's history still reaches the dashboard.
        """
        start_block = EXPLORER_START_BLOCKS[version]
        tokens = supply_token_addresses(version)
        transfers: dict[Token, list[TokenTransfer]] = {}

        for i, (token, address) in enumerate(tokens.items()):
            if i > 0:
                self._sleep(self._delay)
            try:
                rows = self.fetch_token_transactions(user_address, address, start_block)
            except (requests.RequestException, ExplorerError):
                logger.warning(
                    "Explorer fetch failed for %s %s", version.value, token.value, exc_info=True
                )
                transfers[token] = []
                continue
            transfers[token] = [
                TokenTransfer(
                    tx_hash=row["hash"],
                    token=token,
                    from_address=row.get("from", ""),
                    to_address=row.get("to", ""),
                    amount=int(row.get("value") or 0),
                    timestamp=int(row["timeStamp"]),
                    function_name=row.get("functionName", "") or "",
                )
                for row in rows
            ]
        return transfers
