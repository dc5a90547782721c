"""Fetch RMM balance history and protocol events from The Graph subgraphs."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests

from src.data.constants import (
    PAGE_SIZE,
    SUBGRAPH_RESERVE_SYMBOLS,
    ReserveKey,
    Side,
    Version,
)
from src.data.interfaces import ProtocolTransaction, ProtocolTransactions, SnapshotSource
from src.interest.models import Snapshot

logger = logging.getLogger(__name__)


class SubgraphError(RuntimeError):
    """The subgraph answered with a GraphQL ``errors`` payload."""


# Balance-history entity and its raw/scaled fields, per side
_HISTORY_FIELDS: dict[Side, tuple[str, str, str]] = {
    Side.SUPPLY: ("atokenBalanceHistoryItems", "currentATokenBalance", "scaledATokenBalance"),
    Side.DEBT: ("vtokenBalanceHistoryItems", "currentVariableDebt", "scaledVariableDebt"),
}

_HISTORY_QUERY = """
query BalanceHistory($user: String!, $first: Int!, $skip: Int!) {{
  {entity}(
    where: {{ userReserve_: {{ user: $user }} }}
    orderBy: timestamp
    orderDirection: asc
    first: $first
    skip: $skip
  ) {{
    timestamp
    {raw_field}
    {scaled_field}
    index
    userReserve {{
      reserve {{ symbol decimals }}
    }}
  }}
}}
"""

# Result alias -> subgraph entity
_EVENT_ENTITIES: dict[str, str] = {
    "borrows": "borrows",
    "supplies": "supplies",
    "withdraws": "redeemUnderlyings",
    "repays": "repays",
}

_EVENT_KINDS: dict[str, str] = {
    "borrows": "borrow",
    "supplies": "deposit",
    "withdraws": "withdraw",
    "repays": "repay",
}


def extract_tx_hash(event_id: str | None) -> str | None:
    """Transaction hash embedded in a subgraph event id.

    Ids look like ``"32350433:4:0x4d1c...e6:14:14"``; the hash is the third
    ``:``-separated field.
    """
    if not event_id or not isinstance(event_id, str):
        return None
    parts = event_id.split(":")
    if len(parts) >= 3:
        return parts[2]
    return None


def build_events_query(kinds: list[str]) -> str:
    """GraphQL query fetching only the event *kinds* still being paginated."""
    if not kinds:
        raise ValueError("No transaction kind to fetch")

    variables = ["$userAddress: String!", "$first: Int!"]
    parts: list[str] = []
    for kind in kinds:
        skip_var = f"skip{kind[0].upper()}{kind[1:]}"
        variables.append(f"${skip_var}: Int!")
        parts.append(
            f"""
  {kind}: {_EVENT_ENTITIES[kind]}(
    first: $first
    skip: ${skip_var}
    where: {{ user_: {{ id: $userAddress }} }}
    orderBy: timestamp
    orderDirection: asc
  ) {{
    id
    reserve {{ id symbol decimals }}
    amount
    timestamp
  }}"""
        )

    return "query GetTransactions(\n  " + "\n  ".join(variables) + "\n) {" + "".join(parts) + "\n}"


class SubgraphClient(SnapshotSource):
    """GraphQL client for the RMM V2 and V3 subgraphs.

    Parameters
    ----------
    urls : dict[Version, str]
        GraphQL endpoint per protocol version.
    api_key : str
        The Graph gateway key, sent as a Bearer token when non-empty.
    session : requests.Session | None
        HTTP session to use; one is created when omitted.
    timeout : float
        Per-request timeout in seconds.
    history_ttl : float
        Seconds a downloaded balance history is reused.  The history of one
        side covers every reserve, so the per-token reads of a single
        computation share one download.
    """

    def __init__(
        self,
        urls: dict[Version, str],
        api_key: str = "",
        session: requests.Session | None = None,
        timeout: float = 30.0,
        history_ttl: float = 60.0,
    ) -> None:
        self._urls = dict(urls)
        self._session = session or requests.Session()
        self._timeout = timeout
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._history_ttl = history_ttl
        self._history: dict[tuple[str, Version, Side], tuple[float, list[dict]]] = {}
        self._history_locks: dict[tuple[str, Version, Side], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def query(self, version: Version, query: str, variables: dict | None = None) -> dict:
        """Execute a GraphQL query against the subgraph of *version*."""
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        resp = self._session.post(
            self._urls[version],
            json=payload,
            headers=self._headers,
            timeout=self._timeout,
        )
        resp.raise_for_status()
        data = resp.json()

        if "errors" in data:
            raise SubgraphError(f"Subgraph query error: {data['errors']}")

        return data["data"]

    # ------------------------------------------------------------------
    # Balance history
    # ------------------------------------------------------------------

    def fetch_balance_history(self, user_address: str, version: Version, side: Side) -> list[dict]:
        """Every balance-history item of *side* for the user, all reserves."""
        entity, raw_field, scaled_field = _HISTORY_FIELDS[side]
        query = _HISTORY_QUERY.format(entity=entity, raw_field=raw_field, scaled_field=scaled_field)

        items: list[dict] = []
        skip = 0
        while True:
            data = self.query(
                version,
                query,
                {"user": user_address.lower(), "first": PAGE_SIZE, "skip": skip},
            )
            page = data.get(entity) or []
            items.extend(page)
            if len(page) < PAGE_SIZE:
                break
            skip += PAGE_SIZE
            logger.debug("%s %s: next page skip=%d", version.value, entity, skip)

        logger.info(
            "Fetched %d %s items for %s on %s", len(items), entity, user_address, version.value
        )
        return items

    def cached_balance_history(self, user_address: str, version: Version, side: Side) -> list[dict]:
        """:meth:`fetch_balance_history`, shared while younger than ``history_ttl``.

        Concurrent callers for the same key wait for a single download.  A
        failed download is not cached.
        """
        key = (user_address.lower(), version, side)
        with self._locks_guard:
            lock = self._history_locks.setdefault(key, threading.Lock())
        with lock:
            entry = self._history.get(key)
            if entry is not None and time.monotonic() - entry[0] <= self._history_ttl:
                return entry[1]
            items = self.fetch_balance_history(user_address, version, side)
            self._history[key] = (time.monotonic(), items)
            return items

    def clear_cache(self) -> None:
        """Drop every cached balance history."""
        with self._locks_guard:
            self._history.clear()

    def fetch_snapshots(self, user_address: str, reserve: ReserveKey) -> list[Snapshot]:
        _, raw_field, scaled_field = _HISTORY_FIELDS[reserve.side]
        history = self.cached_balance_history(user_address, reserve.version, reserve.side)

        snapshots: list[Snapshot] = []
        for item in history:
            symbol = ((item.get("userReserve") or {}).get("reserve") or {}).get("symbol")
            if symbol != reserve.subgraph_symbol:
                continue
            snapshots.append(
                Snapshot.from_raw(
                    {
                        "timestamp": item.get("timestamp"),
                        "rawBalance": item.get(raw_field),
                        "scaledBalance": item.get(scaled_field),
                        "index": item.get("index"),
                    }
                )
            )
        return snapshots

    # ------------------------------------------------------------------
    # Protocol events
    # ------------------------------------------------------------------

    def fetch_transactions(self, user_address: str, version: Version) -> ProtocolTransactions:
        """Borrow/supply/withdraw/repay events, each kind paginated on its own."""
        symbols = {
            symbol: token
            for (v, token), symbol in SUBGRAPH_RESERVE_SYMBOLS.items()
            if v == version
        }
        result = ProtocolTransactions()
        skip = {kind: 0 for kind in _EVENT_ENTITIES}
        pending = list(_EVENT_ENTITIES)
        batch = 0

        while pending:
            batch += 1
            variables: dict[str, Any] = {"userAddress": user_address.lower(), "first": PAGE_SIZE}
            for kind in pending:
                variables[f"skip{kind[0].upper()}{kind[1:]}"] = skip[kind]

            data = self.query(version, build_events_query(pending), variables)

            still_pending: list[str] = []
            for kind in pending:
                page = data.get(kind) or []
                bucket: list[ProtocolTransaction] = getattr(result, kind)
                for raw in page:
                    token = symbols.get((raw.get("reserve") or {}).get("symbol"))
                    tx_hash = extract_tx_hash(raw.get("id"))
                    if token is None or tx_hash is None:
                        continue
                    bucket.append(
                        ProtocolTransaction(
                            tx_hash=tx_hash,
                            token=token,
                            kind=_EVENT_KINDS[kind],
                            amount=int(raw["amount"]),
                            timestamp=int(raw["timestamp"]),
                            version=version,
                        )
                    )
                if len(page) < PAGE_SIZE:
                    continue
                skip[kind] += PAGE_SIZE
                still_pending.append(kind)

            logger.debug("Transactions batch #%d, still paginating: %s", batch, still_pending)
            pending = still_pending

        logger.info(
            "Fetched %d %s transactions for %s", len(result), version.value, user_address
        )
        return result
