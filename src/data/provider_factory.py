"""Factory for creating the data sources behind the dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.data.constants import Version
from src.data.interfaces import BalanceReader, SnapshotSource, TransferSource
from src.data.sample_provider import SampleDataProvider
from src.data.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSources:
    """The three collaborators a history computation needs."""

    snapshots: SnapshotSource
    transfers: TransferSource
    balances: BalanceReader
    live: bool


def _sample_sources() -> DataSources:
    sample = SampleDataProvider()
    return DataSources(snapshots=sample, transfers=sample, balances=sample, live=False)


def create_sources(settings: Settings, use_live: bool = True) -> DataSources:
    """Create live or sample data sources.

    Parameters
    ----------
    settings : Settings
        Endpoints, keys and cache settings.
    use_live : bool
        If True, build the subgraph, explorer and on-chain clients.

    Returns
    -------
    DataSources
        Live clients when requested and constructible, otherwise the
        deterministic sample provider.
    """
    if not use_live:
        return _sample_sources()

    if not settings.thegraph_api_key:
        logger.warning("Live data requested but THEGRAPH_API_KEY is not set; using sample data")
        return _sample_sources()

    try:
        from src.data.explorer_client import ExplorerClient
        from src.data.onchain_provider import OnChainBalanceReader
        from src.data.subgraph_client import SubgraphClient

        subgraph = SubgraphClient(
            urls={v: settings.subgraph_url(v) for v in Version},
            api_key=settings.thegraph_api_key,
            history_ttl=settings.cache_ttl,
        )
        explorer = ExplorerClient(
            api_url=settings.explorer_api_url,
            api_key=settings.explorer_api_key,
            delay=settings.explorer_delay,
        )
        reader = OnChainBalanceReader(rpc_url=settings.rpc_url, cache_ttl=settings.cache_ttl)
    except Exception:
        logger.warning("Failed to create live data sources; using sample data", exc_info=True)
        return _sample_sources()

    return DataSources(snapshots=subgraph, transfers=explorer, balances=reader, live=True)
