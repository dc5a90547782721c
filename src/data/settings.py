"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from src.data.constants import DEFAULT_GNOSIS_RPC_URL, Version
from src.interest.extrapolation import ExtrapolationPolicy

logger = logging.getLogger(__name__)

# RealToken RMM subgraphs on The Graph decentralized network
SUBGRAPH_IDS: dict[Version, str] = {
    Version.V2: "GLPJ8va2UbjoTpcQQwG8FXQYYQChYZWczuDubsQfzR7K",
    Version.V3: "QmVH7ota6caVV2ceLY91KYYh6BJs2zeMScTTYgKDpt7VRg",
}

EXPLORER_API_URL = "https://api.etherscan.io/v2/api"


def _default_subgraph_url(version: Version) -> str:
    return f"https://gateway.thegraph.com/api/subgraphs/id/{SUBGRAPH_IDS[version]}"


@dataclass(frozen=True)
class Settings:
    """Everything configurable about a dashboard process.

    Attributes:
        thegraph_api_key: Bearer token for The Graph gateway.
        subgraph_urls: GraphQL endpoint per protocol version.
        explorer_api_key: Etherscan V2 API key (Gnosis chain id 100).
        explorer_api_url: Etherscan V2 endpoint.
        explorer_delay: Seconds to wait between explorer pages (2 req/s cap).
        rpc_url: Gnosis JSON-RPC endpoint for balanceOf reads.
        cache_ttl: Seconds a balance read stays cached.
        extrapolation_policy: How the series is extended to "now".
        log_level: Root logging level name.
    """

    thegraph_api_key: str = ""
    subgraph_urls: Mapping[Version, str] | None = None
    explorer_api_key: str = ""
    explorer_api_url: str = EXPLORER_API_URL
    explorer_delay: float = 0.5
    rpc_url: str = DEFAULT_GNOSIS_RPC_URL
    cache_ttl: float = 60.0
    extrapolation_policy: ExtrapolationPolicy = ExtrapolationPolicy.INTERPOLATED
    log_level: str = "INFO"

    def subgraph_url(self, version: Version) -> str:
        if self.subgraph_urls and version in self.subgraph_urls:
            return self.subgraph_urls[version]
        return _default_subgraph_url(version)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Unknown extrapolation policies are rejected rather than silently
        replaced, since they change reported figures.
        """
        env = os.environ if environ is None else environ

        policy_name = env.get("RMM_EXTRAPOLATION_POLICY", "").strip().lower()
        try:
            policy = ExtrapolationPolicy(policy_name) if policy_name else ExtrapolationPolicy.INTERPOLATED
        except ValueError as exc:
            raise ValueError(
                f"RMM_EXTRAPOLATION_POLICY must be one of "
                f"{[p.value for p in ExtrapolationPolicy]}, got {policy_name!r}"
            ) from exc

        return cls(
            thegraph_api_key=env.get("THEGRAPH_API_KEY") or env.get("NEXT_PUBLIC_THEGRAPH_API_KEY", ""),
            subgraph_urls={
                Version.V2: env.get("RMM_SUBGRAPH_URL_V2") or _default_subgraph_url(Version.V2),
                Version.V3: env.get("RMM_SUBGRAPH_URL_V3") or _default_subgraph_url(Version.V3),
            },
            explorer_api_key=env.get("GNOSISSCAN_API_KEY", ""),
            explorer_delay=float(env.get("RMM_EXPLORER_DELAY", "0.5")),
            rpc_url=env.get("GNOSIS_RPC_URL") or DEFAULT_GNOSIS_RPC_URL,
            cache_ttl=float(env.get("RMM_CACHE_TTL", "60")),
            extrapolation_policy=policy,
            log_level=env.get("RMM_LOG_LEVEL", "INFO").upper(),
        )


def load_env_file(path: Path) -> None:
    """Load ``KEY=VALUE`` lines into ``os.environ`` without overriding."""
    if not path.exists():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, _, value = line.partition("=")
            os.environ.setdefault(key.strip(), value.strip())
    logger.debug("Loaded environment from %s", path)
