"""Reserve identifiers and protocol constants."""

from dataclasses import dataclass
from enum import Enum

# Ray (1e27): RMM/Aave fixed-point unit for liquidity and borrow indexes
RAY = 10**27

SECONDS_PER_DAY = 86_400

# Gnosis Chain
GNOSIS_CHAIN_ID = 100
DEFAULT_GNOSIS_RPC_URL = "https://rpc.gnosischain.com/"

# Page size accepted by both The Graph and the explorer API
PAGE_SIZE = 1000


class Version(str, Enum):
    """RMM protocol deployment."""

    V2 = "V2"
    V3 = "V3"


class Token(str, Enum):
    """Underlying stablecoin of a reserve."""

    USDC = "USDC"
    WXDAI = "WXDAI"


class Side(str, Enum):
    """Position side within a reserve."""

    SUPPLY = "supply"
    DEBT = "debt"


TOKEN_DECIMALS: dict[Token, int] = {
    Token.USDC: 6,
    Token.WXDAI: 18,
}

# Reserves listed per deployment (V2 only ever had WXDAI)
VERSION_TOKENS: dict[Version, tuple[Token, ...]] = {
    Version.V2: (Token.WXDAI,),
    Version.V3: (Token.USDC, Token.WXDAI),
}

# Reserve symbol as it appears in each subgraph
SUBGRAPH_RESERVE_SYMBOLS: dict[tuple[Version, Token], str] = {
    (Version.V2, Token.WXDAI): "rmmWXDAI",
    (Version.V3, Token.USDC): "USDC",
    (Version.V3, Token.WXDAI): "WXDAI",
}

# First block scanned by the explorer for each deployment
EXPLORER_START_BLOCKS: dict[Version, int] = {
    Version.V2: 20_206_607,
    Version.V3: 32_074_665,
}
EXPLORER_END_BLOCK = 99_999_999


@dataclass(frozen=True)
class ReserveKey:
    """Identifies one side of one reserve on one deployment."""

    version: Version
    token: Token
    side: Side

    def __post_init__(self) -> None:
        if self.token not in VERSION_TOKENS[self.version]:
            raise ValueError(
                f"{self.token.value} has no reserve on RMM {self.version.value}"
            )

    @property
    def decimals(self) -> int:
        return TOKEN_DECIMALS[self.token]

    @property
    def subgraph_symbol(self) -> str:
        return SUBGRAPH_RESERVE_SYMBOLS[(self.version, self.token)]
