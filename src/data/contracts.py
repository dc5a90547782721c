"""Token contract addresses and the minimal ABI for balance reads."""

from src.data.constants import ReserveKey, Side, Token, Version

# ---------------------------------------------------------------------------
# RMM interest-bearing (supply) and variable debt tokens
# ---------------------------------------------------------------------------
RESERVE_TOKEN_ADDRESSES: dict[tuple[Version, Token, Side], str] = {
    (Version.V3, Token.USDC, Side.SUPPLY): "0xeD56F76E9cBC6A64b821e9c016eAFbd3db5436D1",
    (Version.V3, Token.USDC, Side.DEBT): "0x69c731aE5f5356a779f44C355aBB685d84e5E9e6",
    (Version.V3, Token.WXDAI, Side.SUPPLY): "0x0cA4f5554Dd9Da6217d62D8df2816c82bba4157b",
    (Version.V3, Token.WXDAI, Side.DEBT): "0x9908801dF7902675C3FEDD6Fea0294D18D5d5d34",
    (Version.V2, Token.WXDAI, Side.SUPPLY): "0x7349C9eaA538e118725a6130e0f8341509b9f8A0",
    (Version.V2, Token.WXDAI, Side.DEBT): "0x6a7CeD66902D07066Ad08c81179d17d0fbE36829",
}

# ---------------------------------------------------------------------------
# Other RMM contracts
# ---------------------------------------------------------------------------
RMM_POOL = "0x12a000a8a2cD339d85119c346142Adb444Bc5ce5"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def reserve_token_address(key: ReserveKey) -> str:
    """Contract address of the aToken or debt token behind *key*."""
    return RESERVE_TOKEN_ADDRESSES[(key.version, key.token, key.side)]


def supply_token_addresses(version: Version) -> dict[Token, str]:
    """Supply-token contract per token listed on *version*."""
    return {
        token: address
        for (v, token, side), address in RESERVE_TOKEN_ADDRESSES.items()
        if v == version and side == Side.SUPPLY
    }


# ---------------------------------------------------------------------------
# Minimal ABI: only the view functions we call
# ---------------------------------------------------------------------------

ERC20_BALANCE_ABI = [
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
]
