"""
Display names for well-known Ethereum mainnet tokens.
"""

from typing import Dict

from web3 import Web3

from arbitrage_monitor.utils import format_address

COMMON_TOKENS: Dict[str, str] = {
    "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    "DAI": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    "WBTC": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
}

# lowercase address -> symbol
_SYMBOL_OF = {
    Web3.to_checksum_address(addr).lower(): symbol for symbol, addr in COMMON_TOKENS.items()
}


def get_token_name(address: str) -> str:
    """Symbol of a known token, otherwise the shortened address."""
    if not address:
        return address
    return _SYMBOL_OF.get(address.lower(), format_address(address))


def pair_label(token0: str, token1: str) -> str:
    return f"{get_token_name(token0)}/{get_token_name(token1)}"
