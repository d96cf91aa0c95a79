"""
DEX adapter modules for different AMM types.
"""

from .v2 import UNISWAP_V2_PAIR_ABI, V2PriceSource, connect

__all__ = ["UNISWAP_V2_PAIR_ABI", "V2PriceSource", "connect"]
