"""
DEX Arbitrage Monitor.

Polls Uniswap V2 style pools for reserves, detects cross-venue price
divergences on the same token pair, scores each candidate trade against risk
thresholds with a daily loss circuit breaker, and passes approved trades
through a simulated execution step.
"""

from arbitrage_monitor.version import __version__

PROJECT_NAME = "DEX-Arbitrage-Monitor"
VERSION = __version__

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "__version__",
]
