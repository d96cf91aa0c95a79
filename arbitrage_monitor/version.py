"""Version information for the DEX arbitrage monitor."""

__version__ = "1.0.0"
