"""
Common utilities and helper functions for the arbitrage monitor.

This module provides centralized helper functions for timestamps, display
formatting of addresses, gas prices and durations, and structured logging.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from web3 import Web3


# Timestamp utilities
def timestamp_to_iso(timestamp: float) -> str:
    """Convert Unix timestamp to ISO 8601 string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def format_duration(seconds: float) -> str:
    """
    Format a duration as the largest two or three units that apply.

    Examples:
        >>> format_duration(42)
        '42s'
        >>> format_duration(3725)
        '1h 2m 5s'
        >>> format_duration(90061)
        '1d 1h 1m'
    """
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    elif hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


# Display utilities
def format_address(address: str) -> str:
    """Shorten an address to 0x1234...abcd form."""
    if not address or len(address) < 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_gas_price(gas_price_wei: int) -> str:
    """Format a wei gas price as gwei."""
    gwei = Web3.from_wei(gas_price_wei, "gwei")
    return f"{float(gwei):.2f} gwei"



# Logging utilities
def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """
    Get a structured logger with consistent formatting.

    When the root logger already has handlers (logging_config.setup() was
    called) records simply propagate to it; otherwise a structured stream
    handler is attached so library use still produces readable output.

    Args:
        name: Logger name (typically __name__)
        level: Logging level; left unset so the root level governs

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)

    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
