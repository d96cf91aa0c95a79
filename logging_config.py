"""
Logging configuration for cleaner output.

Usage:
    import logging_config
    logging_config.setup()
    logging_config.set_level("debug")
"""

import logging
import sys

# Console level names -> logging levels
LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

APP_LOGGERS = ("__main__", "run_monitor", "dex", "arbitrage_monitor")


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Suppresses verbose HTTP request logs from web3 and aiohttp
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    """
    if isinstance(level, str):
        level = LEVELS[level]

    # Root logger - minimal format
    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    # Module loggers created before setup() carry their own fallback handler
    for name, existing in logging.root.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and name.split(".")[0] in APP_LOGGERS:
            existing.handlers.clear()

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def set_level(name: str) -> int:
    """
    Change the level of the root handler and application loggers at runtime.

    Args:
        name: One of error, warn, info, debug

    Returns:
        The logging level applied

    Raises:
        ValueError: If name is not a known level
    """
    key = name.strip().lower()
    if key == "warning":
        key = "warn"
    if key not in LEVELS:
        raise ValueError(f"Invalid log level {name!r}. Use: {', '.join(LEVELS)}")

    level = LEVELS[key]
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)
    for logger_name in APP_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)
    return level


def get_level_name() -> str:
    level = logging.getLogger("arbitrage_monitor").getEffectiveLevel()
    for name, value in LEVELS.items():
        if value == level:
            return name
    return logging.getLevelName(level).lower()
