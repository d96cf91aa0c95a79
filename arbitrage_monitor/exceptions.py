"""
Exception hierarchy for the arbitrage monitor.

Provides specific exception types for the failure categories the scan loop
distinguishes: configuration problems, price source (RPC) failures, bad
reserve data, and execution failures.
"""

from typing import Any, Dict, Optional


class ArbitrageMonitorError(Exception):
    """Base exception for all arbitrage monitor related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ArbitrageMonitorError):
    """Raised when there are configuration-related issues."""

    pass


class PriceSourceError(ArbitrageMonitorError):
    """Raised when reserves or token metadata cannot be read from a pool."""

    def __init__(
        self,
        message: str,
        pool_id: Optional[str] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool_id = pool_id
        self.endpoint = endpoint


class DataError(ArbitrageMonitorError):
    """Raised when pool data is malformed or cannot be priced."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        pool_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.source = source
        self.pool_id = pool_id


class ExecutionError(ArbitrageMonitorError):
    """Raised when a trade executor fails to carry out an approved trade."""

    def __init__(
        self,
        message: str,
        pool_a: Optional[str] = None,
        pool_b: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool_a = pool_a
        self.pool_b = pool_b
