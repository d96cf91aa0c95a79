"""
Unit tests for arbitrage_monitor.utils module.
"""

import logging

import pytest
from web3 import Web3

from arbitrage_monitor.utils import (
    format_address,
    format_duration,
    format_gas_price,
    get_logger,
    timestamp_to_iso,
)


class TestTimestampUtils:
    """Test timestamp utilities."""

    def test_timestamp_to_iso(self):
        assert timestamp_to_iso(0) == "1970-01-01T00:00:00+00:00"

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0s"),
            (42, "42s"),
            (125, "2m 5s"),
            (3725, "1h 2m 5s"),
            (90061, "1d 1h 1m"),
        ],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestDisplayUtils:
    """Test display formatting."""

    def test_format_address(self):
        address = "0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc"
        assert format_address(address) == "0xB4e1...C9Dc"

    def test_format_short_address_unchanged(self):
        assert format_address("0x1234") == "0x1234"
        assert format_address("") == ""

    def test_format_gas_price(self):
        assert format_gas_price(Web3.to_wei(23.456, "gwei")) == "23.46 gwei"


class TestGetLogger:
    """Test structured logger helper."""

    def test_returns_named_logger(self):
        logger = get_logger("tests.utils.named")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "tests.utils.named"

    def test_level(self):
        logger = get_logger("tests.utils.level", level=logging.WARNING)
        assert logger.level == logging.WARNING
