"""
Shared fixtures for monitor tests.
"""

from datetime import date

import pytest
from prometheus_client import CollectorRegistry
from web3 import Web3

from arbitrage_monitor.config_schema import MonitorSettings
from dex.types import ArbitrageOpportunity, PoolObservation, PoolQuote, WatchedPool

WETH = Web3.to_checksum_address("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
USDC = Web3.to_checksum_address("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
DAI = Web3.to_checksum_address("0x6b175474e89094c44da98b954eedeac495271d0f")

POOL_UNI = Web3.to_checksum_address("0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc")
POOL_SUSHI = Web3.to_checksum_address("0x397ff1542f962076d0bfe58ea045ffa2d347aca0")
POOL_OTHER = Web3.to_checksum_address("0xa478c2975ab1ea89e8196811f51a7b7ade33eb11")


def make_observation(
    pool_id=POOL_UNI,
    price=1800.0,
    token0=WETH,
    token1=USDC,
    exchange="Uniswap V2",
    observed_at=1700000000.0,
):
    """Observation whose price0 (token1 per token0) equals price."""
    pool = WatchedPool(pool_id=pool_id, token0=token0, token1=token1, exchange=exchange)
    reserve0 = 10**18
    return PoolObservation.from_reserves(
        pool, reserve0, int(reserve0 * price), observed_at=observed_at
    )


def make_opportunity(profit_percent=2.0, exchanges=("Uniswap V2", "SushiSwap")):
    return ArbitrageOpportunity(
        pool_a=PoolQuote(pool_id=POOL_UNI, exchange=exchanges[0], price=1800.0),
        pool_b=PoolQuote(pool_id=POOL_SUSHI, exchange=exchanges[1], price=1836.0),
        token0=WETH,
        token1=USDC,
        profit_percent=profit_percent,
        detected_at=1700000000.0,
    )


class FakeDay:
    """Mutable stand-in for date.today()."""

    def __init__(self, day=date(2024, 1, 1)):
        self.day = day

    def __call__(self):
        return self.day


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def settings():
    return MonitorSettings(
        min_profit_eth=0.01,
        max_gas_price_gwei=50,
        scan_interval_sec=5,
        pools=[
            {"address": POOL_UNI, "exchange": "Uniswap V2"},
            {"address": POOL_SUSHI, "exchange": "SushiSwap"},
        ],
    )


@pytest.fixture
def fake_day():
    return FakeDay()
