"""
Tests for the pool observation cache and observation construction.
"""

from conftest import POOL_SUSHI, POOL_UNI, USDC, WETH, make_observation
from dex.price_cache import PriceCache
from dex.types import PoolObservation, WatchedPool


class TestPoolObservation:
    def test_prices_from_reserves(self):
        pool = WatchedPool(POOL_UNI, WETH, USDC, "Uniswap V2")
        obs = PoolObservation.from_reserves(pool, 2 * 10**18, 4000 * 10**18, observed_at=1.0)

        assert obs.price0 == 2000.0
        assert obs.price1 == 0.0005
        assert obs.reserve0 == 2 * 10**18
        assert obs.exchange == "Uniswap V2"
        assert obs.observed_at == 1.0

    def test_zero_reserve_yields_none(self):
        pool = WatchedPool(POOL_UNI, WETH, USDC, "Uniswap V2")

        assert PoolObservation.from_reserves(pool, 0, 10**18) is None
        assert PoolObservation.from_reserves(pool, 10**18, 0) is None


class TestPriceCache:
    def test_empty(self):
        cache = PriceCache()
        assert len(cache) == 0
        assert cache.get(POOL_UNI) is None
        assert cache.get_all() == []

    def test_last_write_wins(self):
        cache = PriceCache()
        first = make_observation(POOL_UNI, price=1800.0, observed_at=1.0)
        second = make_observation(POOL_UNI, price=1850.0, observed_at=2.0)

        cache.put(POOL_UNI, first)
        cache.put(POOL_UNI, second)

        assert len(cache) == 1
        assert cache.get(POOL_UNI) is second

    def test_get_all_and_membership(self):
        cache = PriceCache()
        cache.put(POOL_UNI, make_observation(POOL_UNI))
        cache.put(POOL_SUSHI, make_observation(POOL_SUSHI))

        assert POOL_UNI in cache
        assert {o.pool_id for o in cache.get_all()} == {POOL_UNI, POOL_SUSHI}
        assert {o.pool_id for o in cache} == {POOL_UNI, POOL_SUSHI}

    def test_get_all_is_a_copy(self):
        cache = PriceCache()
        cache.put(POOL_UNI, make_observation(POOL_UNI))

        snapshot = cache.get_all()
        snapshot.clear()

        assert len(cache) == 1

    def test_clear(self):
        cache = PriceCache()
        cache.put(POOL_UNI, make_observation(POOL_UNI))
        cache.clear()

        assert len(cache) == 0
        assert POOL_UNI not in cache
