"""
Unit tests for the V2 pair price source
"""

from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest

from arbitrage_monitor.exceptions import PriceSourceError
from dex.adapters.v2 import V2PriceSource, connect, is_rate_limit_error

PAIR = "0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc"
USDC_LOWER = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH_LOWER = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"


@pytest.fixture
def web3():
    return MagicMock()


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def source(web3, sleep):
    return V2PriceSource(web3, max_retries=3, sleep=sleep)


def pair_functions(web3):
    return web3.eth.contract.return_value.functions


class TestFetchReserves:
    @pytest.mark.asyncio
    async def test_returns_ints(self, source, web3):
        pair_functions(web3).getReserves.return_value.call.return_value = (
            5 * 10**18,
            9000 * 10**6,
            1700000000,
        )

        assert await source.fetch_reserves(PAIR) == (5 * 10**18, 9000 * 10**6)

    @pytest.mark.asyncio
    async def test_zero_reserves_are_not_errors(self, source, web3):
        pair_functions(web3).getReserves.return_value.call.return_value = (0, 0, 0)

        assert await source.fetch_reserves(PAIR) == (0, 0)

    @pytest.mark.asyncio
    async def test_non_checksum_address(self, source):
        with pytest.raises(ValueError):
            await source.fetch_reserves(PAIR.lower())

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, source, web3, sleep):
        pair_functions(web3).getReserves.return_value.call.side_effect = [
            Exception("429 Client Error: Too Many Requests"),
            (1, 2, 3),
        ]

        assert await source.fetch_reserves(PAIR) == (1, 2)
        sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self, source, web3, sleep):
        pair_functions(web3).getReserves.return_value.call.side_effect = Exception(
            "{'code': -32005, 'message': 'limit exceeded'}"
        )

        with pytest.raises(PriceSourceError) as exc_info:
            await source.fetch_reserves(PAIR)

        assert exc_info.value.pool_id == PAIR
        assert [c.args[0] for c in sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self, source, web3, sleep):
        pair_functions(web3).getReserves.return_value.call.side_effect = ConnectionError(
            "connection reset"
        )

        with pytest.raises(PriceSourceError, match="connection reset"):
            await source.fetch_reserves(PAIR)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_reserves(self, source, web3):
        pair_functions(web3).getReserves.return_value.call.return_value = None

        with pytest.raises(PriceSourceError, match="Malformed"):
            await source.fetch_reserves(PAIR)


class TestFetchTokens:
    @pytest.mark.asyncio
    async def test_tokens_checksummed(self, source, web3):
        functions = pair_functions(web3)
        functions.token0.return_value.call.return_value = USDC_LOWER
        functions.token1.return_value.call.return_value = WETH_LOWER

        token0, token1 = await source.fetch_tokens(PAIR)

        assert token0 == "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
        assert token1 == "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


class TestRateLimitDetection:
    @pytest.mark.parametrize(
        "message",
        ["429 Too Many Requests", "Too Many Requests", "code -32005", "Limit Exceeded"],
    )
    def test_rate_limit_messages(self, message):
        assert is_rate_limit_error(Exception(message))

    def test_other_message(self):
        assert not is_rate_limit_error(Exception("execution reverted"))


class TestConnect:
    def test_unreachable_endpoint(self):
        with patch("dex.adapters.v2.Web3") as web3_cls:
            type(web3_cls.return_value.eth).chain_id = PropertyMock(
                side_effect=ConnectionError("refused")
            )

            with pytest.raises(PriceSourceError, match="refused") as exc_info:
                connect("https://rpc.example.org")

        assert exc_info.value.endpoint == "https://rpc.example.org"

    def test_connected(self):
        with patch("dex.adapters.v2.Web3") as web3_cls:
            web3_cls.return_value.eth.chain_id = 1
            web3_cls.return_value.eth.block_number = 19000000

            assert connect("https://rpc.example.org", timeout_sec=3) is web3_cls.return_value

        web3_cls.HTTPProvider.assert_called_once_with(
            "https://rpc.example.org", request_kwargs={"timeout": 3}
        )
