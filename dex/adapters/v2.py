"""
Uniswap V2 style price source for constant-product pair contracts.

Reads token addresses and raw reserves from pair contracts. The web3 HTTP
provider is synchronous, so every contract call runs in the default thread
pool to keep the event loop free while a scan cycle fetches many pools.
"""

import asyncio
from typing import Awaitable, Callable, Tuple, TypeVar

from web3 import Web3

from arbitrage_monitor.exceptions import PriceSourceError
from arbitrage_monitor.utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

UNISWAP_V2_PAIR_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "token0",
        "outputs": [{"name": "", "type": "address"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "token1",
        "outputs": [{"name": "", "type": "address"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
]


def connect(rpc_url: str, timeout_sec: float = 10.0) -> Web3:
    """
    Build a Web3 client and verify the endpoint answers.

    Raises:
        PriceSourceError: If the RPC endpoint is unreachable
    """
    web3 = Web3(
        Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_sec})
    )

    # Query the chain directly; is_connected() is unreliable on some providers
    try:
        chain_id = web3.eth.chain_id
        block = web3.eth.block_number
    except Exception as e:
        raise PriceSourceError(
            f"Failed to connect to RPC: {e}", endpoint=rpc_url
        ) from e

    logger.info(f"Connected to chain {chain_id} at {rpc_url} (block #{block:,})")
    return web3


def is_rate_limit_error(error: Exception) -> bool:
    error_msg = str(error)
    return (
        "429" in error_msg
        or "Too Many Requests" in error_msg
        or "-32005" in error_msg  # BSC/Ethereum rate limit code
        or "limit exceeded" in error_msg.lower()
    )


class V2PriceSource:
    """
    Reads V2 pair contracts through a Web3 client.

    Failures are reported as PriceSourceError; a pool that legitimately holds
    zero reserves is returned as (0, 0), not as a failure.
    """

    def __init__(
        self,
        web3: Web3,
        max_retries: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.web3 = web3
        self.max_retries = max_retries
        self._sleep = sleep

    def _pair(self, pool_id: str):
        if not Web3.is_checksum_address(pool_id):
            raise ValueError(f"Invalid pair address: {pool_id}")
        return self.web3.eth.contract(address=pool_id, abi=UNISWAP_V2_PAIR_ABI)

    async def _call(self, pool_id: str, fn: Callable[[], T]) -> T:
        """Run a blocking contract call with rate-limit backoff."""
        loop = asyncio.get_running_loop()

        for attempt in range(self.max_retries):
            try:
                return await loop.run_in_executor(None, fn)
            except Exception as e:
                if is_rate_limit_error(e) and attempt < self.max_retries - 1:
                    # Exponential backoff: 1s, 2s, 4s
                    wait_time = 2**attempt
                    logger.debug(
                        f"Rate limited on {pool_id}, retrying in {wait_time}s"
                    )
                    await self._sleep(wait_time)
                    continue
                raise PriceSourceError(
                    f"Failed to read pool {pool_id}: {e}", pool_id=pool_id
                ) from e

        raise PriceSourceError(
            f"Failed to read pool {pool_id} after {self.max_retries} retries",
            pool_id=pool_id,
        )

    async def fetch_tokens(self, pool_id: str) -> Tuple[str, str]:
        """
        Read token0/token1 of a pair.

        Returns:
            Tuple of checksummed (token0, token1)
        """
        pair = self._pair(pool_id)
        token0, token1 = await asyncio.gather(
            self._call(pool_id, pair.functions.token0().call),
            self._call(pool_id, pair.functions.token1().call),
        )
        return Web3.to_checksum_address(token0), Web3.to_checksum_address(token1)

    async def fetch_reserves(self, pool_id: str) -> Tuple[int, int]:
        """
        Read current reserves of a pair.

        Returns:
            Tuple of (reserve0, reserve1) in raw token units
        """
        pair = self._pair(pool_id)
        reserves = await self._call(pool_id, pair.functions.getReserves().call)
        try:
            return int(reserves[0]), int(reserves[1])
        except (TypeError, ValueError, IndexError) as e:
            raise PriceSourceError(
                f"Malformed reserves from {pool_id}: {reserves!r}", pool_id=pool_id
            ) from e
