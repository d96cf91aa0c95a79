"""
Core data types for DEX arbitrage monitoring.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Optional, Tuple

ExecutionStatus = Literal["executed", "unprofitable", "failed"]


@dataclass(frozen=True)
class WatchedPool:
    """
    A V2 pair registered for monitoring.

    Attributes:
        pool_id: Checksum address of the pair contract
        token0: Checksum address of token0
        token1: Checksum address of token1
        exchange: Venue label (e.g., "Uniswap V2", "SushiSwap")
    """

    pool_id: str
    token0: str
    token1: str
    exchange: str


@dataclass(frozen=True)
class PoolObservation:
    """
    Reserves and spot prices of one pool at one point in time.

    Attributes:
        pool_id: Checksum address of the pair contract
        token0: Address of token0
        token1: Address of token1
        reserve0: Raw reserve of token0 (native units)
        reserve1: Raw reserve of token1 (native units)
        price0: token1 per token0 (reserve1 / reserve0)
        price1: token0 per token1 (reserve0 / reserve1)
        exchange: Venue label
        observed_at: Unix timestamp of the poll
    """

    pool_id: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    price0: float
    price1: float
    exchange: str
    observed_at: float

    @classmethod
    def from_reserves(
        cls,
        pool: WatchedPool,
        reserve0: int,
        reserve1: int,
        observed_at: Optional[float] = None,
    ) -> Optional["PoolObservation"]:
        """
        Build an observation from freshly read reserves.

        Returns None when either reserve is not positive: an empty pool has
        no meaningful spot price.
        """
        if reserve0 <= 0 or reserve1 <= 0:
            return None

        return cls(
            pool_id=pool.pool_id,
            token0=pool.token0,
            token1=pool.token1,
            reserve0=int(reserve0),
            reserve1=int(reserve1),
            price0=float(reserve1) / float(reserve0),
            price1=float(reserve0) / float(reserve1),
            exchange=pool.exchange,
            observed_at=time.time() if observed_at is None else observed_at,
        )


@dataclass(frozen=True)
class PoolQuote:
    """One venue's side of an opportunity."""

    pool_id: str
    exchange: str
    price: float


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """
    A price divergence between two pools trading the same token pair.

    Attributes:
        pool_a: Quote from the first pool of the pair
        pool_b: Quote from the second pool of the pair
        token0: token0 of pool_a
        token1: token1 of pool_a
        profit_percent: |priceA - priceB| / mean(priceA, priceB) * 100
        detected_at: Unix timestamp of detection
        kind: Record discriminator
    """

    pool_a: PoolQuote
    pool_b: PoolQuote
    token0: str
    token1: str
    profit_percent: float
    detected_at: float
    kind: Literal["arbitrage_opportunity"] = "arbitrage_opportunity"

    @property
    def exchanges(self) -> Tuple[str, str]:
        return (self.pool_a.exchange, self.pool_b.exchange)


@dataclass
class ExecutionResult:
    """
    Outcome of passing an approved opportunity through the execution gate.

    Amounts are in ETH except trade_amount, which is in wei.
    """

    status: ExecutionStatus
    success: bool
    trade_amount: int
    estimated_profit: Decimal
    gas_cost: Decimal
    gas_used: int
    exchanges: Tuple[str, str]
    executed_at: float = field(default_factory=time.time)
    reason: str = ""

    @property
    def net_profit(self) -> Decimal:
        return self.estimated_profit - self.gas_cost
