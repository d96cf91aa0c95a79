"""
Cross-venue arbitrage detection over cached pool observations.

Every unordered pair of observations is compared; pairs quoting the same two
tokens are turned into an opportunity when their spot prices diverge by more
than the noise floor and the configured profit threshold. This is O(n^2) in
the number of cached pools, which is fine for tens of pools but will not scale
to thousands.
"""

import math
import time
from typing import Callable, Iterable, List, Optional

from arbitrage_monitor.exceptions import DataError
from arbitrage_monitor.utils import get_logger

from .types import ArbitrageOpportunity, PoolObservation, PoolQuote

logger = get_logger(__name__)

# Divergences below this percentage are treated as rounding noise
NOISE_FLOOR_PCT = 0.1


def has_same_token_pair(a: PoolObservation, b: PoolObservation) -> bool:
    """True if both pools trade the same two tokens, in either order."""
    a0, a1 = a.token0.lower(), a.token1.lower()
    b0, b1 = b.token0.lower(), b.token1.lower()
    return (a0 == b0 and a1 == b1) or (a0 == b1 and a1 == b0)


class ArbitrageDetector:
    """
    Finds price divergences between pools sharing a token pair.

    Args:
        min_profit_threshold: Minimum profit as a fraction; an opportunity must
            exceed min_profit_threshold * 100 percent (0.01 -> 1%)
        noise_floor_pct: Divergence (percent) below which no opportunity is built
        clock: Timestamp source for detected_at
    """

    def __init__(
        self,
        min_profit_threshold: float,
        noise_floor_pct: float = NOISE_FLOOR_PCT,
        clock: Callable[[], float] = time.time,
    ):
        self.min_profit_threshold = min_profit_threshold
        self.noise_floor_pct = noise_floor_pct
        self._clock = clock

    @property
    def min_profit_pct(self) -> float:
        return self.min_profit_threshold * 100

    def calculate_arbitrage(
        self, a: PoolObservation, b: PoolObservation
    ) -> Optional[ArbitrageOpportunity]:
        """
        Compare the token1-per-token0 spot prices (price0) of two pools.

        Each pool is priced in its own token order, so a pair listed the
        other way round on one venue shows up as a wide divergence.

        Returns:
            Opportunity, or None if the divergence is below the noise floor

        Raises:
            DataError: If either price is not a positive finite number
        """
        price_a = a.price0
        price_b = b.price0
        if not (price_a > 0 and price_b > 0):
            raise DataError(
                f"Non-positive price ({price_a}, {price_b})",
                source="detector",
                pool_id=a.pool_id if not price_a > 0 else b.pool_id,
            )

        price_diff = abs(price_a - price_b)
        avg_price = (price_a + price_b) / 2
        profit_percent = (price_diff / avg_price) * 100

        if not math.isfinite(profit_percent):
            raise DataError(
                "Profit percent is not finite",
                source="detector",
                details={"pool_a": a.pool_id, "pool_b": b.pool_id},
            )

        if profit_percent < self.noise_floor_pct:
            return None

        return ArbitrageOpportunity(
            pool_a=PoolQuote(pool_id=a.pool_id, exchange=a.exchange, price=price_a),
            pool_b=PoolQuote(pool_id=b.pool_id, exchange=b.exchange, price=price_b),
            token0=a.token0,
            token1=a.token1,
            profit_percent=profit_percent,
            detected_at=self._clock(),
        )

    def scan(self, observations: Iterable[PoolObservation]) -> List[ArbitrageOpportunity]:
        """
        Scan all observation pairs for opportunities above the threshold.

        A pair that cannot be priced is skipped without aborting the scan.

        Returns:
            Opportunities sorted by profit_percent descending (stable)
        """
        prices = list(observations)
        opportunities: List[ArbitrageOpportunity] = []

        for i in range(len(prices)):
            for j in range(i + 1, len(prices)):
                a, b = prices[i], prices[j]
                if not has_same_token_pair(a, b):
                    continue

                try:
                    opportunity = self.calculate_arbitrage(a, b)
                except (ArithmeticError, DataError, TypeError) as e:
                    logger.debug(
                        f"Skipping pair {a.pool_id}/{b.pool_id}: {e}"
                    )
                    continue

                if opportunity and opportunity.profit_percent > self.min_profit_pct:
                    opportunities.append(opportunity)

        opportunities.sort(key=lambda o: o.profit_percent, reverse=True)
        return opportunities
