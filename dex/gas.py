"""
Gas price oracle with a short rolling history.

Keeps the last few network gas prices so the console can show recent prices,
a short-window average and a coarse trend, and so the scan loop can price
risk checks against the prevailing gas price.
"""

import asyncio
import time
from collections import deque
from decimal import Decimal
from typing import Any, Callable, Deque, Dict, List, Optional

from web3 import Web3

from arbitrage_monitor.exceptions import PriceSourceError
from arbitrage_monitor.utils import get_logger, timestamp_to_iso

logger = get_logger(__name__)

URGENCY_MULTIPLIERS = {
    "low": Decimal("0.9"),
    "normal": Decimal("1.0"),
    "high": Decimal("1.2"),
    "urgent": Decimal("1.5"),
}

# Price change (gwei) over the last three samples that counts as a trend
TREND_THRESHOLD_GWEI = Decimal("1.0")


class GasOracle:
    """
    Reads and remembers network gas prices.

    Args:
        web3: Web3 client
        max_gas_price_gwei: Ceiling applied to suggested prices
        history_size: Number of samples kept
        clock: Timestamp source for samples
    """

    def __init__(
        self,
        web3: Optional[Web3],
        max_gas_price_gwei: float,
        history_size: int = 10,
        clock: Callable[[], float] = time.time,
    ):
        self.web3 = web3
        self.max_gas_price = Web3.to_wei(Decimal(str(max_gas_price_gwei)), "gwei")
        self.gas_history: Deque[Dict[str, Any]] = deque(maxlen=history_size)
        self._clock = clock

    def add_to_history(self, gas_price: int) -> None:
        self.gas_history.append({"gas_price": int(gas_price), "timestamp": self._clock()})

    def get_last_gas_price(self) -> Optional[int]:
        """Most recent sample in wei, or None before the first read."""
        if not self.gas_history:
            return None
        return self.gas_history[-1]["gas_price"]

    async def get_current_gas_price(self) -> int:
        """
        Fetch the current network gas price (wei) and record it.

        Raises:
            PriceSourceError: If the RPC call fails
        """
        loop = asyncio.get_running_loop()
        try:
            gas_price = await loop.run_in_executor(None, lambda: self.web3.eth.gas_price)
        except Exception as e:
            logger.error(f"Failed to fetch gas price: {e}")
            raise PriceSourceError(f"Failed to fetch gas price: {e}") from e

        self.add_to_history(gas_price)
        return int(gas_price)

    def calculate_optimal_gas_price(self, urgency: str = "normal") -> Optional[int]:
        """
        Suggest a gas price from the latest sample, capped at the ceiling.

        Returns:
            Gas price in wei, or None if no sample has been taken yet
        """
        if not self.gas_history:
            logger.warning("No gas history available, using network default")
            return None

        recent = self.gas_history[-1]["gas_price"]
        multiplier = URGENCY_MULTIPLIERS.get(urgency, Decimal("1.0"))
        suggested = int(Decimal(recent) * multiplier)
        final = min(suggested, self.max_gas_price)

        logger.debug(
            f"Gas price calculated: urgency={urgency} "
            f"current={Web3.from_wei(recent, 'gwei')} "
            f"suggested={Web3.from_wei(suggested, 'gwei')} "
            f"final={Web3.from_wei(final, 'gwei')} gwei"
        )
        return final

    def is_gas_price_acceptable(self, gas_price: int) -> bool:
        return gas_price <= self.max_gas_price

    def get_average_gas_price(self, minutes: float = 5) -> Optional[int]:
        cutoff = self._clock() - minutes * 60
        recent = [e["gas_price"] for e in self.gas_history if e["timestamp"] > cutoff]
        if not recent:
            return None
        return sum(recent) // len(recent)

    def predict_gas_trend(self) -> str:
        if len(self.gas_history) < 3:
            return "unknown"

        samples = list(self.gas_history)[-3:]
        first = Web3.from_wei(samples[0]["gas_price"], "gwei")
        last = Web3.from_wei(samples[-1]["gas_price"], "gwei")
        trend = last - first

        if trend > TREND_THRESHOLD_GWEI:
            return "increasing"
        if trend < -TREND_THRESHOLD_GWEI:
            return "decreasing"
        return "stable"

    def get_gas_history(self) -> List[Dict[str, Any]]:
        return [
            {
                "gas_price": entry["gas_price"],
                "gas_price_gwei": Web3.from_wei(entry["gas_price"], "gwei"),
                "timestamp": timestamp_to_iso(entry["timestamp"]),
            }
            for entry in self.gas_history
        ]

    def clear_history(self) -> None:
        self.gas_history.clear()
