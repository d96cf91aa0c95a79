"""
Simulated execution gate for approved arbitrage opportunities.

Handles:
- Gas cost estimation for the fixed two-leg gas budget
- Net profitability check against the minimum profit threshold
- Delegation to a pluggable trade executor (simulated by default)

Nothing here signs or broadcasts transactions. A real TradeExecutor must
sequence token approval, balance checks and both swap legs atomically.
"""

from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from web3 import Web3

from arbitrage_monitor.exceptions import ExecutionError
from arbitrage_monitor.utils import get_logger

from .types import ArbitrageOpportunity, ExecutionResult

logger = get_logger(__name__)

DEFAULT_GAS_LIMIT = 300_000
DEFAULT_TRADE_SIZE_ETH = Decimal("0.1")


@runtime_checkable
class TradeExecutor(Protocol):
    """Carries out the two legs of an approved trade."""

    async def perform_trade(
        self,
        opportunity: ArbitrageOpportunity,
        trade_amount: int,
        gas_price: int,
        gas_limit: int,
    ) -> int:
        """
        Execute both legs.

        Returns:
            Gas actually used
        """
        ...


class SimulatedTradeExecutor:
    """Pretends every trade lands and consumes the full gas budget."""

    async def perform_trade(
        self,
        opportunity: ArbitrageOpportunity,
        trade_amount: int,
        gas_price: int,
        gas_limit: int,
    ) -> int:
        logger.info(
            f"[SIMULATION] Executing {opportunity.pool_a.exchange} -> "
            f"{opportunity.pool_b.exchange} "
            f"({opportunity.profit_percent:.2f}%, "
            f"{Web3.from_wei(trade_amount, 'ether')} ETH)"
        )
        return gas_limit


class ExecutionGate:
    """
    Final profitability check before an opportunity is handed to an executor.

    Args:
        min_profit_threshold: Minimum net profit in ETH
        gas_limit: Gas budget for the two swap legs
        trade_size_eth: Notional size of every trade in ETH
        executor: TradeExecutor; SimulatedTradeExecutor if omitted
    """

    def __init__(
        self,
        min_profit_threshold: float,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        trade_size_eth: float = float(DEFAULT_TRADE_SIZE_ETH),
        executor: Optional[TradeExecutor] = None,
    ):
        self.min_profit_threshold = Decimal(str(min_profit_threshold))
        self.gas_limit = gas_limit
        self.trade_size = Decimal(str(trade_size_eth))
        self.executor = executor or SimulatedTradeExecutor()

        # Execution statistics
        self.executions_attempted = 0
        self.executions_successful = 0

    @property
    def trade_amount_wei(self) -> int:
        return Web3.to_wei(self.trade_size, "ether")

    def estimate_gas_cost(self, gas_price: int) -> Decimal:
        """Gas cost in ETH of the full gas budget at gas_price (wei)."""
        return Decimal(Web3.from_wei(self.gas_limit * gas_price, "ether"))

    def estimate_profit(self, opportunity: ArbitrageOpportunity) -> Decimal:
        return Decimal(str(opportunity.profit_percent)) / 100 * self.trade_size

    def is_profitable(self, opportunity: ArbitrageOpportunity, gas_price: int) -> bool:
        net_profit = self.estimate_profit(opportunity) - self.estimate_gas_cost(gas_price)
        return net_profit >= self.min_profit_threshold

    async def execute(
        self, opportunity: ArbitrageOpportunity, gas_price: int
    ) -> ExecutionResult:
        """
        Execute an approved opportunity if it still pays for its gas.

        Args:
            opportunity: Risk-approved opportunity
            gas_price: Prevailing gas price in wei

        Returns:
            ExecutionResult tagged executed, unprofitable or failed
        """
        self.executions_attempted += 1
        estimated_profit = self.estimate_profit(opportunity)
        gas_cost = self.estimate_gas_cost(gas_price)
        trade_amount = self.trade_amount_wei

        if estimated_profit - gas_cost < self.min_profit_threshold:
            logger.info(
                f"Trade not profitable after gas: profit={estimated_profit:.6f} ETH "
                f"gas={gas_cost:.6f} ETH"
            )
            return ExecutionResult(
                status="unprofitable",
                success=False,
                trade_amount=trade_amount,
                estimated_profit=estimated_profit,
                gas_cost=gas_cost,
                gas_used=0,
                exchanges=opportunity.exchanges,
                reason="Not profitable after gas costs",
            )

        try:
            gas_used = await self.executor.perform_trade(
                opportunity, trade_amount, gas_price, self.gas_limit
            )
        except Exception as e:
            error = ExecutionError(
                f"Trade execution failed: {e}",
                pool_a=opportunity.pool_a.pool_id,
                pool_b=opportunity.pool_b.pool_id,
            )
            logger.error(str(error))
            return ExecutionResult(
                status="failed",
                success=False,
                trade_amount=trade_amount,
                estimated_profit=estimated_profit,
                gas_cost=gas_cost,
                gas_used=0,
                exchanges=opportunity.exchanges,
                reason=str(e),
            )

        # Charge for the gas actually used
        gas_cost = Decimal(Web3.from_wei(gas_used * gas_price, "ether"))
        self.executions_successful += 1

        result = ExecutionResult(
            status="executed",
            success=True,
            trade_amount=trade_amount,
            estimated_profit=estimated_profit,
            gas_cost=gas_cost,
            gas_used=gas_used,
            exchanges=opportunity.exchanges,
        )
        logger.info(
            f"Execution succeeded: net={result.net_profit:.6f} ETH "
            f"gas_used={gas_used}"
        )
        return result
