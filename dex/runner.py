"""
DEX arbitrage monitor scan loop.

Polls watched V2 pairs, detects cross-venue price divergences, runs each
candidate through the risk scorer and the simulated execution gate, and
reports what happened through structured events and Prometheus metrics.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from web3 import Web3

from arbitrage_monitor.config_schema import MonitorSettings
from arbitrage_monitor.events import EventLogger
from arbitrage_monitor.exceptions import PriceSourceError
from arbitrage_monitor.metrics import MonitorMetrics
from arbitrage_monitor.risk_controls import RiskScorer
from arbitrage_monitor.scheduler import Scheduler
from arbitrage_monitor.utils import format_address, format_gas_price, get_logger

from .adapters.v2 import V2PriceSource, connect
from .detector import ArbitrageDetector
from .executor import ExecutionGate
from .gas import GasOracle
from .price_cache import PriceCache
from .types import ArbitrageOpportunity, ExecutionResult, PoolObservation, WatchedPool

logger = get_logger(__name__)


class MonitorRunner:
    """
    Orchestrates one monitor instance.

    All collaborators are injected so the loop can run against fakes; use
    from_settings() to build the production wiring.
    """

    def __init__(
        self,
        settings: MonitorSettings,
        price_source: V2PriceSource,
        gas_oracle: GasOracle,
        risk_scorer: Optional[RiskScorer] = None,
        execution_gate: Optional[ExecutionGate] = None,
        detector: Optional[ArbitrageDetector] = None,
        cache: Optional[PriceCache] = None,
        events: Optional[EventLogger] = None,
        metrics: Optional[MonitorMetrics] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.price_source = price_source
        self.gas_oracle = gas_oracle
        self.risk_scorer = risk_scorer or RiskScorer.from_settings(settings)
        self.execution_gate = execution_gate or ExecutionGate(
            min_profit_threshold=settings.min_profit_eth,
            gas_limit=settings.gas_limit,
            trade_size_eth=settings.trade_size_eth,
        )
        self.detector = detector or ArbitrageDetector(settings.min_profit_eth)
        self.cache = cache if cache is not None else PriceCache()
        self.events = events or EventLogger(settings.event_log_file)
        self.metrics = metrics
        self._sleep = sleep
        self._clock = clock

        self._watched: Dict[str, WatchedPool] = {}
        self.scheduler: Optional[Scheduler] = None
        self.start_time = clock()

        # Run statistics
        self.scans_completed = 0
        self.opportunities_found = 0
        self.trades_executed = 0

    @classmethod
    def from_settings(
        cls, settings: MonitorSettings, metrics: Optional[MonitorMetrics] = None
    ) -> "MonitorRunner":
        """
        Connect to the configured RPC and wire the default components.

        Raises:
            PriceSourceError: If the RPC endpoint is unreachable
        """
        web3 = connect(settings.rpc_url, settings.rpc_timeout_sec)
        return cls(
            settings,
            price_source=V2PriceSource(web3),
            gas_oracle=GasOracle(web3, settings.max_gas_price_gwei),
            metrics=metrics,
        )

    # === POOL REGISTRATION ===

    @property
    def watched_pools(self) -> List[WatchedPool]:
        return list(self._watched.values())

    async def add_watch_pool(
        self, address: str, exchange: str = "unknown"
    ) -> Optional[WatchedPool]:
        """
        Register a V2 pair for monitoring.

        Returns:
            The registered pool, or None if its tokens could not be read
        """
        if not Web3.is_address(address):
            logger.error(f"Failed to add watch pool {address}: invalid address")
            return None
        pool_id = Web3.to_checksum_address(address)

        try:
            token0, token1 = await self.price_source.fetch_tokens(pool_id)
        except (PriceSourceError, ValueError) as e:
            logger.error(f"Failed to add watch pool {pool_id}: {e}")
            return None

        pool = WatchedPool(pool_id=pool_id, token0=token0, token1=token1, exchange=exchange)
        self._watched[pool_id] = pool
        logger.info(f"Watching pool {format_address(pool_id)} on {exchange}")
        return pool

    async def load_configured_pools(self) -> int:
        """Register every pool listed in settings; returns how many succeeded."""
        added = 0
        for pool in self.settings.pools:
            if await self.add_watch_pool(pool.address, pool.exchange):
                added += 1
        logger.info(f"Loaded {added}/{len(self.settings.pools)} configured pools")
        return added

    # === PRICE REFRESH ===

    async def fetch_pool_price(self, pool_id: str) -> Optional[PoolObservation]:
        """
        Read current reserves of one watched pool into the cache.

        Returns:
            The new observation, or None if the pool has an empty reserve

        Raises:
            KeyError: If pool_id is not watched
            PriceSourceError: If the reserves cannot be read
        """
        pool = self._watched[pool_id]
        reserve0, reserve1 = await self.price_source.fetch_reserves(pool_id)
        observation = PoolObservation.from_reserves(
            pool, reserve0, reserve1, observed_at=self._clock()
        )
        if observation is None:
            logger.debug(f"Pool {format_address(pool_id)} has an empty reserve")
            return None

        self.cache.put(pool_id, observation)
        return observation

    async def refresh_prices(self) -> int:
        """
        Refresh all watched pools concurrently.

        A failed pool keeps its previous cache entry.

        Returns:
            Number of pools with a fresh observation
        """
        pools = self.watched_pools
        results = await asyncio.gather(
            *[self.fetch_pool_price(pool.pool_id) for pool in pools],
            return_exceptions=True,
        )

        refreshed = 0
        for pool, result in zip(pools, results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Failed to refresh {pool.exchange}/{format_address(pool.pool_id)}: {result}"
                )
                if self.metrics:
                    self.metrics.record_error(result, "price_refresh")
            elif result is not None:
                refreshed += 1

        if refreshed < len(pools):
            logger.debug(f"Refreshed {refreshed}/{len(pools)} pools")
        return refreshed

    # === SCAN CYCLE ===

    async def evaluate_opportunity(
        self, opportunity: ArbitrageOpportunity, gas_price: int
    ) -> Optional[ExecutionResult]:
        """
        Risk-check an opportunity and execute it if approved.

        Returns:
            ExecutionResult, or None if the risk scorer rejected it
        """
        assessment = self.risk_scorer.assess_trade_risk(
            opportunity, self.execution_gate.trade_amount_wei, gas_price
        )
        if not assessment.approved:
            self.events.risk_rejected(opportunity, assessment)
            if self.metrics:
                self.metrics.record_risk_rejection()
            return None

        result = await self.execution_gate.execute(opportunity, gas_price)
        if result.status == "executed":
            self.risk_scorer.record_trade_result(
                result.trade_amount, result.net_profit, result.gas_used
            )
            self.trades_executed += 1
            self.events.opportunity_executed(opportunity, result)
            if self.metrics:
                self.metrics.record_trade(result.net_profit, result.gas_cost)
                self.metrics.update_daily_pnl(self.risk_scorer.daily_stats.net_profit)
        return result

    async def read_gas_price(self) -> Optional[int]:
        """
        Current gas price in wei, falling back to the last known sample.

        Returns:
            Gas price, or None if it cannot be read and none was seen before
        """
        try:
            return await self.gas_oracle.get_current_gas_price()
        except PriceSourceError as e:
            if self.metrics:
                self.metrics.record_error(e, "gas_price")
            fallback = self.gas_oracle.get_last_gas_price()
            if fallback is None:
                logger.warning(f"Gas price unavailable, skipping evaluation this cycle: {e}")
            else:
                logger.warning(
                    f"Gas price read failed, using last known {format_gas_price(fallback)}: {e}"
                )
            return fallback

    async def run_cycle(self) -> List[ArbitrageOpportunity]:
        """
        Run one refresh / detect / evaluate pass.

        Returns:
            Opportunities detected this cycle, best first
        """
        if self.risk_scorer.should_halt_trading():
            logger.warning("Daily loss limit reached, circuit breaker active; skipping scan")
            return []

        started = self._clock()
        success = False
        refreshed = 0
        opportunities: List[ArbitrageOpportunity] = []

        try:
            refreshed = await self.refresh_prices()
            if refreshed > 0:
                opportunities = self.detector.scan(self.cache.get_all())
            self.opportunities_found += len(opportunities)

            gas_price = None
            if opportunities:
                gas_price = await self.read_gas_price()

            limit = self.settings.max_opportunities_per_cycle
            for index, opportunity in enumerate(opportunities):
                self.events.opportunity_detected(opportunity)
                executed = False
                if index < limit and gas_price is not None:
                    try:
                        result = await self.evaluate_opportunity(opportunity, gas_price)
                        executed = result is not None and result.success
                    except Exception as e:
                        logger.error(
                            f"Failed to evaluate opportunity "
                            f"{opportunity.pool_a.pool_id}/{opportunity.pool_b.pool_id}: {e}",
                            exc_info=True,
                        )
                        if self.metrics:
                            self.metrics.record_error(e, "evaluate_opportunity")
                if self.metrics:
                    self.metrics.record_opportunity(executed)

            success = True
            return opportunities
        except Exception as e:
            if self.metrics:
                self.metrics.record_error(e, "scan_cycle")
            raise
        finally:
            self.scans_completed += 1
            duration = self._clock() - started
            self.events.scan_cycle_performance(
                duration, success, refreshed, len(opportunities)
            )
            if self.metrics:
                self.metrics.record_scan(duration, success, refreshed)

    # === LOOP CONTROL ===

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.is_running

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """Scan every scan_interval_sec until stop() is called."""
        if self.is_running:
            logger.warning("Monitor is already running")
            return

        self.scheduler = Scheduler(
            self.settings.scan_interval_sec, sleep=self._sleep, max_cycles=max_cycles
        )
        self.start_time = self._clock()
        logger.info(
            f"Monitor started: {len(self._watched)} pools, "
            f"interval {self.settings.scan_interval_sec}s"
        )
        await self.scheduler.run(self.run_cycle)
        logger.info(f"Monitor stopped after {self.scans_completed} scans")

    def stop(self) -> None:
        if self.scheduler is not None:
            logger.info("Stopping monitor...")
            self.scheduler.stop()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "runtime": self._clock() - self.start_time,
            "scans_completed": self.scans_completed,
            "opportunities_found": self.opportunities_found,
            "trades_executed": self.trades_executed,
            "executions_attempted": self.execution_gate.executions_attempted,
            "executions_successful": self.execution_gate.executions_successful,
            "watched_pools": len(self._watched),
            "cached_prices": len(self.cache),
            "daily_stats": self.risk_scorer.get_daily_stats(),
        }
