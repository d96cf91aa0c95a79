"""
Prometheus Metrics Server for the DEX Arbitrage Monitor

Exposes scan, detection, risk and P&L metrics for monitoring and alerting,
plus an in-memory performance summary for the console.
"""

import logging
import threading
import time
from collections import Counter as CounterDict
from collections import deque
from decimal import Decimal
from typing import Any, Callable, Deque, Dict, List, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from arbitrage_monitor.utils import format_duration

logger = logging.getLogger(__name__)


class PerformanceTracker:
    """
    Rolling performance statistics for one monitor run.

    Durations are in seconds; money amounts in ETH.
    """

    def __init__(self, max_history: int = 100, clock: Callable[[], float] = time.time):
        self.max_history = max_history
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        now = self._clock()
        self.scan_durations: Deque[float] = deque(maxlen=self.max_history)
        self.total_scans = 0
        self.successful_scans = 0
        self.failed_scans = 0
        self.opportunities_detected = 0
        self.opportunities_executed = 0
        self.total_profit = Decimal(0)
        self.total_loss = Decimal(0)
        self.total_gas_cost = Decimal(0)
        self.errors: Deque[Dict[str, Any]] = deque(maxlen=self.max_history)
        self.error_counts: CounterDict = CounterDict()
        self.start_time = now

    def record_scan(self, duration: float, success: bool = True) -> None:
        self.total_scans += 1
        if success:
            self.successful_scans += 1
        else:
            self.failed_scans += 1
        self.scan_durations.append(duration)

    def record_opportunity(self, executed: bool = False) -> None:
        self.opportunities_detected += 1
        if executed:
            self.opportunities_executed += 1

    def record_trade(self, profit: Decimal, gas_cost: Decimal) -> None:
        if profit > 0:
            self.total_profit += profit
        else:
            self.total_loss += abs(profit)
        self.total_gas_cost += gas_cost

    def record_error(self, error: BaseException, context: str = "general") -> None:
        error_type = type(error).__name__
        self.errors.append(
            {"message": str(error), "type": error_type, "context": context, "timestamp": self._clock()}
        )
        self.error_counts[error_type] += 1

    def get_average_scan_duration(self) -> float:
        if not self.scan_durations:
            return 0.0
        return sum(self.scan_durations) / len(self.scan_durations)

    def get_success_rate(self) -> float:
        if self.total_scans == 0:
            return 0.0
        return self.successful_scans / self.total_scans * 100

    def get_execution_rate(self) -> float:
        if self.opportunities_detected == 0:
            return 0.0
        return self.opportunities_executed / self.opportunities_detected * 100

    def get_net_profit(self) -> Decimal:
        # Trade profits are already net of gas
        return self.total_profit - self.total_loss

    def get_recent_errors(self, minutes: float = 30) -> List[Dict[str, Any]]:
        cutoff = self._clock() - minutes * 60
        return [e for e in self.errors if e["timestamp"] > cutoff]

    def get_most_common_error(self) -> Optional[str]:
        if not self.error_counts:
            return None
        return self.error_counts.most_common(1)[0][0]

    def get_performance_summary(self) -> Dict[str, Any]:
        runtime = self._clock() - self.start_time
        runtime_hours = runtime / 3600
        return {
            "runtime": {"seconds": runtime, "formatted": format_duration(runtime)},
            "scanning": {
                "total_scans": self.total_scans,
                "success_rate": self.get_success_rate(),
                "average_duration": self.get_average_scan_duration(),
                "scans_per_hour": self.total_scans / runtime_hours if runtime_hours > 0 else 0.0,
            },
            "opportunities": {
                "detected": self.opportunities_detected,
                "executed": self.opportunities_executed,
                "execution_rate": self.get_execution_rate(),
            },
            "trading": {
                "total_profit": self.total_profit,
                "total_loss": self.total_loss,
                "total_gas_cost": self.total_gas_cost,
                "net_profit": self.get_net_profit(),
            },
            "errors": {
                "total_errors": len(self.errors),
                "recent_errors": len(self.get_recent_errors(60)),
                "error_types": len(self.error_counts),
                "most_common_error": self.get_most_common_error(),
            },
        }

    def generate_report(self) -> str:
        summary = self.get_performance_summary()
        scanning = summary["scanning"]
        opportunities = summary["opportunities"]
        errors = summary["errors"]

        lines = [
            "PERFORMANCE REPORT",
            "=" * 50,
            f"Runtime: {summary['runtime']['formatted']}",
            f"Scans: {scanning['total_scans']} ({scanning['success_rate']:.1f}% success)",
            f"Avg Scan Time: {scanning['average_duration'] * 1000:.0f}ms",
            f"Opportunities: {opportunities['detected']} detected, "
            f"{opportunities['executed']} executed",
            f"Net Profit: {summary['trading']['net_profit']:.6f} ETH",
            f"Errors: {errors['total_errors']} total, {errors['recent_errors']} recent",
        ]
        if errors["most_common_error"]:
            lines.append(f"Most Common Error: {errors['most_common_error']}")
        lines.append("=" * 50)
        return "\n".join(lines)


class MonitorMetrics:
    """
    Monitor metrics collection and exposure

    Provides Prometheus-compatible metrics for:
    - Scan cycle outcomes and duration
    - Opportunity detection and execution
    - Risk rejections
    - Daily P&L
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()
        self.performance = PerformanceTracker()

        # Server components
        self._app = None
        self._runner = None
        self._site = None

        # Thread-safe access
        self._lock = threading.RLock()

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""

        # === SCAN METRICS ===
        self.scans_total = Counter(
            "dex_arbitrage_scans_total",
            "Total scan cycles by outcome",
            ["status"],
            registry=self.registry,
        )

        self.scan_duration_seconds = Histogram(
            "dex_arbitrage_scan_duration_seconds",
            "Duration of complete scan cycles",
            buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
            registry=self.registry,
        )

        self.pools_refreshed = Gauge(
            "dex_arbitrage_pools_refreshed",
            "Pools successfully refreshed in the last cycle",
            registry=self.registry,
        )

        # === OPPORTUNITY METRICS ===
        self.opportunities_detected_total = Counter(
            "dex_arbitrage_opportunities_detected_total",
            "Total opportunities above the profit threshold",
            registry=self.registry,
        )

        self.opportunities_executed_total = Counter(
            "dex_arbitrage_opportunities_executed_total",
            "Total opportunities executed (simulated)",
            registry=self.registry,
        )

        self.risk_rejections_total = Counter(
            "dex_arbitrage_risk_rejections_total",
            "Total opportunities rejected by the risk scorer",
            registry=self.registry,
        )

        # === P&L METRICS ===
        self.daily_net_profit_eth = Gauge(
            "dex_arbitrage_daily_net_profit_eth",
            "Net profit of the current trading day in ETH",
            registry=self.registry,
        )

        self.system_errors_total = Counter(
            "dex_arbitrage_system_errors_total",
            "Total errors encountered",
            ["error_type"],
            registry=self.registry,
        )

    # === METRIC RECORDING METHODS ===

    def record_scan(self, duration_seconds: float, success: bool, pools_refreshed: int = 0):
        """Record a completed scan cycle"""
        with self._lock:
            self.scans_total.labels(status="success" if success else "failed").inc()
            self.scan_duration_seconds.observe(duration_seconds)
            self.pools_refreshed.set(pools_refreshed)
            self.performance.record_scan(duration_seconds, success)

    def record_opportunity(self, executed: bool = False):
        with self._lock:
            self.opportunities_detected_total.inc()
            if executed:
                self.opportunities_executed_total.inc()
            self.performance.record_opportunity(executed)

    def record_trade(self, net_profit: Decimal, gas_cost: Decimal):
        with self._lock:
            self.performance.record_trade(net_profit, gas_cost)

    def record_risk_rejection(self):
        with self._lock:
            self.risk_rejections_total.inc()

    def update_daily_pnl(self, net_profit: Decimal):
        with self._lock:
            self.daily_net_profit_eth.set(float(net_profit))

    def record_error(self, error: BaseException, context: str = "general"):
        """Record an error"""
        with self._lock:
            self.system_errors_total.labels(error_type=type(error).__name__).inc()
            self.performance.record_error(error, context)

    # === SERVER MANAGEMENT ===

    async def start_server(
        self, port: int = 8000, host: str = "0.0.0.0", path: str = "/metrics"
    ):
        """Start Prometheus metrics HTTP server"""
        try:
            self._app = web.Application()
            self._app.router.add_get(path, self._metrics_handler)
            self._app.router.add_get("/health", self._health_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(f"Prometheus metrics server started on http://{host}:{port}{path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self):
        """Stop the metrics server"""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._site = None
        self._runner = None
        logger.info("Metrics server stopped")

    async def _metrics_handler(self, request):
        """Handle metrics endpoint requests"""
        metrics_output = generate_latest(self.registry)
        # aiohttp rejects a charset inside content_type
        content_type = CONTENT_TYPE_LATEST.split(";")[0]
        return web.Response(text=metrics_output.decode("utf-8"), content_type=content_type)

    async def _health_handler(self, request):
        """Handle health check endpoint"""
        return web.json_response({"status": "healthy", "service": "dex_arbitrage_monitor"})
