import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Union

from web3 import Web3

if TYPE_CHECKING:
    from arbitrage_monitor.config_schema import MonitorSettings
    from dex.types import ArbitrageOpportunity

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

# Score weights per risk level
CRITICAL_WEIGHT = 100
HIGH_WEIGHT = 25
MEDIUM_WEIGHT = 5

# Scores at or above this are rejected outright
APPROVAL_SCORE_LIMIT = 50


class RiskLevel(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Recommendation(str, Enum):
    REJECT_CRITICAL = "REJECT - Critical risks present"
    REJECT_HIGH = "REJECT - High risk"
    CAUTION_MEDIUM = "CAUTION - Medium risk"
    PROCEED_LOW = "PROCEED - Low risk"
    PROCEED_MINIMAL = "PROCEED - Minimal risk"


@dataclass(frozen=True)
class RiskFlag:
    level: RiskLevel
    reason: str


@dataclass
class RiskAssessment:
    approved: bool
    score: int
    risks: List[RiskFlag] = field(default_factory=list)
    recommendation: Recommendation = Recommendation.PROCEED_MINIMAL

    def count(self, level: RiskLevel) -> int:
        return sum(1 for r in self.risks if r.level == level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "approved": self.approved,
            "score": self.score,
            "risks": [{"level": r.level.value, "reason": r.reason} for r in self.risks],
            "recommendation": self.recommendation.value,
        }


@dataclass
class DailyTradingStats:
    day: date
    trades: int = 0
    total_profit: Decimal = Decimal(0)
    total_loss: Decimal = Decimal(0)

    @property
    def net_profit(self) -> Decimal:
        return self.total_profit - self.total_loss


def get_risk_recommendation(score: int) -> Recommendation:
    if score >= 100:
        return Recommendation.REJECT_CRITICAL
    if score >= 50:
        return Recommendation.REJECT_HIGH
    if score >= 25:
        return Recommendation.CAUTION_MEDIUM
    if score >= 10:
        return Recommendation.PROCEED_LOW
    return Recommendation.PROCEED_MINIMAL


def calculate_risk_score(risks: List[RiskFlag]) -> RiskAssessment:
    """
    Weigh flagged risks into an approve/reject decision.

    A single critical risk vetoes the trade whatever the score.
    """
    critical_count = sum(1 for r in risks if r.level == RiskLevel.CRITICAL)
    high_count = sum(1 for r in risks if r.level == RiskLevel.HIGH)
    medium_count = sum(1 for r in risks if r.level == RiskLevel.MEDIUM)

    score = (
        critical_count * CRITICAL_WEIGHT
        + high_count * HIGH_WEIGHT
        + medium_count * MEDIUM_WEIGHT
    )
    approved = score < APPROVAL_SCORE_LIMIT and critical_count == 0

    if risks:
        logger.debug(
            f"Risk assessment completed: score={score} approved={approved} "
            f"risks={len(risks)} critical={critical_count}"
        )

    return RiskAssessment(
        approved=approved,
        score=score,
        risks=list(risks),
        recommendation=get_risk_recommendation(score),
    )


class RiskScorer:
    """
    Rule-based trade gate with a daily loss circuit breaker.

    Owns the only DailyTradingStats of the process. The window rolls over
    lazily: every assessment and halt check first compares today() with the
    stored day and resets the counters when they differ.
    """

    def __init__(
        self,
        min_profit_threshold: float = 0.01,
        max_slippage_pct: float = 3.0,
        max_gas_price_gwei: float = 50,
        max_trade_size_eth: Number = Decimal("1.0"),
        daily_loss_limit_eth: Number = Decimal("0.5"),
        suspicious_profit_pct: float = 10.0,
        today: Callable[[], date] = date.today,
    ):
        self.min_profit_threshold = min_profit_threshold
        self.max_slippage_pct = max_slippage_pct
        self.max_gas_price_gwei = max_gas_price_gwei
        self.max_trade_size_eth = Decimal(str(max_trade_size_eth))
        self.daily_loss_limit_eth = Decimal(str(daily_loss_limit_eth))
        self.suspicious_profit_pct = suspicious_profit_pct
        self._today = today

        self.max_gas_price_wei = Web3.to_wei(Decimal(str(max_gas_price_gwei)), "gwei")
        self.max_trade_size_wei = Web3.to_wei(self.max_trade_size_eth, "ether")
        self.daily_stats = DailyTradingStats(day=self._today())

    @classmethod
    def from_settings(
        cls, settings: "MonitorSettings", today: Callable[[], date] = date.today
    ) -> "RiskScorer":
        return cls(
            min_profit_threshold=settings.min_profit_eth,
            max_slippage_pct=settings.max_slippage_pct,
            max_gas_price_gwei=settings.max_gas_price_gwei,
            max_trade_size_eth=settings.max_trade_size_eth,
            daily_loss_limit_eth=settings.daily_loss_limit_eth,
            suspicious_profit_pct=settings.suspicious_profit_pct,
            today=today,
        )

    def reset_daily_stats(self) -> None:
        today = self._today()
        if self.daily_stats.day == today:
            return

        logger.info(
            f"Resetting daily statistics: previous profit={self.daily_stats.total_profit} ETH "
            f"loss={self.daily_stats.total_loss} ETH trades={self.daily_stats.trades}"
        )
        self.daily_stats = DailyTradingStats(day=today)

    def detect_suspicious_activity(self, opportunity: "ArbitrageOpportunity") -> bool:
        # Very wide spreads usually mean a manipulated or stale pool, not free money
        return opportunity.profit_percent > self.suspicious_profit_pct

    def assess_trade_risk(
        self,
        opportunity: "ArbitrageOpportunity",
        trade_amount: int,
        gas_price: int,
    ) -> RiskAssessment:
        """
        Score an opportunity for a proposed trade size and gas price.

        Args:
            opportunity: Detected opportunity
            trade_amount: Proposed trade size in wei
            gas_price: Prevailing gas price in wei

        Returns:
            RiskAssessment with the flagged risks in rule order
        """
        self.reset_daily_stats()

        risks: List[RiskFlag] = []
        profit_pct = opportunity.profit_percent
        min_profit_pct = self.min_profit_threshold * 100

        if profit_pct < min_profit_pct:
            risks.append(
                RiskFlag(
                    RiskLevel.HIGH,
                    f"Profit {profit_pct:.2f}% below threshold {min_profit_pct}%",
                )
            )

        if profit_pct < self.max_slippage_pct:
            risks.append(
                RiskFlag(RiskLevel.MEDIUM, "Low profit margin vulnerable to slippage")
            )

        if gas_price > self.max_gas_price_wei:
            gas_gwei = Web3.from_wei(gas_price, "gwei")
            risks.append(
                RiskFlag(
                    RiskLevel.HIGH,
                    f"Gas price {gas_gwei} gwei exceeds limit {self.max_gas_price_gwei} gwei",
                )
            )

        if trade_amount > self.max_trade_size_wei:
            trade_eth = Web3.from_wei(trade_amount, "ether")
            risks.append(
                RiskFlag(
                    RiskLevel.HIGH,
                    f"Trade size {trade_eth} ETH exceeds maximum {self.max_trade_size_eth} ETH",
                )
            )

        if self.daily_stats.total_loss >= self.daily_loss_limit_eth:
            risks.append(
                RiskFlag(
                    RiskLevel.CRITICAL,
                    f"Daily loss limit {self.daily_loss_limit_eth} ETH reached",
                )
            )

        if self.detect_suspicious_activity(opportunity):
            risks.append(
                RiskFlag(
                    RiskLevel.MEDIUM,
                    "Potential frontrunning or sandwich attack detected",
                )
            )

        return calculate_risk_score(risks)

    def record_trade_result(
        self, trade_amount: int, profit: Number, gas_used: int
    ) -> None:
        self.daily_stats.trades += 1
        profit = Decimal(str(profit))

        if profit > 0:
            self.daily_stats.total_profit += profit
            logger.info(
                f"Profitable trade recorded: profit={profit:.6f} ETH gas_used={gas_used} "
                f"daily_profit={self.daily_stats.total_profit} ETH"
            )
        else:
            self.daily_stats.total_loss += abs(profit)
            logger.warning(
                f"Loss recorded: loss={abs(profit):.6f} ETH "
                f"daily_loss={self.daily_stats.total_loss} ETH"
            )

    def get_daily_stats(self) -> Dict[str, Any]:
        return {
            "day": self.daily_stats.day.isoformat(),
            "trades": self.daily_stats.trades,
            "total_profit": self.daily_stats.total_profit,
            "total_loss": self.daily_stats.total_loss,
            "net_profit": self.daily_stats.net_profit,
        }

    def should_halt_trading(self) -> bool:
        self.reset_daily_stats()
        return self.daily_stats.total_loss >= self.daily_loss_limit_eth
