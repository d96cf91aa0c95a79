"""
Structured monitor events.

Each event is a regular log record carrying ``event`` and ``payload`` extras so
handlers can filter or ship them; when a JSONL path is configured the same
record is appended there as one JSON object per line.
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from dex.tokens import pair_label

if TYPE_CHECKING:
    from arbitrage_monitor.risk_controls import RiskAssessment
    from dex.types import ArbitrageOpportunity, ExecutionResult

# Opportunities above this profit are worth an INFO line even if not executed
NOTABLE_PROFIT_PCT = 1.0

OPPORTUNITY_DETECTED = "opportunity_detected"
OPPORTUNITY_EXECUTED = "opportunity_executed"
RISK_REJECTED = "risk_rejected"
SCAN_CYCLE_PERFORMANCE = "scan_cycle_performance"


def opportunity_payload(opportunity: "ArbitrageOpportunity") -> Dict[str, Any]:
    return {
        "pair": pair_label(opportunity.token0, opportunity.token1),
        "profit": opportunity.profit_percent,
        "exchanges": list(opportunity.exchanges),
        "pools": [opportunity.pool_a.pool_id, opportunity.pool_b.pool_id],
        "token0": opportunity.token0,
        "token1": opportunity.token1,
    }


class EventLogger:
    def __init__(self, jsonl_path: Optional[str] = None, logger_name: str = "arbitrage_monitor.events"):
        self.logger = logging.getLogger(logger_name)
        self.jsonl_path = Path(jsonl_path) if jsonl_path else None
        if self.jsonl_path:
            self.jsonl_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = threading.Lock()

    def _emit(self, level: int, event: str, message: str, payload: Dict[str, Any]) -> None:
        self.logger.log(level, message, extra={"event": event, "payload": payload})

        if self.jsonl_path is None:
            return

        entry = {
            "event": event,
            "timestamp": datetime.now().isoformat(),
            "message": message,
            "payload": payload,
        }
        with self._file_lock:
            with open(self.jsonl_path, "a") as f:
                json.dump(entry, f, default=str)
                f.write("\n")

    def opportunity_detected(self, opportunity: "ArbitrageOpportunity") -> None:
        a, b = opportunity.exchanges
        level = (
            logging.INFO
            if opportunity.profit_percent > NOTABLE_PROFIT_PCT
            else logging.DEBUG
        )
        self._emit(
            level,
            OPPORTUNITY_DETECTED,
            f"Arbitrage detected: {pair_label(opportunity.token0, opportunity.token1)} "
            f"{opportunity.profit_percent:.2f}% between {a} and {b}",
            opportunity_payload(opportunity),
        )

    def opportunity_executed(
        self, opportunity: "ArbitrageOpportunity", result: "ExecutionResult"
    ) -> None:
        a, b = opportunity.exchanges
        payload = opportunity_payload(opportunity)
        payload.update(
            {
                "trade_amount": result.trade_amount,
                "estimated_profit": result.estimated_profit,
                "gas_cost": result.gas_cost,
                "net_profit": result.net_profit,
                "gas_used": result.gas_used,
            }
        )
        self._emit(
            logging.INFO,
            OPPORTUNITY_EXECUTED,
            f"Arbitrage executed: {opportunity.profit_percent:.2f}% between {a} and {b}",
            payload,
        )

    def risk_rejected(
        self, opportunity: "ArbitrageOpportunity", assessment: "RiskAssessment"
    ) -> None:
        payload = opportunity_payload(opportunity)
        payload.update(assessment.to_dict())
        self._emit(
            logging.WARNING,
            RISK_REJECTED,
            f"Trade rejected by risk assessment: score={assessment.score} "
            f"({assessment.recommendation.value})",
            payload,
        )

    def scan_cycle_performance(
        self,
        duration: float,
        success: bool,
        pools_refreshed: int,
        opportunities: int,
    ) -> None:
        status = "completed" if success else "failed"
        self._emit(
            logging.DEBUG,
            SCAN_CYCLE_PERFORMANCE,
            f"Scan cycle {status} in {duration * 1000:.0f}ms",
            {
                "duration_ms": round(duration * 1000, 3),
                "success": success,
                "pools_refreshed": pools_refreshed,
                "opportunities": opportunities,
            },
        )
