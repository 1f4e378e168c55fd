"""
Performance Ledger - records predictions and their outcomes per symbol

Each strategy prediction is appended to a per-symbol history (capped,
oldest evicted first). When a position is closed or flipped, the
outcome is attached to the most recent matching prediction and the
symbol's win/loss counters feed a smoothed confidence adjustment
factor that the parameter optimizer applies to future signals.

Usage:
    ledger = PerformanceLedger()
    ledger.record_prediction("NIFTY", prediction)
    ledger.record_outcome("NIFTY", "BUY", entry_price=100.0,
                          closing_price=104.0, successful=True)
    ledger.get_symbol_performance("NIFTY")
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, List, Optional

from config import StrategyConfig

logger = logging.getLogger(__name__)


@dataclass
class PredictionOutcome:
    successful: bool
    profit_loss: float
    closing_price: float
    closing_timestamp: datetime


@dataclass
class PredictionRecord:
    """A single strategy prediction, with its outcome once known"""
    timestamp: datetime
    symbol: str
    action: str  # "BUY", "SELL" or "HOLD"
    confidence: float
    price: float
    signal_strength: Optional[float] = None
    outcome: Optional[PredictionOutcome] = None


@dataclass
class PerformanceStats:
    total_predictions: int = 0
    successful_predictions: int = 0
    failed_predictions: int = 0
    profit_loss_total: float = 0.0
    average_confidence: float = 0.7
    adjustment_factor: float = 1.0

    @property
    def completed_trades(self) -> int:
        return self.successful_predictions + self.failed_predictions


class PerformanceLedger:
    """
    Per-symbol prediction history and learning statistics.

    Stats are created lazily on the first prediction and never reset.
    """

    def __init__(self, history_limit: int = None, activity_log=None):
        """
        Args:
            history_limit: Max prediction records kept per symbol
            activity_log: Optional ActivityLog for learning messages
        """
        self.history_limit = history_limit or StrategyConfig.HISTORY_LIMIT
        self.activity_log = activity_log
        self._history: Dict[str, Deque[PredictionRecord]] = {}
        self._stats: Dict[str, PerformanceStats] = {}

    def record_prediction(self, symbol: str, prediction) -> PredictionRecord:
        """
        Append a prediction to the symbol's history.

        Args:
            symbol: Trading symbol
            prediction: PredictionResult (action, confidence, timestamp,
                price, signal_strength)
        """
        history = self._history.setdefault(symbol, deque(maxlen=self.history_limit))
        record = PredictionRecord(
            timestamp=prediction.timestamp,
            symbol=symbol,
            action=prediction.action,
            confidence=prediction.confidence,
            price=prediction.price,
            signal_strength=getattr(prediction, "signal_strength", None)
        )
        history.append(record)

        stats = self._stats.setdefault(symbol, PerformanceStats())
        stats.total_predictions += 1
        return record

    def record_outcome(
        self,
        symbol: str,
        action: str,
        entry_price: float,
        closing_price: float,
        successful: bool
    ) -> Optional[PredictionRecord]:
        """
        Attach an outcome to the latest open prediction for `action`.

        The `successful` flag is taken as given; it is not checked
        against the sign of the computed profit/loss.

        Returns:
            The updated record, or None if no matching record was found
        """
        history = self._history.get(symbol)
        if not history:
            return None

        record = next(
            (r for r in reversed(history) if r.action == action and r.outcome is None),
            None
        )
        if record is None:
            return None

        if action == "BUY":
            profit_loss = closing_price - entry_price
        else:
            profit_loss = entry_price - closing_price

        record.outcome = PredictionOutcome(
            successful=successful,
            profit_loss=profit_loss,
            closing_price=closing_price,
            closing_timestamp=datetime.now()
        )

        stats = self._stats[symbol]
        if successful:
            stats.successful_predictions += 1
        else:
            stats.failed_predictions += 1
        stats.profit_loss_total += profit_loss

        self._update_adjustment_factor(symbol)

        self._log(
            f"Learning: {symbol} {action} prediction {'succeeded' if successful else 'failed'} "
            f"with P/L of {StrategyConfig.CURRENCY_SYMBOL}{profit_loss:.2f}. "
            f"New adjustment factor: {stats.adjustment_factor:.2f}",
            "success" if successful else "warning"
        )
        return record

    def _update_adjustment_factor(self, symbol: str):
        """Blend a success-rate-derived factor into the stored one"""
        stats = self._stats.get(symbol)
        if not stats or stats.total_predictions < StrategyConfig.MIN_PREDICTIONS_FOR_ADJUSTMENT:
            return  # Not enough data

        completed = stats.completed_trades
        if completed == 0:
            return
        success_rate = stats.successful_predictions / completed

        if success_rate >= 0.7:
            new_factor = 1.0 + (success_rate - 0.7)  # up to 1.3
        elif success_rate >= 0.5:
            new_factor = 0.9 + (success_rate - 0.5)  # 0.9 to 1.1
        else:
            new_factor = 0.7 + success_rate * 0.4    # down to 0.7

        stats.adjustment_factor = (
            stats.adjustment_factor * StrategyConfig.ADJUSTMENT_KEEP_WEIGHT
            + new_factor * StrategyConfig.ADJUSTMENT_NEW_WEIGHT
        )

    def get_confidence_adjustment(self, symbol: str) -> float:
        stats = self._stats.get(symbol)
        return stats.adjustment_factor if stats else 1.0

    def get_symbol_performance(self, symbol: str) -> Optional[Dict]:
        """
        Performance summary for a symbol.

        Returns:
            None if nothing was recorded, else dict with success_rate,
            total_trades (completed only), profit_loss_total and
            adjustment_factor
        """
        stats = self._stats.get(symbol)
        if stats is None:
            return None

        completed = stats.completed_trades
        return {
            "success_rate": stats.successful_predictions / completed if completed else 0.0,
            "total_trades": completed,
            "profit_loss_total": stats.profit_loss_total,
            "adjustment_factor": stats.adjustment_factor
        }

    def get_stats(self, symbol: str) -> Optional[PerformanceStats]:
        return self._stats.get(symbol)

    def get_recent_predictions(self, symbol: str) -> List[PredictionRecord]:
        return list(self._history.get(symbol, ()))

    def symbols(self) -> List[str]:
        return list(self._stats.keys())

    def _log(self, message: str, severity: str):
        if self.activity_log is not None:
            self.activity_log.add(message, severity)
        else:
            logger.info(f"[LEDGER] {message}")
