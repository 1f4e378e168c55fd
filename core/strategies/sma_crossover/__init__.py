"""
SMA Crossover Strategy

A moving-average crossover signal engine with a small self-adjusting
confidence loop.

Components:
- PositionTracker: Per-symbol stance, entry price and signal strength
- PerformanceLedger: Prediction history, outcomes and adjustment factor
- ParameterOptimizer: Volatility-based SMA periods and confidence multiplier
- SMACrossoverStrategy: Produces BUY / SELL / HOLD recommendations
- StrategyContext: The mutable state an engine owns
"""

from .position_tracker import PositionTracker, SIGNAL_STRENGTH_THRESHOLD
from .performance_ledger import (
    PerformanceLedger,
    PerformanceStats,
    PredictionRecord,
    PredictionOutcome
)
from .parameter_optimizer import ParameterOptimizer, StrategyParameters
from .strategy import SMACrossoverStrategy, StrategyContext, PredictionResult

__all__ = [
    "PositionTracker",
    "SIGNAL_STRENGTH_THRESHOLD",
    "PerformanceLedger",
    "PerformanceStats",
    "PredictionRecord",
    "PredictionOutcome",
    "ParameterOptimizer",
    "StrategyParameters",
    "SMACrossoverStrategy",
    "StrategyContext",
    "PredictionResult"
]
