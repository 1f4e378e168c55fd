"""
Parameter Optimizer - picks SMA periods from recent volatility

Fetches a short recent window of candles, measures the volatility of
period returns and maps it to SMA periods plus a confidence
multiplier, scaled by the ledger's per-symbol adjustment factor.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from config import StrategyConfig
from sma_agent.data.indicator_calculator import IndicatorCalculator

logger = logging.getLogger(__name__)


@dataclass
class StrategyParameters:
    short_period: int
    long_period: int
    confidence_multiplier: float

    @classmethod
    def defaults(cls) -> "StrategyParameters":
        short, long_, multiplier = StrategyConfig.DEFAULT_PARAMETERS
        return cls(short, long_, multiplier)


class ParameterOptimizer:
    """Volatility-driven SMA parameter selection"""

    def __init__(
        self,
        data_source,
        ledger,
        activity_log=None,
        indicators: IndicatorCalculator = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            data_source: MarketDataSource for recent candles
            ledger: PerformanceLedger providing the adjustment factor
            activity_log: Optional ActivityLog
            indicators: IndicatorCalculator (default: new instance)
            clock: Returns "now" (default: datetime.now)
        """
        self.data_source = data_source
        self.ledger = ledger
        self.activity_log = activity_log
        self.indicators = indicators or IndicatorCalculator()
        self._clock = clock or datetime.now

    def calculate_volatility(self, candles) -> float:
        if len(candles) < StrategyConfig.MIN_VOLATILITY_CANDLES:
            return StrategyConfig.FALLBACK_VOLATILITY
        return self.indicators.calculate_returns_volatility(candles)

    def parameters_for_volatility(self, volatility: float) -> StrategyParameters:
        if volatility > StrategyConfig.HIGH_VOLATILITY:
            return StrategyParameters(*StrategyConfig.HIGH_VOLATILITY_PARAMETERS)
        if volatility < StrategyConfig.LOW_VOLATILITY:
            return StrategyParameters(*StrategyConfig.LOW_VOLATILITY_PARAMETERS)
        return StrategyParameters.defaults()

    async def optimize(self, symbol: str) -> StrategyParameters:
        """
        Optimized parameters for a symbol.

        Never raises: on any failure the default parameters are returned
        and the error is logged.
        """
        try:
            now = self._clock()
            candles = await self.data_source.get_historical_data(
                symbol,
                StrategyConfig.OPTIMIZER_INTERVAL,
                now - timedelta(days=StrategyConfig.OPTIMIZER_LOOKBACK_DAYS),
                now
            )

            volatility = self.calculate_volatility(candles)
            params = self.parameters_for_volatility(volatility)
            params.confidence_multiplier *= self.ledger.get_confidence_adjustment(symbol)

            self._log(
                f"Optimized strategy for {symbol}: SMA({params.short_period}/{params.long_period}), "
                f"confidence x{params.confidence_multiplier:.2f}. "
                f"Volatility: {volatility * 100:.2f}%",
                "info"
            )
            return params

        except Exception as e:
            self._log(f"Failed to optimize strategy for {symbol}: {e}", "error")
            return StrategyParameters.defaults()

    def _log(self, message: str, severity: str):
        if self.activity_log is not None:
            self.activity_log.add(message, severity)
        else:
            logger.info(message)
