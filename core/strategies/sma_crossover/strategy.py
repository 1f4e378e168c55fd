"""
SMA Crossover Strategy - Main signal engine

Combines short/long SMA crossovers with a smoothed per-symbol signal
strength to produce BUY / SELL / HOLD recommendations:
1. Golden cross (short crosses above long) -> BUY unless already long
2. Death cross (short crosses below long) -> SELL unless already short
3. No crossover -> signal strength drifts toward the trend and a
   position is entered or flipped once it passes the strength bands
4. Confidence is scaled by the optimizer's multiplier, which includes
   the learning ledger's adjustment factor

Known quirk: SMA values are zero-filled until a full window exists, so
a candle series shorter than the long period can show a crossover
against the zero baseline. This is kept as-is.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from config import StrategyConfig
from brokers.base import Candle, DataFetchError, BUY, SELL, HOLD
from sma_agent.data.indicator_calculator import IndicatorCalculator
from utils.market_hours import market_is_tradable
from .position_tracker import PositionTracker, SIGNAL_STRENGTH_THRESHOLD, NEUTRAL_SIGNAL_STRENGTH
from .performance_ledger import PerformanceLedger
from .parameter_optimizer import ParameterOptimizer, StrategyParameters

logger = logging.getLogger(__name__)

# Confidence bases; each gets uniform jitter in [0, CONFIDENCE_JITTER)
CONFIDENCE_JITTER = 0.15
GOLDEN_CROSS_CONFIDENCE = 0.80
DEATH_CROSS_CONFIDENCE = 0.75
CROSS_HOLD_BULLISH_CONFIDENCE = 0.75
CROSS_HOLD_BEARISH_CONFIDENCE = 0.70
TREND_FLIP_CONFIDENCE = 0.65
TREND_CONFIDENCE = 0.60
NO_TREND_CONFIDENCE = 0.5
MARKET_CLOSED_CONFIDENCE = 0.9

CROSS_STRENGTH_STEP = 25
TREND_STRENGTH_STEP = 2
MARKET_CLOSED_STRENGTH_STEP = 5

# Signal-strength bands while trending
FLIP_TO_BUY_STRENGTH = 70
ENTER_BUY_STRENGTH = 75
FLIP_TO_SELL_STRENGTH = 30
ENTER_SELL_STRENGTH = 25
TREND_STRENGTH_CEILING = 95
TREND_STRENGTH_FLOOR = 5


@dataclass
class PredictionResult:
    action: str  # "BUY", "SELL" or "HOLD"
    confidence: float
    timestamp: datetime
    price: float
    message: str
    signal_strength: float = NEUTRAL_SIGNAL_STRENGTH


@dataclass
class StrategyContext:
    """
    Mutable strategy state owned by one engine.

    Build a fresh context per test (or per account) instead of sharing
    process-wide state. `rng` supplies confidence jitter; seed it for
    reproducible runs.
    """
    positions: PositionTracker = field(default_factory=PositionTracker)
    ledger: PerformanceLedger = field(default_factory=PerformanceLedger)
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def seeded(cls, seed: int, activity_log=None) -> "StrategyContext":
        return cls(
            positions=PositionTracker(),
            ledger=PerformanceLedger(activity_log=activity_log),
            rng=random.Random(seed)
        )


class SMACrossoverStrategy:
    """
    SMA crossover signal engine with position and signal tracking.

    Usage:
        context = StrategyContext.seeded(42)
        engine = SMACrossoverStrategy(broker, context, activity_log=log)

        # Fetch data and evaluate (never raises)
        result = await engine.run("NIFTY")

        # Or evaluate candles you already have
        result = engine.evaluate("NIFTY", candles, StrategyParameters(3, 5, 1.0))
    """

    STRATEGY_NAME = "SMA_CROSSOVER_V1"

    def __init__(
        self,
        data_source,
        context: StrategyContext = None,
        optimizer: ParameterOptimizer = None,
        activity_log=None,
        indicators: IndicatorCalculator = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the strategy engine.

        Args:
            data_source: MarketDataSource for historical candles
            context: Strategy state (default: fresh unseeded context)
            optimizer: Parameter optimizer (default: built from data_source)
            activity_log: Optional ActivityLog for operator messages
            indicators: IndicatorCalculator (default: new instance)
            clock: Returns "now"; drives market-hours checks and timestamps
        """
        self.data_source = data_source
        self.context = context or StrategyContext()
        self.activity_log = activity_log
        self.indicators = indicators or IndicatorCalculator()
        self._clock = clock or datetime.now
        self.optimizer = optimizer or ParameterOptimizer(
            data_source,
            self.context.ledger,
            activity_log=activity_log,
            indicators=self.indicators,
            clock=self._clock
        )

    @property
    def positions(self) -> PositionTracker:
        return self.context.positions

    @property
    def ledger(self) -> PerformanceLedger:
        return self.context.ledger

    def _jitter(self, base: float) -> float:
        return base + self.context.rng.random() * CONFIDENCE_JITTER

    def _record_exit(self, symbol: str, stance: str, price: float):
        """Record the outcome of closing `stance` at `price`"""
        entry_price = self.positions.get_entry_price(symbol)
        if entry_price is None:
            return
        successful = price > entry_price if stance == BUY else price < entry_price
        self.ledger.record_outcome(symbol, stance, entry_price, price, successful)

    async def run(self, symbol: str) -> PredictionResult:
        """
        Fetch parameters and candles, then evaluate.

        Never raises: failures produce a HOLD result with zero confidence
        and the error text in the message.
        """
        try:
            params = await self.optimizer.optimize(symbol)

            now = self._clock()
            candles = await self.data_source.get_historical_data(
                symbol,
                StrategyConfig.STRATEGY_INTERVAL,
                now - timedelta(days=StrategyConfig.STRATEGY_LOOKBACK_DAYS),
                now
            )
            return self.evaluate(symbol, candles, params)

        except Exception as e:
            self._log(f"Strategy error for {symbol}: {e}", "error")
            return PredictionResult(
                action=HOLD,
                confidence=0.0,
                timestamp=self._clock(),
                price=0.0,
                message=f"Error: {e}",
                signal_strength=NEUTRAL_SIGNAL_STRENGTH
            )

    def evaluate(
        self,
        symbol: str,
        candles: List[Candle],
        params: StrategyParameters
    ) -> PredictionResult:
        """
        Produce a recommendation from a candle window.

        Mutates the context: stance, entry price, signal strength,
        prediction history and, on exits, learning stats.

        Raises:
            DataFetchError: If fewer than two candles are supplied
        """
        if len(candles) < 2:
            raise DataFetchError(f"Not enough candles for {symbol} (got {len(candles)})")

        short_sma = self.indicators.calculate_sma(candles, params.short_period)
        long_sma = self.indicators.calculate_sma(candles, params.long_period)

        latest_short, previous_short = short_sma[-1], short_sma[-2]
        latest_long, previous_long = long_sma[-1], long_sma[-2]

        price = candles[-1].close
        position = self.positions.get_position(symbol)
        strength = self.positions.get_signal_strength(symbol)
        now = self._clock()

        if not market_is_tradable(symbol, now):
            return self._market_closed(symbol, price, strength, latest_short, latest_long, now)

        short_label = f"SMA({params.short_period})"
        long_label = f"SMA({params.long_period})"

        # Golden Cross - bullish
        if previous_short <= previous_long and latest_short > latest_long:
            new_strength = min(100, strength + CROSS_STRENGTH_STEP)

            if position != BUY:
                action = BUY
                confidence = self._jitter(GOLDEN_CROSS_CONFIDENCE)
                message = f"{short_label} crossed above {long_label} - Golden Cross detected"
                if position == SELL:
                    self._record_exit(symbol, SELL, price)
                self.positions.update_position(symbol, BUY, price, signal_strength=new_strength)
            else:
                action = HOLD
                confidence = self._jitter(CROSS_HOLD_BULLISH_CONFIDENCE)
                message = "Already in BUY position - Continue holding as trend is still bullish"

        # Death Cross - bearish
        elif previous_short >= previous_long and latest_short < latest_long:
            new_strength = max(0, strength - CROSS_STRENGTH_STEP)

            if position != SELL:
                action = SELL
                confidence = self._jitter(DEATH_CROSS_CONFIDENCE)
                message = f"{short_label} crossed below {long_label} - Death Cross detected"
                if position == BUY:
                    self._record_exit(symbol, BUY, price)
                self.positions.update_position(symbol, SELL, price, signal_strength=new_strength)
            else:
                action = HOLD
                confidence = self._jitter(CROSS_HOLD_BEARISH_CONFIDENCE)
                message = "Already in SELL position - Continue holding as trend is still bearish"

        # Bullish trend, no crossover
        elif latest_short > latest_long:
            new_strength = min(TREND_STRENGTH_CEILING, strength + TREND_STRENGTH_STEP)
            rise = new_strength - self.positions.get_entry_signal_strength(symbol)

            if (position == SELL and new_strength >= FLIP_TO_BUY_STRENGTH
                    and rise >= SIGNAL_STRENGTH_THRESHOLD):
                action = BUY
                confidence = self._jitter(TREND_FLIP_CONFIDENCE)
                message = f"Closing SELL position as bullish signal strength increased to {new_strength:.0f}%"
                self._record_exit(symbol, SELL, price)
                self.positions.update_position(symbol, BUY, price, signal_strength=new_strength)
            elif position != BUY and new_strength >= ENTER_BUY_STRENGTH:
                action = BUY
                confidence = self._jitter(TREND_CONFIDENCE)
                message = f"Strong bullish signal ({new_strength:.0f}%) - Entering bullish trend"
                if position == SELL:
                    self._record_exit(symbol, SELL, price)
                self.positions.update_position(symbol, BUY, price, signal_strength=new_strength)
            else:
                action = HOLD
                confidence = self._jitter(TREND_CONFIDENCE)
                message = f"Bullish trend continues - Signal strength: {new_strength:.0f}%"

        # Bearish trend, no crossover
        elif latest_short < latest_long:
            new_strength = max(TREND_STRENGTH_FLOOR, strength - TREND_STRENGTH_STEP)
            drop = self.positions.get_entry_signal_strength(symbol) - new_strength

            if (position == BUY and new_strength <= FLIP_TO_SELL_STRENGTH
                    and drop >= SIGNAL_STRENGTH_THRESHOLD):
                action = SELL
                confidence = self._jitter(TREND_FLIP_CONFIDENCE)
                message = f"Closing BUY position as bearish signal strength increased to {100 - new_strength:.0f}%"
                self._record_exit(symbol, BUY, price)
                self.positions.update_position(symbol, SELL, price, signal_strength=new_strength)
            elif position != SELL and new_strength <= ENTER_SELL_STRENGTH:
                action = SELL
                confidence = self._jitter(TREND_CONFIDENCE)
                message = f"Strong bearish signal ({100 - new_strength:.0f}%) - Entering bearish trend"
                if position == BUY:
                    self._record_exit(symbol, BUY, price)
                self.positions.update_position(symbol, SELL, price, signal_strength=new_strength)
            else:
                action = HOLD
                confidence = self._jitter(TREND_CONFIDENCE)
                message = f"Bearish trend continues - Signal strength: {100 - new_strength:.0f}%"

        else:
            new_strength = strength
            action = HOLD
            confidence = NO_TREND_CONFIDENCE
            message = f"{short_label} and {long_label} are nearly equal - No clear trend"

        self.positions.update_signal_strength(symbol, new_strength)

        confidence = min(StrategyConfig.MAX_CONFIDENCE, confidence * params.confidence_multiplier)

        performance = self.ledger.get_symbol_performance(symbol)
        if performance and performance["total_trades"] > 0:
            message += (
                f". Learning: {performance['total_trades']} trades, "
                f"{performance['success_rate'] * 100:.1f}% success rate, "
                f"{StrategyConfig.CURRENCY_SYMBOL}{performance['profit_loss_total']:.2f} P/L"
            )

        result = PredictionResult(
            action=action,
            confidence=confidence,
            timestamp=now,
            price=price,
            message=message,
            signal_strength=new_strength
        )
        self.ledger.record_prediction(symbol, result)

        self._log(
            f"Strategy prediction for {symbol}: {action} with "
            f"{confidence * 100:.1f}% confidence. {message}",
            "info"
        )
        return result

    def _market_closed(
        self,
        symbol: str,
        price: float,
        strength: float,
        latest_short: float,
        latest_long: float,
        now: datetime
    ) -> PredictionResult:
        """HOLD while the market is closed; signal strength still follows the SMA bias"""
        open_h, open_m = StrategyConfig.MARKET_OPEN
        close_h, close_m = StrategyConfig.MARKET_CLOSE
        message = (
            f"Market is closed for {symbol}. Trading available between "
            f"{open_h:02d}:{open_m:02d} and {close_h:02d}:{close_m:02d} on weekdays."
        )

        new_strength = strength
        if latest_short > latest_long:
            new_strength = min(TREND_STRENGTH_CEILING, strength + MARKET_CLOSED_STRENGTH_STEP)
            message += f" Bullish signal strength: {new_strength:.0f}%"
        elif latest_short < latest_long:
            new_strength = max(TREND_STRENGTH_FLOOR, strength - MARKET_CLOSED_STRENGTH_STEP)
            message += f" Bearish signal strength: {100 - new_strength:.0f}%"

        self.positions.update_signal_strength(symbol, new_strength)

        return PredictionResult(
            action=HOLD,
            confidence=MARKET_CLOSED_CONFIDENCE,
            timestamp=now,
            price=price,
            message=message,
            signal_strength=new_strength
        )

    def _log(self, message: str, severity: str):
        if self.activity_log is not None:
            self.activity_log.add(message, severity)
        else:
            logger.info(message)
