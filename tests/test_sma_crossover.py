"""
Tests for the SMA Crossover Strategy

Covers the indicator calculator, position tracker, performance ledger,
parameter optimizer and the signal engine itself.
"""

import os
import sys
import asyncio
import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from brokers.base import Candle, DataFetchError, BUY, SELL, HOLD
from brokers.demo.demo_broker import DemoBroker
from sma_agent.data.indicator_calculator import IndicatorCalculator, candles_to_frame
from core.strategies.sma_crossover import (
    PositionTracker,
    PerformanceLedger,
    ParameterOptimizer,
    StrategyParameters,
    SMACrossoverStrategy,
    StrategyContext,
    PredictionResult
)
from utils.activity_log import ActivityLog

MARKET_OPEN_TIME = datetime(2024, 1, 10, 11, 0)    # Wednesday
MARKET_CLOSED_TIME = datetime(2024, 1, 13, 11, 0)  # Saturday


def make_candles(closes, start=datetime(2024, 1, 1, 9, 15), minutes=30):
    return [
        Candle(
            timestamp=start + timedelta(minutes=minutes * i),
            open=c,
            high=c,
            low=c,
            close=c,
            volume=1000.0
        )
        for i, c in enumerate(closes)
    ]


def make_prediction(action, price=100.0, confidence=0.8, timestamp=None):
    return PredictionResult(
        action=action,
        confidence=confidence,
        timestamp=timestamp or MARKET_OPEN_TIME,
        price=price,
        message="test",
        signal_strength=50
    )


@pytest.fixture
def log():
    return ActivityLog()


@pytest.fixture
def engine(log):
    """Engine evaluated at a fixed, open-market time"""
    context = StrategyContext.seeded(7, activity_log=log)
    return SMACrossoverStrategy(
        Mock(),
        context,
        activity_log=log,
        clock=lambda: MARKET_OPEN_TIME
    )


GOLDEN_CROSS_CLOSES = [10.0] * 5 + [20.0]
DEATH_CROSS_CLOSES = [20.0] * 5 + [10.0]
PARAMS_3_5 = StrategyParameters(3, 5, 1.0)


class TestIndicatorCalculator:
    """Test SMA and volatility calculations"""

    def test_sma_empty(self):
        assert IndicatorCalculator().calculate_sma([], 3) == []

    def test_sma_zero_filled_warmup(self):
        """Positions before a full window are zero"""
        sma = IndicatorCalculator().calculate_sma(make_candles([1.0, 2.0, 3.0, 4.0]), 3)

        assert len(sma) == 4
        assert sma[0] == 0.0
        assert sma[1] == 0.0
        assert sma[2] == pytest.approx(2.0)
        assert sma[3] == pytest.approx(3.0)

    def test_sma_shorter_than_period_is_all_zero(self):
        sma = IndicatorCalculator().calculate_sma(make_candles([5.0, 6.0]), 5)
        assert sma == [0.0, 0.0]

    def test_sma_step_series(self):
        """Short SMA crosses above long SMA between index 4 and 5"""
        candles = make_candles([10.0] * 5 + [20.0] * 5)
        calc = IndicatorCalculator()

        short = calc.calculate_sma(candles, 3)
        long_ = calc.calculate_sma(candles, 5)

        assert short[4] == pytest.approx(10.0)
        assert long_[4] == pytest.approx(10.0)
        assert short[5] == pytest.approx(40.0 / 3)
        assert long_[5] == pytest.approx(12.0)
        assert short[5] > long_[5]
        assert short[9] == pytest.approx(20.0)
        assert long_[9] == pytest.approx(20.0)

    def test_volatility_flat_series(self):
        candles = make_candles([100.0] * 10)
        assert IndicatorCalculator().calculate_returns_volatility(candles) == 0.0

    def test_volatility_alternating_series(self):
        # Returns alternate +10% / -9.09...%
        candles = make_candles([100.0, 110.0, 100.0, 110.0, 100.0])
        vol = IndicatorCalculator().calculate_returns_volatility(candles)
        assert vol == pytest.approx((0.1 + 1 / 11) / 2)

    def test_candles_to_frame(self):
        df = candles_to_frame(make_candles([1.0, 2.0]))
        assert list(df.columns) == ["timestamp", "open", "high", "low", "close", "volume"]
        assert df["close"].tolist() == [1.0, 2.0]


class TestPositionTracker:
    """Test PositionTracker functionality"""

    def test_defaults(self):
        tracker = PositionTracker()
        assert tracker.get_position("NIFTY") is None
        assert tracker.get_signal_strength("NIFTY") == 50
        assert tracker.get_entry_price("NIFTY") is None

    def test_zero_signal_strength_is_kept(self):
        tracker = PositionTracker()
        tracker.update_signal_strength("NIFTY", 0)
        assert tracker.get_signal_strength("NIFTY") == 0

    def test_update_and_clear(self):
        tracker = PositionTracker()
        tracker.update_position("NIFTY", BUY, 100.0, signal_strength=75)

        assert tracker.get_position("NIFTY") == BUY
        assert tracker.get_entry_price("NIFTY") == 100.0
        assert tracker.get_entry_signal_strength("NIFTY") == 75

        tracker.clear_position("NIFTY")
        assert tracker.get_position("NIFTY") is None
        assert tracker.get_entry_price("NIFTY") is None
        assert tracker.get_all_positions() == {"NIFTY": None}

    def test_update_without_price_keeps_entry(self):
        tracker = PositionTracker()
        tracker.update_position("NIFTY", BUY, 100.0)
        tracker.update_position("NIFTY", SELL)

        assert tracker.get_position("NIFTY") == SELL
        assert tracker.get_entry_price("NIFTY") == 100.0


class TestPerformanceLedger:
    """Test PerformanceLedger functionality"""

    def test_record_prediction_counts(self):
        ledger = PerformanceLedger()
        ledger.record_prediction("NIFTY", make_prediction(BUY))
        ledger.record_prediction("NIFTY", make_prediction(HOLD))

        stats = ledger.get_stats("NIFTY")
        assert stats.total_predictions == 2
        assert stats.completed_trades == 0
        assert stats.average_confidence == 0.7
        assert len(ledger.get_recent_predictions("NIFTY")) == 2

    def test_record_outcome_without_history_is_noop(self):
        ledger = PerformanceLedger()
        assert ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True) is None
        assert ledger.get_symbol_performance("NIFTY") is None

    def test_record_outcome_without_matching_action(self):
        ledger = PerformanceLedger()
        ledger.record_prediction("NIFTY", make_prediction(SELL))

        assert ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True) is None
        assert ledger.get_symbol_performance("NIFTY")["total_trades"] == 0

    def test_buy_outcome_profit(self):
        ledger = PerformanceLedger()
        ledger.record_prediction("NIFTY", make_prediction(BUY))

        record = ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True)

        assert record.outcome.profit_loss == pytest.approx(10.0)
        perf = ledger.get_symbol_performance("NIFTY")
        assert perf["total_trades"] == 1
        assert perf["success_rate"] == 1.0
        assert perf["profit_loss_total"] == pytest.approx(10.0)

    def test_sell_outcome_profit_sign(self):
        ledger = PerformanceLedger()
        ledger.record_prediction("NIFTY", make_prediction(SELL))

        record = ledger.record_outcome("NIFTY", SELL, 100.0, 90.0, True)
        assert record.outcome.profit_loss == pytest.approx(10.0)

    def test_outcome_attaches_to_latest_open_record(self):
        ledger = PerformanceLedger()
        first = ledger.record_prediction("NIFTY", make_prediction(BUY, price=100.0))
        second = ledger.record_prediction("NIFTY", make_prediction(BUY, price=105.0))

        ledger.record_outcome("NIFTY", BUY, 105.0, 110.0, True)
        assert second.outcome is not None
        assert first.outcome is None

        ledger.record_outcome("NIFTY", BUY, 100.0, 90.0, False)
        assert first.outcome is not None
        assert first.outcome.successful is False

    def test_history_capped_fifo(self):
        ledger = PerformanceLedger()
        start = datetime(2024, 1, 1)
        for i in range(105):
            ledger.record_prediction("NIFTY", make_prediction(HOLD, timestamp=start + timedelta(minutes=i)))

        history = ledger.get_recent_predictions("NIFTY")
        assert len(history) == 100
        assert history[0].timestamp == start + timedelta(minutes=5)
        assert ledger.get_stats("NIFTY").total_predictions == 105

    def test_adjustment_unchanged_below_min_predictions(self):
        ledger = PerformanceLedger()
        for _ in range(4):
            ledger.record_prediction("NIFTY", make_prediction(BUY))

        ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True)
        assert ledger.get_confidence_adjustment("NIFTY") == 1.0

    def test_adjustment_blends_high_success(self):
        ledger = PerformanceLedger()
        for _ in range(5):
            ledger.record_prediction("NIFTY", make_prediction(BUY))

        ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True)
        # success rate 1.0 -> 1.3, blended 1.0 * 0.7 + 1.3 * 0.3
        assert ledger.get_confidence_adjustment("NIFTY") == pytest.approx(1.09)

    def test_adjustment_blends_low_success(self):
        ledger = PerformanceLedger()
        for _ in range(5):
            ledger.record_prediction("NIFTY", make_prediction(BUY))

        ledger.record_outcome("NIFTY", BUY, 100.0, 90.0, False)
        # success rate 0.0 -> 0.7, blended 1.0 * 0.7 + 0.7 * 0.3
        assert ledger.get_confidence_adjustment("NIFTY") == pytest.approx(0.91)

    def test_unknown_symbol_adjustment(self):
        assert PerformanceLedger().get_confidence_adjustment("NIFTY") == 1.0

    def test_learning_messages(self, log):
        ledger = PerformanceLedger(activity_log=log)
        ledger.record_prediction("NIFTY", make_prediction(BUY))
        ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True)

        entries = log.get_entries("success")
        assert len(entries) == 1
        assert "NIFTY BUY prediction succeeded" in entries[0].message


class TestParameterOptimizer:
    """Test volatility-driven parameter selection"""

    def _optimizer(self, candles=None, error=None, ledger=None):
        source = Mock()
        source.get_historical_data = AsyncMock(return_value=candles, side_effect=error)
        return ParameterOptimizer(source, ledger or PerformanceLedger(), clock=lambda: MARKET_OPEN_TIME)

    def test_volatility_bands(self):
        optimizer = self._optimizer()
        assert optimizer.parameters_for_volatility(0.03) == StrategyParameters(15, 40, 0.9)
        assert optimizer.parameters_for_volatility(0.005) == StrategyParameters(25, 60, 1.1)
        assert optimizer.parameters_for_volatility(0.015) == StrategyParameters(20, 50, 1.0)

    def test_few_candles_fall_back(self):
        optimizer = self._optimizer()
        assert optimizer.calculate_volatility(make_candles([1.0, 2.0, 3.0])) == 0.015

    def test_flat_series_is_low_volatility(self):
        optimizer = self._optimizer(candles=make_candles([100.0] * 20))
        params = asyncio.run(optimizer.optimize("NIFTY"))
        assert params == StrategyParameters(25, 60, pytest.approx(1.1))

    def test_multiplier_includes_adjustment(self):
        ledger = PerformanceLedger()
        for _ in range(5):
            ledger.record_prediction("NIFTY", make_prediction(BUY))
        ledger.record_outcome("NIFTY", BUY, 100.0, 110.0, True)

        optimizer = self._optimizer(candles=make_candles([1.0, 2.0]), ledger=ledger)
        params = asyncio.run(optimizer.optimize("NIFTY"))

        assert (params.short_period, params.long_period) == (20, 50)
        assert params.confidence_multiplier == pytest.approx(1.09)

    def test_fetch_error_returns_defaults(self):
        optimizer = self._optimizer(error=DataFetchError("down"))
        params = asyncio.run(optimizer.optimize("NIFTY"))
        assert params == StrategyParameters.defaults()

    def test_requested_window(self):
        optimizer = self._optimizer(candles=[])
        asyncio.run(optimizer.optimize("NIFTY"))

        args = optimizer.data_source.get_historical_data.call_args[0]
        assert args[0] == "NIFTY"
        assert args[1] == "15minute"
        assert args[3] - args[2] == timedelta(days=5)


class TestSMACrossoverStrategy:
    """Test the signal engine"""

    def test_golden_cross_enters_buy(self, engine):
        result = engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)

        assert result.action == BUY
        assert 0.80 <= result.confidence <= 0.95
        assert result.signal_strength == 75
        assert result.price == 20.0
        assert "Golden Cross" in result.message
        assert engine.positions.get_position("NIFTY") == BUY
        assert engine.positions.get_entry_price("NIFTY") == 20.0
        assert engine.positions.get_signal_strength("NIFTY") == 75

    def test_golden_cross_while_long_holds(self, engine):
        engine.positions.update_position("NIFTY", BUY, 15.0)
        result = engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)

        assert result.action == HOLD
        assert 0.75 <= result.confidence < 0.90
        assert result.signal_strength == 75
        assert engine.positions.get_entry_price("NIFTY") == 15.0

    def test_death_cross_exits_buy(self, engine):
        engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)
        result = engine.evaluate("NIFTY", make_candles(DEATH_CROSS_CLOSES), PARAMS_3_5)

        assert result.action == SELL
        assert 0.75 <= result.confidence < 0.90
        assert result.signal_strength == 50
        assert engine.positions.get_position("NIFTY") == SELL

        # BUY at 20 closed at 10
        perf = engine.ledger.get_symbol_performance("NIFTY")
        assert perf["total_trades"] == 1
        assert perf["success_rate"] == 0.0
        assert perf["profit_loss_total"] == pytest.approx(-10.0)
        assert "Learning: 1 trades, 0.0% success rate" in result.message

    def test_bullish_drift_enters_buy(self, engine):
        engine.positions.update_signal_strength("NIFTY", 74)
        candles = make_candles([float(i) for i in range(1, 11)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == BUY
        assert 0.60 <= result.confidence < 0.75
        assert result.signal_strength == 76
        assert "Entering bullish trend" in result.message

    def test_bullish_drift_holds_below_band(self, engine):
        candles = make_candles([float(i) for i in range(1, 11)])
        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == HOLD
        assert result.signal_strength == 52
        assert engine.positions.get_position("NIFTY") is None

    def test_bullish_drift_flips_sell_after_cumulative_rise(self, engine):
        engine.positions.update_position("NIFTY", SELL, 100.0, signal_strength=55)
        engine.positions.update_signal_strength("NIFTY", 68)
        candles = make_candles([float(i) for i in range(1, 11)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == BUY
        assert 0.65 <= result.confidence < 0.80
        assert "Closing SELL position" in result.message
        assert engine.positions.get_position("NIFTY") == BUY
        assert engine.positions.get_entry_price("NIFTY") == 10.0

    def test_bullish_drift_no_flip_without_enough_rise(self, engine):
        engine.positions.update_position("NIFTY", SELL, 100.0, signal_strength=60)
        engine.positions.update_signal_strength("NIFTY", 68)
        candles = make_candles([float(i) for i in range(1, 11)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == HOLD
        assert engine.positions.get_position("NIFTY") == SELL

    def test_bearish_drift_enters_sell(self, engine):
        engine.positions.update_signal_strength("NIFTY", 26)
        candles = make_candles([float(i) for i in range(10, 0, -1)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == SELL
        assert result.signal_strength == 24
        assert "Entering bearish trend" in result.message

    def test_golden_cross_exits_sell(self, engine):
        engine.ledger.record_prediction("NIFTY", make_prediction(SELL, price=25.0))
        engine.positions.update_position("NIFTY", SELL, 25.0)

        result = engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)

        assert result.action == BUY
        # SELL at 25 closed at 20
        perf = engine.ledger.get_symbol_performance("NIFTY")
        assert perf["total_trades"] == 1
        assert perf["success_rate"] == 1.0
        assert perf["profit_loss_total"] == pytest.approx(5.0)

    def test_bearish_drift_flips_buy_after_cumulative_drop(self, engine):
        engine.ledger.record_prediction("NIFTY", make_prediction(BUY, price=5.0))
        engine.positions.update_position("NIFTY", BUY, 5.0, signal_strength=47)
        engine.positions.update_signal_strength("NIFTY", 32)
        candles = make_candles([float(i) for i in range(10, 0, -1)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == SELL
        assert 0.65 <= result.confidence < 0.80
        assert result.signal_strength == 30
        assert "Closing BUY position" in result.message
        assert engine.positions.get_position("NIFTY") == SELL
        assert engine.positions.get_entry_price("NIFTY") == 1.0

        # BUY at 5 closed at 1
        perf = engine.ledger.get_symbol_performance("NIFTY")
        assert perf["total_trades"] == 1
        assert perf["success_rate"] == 0.0
        assert perf["profit_loss_total"] == pytest.approx(-4.0)

    def test_bullish_entry_from_sell_records_outcome(self, engine):
        """Entering a bullish trend from a SELL stance closes that stance"""
        engine.ledger.record_prediction("NIFTY", make_prediction(SELL, price=100.0))
        engine.positions.update_signal_strength("NIFTY", 73)
        engine.positions.update_position("NIFTY", SELL, 100.0)
        candles = make_candles([float(i) for i in range(1, 11)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == BUY
        assert "Entering bullish trend" in result.message
        assert engine.positions.get_position("NIFTY") == BUY

        # SELL at 100 closed at 10
        perf = engine.ledger.get_symbol_performance("NIFTY")
        assert perf["total_trades"] == 1
        assert perf["success_rate"] == 1.0
        assert perf["profit_loss_total"] == pytest.approx(90.0)

    def test_bearish_entry_from_buy_records_outcome(self, engine):
        """Entering a bearish trend from a BUY stance closes that stance"""
        engine.ledger.record_prediction("NIFTY", make_prediction(BUY, price=5.0))
        engine.positions.update_signal_strength("NIFTY", 27)
        engine.positions.update_position("NIFTY", BUY, 5.0)
        candles = make_candles([float(i) for i in range(10, 0, -1)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == SELL
        assert "Entering bearish trend" in result.message
        assert engine.positions.get_position("NIFTY") == SELL

        # BUY at 5 closed at 1
        perf = engine.ledger.get_symbol_performance("NIFTY")
        assert perf["total_trades"] == 1
        assert perf["success_rate"] == 0.0
        assert perf["profit_loss_total"] == pytest.approx(-4.0)

    def test_signal_strength_floor(self, engine):
        engine.positions.update_position("NIFTY", SELL, 10.0)
        engine.positions.update_signal_strength("NIFTY", 6)
        candles = make_candles([float(i) for i in range(10, 0, -1)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == HOLD
        assert result.signal_strength == 5

    def test_equal_smas_hold(self, engine):
        result = engine.evaluate("NIFTY", make_candles([100.0] * 10), StrategyParameters(3, 5, 1.1))

        assert result.action == HOLD
        assert result.confidence == pytest.approx(0.55)
        assert result.signal_strength == 50
        assert "nearly equal" in result.message

    def test_confidence_capped(self, engine):
        result = engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), StrategyParameters(3, 5, 2.0))
        assert result.confidence == 0.95

    def test_prediction_recorded(self, engine):
        engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)
        history = engine.ledger.get_recent_predictions("NIFTY")

        assert len(history) == 1
        assert history[0].action == BUY
        assert history[0].signal_strength == 75

    def test_market_closed_holds_without_record(self, log):
        context = StrategyContext.seeded(1)
        engine = SMACrossoverStrategy(Mock(), context, activity_log=log, clock=lambda: MARKET_CLOSED_TIME)

        result = engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)

        assert result.action == HOLD
        assert result.confidence == 0.9
        assert result.signal_strength == 55
        assert "Market is closed" in result.message
        assert engine.positions.get_position("NIFTY") is None
        assert engine.ledger.get_recent_predictions("NIFTY") == []

    def test_market_closed_bearish_drift(self, log):
        engine = SMACrossoverStrategy(Mock(), StrategyContext.seeded(1), activity_log=log,
                                      clock=lambda: MARKET_CLOSED_TIME)
        candles = make_candles([float(i) for i in range(10, 0, -1)])

        result = engine.evaluate("NIFTY", candles, PARAMS_3_5)

        assert result.action == HOLD
        assert result.signal_strength == 45
        assert "Bearish signal strength: 55%" in result.message
        assert engine.positions.get_signal_strength("NIFTY") == 45

    def test_market_closed_drift_clamped(self, log):
        engine = SMACrossoverStrategy(Mock(), StrategyContext.seeded(1), activity_log=log,
                                      clock=lambda: MARKET_CLOSED_TIME)

        engine.positions.update_signal_strength("NIFTY", 7)
        falling = make_candles([float(i) for i in range(10, 0, -1)])
        assert engine.evaluate("NIFTY", falling, PARAMS_3_5).signal_strength == 5

        engine.positions.update_signal_strength("NIFTY", 93)
        rising = make_candles([float(i) for i in range(1, 11)])
        assert engine.evaluate("NIFTY", rising, PARAMS_3_5).signal_strength == 95

    def test_crypto_ignores_market_hours(self, log):
        context = StrategyContext.seeded(1)
        engine = SMACrossoverStrategy(Mock(), context, activity_log=log, clock=lambda: MARKET_CLOSED_TIME)

        result = engine.evaluate("CRYPTO_BTC", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5)
        assert result.action == BUY

    def test_short_history_crosses_zero_baseline(self, engine):
        """Two candles: short SMA leaves the zero baseline, long SMA stays at zero"""
        result = engine.evaluate("NIFTY", make_candles([10.0, 11.0]), StrategyParameters(2, 5, 1.0))
        assert result.action == BUY

    def test_too_few_candles(self, engine):
        with pytest.raises(DataFetchError):
            engine.evaluate("NIFTY", make_candles([10.0]), PARAMS_3_5)

    def test_run_error_returns_hold(self, log):
        source = Mock()
        source.get_historical_data = AsyncMock(side_effect=DataFetchError("boom"))
        engine = SMACrossoverStrategy(source, StrategyContext.seeded(1), activity_log=log,
                                      clock=lambda: MARKET_OPEN_TIME)

        result = asyncio.run(engine.run("NIFTY"))

        assert result.action == HOLD
        assert result.confidence == 0.0
        assert result.price == 0.0
        assert result.signal_strength == 50
        assert result.message == "Error: boom"
        assert result.timestamp == MARKET_OPEN_TIME
        assert any("Strategy error for NIFTY" in e.message for e in log.get_entries("error"))

    def test_run_flat_series_uses_low_volatility_params(self, log):
        source = Mock()
        source.get_historical_data = AsyncMock(return_value=make_candles([100.0] * 80))
        engine = SMACrossoverStrategy(source, StrategyContext.seeded(1), activity_log=log,
                                      clock=lambda: MARKET_OPEN_TIME)

        result = asyncio.run(engine.run("NIFTY"))

        assert result.action == HOLD
        assert result.confidence == pytest.approx(0.5 * 1.1)
        assert "SMA(25) and SMA(60)" in result.message

        args = source.get_historical_data.call_args_list[1][0]
        assert args[1] == "30minute"
        assert args[3] - args[2] == timedelta(days=30)

    def test_seeded_runs_are_reproducible(self):
        def run_seeded():
            context = StrategyContext.seeded(42)
            engine = SMACrossoverStrategy(Mock(), context, clock=lambda: MARKET_OPEN_TIME)
            return engine.evaluate("NIFTY", make_candles(GOLDEN_CROSS_CLOSES), PARAMS_3_5).confidence

        assert run_seeded() == run_seeded()

    def test_run_against_demo_broker(self, log):
        broker = DemoBroker(seed=3)
        engine = SMACrossoverStrategy(broker, StrategyContext.seeded(3), activity_log=log,
                                      clock=lambda: MARKET_OPEN_TIME)

        result = asyncio.run(engine.run("NIFTY"))

        assert result.action in (BUY, SELL, HOLD)
        assert not result.message.startswith("Error")
        assert 0.0 < result.confidence <= 0.95
        assert result.price > 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
