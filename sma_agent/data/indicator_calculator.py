"""
Technical Indicators Calculator
Calculates moving averages over candle series using the `ta` library

Usage:
    calculator = IndicatorCalculator()
    sma_20 = calculator.calculate_sma(candles, period=20)
"""

import logging
from dataclasses import asdict
from typing import List, Sequence

import pandas as pd
import ta

from brokers.base import Candle

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """
    Convert a candle sequence to an OHLCV DataFrame

    Returns:
        DataFrame with columns: timestamp, open, high, low, close, volume
    """
    if not candles:
        return pd.DataFrame(columns=OHLCV_COLUMNS)

    df = pd.DataFrame([asdict(c) for c in candles], columns=OHLCV_COLUMNS)
    for col in OHLCV_COLUMNS[1:]:
        df[col] = df[col].astype(float)
    return df


class IndicatorCalculator:
    """Calculate technical indicators for market data"""

    def calculate_sma(self, candles: Sequence[Candle], period: int) -> List[float]:
        """
        Calculate Simple Moving Average of closes

        Positions without a full window of history (index < period - 1)
        are 0.0 rather than NaN, so a series shorter than `period` yields
        all zeros.

        Args:
            candles: Chronological candles
            period: SMA period (positive)

        Returns:
            List of SMA values, same length as candles
        """
        if not candles:
            return []

        closes = candles_to_frame(candles)["close"]
        sma = ta.trend.sma_indicator(closes, window=period)
        return sma.fillna(0.0).tolist()

    def calculate_returns_volatility(self, candles: Sequence[Candle]) -> float:
        """
        Population standard deviation of period-over-period returns

        Args:
            candles: Chronological candles (at least 2)

        Returns:
            Volatility as a decimal (e.g., 0.012 = 1.2%)
        """
        closes = candles_to_frame(candles)["close"]
        returns = closes.pct_change().dropna()
        if returns.empty:
            return 0.0
        return float(returns.std(ddof=0))
