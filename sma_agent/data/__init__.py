"""
Data module for the SMA trading agent

Components:
- IndicatorCalculator: SMA and return volatility using the ta library
- candles_to_frame: Candle sequence -> OHLCV DataFrame
"""

from .indicator_calculator import IndicatorCalculator, candles_to_frame

__all__ = [
    'IndicatorCalculator',
    'candles_to_frame'
]
