"""
Trade execution module for the SMA trading agent

Components:
- TradeExecutor: Auto, manual and closing orders with confidence and
  market-hours gating
"""

from .trade_executor import TradeExecutor

__all__ = ['TradeExecutor']
