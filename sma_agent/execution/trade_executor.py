"""
Trade Executor
Turns SMA strategy recommendations into broker orders

Integrates with:
- SMACrossoverStrategy (recommendations, position tracker, ledger)
- Broker order gateway (order placement, current price)
- ActivityLog (operator feed)

Usage:
    executor = TradeExecutor(broker=broker, strategy=engine, activity_log=log)

    await executor.auto_trade("NIFTY", quantity=1)
    await executor.execute_manual_trade("NIFTY", "BUY", quantity=1)
    await executor.close_position("NIFTY", "BUY", quantity=1)
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from config import StrategyConfig, GlobalConfig
from brokers.base import BUY, SELL, HOLD, MARKET
from utils.market_hours import is_crypto, market_is_tradable

logger = logging.getLogger(__name__)


class TradeExecutor:
    """Execute strategy decisions with confidence and market-hours gating"""

    def __init__(
        self,
        broker,
        strategy,
        activity_log=None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize trade executor

        Args:
            broker: Broker used for prices and order placement
            strategy: SMACrossoverStrategy instance
            activity_log: Optional ActivityLog
            clock: Returns "now" for market-hours checks (default: datetime.now)
        """
        self.broker = broker
        self.strategy = strategy
        self.activity_log = activity_log
        self._clock = clock or datetime.now

        logger.info(f"✅ TradeExecutor initialized ({getattr(broker, 'name', 'broker')})")

    @property
    def positions(self):
        return self.strategy.positions

    @property
    def ledger(self):
        return self.strategy.ledger

    @staticmethod
    def confidence_threshold(symbol: str) -> float:
        """Minimum confidence for automatic execution"""
        if is_crypto(symbol):
            return StrategyConfig.CRYPTO_AUTO_TRADE_CONFIDENCE
        return StrategyConfig.AUTO_TRADE_CONFIDENCE

    def _market_open(self, symbol: str) -> bool:
        return market_is_tradable(symbol, self._clock())

    def _record_exit(self, symbol: str, stance: str, price: float):
        """Record the outcome of closing `stance` at `price`, P/L-sign based"""
        entry_price = self.positions.get_entry_price(symbol)
        if entry_price is None:
            return
        successful = price > entry_price if stance == BUY else price < entry_price
        self.ledger.record_outcome(symbol, stance, entry_price, price, successful)

    async def auto_trade(self, symbol: str, quantity: float = None):
        """
        Run the strategy and place an order when confident enough.

        Never raises; every failure ends up in the activity log.
        """
        if quantity is None:
            quantity = GlobalConfig.DEFAULT_QUANTITY

        try:
            prediction = await self.strategy.run(symbol)

            if prediction.action == HOLD:
                self._log(f"No trade action required for {symbol}. {prediction.message}", "info")
                return None

            if not self._market_open(symbol):
                self._log(
                    f"Cannot execute {prediction.action} order for {symbol} - Market is closed.",
                    "warning"
                )
                return None

            threshold = self.confidence_threshold(symbol)
            if prediction.confidence < threshold:
                self._log(
                    f"Decision for {symbol}: {prediction.action} "
                    f"(confidence: {prediction.confidence * 100:.1f}%) - Manual approval needed",
                    "warning"
                )
                return None

            self._log(
                f"Auto-executing {prediction.action} order for {quantity} {symbol} @ "
                f"{StrategyConfig.CURRENCY_SYMBOL}{prediction.price:.2f} "
                f"(confidence: {prediction.confidence * 100:.1f}%)",
                "info"
            )
            order = await self.broker.place_order(symbol, prediction.action, quantity, MARKET)
            if order is None:
                self._log(f"Order placement failed for {prediction.action} {quantity} {symbol}", "error")
            return order

        except Exception as e:
            self._log(f"Auto trade execution error for {symbol}: {e}", "error")
            return None

    async def run_all_symbols(self, quantity: float = None):
        """Auto-trade every symbol the broker offers (stocks, then cryptos)"""
        try:
            symbols = await self.broker.get_available_symbols()
        except Exception as e:
            self._log(f"Error running all symbols strategy: {e}", "error")
            return

        for symbol in symbols.get("stocks", []) + symbols.get("cryptos", []):
            await self.auto_trade(symbol, quantity)

    async def execute_manual_trade(self, symbol: str, action: str, quantity: float = None) -> bool:
        """
        Place a manual BUY/SELL and sync the tracked stance.

        Flipping an opposite stance records its outcome first.

        Returns:
            True if the order was placed
        """
        if quantity is None:
            quantity = GlobalConfig.DEFAULT_QUANTITY

        if action not in (BUY, SELL):
            self._log(f"Invalid manual action for {symbol}: {action}", "error")
            return False

        if not self._market_open(symbol):
            self._log(f"Cannot execute manual {action} order for {symbol} - Market is closed.", "warning")
            return False

        try:
            current_price = await self.broker.get_current_price(symbol)

            self._log(
                f"Manually executing {action} order for {quantity} {symbol} @ "
                f"{StrategyConfig.CURRENCY_SYMBOL}{current_price:.2f}",
                "info"
            )

            order = await self.broker.place_order(symbol, action, quantity, MARKET)
            if order is None:
                self._log(f"Manual {action} order for {symbol} was rejected", "error")
                return False

            current_position = self.positions.get_position(symbol)
            if current_position and current_position != action:
                self._record_exit(symbol, current_position, current_price)

            self.positions.update_position(symbol, action, current_price)
            return True

        except Exception as e:
            self._log(f"Manual trade execution error for {symbol}: {e}", "error")
            return False

    async def close_position(self, symbol: str, current_position: str, quantity: float = None) -> bool:
        """
        Close a stance with the opposite order.

        If the tracker still shows that stance, its outcome is recorded at
        the current price and the position is cleared.

        Returns:
            True if the closing order was placed
        """
        if quantity is None:
            quantity = GlobalConfig.DEFAULT_QUANTITY
        close_action = SELL if current_position == BUY else BUY

        if not self._market_open(symbol):
            self._log(f"Cannot close position for {symbol} - Market is closed.", "warning")
            return False

        try:
            self._log(
                f"Manually closing {current_position} position for {symbol} with "
                f"{close_action} order for {quantity} units",
                "info"
            )

            order = await self.broker.place_order(symbol, close_action, quantity, MARKET)
            if order is None:
                self._log(f"Closing order for {symbol} was rejected", "error")
                return False

            if self.positions.get_position(symbol) == current_position:
                current_price = await self.broker.get_current_price(symbol)
                self._record_exit(symbol, current_position, current_price)
                self.positions.clear_position(symbol)

            return True

        except Exception as e:
            self._log(f"Error closing position for {symbol}: {e}", "error")
            return False

    def _log(self, message: str, severity: str):
        if self.activity_log is not None:
            self.activity_log.add(message, severity)
        else:
            logger.info(message)
