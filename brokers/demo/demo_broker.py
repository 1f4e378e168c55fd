"""
Demo Broker
===========
Paper-trading implementation of the Broker interface.

Generates random-walk candles around a per-symbol base price, fills
MARKET orders instantly at a synthetic current price, keeps demo funds
and derives net positions from its own order book.

Usage:
    broker = DemoBroker(funds=100000, seed=42)
    candles = await broker.get_historical_data("NIFTY", "30minute", start, end)
    order = await broker.place_order("NIFTY", "BUY", 1)
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from config import BrokerConfig
from ..base import (
    Broker, Candle, OrderRecord, Funds, BrokerPosition, UserProfile,
    DataFetchError, BUY, SELL, MARKET, LIMIT
)

logger = logging.getLogger(__name__)


class DemoBroker(Broker):
    """In-memory broker for demo mode"""

    def __init__(self, funds: float = None, seed: int = None, activity_log=None):
        """
        Initialize demo broker

        Args:
            funds: Starting demo cash (default: BrokerConfig.DEMO_FUNDS)
            seed: RNG seed for reproducible prices and candles
            activity_log: Optional ActivityLog for trade entries
        """
        self._rng = random.Random(seed if seed is not None else BrokerConfig.DEMO_SEED)
        self.demo_funds = float(funds if funds is not None else BrokerConfig.DEMO_FUNDS)
        self.activity_log = activity_log
        self.orders: List[OrderRecord] = []
        self._order_seq = 0

        logger.info(f"✅ DemoBroker initialized (funds: {self.demo_funds:,.2f})")

    @property
    def name(self) -> str:
        return "Demo"

    def add_demo_funds(self, amount: float) -> None:
        """Replace the demo cash balance"""
        self.demo_funds = float(amount)
        self._log(f"Added {amount:,.2f} in demo funds", "info")

    def _log(self, message: str, severity: str):
        if self.activity_log is not None:
            self.activity_log.add(message, severity)
        else:
            logger.info(message)

    # ===== Market Data =====

    async def get_available_symbols(self) -> Dict[str, List[str]]:
        return {
            "stocks": list(BrokerConfig.STOCK_SYMBOLS),
            "cryptos": list(BrokerConfig.CRYPTO_SYMBOLS),
        }

    async def get_current_price(self, symbol: str) -> float:
        """Random price between 90% and 110% of the symbol's base value"""
        base = BrokerConfig.BASE_PRICES.get(symbol, BrokerConfig.DEFAULT_BASE_PRICE)
        return base * (0.9 + self._rng.random() * 0.2)

    async def get_historical_data(
        self,
        symbol: str,
        interval: str,
        from_time: datetime,
        to_time: datetime
    ) -> List[Candle]:
        """Random-walk candles from from_time (inclusive) to to_time (exclusive)"""
        if to_time <= from_time:
            raise DataFetchError(f"Empty time range for {symbol}: {from_time} >= {to_time}")

        minutes = BrokerConfig.INTERVAL_MINUTES.get(interval, 5)
        step = timedelta(minutes=minutes)
        volatility = BrokerConfig.DEMO_CANDLE_VOLATILITY

        price = await self.get_current_price(symbol) * 0.95  # start slightly below
        candles = []
        current = from_time

        while current < to_time:
            change = (self._rng.random() - 0.5) * 2 * volatility * price
            open_ = price
            close = open_ + change
            high = max(open_, close) + self._rng.random() * volatility * price
            low = min(open_, close) - self._rng.random() * volatility * price
            volume = float(self._rng.randint(5000, 14999))

            candles.append(Candle(
                timestamp=current,
                open=open_,
                high=high,
                low=low,
                close=close,
                volume=volume
            ))

            current += step
            price = close

        logger.debug(f"Generated {len(candles)} demo candles for {symbol} ({interval})")
        return candles

    # ===== Orders & Account =====

    async def place_order(
        self,
        symbol: str,
        side: str,
        quantity: float,
        order_kind: str = MARKET,
        limit_price: Optional[float] = None
    ) -> Optional[OrderRecord]:
        if side not in (BUY, SELL):
            logger.error(f"Invalid order side: {side}")
            return None
        if order_kind == LIMIT and limit_price is None:
            logger.error(f"LIMIT order for {symbol} needs a limit price")
            return None

        current_price = await self.get_current_price(symbol)
        fill_price = current_price if order_kind == MARKET else limit_price

        self._order_seq += 1
        order = OrderRecord(
            id=f"DEMO_{int(datetime.now().timestamp() * 1000)}_{self._order_seq}",
            timestamp=datetime.now(),
            symbol=symbol,
            side=side,
            quantity=quantity,
            price=fill_price,
            status="EXECUTED",
            order_kind=order_kind
        )

        notional = quantity * fill_price
        if side == BUY:
            self.demo_funds -= notional
        else:
            self.demo_funds += notional

        self.orders.append(order)
        self._log(
            f"Demo order placed: {side} {quantity} {symbol} at "
            f"{order_kind} {limit_price if limit_price else 'market'} price",
            "trade"
        )
        return order

    async def get_orders(self) -> List[OrderRecord]:
        return list(self.orders)

    async def get_positions(self) -> List[BrokerPosition]:
        """Net positions derived from the demo order book"""
        positions: Dict[str, BrokerPosition] = {}

        for order in self.orders:
            pos = positions.get(order.symbol)
            if pos is None:
                pos = BrokerPosition(
                    symbol=order.symbol,
                    quantity=0,
                    price=0.0,
                    side=BUY,
                    timestamp=datetime.now()
                )
                positions[order.symbol] = pos

            if order.side == BUY:
                pos.quantity += order.quantity
            else:
                pos.quantity -= order.quantity
            pos.side = BUY if pos.quantity > 0 else SELL

            if pos.quantity != 0:
                pos.price = order.price or await self.get_current_price(order.symbol)

        for pos in positions.values():
            current_price = await self.get_current_price(pos.symbol)
            if pos.side == BUY:
                pos.pnl = (current_price - pos.price) * pos.quantity
            else:
                pos.pnl = (pos.price - current_price) * abs(pos.quantity)

        return [p for p in positions.values() if p.quantity != 0]

    async def get_funds(self) -> Funds:
        return Funds(
            available_cash=self.demo_funds,
            used_margin=0.0,
            total_margin=self.demo_funds
        )

    async def get_profile(self) -> UserProfile:
        return UserProfile(
            name="Demo User",
            email="demo@example.com",
            client_id="DEMO123456",
            account_type="Demo Account"
        )
