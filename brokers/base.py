"""
Abstract Broker Interface
=========================
Defines the contract every broker implementation must satisfy so the
SMA strategy and trade executor can run against the demo broker or the
live Dhan API without caring which one is behind them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional


class BrokerError(Exception):
    """Base class for broker failures"""


class DataFetchError(BrokerError):
    """Historical data or current price unavailable"""


class OrderPlacementError(BrokerError):
    """Broker rejected or failed an order submission"""


BUY = "BUY"
SELL = "SELL"
HOLD = "HOLD"

MARKET = "MARKET"
LIMIT = "LIMIT"


@dataclass(frozen=True)
class Candle:
    """One OHLCV sample for a fixed time bucket"""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass
class OrderRecord:
    """Order as acknowledged by the broker"""
    id: str
    timestamp: datetime
    symbol: str
    side: str  # "BUY" or "SELL"
    quantity: float
    price: Optional[float]
    status: str
    order_kind: str = MARKET


@dataclass
class Funds:
    """Account funds snapshot"""
    available_cash: float
    used_margin: float = 0.0
    total_margin: float = 0.0


@dataclass
class BrokerPosition:
    """Net position held at the broker (distinct from the strategy stance)"""
    symbol: str
    quantity: float
    price: float
    side: str
    timestamp: datetime
    pnl: float = 0.0


@dataclass
class UserProfile:
    name: str
    email: str
    client_id: str
    account_type: str


class MarketDataSource(ABC):
    """Supplies candles and prices for a symbol"""

    @abstractmethod
    async def get_historical_data(
        self,
        symbol: str,
        interval: str,
        from_time: datetime,
        to_time: datetime
    ) -> List[Candle]:
        """
        Fetch OHLCV candles in chronological order.

        Args:
            symbol: Trading symbol (e.g., "NIFTY", "BTCINR")
            interval: "5minute", "15minute", "30minute", "hour" or "day"
            from_time: Window start
            to_time: Window end

        Raises:
            DataFetchError: If the data cannot be retrieved
        """
        pass

    @abstractmethod
    async def get_current_price(self, symbol: str) -> float:
        """Latest traded price. Raises DataFetchError when unavailable."""
        pass

    @abstractmethod
    async def get_available_symbols(self) -> Dict[str, List[str]]:
        """Tradable symbols grouped as {"stocks": [...], "cryptos": [...]}"""
        pass


class OrderGateway(ABC):
    """Places orders and reports account state"""

    @abstractmethod
    async def place_order(
        self,
        symbol: str,
        side: str,
        quantity: float,
        order_kind: str = MARKET,
        limit_price: Optional[float] = None
    ) -> Optional[OrderRecord]:
        """
        Submit an order.

        Returns:
            OrderRecord on success, None if the broker rejected it
        """
        pass

    @abstractmethod
    async def get_orders(self) -> List[OrderRecord]:
        pass

    @abstractmethod
    async def get_positions(self) -> List[BrokerPosition]:
        pass

    @abstractmethod
    async def get_funds(self) -> Funds:
        pass

    @abstractmethod
    async def get_profile(self) -> UserProfile:
        pass


class Broker(MarketDataSource, OrderGateway):
    """
    Full broker capability set.

    Implementations are swappable: DemoBroker for paper trading,
    DhanSDK for the live API.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Broker name for logging/display"""
        pass

    async def initialize(self) -> bool:
        """Open connections. Returns True if successful."""
        return True

    async def close(self) -> None:
        """Clean up resources"""
        return None
