"""
Broker package

Components:
- Broker / MarketDataSource / OrderGateway: abstract interfaces
- DemoBroker: in-memory paper broker with synthetic candles
- DhanSDK: live Dhan REST client (aiohttp)
"""

from .base import (
    Broker,
    MarketDataSource,
    OrderGateway,
    Candle,
    OrderRecord,
    Funds,
    BrokerPosition,
    UserProfile,
    BrokerError,
    DataFetchError,
    OrderPlacementError,
    BUY,
    SELL,
    HOLD,
    MARKET,
    LIMIT,
)
from .demo.demo_broker import DemoBroker
from .dhan.dhan_sdk import DhanSDK

__all__ = [
    'Broker',
    'MarketDataSource',
    'OrderGateway',
    'Candle',
    'OrderRecord',
    'Funds',
    'BrokerPosition',
    'UserProfile',
    'BrokerError',
    'DataFetchError',
    'OrderPlacementError',
    'BUY',
    'SELL',
    'HOLD',
    'MARKET',
    'LIMIT',
    'DemoBroker',
    'DhanSDK',
]
