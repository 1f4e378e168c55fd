"""
Market hours and asset-class helpers
"""

from datetime import datetime

from config import BrokerConfig, StrategyConfig


def is_market_open(now: datetime = None) -> bool:
    """
    Check if the equity market is open.

    Weekdays between StrategyConfig.MARKET_OPEN and MARKET_CLOSE (inclusive),
    in local wall-clock time.

    Args:
        now: Time to check (default: datetime.now())
    """
    now = now or datetime.now()

    # Saturday=5, Sunday=6
    if now.weekday() >= 5:
        return False

    current = (now.hour, now.minute)
    return StrategyConfig.MARKET_OPEN <= current <= StrategyConfig.MARKET_CLOSE


def is_crypto(symbol: str) -> bool:
    """Crypto symbols trade around the clock"""
    return (
        symbol in BrokerConfig.CRYPTO_SYMBOLS
        or symbol.startswith("CRYPTO_")
        or "BTC" in symbol
        or "ETH" in symbol
        or "USDT" in symbol
    )


def market_is_tradable(symbol: str, now: datetime = None) -> bool:
    """Crypto is always tradable; everything else follows market hours"""
    return is_crypto(symbol) or is_market_open(now)
