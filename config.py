"""
Unified Configuration for the SMA Trading Agent
Single source of truth - no hardcoded values in strategy or bot files
"""
import os
from typing import Dict, List
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return default
    return [s.strip() for s in value.split(",") if s.strip()]


class BrokerConfig:
    """Dhan broker configuration (live and demo)"""

    # API - Load from environment variables
    DHAN_ACCESS_TOKEN = os.getenv("DHAN_ACCESS_TOKEN")
    DHAN_CLIENT_ID = os.getenv("DHAN_CLIENT_ID")
    BASE_URL = os.getenv("DHAN_BASE_URL", "https://api.dhan.co/api/v1")

    # Demo mode (paper trading against synthetic data)
    DEMO_MODE = _env_bool("SMA_DEMO_MODE", True)
    DEMO_FUNDS = float(os.getenv("SMA_DEMO_FUNDS", "100000"))
    DEMO_SEED = int(os.getenv("SMA_DEMO_SEED")) if os.getenv("SMA_DEMO_SEED") else None
    DEMO_CANDLE_VOLATILITY = 0.01  # 1% move per candle

    # Symbols offered by the broker
    STOCK_SYMBOLS = _env_list("SMA_STOCK_SYMBOLS", [
        "NIFTY", "BANKNIFTY", "RELIANCE", "TCS", "HDFCBANK",
        "INFY", "ICICIBANK", "HDFC", "LT", "SBIN",
    ])
    CRYPTO_SYMBOLS = _env_list("SMA_CRYPTO_SYMBOLS", [
        "BTCINR", "ETHINR", "BNBINR", "SOLINR", "DOTUSD", "ADAINR",
    ])

    # Reference prices used by the demo broker
    BASE_PRICES: Dict[str, float] = {
        "NIFTY": 22500,
        "BANKNIFTY": 48000,
        "RELIANCE": 2800,
        "TCS": 3900,
        "BTCINR": 5500000,
        "ETHINR": 260000,
    }
    DEFAULT_BASE_PRICE = 1000.0

    # Candle interval labels -> minutes
    INTERVAL_MINUTES: Dict[str, int] = {
        "5minute": 5,
        "15minute": 15,
        "30minute": 30,
        "hour": 60,
        "day": 1440,
    }


class StrategyConfig:
    """SMA crossover strategy and learning parameters"""

    # SMA periods by volatility regime (short, long, confidence multiplier)
    DEFAULT_PARAMETERS = (20, 50, 1.0)
    HIGH_VOLATILITY_PARAMETERS = (15, 40, 0.9)   # faster response, more cautious
    LOW_VOLATILITY_PARAMETERS = (25, 60, 1.1)    # slower response, more confident

    # Volatility bands (std-dev of period returns)
    HIGH_VOLATILITY = 0.025
    LOW_VOLATILITY = 0.01
    FALLBACK_VOLATILITY = 0.015  # used when fewer than MIN_VOLATILITY_CANDLES
    MIN_VOLATILITY_CANDLES = 5

    # Data windows
    STRATEGY_LOOKBACK_DAYS = 30
    STRATEGY_INTERVAL = "30minute"
    OPTIMIZER_LOOKBACK_DAYS = 5
    OPTIMIZER_INTERVAL = "15minute"

    # Auto-execution confidence thresholds
    AUTO_TRADE_CONFIDENCE = 0.7
    CRYPTO_AUTO_TRADE_CONFIDENCE = 0.6
    MAX_CONFIDENCE = 0.95

    # Learning ledger
    HISTORY_LIMIT = 100           # prediction records kept per symbol
    MIN_PREDICTIONS_FOR_ADJUSTMENT = 5
    ADJUSTMENT_KEEP_WEIGHT = 0.7  # old factor weight in the blend
    ADJUSTMENT_NEW_WEIGHT = 0.3

    # Market hours (local time, weekdays)
    MARKET_OPEN = (9, 15)
    MARKET_CLOSE = (15, 30)

    # Display
    CURRENCY_SYMBOL = "₹"


class GlobalConfig:
    """Global settings for the bot process"""

    # Logging
    LOG_DIR = os.getenv("SMA_LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("SMA_LOG_LEVEL", "INFO")
    LOG_FILE = "sma_bot.log"

    # Auto trading
    AUTO_TRADE_INTERVAL_SEC = int(os.getenv("SMA_AUTO_TRADE_INTERVAL", "300"))  # 5min
    DEFAULT_QUANTITY = int(os.getenv("SMA_DEFAULT_QUANTITY", "1"))
    DEFAULT_SYMBOL = "NIFTY"


def validate_config():
    """Validate configuration, raising ValueError with every problem found"""
    errors = []

    for label, (short, long_, multiplier) in [
        ("DEFAULT_PARAMETERS", StrategyConfig.DEFAULT_PARAMETERS),
        ("HIGH_VOLATILITY_PARAMETERS", StrategyConfig.HIGH_VOLATILITY_PARAMETERS),
        ("LOW_VOLATILITY_PARAMETERS", StrategyConfig.LOW_VOLATILITY_PARAMETERS),
    ]:
        if short <= 0 or long_ <= 0:
            errors.append(f"{label}: periods must be positive")
        if short >= long_:
            errors.append(f"{label}: short period {short} must be below long period {long_}")
        if multiplier <= 0:
            errors.append(f"{label}: confidence multiplier must be positive")

    if StrategyConfig.LOW_VOLATILITY >= StrategyConfig.HIGH_VOLATILITY:
        errors.append("LOW_VOLATILITY must be below HIGH_VOLATILITY")

    weights = StrategyConfig.ADJUSTMENT_KEEP_WEIGHT + StrategyConfig.ADJUSTMENT_NEW_WEIGHT
    if abs(weights - 1.0) > 1e-9:
        errors.append(f"Adjustment blend weights must sum to 1.0 (got {weights})")

    if GlobalConfig.AUTO_TRADE_INTERVAL_SEC < 1:
        errors.append("AUTO_TRADE_INTERVAL_SEC must be at least 1 second")

    for symbol in BrokerConfig.STOCK_SYMBOLS:
        if symbol in BrokerConfig.CRYPTO_SYMBOLS:
            errors.append(f"{symbol} listed as both stock and crypto")

    if not BrokerConfig.DEMO_MODE and not BrokerConfig.DHAN_ACCESS_TOKEN:
        errors.append("DHAN_ACCESS_TOKEN not set in environment (required when SMA_DEMO_MODE is off)")

    if errors:
        raise ValueError(f"Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))
