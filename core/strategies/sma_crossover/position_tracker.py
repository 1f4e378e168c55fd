"""
Position Tracker - in-memory stance, entry price and signal strength per symbol

The stance is what the strategy believes it holds (BUY / SELL / None),
not the broker's actual holdings. Nothing is persisted; state lives as
long as the owning StrategyContext.
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Minimum cumulative signal-strength change required to flip a position
# outside of a crossover event
SIGNAL_STRENGTH_THRESHOLD = 15

NEUTRAL_SIGNAL_STRENGTH = 50


class PositionTracker:
    """
    Tracks per-symbol stance and signal strength (0-100, 50 = neutral).

    Pure state mutation: values are not range-checked, callers clamp.
    """

    def __init__(self):
        self._positions: Dict[str, Optional[str]] = {}
        self._entry_prices: Dict[str, float] = {}
        self._entry_signal_strength: Dict[str, float] = {}
        self._signal_strength: Dict[str, float] = {}

    def get_position(self, symbol: str) -> Optional[str]:
        """Current stance: "BUY", "SELL" or None"""
        return self._positions.get(symbol)

    def get_signal_strength(self, symbol: str) -> float:
        return self._signal_strength.get(symbol, NEUTRAL_SIGNAL_STRENGTH)

    def update_position(
        self,
        symbol: str,
        stance: Optional[str],
        price: float = None,
        signal_strength: float = None
    ):
        """
        Overwrite the stance for a symbol.

        Args:
            symbol: Trading symbol
            stance: "BUY", "SELL" or None
            price: Entry price, recorded when given
            signal_strength: Strength at entry (default: current strength)
        """
        self._positions[symbol] = stance
        if price is not None:
            self._entry_prices[symbol] = price
        self._entry_signal_strength[symbol] = (
            signal_strength if signal_strength is not None
            else self.get_signal_strength(symbol)
        )
        logger.debug(f"[POSITION] {symbol} -> {stance} (entry: {price})")

    def get_entry_price(self, symbol: str) -> Optional[float]:
        return self._entry_prices.get(symbol)

    def get_entry_signal_strength(self, symbol: str) -> float:
        """Signal strength when the current stance was taken"""
        return self._entry_signal_strength.get(symbol, NEUTRAL_SIGNAL_STRENGTH)

    def clear_position(self, symbol: str):
        """Reset stance to None and drop the entry price"""
        self._positions[symbol] = None
        self._entry_prices.pop(symbol, None)
        self._entry_signal_strength.pop(symbol, None)

    def update_signal_strength(self, symbol: str, strength: float):
        self._signal_strength[symbol] = strength

    def get_all_positions(self) -> Dict[str, Optional[str]]:
        """Copy of the symbol -> stance map"""
        return dict(self._positions)
