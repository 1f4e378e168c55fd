"""
SMA Trading Agent Package

Phase 1: Market data + SMA indicators (demo or Dhan broker)
Phase 2: SMA crossover signals with learning feedback
Phase 3: Trade execution with confidence and market-hours gating
"""

__version__ = "0.1.0"
