#!/usr/bin/env python3
"""
SMA Trading Bot - Main Entry Point
Integrates all phases: Market Data + SMA Crossover Strategy + Trade Execution

Usage:
    # Demo mode (paper trading with synthetic prices)
    python -m sma_agent.bot_sma --demo

    # Live mode (Dhan broker, real orders)
    python -m sma_agent.bot_sma --live

    # Single cycle over specific symbols
    python -m sma_agent.bot_sma --demo --once --symbols NIFTY,CRYPTO_BTC
"""

import os
import sys
import asyncio
import logging
import argparse
from dotenv import load_dotenv

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from brokers import DemoBroker, DhanSDK
from core.strategies.sma_crossover import SMACrossoverStrategy, StrategyContext
from sma_agent.execution import TradeExecutor
from utils.activity_log import ActivityLog
from config import BrokerConfig, StrategyConfig, GlobalConfig, validate_config

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def setup_logging():
    """Log to logs/sma_bot.log and the console"""
    os.makedirs(GlobalConfig.LOG_DIR, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, GlobalConfig.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(GlobalConfig.LOG_DIR, GlobalConfig.LOG_FILE)),
            logging.StreamHandler()
        ]
    )


class SMATradingBot:
    """Main SMA trading bot orchestrator"""

    def __init__(
        self,
        broker,
        symbols=None,
        all_symbols: bool = False,
        check_interval: int = None,
        quantity: float = None,
        seed: int = None,
        activity_log: ActivityLog = None
    ):
        """
        Initialize SMA trading bot

        Args:
            broker: Broker implementation (DemoBroker or DhanSDK)
            symbols: Symbols to trade each cycle (default: GlobalConfig.DEFAULT_SYMBOL)
            all_symbols: Trade every symbol the broker offers instead
            check_interval: Seconds between cycles
            quantity: Order quantity per trade
            seed: Seed for confidence jitter
            activity_log: Shared ActivityLog (default: new instance)
        """
        self.broker = broker
        self.symbols = symbols or [GlobalConfig.DEFAULT_SYMBOL]
        self.all_symbols = all_symbols
        self.check_interval = check_interval or GlobalConfig.AUTO_TRADE_INTERVAL_SEC
        self.quantity = GlobalConfig.DEFAULT_QUANTITY if quantity is None else quantity

        self.activity_log = activity_log or ActivityLog()
        context = StrategyContext.seeded(seed, activity_log=self.activity_log)

        self.strategy = SMACrossoverStrategy(broker, context, activity_log=self.activity_log)
        self.executor = TradeExecutor(broker, self.strategy, activity_log=self.activity_log)

        logger.info("✅ SMA Trading Bot initialized")
        logger.info(f"   Broker: {broker.name}")
        logger.info(f"   Symbols: {'ALL' if all_symbols else ', '.join(self.symbols)}")
        logger.info(f"   Quantity: {self.quantity}")
        logger.info(f"   Interval: {self.check_interval}s")

    async def run_once(self):
        """Run one auto-trade cycle and log the dashboard summary"""
        logger.info("=" * 80)
        logger.info("Starting SMA strategy cycle")

        try:
            if self.all_symbols:
                await self.executor.run_all_symbols(self.quantity)
            else:
                for symbol in self.symbols:
                    await self.executor.auto_trade(symbol, self.quantity)

            await self.log_summary()

        except Exception as e:
            logger.error(f"Error in strategy cycle: {e}", exc_info=True)

    async def log_summary(self):
        """Dashboard view: funds, broker positions, tracked stances, performance"""
        currency = StrategyConfig.CURRENCY_SYMBOL
        funds = await self.broker.get_funds()
        positions = await self.broker.get_positions()

        logger.info("DASHBOARD:")
        logger.info(f"  Available cash: {currency}{funds.available_cash:,.2f}")

        if positions:
            logger.info("  Broker positions:")
            for p in positions:
                logger.info(f"    {p.symbol}: {p.side} {p.quantity} @ {currency}{p.price:.2f}")
        else:
            logger.info("  Broker positions: none")

        for symbol, stance in self.strategy.positions.get_all_positions().items():
            strength = self.strategy.positions.get_signal_strength(symbol)
            logger.info(f"  {symbol}: stance={stance or 'FLAT'} signal={strength:.0f}%")

        for symbol in self.strategy.ledger.symbols():
            perf = self.strategy.ledger.get_symbol_performance(symbol)
            if perf and perf["total_trades"] > 0:
                logger.info(
                    f"  {symbol} learning: {perf['total_trades']} trades, "
                    f"{perf['success_rate'] * 100:.1f}% success, "
                    f"{currency}{perf['profit_loss_total']:.2f} P/L, "
                    f"factor {perf['adjustment_factor']:.3f}"
                )
        logger.info("=" * 80)

    async def run(self):
        """Run bot continuously"""
        logger.info("Starting SMA Trading Bot main loop")
        logger.info(f"Check interval: {self.check_interval} seconds ({self.check_interval // 60} minutes)")

        while True:
            await self.run_once()

            logger.info(f"Sleeping for {self.check_interval} seconds...")
            await asyncio.sleep(self.check_interval)


async def _run_bot(bot: SMATradingBot, once: bool):
    if not await bot.broker.initialize():
        logger.error(f"❌ Failed to initialize {bot.broker.name} broker")
        return

    try:
        if once:
            logger.info("Running single strategy cycle...")
            await bot.run_once()
        else:
            await bot.run()
    finally:
        await bot.broker.close()


def main():
    """Main entry point"""

    parser = argparse.ArgumentParser(description="SMA Crossover Trading Bot")
    parser.add_argument("--demo", action="store_true", help="Run against the demo broker (paper trading)")
    parser.add_argument("--live", action="store_true", help="Run in LIVE mode (Dhan broker, real orders)")
    parser.add_argument("--once", action="store_true", help="Run once and exit (for testing)")
    parser.add_argument("--symbols", type=str, default=None, help="Comma-separated symbols (default: NIFTY)")
    parser.add_argument("--all-symbols", action="store_true", help="Trade every symbol the broker offers")
    parser.add_argument("--interval", type=int, default=GlobalConfig.AUTO_TRADE_INTERVAL_SEC,
                        help="Check interval in seconds (default: 300 = 5 min)")
    parser.add_argument("--quantity", type=float, default=GlobalConfig.DEFAULT_QUANTITY,
                        help="Order quantity per trade (default: 1)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for demo prices and confidence jitter")

    args = parser.parse_args()

    # Validate mode
    if not args.demo and not args.live:
        print("ERROR: Must specify either --demo or --live")
        sys.exit(1)

    if args.demo and args.live:
        print("ERROR: Cannot specify both --demo and --live")
        sys.exit(1)

    setup_logging()

    if args.live:
        BrokerConfig.DEMO_MODE = False

    try:
        validate_config()
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    activity_log = ActivityLog()
    if args.live:
        broker = DhanSDK(BrokerConfig.DHAN_ACCESS_TOKEN, BrokerConfig.DHAN_CLIENT_ID)
    else:
        broker = DemoBroker(seed=args.seed, activity_log=activity_log)

    symbols = [s.strip() for s in args.symbols.split(",") if s.strip()] if args.symbols else None

    bot = SMATradingBot(
        broker=broker,
        symbols=symbols,
        all_symbols=args.all_symbols,
        check_interval=args.interval,
        quantity=args.quantity,
        seed=args.seed,
        activity_log=activity_log
    )

    try:
        asyncio.run(_run_bot(bot, args.once))
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")


if __name__ == "__main__":
    main()
