#!/usr/bin/env python3
"""
DEX arbitrage monitor CLI.

Watches the configured V2 pairs, logs cross-venue price divergences and runs
approved opportunities through a simulated execution step.

Usage:
    python3 run_monitor.py
    python3 run_monitor.py --config configs/monitor.example.yaml
    python3 run_monitor.py --config configs/monitor.example.yaml --once
    python3 run_monitor.py --config configs/monitor.example.yaml --interactive
"""

import argparse
import asyncio
import sys
from typing import Awaitable, Callable, Dict, List, Optional, TextIO

from tabulate import tabulate

import logging_config
from arbitrage_monitor import PROJECT_NAME, VERSION
from arbitrage_monitor.config_schema import MonitorSettings
from arbitrage_monitor.exceptions import PriceSourceError
from arbitrage_monitor.metrics import MonitorMetrics
from arbitrage_monitor.utils import (
    format_address,
    format_duration,
    format_gas_price,
    get_logger,
)
from dex.config import ConfigError, load_config
from dex.runner import MonitorRunner
from dex.tokens import get_token_name

logger = get_logger(__name__)

HELP_TEXT = """
Monitor Commands:

Monitor Control:
  start          - Start the scan loop
  stop           - Stop the scan loop
  status         - Show monitor status

Information:
  stats          - Show performance statistics
  config         - Show current configuration
  pairs          - Show watched pools
  gas            - Show gas price information
  risk           - Show risk management status

Logging:
  log            - Show the current log level
  log <level>    - Set log level (error, warn, info, debug)

Utility:
  clear          - Clear the screen
  help, h        - Show this help message
  exit, quit, q  - Exit the console
"""


class MonitorConsole:
    """
    Interactive command console around a MonitorRunner.

    The scan loop runs as a background task so the console stays responsive.
    """

    def __init__(
        self,
        runner: MonitorRunner,
        metrics: Optional[MonitorMetrics] = None,
        out: TextIO = sys.stdout,
        prompt: str = "monitor> ",
    ):
        self.runner = runner
        self.metrics = metrics
        self.out = out
        self.prompt = prompt
        self._task: Optional[asyncio.Task] = None
        self._commands: Dict[str, Callable[[List[str]], Awaitable[None]]] = {
            "help": self.show_help,
            "h": self.show_help,
            "start": self.start_monitor,
            "stop": self.stop_monitor,
            "status": self.show_status,
            "stats": self.show_stats,
            "config": self.show_config,
            "pairs": self.show_watched_pools,
            "gas": self.show_gas_info,
            "risk": self.show_risk_info,
            "log": self.handle_log_command,
            "logs": self.handle_log_command,
            "clear": self.clear_screen,
        }

    def write(self, text: str = "") -> None:
        print(text, file=self.out)

    async def handle_command(self, line: str) -> bool:
        """
        Run one console command.

        Returns:
            False when the console should exit
        """
        args = line.strip().split()
        if not args:
            return True

        cmd = args[0].lower()
        if cmd in ("exit", "quit", "q"):
            return False

        handler = self._commands.get(cmd)
        if handler is None:
            self.write(f"Unknown command: {cmd}. Type \"help\" for available commands.")
            return True

        try:
            await handler(args[1:])
        except Exception as e:
            self.write(f"Error executing command: {e}")
        return True

    async def run(self) -> None:
        self.write(f"{PROJECT_NAME} {VERSION} console")
        self.write('Type "help" for available commands\n')
        loop = asyncio.get_running_loop()

        while True:
            try:
                line = await loop.run_in_executor(None, input, self.prompt)
            except EOFError:
                break
            if not await self.handle_command(line):
                break

        await self.shutdown()
        self.write("Goodbye!")

    async def shutdown(self) -> None:
        if self._task is None:
            return
        self.runner.stop()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    # === COMMANDS ===

    async def show_help(self, args: List[str]) -> None:
        self.write(HELP_TEXT)

    async def start_monitor(self, args: List[str]) -> None:
        if self.runner.is_running or (self._task and not self._task.done()):
            self.write("Monitor is already running")
            return
        self.write("Starting monitor...")
        self._task = asyncio.create_task(self.runner.run())

    async def stop_monitor(self, args: List[str]) -> None:
        if not self.runner.is_running:
            self.write("Monitor is not running")
            return
        self.runner.stop()
        self.write("Stop requested; the current cycle will finish first")

    async def show_status(self, args: List[str]) -> None:
        settings = self.runner.settings
        status = "Running" if self.runner.is_running else "Stopped"
        self.write(
            tabulate(
                [
                    ["Status", status],
                    ["Watched pools", len(self.runner.watched_pools)],
                    ["Scan interval", f"{settings.scan_interval_sec}s"],
                    ["RPC", settings.rpc_url],
                ],
                tablefmt="simple",
            )
        )

    async def show_stats(self, args: List[str]) -> None:
        stats = self.runner.get_stats()
        daily = stats["daily_stats"]
        self.write("Performance Statistics:")
        self.write(
            tabulate(
                [
                    ["Runtime", format_duration(stats["runtime"])],
                    ["Scans completed", stats["scans_completed"]],
                    ["Opportunities found", stats["opportunities_found"]],
                    ["Trades executed", stats["trades_executed"]],
                    [
                        "Executions (ok/attempted)",
                        f"{stats['executions_successful']}/{stats['executions_attempted']}",
                    ],
                ],
                tablefmt="simple",
            )
        )
        self.write("\nDaily Trading Stats:")
        self.write(
            tabulate(
                [
                    ["Trades", daily["trades"]],
                    ["Profit", f"{daily['total_profit']} ETH"],
                    ["Loss", f"{daily['total_loss']} ETH"],
                    ["Net", f"{daily['net_profit']} ETH"],
                ],
                tablefmt="simple",
            )
        )
        if self.metrics:
            self.write("")
            self.write(self.metrics.performance.generate_report())

    async def show_config(self, args: List[str]) -> None:
        settings: MonitorSettings = self.runner.settings
        self.write(
            tabulate(
                [
                    ["Ethereum RPC", settings.rpc_url],
                    ["Chain ID", settings.chain_id],
                    ["Min Profit", f"{settings.min_profit_eth} ETH"],
                    ["Max Gas", f"{settings.max_gas_price_gwei} gwei"],
                    ["Slippage Tolerance", f"{settings.slippage_tolerance_pct}%"],
                    ["Max Trade Size", f"{settings.max_trade_size_eth} ETH"],
                    ["Daily Loss Limit", f"{settings.daily_loss_limit_eth} ETH"],
                    ["Log Level", logging_config.get_level_name()],
                ],
                headers=["Setting", "Value"],
                tablefmt="grid",
            )
        )

    async def show_watched_pools(self, args: List[str]) -> None:
        pools = self.runner.watched_pools
        if not pools:
            self.write("No pools being watched")
            return

        rows = []
        for index, pool in enumerate(pools, start=1):
            observation = self.runner.cache.get(pool.pool_id)
            rows.append(
                [
                    index,
                    format_address(pool.pool_id),
                    pool.exchange,
                    get_token_name(pool.token0),
                    get_token_name(pool.token1),
                    f"{observation.price0:.6g}" if observation else "N/A",
                ]
            )
        self.write(
            tabulate(
                rows,
                headers=["#", "Pool", "Exchange", "Token0", "Token1", "Price0"],
                tablefmt="grid",
            )
        )

    async def show_gas_info(self, args: List[str]) -> None:
        oracle = self.runner.gas_oracle
        history = oracle.get_gas_history()
        average = oracle.get_average_gas_price(5)
        recent = " -> ".join(f"{float(g['gas_price_gwei']):.2f}" for g in history[-3:])

        self.write("Gas Information:")
        self.write(f"Recent prices: {recent or 'N/A'} gwei")
        self.write(f"Average (5min): {format_gas_price(average) if average else 'N/A'}")
        self.write(f"Trend: {oracle.predict_gas_trend()}")

    async def show_risk_info(self, args: List[str]) -> None:
        daily = self.runner.risk_scorer.get_daily_stats()
        halted = self.runner.risk_scorer.should_halt_trading()
        self.write("Risk Management:")
        self.write(
            tabulate(
                [
                    ["Daily trades", daily["trades"]],
                    ["Daily profit", f"{daily['total_profit']} ETH"],
                    ["Daily loss", f"{daily['total_loss']} ETH"],
                    ["Trading status", "Halted" if halted else "Active"],
                ],
                tablefmt="simple",
            )
        )

    async def handle_log_command(self, args: List[str]) -> None:
        if not args:
            self.write(f"Current log level: {logging_config.get_level_name()}")
            self.write(f"Available levels: {', '.join(logging_config.LEVELS)}")
            return

        try:
            logging_config.set_level(args[0])
        except ValueError as e:
            self.write(str(e))
            return
        self.write(f"Log level set to: {args[0].lower()}")

    async def clear_screen(self, args: List[str]) -> None:
        self.out.write("\033[2J\033[H")
        self.out.flush()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="DEX arbitrage monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with environment/.env settings only
  python3 run_monitor.py

  # Use a config file
  python3 run_monitor.py --config configs/monitor.example.yaml

  # Single scan (for testing/CI)
  python3 run_monitor.py --config configs/monitor.example.yaml --once
        """,
    )

    parser.add_argument("--config", default=None, help="Path to config YAML file")
    parser.add_argument(
        "--once", action="store_true", help="Run a single scan cycle and exit"
    )
    parser.add_argument(
        "--log-level",
        choices=list(logging_config.LEVELS),
        default=None,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Open the interactive command console",
    )

    return parser.parse_args(argv)


async def run_monitor(settings: MonitorSettings, args: argparse.Namespace) -> int:
    metrics = MonitorMetrics()

    try:
        runner = MonitorRunner.from_settings(settings, metrics=metrics)
    except PriceSourceError as e:
        logger.error(f"Initialization failed: {e}")
        return 1

    if await runner.load_configured_pools() == 0:
        logger.warning("No pools are being watched; add pools to the config file")

    server_started = False
    if settings.metrics_port:
        server_started = await metrics.start_server(settings.metrics_port)

    try:
        if args.once:
            await runner.run_cycle()
            print(metrics.performance.generate_report())
        elif args.interactive:
            await MonitorConsole(runner, metrics).run()
        else:
            await runner.run()
    finally:
        if server_started:
            await metrics.stop_server()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    try:
        settings = load_config(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    logging_config.setup(args.log_level or settings.log_level)

    try:
        return asyncio.run(run_monitor(settings, args))
    except KeyboardInterrupt:
        print("\nStopped by user")
        return 0
    except PriceSourceError as e:
        logger.error(f"Monitor failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
