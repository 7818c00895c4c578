"""Command line entry point: ``marketpulse bot --stocks AMD,GOOG``."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from loguru import logger

from marketpulse.bot import CYCLES, run_bot
from marketpulse.config.loader import (
    DEFAULT_CONFIG_FILENAME,
    ConfigError,
    load_config,
    parse_symbols,
)
from marketpulse.core.logging import setup_logging
from marketpulse.core.plugins import PluginError
from marketpulse.publishing.credentials import CredentialsError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketpulse",
        description="Publish scheduled trading signals and social sentiment",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    bot = sub.add_parser("bot", help="Run the scheduled reporting bot")
    bot.add_argument(
        "--config",
        type=Path,
        default=Path(DEFAULT_CONFIG_FILENAME),
        help="Path to the YAML configuration file",
    )
    bot.add_argument(
        "--stocks",
        help="Comma-separated symbols to report on (overrides the configuration)",
    )
    bot.add_argument(
        "--service",
        action="store_true",
        help="Take publisher credentials from the environment",
    )
    bot.add_argument(
        "--once",
        choices=CYCLES,
        help="Run a single cycle immediately and exit",
    )
    bot.add_argument("--log-level", help="Log level (default: INFO)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        setup_logging(args.log_level)
        logger.error("{}", exc)
        return 1

    setup_logging(args.log_level or config.logging.level, config.logging.file)
    if args.stocks:
        config.symbols = parse_symbols(args.stocks)

    try:
        asyncio.run(run_bot(config, service=args.service, once=args.once))
    except (ConfigError, CredentialsError, PluginError) as exc:
        logger.error("{}", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
