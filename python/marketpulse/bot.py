from __future__ import annotations

import asyncio
import signal
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import List, Optional, Sequence

from loguru import logger

from marketpulse.config.loader import (
    DEFAULT_DAILY_AT,
    DEFAULT_INTERVAL,
    BotConfig,
    ConfigError,
)
from marketpulse.core.plugins import load_predictor
from marketpulse.core.types import Publisher
from marketpulse.publishing.credentials import select_credentials
from marketpulse.publishing.publisher import LogPublisher
from marketpulse.reporting.market_report import MarketReporter
from marketpulse.reporting.sentiment_report import SentimentReporter
from marketpulse.scheduling.scheduler import Clock, RecurringJob, ReportScheduler, Sleeper
from marketpulse.scheduling.triggers import DailyTrigger, IntervalTrigger
from marketpulse_ext.sentiment_api import HttpSentimentClient, SentimentApiConfig
from marketpulse_ext.webhook import WebhookPublisher

CYCLES = ("market", "sentiment")


class MarketBot:
    """Drives both reporters from their schedules over one symbol list."""

    def __init__(
        self,
        symbols: Sequence[str],
        market_reporter: MarketReporter,
        sentiment_reporter: SentimentReporter,
        *,
        daily_at: timedelta = DEFAULT_DAILY_AT,
        interval: timedelta = DEFAULT_INTERVAL,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        if not symbols:
            raise ValueError("At least one symbol is required")
        self.symbols = tuple(symbols)
        self._market = market_reporter
        self._sentiment = sentiment_reporter
        self.scheduler = ReportScheduler(
            RecurringJob(
                "market",
                DailyTrigger(daily_at),
                self.process_market,
                clock=clock,
                sleep=sleep,
            ),
            RecurringJob(
                "sentiment",
                IntervalTrigger(interval),
                self.process_sentiment,
                clock=clock,
                sleep=sleep,
            ),
        )

    async def process_market(self) -> List[str]:
        return await self._market.run(self.symbols)

    async def process_sentiment(self) -> str:
        return await self._sentiment.run(self.symbols)

    async def run_cycle(self, name: str) -> None:
        if name == "market":
            await self.process_market()
        elif name == "sentiment":
            await self.process_sentiment()
        else:
            raise ValueError(f"Unknown cycle '{name}', expected one of {CYCLES}")

    def start(self) -> None:
        logger.info("Starting bot for {}", ", ".join(self.symbols))
        self.scheduler.start()

    async def stop(self, wait: bool = True) -> None:
        logger.info("Stopping bot")
        await self.scheduler.stop(wait=wait)

    async def run_until(self, stop_event: asyncio.Event) -> None:
        self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop(wait=True)


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handler for {} not supported on this platform", sig)


async def run_bot(
    config: BotConfig,
    *,
    service: bool = False,
    once: Optional[str] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Wire the collaborators from ``config`` and run the bot.

    With ``once`` set to a cycle name a single cycle runs immediately and the
    call returns; otherwise the schedules run until ``stop_event`` is set or
    the process receives SIGINT/SIGTERM.
    """
    if not config.symbols:
        raise ConfigError("No symbols configured")
    if not config.predictor:
        raise ConfigError("No predictor configured")

    predictor = load_predictor(config.predictor)

    async with AsyncExitStack() as stack:
        lookup = HttpSentimentClient(
            config=SentimentApiConfig(
                base_url=config.sentiment.base_url,
                request_timeout_s=config.sentiment.timeout_s,
                retries=config.sentiment.retries,
            )
        )
        stack.push_async_callback(lookup.close)

        publisher: Publisher
        if config.publisher.dry_run:
            logger.info("Dry run: messages are logged, not published")
            publisher = LogPublisher()
        else:
            credentials = select_credentials(service, config.publisher).obtain()
            webhook = WebhookPublisher(credentials)
            stack.push_async_callback(webhook.close)
            publisher = webhook

        bot = MarketBot(
            config.symbols,
            MarketReporter(predictor, lookup, publisher),
            SentimentReporter(lookup, publisher),
            daily_at=config.schedule.daily_at,
            interval=config.schedule.interval,
        )

        if once is not None:
            await bot.run_cycle(once)
            return

        stop_event = stop_event or asyncio.Event()
        _install_signal_handlers(stop_event)
        await bot.run_until(stop_event)
