import asyncio
import sys
import types
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from marketpulse.bot import MarketBot, run_bot
from marketpulse.config.loader import BotConfig, ConfigError
from marketpulse.core.types import (
    MarketDirection,
    PredictionResult,
    SentimentWindow,
    SentimentWindowResult,
)
from marketpulse.reporting.formatting import SENTIMENT_REPORT_HEADER
from marketpulse.reporting.market_report import MarketReporter
from marketpulse.reporting.sentiment_report import SentimentReporter


class FakeLookup:
    def __init__(self, results: Dict[str, SentimentWindowResult]):
        self.results = results
        self.queries: List[str] = []

    async def get_sentiment(self, query: str) -> Optional[SentimentWindowResult]:
        self.queries.append(query)
        return self.results.get(query)


class FakePredictor:
    def __init__(self):
        self.symbols: List[str] = []

    async def predict(self, symbol: str) -> PredictionResult:
        self.symbols.append(symbol)
        return PredictionResult(
            predictions=[MarketDirection.SELL, MarketDirection.BUY],
            sell_accuracy=0.55,
            buy_accuracy=0.65,
        )


class RecordingPublisher:
    def __init__(self):
        self.messages: List[str] = []

    async def publish(self, text: str) -> None:
        self.messages.append(text)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class SteppedSleep:
    """Advances the shared clock; parks each job after its first sleep."""

    def __init__(self, clock: FakeClock, wake: Dict[float, int]):
        self.clock = clock
        self.wake = dict(wake)
        self.parked = 0
        self.all_parked = asyncio.Event()
        self.expected_parks = 2

    async def __call__(self, delay: float) -> None:
        if self.wake.get(delay, 0) > 0:
            self.wake[delay] -= 1
            self.clock.now += timedelta(seconds=delay)
            await asyncio.sleep(0)
            return
        self.parked += 1
        if self.parked >= self.expected_parks:
            self.all_parked.set()
        await asyncio.Event().wait()


def _sentiment(avg: float) -> SentimentWindowResult:
    window = SentimentWindow(average_sentiment=avg, total_messages=10)
    return SentimentWindowResult(windows={"6H": window, "24H": window})


def _bot(symbols, publisher, clock=None, sleep=None):
    lookup = FakeLookup({"$AMD": _sentiment(0.5), "$GOOG": _sentiment(-0.25)})
    predictor = FakePredictor()
    bot = MarketBot(
        symbols,
        MarketReporter(predictor, lookup, publisher),
        SentimentReporter(lookup, publisher),
        clock=clock,
        sleep=sleep,
    )
    return bot, predictor, lookup


@pytest.mark.asyncio
async def test_market_cycle_publishes_each_symbol_in_order():
    publisher = RecordingPublisher()
    bot, predictor, _ = _bot(["AMD", "GOOG"], publisher)

    await bot.process_market()

    assert predictor.symbols == ["AMD", "GOOG"]
    assert len(publisher.messages) == 2
    assert publisher.messages[0].startswith("$AMD trading signals (55%/65%)")
    assert publisher.messages[1].startswith("$GOOG trading signals (55%/65%)")


@pytest.mark.asyncio
async def test_sentiment_cycle_publishes_one_combined_message():
    publisher = RecordingPublisher()
    bot, _, lookup = _bot(["GOOG", "AMD"], publisher)

    await bot.process_sentiment()

    assert len(publisher.messages) == 1
    text = publisher.messages[0]
    assert text.startswith(SENTIMENT_REPORT_HEADER)
    assert text.index("$GOOG") < text.index("$AMD")
    assert lookup.queries == ["$GOOG", "$AMD"]


@pytest.mark.asyncio
async def test_daily_firing_runs_market_cycle_only():
    clock = FakeClock(datetime(2024, 3, 4, 5, 0))
    # The daily trigger (06:00) is due in one hour; the interval trigger in three.
    sleep = SteppedSleep(clock, {3600.0: 1})
    publisher = RecordingPublisher()
    bot, predictor, _ = _bot(["AMD", "GOOG"], publisher, clock=clock, sleep=sleep)

    bot.start()
    await asyncio.wait_for(sleep.all_parked.wait(), timeout=1)
    await bot.stop()

    assert predictor.symbols == ["AMD", "GOOG"]
    assert [m.split()[0] for m in publisher.messages] == ["$AMD", "$GOOG"]
    assert bot.scheduler.market_job.fire_count == 1
    assert bot.scheduler.sentiment_job.fire_count == 0


@pytest.mark.asyncio
async def test_interval_firing_runs_sentiment_cycle_only():
    clock = FakeClock(datetime(2024, 3, 4, 12, 0))
    sleep = SteppedSleep(clock, {10800.0: 1})
    publisher = RecordingPublisher()
    bot, predictor, _ = _bot(["AMD", "GOOG"], publisher, clock=clock, sleep=sleep)

    bot.start()
    await asyncio.wait_for(sleep.all_parked.wait(), timeout=1)
    await bot.stop()

    assert predictor.symbols == []
    assert len(publisher.messages) == 1
    assert publisher.messages[0].startswith(SENTIMENT_REPORT_HEADER)


@pytest.mark.asyncio
async def test_run_until_stops_both_triggers():
    publisher = RecordingPublisher()
    bot, _, _ = _bot(["AMD"], publisher)
    stop_event = asyncio.Event()

    runner = asyncio.create_task(bot.run_until(stop_event))
    await asyncio.sleep(0)
    assert all(job.running for job in bot.scheduler.jobs)

    stop_event.set()
    await asyncio.wait_for(runner, timeout=1)
    assert not any(job.running for job in bot.scheduler.jobs)
    assert publisher.messages == []


def test_bot_requires_symbols():
    with pytest.raises(ValueError):
        _bot([], RecordingPublisher())


@pytest.mark.asyncio
async def test_unknown_cycle_is_rejected():
    bot, _, _ = _bot(["AMD"], RecordingPublisher())

    with pytest.raises(ValueError):
        await bot.run_cycle("weekly")


@pytest.mark.asyncio
async def test_run_bot_requires_symbols_and_predictor():
    with pytest.raises(ConfigError):
        await run_bot(BotConfig(predictor="x:y"), once="market")
    with pytest.raises(ConfigError):
        await run_bot(BotConfig(symbols=["AMD"]), once="market")


@pytest.mark.asyncio
async def test_run_bot_once_in_dry_run(monkeypatch, log_records):
    module = types.ModuleType("dry_run_engine")
    module.Engine = FakePredictor
    monkeypatch.setitem(sys.modules, "dry_run_engine", module)

    async def no_sentiment(self, query):
        return None

    monkeypatch.setattr(
        "marketpulse_ext.sentiment_api.HttpSentimentClient.get_sentiment", no_sentiment
    )
    config = BotConfig(
        symbols=["AMD"],
        predictor="dry_run_engine:Engine",
        publisher={"dry_run": True},
    )

    await run_bot(config, once="market")

    published = [r["message"] for r in log_records if r["message"].startswith("Dry-run publish")]
    assert len(published) == 1
    assert "$AMD trading signals (55%/65%)" in published[0]
