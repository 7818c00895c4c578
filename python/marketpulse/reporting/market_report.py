from __future__ import annotations

import asyncio
from typing import List, Sequence

from loguru import logger

from marketpulse.core.types import (
    SENTIMENT_WINDOW_DAY,
    Predictor,
    Publisher,
    SentimentLookup,
)
from marketpulse.publishing.publisher import publish_best_effort
from marketpulse.reporting.formatting import (
    direction_emoji,
    format_accuracy,
    format_sentiment,
    symbol_query,
)

DEFAULT_SIGNAL_HISTORY = 2  # minimum T-i rows


class MarketReporter:
    """Publishes one trading-signal message per symbol.

    For each symbol the sentiment lookup is started before the (usually
    slow) prediction call and awaited afterwards, so both run concurrently.
    Symbols themselves are handled one after another.
    """

    def __init__(
        self,
        predictor: Predictor,
        lookup: SentimentLookup,
        publisher: Publisher,
        *,
        window: str = SENTIMENT_WINDOW_DAY,
        history: int = DEFAULT_SIGNAL_HISTORY,
    ) -> None:
        self._predictor = predictor
        self._lookup = lookup
        self._publisher = publisher
        self._window = window
        self._history = history

    async def build_report(self, symbol: str) -> str:
        sentiment_task = asyncio.ensure_future(
            self._lookup.get_sentiment(symbol_query(symbol))
        )
        try:
            result = await self._predictor.predict(symbol)
        except BaseException:
            sentiment_task.cancel()
            raise
        sentiment = await sentiment_task

        lines = [
            f"${symbol} trading signals "
            f"({format_accuracy(result.sell_accuracy)}/{format_accuracy(result.buy_accuracy)})"
        ]

        if sentiment is None:
            logger.warning("Not found sentiment for {}", symbol)
        else:
            value = sentiment.window(self._window)
            if value is None:
                logger.warning("No {} sentiment window for {}", self._window, symbol)
            else:
                lines.append(f"Average sentiment: {format_sentiment(value)}")

        # Every prediction is rendered; ``history`` is only the minimum row
        # count, and rows past the end of a short sequence are skipped.
        rows = max(len(result.predictions), self._history)
        for i, prediction in enumerate(result.latest(rows)):
            logger.info("{}, Predicted T-{}: {}", symbol, i, prediction.value)
            lines.append(f"T-{i}: {direction_emoji(prediction)}{prediction.value}")

        return "".join(line + "\n" for line in lines)

    async def run(self, symbols: Sequence[str]) -> List[str]:
        logger.info("Processing market")
        texts: List[str] = []
        for symbol in symbols:
            logger.info("Processing {}", symbol)
            text = await self.build_report(symbol)
            await publish_best_effort(self._publisher, text)
            texts.append(text)
        return texts
