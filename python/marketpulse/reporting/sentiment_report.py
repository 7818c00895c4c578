from __future__ import annotations

from functools import partial
from typing import List, Optional, Sequence

from loguru import logger

from marketpulse.core.retry import RetryPolicy
from marketpulse.core.types import (
    SENTIMENT_WINDOW_SHORT,
    Publisher,
    SentimentLookup,
    SentimentWindowResult,
)
from marketpulse.publishing.publisher import publish_best_effort
from marketpulse.reporting.formatting import (
    SENTIMENT_REPORT_HEADER,
    format_sentiment,
    symbol_query,
)


class SentimentReporter:
    """Builds the combined recent-sentiment summary for all symbols."""

    def __init__(
        self,
        lookup: SentimentLookup,
        publisher: Publisher,
        *,
        retry_policy: Optional[RetryPolicy[SentimentWindowResult]] = None,
        window: str = SENTIMENT_WINDOW_SHORT,
    ) -> None:
        self._lookup = lookup
        self._publisher = publisher
        self._retry = retry_policy or RetryPolicy()
        self._window = window

    async def build_report(self, symbols: Sequence[str]) -> str:
        clauses: List[str] = []
        for symbol in symbols:
            query = symbol_query(symbol)
            sentiment = await self._retry.execute(
                partial(self._lookup.get_sentiment, query),
                name=f"sentiment lookup {query}",
            )
            if sentiment is None:
                logger.warning("Not found sentiment for {}", symbol)
                continue

            value = sentiment.window(self._window)
            if value is None:
                logger.warning("No {} sentiment window for {}", self._window, symbol)
                continue

            clauses.append(f"${symbol}: {format_sentiment(value)} ")

        if not clauses:
            return ""
        return SENTIMENT_REPORT_HEADER + "\n" + "".join(clauses)

    async def run(self, symbols: Sequence[str]) -> str:
        logger.info("Retrieving sentiment...")
        text = await self.build_report(symbols)
        await publish_best_effort(self._publisher, text)
        return text
