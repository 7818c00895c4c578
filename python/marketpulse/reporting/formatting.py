"""Text rendering shared by the sentiment and market reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from marketpulse.core.types import MarketDirection, SentimentWindow

CHART_WITH_UPWARDS_TREND = "\U0001F4C8"
CHART_WITH_DOWNWARDS_TREND = "\U0001F4C9"

SENTIMENT_REPORT_HEADER = "Last 6H average sentiment (from messages):"


def symbol_query(symbol: str) -> str:
    """Sentiment lookups use the cashtag form of the symbol."""
    return f"${symbol}"


def trend_emoji(average: float) -> str:
    if average < 0:
        return CHART_WITH_DOWNWARDS_TREND
    return CHART_WITH_UPWARDS_TREND if average > 0 else ""


def direction_emoji(direction: MarketDirection) -> str:
    if direction == MarketDirection.BUY:
        return CHART_WITH_UPWARDS_TREND
    return CHART_WITH_DOWNWARDS_TREND


def _fixed(value: Decimal, places: int) -> str:
    """Fixed-point text with midpoints rounded away from zero."""
    return str(value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def format_sentiment(window: SentimentWindow) -> str:
    average = window.average_sentiment
    return f"{trend_emoji(average)}{_fixed(Decimal(average), 2)}({window.total_messages})"


def format_accuracy(value: float) -> str:
    return f"{_fixed(Decimal(value) * 100, 0)}%"
