from marketpulse.reporting.market_report import MarketReporter
from marketpulse.reporting.sentiment_report import SentimentReporter

__all__ = ["MarketReporter", "SentimentReporter"]
