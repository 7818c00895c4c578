from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

Symbol = str

SENTIMENT_WINDOW_SHORT = "6H"
SENTIMENT_WINDOW_DAY = "24H"


class MarketDirection(str, Enum):
    """Direction of a single trading-signal prediction."""

    SELL = "Sell"
    BUY = "Buy"


class SentimentWindow(BaseModel):
    """Averaged sentiment over one window of recent messages."""

    model_config = ConfigDict(frozen=True)

    average_sentiment: float = Field(..., description="Signed mean sentiment")
    total_messages: int = Field(..., ge=0, description="Messages in the window")


class SentimentWindowResult(BaseModel):
    """Sentiment for one query, keyed by window label (e.g. 6H, 24H)."""

    model_config = ConfigDict(frozen=True)

    windows: Dict[str, SentimentWindow] = Field(default_factory=dict)

    def window(self, label: str) -> Optional[SentimentWindow]:
        return self.windows.get(label)


class PredictionResult(BaseModel):
    """Output of the prediction engine for one symbol.

    ``predictions`` are ordered oldest to newest. The accuracies are the
    per-class hit rates of the underlying classifier, each in [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    predictions: List[MarketDirection] = Field(default_factory=list)
    sell_accuracy: float = Field(..., ge=0.0, le=1.0)
    buy_accuracy: float = Field(..., ge=0.0, le=1.0)

    def latest(self, count: int) -> List[MarketDirection]:
        """Return up to ``count`` predictions, newest first."""
        if count <= 0:
            return []
        return list(reversed(self.predictions[-count:]))


class SentimentLookup(Protocol):
    async def get_sentiment(self, query: str) -> Optional[SentimentWindowResult]:
        ...


class Predictor(Protocol):
    async def predict(self, symbol: Symbol) -> PredictionResult:
        ...


class Publisher(Protocol):
    async def publish(self, text: str) -> None:
        ...
