from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from marketpulse.core.types import SentimentWindow, SentimentWindowResult

SENTIMENT_ENDPOINT = "/api/monitor/sentiment"
NO_DATA_STATUSES = (204, 404)


class WindowPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    average_sentiment: float = Field(..., alias="AverageSentiment")
    total_messages: int = Field(..., alias="TotalMessages")


class TrackingPayload(BaseModel):
    """Response body of the monitoring service for one keyword."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    keyword: Optional[str] = Field(default=None, alias="Keyword")
    total: int = Field(default=0, alias="Total")
    sentiment: Dict[str, WindowPayload] = Field(default_factory=dict, alias="Sentiment")

    def to_result(self) -> SentimentWindowResult:
        return SentimentWindowResult(
            windows={
                label: SentimentWindow(
                    average_sentiment=value.average_sentiment,
                    total_messages=max(0, value.total_messages),
                )
                for label, value in self.sentiment.items()
            }
        )


@dataclass
class SentimentApiConfig:
    base_url: str = "http://localhost:7044"
    request_timeout_s: float = 10.0
    retries: int = 2
    retry_backoff_s: float = 0.75


class HttpSentimentClient:
    """Sentiment lookup backed by the message-monitoring REST service.

    "Not found" answers map to ``None``. Transport errors and 5xx responses
    are retried with exponential backoff; anything else propagates.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[SentimentApiConfig] = None,
    ) -> None:
        self.config = config or SentimentApiConfig()
        self.client = client or httpx.AsyncClient(base_url=self.config.base_url)

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> Optional[httpx.Response]:
        params = params or {}
        backoff = self.config.retry_backoff_s
        for attempt in range(self.config.retries + 1):
            try:
                resp = await self.client.get(
                    endpoint,
                    params=params,
                    timeout=self.config.request_timeout_s,
                )
                if resp.status_code in NO_DATA_STATUSES:
                    return None
                resp.raise_for_status()
                return resp
            except httpx.HTTPStatusError as exc:
                if 500 <= exc.response.status_code < 600 and attempt < self.config.retries:
                    logger.warning(
                        "Sentiment service returned {code}, retrying ({n}/{total})",
                        code=exc.response.status_code,
                        n=attempt + 1,
                        total=self.config.retries,
                    )
                    await asyncio.sleep(backoff * (2 ** attempt))
                    continue
                raise
            except httpx.RequestError as exc:
                if attempt < self.config.retries:
                    logger.warning(
                        "Sentiment service unreachable ({err}), retrying ({n}/{total})",
                        err=exc,
                        n=attempt + 1,
                        total=self.config.retries,
                    )
                    await asyncio.sleep(backoff * (2 ** attempt))
                    continue
                raise
        raise httpx.HTTPError("Unreachable")

    async def get_sentiment(self, query: str) -> Optional[SentimentWindowResult]:
        resp = await self._request(SENTIMENT_ENDPOINT, params={"keyword": query})
        if resp is None:
            logger.debug("No sentiment tracked for {query}", query=query)
            return None
        if not resp.content:
            return None
        data = resp.json()
        if not data:
            return None
        return TrackingPayload.model_validate(data).to_result()
