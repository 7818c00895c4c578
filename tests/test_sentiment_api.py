import httpx
import pytest
from typing import Any, Dict, List, Tuple

from marketpulse_ext.sentiment_api import (
    SENTIMENT_ENDPOINT,
    HttpSentimentClient,
    SentimentApiConfig,
)


class DummyResponse:
    def __init__(self, status_code: int, json_data: Any = None):
        self.status_code = status_code
        self._json = json_data

    @property
    def content(self) -> bytes:
        return b"" if self._json is None else b"{}"

    def json(self) -> Any:
        return self._json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("error", request=None, response=httpx.Response(self.status_code))


class DummyClient:
    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def get(self, endpoint: str, params: Dict[str, Any], timeout: float) -> DummyResponse:  # type: ignore
        self.calls.append((endpoint, params))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:  # pragma: no cover - not used
        return None


FAST = SentimentApiConfig(retries=2, retry_backoff_s=0.0)

TRACKING = {
    "Keyword": "$AMD",
    "Total": 120,
    "Sentiment": {
        "6H": {"AverageSentiment": 0.42, "TotalMessages": 17},
        "24H": {"AverageSentiment": -0.1, "TotalMessages": 96},
    },
}


@pytest.mark.asyncio
async def test_parses_windows_and_sends_keyword():
    client = DummyClient([DummyResponse(200, TRACKING)])
    api = HttpSentimentClient(client=client, config=FAST)

    result = await api.get_sentiment("$AMD")

    assert client.calls == [(SENTIMENT_ENDPOINT, {"keyword": "$AMD"})]
    assert result.window("6H").average_sentiment == pytest.approx(0.42)
    assert result.window("6H").total_messages == 17
    assert result.window("24H").total_messages == 96


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [DummyResponse(404), DummyResponse(204), DummyResponse(200, None)])
async def test_not_found_maps_to_none(response):
    api = HttpSentimentClient(client=DummyClient([response]), config=FAST)

    assert await api.get_sentiment("$KO") is None


@pytest.mark.asyncio
async def test_server_errors_are_retried():
    client = DummyClient([DummyResponse(503), httpx.ConnectError("refused"), DummyResponse(200, TRACKING)])
    api = HttpSentimentClient(client=client, config=FAST)

    result = await api.get_sentiment("$AMD")

    assert result is not None
    assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_client_errors_propagate_without_retry():
    client = DummyClient([DummyResponse(401)])
    api = HttpSentimentClient(client=client, config=FAST)

    with pytest.raises(httpx.HTTPStatusError):
        await api.get_sentiment("$AMD")
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_transport_failure_after_budget_propagates():
    client = DummyClient([httpx.ConnectError("refused")] * 3)
    api = HttpSentimentClient(client=client, config=FAST)

    with pytest.raises(httpx.ConnectError):
        await api.get_sentiment("$AMD")
    assert len(client.calls) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"", b"{}", b"null"])
async def test_empty_http_body_maps_to_none(body):
    request = httpx.Request("GET", "http://sentiment.test" + SENTIMENT_ENDPOINT)
    response = httpx.Response(200, content=body, request=request)
    api = HttpSentimentClient(client=DummyClient([response]), config=FAST)

    assert await api.get_sentiment("$KO") is None


@pytest.mark.asyncio
async def test_real_http_response_is_parsed():
    request = httpx.Request("GET", "http://sentiment.test" + SENTIMENT_ENDPOINT)
    response = httpx.Response(200, json=TRACKING, request=request)
    api = HttpSentimentClient(client=DummyClient([response]), config=FAST)

    result = await api.get_sentiment("$AMD")

    assert result.window("24H").average_sentiment == pytest.approx(-0.1)
