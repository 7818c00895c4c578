import pytest

from marketpulse.publishing.publisher import LogPublisher, PublishError, publish_best_effort


class RaisingPublisher:
    def __init__(self, exc):
        self.exc = exc
        self.calls = 0

    async def publish(self, text):
        self.calls += 1
        raise self.exc


def _errors(records):
    return [r["message"] for r in records if r["level"].name == "ERROR"]


@pytest.mark.asyncio
async def test_success_returns_true(log_records):
    assert await publish_best_effort(LogPublisher(), "hello") is True
    assert any("hello" in r["message"] for r in log_records)


@pytest.mark.asyncio
async def test_each_reason_is_logged_once_and_not_retried(log_records):
    publisher = RaisingPublisher(PublishError("rejected", ["too long", "duplicate"]))

    assert await publish_best_effort(publisher, "text") is False
    assert publisher.calls == 1
    assert _errors(log_records) == ["too long", "duplicate"]


@pytest.mark.asyncio
async def test_error_without_reasons_logs_the_error(log_records):
    await publish_best_effort(RaisingPublisher(PublishError("rejected")), "text")

    assert _errors(log_records) == ["Publishing failed: rejected"]


@pytest.mark.asyncio
async def test_unexpected_errors_are_swallowed(log_records):
    assert await publish_best_effort(RaisingPublisher(OSError("socket closed")), "x") is False
    assert _errors(log_records) == ["Publishing failed: socket closed"]


def test_publish_error_drops_empty_reasons():
    assert PublishError("x", ["", "real", None]).reasons == ["real"]
