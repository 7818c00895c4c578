from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from marketpulse.core.types import Publisher


class PublishError(Exception):
    """Delivery failure reported by a publish channel.

    ``reasons`` carries the individual error messages returned by the
    channel, when it reports more than one cause.
    """

    def __init__(self, message: str, reasons: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.reasons: List[str] = [r for r in (reasons or []) if r]


async def publish_best_effort(publisher: Publisher, text: str) -> bool:
    """Hand ``text`` to the publisher once; failures are logged and swallowed."""
    logger.info("Publishing message")
    try:
        await publisher.publish(text)
    except PublishError as exc:
        if exc.reasons:
            for reason in exc.reasons:
                logger.error(reason)
        else:
            logger.error("Publishing failed: {}", exc)
        return False
    except Exception as exc:  # noqa: BLE001
        logger.error("Publishing failed: {}", exc)
        return False
    return True


class LogPublisher:
    """Dry-run channel: writes each message to the log instead of sending it."""

    async def publish(self, text: str) -> None:
        logger.info("Dry-run publish:\n{}", text)
