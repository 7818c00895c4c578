from __future__ import annotations

from typing import List, Optional

import httpx
from loguru import logger

from marketpulse.publishing.credentials import PublisherCredentials
from marketpulse.publishing.publisher import PublishError


def _error_messages(resp: httpx.Response) -> List[str]:
    """Pull the individual error messages out of a rejected post."""
    try:
        payload = resp.json()
    except ValueError:
        text = (resp.text or "").strip()
        return [text] if text else []

    if not isinstance(payload, dict):
        return [str(payload)]

    messages: List[str] = []
    for item in payload.get("errors") or []:
        if isinstance(item, dict):
            message = item.get("message")
            if message:
                messages.append(str(message))
        elif item:
            messages.append(str(item))
    if not messages and payload.get("message"):
        messages.append(str(payload["message"]))
    return messages


class WebhookPublisher:
    """Posts each message as ``{"content": text}`` to a webhook endpoint."""

    def __init__(
        self,
        credentials: PublisherCredentials,
        client: Optional[httpx.AsyncClient] = None,
        request_timeout_s: float = 10.0,
    ) -> None:
        self._credentials = credentials
        self.client = client or httpx.AsyncClient()
        self._timeout = request_timeout_s

    async def close(self) -> None:
        await self.client.aclose()

    def _headers(self) -> dict:
        token = self._credentials.access_token
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token.get_secret_value()}"}

    async def publish(self, text: str) -> None:
        try:
            resp = await self.client.post(
                self._credentials.webhook_url,
                json={"content": text},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise PublishError("Publish request failed", [str(exc)]) from exc

        if resp.status_code >= 400:
            raise PublishError(
                f"Publish rejected with HTTP {resp.status_code}", _error_messages(resp)
            )
        logger.debug("Published {} characters (HTTP {})", len(text), resp.status_code)
