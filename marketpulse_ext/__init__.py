from marketpulse_ext.sentiment_api import (
    HttpSentimentClient,
    SentimentApiConfig,
    TrackingPayload,
    WindowPayload,
)
from marketpulse_ext.webhook import WebhookPublisher

__all__ = [
    "HttpSentimentClient",
    "SentimentApiConfig",
    "TrackingPayload",
    "WindowPayload",
    "WebhookPublisher",
]
