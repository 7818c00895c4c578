"""Publisher credential strategies.

A bot running as a service takes its credentials from the environment; an
interactive run takes them from the configuration file. Both are exposed
through the same ``obtain()`` call so the rest of the bot does not care which
one was chosen.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional, Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from marketpulse.config.loader import PublisherConfig

WEBHOOK_URL_ENV = "MARKETPULSE_WEBHOOK_URL"
ACCESS_TOKEN_ENV = "MARKETPULSE_ACCESS_TOKEN"


class CredentialsError(RuntimeError):
    """Raised when no usable publisher credentials are available."""


class PublisherCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    webhook_url: str = Field(..., description="Endpoint messages are posted to")
    access_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token sent with each post"
    )


class CredentialsProvider(Protocol):
    def obtain(self) -> PublisherCredentials:
        ...


def _build(webhook_url: Optional[str], access_token: Optional[str], source: str) -> PublisherCredentials:
    if not webhook_url or not webhook_url.strip():
        raise CredentialsError(f"Publisher webhook URL not found in {source}")
    token = SecretStr(access_token) if access_token and access_token.strip() else None
    if token is None:
        logger.warning("No publisher access token in {}; posting unauthenticated", source)
    return PublisherCredentials(webhook_url=webhook_url.strip(), access_token=token)


class EnvironmentCredentials:
    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def obtain(self) -> PublisherCredentials:
        logger.info("Loading publisher credentials from environment")
        return _build(
            self._environ.get(WEBHOOK_URL_ENV),
            self._environ.get(ACCESS_TOKEN_ENV),
            "environment",
        )


class ConfigCredentials:
    def __init__(self, config: PublisherConfig) -> None:
        self._config = config

    def obtain(self) -> PublisherCredentials:
        logger.info("Loading publisher credentials from configuration")
        return _build(self._config.webhook_url, self._config.access_token, "configuration")


def select_credentials(service: bool, config: PublisherConfig) -> CredentialsProvider:
    if service:
        return EnvironmentCredentials()
    return ConfigCredentials(config)
