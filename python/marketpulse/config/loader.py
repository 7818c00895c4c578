"""Load and validate the bot's YAML configuration into ``BotConfig``."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_DAILY_AT = timedelta(hours=6)
DEFAULT_INTERVAL = timedelta(hours=3)
DEFAULT_CONFIG_FILENAME = "service.yaml"


class ConfigError(ValueError):
    """Raised when the configuration file is missing or invalid."""


def parse_symbols(raw: str | List[str] | None) -> List[str]:
    """Normalize a comma-separated string (or list) of symbols.

    Symbols are opaque tokens, only stripped; duplicates are dropped keeping the
    first occurrence so the configured order decides report order.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else [str(p) for p in raw]

    seen: set[str] = set()
    symbols: List[str] = []
    for part in parts:
        symbol = part.strip()
        if not symbol or symbol in seen:
            continue
        seen.add(symbol)
        symbols.append(symbol)
    return symbols


class SentimentServiceConfig(BaseModel):
    base_url: str = Field(default="http://localhost:7044")
    timeout_s: float = Field(default=10.0, gt=0)
    retries: int = Field(default=2, ge=0)


class PublisherConfig(BaseModel):
    webhook_url: Optional[str] = None
    access_token: Optional[str] = None
    dry_run: bool = False


class ScheduleConfig(BaseModel):
    daily_at: timedelta = Field(
        default=DEFAULT_DAILY_AT, description="Time of day of the market cycle"
    )
    interval: timedelta = Field(
        default=DEFAULT_INTERVAL, description="Period of the sentiment cycle"
    )

    @field_validator("daily_at")
    @classmethod
    def _within_day(cls, value: timedelta) -> timedelta:
        if not timedelta(0) <= value < timedelta(days=1):
            raise ValueError("daily_at must be within [00:00:00, 24:00:00)")
        return value

    @field_validator("interval")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("interval must be positive")
        return value


class LoggingConfig(BaseModel):
    level: Optional[str] = None
    file: Optional[Path] = None


class BotConfig(BaseModel):
    symbols: List[str] = Field(default_factory=list)
    predictor: Optional[str] = Field(
        default=None, description="'module:attr' reference to the prediction engine"
    )
    sentiment: SentimentServiceConfig = Field(default_factory=SentimentServiceConfig)
    publisher: PublisherConfig = Field(default_factory=PublisherConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("symbols", mode="before")
    @classmethod
    def _normalize_symbols(cls, value):
        return parse_symbols(value)


def load_config(config_path: Path) -> BotConfig:
    """Load a YAML configuration file, returning a validated BotConfig."""
    if not config_path.is_file():
        raise ConfigError(f"Configuration file {config_path} not found")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file {config_path} is not valid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping")

    try:
        return BotConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc
