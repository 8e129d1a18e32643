"""Configuration management for the golink redirect gateway.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching. Settings are frozen: the allowlist,
default affiliate tag and logging flag are read once at process start and never change.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from golink.config import get_settings

**Step 2 — Read values**::
    settings = get_settings()
    if "amzn.to" in settings.ALLOWED_HOSTS:
        ...

**Step 3 — Override from the environment**::
    export ALLOWED_HOSTS='["www.amazon.in", "amazon.in"]'
    export CLICK_SINK=kafka

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables override defaults automatically.
- ALLOWED_HOSTS is lowercased and stored as a frozenset.
- Instances are frozen; assigning to a field raises ValidationError.

Classes:
    Settings:  Pydantic model for all configuration values.
"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from golink.enums import ClickSinkKind


class Settings(BaseSettings):
    APP_NAME: str = "golink"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Redirect policy
    AMAZON_HOST: str = "https://www.amazon.in"
    DEFAULT_AFFILIATE_TAG: str = "shop4me0e-21"
    # Exact hostname match only. amzn.to is a shortener whose final
    # destination is not checked here.
    ALLOWED_HOSTS: frozenset[str] = frozenset(
        {"www.amazon.in", "amazon.in", "amzn.to", "m.amazon.in"}
    )

    # Click logging
    ENABLE_CLICK_LOGGING: bool = True
    CLICK_SINK: ClickSinkKind = ClickSinkKind.DATABASE
    CLICK_COLLECTION: str = "clicks"
    SRC_MAX_LENGTH: int = 120
    CREATED_BY_MAX_LENGTH: int = 200
    CREATED_AT_MAX_LENGTH: int = 80

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://golink:golink@db:5432/golink"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = "kafka:9092"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        frozen=True,
    )

    @field_validator("ALLOWED_HOSTS")
    @classmethod
    def normalize_allowed_hosts(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(host.strip().lower() for host in v if host.strip())

    @field_validator("DEFAULT_AFFILIATE_TAG")
    @classmethod
    def validate_default_tag(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("DEFAULT_AFFILIATE_TAG must not be blank")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()
