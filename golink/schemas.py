"""Pydantic schemas for the redirect gateway.

This module defines the inbound request parameters, the resolved target, the
click record written to the persistence backend and the health response.

Schema Hierarchy
=================
::
    RedirectRequest (Input, query string)
    ├─ to: str          raw destination URL
    ├─ asin: str        bare ASIN or product path/URL
    ├─ tag: str         affiliate tag
    ├─ src: str         logging: source label
    ├─ created_by: str  logging: creator label
    └─ created_at: str  logging: caller-supplied timestamp

    RequestMeta (Input, transport)
    ├─ client_ip: str | None
    └─ user_agent: str | None

    ResolvedTarget (Internal)
    ├─ url: str
    ├─ asin: str | None
    └─ tag: str | None

    ClickRecord (Output, persisted, frozen)
    ├─ target_url, asin, tag
    ├─ src, created_by, created_at
    ├─ ip, user_agent
    └─ ts: datetime (server-assigned)

    HealthResponse (Output)
    ├─ status
    ├─ click_logging
    └─ click_sink

Key Behaviours
===============
- Every RedirectRequest field is optional and whitespace-trimmed on construction.
- ClickRecord is immutable once built.
- ClickRecord.ts is a timezone-aware UTC datetime.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from golink.enums import HealthStatus

__all__ = [
    "RedirectRequest",
    "RequestMeta",
    "ResolvedTarget",
    "ClickRecord",
    "HealthResponse",
]


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class RedirectRequest(BaseModel):
    to: str = ""
    asin: str = ""
    tag: str = ""
    src: str = ""
    created_by: str = ""
    created_at: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def strip_value(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()


class RequestMeta(BaseModel):
    client_ip: str | None = None
    user_agent: str | None = None


class ResolvedTarget(BaseModel):
    url: str
    asin: str | None = None
    tag: str | None = None


class ClickRecord(BaseModel):
    """Audit entry for one resolved click, keyed by auto-assigned identity in the sink."""

    model_config = ConfigDict(frozen=True)

    target_url: str
    asin: str | None = None
    tag: str
    src: str | None = None
    created_by: str | None = None
    created_at: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    ts: datetime.datetime = Field(default_factory=_utcnow)


class HealthResponse(BaseModel):
    status: HealthStatus
    click_logging: bool
    click_sink: HealthStatus
