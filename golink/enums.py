"""Shared enums for the golink redirect gateway.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "ClickSinkKind", "RedirectOutcome", "ClickRecordStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


class ClickSinkKind(StrEnum):
    """Backends a click record can be written to."""

    DATABASE = "database"
    KAFKA = "kafka"
    REDIS = "redis"


class RedirectOutcome(StrEnum):
    """Outcome labels for redirect metrics and logging."""

    SUCCESS = "success"
    INVALID_SCHEME = "invalid_scheme"
    HOST_NOT_ALLOWED = "host_not_allowed"
    MISSING_TARGET = "missing_target"
    ERROR = "error"


class ClickRecordStatus(StrEnum):
    """Persistence status labels for click record metrics."""

    PERSISTED = "persisted"
    FAILED = "failed"
