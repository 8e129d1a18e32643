"""Dependency injection with an explicit, process-lifetime gateway context.

``GatewayContext`` is built once in the application lifespan and stored on
``app.state``. It owns the immutable settings, the configured logger, the
click sink and the recorder. Each request gets a lightweight ``RequestContext``
carrying per-request metadata on top of it. Tests swap the whole gateway for a
fake through ``app.dependency_overrides[get_gateway_context]``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from golink.click_sink import ClickRecorder, ClickSink, build_click_sink
from golink.config import Settings, get_settings
from golink.redirect_service import RedirectService

__all__ = [
    "GatewayContext",
    "RequestContext",
    "get_gateway_context",
    "get_request_context",
    "get_redirect_service",
    "setup_logger",
]


# ============================================================================
# GATEWAY CONTEXT
# ============================================================================


def setup_logger(settings: Settings) -> logging.Logger:
    """Configure the ``golink`` logger once."""
    logger = logging.getLogger("golink")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL.upper())
    return logger


@dataclass
class GatewayContext:
    """Shared collaborators for every request.

    Attributes:
        settings: Frozen configuration (allowlist, default tag, logging flag)
        logger: Operator-facing logger
        sink: Click persistence backend
        recorder: Fire-and-forget dispatcher in front of ``sink``
    """

    settings: Settings
    logger: logging.Logger
    sink: ClickSink
    recorder: ClickRecorder

    @classmethod
    def create(cls, settings: Optional[Settings] = None, sink: Optional[ClickSink] = None) -> "GatewayContext":
        settings = settings or get_settings()
        logger = setup_logger(settings)
        sink = sink or build_click_sink(settings)
        return cls(settings=settings, logger=logger, sink=sink, recorder=ClickRecorder(sink, logger))

    async def initialize(self) -> None:
        """Start the click sink when click logging is enabled."""
        if self.settings.ENABLE_CLICK_LOGGING:
            await self.sink.start()
            self.logger.info(f"Click logging enabled, sink={self.sink.kind.value}")
        else:
            self.logger.info("Click logging disabled")

    async def cleanup(self) -> None:
        """Let in-flight click writes finish, then close the sink."""
        await self.recorder.drain()
        if self.settings.ENABLE_CLICK_LOGGING:
            await self.sink.close()


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request view of the gateway with tracking metadata.

    Attributes:
        gateway: Process-lifetime gateway context
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: First ``x-forwarded-for`` hop, else the peer address
        start_time: Request start timestamp
    """

    gateway: GatewayContext
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.gateway.settings

    @property
    def recorder(self) -> ClickRecorder:
        return self.gateway.recorder

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Shared logger with request context."""
        return logging.LoggerAdapter(
            self.gateway.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else None


def get_gateway_context(request: Request) -> GatewayContext:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError("Gateway context is not initialized")
    return gateway


def get_request_context(
    request: Request,
    gateway: GatewayContext = Depends(get_gateway_context),
) -> RequestContext:
    return RequestContext(
        gateway=gateway,
        user_agent=request.headers.get("user-agent") or None,
        client_ip=_client_ip(request),
    )


def get_redirect_service(ctx: RequestContext = Depends(get_request_context)) -> RedirectService:
    return RedirectService.from_context(ctx)
