"""FastAPI application entry point for the golink redirect gateway.

This module configures and initializes the FastAPI application with
lifecycle management, metrics and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ Create FastAPI│
    │ app instance  │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Include     │
    │ routes      │
    └──────┬──────┘
           ▼
    ┌──────────────────┐
    │ lifespan()        │
    │ startup:          │
    │ GatewayContext    │
    │ .create() +       │
    │ .initialize()     │
    └──────┬───────────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌──────────────────┐
    │ lifespan()        │
    │ shutdown:         │
    │ drain recorder,   │
    │ close sink        │
    └──────────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn golink.main:app --host 0.0.0.0 --port 8000

**Step 2 — Redirect**::
    curl -i "http://localhost:8000/go?asin=B08N5WRWNW"

**Step 3 — Scrape metrics**::
    curl http://localhost:8000/metrics

Key Behaviours
===============
- The gateway context (settings, logger, click sink, recorder) is built once
  at startup and stored on ``app.state.gateway``.
- In-flight click writes are drained before the sink is closed on shutdown.
- Prometheus metrics are exposed at /metrics.

Configuration:
    See golink/config.py for all available settings.
"""

__all__ = ["app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from golink.config import get_settings
from golink.dependencies import GatewayContext
from golink.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    gateway = GatewayContext.create(settings)
    await gateway.initialize()
    app.state.gateway = gateway
    yield
    # Shutdown
    await gateway.cleanup()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Allowlisted redirect gateway with click logging",
    lifespan=lifespan,
)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
