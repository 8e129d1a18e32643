"""FastAPI route definitions for the golink redirect gateway.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    GET  /go?to=<url>
    GET  /go?asin=<ASIN>&tag=<tag>
        ├─ 302 Redirect (Location: resolved target)
        ├─ 400 text/plain (invalid scheme, host not allowed, missing target)
        └─ 500 text/plain "Server error"

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  GET /go    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Trim query  │
    │ parameters  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Resolve     │──── ResolutionError ──► 400 + reason
    │ target      │──── anything else ────► 500 "Server error"
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Submit click│  (detached task, not awaited)
    │ record      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ 302 Location│
    └─────────────┘

How to Use
===========
**Step 1 — Include the router**::
    from golink.routes import router
    app.include_router(router)

**Step 2 — Call the gateway**::
    curl -i "http://localhost:8000/go?asin=B08N5WRWNW&tag=mytag-20"
    curl -i "http://localhost:8000/go?to=https://www.amazon.in/dp/B08N5WRWNW"

Key Behaviours
===============
- Every /go response carries ``Cache-Control: no-store, max-age=0``.
- The redirect is returned without waiting for the click write.
- Internal error details go to the operator log only.
- Query parameters are log metadata; none of them authorizes anything.
- The ``Location`` header is the resolved target verbatim. ``RedirectResponse``
  re-quotes its URL, so targets are already percent-encoded by ``parse_url``
  (``|`` becomes ``%7C``) and the re-quote leaves them unchanged.
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from golink.dependencies import (
    GatewayContext,
    RequestContext,
    get_gateway_context,
    get_redirect_service,
    get_request_context,
)
from golink.enums import HealthStatus, RedirectOutcome
from golink.errors import ResolutionError
from golink.redirect_service import REDIRECT_REQUESTS_TOTAL, RedirectService
from golink.schemas import HealthResponse, RedirectRequest

__all__ = ["router", "NO_CACHE_HEADERS"]

NO_CACHE_HEADERS = {"Cache-Control": "no-store, max-age=0"}

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(gateway: GatewayContext = Depends(get_gateway_context)) -> HealthResponse:
    if not gateway.settings.ENABLE_CLICK_LOGGING:
        return HealthResponse(status=HealthStatus.HEALTHY, click_logging=False, click_sink=HealthStatus.DISABLED)

    sink_status = HealthStatus.HEALTHY
    try:
        await gateway.sink.ping()
    except Exception as e:
        gateway.logger.error(f"Click sink health check failed: {e}")
        sink_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=sink_status, click_logging=True, click_sink=sink_status)


@router.get("/go", tags=["redirect"])
async def go(
    to: str = "",
    asin: str = "",
    tag: str = "",
    src: str = "",
    created_by: str = "",
    created_at: str = "",
    ctx: RequestContext = Depends(get_request_context),
    service: RedirectService = Depends(get_redirect_service),
) -> Response:
    try:
        payload = RedirectRequest(
            to=to,
            asin=asin,
            tag=tag,
            src=src,
            created_by=created_by,
            created_at=created_at,
        )
        target = service.resolve(payload)
        service.record_click(payload, target)
    except ResolutionError as exc:
        return PlainTextResponse(exc.message, status_code=exc.status_code, headers=NO_CACHE_HEADERS)
    except Exception as exc:
        REDIRECT_REQUESTS_TOTAL.labels(outcome=RedirectOutcome.ERROR).inc()
        ctx.logger.error(
            f"go() error: {exc}",
            exc_info=True,
            extra={"operation": "redirect", "duration_ms": ctx.get_duration()},
        )
        return PlainTextResponse("Server error", status_code=500, headers=NO_CACHE_HEADERS)

    ctx.logger.info(
        f"Redirect successful -> {target.url}",
        extra={
            "operation": "redirect",
            "target_url": target.url,
            "asin": target.asin,
            "duration_ms": ctx.get_duration(),
        },
    )
    return RedirectResponse(url=target.url, status_code=302, headers=NO_CACHE_HEADERS)
