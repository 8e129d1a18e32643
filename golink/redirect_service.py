"""Redirect Service Layer - Target Resolution and Click Recording

This module turns a ``RedirectRequest`` into exactly one destination URL and,
when click logging is enabled, hands a ``ClickRecord`` to the recorder.

Architecture Overview
==================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                    Service Layer                            │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │ RedirectService │  │ resolve_target  │  │ ClickRecorder│ │
    │  │                 │  │                 │  │              │ │
    │  │ • Resolve       │  │ • Direct URL    │  │ • Detached   │ │
    │  │ • Record click  │  │ • ASIN + tag    │  │   writes     │ │
    │  │ • Metrics/logs  │  │ • Allowlist     │  │ • Log errors │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                │                    │                    │
                ▼                    ▼                    ▼
    ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────┐
    │  golink.urls    │  │   golink.asin   │  │  ClickSink      │
    │ (parse + check) │  │ (extract/build) │  │ (DB/Kafka/Redis)│
    └─────────────────┘  └─────────────────┘  └─────────────────┘

Resolution Flow
===============
::
    ┌─────────────┐
    │ "to" set?   │
    └──────┬──────┘
    ┌──────┴───────────────────────┐
    │ YES                          │ NO
    ▼                              ▼
┌──────────────┐            ┌──────────────┐
│ http(s)://?  │─ no ─► 400 │ extract_asin │─ "" ─► 400
│              │ Invalid    │ (asin param) │ MissingTarget
└──────┬───────┘ Scheme     └──────┬───────┘
       ▼                           ▼
┌──────────────┐            ┌──────────────┐
│ parse_url +  │─ no ─► 400 │ AMAZON_HOST/ │
│ allowlist    │ HostNot    │ dp/<asin>?   │
└──────┬───────┘ Allowed    │ tag=<tag>    │
       ▼                    └──────┬───────┘
  normalized URL                   ▼
                              affiliate URL

Key Behaviours
===============
- A non-empty ``to`` always wins; the two branches never merge.
- The scheme prefix check runs before parsing, so ``www.amazon.in/dp/...``
  is rejected even though it would be allowed with a scheme.
- The effective tag is the trimmed ``tag`` parameter or ``DEFAULT_AFFILIATE_TAG``.
- Click recording never blocks or fails the redirect.
"""

import re
import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram

from golink.asin import build_affiliate_url, extract_asin
from golink.audit import build_click_record
from golink.config import Settings
from golink.enums import RedirectOutcome
from golink.errors import HostNotAllowed, InvalidScheme, MissingTarget, ResolutionError, UrlParseError
from golink.schemas import ClickRecord, RedirectRequest, RequestMeta, ResolvedTarget
from golink.urls import is_allowed_target, parse_url

if TYPE_CHECKING:
    from golink.dependencies import RequestContext

__all__ = ["RedirectService", "resolve_target"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

REDIRECT_REQUESTS_TOTAL = Counter(
    "golink_redirect_requests_total",
    "Total redirect requests by outcome",
    ["outcome"],
)
RESOLVE_DURATION = Histogram(
    "golink_resolve_duration_seconds",
    "Time taken to resolve a redirect target",
    buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05],
)

_HTTP_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


# ============================================================================
# RESOLUTION
# ============================================================================


def resolve_target(request: RedirectRequest, settings: Settings) -> ResolvedTarget:
    """Resolve ``request`` to a single destination.

    Raises:
        InvalidScheme: ``to`` does not start with ``http://`` or ``https://``.
        HostNotAllowed: ``to`` is unparsable or its host is not allowlisted.
        MissingTarget: No ``to`` and no ASIN could be extracted.
    """
    if request.to:
        if not _HTTP_SCHEME_RE.match(request.to):
            raise InvalidScheme(f"to={request.to!r}")
        try:
            url = parse_url(request.to)
        except UrlParseError as exc:
            raise HostNotAllowed(str(exc)) from exc
        if not is_allowed_target(url, settings.ALLOWED_HOSTS):
            raise HostNotAllowed(f"host={url.hostname!r}")
        return ResolvedTarget(url=url.url)

    asin = extract_asin(request.asin)
    if not asin:
        raise MissingTarget(f"asin={request.asin!r}")
    tag = request.tag or settings.DEFAULT_AFFILIATE_TAG
    return ResolvedTarget(
        url=build_affiliate_url(settings.AMAZON_HOST, asin, tag),
        asin=asin,
        tag=tag,
    )


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class RedirectService:
    """Request-scoped facade over resolution and click recording.

    Example:
        >>> service = RedirectService.from_context(ctx)
        >>> target = service.resolve(RedirectRequest(asin="B08N5WRWNW"))
        >>> service.record_click(request, target)
    """

    def __init__(self, ctx: "RequestContext"):
        self._settings = ctx.settings
        self._logger = ctx.logger
        self._recorder = ctx.recorder
        self._meta = RequestMeta(client_ip=ctx.client_ip, user_agent=ctx.user_agent)
        self._ctx = ctx

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "RedirectService":
        return cls(ctx)

    def resolve(self, request: RedirectRequest) -> ResolvedTarget:
        """Resolve and account for the outcome.

        ``ResolutionError`` is logged at WARNING and re-raised for the route to
        map onto a 400; any other exception propagates untouched.
        """
        start_time = time.perf_counter()
        try:
            target = resolve_target(request, self._settings)
        except ResolutionError as exc:
            REDIRECT_REQUESTS_TOTAL.labels(outcome=exc.outcome).inc()
            self._logger.warning(
                f"Redirect rejected ({exc.outcome.value}): {exc}",
                extra={"operation": "resolve", "outcome": exc.outcome.value},
            )
            raise
        finally:
            RESOLVE_DURATION.observe(time.perf_counter() - start_time)

        REDIRECT_REQUESTS_TOTAL.labels(outcome=RedirectOutcome.SUCCESS).inc()
        return target

    def record_click(self, request: RedirectRequest, target: ResolvedTarget) -> ClickRecord | None:
        """Build the click record and submit it without waiting for the write.

        Returns ``None`` when click logging is disabled or the record could
        not be handed off.
        """
        if not self._settings.ENABLE_CLICK_LOGGING:
            return None
        try:
            record = build_click_record(request, target, self._meta, self._settings)
            self._recorder.submit(record)
        except Exception as exc:
            self._logger.warning(f"Click log failed: {exc}", extra={"operation": "click_log"})
            return None
        return record
