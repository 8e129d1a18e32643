"""Click record construction.

The ASIN written to the log is recomputed here rather than taken from the
resolver: the raw ``asin`` parameter is tried first, then the resolved
destination URL. That way a direct ``?to=https://www.amazon.in/dp/...``
redirect is still attributed to its product.
"""

from golink.asin import extract_asin
from golink.config import Settings
from golink.schemas import ClickRecord, RedirectRequest, RequestMeta, ResolvedTarget

__all__ = ["build_click_record"]


def _clip(value: str | None, limit: int) -> str | None:
    return (value or "")[:limit] or None


def build_click_record(
    request: RedirectRequest,
    target: ResolvedTarget,
    meta: RequestMeta,
    settings: Settings,
) -> ClickRecord:
    asin = extract_asin(request.asin) or extract_asin(target.url)
    return ClickRecord(
        target_url=target.url,
        asin=asin or None,
        tag=request.tag or settings.DEFAULT_AFFILIATE_TAG,
        src=_clip(request.src, settings.SRC_MAX_LENGTH),
        created_by=_clip(request.created_by, settings.CREATED_BY_MAX_LENGTH),
        created_at=_clip(request.created_at, settings.CREATED_AT_MAX_LENGTH),
        ip=meta.client_ip or None,
        user_agent=meta.user_agent or None,
    )
