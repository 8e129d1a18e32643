"""Error taxonomy for target resolution.

Every ``ResolutionError`` is a client error: the route maps it to a ``400``
with ``message`` as the plain-text body. ``UrlParseError`` never leaves the
resolver; it is folded into ``HostNotAllowed``.
"""

from golink.enums import RedirectOutcome

__all__ = [
    "ResolutionError",
    "InvalidScheme",
    "HostNotAllowed",
    "MissingTarget",
    "UrlParseError",
]


class UrlParseError(ValueError):
    """Raised by the URL normalizer for input without a usable scheme and host."""


class ResolutionError(Exception):
    status_code: int = 400
    message: str = "Bad request."
    outcome: RedirectOutcome = RedirectOutcome.ERROR

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


class InvalidScheme(ResolutionError):
    message = "Invalid 'to' URL (must start with http/https)."
    outcome = RedirectOutcome.INVALID_SCHEME


class HostNotAllowed(ResolutionError):
    message = "Target host not allowed."
    outcome = RedirectOutcome.HOST_NOT_ALLOWED


class MissingTarget(ResolutionError):
    message = "Missing target. Provide ?to=<url> or ?asin=<ASIN>."
    outcome = RedirectOutcome.MISSING_TARGET
