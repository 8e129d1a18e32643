"""ASIN extraction and affiliate URL construction.

Identifiers arrive as bare tokens (``B08N5WRWNW``), product-page paths
(``/dp/B08N5WRWNW/ref=x``) or whole product URLs. Extraction tries the
path-shaped pattern first so that an incidental 10-character run elsewhere in
a URL does not win over the real product id; only when no product path is
present does it fall back to any 10-character alphanumeric run.
"""

import re
from urllib.parse import quote

__all__ = ["ASIN_LENGTH", "extract_asin", "build_affiliate_url"]

ASIN_LENGTH = 10

# A 10-char id followed by "/", "?" or the end of the string.
_PRODUCT_PATH_RE = re.compile(r"/(?:dp|gp/product|product)/([A-Z0-9]{10})(?:[/?]|\Z)", re.IGNORECASE | re.ASCII)
_BARE_TOKEN_RE = re.compile(r"([A-Z0-9]{10})(?:[/?]|\Z)", re.IGNORECASE | re.ASCII)

# Characters encodeURIComponent leaves alone besides the unreserved set.
_URI_COMPONENT_SAFE = "!~*'()"


def extract_asin(value: str | None) -> str:
    """Return the uppercased ASIN found in ``value``, or ``""`` if there is none."""
    text = (value or "").strip()
    if not text:
        return ""

    for pattern in (_PRODUCT_PATH_RE, _BARE_TOKEN_RE):
        match = pattern.search(text)
        if match:
            return match.group(1).upper()
    return ""


def build_affiliate_url(host: str, asin: str, tag: str) -> str:
    """Build ``<host>/dp/<asin>?tag=<tag>`` with both components percent-encoded."""
    return (
        f"{host.rstrip('/')}/dp/{quote(asin, safe=_URI_COMPONENT_SAFE)}"
        f"?tag={quote(tag, safe=_URI_COMPONENT_SAFE)}"
    )
