"""Unit tests for URL normalization and the host allowlist."""

import pytest

from golink.errors import UrlParseError
from golink.urls import StructuredUrl, is_allowed_target, parse_url

ALLOWED = frozenset({"www.amazon.in", "amazon.in", "amzn.to", "m.amazon.in"})


def test_parse_url_keeps_well_formed_url() -> None:
    url = parse_url("https://www.amazon.in/dp/B08N5WRWNW?tag=x-21")
    assert url.scheme == "https"
    assert url.hostname == "www.amazon.in"
    assert url.url == "https://www.amazon.in/dp/B08N5WRWNW?tag=x-21"


def test_parse_url_lowercases_scheme_and_host() -> None:
    url = parse_url("HTTPS://WWW.Amazon.IN/dp/B08N5WRWNW")
    assert url.scheme == "https"
    assert url.hostname == "www.amazon.in"
    assert url.url == "https://www.amazon.in/dp/B08N5WRWNW"


def test_parse_url_normalizes_empty_path() -> None:
    assert parse_url("https://amzn.to").url == "https://amzn.to/"


def test_parse_url_str_is_normalized_form() -> None:
    assert str(parse_url("http://m.amazon.in/x")) == "http://m.amazon.in/x"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "www.amazon.in/dp/B08N5WRWNW",
        "ftp://amazon.in/file",
        "javascript:alert(1)",
        "https://",
        "https://amazon.in:99999/",
        "not a url",
    ],
)
def test_parse_url_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(UrlParseError):
        parse_url(raw)


def test_parse_url_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_url("mailto:someone@example.com")


@pytest.mark.parametrize("host", sorted(ALLOWED))
def test_allowlisted_hosts_are_allowed(host: str) -> None:
    assert is_allowed_target(parse_url(f"https://{host}/"), ALLOWED)


@pytest.mark.parametrize(
    "raw",
    [
        "https://evil.example.com/",
        "https://shop.amazon.in/",
        "https://amazon.in.evil.com/",
        "https://amazon.com/dp/B08N5WRWNW",
    ],
)
def test_other_hosts_are_rejected(raw: str) -> None:
    assert not is_allowed_target(parse_url(raw), ALLOWED)


def test_none_is_never_allowed() -> None:
    assert not is_allowed_target(None, ALLOWED)


def test_allowlist_check_is_case_insensitive() -> None:
    url = StructuredUrl(scheme="https", hostname="WWW.AMAZON.IN", url="https://WWW.AMAZON.IN/")
    assert is_allowed_target(url, ALLOWED)


@pytest.mark.parametrize(
    "raw",
    [
        "https://evil.example.com\\@www.amazon.in/",
        "https://evil.example.com\\\\@amzn.to/",
        "https://www.amazon.in\\.evil.example.com/",
        "https://evil.example.com @www.amazon.in/",
    ],
)
def test_backslash_or_space_in_authority_is_rejected(raw: str) -> None:
    # urlsplit reports www.amazon.in/amzn.to as the host; a browser goes to evil.example.com.
    with pytest.raises(UrlParseError):
        parse_url(raw)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://www.amazon.in/s?k=a b", "https://www.amazon.in/s?k=a%20b"),
        ("https://www.amazon.in/s?k=shoes|red", "https://www.amazon.in/s?k=shoes%7Cred"),
        ("https://www.amazon.in/my list/", "https://www.amazon.in/my%20list/"),
        ("https://www.amazon.in/s?k=café", "https://www.amazon.in/s?k=caf%C3%A9"),
        ("https://www.amazon.in/s?k=a%20b", "https://www.amazon.in/s?k=a%20b"),
    ],
)
def test_parse_url_percent_encodes_like_a_browser(raw: str, expected: str) -> None:
    assert parse_url(raw).url == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://www.amazon.in/dp/B08N5WRWNW/../x", "https://www.amazon.in/dp/x"),
        ("https://www.amazon.in/a/./b", "https://www.amazon.in/a/b"),
        ("https://www.amazon.in/a/b/..", "https://www.amazon.in/a/"),
        ("https://www.amazon.in/../../a", "https://www.amazon.in/a"),
        ("https://www.amazon.in/a/%2E%2E/b?x=1", "https://www.amazon.in/b?x=1"),
    ],
)
def test_parse_url_resolves_dot_segments(raw: str, expected: str) -> None:
    assert parse_url(raw).url == expected
