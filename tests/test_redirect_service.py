"""Unit tests for target resolution and the request-scoped redirect service."""

from unittest.mock import MagicMock, Mock, patch

import pytest

from golink.config import Settings
from golink.enums import RedirectOutcome
from golink.errors import HostNotAllowed, InvalidScheme, MissingTarget, ResolutionError
from golink.redirect_service import RedirectService, resolve_target
from golink.schemas import RedirectRequest, ResolvedTarget

# ============================================================================
# resolve_target
# ============================================================================


class TestDirectUrlBranch:
    def test_allowlisted_url_is_returned_normalized(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(to="https://www.amazon.in/dp/B08N5WRWNW"), settings)
        assert target == ResolvedTarget(url="https://www.amazon.in/dp/B08N5WRWNW")
        assert target.asin is None
        assert target.tag is None

    def test_scheme_check_is_case_insensitive(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(to="HTTPS://WWW.AMAZON.IN/dp/B08N5WRWNW"), settings)
        assert target.url == "https://www.amazon.in/dp/B08N5WRWNW"

    def test_short_link_host_is_allowed(self, settings: Settings) -> None:
        assert resolve_target(RedirectRequest(to="https://amzn.to/3abcXYZ"), settings).url == "https://amzn.to/3abcXYZ"

    @pytest.mark.parametrize(
        "to",
        [
            "www.amazon.in/dp/B08N5WRWNW",
            "//www.amazon.in/dp/B08N5WRWNW",
            "ftp://www.amazon.in/",
            "javascript:alert(1)",
            "https:/www.amazon.in/",
        ],
    )
    def test_missing_http_scheme_is_rejected(self, settings: Settings, to: str) -> None:
        with pytest.raises(InvalidScheme):
            resolve_target(RedirectRequest(to=to), settings)

    @pytest.mark.parametrize(
        "to",
        [
            "https://evil.example.com/dp/B08N5WRWNW",
            "http://shop.amazon.in/",
            "https://www.amazon.in.evil.com/",
            "https://www.amazon.in@evil.com/",
            "https://",
            "https://evil.example.com\\@www.amazon.in/",
            "https://evil.example.com\\\\@amzn.to/",
            "https://www.amazon.in\\.evil.example.com/",
            "https://amazon.in:notaport/",
        ],
    )
    def test_disallowed_or_unparsable_host_is_rejected(self, settings: Settings, to: str) -> None:
        with pytest.raises(HostNotAllowed):
            resolve_target(RedirectRequest(to=to), settings)

    def test_to_wins_over_asin(self, settings: Settings) -> None:
        request = RedirectRequest(to="https://m.amazon.in/", asin="B08N5WRWNW", tag="ignored-21")
        assert resolve_target(request, settings).url == "https://m.amazon.in/"

    def test_blank_to_falls_through_to_asin(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(to="   ", asin="B08N5WRWNW"), settings)
        assert target.asin == "B08N5WRWNW"


class TestAsinBranch:
    def test_default_tag(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(asin="B08N5WRWNW"), settings)
        assert target.url == f"https://www.amazon.in/dp/B08N5WRWNW?tag={settings.DEFAULT_AFFILIATE_TAG}"
        assert target.asin == "B08N5WRWNW"
        assert target.tag == settings.DEFAULT_AFFILIATE_TAG

    def test_explicit_tag(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(asin="B08N5WRWNW", tag="mytag-20"), settings)
        assert target.url == "https://www.amazon.in/dp/B08N5WRWNW?tag=mytag-20"

    def test_blank_tag_uses_default(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(asin="B08N5WRWNW", tag="   "), settings)
        assert target.tag == settings.DEFAULT_AFFILIATE_TAG

    def test_asin_from_product_url(self, settings: Settings) -> None:
        target = resolve_target(RedirectRequest(asin="https://www.amazon.in/dp/b08n5wrwnw/ref=x"), settings)
        assert target.url.startswith("https://www.amazon.in/dp/B08N5WRWNW?")

    def test_amazon_host_comes_from_settings(self) -> None:
        settings = Settings(_env_file=None, AMAZON_HOST="https://www.amazon.co.uk")
        target = resolve_target(RedirectRequest(asin="B08N5WRWNW", tag="t-21"), settings)
        assert target.url == "https://www.amazon.co.uk/dp/B08N5WRWNW?tag=t-21"

    @pytest.mark.parametrize("asin", ["", "   ", "nope", "B08N5WRWN"])
    def test_missing_target(self, settings: Settings, asin: str) -> None:
        with pytest.raises(MissingTarget):
            resolve_target(RedirectRequest(asin=asin), settings)


def test_resolution_errors_carry_client_messages() -> None:
    assert InvalidScheme().message == "Invalid 'to' URL (must start with http/https)."
    assert HostNotAllowed().message == "Target host not allowed."
    assert MissingTarget().message == "Missing target. Provide ?to=<url> or ?asin=<ASIN>."
    for error in (InvalidScheme(), HostNotAllowed(), MissingTarget()):
        assert isinstance(error, ResolutionError)
        assert error.status_code == 400


# ============================================================================
# RedirectService
# ============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_recorder() -> MagicMock:
    return MagicMock()


def _service(settings: Settings, logger: MagicMock, recorder: MagicMock) -> RedirectService:
    ctx = Mock()
    ctx.settings = settings
    ctx.logger = logger
    ctx.recorder = recorder
    ctx.client_ip = "203.0.113.7"
    ctx.user_agent = "pytest-agent"
    return RedirectService.from_context(ctx)


class TestRedirectService:
    def test_resolve_returns_target(self, settings, mock_logger, mock_recorder) -> None:
        service = _service(settings, mock_logger, mock_recorder)
        target = service.resolve(RedirectRequest(asin="B08N5WRWNW"))
        assert target.asin == "B08N5WRWNW"
        mock_logger.warning.assert_not_called()

    def test_resolve_logs_and_reraises_rejection(self, settings, mock_logger, mock_recorder) -> None:
        service = _service(settings, mock_logger, mock_recorder)
        with pytest.raises(MissingTarget) as excinfo:
            service.resolve(RedirectRequest())
        assert excinfo.value.outcome is RedirectOutcome.MISSING_TARGET
        mock_logger.warning.assert_called_once()

    def test_record_click_submits_record(self, settings, mock_logger, mock_recorder) -> None:
        service = _service(settings, mock_logger, mock_recorder)
        request = RedirectRequest(asin="B08N5WRWNW", src="newsletter")
        record = service.record_click(request, resolve_target(request, settings))

        assert record is not None
        assert record.asin == "B08N5WRWNW"
        assert record.ip == "203.0.113.7"
        assert record.user_agent == "pytest-agent"
        mock_recorder.submit.assert_called_once_with(record)

    def test_record_click_disabled(self, mock_logger, mock_recorder) -> None:
        settings = Settings(_env_file=None, ENABLE_CLICK_LOGGING=False)
        service = _service(settings, mock_logger, mock_recorder)
        request = RedirectRequest(asin="B08N5WRWNW")

        assert service.record_click(request, resolve_target(request, settings)) is None
        mock_recorder.submit.assert_not_called()

    def test_record_click_never_raises(self, settings, mock_logger, mock_recorder) -> None:
        mock_recorder.submit.side_effect = RuntimeError("no running event loop")
        service = _service(settings, mock_logger, mock_recorder)
        request = RedirectRequest(asin="B08N5WRWNW")

        assert service.record_click(request, resolve_target(request, settings)) is None
        mock_logger.warning.assert_called_once()

    def test_unexpected_errors_propagate(self, settings, mock_logger, mock_recorder) -> None:
        service = _service(settings, mock_logger, mock_recorder)
        with patch("golink.redirect_service.resolve_target", side_effect=KeyError("boom")):
            with pytest.raises(KeyError):
                service.resolve(RedirectRequest(asin="B08N5WRWNW"))
