"""Tests for RobustHttpClient."""

import pytest
import httpx
from unittest.mock import patch, AsyncMock, MagicMock

from assetscout.tools.scraping.http_client import (
    RobustHttpClient,
    BASE_HEADERS,
    get_http_client,
    reset_http_client,
)


class TestBaseHeaders:
    """Tests for the default request headers."""

    def test_no_sec_fetch_headers(self):
        """Sec-Fetch-* headers can trigger bot checks on HTML endpoints."""
        assert not any(name.startswith("Sec-") for name in BASE_HEADERS)

    def test_essential_headers_only(self):
        essential = {"Accept", "Accept-Language", "Accept-Encoding", "Connection"}
        assert set(BASE_HEADERS.keys()) == essential


class TestRobustHttpClient:
    """Tests for RobustHttpClient class."""

    @pytest.fixture(autouse=True)
    def reset_client(self):
        """Reset the global client before and after each test."""
        reset_http_client()
        yield
        reset_http_client()

    @pytest.fixture
    def mock_rate_limiter(self):
        """Mock the rate limiter to not actually wait."""
        with patch("assetscout.tools.scraping.http_client.get_rate_limiter") as mock:
            limiter = MagicMock()
            limiter.acquire = AsyncMock(return_value=0.0)
            mock.return_value = limiter
            yield limiter

    @pytest.fixture
    def mock_async_client(self):
        """Patch httpx.AsyncClient and yield the client instance used inside ``async with``."""
        with patch("httpx.AsyncClient") as mock_cls:
            instance = AsyncMock()
            mock_cls.return_value.__aenter__.return_value = instance
            yield instance

    def _response(self, status_code: int, text: str = "") -> MagicMock:
        response = MagicMock(spec=httpx.Response)
        response.status_code = status_code
        response.text = text
        response.headers = {}
        return response

    def test_init_defaults(self, mock_rate_limiter):
        """Defaults come from settings."""
        client = RobustHttpClient()
        assert client.timeout == 10.0
        assert client.user_agent.startswith("AssetScout/")

    def test_init_custom_values(self, mock_rate_limiter):
        client = RobustHttpClient(timeout=3.0, user_agent="Test/1.0")
        assert client.timeout == 3.0
        assert client.user_agent == "Test/1.0"

    @pytest.mark.asyncio
    async def test_get_success(self, mock_rate_limiter, mock_async_client):
        mock_async_client.request.return_value = self._response(200, "Success")

        result = await RobustHttpClient().get("https://example.com")

        assert result is not None
        assert result.text == "Success"
        method, url = mock_async_client.request.call_args.args
        assert (method, url) == ("GET", "https://example.com")
        headers = mock_async_client.request.call_args.kwargs["headers"]
        assert headers["User-Agent"].startswith("AssetScout/")
        mock_rate_limiter.acquire.assert_awaited_once_with("https://example.com")

    @pytest.mark.asyncio
    async def test_post_sends_form_data(self, mock_rate_limiter, mock_async_client):
        mock_async_client.request.return_value = self._response(200, "ok")

        await RobustHttpClient().post("https://html.duckduckgo.com/html", data={"q": "x", "kl": "us-en"})

        assert mock_async_client.request.call_args.args[0] == "POST"
        assert mock_async_client.request.call_args.kwargs["data"] == {"q": "x", "kl": "us-en"}

    @pytest.mark.asyncio
    async def test_custom_headers_override(self, mock_rate_limiter, mock_async_client):
        mock_async_client.request.return_value = self._response(200)

        await RobustHttpClient().get("https://example.com", headers={"Accept": "application/xml"})

        assert mock_async_client.request.call_args.kwargs["headers"]["Accept"] == "application/xml"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 403, 500, 503])
    async def test_non_success_returns_none(self, mock_rate_limiter, mock_async_client, status):
        mock_async_client.request.return_value = self._response(status)
        assert await RobustHttpClient().get("https://example.com") is None

    @pytest.mark.asyncio
    async def test_rate_limited_returns_none(self, mock_rate_limiter, mock_async_client):
        mock_async_client.request.return_value = self._response(429)
        assert await RobustHttpClient().get("https://example.com") is None

    @pytest.mark.asyncio
    async def test_single_attempt_on_failure(self, mock_rate_limiter, mock_async_client):
        """No retries: the caller decides on a fallback."""
        mock_async_client.request.return_value = self._response(503)

        await RobustHttpClient().get("https://example.com")

        assert mock_async_client.request.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.TimeoutException("timed out"),
            httpx.ConnectError("refused"),
            httpx.RemoteProtocolError("bad"),
        ],
    )
    async def test_transport_errors_return_none(self, mock_rate_limiter, mock_async_client, error):
        mock_async_client.request.side_effect = error
        assert await RobustHttpClient().get("https://example.com") is None

    def test_global_client_is_shared(self, mock_rate_limiter):
        assert get_http_client() is get_http_client()

    def test_reset_global_client(self, mock_rate_limiter):
        first = get_http_client()
        reset_http_client()
        assert get_http_client() is not first
