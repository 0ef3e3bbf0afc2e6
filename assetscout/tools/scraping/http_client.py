"""HTTP client for upstream fetches with rate limiting and graceful failure."""

from typing import Optional
from urllib.parse import urlparse

import httpx
import structlog

from assetscout.config.settings import settings
from assetscout.tools.scraping.rate_limiter import get_rate_limiter

logger = structlog.get_logger()

# Kept minimal; Sec-* headers tend to trigger bot checks on HTML endpoints
BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
}


class RobustHttpClient:
    """HTTP client that returns None instead of raising on failure.

    Each call is a single attempt bounded by ``timeout``. Callers decide
    whether a failed fetch warrants a fallback request.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ):
        """Initialize the HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self._rate_limiter = get_rate_limiter()

    async def get(
        self,
        url: str,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Optional[httpx.Response]:
        """GET a URL. Returns the response on 2xx, None otherwise."""
        return await self.request("GET", url, headers=headers, params=params)

    async def post(
        self,
        url: str,
        data: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Optional[httpx.Response]:
        """POST form data to a URL. Returns the response on 2xx, None otherwise."""
        return await self.request("POST", url, headers=headers, data=data)

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> Optional[httpx.Response]:
        """Fetch a URL with rate limiting.

        Returns None on timeouts, connection errors and non-2xx responses
        so calling code can degrade gracefully.

        Args:
            method: HTTP method
            url: URL to fetch
            headers: Optional additional headers
            params: Optional query parameters
            data: Optional form body

        Returns:
            httpx.Response on success, None on failure
        """
        domain = urlparse(url).netloc

        await self._rate_limiter.acquire(url)

        merged_headers = {**BASE_HEADERS, "User-Agent": self.user_agent, **(headers or {})}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            ) as client:
                response = await client.request(
                    method, url, headers=merged_headers, params=params, data=data
                )
        except httpx.TimeoutException:
            logger.warning("Request timeout", url=url, method=method)
            return None
        except httpx.ConnectError as e:
            logger.warning("Connection error", url=url, domain=domain, error=str(e))
            return None
        except httpx.HTTPError as e:
            logger.warning("HTTP error", url=url, method=method, error=str(e))
            return None

        if response.status_code == 429:
            logger.warning(
                "Rate limited by server",
                url=url,
                retry_after=response.headers.get("Retry-After"),
            )
            return None

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Non-success response",
                url=url,
                method=method,
                status=response.status_code,
            )
            return None

        return response


# Global instance for reuse
_http_client: Optional[RobustHttpClient] = None


def get_http_client() -> RobustHttpClient:
    """Get or create the global HTTP client instance."""
    global _http_client
    if _http_client is None:
        _http_client = RobustHttpClient()
    return _http_client


def reset_http_client() -> None:
    """Reset the global HTTP client (useful for testing)."""
    global _http_client
    _http_client = None
