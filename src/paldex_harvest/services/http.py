# ABOUTME: httpx-backed page fetcher for list and detail pages
# ABOUTME: Sends locale headers, follows redirects and turns every failure into FetchError

import httpx

from paldex_harvest.config import Config, get_config
from paldex_harvest.extraction.base import FetchError
from paldex_harvest.utils.logging import get_logger, log_api_call


class HttpPageFetcher:
    """Fetches upstream pages as text. The httpx client can be injected for testing."""

    def __init__(self, config: Config | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or get_config()
        self._owns_client = client is None
        self.http_client = client or httpx.AsyncClient(  # Allow for dependency injection
            headers=self.default_headers(self.config),
            timeout=httpx.Timeout(self.config.request_timeout_seconds),
            follow_redirects=True,
        )
        self.logger = get_logger(__name__)

    @staticmethod
    def default_headers(config: Config) -> dict[str, str]:
        return {
            "Accept-Language": config.accept_language,
            "User-Agent": config.user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }

    @log_api_call("paldb")
    async def fetch_html(self, url: str) -> str:
        """Fetch one page.

        Args:
            url: Absolute page URL

        Returns:
            The response body as text

        Raises:
            FetchError: On transport failure or a non-2xx response
        """
        # The client built here already carries these; an injected one may not
        request_options = {} if self._owns_client else {
            "headers": self.default_headers(self.config),
            "follow_redirects": True,
        }
        try:
            response = await self.http_client.get(url, **request_options)
        except httpx.HTTPError as e:
            self.logger.warning("Page request failed", url=url, error=str(e), error_type=type(e).__name__)
            raise FetchError(url, reason=str(e) or type(e).__name__) from e

        if not response.is_success:
            self.logger.warning("Page request returned error status", url=url, status_code=response.status_code)
            raise FetchError(url, status_code=response.status_code)

        self.logger.debug("Fetched page", url=url, final_url=str(response.url), length=len(response.text))
        return response.text

    async def aclose(self) -> None:
        """Close the underlying client when this fetcher created it."""
        if self._owns_client:
            await self.http_client.aclose()
