# ABOUTME: Error taxonomy and fetcher protocol shared by the extraction engine
# ABOUTME: Network failures carry URL and status; parse misses never raise

from typing import Protocol


class ExtractionError(Exception):
    """Base class for every error the extraction engine raises."""

    pass


class FetchError(ExtractionError):
    """Raised when a page cannot be fetched: no response, or a non-2xx status."""

    def __init__(self, url: str, status_code: int | None = None, reason: str | None = None):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        if status_code is not None:
            message = f"GET {url} failed with HTTP {status_code}"
        else:
            message = f"GET {url} failed: {reason or 'no response'}"
        super().__init__(message)

    @property
    def is_transport_error(self) -> bool:
        return self.status_code is None


class UnknownCategoryError(ExtractionError, KeyError):
    """Raised when a category key has no registered schema."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown category: {category!r}")

    def __str__(self) -> str:
        return self.args[0]


class InvalidSlugError(ExtractionError, ValueError):
    """Raised when a detail request names a slug that normalizes to nothing."""

    pass


class PageFetcher(Protocol):
    """Anything that can turn an absolute URL into HTML text."""

    async def fetch_html(self, url: str) -> str:
        """Fetch a page.

        Raises:
            FetchError: On transport failure or a non-2xx response
        """
        ...
