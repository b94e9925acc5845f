# ABOUTME: Tests for the httpx page fetcher using pytest-httpx
# ABOUTME: Checks locale headers, error mapping to FetchError and client ownership

import httpx
import pytest

from paldex_harvest.config import Config
from paldex_harvest.extraction.base import FetchError
from paldex_harvest.services.http import HttpPageFetcher

PAGE_URL = "https://paldb.cc/en/Storage"


@pytest.fixture
def config():
    return Config(_env_file=None, user_agent="paldex-harvest-tests/1.0")


class TestFetchHtml:
    """HTTP behaviour of a single page request"""

    @pytest.mark.asyncio
    async def test_returns_body_and_sends_locale_headers(self, config, httpx_mock):
        httpx_mock.add_response(url=PAGE_URL, text="<html>ok</html>")
        fetcher = HttpPageFetcher(config)

        try:
            assert await fetcher.fetch_html(PAGE_URL) == "<html>ok</html>"
        finally:
            await fetcher.aclose()

        request = httpx_mock.get_request()
        assert request.headers["Accept-Language"] == "en-US,en;q=0.9"
        assert request.headers["User-Agent"] == "paldex-harvest-tests/1.0"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 500, 503])
    async def test_error_status_raises_fetch_error(self, config, httpx_mock, status_code):
        httpx_mock.add_response(url=PAGE_URL, status_code=status_code)
        fetcher = HttpPageFetcher(config)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_html(PAGE_URL)
        await fetcher.aclose()

        assert exc_info.value.url == PAGE_URL
        assert exc_info.value.status_code == status_code
        assert str(status_code) in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_has_no_status(self, config, httpx_mock):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=PAGE_URL)
        fetcher = HttpPageFetcher(config)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch_html(PAGE_URL)
        await fetcher.aclose()

        assert exc_info.value.status_code is None
        assert exc_info.value.is_transport_error
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_redirects_are_followed(self, config, httpx_mock):
        httpx_mock.add_response(
            url="https://paldb.cc/en/Wood_Chest", status_code=301, headers={"Location": "https://paldb.cc/en/Wooden_Chest"}
        )
        httpx_mock.add_response(url="https://paldb.cc/en/Wooden_Chest", text="chest")
        fetcher = HttpPageFetcher(config)

        try:
            assert await fetcher.fetch_html("https://paldb.cc/en/Wood_Chest") == "chest"
        finally:
            await fetcher.aclose()


class TestClientOwnership:
    def test_default_client_carries_headers(self, config):
        fetcher = HttpPageFetcher(config)
        assert fetcher.http_client.headers["Accept-Language"] == "en-US,en;q=0.9"

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, config):
        client = httpx.AsyncClient()
        fetcher = HttpPageFetcher(config, client=client)

        assert fetcher.http_client is client
        await fetcher.aclose()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_injected_client_still_gets_locale_headers_and_redirects(self, config, httpx_mock):
        httpx_mock.add_response(
            url="https://paldb.cc/en/Wood_Chest", status_code=302, headers={"Location": "https://paldb.cc/en/Wooden_Chest"}
        )
        httpx_mock.add_response(url="https://paldb.cc/en/Wooden_Chest", text="chest")

        async with httpx.AsyncClient() as client:
            fetcher = HttpPageFetcher(config, client=client)
            assert await fetcher.fetch_html("https://paldb.cc/en/Wood_Chest") == "chest"

        for request in httpx_mock.get_requests():
            assert request.headers["Accept-Language"] == "en-US,en;q=0.9"
            assert request.headers["User-Agent"] == "paldex-harvest-tests/1.0"

    @pytest.mark.asyncio
    async def test_owned_client_sends_each_header_once(self, config, httpx_mock):
        httpx_mock.add_response(url=PAGE_URL, text="ok")
        fetcher = HttpPageFetcher(config)

        try:
            await fetcher.fetch_html(PAGE_URL)
        finally:
            await fetcher.aclose()

        request = httpx_mock.get_request()
        assert request.headers.get_list("Accept-Language") == ["en-US,en;q=0.9"]
        assert request.headers.get_list("User-Agent") == ["paldex-harvest-tests/1.0"]
