"""Unit tests for Healthcheck pings."""

import asyncio

import httpx

from price_feeder.src.Healthcheck import Healthcheck

URL = "https://hc-ping.com/HEALTHCHECK-UUID"


def ping_with(handler) -> bool:
    async def run() -> bool:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await Healthcheck(URL, timeout=0.2, client=client).ping()

    return asyncio.run(run())


class TestHealthcheck:
    """Test pinging a healthcheck endpoint."""

    def test_success(self) -> None:
        """A 200 response should report success."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text="OK")

        assert ping_with(handler) is True
        assert len(requests) == 1
        assert requests[0].method == "GET"
        assert str(requests[0].url) == URL

    def test_http_error_status(self, caplog) -> None:
        """A non-2xx status should be logged, not raised."""
        assert ping_with(lambda request: httpx.Response(503)) is False
        assert "returned HTTP 503" in caplog.text

    def test_connection_error(self, caplog) -> None:
        """Transport errors should be logged, not raised."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert ping_with(handler) is False
        assert "failed" in caplog.text

    def test_timeout(self) -> None:
        """Timeouts should be logged, not raised."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        assert ping_with(handler) is False

    def test_invalid_url(self, caplog) -> None:
        """A malformed URL should be logged, not raised."""
        healthcheck = Healthcheck("http://[::1", timeout=0.2)

        assert asyncio.run(healthcheck.ping()) is False
        assert "Healthcheck ping to http://[::1 failed" in caplog.text

    def test_attributes(self) -> None:
        """URL and timeout should be stored."""
        healthcheck = Healthcheck(URL, timeout=0.2)
        assert healthcheck.url == URL
        assert healthcheck.timeout == 0.2
