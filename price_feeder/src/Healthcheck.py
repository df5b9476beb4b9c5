"""Healthcheck: Liveness ping sent after every tick cycle."""

import logging

import httpx

logger = logging.getLogger(__name__)


class Healthcheck:
    """Pings a healthcheck URL (e.g. healthchecks.io) with HTTP GET.

    :ivar url: URL to ping.
    :ivar timeout: Request timeout in seconds.
    """

    def __init__(
        self, url: str, timeout: float = 1.0, client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize the healthcheck.

        :param url: URL to ping.
        :param timeout: Request timeout in seconds.
        :param client: Optional HTTP client; a short-lived one is used otherwise.
        """
        self.url = url
        self.timeout = timeout
        self._client = client

    async def ping(self) -> bool:
        """Send the ping. Failures are logged, never raised.

        :returns: True if the endpoint answered with a 2xx status.
        """
        try:
            if self._client is not None:
                response = await self._client.get(self.url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Healthcheck ping to {self.url} failed: {e}")
            return False

        if not response.is_success:
            logger.warning(
                f"Healthcheck ping to {self.url} returned HTTP {response.status_code}"
            )
            return False
        return True
