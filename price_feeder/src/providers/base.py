"""Base provider interface and shared HTTP client management.

Every exchange provider inherits from BaseProvider and implements
``get_ticker_prices()``. The oracle only depends on this capability set,
never on concrete venue types. A shared httpx.AsyncClient is used across all
providers to avoid connection overhead; tests inject their own client.

.. code-block:: python

    @register_provider
    class MyProvider(BaseProvider):
        name = "myprovider"

        async def get_ticker_prices(self, *pairs: CurrencyPair) -> dict[str, TickerPrice]:
            response = await self._get("https://api.example.com/tickers")
            return {
                str(pair): TickerPrice.from_strings(item["last"], item["volume"])
                for pair, item in zip(pairs, response.json(), strict=True)
            }
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import ClassVar

import httpx

from ..CurrencyPair import CurrencyPair
from ..errors import ProviderConnectionError, TickerNotFoundError
from ..TickerPrice import TickerPrice

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for exchange providers.

    Subclasses must implement:
        - name: Class variable identifying the provider (e.g., "binance")
        - get_ticker_prices(): Async method returning tickers keyed by pair

    :cvar name: Unique identifier for this provider.
    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar api_key: Optional API key for authenticated endpoints.
    :ivar timeout: Request timeout in seconds.
    :ivar pairs: Pairs the provider is configured to quote.
    """

    # Class-level shared HTTP client
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    name: ClassVar[str] = ""

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the provider.

        :param api_key: Optional API key for authenticated endpoints.
        :param timeout: Request timeout in seconds (default: 10).
        :param client: Optional HTTP client; the shared client is used otherwise.
        """
        self.api_key = api_key
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._client = client
        self.pairs: list[CurrencyPair] = []

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client used for requests."""
        if self._client is not None:
            return self._client
        return self.get_shared_client()

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        The client lives on BaseProvider so every subclass reuses the same
        connection pool.

        :returns: Shared httpx.AsyncClient instance.
        """
        if BaseProvider._shared_client is None or BaseProvider._shared_client.is_closed:
            BaseProvider._shared_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
                follow_redirects=True,
            )
        return BaseProvider._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared HTTP client."""
        client = BaseProvider._shared_client
        if client is not None and not client.is_closed:
            await client.aclose()
        BaseProvider._shared_client = None

    def set_pairs(self, pairs: Iterable[CurrencyPair]) -> None:
        """Replace the configured pairs (duplicates removed, order kept).

        :param pairs: Pairs to quote.
        """
        self.pairs = list(dict.fromkeys(pairs))

    def subscribe_currency_pairs(self, *pairs: CurrencyPair) -> None:
        """Add pairs to the configured set.

        :param pairs: Pairs to start quoting.
        """
        new_pairs = [p for p in pairs if p not in self.pairs]
        if new_pairs:
            logger.debug(
                f"[{self.name}] Subscribing to {[p.join('/') for p in new_pairs]}"
            )
        self.pairs.extend(dict.fromkeys(new_pairs))

    def currency_pair_to_provider_pair(self, pair: CurrencyPair) -> str:
        """Return the venue's symbol for a pair.

        Override in subclasses with venue-specific naming.
        """
        return str(pair)

    @abstractmethod
    async def get_ticker_prices(self, *pairs: CurrencyPair) -> dict[str, TickerPrice]:
        """Fetch tickers for the given pairs.

        :param pairs: Pairs to fetch.
        :returns: Dict mapping pair key (``BASEQUOTE``) to ticker. Pairs the
            venue does not quote are omitted.
        :raises ProviderConnectionError: On network or HTTP failures.
        """
        pass

    async def get_ticker_price(self, pair: CurrencyPair) -> TickerPrice:
        """Fetch the ticker of a single pair.

        :raises TickerNotFoundError: If the venue does not quote the pair.
        """
        tickers = await self.get_ticker_prices(pair)
        ticker = tickers.get(str(pair))
        if ticker is None:
            raise TickerNotFoundError(self.name, str(pair))
        return ticker

    async def get_available_pairs(self) -> set[str]:
        """Enumerate pair keys the venue supports.

        Default implementation reports the configured pairs.

        :returns: Set of pair keys.
        """
        return {str(p) for p in self.pairs}

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP GET request.

        :param url: Request URL.
        :param params: Optional query parameters.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises ProviderConnectionError: On non-2xx response, network or
            timeout errors.
        """
        try:
            response = await self.client.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderConnectionError(self.name, f"request timeout: {e}") from e
        except httpx.RequestError as e:
            raise ProviderConnectionError(self.name, f"request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                "HTTP GET %s failed with status %s: %s",
                url,
                response.status_code,
                response.text[:200],
            )
            raise ProviderConnectionError(
                self.name, f"HTTP {response.status_code}: {response.text[:200]}"
            )
        return response


# Registry of available providers (populated by subclass imports)
PROVIDER_REGISTRY: dict[str, type[BaseProvider]] = {}


def register_provider(cls: type[BaseProvider]) -> type[BaseProvider]:
    """Decorator to register a provider class in the global registry.

    :param cls: Provider class to register.
    :returns: The registered class (unchanged).
    :raises ValueError: If provider has no name defined.
    """
    if not cls.name:
        raise ValueError(f"Provider {cls.__name__} must define a 'name' class variable")
    PROVIDER_REGISTRY[cls.name] = cls
    return cls


def get_provider(
    name: str, api_key: str | None = None, timeout: float | None = None
) -> BaseProvider:
    """Get a provider instance by name.

    :param name: Provider name (e.g., "binance", "kraken").
    :param api_key: Optional API key.
    :param timeout: Optional request timeout in seconds.
    :returns: Provider instance.
    :raises ValueError: If provider name is unknown.
    """
    if name not in PROVIDER_REGISTRY:
        available = ", ".join(sorted(PROVIDER_REGISTRY.keys()))
        raise ValueError(f"Unknown provider '{name}'. Available: {available}")
    return PROVIDER_REGISTRY[name](api_key=api_key, timeout=timeout)


def get_available_providers() -> list[str]:
    """Get sorted list of registered provider names."""
    return sorted(PROVIDER_REGISTRY.keys())
