"""Static price provider for tests and dry runs."""

from collections.abc import Mapping
from decimal import Decimal

import httpx

from ..CurrencyPair import CurrencyPair
from ..TickerPrice import TickerPrice
from .base import BaseProvider, register_provider

# Pair key -> (price, volume)
DEFAULT_PRICES: dict[str, tuple[str, str]] = {
    "ATOMUSD": ("10.50", "25000"),
    "ATOMUSDT": ("10.49", "150000"),
    "BTCUSD": ("30000.00", "1200"),
    "BTCUSDT": ("29990.00", "9000"),
    "ETHUSD": ("2000.00", "15000"),
    "ETHUSDT": ("1999.50", "60000"),
    "OSMOUSDT": ("0.88", "400000"),
    "USDTUSD": ("1.0001", "5000000"),
}


@register_provider
class MockProvider(BaseProvider):
    """Provider serving a fixed table of tickers without any network I/O.

    :ivar prices: Pair key to ticker table.
    """

    name = "mock"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        prices: Mapping[str, TickerPrice] | None = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, client=client)
        if prices is None:
            prices = {
                key: TickerPrice.from_strings(price, volume)
                for key, (price, volume) in DEFAULT_PRICES.items()
            }
        self.prices: dict[str, TickerPrice] = dict(prices)

    def set_price(self, key: str, price: Decimal, volume: Decimal) -> None:
        """Set or replace a ticker in the table."""
        self.prices[key] = TickerPrice(price=price, volume=volume)

    async def get_ticker_prices(self, *pairs: CurrencyPair) -> dict[str, TickerPrice]:
        return {str(p): self.prices[str(p)] for p in pairs if str(p) in self.prices}

    async def get_available_pairs(self) -> set[str]:
        return set(self.prices)
