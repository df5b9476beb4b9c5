"""Coinbase Exchange provider.

Endpoint: https://api.exchange.coinbase.com/products/{BASE}-{QUOTE}/ticker
Rate Limit: High (no key required)
"""

import asyncio
import logging
from datetime import datetime, timezone

from ..CurrencyPair import CurrencyPair
from ..errors import TickerParseError
from ..TickerPrice import TickerPrice
from .base import BaseProvider, register_provider

logger = logging.getLogger(__name__)


@register_provider
class CoinbaseProvider(BaseProvider):
    """Provider for the Coinbase Exchange public API.

    One ticker request per pair, issued concurrently. ``volume`` is the
    trailing 24h base volume.
    """

    name = "coinbase"
    BASE_URL = "https://api.exchange.coinbase.com"

    def currency_pair_to_provider_pair(self, pair: CurrencyPair) -> str:
        return pair.join("-")

    async def get_ticker_prices(self, *pairs: CurrencyPair) -> dict[str, TickerPrice]:
        """Fetch tickers from Coinbase Exchange.

        :param pairs: Pairs to fetch.
        :returns: Dict mapping pair key to ticker.
        :raises ProviderConnectionError: If any request fails.
        """
        results = await asyncio.gather(*(self._fetch_ticker(p) for p in pairs))
        return {
            str(pair): ticker
            for pair, ticker in zip(pairs, results, strict=True)
            if ticker is not None
        }

    async def _fetch_ticker(self, pair: CurrencyPair) -> TickerPrice | None:
        symbol = self.currency_pair_to_provider_pair(pair)
        response = await self._get(f"{self.BASE_URL}/products/{symbol}/ticker")

        try:
            data = response.json()
            return TickerPrice.from_strings(
                data["price"], data["volume"], datetime.now(timezone.utc)
            )
        except (KeyError, ValueError, TypeError, TickerParseError) as e:
            logger.warning(f"[coinbase] Failed to parse response for {symbol}: {e}")
            return None

    async def get_available_pairs(self) -> set[str]:
        """List tradable products.

        :returns: Set of pair keys, e.g. ``{"BTCUSD", "ATOMUSDT"}``.
        """
        response = await self._get(f"{self.BASE_URL}/products")
        return {
            str(CurrencyPair(item["base_currency"], item["quote_currency"]))
            for item in response.json()
            if "base_currency" in item and "quote_currency" in item
        }
