"""Binance provider.

Endpoint: https://api.binance.com/api/v3/ticker/24hr?symbols=[...]
Rate Limit: High (no key required for public endpoints)

Binance lists USDT pairs for most assets; converting them to USD is left to
the conversion resolver, using a USDT/USD pair from another provider.
"""

import json
import logging
from datetime import datetime, timezone

from ..CurrencyPair import CurrencyPair
from ..errors import TickerParseError
from ..TickerPrice import TickerPrice
from .base import BaseProvider, register_provider

logger = logging.getLogger(__name__)


@register_provider
class BinanceProvider(BaseProvider):
    """Provider for the Binance spot API.

    All pairs are fetched in a single 24hr ticker request.
    """

    name = "binance"
    BASE_URL = "https://api.binance.com/api/v3"

    async def get_ticker_prices(self, *pairs: CurrencyPair) -> dict[str, TickerPrice]:
        """Fetch 24h tickers for multiple symbols in a single API call.

        :param pairs: Pairs to fetch.
        :returns: Dict mapping pair key to ticker.
        :raises ProviderConnectionError: On request failures.
        """
        if not pairs:
            return {}

        by_symbol = {self.currency_pair_to_provider_pair(p): p for p in pairs}
        response = await self._get(
            f"{self.BASE_URL}/ticker/24hr",
            params={"symbols": json.dumps(list(by_symbol), separators=(",", ":"))},
        )

        tickers: dict[str, TickerPrice] = {}
        for item in response.json():
            pair = by_symbol.get(item.get("symbol", ""))
            if pair is None:
                continue
            try:
                observed = datetime.fromtimestamp(
                    int(item["closeTime"]) / 1000, tz=timezone.utc
                )
                tickers[str(pair)] = TickerPrice.from_strings(
                    item["lastPrice"], item["volume"], observed
                )
            except (KeyError, ValueError, TypeError, TickerParseError) as e:
                logger.warning(f"[binance] Failed to parse ticker for {pair}: {e}")
        return tickers

    async def get_available_pairs(self) -> set[str]:
        """List trading symbols from exchangeInfo."""
        response = await self._get(f"{self.BASE_URL}/exchangeInfo")
        return {
            str(CurrencyPair(item["baseAsset"], item["quoteAsset"]))
            for item in response.json().get("symbols", [])
            if item.get("status", "TRADING") == "TRADING"
        }
