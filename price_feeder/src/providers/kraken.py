"""Kraken provider.

Endpoint: https://api.kraken.com/0/public/Ticker?pair={PAIR1},{PAIR2}
Rate Limit: High (no key required)
"""

import logging
from datetime import datetime, timezone

from ..CurrencyPair import CurrencyPair
from ..errors import ProviderConnectionError, TickerParseError
from ..TickerPrice import TickerPrice
from .base import BaseProvider, register_provider

logger = logging.getLogger(__name__)


@register_provider
class KrakenProvider(BaseProvider):
    """Provider for the Kraken public API.

    All pairs are fetched in a single Ticker request.
    """

    name = "kraken"
    BASE_URL = "https://api.kraken.com/0/public"

    # Kraken uses non-standard ticker symbols
    SYMBOL_MAP = {
        "BTC": "XBT",
    }
    REVERSE_SYMBOL_MAP = {v: k for k, v in SYMBOL_MAP.items()}

    def currency_pair_to_provider_pair(self, pair: CurrencyPair) -> str:
        base = self.SYMBOL_MAP.get(pair.base, pair.base)
        quote = self.SYMBOL_MAP.get(pair.quote, pair.quote)
        return f"{base}{quote}"

    def _find_result(self, result: dict, kraken_pair: str) -> dict | None:
        pair_data = result.get(kraken_pair)
        if pair_data is not None:
            return pair_data
        # Kraken sometimes prefixes assets with X or Z (e.g. XXBTZUSD)
        for key, value in result.items():
            normalized = key.replace("X", "").replace("Z", "")
            if normalized == kraken_pair.replace("X", "").replace("Z", ""):
                return value
        return None

    async def get_ticker_prices(self, *pairs: CurrencyPair) -> dict[str, TickerPrice]:
        """Fetch tickers for multiple pairs in one API call.

        ``c[0]`` is the last trade price and ``v[1]`` the trailing 24h volume.

        :param pairs: Pairs to fetch.
        :returns: Dict mapping pair key to ticker.
        :raises ProviderConnectionError: On request failures or API errors.
        """
        if not pairs:
            return {}

        kraken_pairs = {pair: self.currency_pair_to_provider_pair(pair) for pair in pairs}
        response = await self._get(
            f"{self.BASE_URL}/Ticker",
            params={"pair": ",".join(kraken_pairs.values())},
        )
        data = response.json()

        errors = data.get("error")
        if errors:
            raise ProviderConnectionError(self.name, f"API error: {errors}")

        result_data = data.get("result") or {}
        now = datetime.now(timezone.utc)
        tickers: dict[str, TickerPrice] = {}
        for pair, kraken_pair in kraken_pairs.items():
            pair_data = self._find_result(result_data, kraken_pair)
            if pair_data is None:
                logger.debug(f"[kraken] No ticker for {kraken_pair}")
                continue
            try:
                tickers[str(pair)] = TickerPrice.from_strings(
                    pair_data["c"][0], pair_data["v"][1], now
                )
            except (KeyError, IndexError, TypeError, TickerParseError) as e:
                logger.warning(f"[kraken] Failed to parse ticker for {kraken_pair}: {e}")
        return tickers

    async def get_available_pairs(self) -> set[str]:
        """List tradable pairs from the AssetPairs endpoint."""
        response = await self._get(f"{self.BASE_URL}/AssetPairs")
        result = response.json().get("result") or {}

        available: set[str] = set()
        for item in result.values():
            wsname = item.get("wsname", "")
            if "/" not in wsname:
                continue
            base, quote = wsname.split("/", 1)
            available.add(
                str(
                    CurrencyPair(
                        self.REVERSE_SYMBOL_MAP.get(base, base),
                        self.REVERSE_SYMBOL_MAP.get(quote, quote),
                    )
                )
            )
        return available
