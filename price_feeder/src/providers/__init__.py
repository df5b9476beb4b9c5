"""
Exchange providers.

Each provider quotes its configured currency pairs and reports price and
trailing volume per pair.

Usage:
    from price_feeder.src.providers import get_provider, get_available_providers

    # Get list of available providers
    available = get_available_providers()
    # ['binance', 'coinbase', 'kraken', 'mock']

    provider = get_provider("kraken")
    provider.set_pairs([CurrencyPair("atom", "usd")])
    tickers = await provider.get_ticker_prices(*provider.pairs)
"""

# Import base classes and utilities
from .base import (
    PROVIDER_REGISTRY,
    BaseProvider,
    get_available_providers,
    get_provider,
    register_provider,
)

# Import all provider implementations to trigger registration
from .binance import BinanceProvider
from .coinbase import CoinbaseProvider
from .kraken import KrakenProvider
from .mock import MockProvider

__all__ = [
    # Base classes
    "BaseProvider",
    # Registry functions
    "register_provider",
    "get_provider",
    "get_available_providers",
    "PROVIDER_REGISTRY",
    # Provider implementations
    "BinanceProvider",
    "CoinbaseProvider",
    "KrakenProvider",
    "MockProvider",
]
