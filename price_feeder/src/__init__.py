"""
Price Feeder - USD price resolution and aggregation

This module provides USD prices aggregated from multiple exchange providers:
- CurrencyPair / TickerPrice: Quote types reported by providers
- ConversionResolver: Multi-hop conversion of quotes into USD candidates
- PriceAggregator: Quorum, dispersion filtering and VWAP per asset
- PriceOracle: Main orchestrator for the tick loop and published snapshot
- PriceHistory / Derivative: Stored prices and derived (TVWAP) prices
- providers: Exchange provider implementations
"""

from .ConversionResolver import convert_tickers_to_usd, get_computed_prices
from .CurrencyPair import DENOM_USD, CurrencyPair
from .Derivative import Derivative, TvwapDerivative
from .Healthcheck import Healthcheck
from .PriceAggregator import AggregationResult, PriceAggregator
from .PriceHistory import PriceHistory
from .PriceOracle import ZERO_TIMESTAMP, PriceOracle, PriceSnapshot
from .PriceSubmitter import LoggingSubmitter, PriceSubmitter
from .ProviderHealth import ProviderHealth, ProviderStatus
from .TickerPrice import CandidatePrice, TickerPrice
from .VolumeTotal import Total

__all__ = [
    "AggregationResult",
    "CandidatePrice",
    "CurrencyPair",
    "DENOM_USD",
    "Derivative",
    "Healthcheck",
    "LoggingSubmitter",
    "PriceAggregator",
    "PriceHistory",
    "PriceOracle",
    "PriceSnapshot",
    "PriceSubmitter",
    "ProviderHealth",
    "ProviderStatus",
    "TickerPrice",
    "Total",
    "TvwapDerivative",
    "ZERO_TIMESTAMP",
    "convert_tickers_to_usd",
    "get_computed_prices",
]
