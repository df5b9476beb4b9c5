"""ConversionResolver: Express every provider quote in USD.

Configured pairs are edges ``base -> quote`` of an implicit graph. Pairs
quoted in USD yield candidates right away; the others need the USD rate of
their quote, which is resolved in rounds:

    1. Seed candidates from USD-quoted pairs
    2. Fix a USD rate for every symbol whose candidates pass aggregation
    3. Convert pending pairs whose quote now has a rate (price * rate)
    4. Repeat while a round makes progress; when stuck, fall back to the
       cached rate of a pending quote; drop whatever is left

A rate is fixed the first time a symbol can be aggregated and reused for the
rest of the tick, so chains of any depth terminate.

.. code-block:: python

    >>> candidates = convert_tickers_to_usd(prices, pairs, {}, aggregator)
    >>> [c.price for c in candidates["STATOM"]]
    [Decimal('10.989000000000000000')]
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal, localcontext

from .CurrencyPair import CurrencyPair
from .PriceAggregator import PriceAggregator
from .TickerPrice import CandidatePrice, TickerPrice
from .util import DECIMAL_CONTEXT, QUANTUM

logger = logging.getLogger(__name__)

# provider -> pair key -> ticker
AggregatedProviderPrices = dict[str, dict[str, TickerPrice]]


@dataclass(frozen=True)
class _Edge:
    provider: str
    pair: CurrencyPair
    ticker: TickerPrice


def _collect_edges(
    provider_prices: Mapping[str, Mapping[str, TickerPrice]],
    provider_pairs: Mapping[str, Sequence[CurrencyPair]],
) -> list[_Edge]:
    """Build one edge per reported ticker whose key is a configured pair.

    Keys are matched against the pairs configured for any provider; tickers
    for unknown keys are ignored.
    """
    configured: dict[str, CurrencyPair] = {
        str(pair): pair for pairs in provider_pairs.values() for pair in pairs
    }
    edges: list[_Edge] = []
    for provider, tickers in provider_prices.items():
        for key, ticker in tickers.items():
            pair = configured.get(key)
            if pair is None:
                continue
            if not isinstance(ticker, TickerPrice) or not ticker.is_valid():
                logger.debug(f"[{provider}] Skipping malformed ticker for {key}: {ticker!r}")
                continue
            edges.append(_Edge(provider, pair, ticker))
    return edges


def _convert(edge: _Edge, rate: Decimal) -> CandidatePrice:
    with localcontext(DECIMAL_CONTEXT):
        price = (edge.ticker.price * rate).quantize(QUANTUM)
    return CandidatePrice(
        price=price,
        volume=edge.ticker.volume,
        provider=edge.provider,
        pair=edge.pair,
    )


def convert_tickers_to_usd(
    provider_prices: Mapping[str, Mapping[str, TickerPrice]],
    provider_pairs: Mapping[str, Sequence[CurrencyPair]],
    fallback_rates: Mapping[str, Decimal],
    aggregator: PriceAggregator,
) -> dict[str, list[CandidatePrice]]:
    """Convert every reported ticker into a USD candidate for its base.

    :param provider_prices: Tickers returned this tick, per provider.
        Providers that failed are simply absent.
    :param provider_pairs: Pairs each provider is configured to quote.
    :param fallback_rates: Previously resolved USD rates, used when a quote
        cannot be resolved from this tick's data.
    :param aggregator: Aggregator deciding when a symbol's candidates are
        good enough to serve as a conversion rate.
    :returns: Symbol to list of USD candidates.
    """
    candidates: dict[str, list[CandidatePrice]] = defaultdict(list)
    rates: dict[str, Decimal] = {}
    pending: list[_Edge] = []

    for edge in _collect_edges(provider_prices, provider_pairs):
        if edge.pair.is_usd_quoted:
            candidates[edge.pair.base].append(_convert(edge, Decimal(1)))
        else:
            pending.append(edge)

    def fix_rates() -> None:
        for symbol, symbol_candidates in candidates.items():
            if symbol in rates:
                continue
            result = aggregator.aggregate_candidates(symbol, symbol_candidates)
            if result.success:
                rates[symbol] = result.price

    fallbacks_used: set[str] = set()
    while pending:
        fix_rates()

        unresolved: list[_Edge] = []
        for edge in pending:
            rate = rates.get(edge.pair.quote)
            if rate is None:
                unresolved.append(edge)
            else:
                candidates[edge.pair.base].append(_convert(edge, rate))

        if len(unresolved) < len(pending):
            pending = unresolved
            continue

        # No progress from this tick's data; seed rates from the cache.
        seeded = False
        for edge in unresolved:
            quote = edge.pair.quote
            if quote in rates or quote in fallbacks_used:
                continue
            fallback = fallback_rates.get(quote)
            if fallback is None:
                continue
            logger.debug(f"Using fallback rate {fallback} for {quote}")
            rates[quote] = fallback
            fallbacks_used.add(quote)
            seeded = True

        if not seeded:
            for edge in unresolved:
                logger.debug(
                    f"[{edge.provider}] No USD rate for {edge.pair.quote}, "
                    f"dropping {edge.pair.join('/')}"
                )
            break
        pending = unresolved

    return dict(candidates)


def get_computed_prices(
    provider_prices: Mapping[str, Mapping[str, TickerPrice]],
    provider_pairs: Mapping[str, Sequence[CurrencyPair]],
    fallback_rates: Mapping[str, Decimal],
    aggregator: PriceAggregator,
) -> dict[str, Decimal]:
    """Resolve USD candidates and aggregate them into one price per symbol.

    :returns: Symbol to USD price, assets failing quorum omitted.
    """
    candidates = convert_tickers_to_usd(
        provider_prices, provider_pairs, fallback_rates, aggregator
    )
    return aggregator.aggregate(candidates)
