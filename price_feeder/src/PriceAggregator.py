"""PriceAggregator: Quorum, dispersion filtering and VWAP per asset.

Algorithm for each asset:
    1. Drop the asset if it has fewer candidates than its required minimum
    2. With three or more candidates, compute mean and population std-dev and
       exclude candidates outside ``mean +/- threshold * std_dev``
    3. Reduce the survivors with a volume weighted average

.. code-block:: python

    >>> aggregator = PriceAggregator(min_sources=1)
    >>> prices = aggregator.aggregate({"BTC": candidates})
    >>> prices["BTC"]
    Decimal('30017.500000000000000000')
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import TypedDict

from .TickerPrice import CandidatePrice
from .util import DECIMAL_CONTEXT, compute_vwap, standard_deviation

logger = logging.getLogger(__name__)

DEFAULT_MIN_SOURCES = 3

# Multiple of the standard deviation a candidate may stray from the mean.
DEFAULT_DEVIATION_THRESHOLD = Decimal("1.0")


class AggregationError(TypedDict, total=False):
    """Error information when aggregation fails.

    :ivar error: Error type identifier.
    :ivar available: Number of candidates available.
    :ivar required: Number of candidates required.
    """

    error: str
    available: int
    required: int


class AggregationMetadata(TypedDict, total=False):
    """Metadata about a successful aggregation.

    :ivar sources: Providers whose candidates were used.
    :ivar dropped: ``provider:PAIR`` keys of candidates rejected as outliers.
    :ivar count: Number of candidates used.
    :ivar mean: Mean before filtering (None below three candidates).
    :ivar std_dev: Standard deviation before filtering.
    """

    sources: list[str]
    dropped: dict[str, Decimal]
    count: int
    mean: Decimal | None
    std_dev: Decimal | None


@dataclass
class AggregationResult:
    """Result of aggregating one asset.

    :ivar price: Aggregated price, or None if aggregation failed.
    :ivar metadata: Additional information about the aggregation.
    """

    price: Decimal | None
    metadata: AggregationMetadata | AggregationError

    @property
    def success(self) -> bool:
        """Check if aggregation was successful."""
        return self.price is not None

    @property
    def error(self) -> str | None:
        """Get error type if aggregation failed."""
        if self.price is None:
            return self.metadata.get("error")
        return None


class PriceAggregator:
    """Merges USD candidates per asset into a single price.

    :ivar min_sources: Default minimum number of candidates per asset.
    :ivar deviation_threshold: Default std-dev multiple for outlier rejection.
    :ivar min_source_overrides: Per-asset minimum candidate counts.
    :ivar deviation_thresholds: Per-asset std-dev multiples.
    """

    def __init__(
        self,
        min_sources: int = DEFAULT_MIN_SOURCES,
        deviation_threshold: Decimal = DEFAULT_DEVIATION_THRESHOLD,
        min_source_overrides: Mapping[str, int] | None = None,
        deviation_thresholds: Mapping[str, Decimal] | None = None,
    ) -> None:
        """Initialize the aggregator.

        :param min_sources: Minimum number of candidates required per asset.
        :param deviation_threshold: Std-dev multiple beyond which a candidate
            is an outlier.
        :param min_source_overrides: Per-asset overrides of ``min_sources``.
        :param deviation_thresholds: Per-asset overrides of ``deviation_threshold``.
        :raises ValueError: If parameters are invalid.
        """
        if min_sources < 1:
            raise ValueError("min_sources must be at least 1")
        if deviation_threshold <= 0:
            raise ValueError("deviation_threshold must be positive")

        self.min_sources = min_sources
        self.deviation_threshold = Decimal(deviation_threshold)
        self.min_source_overrides = {
            k.upper(): v for k, v in (min_source_overrides or {}).items()
        }
        self.deviation_thresholds = {
            k.upper(): Decimal(v) for k, v in (deviation_thresholds or {}).items()
        }
        invalid = sorted(k for k, v in self.deviation_thresholds.items() if v <= 0)
        if invalid:
            raise ValueError(f"deviation thresholds must be positive: {invalid}")

    def required_sources(
        self, symbol: str, min_overrides: Mapping[str, int] | None = None
    ) -> int:
        """Get the minimum number of candidates required for an asset.

        :param symbol: Asset symbol.
        :param min_overrides: Optional overrides taking precedence for this call.
        :returns: Required candidate count.
        """
        overrides = self.min_source_overrides if min_overrides is None else min_overrides
        return overrides.get(symbol, self.min_sources)

    def threshold_for(self, symbol: str) -> Decimal:
        """Get the std-dev multiple used to filter an asset's candidates."""
        return self.deviation_thresholds.get(symbol, self.deviation_threshold)

    def filter_outliers(
        self, symbol: str, candidates: Sequence[CandidatePrice]
    ) -> tuple[list[CandidatePrice], list[CandidatePrice], Decimal | None, Decimal | None]:
        """Split candidates into kept and dropped by dispersion around the mean.

        Fewer than three candidates are all kept.

        :param symbol: Asset symbol (selects the threshold).
        :param candidates: Candidates to filter.
        :returns: Tuple of (kept, dropped, mean, std_dev).
        """
        if len(candidates) < 3:
            return list(candidates), [], None, None

        std_dev, mean = standard_deviation([c.price for c in candidates])

        kept: list[CandidatePrice] = []
        dropped: list[CandidatePrice] = []
        with localcontext(DECIMAL_CONTEXT):
            band = std_dev * self.threshold_for(symbol)
            low, high = mean - band, mean + band
        for candidate in candidates:
            if low <= candidate.price <= high:
                kept.append(candidate)
            else:
                dropped.append(candidate)
        return kept, dropped, mean, std_dev

    def aggregate_candidates(
        self,
        symbol: str,
        candidates: Sequence[CandidatePrice],
        min_overrides: Mapping[str, int] | None = None,
    ) -> AggregationResult:
        """Aggregate the candidates of a single asset.

        :param symbol: Asset symbol.
        :param candidates: USD candidates for the asset.
        :param min_overrides: Optional per-call minimum overrides.
        :returns: AggregationResult with the VWAP or error information.
        """
        required = self.required_sources(symbol, min_overrides)
        if len(candidates) < required:
            return AggregationResult(
                price=None,
                metadata={
                    "error": "insufficient_sources",
                    "available": len(candidates),
                    "required": required,
                },
            )

        kept, dropped, mean, std_dev = self.filter_outliers(symbol, candidates)
        if not kept:
            return AggregationResult(
                price=None,
                metadata={"error": "no_candidates", "available": 0, "required": required},
            )

        return AggregationResult(
            price=compute_vwap(kept),
            metadata={
                "sources": [c.provider for c in kept],
                "dropped": {f"{c.provider}:{c.pair}": c.price for c in dropped},
                "count": len(kept),
                "mean": mean,
                "std_dev": std_dev,
            },
        )

    def aggregate(
        self,
        candidates_by_asset: Mapping[str, Sequence[CandidatePrice]],
        min_overrides: Mapping[str, int] | None = None,
    ) -> dict[str, Decimal]:
        """Aggregate every asset, omitting those that fail quorum.

        :param candidates_by_asset: Symbol to USD candidates.
        :param min_overrides: Optional per-call minimum overrides.
        :returns: Symbol to aggregated price.
        """
        prices: dict[str, Decimal] = {}
        for symbol, candidates in candidates_by_asset.items():
            if not candidates:
                continue
            result = self.aggregate_candidates(symbol, candidates, min_overrides)
            if not result.success:
                logger.debug(f"{symbol}: aggregation failed: {result.metadata}")
                continue

            dropped = result.metadata.get("dropped", {})
            if dropped:
                logger.debug(
                    f"{symbol}: dropped outliers {dropped} "
                    f"(mean={result.metadata.get('mean')}, "
                    f"std_dev={result.metadata.get('std_dev')})"
                )
            prices[symbol] = result.price
        return prices
