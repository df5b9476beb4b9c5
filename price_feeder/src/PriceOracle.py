"""PriceOracle: Main orchestrator for the price feeder.

Every tick the oracle queries all providers concurrently, converts their
tickers to USD, aggregates one price per asset and publishes the result as an
immutable snapshot.

Architecture:
    - One fetch per provider per tick, each bounded by a timeout
    - A failing provider is simply absent from the tick; it is retried on the
      next one
    - Non-USD pairs are converted through USD rates resolved from the same
      tick, or from the last published prices
    - Derivative hooks (e.g. TVWAP) may add or override snapshot entries
    - The snapshot is swapped under a short lock; readers never wait for an
      in-flight tick
    - Published prices are written to history, handed to the submitter and
      followed by healthcheck pings
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import MappingProxyType

from .ConversionResolver import AggregatedProviderPrices, convert_tickers_to_usd
from .CurrencyPair import CurrencyPair
from .Derivative import Derivative
from .errors import MissingExchangeRateError
from .Healthcheck import Healthcheck
from .PriceAggregator import PriceAggregator
from .PriceHistory import PriceHistory
from .PriceSubmitter import PriceSubmitter
from .ProviderHealth import ProviderHealth, ProviderStatus
from .providers import BaseProvider
from .util import generate_exchange_rates_string, set_weight

logger = logging.getLogger(__name__)

# Timestamp reported before the first successful tick.
ZERO_TIMESTAMP = datetime(1, 1, 1, tzinfo=timezone.utc)

DEFAULT_TICK_PERIOD = 5.0
DEFAULT_PROVIDER_TIMEOUT = 10.0


@dataclass(frozen=True)
class PriceSnapshot:
    """Prices published by one tick.

    :ivar prices: Read-only symbol to USD price mapping.
    :ivar timestamp: Completion time of the tick that produced the prices.
    """

    prices: Mapping[str, Decimal]
    timestamp: datetime


EMPTY_SNAPSHOT = PriceSnapshot(prices=MappingProxyType({}), timestamp=ZERO_TIMESTAMP)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceOracle:
    """Periodically resolves and publishes USD prices.

    :ivar providers: Provider name to provider instance.
    :ivar provider_pairs: Provider name to the pairs it quotes.
    :ivar aggregator: Aggregator applying quorum and dispersion rules.
    :ivar tick_period: Seconds between ticks.
    :ivar provider_timeout: Seconds a provider may take per tick.
    :ivar provider_weights: Provider name to fixed VWAP weight.
    :ivar derivatives: Symbol to derivative hook.
    """

    def __init__(
        self,
        providers: Mapping[str, BaseProvider],
        provider_pairs: Mapping[str, Sequence[CurrencyPair]] | None = None,
        aggregator: PriceAggregator | None = None,
        tick_period: float = DEFAULT_TICK_PERIOD,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        fallback_rates: Mapping[str, Decimal] | None = None,
        provider_weights: Mapping[str, Decimal] | None = None,
        derivatives: Mapping[str, Derivative] | None = None,
        history: PriceHistory | None = None,
        history_retention: timedelta | None = None,
        submitter: PriceSubmitter | None = None,
        healthchecks: Sequence[Healthcheck] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the price oracle.

        :param providers: Provider name to provider instance.
        :param provider_pairs: Pairs each provider quotes. Defaults to the
            pairs already set on each provider.
        :param aggregator: Aggregator to use (default settings if omitted).
        :param tick_period: Seconds between ticks (default: 5).
        :param provider_timeout: Per-provider fetch timeout (default: 10).
        :param fallback_rates: Initial USD rates used when a quote cannot be
            resolved from a tick's data.
        :param provider_weights: Provider name to weight replacing the
            volumes it reports.
        :param derivatives: Symbol to derivative hook.
        :param history: Optional store for published spot prices.
        :param history_retention: Age after which history rows are pruned
            (never pruned if omitted).
        :param submitter: Optional consumer of every published snapshot.
        :param healthchecks: Healthchecks pinged after every tick.
        :param clock: Source of the current time.
        :raises ValueError: If pairs reference an unknown provider or the
            periods are not positive.
        """
        if tick_period <= 0:
            raise ValueError("tick_period must be positive")
        if provider_timeout <= 0:
            raise ValueError("provider_timeout must be positive")

        self.providers: dict[str, BaseProvider] = dict(providers)
        if provider_pairs is None:
            provider_pairs = {name: p.pairs for name, p in self.providers.items()}

        unknown = sorted(set(provider_pairs) - set(self.providers))
        if unknown:
            raise ValueError(f"Pairs configured for unknown providers: {unknown}")

        self.provider_pairs: dict[str, list[CurrencyPair]] = {}
        for name, pairs in provider_pairs.items():
            self.providers[name].set_pairs(pairs)
            self.provider_pairs[name] = list(self.providers[name].pairs)

        self.aggregator = aggregator or PriceAggregator()
        self.tick_period = tick_period
        self.provider_timeout = provider_timeout
        self.provider_weights = dict(provider_weights or {})
        self.derivatives = dict(derivatives or {})
        self.history = history
        self.history_retention = history_retention
        self.submitter = submitter
        self.healthchecks = list(healthchecks or [])
        self.health = ProviderHealth(list(self.providers))
        self._clock = clock

        self._conversion_rates: dict[str, Decimal] = dict(fallback_rates or {})
        self._last_spot_prices: dict[str, Decimal] = {}

        self._snapshot = EMPTY_SNAPSHOT
        self._snapshot_lock = threading.Lock()

        self._stopped = threading.Event()
        self._stop_lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None

    def get_prices(self) -> Mapping[str, Decimal]:
        """Get the latest published prices (empty before the first success)."""
        with self._snapshot_lock:
            return self._snapshot.prices

    def get_price(self, symbol: str) -> Decimal:
        """Get the latest published price of one asset.

        :raises MissingExchangeRateError: If the asset is not in the snapshot.
        """
        prices = self.get_prices()
        symbol = symbol.upper()
        if symbol not in prices:
            raise MissingExchangeRateError(symbol)
        return prices[symbol]

    def get_last_price_sync_timestamp(self) -> datetime:
        """Get the time of the last published snapshot.

        :returns: Snapshot timestamp, or ``ZERO_TIMESTAMP`` if none yet.
        """
        with self._snapshot_lock:
            return self._snapshot.timestamp

    def get_snapshot(self) -> PriceSnapshot:
        """Get prices and timestamp as one consistent pair."""
        with self._snapshot_lock:
            return self._snapshot

    def get_provider_status(self) -> dict[str, ProviderStatus]:
        """Get the success/failure record of every provider."""
        return self.health.get_all_status()

    @property
    def conversion_rates(self) -> dict[str, Decimal]:
        """USD rates used as fallbacks on the next tick (a copy)."""
        return dict(self._conversion_rates)

    async def _fetch_provider(self, name: str) -> dict:
        provider = self.providers[name]
        pairs = self.provider_pairs.get(name, [])
        return await asyncio.wait_for(
            provider.get_ticker_prices(*pairs),
            timeout=self.provider_timeout,
        )

    async def fetch_provider_prices(self) -> AggregatedProviderPrices:
        """Query every provider with configured pairs concurrently.

        :returns: Provider name to tickers. Failed providers are absent.
        """
        names = [name for name in self.providers if self.provider_pairs.get(name)]
        results = await asyncio.gather(
            *(self._fetch_provider(name) for name in names), return_exceptions=True
        )

        provider_prices: AggregatedProviderPrices = {}
        for name, result in zip(names, results, strict=True):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning(f"[{name}] Timed out after {self.provider_timeout}s")
                self.health.record_failure(name, "timeout")
                continue
            if isinstance(result, BaseException):
                logger.warning(f"[{name}] Failed to get ticker prices: {result}")
                self.health.record_failure(name, str(result) or type(result).__name__)
                continue
            if not isinstance(result, Mapping):
                logger.warning(f"[{name}] Returned {type(result).__name__}, expected a mapping")
                self.health.record_failure(name, "malformed response")
                continue

            self.health.record_success(name)
            provider_prices[name] = set_weight(result, self.provider_weights.get(name))
        return provider_prices

    def _apply_derivatives(
        self, prices: dict[str, Decimal], now: datetime
    ) -> dict[str, Decimal]:
        published = dict(prices)
        for symbol, derivative in self.derivatives.items():
            value = derivative.compute(symbol, prices, now)
            if value is None:
                logger.debug(f"{symbol}: derivative {type(derivative).__name__} has no data")
                continue
            published[symbol] = value
        return published

    async def set_prices(self) -> bool:
        """Run one fetch/resolve/aggregate cycle and publish the result.

        A cycle that yields no asset keeps the previous snapshot.

        :returns: True if a new snapshot was published.
        """
        provider_prices = await self.fetch_provider_prices()

        candidates = convert_tickers_to_usd(
            provider_prices,
            self.provider_pairs,
            self._conversion_rates,
            self.aggregator,
        )
        spot_prices = self.aggregator.aggregate(candidates)
        if not spot_prices:
            logger.warning("No asset reached quorum, keeping previous prices")
            return False

        now = self._clock()
        published = self._apply_derivatives(spot_prices, now)
        snapshot = PriceSnapshot(prices=MappingProxyType(published), timestamp=now)
        with self._snapshot_lock:
            self._snapshot = snapshot

        self._conversion_rates.update(spot_prices)
        self._last_spot_prices = spot_prices
        return True

    async def tick(self) -> bool:
        """Run one full tick: publish prices, then notify collaborators.

        :returns: True if a new snapshot was published.
        """
        updated = await self.set_prices()

        if updated:
            snapshot = self.get_snapshot()
            rates = generate_exchange_rates_string(snapshot.prices)
            logger.info(f"Published {len(snapshot.prices)} prices: {rates}")

            if self.history is not None:
                self.history.add_prices(self._last_spot_prices, snapshot.timestamp)
                if self.history_retention is not None:
                    self.history.prune(snapshot.timestamp - self.history_retention)
            if self.submitter is not None:
                self.submitter.submit(snapshot.prices, rates)

        if self.healthchecks:
            await asyncio.gather(*(hc.ping() for hc in self.healthchecks))
        return updated

    def stop(self) -> None:
        """Stop the tick loop. Safe to call repeatedly and from any thread.

        The loop exits once the in-flight tick, if any, completes.
        """
        with self._stop_lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            loop, wakeup = self._loop, self._wakeup

        logger.info("Stopping price oracle")
        if loop is not None and wakeup is not None and not loop.is_closed():
            loop.call_soon_threadsafe(wakeup.set)

    @property
    def stopped(self) -> bool:
        """Whether ``stop()`` has been called."""
        return self._stopped.is_set()

    async def run(self) -> None:
        """Tick every ``tick_period`` seconds until stopped.

        Errors raised by a tick are logged and the next tick proceeds.
        """
        with self._stop_lock:
            self._loop = asyncio.get_running_loop()
            self._wakeup = asyncio.Event()
            if self._stopped.is_set():
                self._wakeup.set()

        logger.info(
            f"Starting price oracle: {len(self.providers)} providers, "
            f"tick period {self.tick_period}s"
        )
        try:
            while not self._stopped.is_set():
                try:
                    await self.tick()
                except Exception:
                    logger.exception("Tick failed")

                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.tick_period)
                except asyncio.TimeoutError:
                    pass
        finally:
            with self._stop_lock:
                self._loop = None
                self._wakeup = None
            # Clean up shared HTTP client
            await BaseProvider.close_shared_client()
            logger.info("Price oracle stopped")
