#!/usr/bin/env python3
"""Price Feeder.

Fetches tickers from multiple exchanges, converts them to USD through
whatever pairs are configured, and publishes one volume weighted price per
asset every tick.

Configure with CLI arguments or the environment variables listed in --help.
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from .src.config import (
    build_provider_pairs,
    parse_decimal_map,
    parse_int_map,
    parse_key_values,
    parse_list,
    parse_pairs,
)
from .src.Derivative import TvwapDerivative
from .src.Healthcheck import Healthcheck
from .src.PriceAggregator import (
    DEFAULT_DEVIATION_THRESHOLD,
    DEFAULT_MIN_SOURCES,
    PriceAggregator,
)
from .src.PriceHistory import PriceHistory
from .src.PriceOracle import DEFAULT_PROVIDER_TIMEOUT, DEFAULT_TICK_PERIOD, PriceOracle
from .src.PriceSubmitter import LoggingSubmitter
from .src.providers import get_available_providers, get_provider

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_env_api_keys() -> dict[str, str]:
    """Parse API keys from individual environment variables.

    Looks for: API_KEY_BINANCE, API_KEY_KRAKEN, etc.

    :returns: Dict mapping provider names to API keys.
    """
    api_keys = {}
    prefixes = ["API_KEY_", "APIKEY_"]

    for key, value in os.environ.items():
        for prefix in prefixes:
            if key.startswith(prefix) and value:
                provider = key[len(prefix):].lower()
                api_keys[provider] = value
                break

    return api_keys


def history_retention(tvwap_symbols: list[str], period: timedelta) -> timedelta | None:
    """Get how long price history is kept.

    History only feeds TVWAP, so nothing is pruned without TVWAP symbols.
    Otherwise at least a day is kept, longer if the TVWAP window is longer.
    """
    if not tvwap_symbols:
        return None
    return max(period, timedelta(days=1))


def build_parser(available_providers: list[str]) -> argparse.ArgumentParser:
    """Build the CLI parser with environment variable defaults."""
    parser = argparse.ArgumentParser(
        description="Price Feeder: USD prices aggregated across exchanges",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available providers:
  {', '.join(available_providers)}

Examples:
  # ATOM quoted directly in USD and through USDT
  python -m price_feeder.main \\
      --pairs atom/usd:kraken+coinbase,atom/usdt:binance,usdt/usd:kraken+coinbase

  # Dry run against static prices
  python -m price_feeder.main --pairs atom/usd:mock,btc/usd:mock --min-sources 1

  # Publish a 10 minute TVWAP for ATOM from a persistent history
  python -m price_feeder.main --pairs atom/usd:kraken+coinbase+mock \\
      --history-db prices.db --tvwap-symbols ATOM --tvwap-period 600

Environment variables (CLI args take precedence):
  PAIRS, MIN_SOURCES, MIN_SOURCES_OVERRIDES, DEVIATION_THRESHOLD,
  DEVIATION_THRESHOLDS, FALLBACK_RATES, PROVIDER_WEIGHTS, TICK_PERIOD,
  PROVIDER_TIMEOUT, HISTORY_DB, TVWAP_SYMBOLS, TVWAP_PERIOD,
  HEALTHCHECK_URLS, HEALTHCHECK_TIMEOUT, API_KEYS,
  API_KEY_BINANCE, API_KEY_KRAKEN, etc.
""",
    )

    parser.add_argument(
        "--pairs",
        type=str,
        help="Comma-separated pairs with their providers (e.g., atom/usd:kraken+coinbase)",
        default=os.environ.get("PAIRS") or "atom/usd:kraken+coinbase,atom/usdt:binance,usdt/usd:kraken+coinbase",
    )

    parser.add_argument(
        "--min-sources",
        dest="min_sources",
        type=int,
        help=f"Minimum candidates required per asset (default: {DEFAULT_MIN_SOURCES})",
        default=int(os.environ.get("MIN_SOURCES") or DEFAULT_MIN_SOURCES),
    )

    parser.add_argument(
        "--min-sources-overrides",
        dest="min_sources_overrides",
        type=str,
        help="Per-asset minimum candidates (e.g., ATOM=1,USDT=2)",
        default=os.environ.get("MIN_SOURCES_OVERRIDES"),
    )

    parser.add_argument(
        "--deviation-threshold",
        dest="deviation_threshold",
        type=str,
        help=(
            "Standard deviations a candidate may stray from the mean "
            f"(default: {DEFAULT_DEVIATION_THRESHOLD})"
        ),
        default=os.environ.get("DEVIATION_THRESHOLD") or str(DEFAULT_DEVIATION_THRESHOLD),
    )

    parser.add_argument(
        "--deviation-thresholds",
        dest="deviation_thresholds",
        type=str,
        help="Per-asset deviation thresholds (e.g., ATOM=1.5)",
        default=os.environ.get("DEVIATION_THRESHOLDS"),
    )

    parser.add_argument(
        "--fallback-rates",
        dest="fallback_rates",
        type=str,
        help="USD rates used until a quote can be resolved (e.g., USDT=1,USDC=1)",
        default=os.environ.get("FALLBACK_RATES"),
    )

    parser.add_argument(
        "--provider-weights",
        dest="provider_weights",
        type=str,
        help="Fixed VWAP weights replacing reported volumes (e.g., kraken=1,binance=2)",
        default=os.environ.get("PROVIDER_WEIGHTS"),
    )

    parser.add_argument(
        "--tick-period",
        dest="tick_period",
        type=float,
        help=f"Seconds between ticks (default: {DEFAULT_TICK_PERIOD})",
        default=float(os.environ.get("TICK_PERIOD") or DEFAULT_TICK_PERIOD),
    )

    parser.add_argument(
        "--provider-timeout",
        dest="provider_timeout",
        type=float,
        help=f"Timeout for one provider per tick in seconds (default: {DEFAULT_PROVIDER_TIMEOUT})",
        default=float(os.environ.get("PROVIDER_TIMEOUT") or DEFAULT_PROVIDER_TIMEOUT),
    )

    parser.add_argument(
        "--history-db",
        dest="history_db",
        type=str,
        help="sqlite file storing published prices (default: in memory)",
        default=os.environ.get("HISTORY_DB") or ":memory:",
    )

    parser.add_argument(
        "--tvwap-symbols",
        dest="tvwap_symbols",
        type=str,
        help="Comma-separated assets published as a time weighted average",
        default=os.environ.get("TVWAP_SYMBOLS"),
    )

    parser.add_argument(
        "--tvwap-period",
        dest="tvwap_period",
        type=float,
        help="TVWAP window in seconds (default: 600)",
        default=float(os.environ.get("TVWAP_PERIOD") or "600"),
    )

    parser.add_argument(
        "--healthcheck-urls",
        dest="healthcheck_urls",
        type=str,
        help="Comma-separated URLs pinged after every tick",
        default=os.environ.get("HEALTHCHECK_URLS"),
    )

    parser.add_argument(
        "--healthcheck-timeout",
        dest="healthcheck_timeout",
        type=float,
        help="Healthcheck ping timeout in seconds (default: 1.0)",
        default=float(os.environ.get("HEALTHCHECK_TIMEOUT") or "1.0"),
    )

    parser.add_argument(
        "--api-keys",
        dest="api_keys",
        type=str,
        help="Comma-separated API keys (e.g., binance=abc,kraken=xyz)",
        default=os.environ.get("API_KEYS"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def main() -> None:
    """Main entry point for the Price Feeder CLI."""
    available_providers = get_available_providers()
    parser = build_parser(available_providers)
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.tick_period <= 0:
        parser.error("--tick-period must be positive")

    if args.provider_timeout <= 0:
        parser.error("--provider-timeout must be positive")

    if args.min_sources < 1:
        parser.error("--min-sources must be at least 1")

    if args.tvwap_period <= 0:
        parser.error("--tvwap-period must be positive")

    try:
        pair_configs = parse_pairs(args.pairs)
        min_overrides = parse_int_map(args.min_sources_overrides)
        deviation_thresholds = parse_decimal_map(args.deviation_thresholds)
        fallback_rates = parse_decimal_map(args.fallback_rates)
        provider_weights = parse_decimal_map(args.provider_weights, lower_keys=True)
        tvwap_symbols = parse_list(args.tvwap_symbols, upper=True)
        healthcheck_urls = parse_list(args.healthcheck_urls)
        api_keys = parse_env_api_keys()
        api_keys.update(parse_key_values(args.api_keys, lower_keys=True))
        deviation_threshold = Decimal(args.deviation_threshold)
    except (ValueError, InvalidOperation) as e:
        parser.error(str(e))

    if not deviation_threshold.is_finite() or deviation_threshold <= 0:
        parser.error("--deviation-threshold must be a positive number")

    if not pair_configs:
        parser.error("At least one pair must be specified")

    provider_pairs = build_provider_pairs(pair_configs)

    # Validate providers
    invalid_providers = [p for p in provider_pairs if p not in available_providers]
    if invalid_providers:
        parser.error(
            f"Unknown providers: {invalid_providers}. "
            f"Available: {', '.join(available_providers)}"
        )

    # Log configuration
    logger.info("=" * 60)
    logger.info("Price Feeder")
    logger.info("=" * 60)
    logger.info(f"Pairs:             {', '.join(c.pair.join('/') for c in pair_configs)}")
    logger.info(f"Providers:         {', '.join(provider_pairs)}")
    logger.info(f"Min Sources:       {args.min_sources}")
    logger.info(f"Deviation:         {deviation_threshold} std-dev")
    logger.info(f"Tick Period:       {args.tick_period}s")
    logger.info(f"Provider Timeout:  {args.provider_timeout}s")
    logger.info(f"History:           {args.history_db}")
    if tvwap_symbols:
        logger.info(f"TVWAP:             {', '.join(tvwap_symbols)} over {args.tvwap_period}s")
    if api_keys:
        logger.info(f"API Keys:          {', '.join(api_keys.keys())}")
    logger.info("=" * 60)

    history = None
    try:
        providers = {
            name: get_provider(name, api_key=api_keys.get(name), timeout=args.provider_timeout)
            for name in provider_pairs
        }
        aggregator = PriceAggregator(
            min_sources=args.min_sources,
            deviation_threshold=deviation_threshold,
            min_source_overrides=min_overrides,
            deviation_thresholds=deviation_thresholds,
        )
        history = PriceHistory(args.history_db)
        period = timedelta(seconds=args.tvwap_period)
        derivatives = {symbol: TvwapDerivative(history, period) for symbol in tvwap_symbols}
        healthchecks = [Healthcheck(url, timeout=args.healthcheck_timeout) for url in healthcheck_urls]

        price_oracle = PriceOracle(
            providers=providers,
            provider_pairs=provider_pairs,
            aggregator=aggregator,
            tick_period=args.tick_period,
            provider_timeout=args.provider_timeout,
            fallback_rates=fallback_rates,
            provider_weights=provider_weights,
            derivatives=derivatives,
            history=history,
            history_retention=history_retention(tvwap_symbols, period),
            submitter=LoggingSubmitter(),
            healthchecks=healthchecks,
        )
        asyncio.run(price_oracle.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        if history is not None:
            history.close()


if __name__ == "__main__":
    main()
