"""Parsers for the comma-separated configuration strings used by the CLI.

Every parser accepts ``None`` or an empty string and returns an empty result;
malformed entries raise ``ValueError`` so ``main`` can report them through
``parser.error``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .CurrencyPair import CurrencyPair


@dataclass(frozen=True)
class PairConfig:
    """A configured pair and the providers that quote it.

    :ivar pair: The currency pair.
    :ivar providers: Provider names, in configuration order.
    """

    pair: CurrencyPair
    providers: tuple[str, ...]


def _items(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_pairs(value: str | None) -> list[PairConfig]:
    """Parse pair configuration.

    Format: ``base/quote:provider1+provider2,...``
    Example: ``atom/usd:kraken+coinbase,atom/usdt:binance``

    :param value: Pair configuration string.
    :returns: List of pair configurations.
    :raises ValueError: If an entry has no providers or an invalid pair.
    """
    configs = []
    for item in _items(value):
        if ":" not in item:
            raise ValueError(f"Pair entry '{item}' has no providers (expected base/quote:provider)")
        pair_str, providers_str = item.split(":", 1)
        providers = tuple(
            dict.fromkeys(p.strip().lower() for p in providers_str.split("+") if p.strip())
        )
        if not providers:
            raise ValueError(f"Pair entry '{item}' has no providers")
        configs.append(PairConfig(pair=CurrencyPair.from_string(pair_str), providers=providers))
    return configs


def build_provider_pairs(configs: Sequence[PairConfig]) -> dict[str, list[CurrencyPair]]:
    """Invert pair configurations into the pairs each provider quotes.

    :param configs: Pair configurations.
    :returns: Provider name to ordered, deduplicated list of pairs.
    """
    provider_pairs: dict[str, list[CurrencyPair]] = {}
    for config in configs:
        for provider in config.providers:
            pairs = provider_pairs.setdefault(provider, [])
            if config.pair not in pairs:
                pairs.append(config.pair)
    return provider_pairs


def parse_key_values(value: str | None, lower_keys: bool = False) -> dict[str, str]:
    """Parse a comma-separated ``key=value`` string into a dictionary.

    Format: key1=value1,key2=value2
    Example: ATOM=5,OSMO=2

    :param value: String to parse.
    :param lower_keys: Lower-case keys instead of upper-casing them.
    :returns: Dict mapping keys to raw values.
    :raises ValueError: If an entry has no ``=`` or an empty key.
    """
    result = {}
    for item in _items(value):
        if "=" not in item:
            raise ValueError(f"Entry '{item}' is not of the form key=value")
        key, raw = item.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError(f"Entry '{item}' has an empty key")
        result[key.lower() if lower_keys else key.upper()] = raw.strip()
    return result


def parse_int_map(value: str | None) -> dict[str, int]:
    """Parse ``SYMBOL=n`` entries, e.g. per-asset minimum source counts.

    :raises ValueError: If a value is not a positive integer.
    """
    result = {}
    for key, raw in parse_key_values(value).items():
        try:
            number = int(raw)
        except ValueError:
            raise ValueError(f"Invalid integer for {key}: '{raw}'") from None
        if number < 1:
            raise ValueError(f"Value for {key} must be at least 1, got {number}")
        result[key] = number
    return result


def parse_decimal_map(value: str | None, lower_keys: bool = False) -> dict[str, Decimal]:
    """Parse ``KEY=decimal`` entries, e.g. fallback rates or provider weights.

    :raises ValueError: If a value is not a finite, non-negative decimal.
    """
    result = {}
    for key, raw in parse_key_values(value, lower_keys=lower_keys).items():
        try:
            number = Decimal(raw)
        except InvalidOperation:
            raise ValueError(f"Invalid decimal for {key}: '{raw}'") from None
        if not number.is_finite() or number < 0:
            raise ValueError(f"Value for {key} must be a non-negative number, got '{raw}'")
        result[key] = number
    return result


def parse_list(value: str | None, upper: bool = False) -> list[str]:
    """Parse a plain comma-separated list, dropping empty items."""
    return [item.upper() if upper else item for item in _items(value)]
