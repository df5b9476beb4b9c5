"""Unit tests for configuration string parsing."""

from decimal import Decimal

import pytest

from price_feeder.src.config import (
    PairConfig,
    build_provider_pairs,
    parse_decimal_map,
    parse_int_map,
    parse_key_values,
    parse_list,
    parse_pairs,
)
from price_feeder.src.CurrencyPair import CurrencyPair


class TestParsePairs:
    """Test pair configuration parsing."""

    def test_empty(self) -> None:
        """None and empty strings yield no pairs."""
        assert parse_pairs(None) == []
        assert parse_pairs("") == []

    def test_pairs_with_providers(self) -> None:
        """Entries should map a pair to its providers."""
        configs = parse_pairs("atom/usd:kraken+Coinbase, atom/usdt:binance")

        assert configs == [
            PairConfig(CurrencyPair("ATOM", "USD"), ("kraken", "coinbase")),
            PairConfig(CurrencyPair("ATOM", "USDT"), ("binance",)),
        ]

    def test_duplicate_providers_removed(self) -> None:
        """A provider listed twice for a pair appears once."""
        [config] = parse_pairs("atom/usd:kraken+kraken")
        assert config.providers == ("kraken",)

    def test_missing_providers(self) -> None:
        """Entries without providers should raise ValueError."""
        with pytest.raises(ValueError, match="has no providers"):
            parse_pairs("atom/usd")
        with pytest.raises(ValueError, match="has no providers"):
            parse_pairs("atom/usd:")

    def test_invalid_pair(self) -> None:
        """Invalid pair strings should raise ValueError."""
        with pytest.raises(ValueError, match="Invalid pair format"):
            parse_pairs("atomusd:kraken")


class TestBuildProviderPairs:
    """Test inversion into per-provider pairs."""

    def test_build(self) -> None:
        """Each provider should get its pairs in order, without duplicates."""
        configs = parse_pairs(
            "atom/usd:kraken+coinbase,usdt/usd:kraken,atom/usd:kraken,atom/usdt:binance"
        )

        assert build_provider_pairs(configs) == {
            "kraken": [CurrencyPair("ATOM", "USD"), CurrencyPair("USDT", "USD")],
            "coinbase": [CurrencyPair("ATOM", "USD")],
            "binance": [CurrencyPair("ATOM", "USDT")],
        }


class TestParseKeyValues:
    """Test key=value parsing."""

    def test_parse(self) -> None:
        """Keys are upper-cased by default."""
        assert parse_key_values("atom=1, osmo = 2") == {"ATOM": "1", "OSMO": "2"}

    def test_lower_keys(self) -> None:
        """Provider names are lower-cased."""
        assert parse_key_values("Binance=abc=1", lower_keys=True) == {"binance": "abc=1"}

    def test_missing_separator(self) -> None:
        """Entries without '=' should raise ValueError."""
        with pytest.raises(ValueError, match="key=value"):
            parse_key_values("atom")

    def test_empty_key(self) -> None:
        """Entries with an empty key should raise ValueError."""
        with pytest.raises(ValueError, match="empty key"):
            parse_key_values("=1")


class TestParseMaps:
    """Test typed map parsing."""

    def test_int_map(self) -> None:
        """Integers should parse."""
        assert parse_int_map("ATOM=1,usdt=2") == {"ATOM": 1, "USDT": 2}

    @pytest.mark.parametrize("value", ["ATOM=x", "ATOM=0", "ATOM=-2"])
    def test_int_map_invalid(self, value: str) -> None:
        """Non-integers and values below 1 should raise ValueError."""
        with pytest.raises(ValueError):
            parse_int_map(value)

    def test_decimal_map(self) -> None:
        """Decimals should parse exactly."""
        assert parse_decimal_map("USDT=0.999,usdc=1") == {
            "USDT": Decimal("0.999"),
            "USDC": Decimal("1"),
        }

    def test_decimal_map_lower_keys(self) -> None:
        """Provider weights use lower-case keys."""
        assert parse_decimal_map("Kraken=2", lower_keys=True) == {"kraken": Decimal("2")}

    @pytest.mark.parametrize("value", ["USDT=abc", "USDT=-1", "USDT=NaN", "USDT=inf"])
    def test_decimal_map_invalid(self, value: str) -> None:
        """Malformed, negative and non-finite values should raise ValueError."""
        with pytest.raises(ValueError):
            parse_decimal_map(value)

    def test_list(self) -> None:
        """Plain lists drop empty items."""
        assert parse_list("atom, ,osmo", upper=True) == ["ATOM", "OSMO"]
        assert parse_list(None) == []
