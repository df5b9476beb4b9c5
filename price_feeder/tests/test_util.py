"""Unit tests for VWAP, dispersion and encoding helpers."""

import itertools
from decimal import Decimal

import pytest

from price_feeder.src.errors import InsufficientInputError
from price_feeder.src.TickerPrice import TickerPrice
from price_feeder.src.util import (
    compute_vwap,
    generate_exchange_rates_string,
    quantize,
    set_weight,
    standard_deviation,
)


def ticker(price: str, volume: str) -> TickerPrice:
    return TickerPrice(Decimal(price), Decimal(volume))


class TestComputeVwap:
    """Test volume weighted average price."""

    def test_three_tickers(self) -> None:
        """VWAP over several venues with different volumes."""
        vwap = compute_vwap([
            ticker("28.21000000", "2749102.78000000"),
            ticker("28.268700", "178277.53314385"),
            ticker("28.168700", "4749102.53314385"),
        ])
        assert abs(vwap - Decimal("28.185812745610043621")) <= Decimal("1e-18")

    def test_order_independent(self) -> None:
        """Every ordering of the same tickers should give the same VWAP."""
        tickers = [
            ticker("28.21000000", "2749102.78000000"),
            ticker("28.268700", "178277.53314385"),
            ticker("28.168700", "4749102.53314385"),
        ]
        results = {compute_vwap(list(order)) for order in itertools.permutations(tickers)}
        assert results == {compute_vwap(tickers)}

    def test_two_tickers(self) -> None:
        """VWAP over two venues."""
        vwap = compute_vwap([
            ticker("64.87000000", "7854934.69000000"),
            ticker("64.87853000", "458917.46353577"),
        ])
        assert abs(vwap - Decimal("64.870470848638112395")) <= Decimal("1e-18")

    def test_single_ticker(self) -> None:
        """A single ticker's VWAP is its price."""
        assert compute_vwap([ticker("1.13000000", "249102.38000000")]) == Decimal("1.13")

    def test_zero_volume_single(self) -> None:
        """A single zero-volume ticker's VWAP is its price."""
        assert compute_vwap([ticker("12.34000000", "0")]) == Decimal("12.34")

    def test_zero_volume_falls_back_to_mean(self) -> None:
        """All-zero volumes should weight every ticker equally."""
        assert compute_vwap([ticker("10", "0"), ticker("20", "0")]) == Decimal("15")

    def test_result_has_eighteen_digits(self) -> None:
        """Results should be rounded to 18 fractional digits."""
        vwap = compute_vwap([ticker("1", "1"), ticker("2", "2")])
        assert vwap == Decimal("1.666666666666666667")
        assert vwap.as_tuple().exponent == -18

    def test_empty(self) -> None:
        """An empty list should raise InsufficientInputError."""
        with pytest.raises(InsufficientInputError):
            compute_vwap([])


class TestStandardDeviation:
    """Test population standard deviation."""

    def test_three_prices(self) -> None:
        """Mean is exact; deviation matches to 18 digits within rounding."""
        std_dev, mean = standard_deviation(
            [Decimal("28.21000000"), Decimal("28.23000000"), Decimal("28.40000000")]
        )
        assert mean == Decimal("28.28")
        assert abs(std_dev - Decimal("0.085244745683629475")) < Decimal("1e-15")

    def test_three_small_prices(self) -> None:
        """Small spreads should keep full precision."""
        std_dev, mean = standard_deviation(
            [Decimal("1.13000000"), Decimal("1.13050000"), Decimal("1.14000000")]
        )
        assert mean == Decimal("1.1335")
        assert abs(std_dev - Decimal("0.004600724580614015")) < Decimal("1e-15")

    def test_identical_prices(self) -> None:
        """Identical prices have zero deviation."""
        std_dev, mean = standard_deviation([Decimal("5")] * 4)
        assert std_dev == 0
        assert mean == Decimal("5")

    @pytest.mark.parametrize(
        "prices", [[], None, [Decimal("28.21"), Decimal("28.23")]]
    )
    def test_not_enough_prices(self, prices) -> None:
        """Fewer than three prices should raise InsufficientInputError."""
        with pytest.raises(InsufficientInputError):
            standard_deviation(prices)


class TestSetWeight:
    """Test provider weight overrides."""

    def test_replaces_volume(self) -> None:
        """Every ticker's volume should become the weight."""
        tickers = {"ATOMUSD": ticker("10", "500"), "OSMOUSD": ticker("1", "7")}
        weighted = set_weight(tickers, Decimal("2"))

        assert weighted["ATOMUSD"].volume == Decimal("2")
        assert weighted["OSMOUSD"].volume == Decimal("2")
        assert weighted["ATOMUSD"].price == Decimal("10")

    def test_input_untouched(self) -> None:
        """The input mapping should not be modified."""
        tickers = {"ATOMUSD": ticker("10", "500")}
        set_weight(tickers, Decimal("2"))
        assert tickers["ATOMUSD"].volume == Decimal("500")

    def test_none_keeps_volumes(self) -> None:
        """Without a weight, volumes should be kept."""
        tickers = {"ATOMUSD": ticker("10", "500")}
        assert set_weight(tickers, None) == tickers


class TestGenerateExchangeRatesString:
    """Test the deterministic rates encoding."""

    def test_empty(self) -> None:
        """No prices encode to an empty string."""
        assert generate_exchange_rates_string({}) == ""

    def test_single(self) -> None:
        """One price renders with 18 fractional digits."""
        assert (
            generate_exchange_rates_string({"UMEE": Decimal("3.72")})
            == "3.720000000000000000UMEE"
        )

    def test_sorted_by_symbol(self) -> None:
        """Entries should be sorted by symbol and comma separated."""
        prices = {
            "UMEE": Decimal("3.72"),
            "ATOM": Decimal("40.13"),
            "OSMO": Decimal("8.69"),
        }
        assert generate_exchange_rates_string(prices) == (
            "40.130000000000000000ATOM,8.690000000000000000OSMO,3.720000000000000000UMEE"
        )


class TestQuantize:
    """Test rounding to published precision."""

    def test_half_even(self) -> None:
        """Ties should round to even."""
        assert quantize(Decimal("0.0000000000000000005")) == Decimal("0")
        assert quantize(Decimal("0.0000000000000000015")) == Decimal("0.000000000000000002")
