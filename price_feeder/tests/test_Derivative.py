"""Unit tests for derivative price hooks."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from price_feeder.src.Derivative import TvwapDerivative
from price_feeder.src.PriceHistory import PriceHistory

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def history():
    store = PriceHistory(":memory:")
    yield store
    store.close()


class TestTvwapDerivative:
    """Test the time weighted average price derivative."""

    def test_invalid_period(self, history: PriceHistory) -> None:
        """A non-positive period should raise ValueError."""
        with pytest.raises(ValueError, match="period must be positive"):
            TvwapDerivative(history, timedelta(0))

    def test_no_data(self, history: PriceHistory) -> None:
        """Without history or a current price there is nothing to publish."""
        derivative = TvwapDerivative(history, timedelta(minutes=10))
        assert derivative.compute("ATOM", {}, NOW) is None

    def test_only_current_price(self, history: PriceHistory) -> None:
        """With an empty history the current price is returned."""
        derivative = TvwapDerivative(history, timedelta(minutes=10))
        assert derivative.compute("ATOM", {"ATOM": Decimal("10")}, NOW) == Decimal("10")

    def test_time_weighted(self, history: PriceHistory) -> None:
        """Each price is weighted by how long it stayed current."""
        history.add_prices({"ATOM": Decimal("10")}, NOW - timedelta(seconds=300))
        history.add_prices({"ATOM": Decimal("20")}, NOW - timedelta(seconds=100))
        derivative = TvwapDerivative(history, timedelta(minutes=10))

        value = derivative.compute("ATOM", {"ATOM": Decimal("30")}, NOW)

        # (10 * 200 + 20 * 100) / 300
        assert value == Decimal("13.333333333333333333")

    def test_window_excludes_old_prices(self, history: PriceHistory) -> None:
        """Prices older than the period should not count."""
        history.add_prices({"ATOM": Decimal("1000")}, NOW - timedelta(hours=1))
        history.add_prices({"ATOM": Decimal("10")}, NOW - timedelta(seconds=60))
        derivative = TvwapDerivative(history, timedelta(minutes=10))

        assert derivative.compute("ATOM", {"ATOM": Decimal("12")}, NOW) == Decimal("10")

    def test_history_without_current_price(self, history: PriceHistory) -> None:
        """A symbol missing this tick is averaged from history alone."""
        history.add_prices({"ATOM": Decimal("10")}, NOW - timedelta(seconds=60))
        history.add_prices({"ATOM": Decimal("20")}, NOW - timedelta(seconds=30))
        derivative = TvwapDerivative(history, timedelta(minutes=10))

        # the last recorded point closes the window
        assert derivative.compute("ATOM", {}, NOW) == Decimal("10")
