"""Unit tests for the sqlite PriceHistory store."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from price_feeder.src.PriceHistory import PriceHistory

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def history():
    store = PriceHistory(":memory:")
    yield store
    store.close()


class TestPriceHistory:
    """Test storing and reading prices."""

    def test_empty(self, history: PriceHistory) -> None:
        """A new store has no prices."""
        assert history.get_prices("ATOM", T0) == []

    def test_add_and_get(self, history: PriceHistory) -> None:
        """Prices should come back ordered by time with full precision."""
        history.add_prices({"ATOM": Decimal("10.123456789012345678")}, T0 + timedelta(seconds=10))
        history.add_prices({"ATOM": Decimal("9.5"), "OSMO": Decimal("0.8")}, T0)

        rows = history.get_prices("ATOM", T0)

        assert rows == [
            (T0.timestamp(), Decimal("9.5")),
            ((T0 + timedelta(seconds=10)).timestamp(), Decimal("10.123456789012345678")),
        ]

    def test_since_is_inclusive(self, history: PriceHistory) -> None:
        """Rows at exactly ``since`` should be included, earlier ones not."""
        history.add_prices({"ATOM": Decimal("1")}, T0)
        history.add_prices({"ATOM": Decimal("2")}, T0 + timedelta(seconds=5))

        rows = history.get_prices("ATOM", T0 + timedelta(seconds=5))

        assert [price for _, price in rows] == [Decimal("2")]

    def test_symbols_separated(self, history: PriceHistory) -> None:
        """Reading one symbol should not return another's prices."""
        history.add_prices({"ATOM": Decimal("1"), "OSMO": Decimal("2")}, T0)
        assert [p for _, p in history.get_prices("OSMO", T0)] == [Decimal("2")]

    def test_prune(self, history: PriceHistory) -> None:
        """prune should delete rows strictly older than the cutoff."""
        history.add_prices({"ATOM": Decimal("1")}, T0)
        history.add_prices({"ATOM": Decimal("2")}, T0 + timedelta(seconds=5))
        history.add_prices({"ATOM": Decimal("3")}, T0 + timedelta(seconds=10))

        deleted = history.prune(T0 + timedelta(seconds=5))

        assert deleted == 1
        assert [p for _, p in history.get_prices("ATOM", T0)] == [Decimal("2"), Decimal("3")]

    def test_file_persistence(self, tmp_path) -> None:
        """Prices written to a file should survive reopening."""
        path = str(tmp_path / "prices.db")
        store = PriceHistory(path)
        store.add_prices({"ATOM": Decimal("7")}, T0)
        store.close()

        reopened = PriceHistory(path)
        try:
            assert reopened.get_prices("ATOM", T0) == [(T0.timestamp(), Decimal("7"))]
        finally:
            reopened.close()
