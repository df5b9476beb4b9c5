"""Unit tests for the volume Total accumulator."""

from decimal import Decimal

from price_feeder.src.VolumeTotal import Total


class TestTotalAdd:
    """Test adding values."""

    def test_initial_state(self) -> None:
        """A new total should be zero."""
        total = Total()
        assert total.total == Decimal(0)
        assert total.count == 0
        assert total.first_height == 0

    def test_add_tracks_lowest_height(self) -> None:
        """first_height should be the lowest height added."""
        total = Total()
        total.add(Decimal("10"), 5)
        total.add(Decimal("2.5"), 3)
        total.add(Decimal("1"), 9)

        assert total.total == Decimal("13.5")
        assert total.count == 3
        assert total.first_height == 3

    def test_add_ignores_none_and_negative(self) -> None:
        """Absent or negative values should be ignored."""
        total = Total()
        total.add(None, 1)
        total.add(Decimal("-1"), 2)

        assert total.total == Decimal(0)
        assert total.count == 0
        assert total.first_height == 0

    def test_add_zero_is_counted(self) -> None:
        """A zero volume is a valid observation."""
        total = Total()
        total.add(Decimal(0), 4)
        assert total.count == 1
        assert total.first_height == 4


class TestTotalSub:
    """Test removing values."""

    def test_sub_reverses_add(self) -> None:
        """sub should decrease total and count."""
        total = Total()
        total.add(Decimal("10"), 1)
        total.add(Decimal("5"), 2)
        total.sub(Decimal("10"))

        assert total.total == Decimal("5")
        assert total.count == 1

    def test_sub_keeps_first_height(self) -> None:
        """sub does not know which entry it removes, so the height stays."""
        total = Total()
        total.add(Decimal("10"), 1)
        total.add(Decimal("5"), 2)
        total.sub(Decimal("10"))
        assert total.first_height == 1

    def test_sub_ignores_none_and_negative(self) -> None:
        """Absent or negative values should be ignored."""
        total = Total()
        total.add(Decimal("3"), 1)
        total.sub(None)
        total.sub(Decimal("-3"))

        assert total.total == Decimal("3")
        assert total.count == 1


class TestTotalClear:
    """Test clearing."""

    def test_clear(self) -> None:
        """clear should reset every field."""
        total = Total()
        total.add(Decimal("3"), 7)
        total.clear()

        assert total.total == Decimal(0)
        assert total.count == 0
        assert total.first_height == 0

    def test_repr(self) -> None:
        """repr should show the fields."""
        total = Total()
        total.add(Decimal("3"), 7)
        assert repr(total) == "Total(total=3, count=1, first_height=7)"
