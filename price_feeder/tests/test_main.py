"""Unit tests for CLI helpers in main."""

from datetime import timedelta

from price_feeder.main import history_retention


class TestHistoryRetention:
    """Test how long price history is kept."""

    def test_no_tvwap_keeps_everything(self) -> None:
        """Without TVWAP symbols, history should not be pruned."""
        assert history_retention([], timedelta(hours=2)) is None

    def test_at_least_one_day(self) -> None:
        """Short TVWAP windows still keep a day of history."""
        assert history_retention(["ATOM"], timedelta(minutes=15)) == timedelta(days=1)

    def test_long_window(self) -> None:
        """Windows longer than a day are kept in full."""
        assert history_retention(["ATOM"], timedelta(days=3)) == timedelta(days=3)
