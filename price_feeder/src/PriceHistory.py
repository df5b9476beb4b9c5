"""PriceHistory: sqlite store of published spot prices.

Prices are stored as decimal strings so no precision is lost. Use
``":memory:"`` for an in-process store that disappears on exit.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal

logger = logging.getLogger(__name__)


class PriceHistory:
    """Durable price history keyed by symbol and timestamp.

    :ivar path: sqlite database path.
    """

    def __init__(self, path: str = ":memory:") -> None:
        """Open (and create if needed) the history database.

        :param path: Database file path or ``":memory:"``.
        """
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS prices (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                symbol TEXT NOT NULL,
                price TEXT NOT NULL,
                timestamp REAL NOT NULL
            )
        """)
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_prices_symbol_ts ON prices (symbol, timestamp)"
        )
        self._conn.commit()

    def add_prices(self, prices: Mapping[str, Decimal], timestamp: datetime) -> None:
        """Record one snapshot.

        :param prices: Symbol to price.
        :param timestamp: Time the snapshot was produced.
        """
        rows = [(symbol, str(price), timestamp.timestamp()) for symbol, price in prices.items()]
        with self._lock:
            self._conn.executemany(
                "INSERT INTO prices (symbol, price, timestamp) VALUES (?, ?, ?)", rows
            )
            self._conn.commit()
        logger.debug(f"Stored {len(rows)} prices at {timestamp.isoformat()}")

    def get_prices(self, symbol: str, since: datetime) -> list[tuple[float, Decimal]]:
        """Get the recorded prices of a symbol since a point in time.

        :param symbol: Asset symbol.
        :param since: Earliest timestamp (inclusive).
        :returns: List of (unix timestamp, price) ordered by time.
        """
        with self._lock:
            cursor = self._conn.execute(
                "SELECT timestamp, price FROM prices "
                "WHERE symbol = ? AND timestamp >= ? ORDER BY timestamp, id",
                (symbol, since.timestamp()),
            )
            rows = cursor.fetchall()
        return [(ts, Decimal(price)) for ts, price in rows]

    def prune(self, before: datetime) -> int:
        """Delete prices older than a point in time.

        :param before: Rows strictly older than this are deleted.
        :returns: Number of deleted rows.
        """
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM prices WHERE timestamp < ?", (before.timestamp(),)
            )
            self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
