"""Derivative price hooks.

A derivative computes a symbol's published price from already resolved data
instead of taking the spot aggregate. Derivatives run after aggregation and
may add or override snapshot entries.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timedelta
from decimal import Decimal, localcontext

from .PriceHistory import PriceHistory
from .util import DECIMAL_CONTEXT, QUANTUM

logger = logging.getLogger(__name__)


class Derivative(ABC):
    """Computes a derived price for one symbol."""

    @abstractmethod
    def compute(
        self, symbol: str, prices: Mapping[str, Decimal], now: datetime
    ) -> Decimal | None:
        """Compute the derived price.

        :param symbol: Symbol to compute.
        :param prices: Spot prices aggregated this tick.
        :param now: Time of the tick.
        :returns: Derived price, or None to leave the snapshot untouched.
        """
        pass


class TvwapDerivative(Derivative):
    """Time weighted average of a symbol's recorded prices over a period.

    Each recorded price is weighted by how long it stayed current; the
    current spot price closes the window with zero weight unless nothing else
    was recorded.

    :ivar history: Price history to read from.
    :ivar period: Length of the averaging window.
    """

    def __init__(self, history: PriceHistory, period: timedelta) -> None:
        if period <= timedelta(0):
            raise ValueError("period must be positive")
        self.history = history
        self.period = period

    def compute(
        self, symbol: str, prices: Mapping[str, Decimal], now: datetime
    ) -> Decimal | None:
        points = self.history.get_prices(symbol, now - self.period)
        if symbol in prices:
            points.append((now.timestamp(), prices[symbol]))
        if not points:
            return None

        with localcontext(DECIMAL_CONTEXT):
            weighted = Decimal(0)
            total_weight = Decimal(0)
            for (ts, price), (next_ts, _) in zip(points, points[1:]):
                weight = Decimal(str(max(next_ts - ts, 0.0)))
                weighted += price * weight
                total_weight += weight

            if total_weight == 0:
                return (sum((p for _, p in points), Decimal(0)) / len(points)).quantize(QUANTUM)
            return (weighted / total_weight).quantize(QUANTUM)
