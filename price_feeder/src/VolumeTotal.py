"""Total: running volume total over an observation window.

The accumulator only keeps aggregates, not individual entries. ``sub`` does
not know which ``add`` it reverses, so ``first_height`` is only meaningful
when callers remove values in the same (FIFO) order they were added and
``clear`` the total whenever the window restarts.

.. code-block:: python

    >>> total = Total()
    >>> total.add(Decimal("10"), 5)
    >>> total.add(Decimal("2.5"), 3)
    >>> total.total, total.count, total.first_height
    (Decimal('12.5'), 2, 3)
"""

from __future__ import annotations

from decimal import Decimal


class Total:
    """Volume total, number of included values and earliest height seen.

    Not thread-safe; the owning job serializes access.

    :ivar total: Sum of included values.
    :ivar count: Number of included values.
    :ivar first_height: Lowest height among added values (0 when unset).
    """

    def __init__(self) -> None:
        self.total = Decimal(0)
        self.count = 0
        self.first_height = 0

    def __repr__(self) -> str:
        return (
            f"Total(total={self.total}, count={self.count}, "
            f"first_height={self.first_height})"
        )

    def add(self, value: Decimal | None, height: int) -> None:
        """Include a value observed at ``height``.

        Absent or negative values are ignored.

        :param value: Volume to add.
        :param height: Block height (or tick number) of the observation.
        """
        if value is None or value < 0:
            return
        self.total += value
        self.count += 1
        if self.first_height == 0 or height < self.first_height:
            self.first_height = height

    def sub(self, value: Decimal | None) -> None:
        """Remove a previously added value. ``first_height`` is left as is.

        :param value: Volume to remove.
        """
        if value is None or value < 0:
            return
        self.total -= value
        self.count -= 1

    def clear(self) -> None:
        """Reset to the zero state."""
        self.total = Decimal(0)
        self.count = 0
        self.first_height = 0
