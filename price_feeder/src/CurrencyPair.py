"""CurrencyPair: Base/quote symbol pair used as a conversion graph edge.

Symbols are stored upper-cased. The canonical string form concatenates both
symbols and is the key providers use when reporting ticker prices.

.. code-block:: python

    >>> pair = CurrencyPair("atom", "usdt")
    >>> str(pair)
    'ATOMUSDT'
    >>> pair = CurrencyPair.from_string("statom/atom")
    >>> pair.base
    'STATOM'
"""

from __future__ import annotations

from dataclasses import dataclass

# Unit of account every price is converted to.
DENOM_USD = "USD"


@dataclass(frozen=True)
class CurrencyPair:
    """An ordered (base, quote) pair of asset symbols.

    :ivar base: Base currency symbol (upper-case).
    :ivar quote: Quote currency symbol (upper-case).
    """

    base: str
    quote: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", self.base.strip().upper())
        object.__setattr__(self, "quote", self.quote.strip().upper())

    def __str__(self) -> str:
        """Return the canonical ``BASEQUOTE`` lookup key."""
        return f"{self.base}{self.quote}"

    def join(self, separator: str) -> str:
        """Join base and quote with a separator, e.g. ``"ATOM/USDT"``.

        :param separator: String placed between the symbols.
        :returns: Joined symbol string.
        """
        return f"{self.base}{separator}{self.quote}"

    @property
    def is_usd_quoted(self) -> bool:
        """Check if the pair is quoted directly in USD."""
        return self.quote == DENOM_USD

    @classmethod
    def from_string(cls, pair_str: str) -> CurrencyPair:
        """Parse a pair string in format "base/quote".

        :param pair_str: Pair string like "atom/usdt".
        :returns: New CurrencyPair instance.
        :raises ValueError: If pair string format is invalid.
        """
        parts = pair_str.split("/")
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            raise ValueError(
                f"Invalid pair format '{pair_str}'. Expected 'base/quote' (e.g., 'atom/usdt')"
            )
        return cls(parts[0], parts[1])
