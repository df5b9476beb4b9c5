"""Ticker and candidate price value types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from .CurrencyPair import CurrencyPair
from .errors import TickerParseError


def parse_decimal(value: str | int | Decimal, what: str = "value") -> Decimal:
    """Parse a non-negative, finite decimal.

    :param value: Decimal string or number.
    :param what: Name of the field, used in the error message.
    :returns: Parsed Decimal.
    :raises TickerParseError: If the value is malformed, non-finite or negative.
    """
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise TickerParseError(f"failed to convert ticker {what} ({value!r}): {e}") from e
    if not parsed.is_finite():
        raise TickerParseError(f"failed to convert ticker {what}: {value!r} is not finite")
    if parsed < 0:
        raise TickerParseError(f"failed to convert ticker {what}: {value!r} is negative")
    return parsed


@dataclass(frozen=True)
class TickerPrice:
    """Price and trailing volume a provider reported for one pair.

    :ivar price: Last trade price.
    :ivar volume: Trailing-window (usually 24h) volume.
    :ivar time: Observation time, if the provider reports one.
    """

    price: Decimal
    volume: Decimal
    time: datetime | None = None

    @classmethod
    def from_strings(
        cls,
        price: str | int | Decimal,
        volume: str | int | Decimal,
        time: datetime | None = None,
    ) -> TickerPrice:
        """Build a ticker from provider strings.

        :param price: Price as a decimal string.
        :param volume: Volume as a decimal string.
        :param time: Observation time.
        :returns: New TickerPrice.
        :raises TickerParseError: If either value cannot be parsed.

        .. code-block:: python

            >>> TickerPrice.from_strings("28.21", "2749102.78").price
            Decimal('28.21')
        """
        return cls(
            price=parse_decimal(price, "price"),
            volume=parse_decimal(volume, "volume"),
            time=time,
        )

    def is_valid(self) -> bool:
        """Check that the ticker carries a usable positive price and volume."""
        return (
            isinstance(self.price, Decimal)
            and isinstance(self.volume, Decimal)
            and self.price.is_finite()
            and self.volume.is_finite()
            and self.price > 0
            and self.volume >= 0
        )


@dataclass(frozen=True)
class CandidatePrice:
    """A USD-denominated price for ``pair.base`` produced by one provider/path.

    :ivar price: Price in USD.
    :ivar volume: Volume of the original (unconverted) pair.
    :ivar provider: Provider that reported the underlying ticker.
    :ivar pair: Pair the candidate was derived from.
    """

    price: Decimal
    volume: Decimal
    provider: str
    pair: CurrencyPair
