"""Decimal helpers, VWAP and dispersion statistics.

All arithmetic runs in a 60-digit context; results exposed to callers are
rounded half-even to 18 fractional digits, the precision prices are rendered
with on the wire.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from decimal import ROUND_HALF_EVEN, Context, Decimal, localcontext

from .errors import InsufficientInputError
from .TickerPrice import CandidatePrice, TickerPrice

# Fractional digits kept for every published price.
PRECISION = 18

QUANTUM = Decimal(1).scaleb(-PRECISION)

DECIMAL_CONTEXT = Context(prec=60, rounding=ROUND_HALF_EVEN)


def quantize(value: Decimal) -> Decimal:
    """Round a decimal to ``PRECISION`` fractional digits (half-even)."""
    with localcontext(DECIMAL_CONTEXT):
        return value.quantize(QUANTUM)


def compute_vwap(tickers: Sequence[TickerPrice | CandidatePrice]) -> Decimal:
    """Compute the volume weighted average price.

    If every ticker reports zero volume, each one is weighted 1 so the result
    is the plain mean.

    :param tickers: Tickers (or candidates) with ``price`` and ``volume``.
    :returns: VWAP rounded to ``PRECISION`` digits.
    :raises InsufficientInputError: If ``tickers`` is empty.

    .. code-block:: python

        >>> compute_vwap([TickerPrice(Decimal(10), Decimal(0)),
        ...               TickerPrice(Decimal(20), Decimal(0))])
        Decimal('15.000000000000000000')
    """
    if not tickers:
        raise InsufficientInputError("no tickers supplied")

    with localcontext(DECIMAL_CONTEXT):
        volume_sum = sum((tp.volume for tp in tickers), Decimal(0))

        if volume_sum == 0:
            weighted_price = sum((tp.price for tp in tickers), Decimal(0))
            volume_sum = Decimal(len(tickers))
        else:
            weighted_price = sum(
                (tp.price * tp.volume for tp in tickers), Decimal(0)
            )

        return (weighted_price / volume_sum).quantize(QUANTUM)


def standard_deviation(prices: Sequence[Decimal]) -> tuple[Decimal, Decimal]:
    """Return the population standard deviation and mean of prices.

    :param prices: At least three prices.
    :returns: Tuple of (std_dev, mean).
    :raises InsufficientInputError: If fewer than three prices are supplied.
    """
    if prices is None or len(prices) < 3:
        raise InsufficientInputError("not enough values to calculate deviation")

    with localcontext(DECIMAL_CONTEXT):
        count = Decimal(len(prices))
        mean = (sum(prices, Decimal(0)) / count).quantize(QUANTUM)

        variance_sum = sum(((p - mean) * (p - mean) for p in prices), Decimal(0))
        variance = (variance_sum / count).quantize(QUANTUM)

        return variance.sqrt().quantize(QUANTUM), mean


def set_weight(
    tickers: Mapping[str, TickerPrice],
    weight: Decimal | None,
) -> dict[str, TickerPrice]:
    """Replace the volume of every ticker of a provider by a fixed weight.

    Used to make a provider count for a configured share in VWAP regardless
    of the volume it reports.

    :param tickers: Pair key to ticker mapping of one provider.
    :param weight: Weight to use as volume, or None to keep volumes.
    :returns: New mapping with volumes replaced.
    """
    if weight is None:
        return dict(tickers)
    return {key: replace(ticker, volume=weight) for key, ticker in tickers.items()}


def generate_exchange_rates_string(prices: Mapping[str, Decimal]) -> str:
    """Encode prices for logging and vote submission.

    Symbols are sorted; each entry is the price with ``PRECISION`` fractional
    digits followed by the symbol, entries joined by commas.

    .. code-block:: python

        >>> generate_exchange_rates_string({"UMEE": Decimal("3.72"), "ATOM": Decimal("40.13")})
        '40.130000000000000000ATOM,3.720000000000000000UMEE'
    """
    return ",".join(
        f"{quantize(prices[symbol]):.{PRECISION}f}{symbol}" for symbol in sorted(prices)
    )
