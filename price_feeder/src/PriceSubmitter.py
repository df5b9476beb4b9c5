"""PriceSubmitter: Hand-off point to the transaction submission layer."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

logger = logging.getLogger(__name__)


class PriceSubmitter(ABC):
    """Abstract base class for snapshot consumers.

    Implementations serialize the snapshot into a chain-specific message and
    take care of signing, broadcasting and retrying.
    """

    @abstractmethod
    def submit(self, prices: Mapping[str, Decimal], exchange_rates: str) -> Any:
        """Submit a complete snapshot.

        :param prices: Symbol to USD price.
        :param exchange_rates: Deterministic encoding of ``prices``.
        :returns: Implementation-defined result.
        """
        pass


class LoggingSubmitter(PriceSubmitter):
    """Submitter that only logs the encoded rates (dry runs)."""

    def submit(self, prices: Mapping[str, Decimal], exchange_rates: str) -> str:
        """Log the encoded rates.

        :returns: The encoded rates string.
        """
        logger.info(f"Exchange rates ({len(prices)} assets): {exchange_rates}")
        return exchange_rates
