"""ProviderHealth: Per-provider success/failure bookkeeping.

The oracle never retries or backs off a failing provider; it queries every
provider on every tick. This tracker only records outcomes so failures can be
surfaced in logs and inspected by operators.

.. code-block:: python

    >>> health = ProviderHealth(["binance", "kraken"])
    >>> health.record_failure("kraken", "timeout")
    1
    >>> health.record_failure("kraken", "timeout")
    2
    >>> health.record_success("kraken")
    >>> health.get_provider_status("kraken").consecutive_failures
    0
"""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass
class ProviderStatus:
    """Tracks the status of a single provider.

    :ivar consecutive_failures: Number of consecutive failed ticks.
    :ivar total_failures: Total failures since tracking began.
    :ivar total_successes: Total successes since tracking began.
    :ivar last_success: Unix timestamp of the last success (0 if never).
    :ivar last_error: Description of the most recent failure.
    """

    consecutive_failures: int = 0
    total_failures: int = 0
    total_successes: int = 0
    last_success: float = 0.0
    last_error: str | None = None


class ProviderHealth:
    """Records per-provider tick outcomes.

    :ivar providers: List of tracked provider names.
    """

    def __init__(self, providers: list[str]) -> None:
        """Initialize the tracker.

        :param providers: Provider names to track.
        """
        self.providers = list(providers)
        self._status: dict[str, ProviderStatus] = {p: ProviderStatus() for p in providers}

    def _get_or_create(self, provider: str) -> ProviderStatus:
        if provider not in self._status:
            self.providers.append(provider)
            self._status[provider] = ProviderStatus()
        return self._status[provider]

    def record_failure(self, provider: str, error: str | None = None) -> int:
        """Record a failed tick for a provider.

        :param provider: Provider name that failed.
        :param error: Optional error description.
        :returns: Number of consecutive failures.
        """
        status = self._get_or_create(provider)
        status.consecutive_failures += 1
        status.total_failures += 1
        status.last_error = error
        return status.consecutive_failures

    def record_success(self, provider: str) -> None:
        """Record a successful tick, resetting the consecutive failure count.

        :param provider: Provider name that succeeded.
        """
        status = self._get_or_create(provider)
        status.consecutive_failures = 0
        status.total_successes += 1
        status.last_success = time.time()

    def get_provider_status(self, provider: str) -> ProviderStatus | None:
        """Get the status of a specific provider, or None if untracked."""
        return self._status.get(provider)

    def get_all_status(self) -> dict[str, ProviderStatus]:
        """Get status of all providers.

        :returns: Dict mapping provider names to their status (a copy).
        """
        return dict(self._status)

    def get_failing_providers(self) -> list[str]:
        """Get providers whose most recent tick failed."""
        return [p for p in self.providers if self._status[p].consecutive_failures > 0]

    def reset_all(self) -> None:
        """Reset all providers to initial state."""
        self._status = {p: ProviderStatus() for p in self.providers}
