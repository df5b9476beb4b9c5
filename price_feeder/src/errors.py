"""Price feeder exceptions.

Provider failures, resolution gaps and quorum failures are recovered locally
by the oracle. The remaining errors signal programming or configuration
mistakes and are raised to the caller.
"""


class OracleError(Exception):
    """Base exception for price feeder errors."""

    pass


class ProviderConnectionError(OracleError):
    """Raised when a provider cannot be reached or answers with an error.

    :ivar provider: Name of the failing provider.
    """

    def __init__(self, provider: str, message: str):
        """Initialize the connection error.

        :param provider: Provider name.
        :param message: Error description.
        """
        self.provider = provider
        super().__init__(f"{provider}: provider connection: {message}")


class MissingExchangeRateError(OracleError):
    """Raised when no USD exchange rate exists for a symbol."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"missing exchange rate for {symbol}")


class TickerNotFoundError(OracleError):
    """Raised when a provider has no ticker for a requested pair."""

    def __init__(self, provider: str, pair: str):
        self.provider = provider
        self.pair = pair
        super().__init__(f"{provider} failed to get ticker price for {pair}")


class InsufficientInputError(OracleError):
    """Raised when a statistic is requested over too few values."""

    pass


class TickerParseError(OracleError, ValueError):
    """Raised when a price or volume string is not a valid decimal."""

    pass
