class PolyinferError(Exception):
    """Base exception class for the polyinfer package."""
    pass

class ConfigError(PolyinferError):
    """Raised when a configuration or a requested intent is invalid."""
    pass

class ProviderError(PolyinferError):
    """Raised when a single provider attempt fails. Always recovered internally."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider

class TransportError(ProviderError):
    """Raised when the transport could not complete the HTTP round trip."""
    pass

class ProviderAttemptError(ProviderError):
    """Raised on a non-success status or a response body without extractable text."""

    def __init__(self, provider: str, message: str, status: int | None = None):
        super().__init__(provider, message)
        self.status = status

class KeyExhaustedError(ProviderError):
    """Raised when every trial key of a provider failed."""

    def __init__(self, provider: str, tried: int, available: int, strategy: str):
        super().__init__(
            provider,
            f"all {tried} of {available} available API keys failed (strategy: {strategy})",
        )
        self.tried = tried
        self.available = available
        self.strategy = strategy
