"""Domain-level exceptions for the farm assistant."""


class BadRequestError(ValueError):
    """Raised for client-side invalid requests at the domain layer."""


class SchemaError(ValueError):
    """Raised when a tool specification is malformed at registration time."""


class ProviderError(RuntimeError):
    """A single provider call failed (transport, status, payload or timeout)."""

    def __init__(self, provider: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.cause = cause


class OrchestrationError(RuntimeError):
    """Every configured provider was exhausted for one request."""

    def __init__(self, message: str, last_error: ProviderError | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error
