"""Custom exceptions for lampsreview."""


class LampsReviewError(Exception):
    """Base exception for all lampsreview errors."""


class ConfigError(LampsReviewError):
    """Invalid or unreadable configuration file."""


class ScanError(LampsReviewError):
    """Repository collection errors."""


class LLMError(LampsReviewError):
    """LLM provider errors."""


class ProviderError(LLMError):
    """A chat exchange failed: transport, HTTP status, or an error payload."""

    def __init__(
        self, message: str, code: str | None = None, status: int | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class ProviderNotAvailableError(LLMError):
    """Raised when an LLM provider's SDK is not installed."""

    def __init__(self, provider: str, package: str):
        super().__init__(
            f"Provider '{provider}' requires the '{package}' package. "
            f"Install it with: pip install lampsreview[{provider}]"
        )
