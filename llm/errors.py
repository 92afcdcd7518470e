"""
Error taxonomy for reply generation.

None of these escape ``ReplyGenerator.generate_reply``; only
``ConfigurationError`` is raised to callers, and only at construction time.
"""

from typing import Optional


class ReplyGenerationError(Exception):
    """Base class for reply generation errors."""


class ConfigurationError(ReplyGenerationError):
    """Backend cannot be constructed (missing credential, unknown provider)."""


class BackendError(ReplyGenerationError):
    """
    A backend call failed.

    Args:
        message: Provider error message
        status_code: HTTP-style status code, when the provider reports one
        provider: Name of the backend that raised
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider = provider

    @property
    def retryable(self) -> bool:
        return is_retryable(self)

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.status_code}] {self.message}"
        return self.message


class BackendTimeoutError(BackendError):
    """An attempt exceeded the per-attempt wall-clock budget."""

    def __init__(self, timeout_ms: int, provider: Optional[str] = None):
        super().__init__(f"LLM request timeout after {timeout_ms}ms", provider=provider)
        self.timeout_ms = timeout_ms


# Auth, permission and malformed-request statuses
NON_RETRYABLE_STATUS_CODES = frozenset({400, 401, 403, 422})

# Message signatures used when the provider gives no status code
NON_RETRYABLE_SIGNATURES = ("API_KEY", "401", "403", "400", "invalid")


def is_retryable(error: BaseException) -> bool:
    """
    Classify a backend failure.

    A structured status code decides when present. Otherwise the message is
    matched against known non-retryable signatures. Anything unrecognized
    (network errors, timeouts, 5xx, 429) is retryable.
    """
    if isinstance(error, BackendTimeoutError):
        return True

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code not in NON_RETRYABLE_STATUS_CODES

    message = str(error)
    return not any(signature in message for signature in NON_RETRYABLE_SIGNATURES)
