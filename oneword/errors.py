# oneword/errors.py
from __future__ import annotations

from typing import Optional


class ConfigurationError(ValueError):
    """Invalid weights, thresholds or selection settings. Raised at load time."""


class ExternalApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        # transport errors (no status), throttling and upstream 5xx
        return self.status_code is None or self.status_code == 429 or self.status_code >= 500


class ApiAuthError(ExternalApiError):
    @property
    def retryable(self) -> bool:
        return False


class RetryExhausted(RuntimeError):
    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class BatchAborted(RuntimeError):
    """A batch run stopped early; `summary` holds the counts up to that point."""

    def __init__(self, message: str, summary=None):
        super().__init__(message)
        self.summary = summary


class WordNotFound(LookupError):
    def __init__(self, word: str):
        super().__init__(f"unknown word: {word!r}")
        self.word = word
