"""Exception hierarchy for the Matsu backend client."""

from __future__ import annotations


class BackendError(Exception):
    """Base exception for all backend client errors."""


class BackendConnectionError(BackendError):
    """Failed to reach the backend (network, timeout, client not connected)."""


class BackendAuthError(BackendError):
    """Login rejected or session no longer valid."""


class BackendResponseError(BackendError):
    """Backend answered with a non-success status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendParseError(BackendError):
    """Backend returned a body that is not the expected JSON."""


class ConditionSyntaxError(ValueError):
    """An alert-rule condition could not be tokenized or parsed."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.position = position
