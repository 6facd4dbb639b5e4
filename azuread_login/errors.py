from __future__ import annotations


class AzureADLoginError(Exception):
    """Base class for all login view errors."""


class ConfigurationError(AzureADLoginError):
    """Options could not be built, e.g. a required field is missing."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NetworkError(AzureADLoginError):
    """The token endpoint could not be reached."""


class ProtocolError(AzureADLoginError):
    """The token endpoint answered with something other than a JSON success body."""

    def __init__(self, message: str, *, status: int | None = None, reason: str = "status") -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason


class StateError(AzureADLoginError):
    """An operation was called while the object is not in a usable state."""
