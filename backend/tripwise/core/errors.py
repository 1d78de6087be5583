"""Errors that cross component boundaries."""

from __future__ import annotations


class MissingConfigurationError(RuntimeError):
    """A required setting (usually an API key) is not configured."""

    def __init__(self, setting: str, detail: str = "") -> None:
        self.setting = setting
        message = f"{setting} is not configured"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MapProviderError(RuntimeError):
    """The mapping provider answered with a non-success status."""

    def __init__(self, status: int | str, message: str = "") -> None:
        self.status = status
        super().__init__(f"map provider status {status}: {message}" if message else f"map provider status {status}")
