"""Custom exceptions for the API inspector."""

from __future__ import annotations


class InspectorError(Exception):
    """Base exception for all api-inspector errors."""
    pass


class LoadTestSetupError(InspectorError):
    """Raised when a load test cannot be scheduled at all."""
    pass


class ProviderConfigError(InspectorError):
    """Raised when the LLM provider configuration is incomplete or unknown."""

    def __init__(self, message: str, *, provider: "str | None" = None):
        self.provider = provider
        if provider:
            message = f"{message} (provider={provider})"
        super().__init__(message)


class InsightsError(InspectorError):
    """Raised when performance insights cannot be produced from an LLM response."""

    def __init__(self, message: str, *, raw: "str | None" = None):
        self.raw = raw
        super().__init__(message)
