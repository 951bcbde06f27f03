"""Shared helpers."""

from .errors import InsightsError, InspectorError, LoadTestSetupError, ProviderConfigError

__all__ = [
    "InspectorError",
    "LoadTestSetupError",
    "ProviderConfigError",
    "InsightsError",
]
