from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised for invalid options detected before any network activity."""


class RateLoadError(RuntimeError):
    """Raised when the bulk countervalue load cannot complete."""
