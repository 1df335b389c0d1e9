"""Shared helpers: structured logging and error types."""

from .errors import ConfigurationError, RateLoadError

__all__ = ["ConfigurationError", "RateLoadError"]
