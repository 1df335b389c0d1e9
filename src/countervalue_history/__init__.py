"""Countervalue history reporting: rate loading, history computation, formatters."""

__all__ = [
    "cli",
    "common",
    "countervalues",
    "currencies",
    "ranges",
    "report",
]
