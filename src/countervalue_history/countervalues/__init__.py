"""Countervalue rates: HTTP client, tracking pairs and calculation."""

from .api import CountervaluesAPI, RetryPolicy
from .logic import (
    Pair,
    RateState,
    TrackingPair,
    calculate,
    calculate_many,
    load_countervalues,
    resolve_tracking_pair,
    resolve_tracking_pairs,
)

__all__ = [
    "CountervaluesAPI",
    "Pair",
    "RateState",
    "RetryPolicy",
    "TrackingPair",
    "calculate",
    "calculate_many",
    "load_countervalues",
    "resolve_tracking_pair",
    "resolve_tracking_pairs",
]
