"""Per-pair history series computed from a loaded rate state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from countervalue_history.countervalues.logic import Pair, RateState, calculate_many


@dataclass(frozen=True)
class HistoryPoint:
    date: datetime
    # Amount in the countervalue's smallest unit; None or 0 means no rate.
    value: Optional[float]


HistorySeries = List[HistoryPoint]


def compute_history(
    state: RateState,
    pair: Pair,
    dates: Sequence[datetime],
    *,
    now: Optional[datetime] = None,
) -> HistorySeries:
    """Value of one whole unit of ``pair.from_currency`` at every date."""

    value = 10 ** pair.from_currency.main_unit.magnitude
    values = calculate_many(state, [(value, date) for date in dates], pair, now=now)
    return [HistoryPoint(date=date, value=result) for date, result in zip(dates, values)]


__all__ = ["HistoryPoint", "HistorySeries", "compute_history"]
