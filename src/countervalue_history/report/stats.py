"""Rate availability statistics."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .history import HistoryPoint


def count_available(series: Iterable[HistoryPoint]) -> int:
    return sum(1 for point in series if point.value)


def availability_percent(available: int, total: int) -> str:
    """Percentage of available points, rounded half up to an integer."""

    if total <= 0:
        return "0"
    ratio = Decimal(100 * available) / Decimal(total)
    return str(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass
class StatsAccumulator:
    available: int = 0
    total: int = 0

    def add(self, series: Iterable[HistoryPoint]) -> None:
        points = list(series)
        self.available += count_available(points)
        self.total += len(points)

    def line(self) -> str:
        return f"Total availability: {availability_percent(self.available, self.total)}%"


__all__ = ["StatsAccumulator", "availability_percent", "count_available"]
