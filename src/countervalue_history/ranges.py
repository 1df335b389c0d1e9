"""Portfolio ranges: supported period keywords and their date axes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pandas as pd

DAILY = "daily"
HOURLY = "hourly"

GRANULARITY_FREQ = {DAILY: "D", HOURLY: "h"}


@dataclass(frozen=True)
class RangeConfig:
    name: str
    count: int
    granularity: str

    @property
    def freq(self) -> str:
        return GRANULARITY_FREQ[self.granularity]


RANGES: Dict[str, RangeConfig] = {
    "day": RangeConfig("day", 24, HOURLY),
    "week": RangeConfig("week", 7 * 24, HOURLY),
    "month": RangeConfig("month", 30, DAILY),
    "year": RangeConfig("year", 365, DAILY),
}


def get_ranges() -> List[str]:
    return list(RANGES)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc_timestamp(value: datetime) -> pd.Timestamp:
    """Return ``value`` as a UTC ``Timestamp``; naive inputs are taken as UTC."""

    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def get_dates(range_name: str, now: Optional[datetime] = None) -> List[datetime]:
    """Return the ordered date axis of ``range_name``, oldest first.

    The axis ends at the start of the current hour or day (UTC).
    """

    conf = RANGES[range_name]
    end = as_utc_timestamp(now or utc_now()).floor(conf.freq)
    index = pd.date_range(end=end, periods=conf.count, freq=conf.freq)
    return [ts.to_pydatetime() for ts in index]


__all__ = [
    "DAILY",
    "HOURLY",
    "RANGES",
    "RangeConfig",
    "as_utc_timestamp",
    "get_dates",
    "get_ranges",
    "utc_now",
]
