"""Currency pairs, date axis and tracking requests for a report run."""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import product
from typing import List, Optional, Sequence

from countervalue_history.common.errors import ConfigurationError
from countervalue_history.countervalues.logic import Pair, TrackingPair
from countervalue_history.currencies.registry import Currency
from countervalue_history.ranges import get_dates, get_ranges


def as_portfolio_range(period: str) -> str:
    ranges = get_ranges()
    if period not in ranges:
        raise ConfigurationError(
            f"invalid period {period!r}. valid values are {' | '.join(ranges)}"
        )
    return period


def build_pairs(
    currencies: Sequence[Currency], countervalues: Sequence[Currency]
) -> List[Pair]:
    """Cartesian product, all countervalues of the first currency first."""

    return [Pair(currency, countervalue) for currency, countervalue in product(currencies, countervalues)]


def build_dates(range_name: str, *, latest: bool, now: datetime) -> List[datetime]:
    if latest:
        return [now]
    return get_dates(range_name, now)


def tracking_start_date(dates: Sequence[datetime], *, latest: bool) -> Optional[datetime]:
    """One calendar day before the first date, or ``None`` in latest mode."""

    if latest or not dates:
        return None
    return dates[0] - timedelta(days=1)


def build_tracking_pairs(
    pairs: Sequence[Pair], start_date: Optional[datetime]
) -> List[TrackingPair]:
    return [
        TrackingPair(pair.from_currency, pair.to_currency, start_date)
        for pair in pairs
    ]


__all__ = [
    "as_portfolio_range",
    "build_dates",
    "build_pairs",
    "build_tracking_pairs",
    "tracking_start_date",
]
