"""Tracking pairs, bulk rate loading and countervalue calculation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from countervalue_history.common.logging import log, setup_logger
from countervalue_history.currencies.registry import Currency, find_currency_by_ticker
from countervalue_history.ranges import (
    DAILY,
    GRANULARITY_FREQ,
    HOURLY,
    as_utc_timestamp,
    utc_now,
)

from .api import DATE_KEY_FORMATS, CountervaluesAPI

# Hourly history is only requested for start dates this close to now.
HOURLY_WINDOW = timedelta(days=8)
# Dates this recent fall back to the latest rate when no history slot exists.
LATEST_WINDOW = timedelta(days=1)

PairKey = Tuple[str, str]


class Pair(NamedTuple):
    from_currency: Currency
    to_currency: Currency


@dataclass(frozen=True)
class TrackingPair:
    from_currency: Currency
    to_currency: Currency
    start_date: Optional[datetime] = None

    @property
    def key(self) -> PairKey:
        return (self.from_currency.ticker, self.to_currency.ticker)


@dataclass
class PairRates:
    """Rates of one tracking pair, between major units, indexed by UTC slot."""

    pair: TrackingPair
    daily: pd.Series
    hourly: pd.Series
    latest: Optional[float] = None


@dataclass
class RateState:
    pairs: Dict[PairKey, PairRates] = field(default_factory=dict)
    autofilled: bool = False
    loaded_at: Optional[datetime] = None

    def rates_for(self, key: PairKey) -> Optional[PairRates]:
        return self.pairs.get(key)

    def describe(self) -> str:
        lines = [
            f"RateState pairs={len(self.pairs)} autofilled={self.autofilled} "
            f"loaded_at={self.loaded_at.isoformat() if self.loaded_at else None}"
        ]
        for (from_ticker, to_ticker), rates in self.pairs.items():
            parts = [f"  {from_ticker}/{to_ticker}"]
            for name, series in (("daily", rates.daily), ("hourly", rates.hourly)):
                if series.empty:
                    parts.append(f"{name}=0")
                else:
                    parts.append(
                        f"{name}={int(series.notna().sum())}"
                        f" [{series.index[0].isoformat()} .. {series.index[-1].isoformat()}]"
                    )
            parts.append(f"latest={rates.latest}")
            lines.append(" ".join(parts))
        return "\n".join(lines)


def _tracking_currency(currency: Currency) -> Currency:
    if currency.tracking_ticker == currency.ticker:
        return currency
    return find_currency_by_ticker(currency.tracking_ticker) or currency


def resolve_tracking_pair(pair: Pair) -> Pair:
    """Return the pair the rate provider actually tracks for ``pair``."""

    return Pair(_tracking_currency(pair.from_currency), _tracking_currency(pair.to_currency))


def resolve_tracking_pairs(pairs: Iterable[TrackingPair]) -> List[TrackingPair]:
    """Normalise, drop identity pairs and merge duplicates keeping the earliest start."""

    merged: Dict[PairKey, TrackingPair] = {}
    for requested in pairs:
        from_currency, to_currency = resolve_tracking_pair(
            Pair(requested.from_currency, requested.to_currency)
        )
        if from_currency.ticker == to_currency.ticker:
            continue
        candidate = TrackingPair(from_currency, to_currency, requested.start_date)
        existing = merged.get(candidate.key)
        if existing is None:
            merged[candidate.key] = candidate
            continue
        starts = [d for d in (existing.start_date, candidate.start_date) if d is not None]
        merged[candidate.key] = replace(existing, start_date=min(starts) if starts else None)
    return list(merged.values())


def _slot_index(index: pd.DatetimeIndex) -> pd.DatetimeIndex:
    # Same resolution on both sides so reindex lookups line up.
    return index.as_unit("ns")


def _empty_series() -> pd.Series:
    return pd.Series(dtype="float64", index=_slot_index(pd.DatetimeIndex([], tz="UTC")))


def _to_series(rates: Dict[str, float], granularity: str) -> pd.Series:
    if not rates:
        return _empty_series()
    index = pd.to_datetime(
        list(rates.keys()),
        format=DATE_KEY_FORMATS[granularity],
        utc=True,
        errors="coerce",
    )
    series = pd.Series(list(rates.values()), index=_slot_index(index), dtype="float64")
    series = series[series.index.notna()]
    series = series[~series.index.duplicated(keep="last")]
    return series.sort_index()


def autofill_gaps(series: pd.Series, granularity: str, now: datetime) -> pd.Series:
    """Forward-fill missing slots from the first observation up to ``now``."""

    if series.empty:
        return series
    freq = GRANULARITY_FREQ[granularity]
    end = max(as_utc_timestamp(now).floor(freq), series.index[-1])
    full_index = _slot_index(pd.date_range(start=series.index[0], end=end, freq=freq))
    return series.reindex(full_index).ffill()


def load_countervalues(
    tracking_pairs: Sequence[TrackingPair],
    *,
    autofill_gaps_enabled: bool = True,
    api: Optional[CountervaluesAPI] = None,
    now: Optional[datetime] = None,
    logger: Optional[logging.Logger] = None,
) -> RateState:
    """Fetch every tracking pair's history plus latest rates into a ``RateState``.

    Any API failure propagates as ``RateLoadError``.
    """

    api = api or CountervaluesAPI()
    logger = logger or setup_logger("countervalues")
    now = now or utc_now()
    now_ts = as_utc_timestamp(now)

    state = RateState(autofilled=autofill_gaps_enabled, loaded_at=now)
    log(
        logger,
        logging.INFO,
        "countervalues_load_start",
        pairs=len(tracking_pairs),
        autofill=autofill_gaps_enabled,
    )

    for pair in tracking_pairs:
        from_ticker, to_ticker = pair.key
        daily = hourly = _empty_series()
        if pair.start_date is not None:
            daily = _to_series(
                api.fetch_historical(DAILY, from_ticker, to_ticker, pair.start_date),
                DAILY,
            )
            if now_ts - as_utc_timestamp(pair.start_date) <= HOURLY_WINDOW:
                hourly = _to_series(
                    api.fetch_historical(HOURLY, from_ticker, to_ticker, pair.start_date),
                    HOURLY,
                )
        if autofill_gaps_enabled:
            daily = autofill_gaps(daily, DAILY, now)
            hourly = autofill_gaps(hourly, HOURLY, now)
        state.pairs[pair.key] = PairRates(pair=pair, daily=daily, hourly=hourly)
        log(
            logger,
            logging.INFO,
            "countervalues_pair_loaded",
            pair=f"{from_ticker}/{to_ticker}",
            daily=len(daily),
            hourly=len(hourly),
        )

    latest = api.fetch_latest([pair.key for pair in tracking_pairs])
    for pair, rate in zip(tracking_pairs, latest):
        state.pairs[pair.key].latest = rate

    log(logger, logging.INFO, "countervalues_load_complete", pairs=len(state.pairs))
    return state


def _magnitude_ratio(pair: Pair) -> float:
    return 10.0 ** (pair.to_currency.main_unit.magnitude - pair.from_currency.main_unit.magnitude)


def _round_amount(
    value: Optional[float], disable_rounding: bool
) -> Optional[Union[int, float]]:
    if value is None or math.isnan(value):
        return None
    if disable_rounding:
        return value
    return int(math.floor(value + 0.5))


def calculate_many(
    state: RateState,
    queries: Sequence[Tuple[float, datetime]],
    pair: Pair,
    *,
    now: Optional[datetime] = None,
    disable_rounding: bool = False,
) -> List[Optional[float]]:
    """Convert every ``(value, date)`` query of ``pair`` in one batch.

    Values are amounts in the smallest unit of ``pair.from_currency``; results are
    in the smallest unit of ``pair.to_currency``, positionally aligned with
    ``queries``. ``None`` marks dates without a resolvable rate.
    """

    if not queries:
        return []
    values = np.array([float(value) for value, _ in queries], dtype="float64")
    tracked = resolve_tracking_pair(pair)
    ratio = _magnitude_ratio(pair)

    if tracked.from_currency.ticker == tracked.to_currency.ticker:
        rates = np.ones(len(queries), dtype="float64")
    else:
        pair_rates = state.rates_for((tracked.from_currency.ticker, tracked.to_currency.ticker))
        if pair_rates is None:
            return [None] * len(queries)
        index = _slot_index(pd.DatetimeIndex([as_utc_timestamp(date) for _, date in queries]))
        hourly = pair_rates.hourly.reindex(index.floor(GRANULARITY_FREQ[HOURLY])).to_numpy(
            dtype="float64"
        )
        daily = pair_rates.daily.reindex(index.floor(GRANULARITY_FREQ[DAILY])).to_numpy(
            dtype="float64"
        )
        rates = np.where(np.isnan(hourly), daily, hourly)
        if pair_rates.latest is not None:
            reference = as_utc_timestamp(now or state.loaded_at or utc_now())
            recent = np.asarray(index >= reference - LATEST_WINDOW)
            rates = np.where(np.isnan(rates) & recent, pair_rates.latest, rates)

    converted = values * rates * ratio
    return [_round_amount(float(v), disable_rounding) for v in converted]


def calculate(
    state: RateState,
    value: float,
    date: datetime,
    pair: Pair,
    *,
    now: Optional[datetime] = None,
    disable_rounding: bool = False,
) -> Optional[float]:
    return calculate_many(
        state, [(value, date)], pair, now=now, disable_rounding=disable_rounding
    )[0]


__all__ = [
    "HOURLY_WINDOW",
    "LATEST_WINDOW",
    "Pair",
    "PairRates",
    "RateState",
    "TrackingPair",
    "autofill_gaps",
    "calculate",
    "calculate_many",
    "load_countervalues",
    "resolve_tracking_pair",
    "resolve_tracking_pairs",
]
