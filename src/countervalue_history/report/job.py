"""Countervalues report job: resolve, load once, then emit one item per pair."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from countervalue_history.common.logging import log, setup_logger
from countervalue_history.countervalues.api import CountervaluesAPI
from countervalue_history.countervalues.logic import load_countervalues, resolve_tracking_pairs
from countervalue_history.ranges import utc_now

from .formatters import Formatter, HistoryFormat, get_formatter
from .history import compute_history
from .options import DEFAULT_PERIOD, ReportOptions
from .pairs import (
    as_portfolio_range,
    build_dates,
    build_pairs,
    build_tracking_pairs,
    tracking_start_date,
)
from .resolver import resolve_countervalues, resolve_currencies
from .stats import StatsAccumulator


def countervalues_job(
    options: ReportOptions,
    *,
    api: Optional[CountervaluesAPI] = None,
    now: Optional[datetime] = None,
    echo: Callable[[str], None] = print,
) -> Iterator[Any]:
    """Validate ``options`` and return the stream of report items.

    Format and period are checked here, before any network call, and raise
    ``ConfigurationError``. Everything else runs lazily as the stream is consumed.
    """

    history_format, formatter = get_formatter(options.format)
    range_name = as_portfolio_range(options.period or DEFAULT_PERIOD)
    return _emit(
        options,
        history_format,
        formatter,
        range_name,
        api=api or CountervaluesAPI(),
        now=now,
        echo=echo,
    )


def _emit(
    options: ReportOptions,
    history_format: HistoryFormat,
    formatter: Formatter,
    range_name: str,
    *,
    api: CountervaluesAPI,
    now: Optional[datetime],
    echo: Callable[[str], None],
) -> Iterator[Any]:
    logger = setup_logger("job", format=history_format.value, period=range_name)
    now = now or utc_now()

    currencies = resolve_currencies(options, api.fetch_marketcap_tickers, logger)
    countervalues = resolve_countervalues(options, logger)
    pairs = build_pairs(currencies, countervalues)
    if not pairs:
        log(
            logger,
            logging.WARNING,
            "job_no_pairs",
            currencies=len(currencies),
            countervalues=len(countervalues),
        )
        return

    dates = build_dates(range_name, latest=options.latest, now=now)
    start_date = tracking_start_date(dates, latest=options.latest)
    tracking_pairs = resolve_tracking_pairs(build_tracking_pairs(pairs, start_date))
    log(
        logger,
        logging.INFO,
        "job_resolved",
        pairs=len(pairs),
        tracking_pairs=len(tracking_pairs),
        dates=len(dates),
        latest=options.latest,
    )

    state = load_countervalues(
        tracking_pairs,
        autofill_gaps_enabled=not options.disable_autofill_gaps,
        api=api,
        now=now,
        logger=logger,
    )
    if options.verbose:
        echo(state.describe())

    stats = StatsAccumulator()
    for pair in pairs:
        series = compute_history(state, pair, dates, now=now)
        stats.add(series)
        yield formatter(series, pair.from_currency, pair.to_currency)

    if history_format is HistoryFormat.STATS and stats.total:
        yield stats.line()

    log(
        logger,
        logging.INFO,
        "job_complete",
        pairs=len(pairs),
        available=stats.available,
        total=stats.total,
    )


__all__ = ["countervalues_job"]
