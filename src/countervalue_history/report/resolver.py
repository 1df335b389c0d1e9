"""Resolve requested tickers into currency definitions."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from countervalue_history.common.logging import log, setup_logger
from countervalue_history.currencies.registry import (
    Currency,
    find_currency_by_ticker,
    list_fiat_currencies,
)

from .options import ReportOptions

DEFAULT_CURRENCY_TICKERS = ("BTC",)
DEFAULT_COUNTERVALUE_TICKERS = ("USD",)


def merge_tickers(
    *,
    ranked: Optional[Sequence[str]] = None,
    explicit: Optional[Sequence[str]] = None,
    default: Sequence[str] = (),
) -> List[str]:
    """Merge ticker sources in a fixed order.

    1. ``ranked`` (market-cap tickers, already truncated to N) come first;
    2. ``explicit`` tickers are appended after them;
    3. ``default`` is used only when neither source was requested at all.

    A requested source that yields nothing does not fall back to ``default``.
    """

    if ranked is None and not explicit:
        return list(default)
    return list(ranked or []) + list(explicit or [])


def lookup_currencies(
    tickers: Iterable[str], logger: Optional[logging.Logger] = None
) -> List[Currency]:
    """Map tickers to currencies, dropping unknown ones and keeping first occurrences."""

    logger = logger or setup_logger("resolver")
    resolved: List[Currency] = []
    seen = set()
    for ticker in tickers:
        currency = find_currency_by_ticker(ticker)
        if currency is None:
            log(logger, logging.WARNING, "currency_not_found", ticker=ticker)
            continue
        if currency.ticker in seen:
            continue
        seen.add(currency.ticker)
        resolved.append(currency)
    return resolved


def resolve_currencies(
    options: ReportOptions,
    fetch_marketcap_tickers: Callable[[], List[str]],
    logger: Optional[logging.Logger] = None,
) -> List[Currency]:
    ranked: Optional[List[str]] = None
    if options.marketcap:
        ranked = list(fetch_marketcap_tickers())[: options.marketcap]
    tickers = merge_tickers(
        ranked=ranked,
        explicit=options.currency,
        default=DEFAULT_CURRENCY_TICKERS,
    )
    return lookup_currencies(tickers, logger)


def resolve_countervalues(
    options: ReportOptions, logger: Optional[logging.Logger] = None
) -> List[Currency]:
    if options.fiats:
        return list_fiat_currencies()
    tickers = merge_tickers(
        explicit=options.countervalue, default=DEFAULT_COUNTERVALUE_TICKERS
    )
    return lookup_currencies(tickers, logger)


__all__ = [
    "DEFAULT_COUNTERVALUE_TICKERS",
    "DEFAULT_CURRENCY_TICKERS",
    "lookup_currencies",
    "merge_tickers",
    "resolve_countervalues",
    "resolve_currencies",
]
