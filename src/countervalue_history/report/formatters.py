"""Renderers for computed history series."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import asciichartpy

from countervalue_history.common.errors import ConfigurationError
from countervalue_history.currencies.formatting import format_currency_unit, to_decimal
from countervalue_history.currencies.registry import Currency, Unit
from countervalue_history.ranges import as_utc_timestamp

from .history import HistorySeries
from .stats import availability_percent, count_available

CHART_HEIGHT = 10
CHART_LABEL_WIDTH = 20


class HistoryFormat(str, Enum):
    DEFAULT = "default"
    STATS = "stats"
    JSON = "json"
    ASCIICHART = "asciichart"


Formatter = Callable[[HistorySeries, Currency, Currency], Any]


def iso_date(value: datetime) -> str:
    """``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    ts = as_utc_timestamp(value).to_pydatetime()
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_default(
    series: HistorySeries, currency: Currency, countervalue: Currency
) -> str:
    label = f"{currency.ticker}➡{countervalue.ticker}".ljust(10)
    return "\n".join(
        " ".join(
            (
                label,
                iso_date(point.date),
                format_currency_unit(
                    countervalue.main_unit,
                    point.value or 0,
                    show_code=True,
                    disable_rounding=True,
                ),
            )
        )
        for point in series
    )


def format_stats(
    series: HistorySeries, currency: Currency, countervalue: Currency
) -> str:
    percent = availability_percent(count_available(series), len(series))
    label = f"{currency.ticker} to {countervalue.ticker}".ljust(12)
    return f"{label} availability={percent}%"


def format_json(
    series: HistorySeries, currency: Currency, countervalue: Currency
) -> List[List[str]]:
    """Raw balance-history shape: ``[[iso_date, value], ...]``."""

    return [[iso_date(point.date), str(point.value or 0)] for point in series]


class _UnitLabel:
    # asciichartpy renders y labels through ``format(value)``.
    def __init__(self, unit: Unit) -> None:
        self.unit = unit

    def format(self, value: float) -> str:
        amount = to_decimal(value).scaleb(self.unit.magnitude)
        return format_currency_unit(
            self.unit, amount, show_code=True, disable_rounding=True
        ).rjust(CHART_LABEL_WIDTH)


def format_asciichart(
    series: HistorySeries, currency: Currency, countervalue: Currency
) -> str:
    unit = countervalue.main_unit
    values = [float(to_decimal(point.value).scaleb(-unit.magnitude)) for point in series]
    chart = asciichartpy.plot(values, {"height": CHART_HEIGHT, "format": _UnitLabel(unit)})
    header = " " * (CHART_LABEL_WIDTH + 2) + f"{currency.name} to {countervalue.name}"
    return f"\n{header}\n{chart}"


FORMATTERS: Dict[HistoryFormat, Formatter] = {
    HistoryFormat.DEFAULT: format_default,
    HistoryFormat.STATS: format_stats,
    HistoryFormat.JSON: format_json,
    HistoryFormat.ASCIICHART: format_asciichart,
}


def get_formatter(name: Optional[str]) -> Tuple[HistoryFormat, Formatter]:
    """Return the format and renderer registered under ``name`` (default when ``None``)."""

    try:
        history_format = HistoryFormat(name or HistoryFormat.DEFAULT.value)
    except ValueError as exc:
        valid = " | ".join(f.value for f in HistoryFormat)
        raise ConfigurationError(
            f"invalid format {name!r}. valid values are {valid}"
        ) from exc
    return history_format, FORMATTERS[history_format]


__all__ = [
    "FORMATTERS",
    "HistoryFormat",
    "format_asciichart",
    "format_default",
    "format_json",
    "format_stats",
    "get_formatter",
    "iso_date",
]
