"""Countervalue history report: option merge, pair building, formatters, job."""

from .formatters import HistoryFormat, get_formatter
from .history import HistoryPoint, compute_history
from .job import countervalues_job
from .options import ReportOptions, load_config, merge_options

__all__ = [
    "HistoryFormat",
    "HistoryPoint",
    "ReportOptions",
    "compute_history",
    "countervalues_job",
    "get_formatter",
    "load_config",
    "merge_options",
]
