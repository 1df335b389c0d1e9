import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

os.environ.setdefault("CVH_DISABLE_THROTTLE", "1")
os.environ.setdefault("CVH_RUN_ID", "test-run")

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from countervalue_history.common.logging import JsonFormatter  # noqa: E402

NOW = datetime(2024, 4, 15, 12, 30, tzinfo=timezone.utc)


def daily_rates(start: datetime, days: int, base: float, step: float = 1.0) -> Dict[str, float]:
    """Daily ``{YYYY-MM-DD: rate}`` map starting at ``start``."""

    return {
        (start + timedelta(days=i)).strftime("%Y-%m-%d"): base + step * i
        for i in range(days)
    }


class FakeCountervaluesAPI:
    """In-memory stand-in for ``CountervaluesAPI`` that records every call."""

    def __init__(
        self,
        historical: Optional[Dict[Tuple[str, str, str], Dict[str, float]]] = None,
        latest: Optional[Dict[Tuple[str, str], float]] = None,
        tickers: Optional[List[str]] = None,
    ) -> None:
        self.historical = historical or {}
        self.latest = latest or {}
        self.tickers = tickers or []
        self.calls: List[tuple] = []

    def fetch_historical(self, granularity, from_ticker, to_ticker, start):
        self.calls.append(("historical", granularity, from_ticker, to_ticker, start))
        return dict(self.historical.get((granularity, from_ticker, to_ticker), {}))

    def fetch_latest(self, pairs):
        self.calls.append(("latest", list(pairs)))
        return [self.latest.get(tuple(pair)) for pair in pairs]

    def fetch_marketcap_tickers(self):
        self.calls.append(("tickers",))
        return list(self.tickers)


@pytest.fixture(autouse=True)
def _reset_loggers():
    yield
    for name, logger in list(logging.root.manager.loggerDict.items()):
        if name.startswith("countervalue_history.") and isinstance(logger, logging.Logger):
            for handler in list(logger.handlers):
                if isinstance(handler.formatter, JsonFormatter):
                    logger.removeHandler(handler)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def fake_api_factory():
    return FakeCountervaluesAPI
