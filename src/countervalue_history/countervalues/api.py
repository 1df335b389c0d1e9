"""HTTP client for the countervalues rate service."""

from __future__ import annotations

import os
import random
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from countervalue_history.common.errors import RateLoadError
from countervalue_history.ranges import DAILY, HOURLY, as_utc_timestamp

DEFAULT_BASE_URL = "https://countervalues.live.ledger.com/v2"
REQUEST_TIMEOUT = float(os.getenv("CVH_REQUEST_TIMEOUT", "15"))
USER_AGENT = "Mozilla/5.0 (compatible; countervalue-history/0.1)"

THROTTLE_DISABLED = os.getenv("CVH_DISABLE_THROTTLE", "").lower() in {"1", "true", "yes"}

DATE_KEY_FORMATS = {
    DAILY: "%Y-%m-%d",
    HOURLY: "%Y-%m-%dT%H",
}


def format_date_key(granularity: str, value: datetime) -> str:
    return as_utc_timestamp(value).strftime(DATE_KEY_FORMATS[granularity])


def _respect_retry_after(resp: requests.Response) -> Optional[float]:
    retry_after = resp.headers.get("Retry-After")
    if not retry_after:
        return None
    try:
        return float(retry_after)
    except ValueError:
        return None


def _sleep_exact(seconds: float) -> None:
    if THROTTLE_DISABLED:
        return
    if seconds and seconds > 0:
        time.sleep(seconds)


class RetryPolicy:
    def __init__(
        self,
        retries: int = 3,
        backoff_start: float = 0.6,
        backoff_factor: float = 2.0,
        jitter: float = 0.3,
        status_forcelist: Iterable[int] = (408, 425, 429, 500, 502, 503, 504),
        max_sleep: float = 8.0,
        per_request_timeout: float = REQUEST_TIMEOUT,
        hard_deadline: Optional[float] = 60.0,
    ):
        self.retries = retries
        self.backoff_start = backoff_start
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self.status_forcelist = set(status_forcelist)
        self.max_sleep = max_sleep
        self.per_request_timeout = per_request_timeout
        self.hard_deadline = hard_deadline


RETRY_DEFAULT = RetryPolicy()


def _request_json(
    url: str,
    *,
    method: str = "GET",
    session: Optional[requests.Session] = None,
    params: Optional[Dict[str, Any]] = None,
    json_body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    policy: RetryPolicy = RETRY_DEFAULT,
) -> Any:
    method = method.upper()
    own_session = session or requests.Session()
    close_session = session is None
    hdrs = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        hdrs.update(headers)
    attempt = 0
    delay = policy.backoff_start
    start = time.monotonic()
    try:
        while True:
            attempt += 1
            try:
                resp = own_session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=hdrs,
                    timeout=policy.per_request_timeout,
                )
            except requests.RequestException as exc:
                if attempt > policy.retries:
                    raise RateLoadError(
                        f"request to {url} failed after {attempt - 1} retries: {exc}"
                    ) from exc
                sleep_seconds = min(
                    delay * (1.0 + random.random() * policy.jitter), policy.max_sleep
                )
                if (
                    policy.hard_deadline
                    and (time.monotonic() - start + sleep_seconds)
                    > policy.hard_deadline
                ):
                    raise RateLoadError(f"request to {url} exceeded retry budget") from exc
                _sleep_exact(sleep_seconds)
                delay *= policy.backoff_factor
                continue

            if resp.status_code in policy.status_forcelist and attempt <= policy.retries:
                retry_after = (
                    _respect_retry_after(resp) if resp.status_code == 429 else None
                )
                sleep_seconds = (
                    retry_after
                    if retry_after is not None
                    else min(
                        delay * (1.0 + random.random() * policy.jitter),
                        policy.max_sleep,
                    )
                )
                if not (
                    policy.hard_deadline
                    and (time.monotonic() - start + sleep_seconds)
                    > policy.hard_deadline
                ):
                    _sleep_exact(sleep_seconds)
                    delay *= policy.backoff_factor
                    continue

            try:
                resp.raise_for_status()
            except requests.HTTPError as exc:
                snippet = resp.text[:200] if getattr(resp, "text", None) else str(exc)
                raise RateLoadError(
                    f"HTTP {resp.status_code} from {url}: {snippet}"
                ) from exc

            try:
                return resp.json()
            except ValueError as exc:
                raise RateLoadError(f"invalid JSON payload from {url}") from exc
    finally:
        if close_session:
            own_session.close()


def _safe_float(value: Any) -> Optional[float]:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if result != result:
        return None
    return result


class CountervaluesAPI:
    """Rate service endpoints: historical rates, latest rates, market-cap ranking."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        policy: RetryPolicy = RETRY_DEFAULT,
    ) -> None:
        self.base_url = (
            base_url or os.getenv("CVH_API_BASE_URL") or DEFAULT_BASE_URL
        ).rstrip("/")
        self._session = session
        self.policy = policy

    def _get_json(self, path: str, **kwargs: Any) -> Any:
        return _request_json(
            f"{self.base_url}/{path}",
            session=self._session,
            policy=self.policy,
            **kwargs,
        )

    def fetch_historical(
        self,
        granularity: str,
        from_ticker: str,
        to_ticker: str,
        start: datetime,
    ) -> Dict[str, float]:
        """Return ``{date_key: rate}`` for ``from_ticker`` priced in ``to_ticker``.

        Rates are expressed between major units (1 BTC = N USD).
        """

        payload = self._get_json(
            f"{granularity}/{from_ticker}/{to_ticker}",
            params={"start": format_date_key(granularity, start)},
        )
        if not isinstance(payload, dict):
            raise RateLoadError(
                f"unexpected {granularity} payload for {from_ticker}/{to_ticker}"
            )
        rates: Dict[str, float] = {}
        for key, raw in payload.items():
            rate = _safe_float(raw)
            if rate is not None and rate > 0:
                rates[str(key)] = rate
        return rates

    def fetch_latest(self, pairs: Sequence[Tuple[str, str]]) -> List[Optional[float]]:
        """Return the latest rate of every ``(from, to)`` pair, aligned with input."""

        if not pairs:
            return []
        payload = self._get_json(
            "latest",
            method="POST",
            json_body=[{"from": f, "to": t} for f, t in pairs],
        )
        if not isinstance(payload, list) or len(payload) != len(pairs):
            raise RateLoadError("latest rates payload does not match requested pairs")
        return [_safe_float(item) for item in payload]

    def fetch_marketcap_tickers(self) -> List[str]:
        """Return tickers ordered by market capitalisation, largest first."""

        payload = self._get_json("tickers")
        if not isinstance(payload, list):
            raise RateLoadError("unexpected market-cap payload")
        return [str(item) for item in payload if isinstance(item, str) and item]


__all__ = [
    "CountervaluesAPI",
    "DEFAULT_BASE_URL",
    "RETRY_DEFAULT",
    "RetryPolicy",
    "format_date_key",
]
