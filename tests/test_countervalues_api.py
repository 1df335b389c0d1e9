import json
from datetime import datetime, timezone

import pytest
import requests

from countervalue_history.common.errors import RateLoadError
from countervalue_history.countervalues import api as cv_api
from countervalue_history.countervalues.api import CountervaluesAPI, RetryPolicy, format_date_key

BASE = "https://rates.example.test/v2"


class _DummyResponse:
    def __init__(self, payload: object, status_code: int = 200, headers: dict | None = None) -> None:
        self.text = json.dumps(payload)
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self) -> None:  # noqa: D401 - test helper
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self) -> object:
        return json.loads(self.text)


class _DummySession:
    def __init__(self, responses: list) -> None:
        self._responses = list(responses)
        self.requests: list[dict] = []

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):  # noqa: ANN001
        self.requests.append({"method": method, "url": url, "params": params, "json": json})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        return None


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> list:
    slept: list = []
    monkeypatch.setattr(cv_api, "_sleep_exact", slept.append)
    return slept


def _client(responses: list, **kwargs) -> tuple[CountervaluesAPI, _DummySession]:
    session = _DummySession(responses)
    return CountervaluesAPI(BASE, session=session, **kwargs), session


def test_format_date_key():
    moment = datetime(2024, 4, 15, 7, 45, tzinfo=timezone.utc)
    assert format_date_key("daily", moment) == "2024-04-15"
    assert format_date_key("hourly", moment) == "2024-04-15T07"


def test_fetch_historical_builds_url_and_filters_values():
    client, session = _client(
        [_DummyResponse({"2024-04-14": 65000.5, "2024-04-15": "66000", "latest": None, "bad": "x"})]
    )
    rates = client.fetch_historical(
        "daily", "BTC", "USD", datetime(2024, 4, 1, tzinfo=timezone.utc)
    )
    assert rates == {"2024-04-14": 65000.5, "2024-04-15": 66000.0}
    sent = session.requests[0]
    assert sent["method"] == "GET"
    assert sent["url"] == f"{BASE}/daily/BTC/USD"
    assert sent["params"] == {"start": "2024-04-01"}


def test_fetch_latest_posts_pairs_and_aligns_results():
    client, session = _client([_DummyResponse([65000.5, None])])
    assert client.fetch_latest([("BTC", "USD"), ("ETH", "EUR")]) == [65000.5, None]
    assert session.requests[0]["method"] == "POST"
    assert session.requests[0]["json"] == [
        {"from": "BTC", "to": "USD"},
        {"from": "ETH", "to": "EUR"},
    ]


def test_fetch_latest_without_pairs_skips_request():
    client, session = _client([])
    assert client.fetch_latest([]) == []
    assert session.requests == []


def test_fetch_latest_rejects_misaligned_payload():
    client, _ = _client([_DummyResponse([1.0])])
    with pytest.raises(RateLoadError):
        client.fetch_latest([("BTC", "USD"), ("ETH", "USD")])


def test_fetch_marketcap_tickers():
    client, session = _client([_DummyResponse(["BTC", "ETH", 3, "XRP"])])
    assert client.fetch_marketcap_tickers() == ["BTC", "ETH", "XRP"]
    assert session.requests[0]["url"] == f"{BASE}/tickers"


def test_retries_transient_status_then_succeeds(_no_sleep):
    client, session = _client(
        [
            _DummyResponse({}, status_code=503),
            _DummyResponse({}, status_code=429, headers={"Retry-After": "2"}),
            _DummyResponse(["BTC"]),
        ]
    )
    assert client.fetch_marketcap_tickers() == ["BTC"]
    assert len(session.requests) == 3
    assert _no_sleep[-1] == 2.0


def test_retries_network_errors_until_budget_exhausted():
    client, session = _client(
        [requests.ConnectionError("down")] * 3,
        policy=RetryPolicy(retries=2),
    )
    with pytest.raises(RateLoadError):
        client.fetch_marketcap_tickers()
    assert len(session.requests) == 3


def test_client_error_is_not_retried():
    client, session = _client([_DummyResponse({"error": "not found"}, status_code=404)])
    with pytest.raises(RateLoadError, match="HTTP 404"):
        client.fetch_historical("daily", "BTC", "XXX", datetime(2024, 4, 1, tzinfo=timezone.utc))
    assert len(session.requests) == 1


def test_base_url_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CVH_API_BASE_URL", "https://other.example.test/api/")
    assert CountervaluesAPI().base_url == "https://other.example.test/api"
