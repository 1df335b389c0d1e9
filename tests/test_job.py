from datetime import datetime, timezone

import pytest

from conftest import NOW, FakeCountervaluesAPI, daily_rates
from countervalue_history.common.errors import ConfigurationError, RateLoadError
from countervalue_history.report.job import countervalues_job
from countervalue_history.report.options import ReportOptions

MARCH_17 = datetime(2024, 3, 17, tzinfo=timezone.utc)


def _run(options, api, **kwargs):
    return list(countervalues_job(options, api=api, now=NOW, **kwargs))


def test_default_month_report_for_btc_usd():
    api = FakeCountervaluesAPI(
        historical={("daily", "BTC", "USD"): daily_rates(MARCH_17, 30, 60001.0)}
    )
    (output,) = _run(ReportOptions(), api)
    lines = output.split("\n")
    assert len(lines) == 30
    assert lines[0] == "BTC➡USD    2024-03-17T00:00:00.000Z 60,001 USD"
    assert lines[-1] == "BTC➡USD    2024-04-15T00:00:00.000Z 60,030 USD"
    start = datetime(2024, 3, 16, tzinfo=timezone.utc)
    assert api.calls == [
        ("historical", "daily", "BTC", "USD", start),
        ("latest", [("BTC", "USD")]),
    ]


def test_stats_report_counts_missing_rates():
    api = FakeCountervaluesAPI(
        historical={
            ("daily", "BTC", "USD"): daily_rates(MARCH_17, 15, 60000.0),
            ("daily", "ETH", "USD"): daily_rates(MARCH_17, 30, 3000.0),
        }
    )
    options = ReportOptions(
        currency=["BTC", "ETH"], format="stats", disable_autofill_gaps=True
    )
    assert _run(options, api) == [
        "BTC to USD   availability=50%",
        "ETH to USD   availability=100%",
        "Total availability: 75%",
    ]


def test_autofill_carries_last_rate_forward():
    api = FakeCountervaluesAPI(
        historical={("daily", "BTC", "USD"): daily_rates(MARCH_17, 15, 60000.0)}
    )
    assert _run(ReportOptions(format="stats"), api) == [
        "BTC to USD   availability=100%",
        "Total availability: 100%",
    ]


@pytest.mark.parametrize(
    "options",
    [ReportOptions(format="bogus"), ReportOptions(period="decade")],
)
def test_invalid_options_fail_before_any_request(options):
    api = FakeCountervaluesAPI()
    with pytest.raises(ConfigurationError):
        countervalues_job(options, api=api, now=NOW)
    assert api.calls == []


def test_latest_mode_yields_single_point_at_now():
    api = FakeCountervaluesAPI(latest={("BTC", "USD"): 65000.5})
    (payload,) = _run(ReportOptions(latest=True, format="json"), api)
    assert payload == [["2024-04-15T12:30:00.000Z", "6500050"]]
    assert api.calls == [("latest", [("BTC", "USD")])]


def test_series_are_aligned_with_dates_for_every_pair():
    api = FakeCountervaluesAPI(
        historical={("daily", "BTC", "EUR"): daily_rates(MARCH_17, 3, 55000.0)}
    )
    options = ReportOptions(
        currency=["BTC", "ETH"], countervalue=["USD", "EUR"], period="week", format="json"
    )
    outputs = _run(options, api)
    assert len(outputs) == 4
    assert all(len(series) == 7 * 24 for series in outputs)
    assert all(value == "0" for _, value in outputs[0])


def test_pairs_sharing_a_tracking_pair_are_loaded_once():
    api = FakeCountervaluesAPI(latest={("MATIC", "USD"): 0.5})
    options = ReportOptions(currency=["MATIC", "POL"], latest=True, format="json")
    outputs = _run(options, api)
    assert outputs == [
        [["2024-04-15T12:30:00.000Z", "50"]],
        [["2024-04-15T12:30:00.000Z", "50"]],
    ]
    assert api.calls == [("latest", [("MATIC", "USD")])]


def test_marketcap_ranking_feeds_currencies():
    api = FakeCountervaluesAPI(tickers=["BTC", "ETH", "XRP"])
    options = ReportOptions(marketcap=2, currency=["DOGE"], latest=True, format="stats")
    outputs = _run(options, api)
    assert [line.split(" ")[0] for line in outputs[:-1]] == ["BTC", "ETH", "DOGE"]
    assert api.calls[0] == ("tickers",)


def test_no_pairs_yields_nothing():
    api = FakeCountervaluesAPI()
    assert _run(ReportOptions(currency=["NOPE"]), api) == []
    assert api.calls == []


def test_verbose_echoes_rate_state_first():
    api = FakeCountervaluesAPI(latest={("BTC", "USD"): 60000.0})
    echoed = []
    outputs = _run(ReportOptions(latest=True, verbose=True), api, echo=echoed.append)
    assert len(echoed) == 1
    assert echoed[0].startswith("RateState pairs=1")
    assert "BTC/USD" in echoed[0]
    assert outputs == ["BTC➡USD    2024-04-15T12:30:00.000Z 60,000 USD"]


def test_rate_load_failure_propagates():
    class FailingAPI(FakeCountervaluesAPI):
        def fetch_latest(self, pairs):
            raise RateLoadError("countervalues service unavailable")

    with pytest.raises(RateLoadError):
        _run(ReportOptions(latest=True), FailingAPI())
