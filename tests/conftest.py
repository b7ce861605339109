"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta

import httpx
import pytest

from rate_spread_monitor.config import Settings
from rate_spread_monitor.models import Point, RawSeries


MOF_CSV_DIRECT = """国債金利情報,,,,,,
(単位 : %),,,,,,
基準日,1年,2年,5年,10年,20年,30年
R6.2.26,0.030,0.170,0.370,0.660,1.450,1.780
R6.2.27,0.030,0.170,0.380,0.680,1.460,1.790
R6.2.28,0.040,0.180,0.390,0.700,1.470,1.800
R6.2.29,0.040,0.180,0.380,0.710,1.480,1.810
R6.3.1,0.050,0.190,0.400,0.720,1.500,1.830
"""

CSV_TWO_ROW = """Japanese Government Bond yields
,1Y,2Y,5Y,10Y,20Y
2024/02/28,0.04,0.18,0.39,0.70,1.47
2024/02/29,0.04,0.18,0.38,0.71,1.48
2024/03/01,0.05,0.19,0.40,0.72,1.50
"""

CSV_DATA_INFERENCE = """国債金利情報 令和6年2月
(単位:%),1年,2年,5年,10年,20年
R6.2.28,0.04,0.18,0.39,0.70,1.47
R6.2.29,0.04,0.18,0.38,0.71,1.48
R6.3.1,0.05,0.19,0.40,0.72,1.50
"""


class StubFetcher:
    """SeriesFetcher returning a fixed series or raising a fixed error."""

    def __init__(self, name, source="stub", points=None, error=None):
        self.name = name
        self.source = source
        self.points = points or []
        self.error = error
        self.calls = []
        self.closed = False

    def fetch(self, min_count):
        self.calls.append(min_count)
        if self.error is not None:
            raise self.error
        return RawSeries.build(self.name, self.source, self.points[:min_count], min_count)

    def close(self):
        self.closed = True


class FakeTokenProvider:
    """Token provider handing out a fixed ID token, or raising a fixed error."""

    def __init__(self, error=None):
        self.error = error
        self.closed = False

    def get_token(self):
        if self.error is not None:
            raise self.error
        return "id-token"

    def close(self):
        self.closed = True


def make_points(start: date, values, step_days: int = 1) -> list[Point]:
    """Newest-first points ending at ``start`` going back ``step_days`` each."""
    return [
        Point(start - timedelta(days=i * step_days), float(v))
        for i, v in enumerate(values)
    ]


def quote_records(frame) -> list[dict]:
    """J-Quants daily_quotes records from a date-indexed OHLCV frame."""
    return [
        {"Date": idx.strftime("%Y-%m-%d"), **{k: float(v) for k, v in row.items()}}
        for idx, row in frame.iterrows()
    ]


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        fred_api_key="test-key",
        slack_webhook_url="https://hooks.slack.test/services/T/B/X",
        cron_secret="s3cret",
        jquants_mail="user@example.com",
        jquants_password="pw",
        report_base_url="",
        alert_tickers="7203,6758",
        fetch_window=40,
        min_aligned=6,
        trend_steps=5,
        http_timeout=5.0,
        spread_threshold=0.10,
        fx_return_threshold=0.005,
        futures_delta_threshold=0.25,
    )


@pytest.fixture
def mof_csv_direct() -> str:
    return MOF_CSV_DIRECT


@pytest.fixture
def csv_two_row() -> str:
    return CSV_TWO_ROW


@pytest.fixture
def csv_data_inference() -> str:
    return CSV_DATA_INFERENCE


REPORT_END = date(2024, 3, 1)


def report_sources() -> dict[str, list[Point]]:
    """
    Newest-first points for a yen-strength scenario.

    US has 40 consecutive days; JP shares only every 4th US date (10 in all)
    and pads with 30 older dates. The spread narrows 3bp per common date,
    USD/JPY falls and futures rise.
    """
    us = make_points(REPORT_END, [4.0] * 40)
    us_dates = [p.date for p in us]
    common = [Point(us_dates[4 * k], 1.0 - 0.03 * k) for k in range(10)]
    older = [Point(us_dates[-1] - timedelta(days=i), 0.5) for i in range(1, 31)]
    return {
        "us10y": us,
        "jp10y": common + older,
        "usdjpy": make_points(REPORT_END, [146.0, 147.0, 148.0, 149.0, 149.5, 150.0, 150.2]),
        "futures": make_points(REPORT_END, [111.0, 110.8, 110.6, 110.5, 110.4, 110.5]),
    }


def stub_report_builder(settings, futures=None):
    from rate_spread_monitor.indicators.report import RateSpreadReport

    points = report_sources()
    return RateSpreadReport(
        settings,
        us_fetcher=StubFetcher("us10y", "FRED", points["us10y"]),
        jp_fetcher=StubFetcher("jp10y", "MOF", points["jp10y"]),
        fx_fetcher=StubFetcher("usdjpy", "Yahoo Chart", points["usdjpy"]),
        futures_fetcher=futures or StubFetcher("futures", "Yahoo Chart", points["futures"]),
    )
