"""Tests for Slack delivery and message formatting."""

import json
from datetime import datetime

import httpx
import pytest

from conftest import StubFetcher, mock_client, stub_report_builder
from rate_spread_monitor.errors import ConfigurationMissingError, UpstreamFailureError
from rate_spread_monitor.indicators.report import RateSpreadReport
from rate_spread_monitor.models import PullbackResult, Signal
from rate_spread_monitor.notify import (
    SlackNotifier,
    format_buy_alert,
    format_failure_message,
    format_report_message,
    format_test_message,
    send_buy_alert,
    send_report_alert,
)


WEBHOOK = "https://hooks.slack.test/services/T/B/X"


class RecordingNotifier:
    """Captures posted texts; answers with a fixed status."""

    def __init__(self, status_code=200):
        self.texts = []
        self.status_code = status_code

    def handler(self, request):
        self.texts.append(json.loads(request.content)["text"])
        return httpx.Response(self.status_code, text="ok" if self.status_code == 200 else "no")

    def notifier(self):
        return SlackNotifier(WEBHOOK, client=mock_client(self.handler))


class TestSlackNotifier:
    """Webhook posting."""

    def test_success(self):
        rec = RecordingNotifier()
        result = rec.notifier().post_message("hello")
        assert result.ok
        assert result.status_code == 200
        assert rec.texts == ["hello"]

    def test_non_success_status_is_returned(self):
        rec = RecordingNotifier(status_code=500)
        result = rec.notifier().post_message("hello")
        assert not result.ok
        assert result.status_code == 500
        assert "500" in result.error

    def test_transport_error_is_returned(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = SlackNotifier(WEBHOOK, client=mock_client(handler)).post_message("x")
        assert not result.ok
        assert result.status_code is None
        assert "refused" in result.error

    def test_missing_webhook(self):
        with pytest.raises(ConfigurationMissingError):
            SlackNotifier("")


class TestMessages:
    """Text rendering."""

    def test_report_message(self, settings):
        report = stub_report_builder(settings).compute()
        text = format_report_message(report, "https://example.test/report")
        lines = text.splitlines()
        assert lines[0] == "🟢【円高警戒】日米金利差（10年）"
        assert "US10Y: 4.00% (2024-03-01) [FRED]" in lines
        assert "JP10Y: 1.00% (2024-03-01) [MOF]" in lines
        assert "Spread: 3.00%pt" in lines
        assert "5日連続：縮小" in lines
        assert "Δ5: -0.15%pt / avg: -0.03%pt/day" in lines
        assert lines[-1] == "https://example.test/report"

    def test_report_message_without_url(self, settings):
        report = stub_report_builder(settings).compute()
        assert "参照:" not in format_report_message(report)

    def test_failure_message(self):
        text = format_failure_message(UpstreamFailureError("MOF csv fetch failed: 503"))
        assert "kind: UpstreamFailure" in text
        assert "MOF csv fetch failed: 503" in text

    def test_failure_message_plain_exception(self):
        assert "kind: ValueError" in format_failure_message(ValueError("bad"))

    def test_test_message(self):
        text = format_test_message(datetime(2024, 3, 1, 9, 0, 0))
        assert "2024-03-01T09:00:00" in text


class TestSendReportAlert:
    """Compute-then-post flow."""

    def test_posts_report(self, settings):
        rec = RecordingNotifier()
        out = send_report_alert(settings, rec.notifier(), stub_report_builder(settings))
        assert out == {"ok": True, "sent": True, "label": "円高警戒"}
        assert rec.texts[0].startswith("🟢【円高警戒】")

    def test_posts_warning_on_failure(self, settings):
        builder = RateSpreadReport(
            settings,
            us_fetcher=StubFetcher("us10y", error=UpstreamFailureError("FRED HTTP 503")),
            jp_fetcher=StubFetcher("jp10y"),
            fx_fetcher=StubFetcher("usdjpy"),
            futures_fetcher=StubFetcher("futures"),
        )
        rec = RecordingNotifier()
        out = send_report_alert(settings, rec.notifier(), builder)

        assert out["ok"] is False
        assert out["sent"] is True
        assert out["error_kind"] == "UpstreamFailure"
        assert rec.texts[0].startswith("⚠️")
        assert builder.us_fetcher.closed

    def test_delivery_failure_reported(self, settings):
        rec = RecordingNotifier(status_code=500)
        out = send_report_alert(settings, rec.notifier(), stub_report_builder(settings))
        assert out["ok"] is True
        assert out["sent"] is False
        assert "500" in out["delivery_error"]

    def test_missing_fred_key_posts_warning(self, settings):
        settings.fred_api_key = ""
        rec = RecordingNotifier()
        out = send_report_alert(settings, rec.notifier())
        assert out["error_kind"] == "ConfigurationMissing"
        assert "FRED_API_KEY" in rec.texts[0]

    def test_unexpected_error_posts_warning(self, settings):
        builder = RateSpreadReport(
            settings,
            us_fetcher=StubFetcher("us10y", error=RuntimeError("yfinance exploded")),
            jp_fetcher=StubFetcher("jp10y"),
            fx_fetcher=StubFetcher("usdjpy"),
            futures_fetcher=StubFetcher("futures"),
        )
        rec = RecordingNotifier()
        out = send_report_alert(settings, rec.notifier(), builder)

        assert out == {
            "ok": False,
            "sent": True,
            "error_kind": "RuntimeError",
            "error": "yfinance exploded",
        }
        assert "rate-diff-alerts" in rec.texts[0]
        assert "kind: RuntimeError" in rec.texts[0]
        assert builder.us_fetcher.closed


def buy(ticker, close=3450.0):
    return PullbackResult(
        ticker, signal=Signal.BUY, close=close, rsi14=52.34, drawdown20=-0.0712
    )


class TestBuyAlert:
    """Pullback BUY-candidate alert."""

    def test_format(self):
        text = format_buy_alert([buy("7203")], "https://example.test/screen")
        lines = text.split("\n")
        assert lines[0] == "@here ★★★ MARKET SIGNAL（BUY候補）"
        assert lines[2] == "• 7203  close=3450.00  DD20=-7.1%  RSI14=52.3"
        assert lines[-1] == "https://example.test/screen"

    def test_posts_candidates(self, settings):
        seen = []

        def screener(tickers, settings, only_buy=False):
            seen.append((tickers, only_buy))
            return [buy("7203"), buy("6758", close=12000.0)]

        rec = RecordingNotifier()
        out = send_buy_alert(settings, rec.notifier(), screener=screener)

        assert seen == [("7203,6758", True)]
        assert out == {"ok": True, "sent": True, "count": 2}
        assert "• 6758  close=12000.00" in rec.texts[0]

    def test_nothing_posted_without_candidates(self, settings):
        rec = RecordingNotifier()
        out = send_buy_alert(
            settings, rec.notifier(), screener=lambda *args, **kwargs: []
        )
        assert out == {"ok": True, "sent": False, "count": 0}
        assert rec.texts == []

    def test_tickers_override(self, settings):
        seen = []

        def screener(tickers, settings, only_buy=False):
            seen.append(tickers)
            return []

        send_buy_alert(settings, RecordingNotifier().notifier(), "9984", screener)
        assert seen == ["9984"]

    def test_missing_alert_tickers(self, settings):
        settings.alert_tickers = ""
        with pytest.raises(ConfigurationMissingError):
            send_buy_alert(settings, RecordingNotifier().notifier())

    def test_delivery_failure_reported(self, settings):
        rec = RecordingNotifier(status_code=500)
        out = send_buy_alert(
            settings, rec.notifier(), screener=lambda *args, **kwargs: [buy("7203")]
        )
        assert out["sent"] is False
        assert "500" in out["delivery_error"]
