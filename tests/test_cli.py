"""Tests for the command-line entry point."""

import json
from datetime import date

from conftest import StubFetcher, make_points
from rate_spread_monitor import cli
from rate_spread_monitor.errors import UpstreamFailureError
from rate_spread_monitor.models import PullbackResult, Signal


def test_alert_rejects_wrong_secret(monkeypatch, capsys):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    assert cli.main(["alert", "--secret", "nope"]) == 2
    assert json.loads(capsys.readouterr().out) == {"ok": False, "error": "unauthorized"}


def test_alert_rejects_when_secret_unset(monkeypatch):
    monkeypatch.setenv("CRON_SECRET", "")
    assert cli.main(["alert", "--secret", ""]) == 2


def test_report_prints_error_body(monkeypatch, capsys):
    body = {"ok": False, "error_kind": "UpstreamFailure", "error": "MOF down"}
    monkeypatch.setattr(cli, "compute_report_safe", lambda settings: body)
    assert cli.main(["report"]) == 1
    assert json.loads(capsys.readouterr().out) == body


def test_alert_dry_run(monkeypatch, capsys):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    monkeypatch.setattr(cli, "compute_report_safe", lambda settings: {"ok": True})
    assert cli.main(["alert", "--secret", "s3cret", "--dry-run"]) == 0


def test_fetch_prints_points(monkeypatch, capsys):
    stub = StubFetcher("us10y", "FRED", make_points(date(2024, 3, 1), [4.21, 4.25, 4.19]))
    monkeypatch.setattr(cli, "FredFetcher", lambda *args, **kwargs: stub)
    assert cli.main(["fetch", "--source", "fred", "--count", "2"]) == 0
    out = capsys.readouterr().out
    assert "2024-03-01" in out
    assert "2024-02-29" in out
    assert "2024-02-28" not in out
    assert stub.closed


def test_invalid_tunables(monkeypatch, capsys):
    monkeypatch.setenv("RSM_MIN_ALIGNED", "3")
    assert cli.main(["report"]) == 1
    assert "Configuration error" in capsys.readouterr().err


def test_pullback_prints_results(monkeypatch, capsys):
    calls = []

    def screen(tickers, settings, days=None, only_buy=False):
        calls.append((tickers, days, only_buy))
        return [
            PullbackResult("7203", signal=Signal.NONE),
            PullbackResult("6758", error="down"),
        ]

    monkeypatch.setattr(cli, "screen_pullbacks", screen)
    assert cli.main(["pullback", "--tickers", "7203,6758", "--days", "300"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert calls == [("7203,6758", 300, False)]
    assert out["count"] == 2
    assert out["results"][0]["signal"] == "NONE"
    assert out["results"][1] == {"ticker": "6758", "error": "down"}


def test_fourpoints_prints_csv(monkeypatch, capsys):
    row = {
        "ticker": "7203",
        "price_t90": 1.0,
        "price_t60": 2.0,
        "price_t30": 3.0,
        "price_t0": 4.0,
    }
    monkeypatch.setattr(cli, "collect_four_points", lambda tickers, settings: [row])
    assert cli.main(["fourpoints", "--tickers", "7203"]) == 0
    assert capsys.readouterr().out == (
        "ticker,price_t90,price_t60,price_t30,price_t0\n7203,1.0,2.0,3.0,4.0\n"
    )


def test_buy_alert_rejects_wrong_secret(monkeypatch, capsys):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    assert cli.main(["buy-alert", "--secret", "nope"]) == 2
    assert json.loads(capsys.readouterr().out) == {"ok": False, "error": "unauthorized"}


def test_buy_alert_posts(monkeypatch, capsys):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.test/services/T/B/X")
    seen = []

    def send(settings, notifier, tickers=None):
        seen.append(tickers)
        return {"ok": True, "sent": False, "count": 0}

    monkeypatch.setattr(cli, "send_buy_alert", send)
    assert cli.main(["buy-alert", "--secret", "s3cret", "--tickers", "9984"]) == 0
    assert seen == ["9984"]
    assert json.loads(capsys.readouterr().out)["count"] == 0


def test_data_errors_are_not_configuration_errors(monkeypatch, capsys):
    def screen(*args, **kwargs):
        raise UpstreamFailureError("J-Quants prices failed for 7203: 500")

    monkeypatch.setattr(cli, "screen_pullbacks", screen)
    assert cli.main(["pullback", "--tickers", "7203"]) == 1
    err = capsys.readouterr().err
    assert "UpstreamFailure" in err
    assert "Configuration error" not in err
