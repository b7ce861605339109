"""Command-line entry point."""

import argparse
import json
import logging
import sys

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data import (
    FredFetcher,
    JQuantsFetcher,
    MofCsvFetcher,
    QuoteChartFetcher,
    YahooFetcher,
)
from rate_spread_monitor.errors import RateSpreadError
from rate_spread_monitor.indicators import (
    collect_four_points,
    compute_report_safe,
    screen_pullbacks,
    to_csv,
)
from rate_spread_monitor.notify import (
    SlackNotifier,
    format_test_message,
    send_buy_alert,
    send_report_alert,
)


logger = logging.getLogger(__name__)

SOURCES = ("fred", "mof", "chart", "yahoo", "jquants")


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _make_fetcher(args: argparse.Namespace, settings: Settings):
    if args.source == "fred":
        return FredFetcher(args.series or settings.us_series_id, settings=settings)
    if args.source == "mof":
        return MofCsvFetcher(url=args.series or None, settings=settings)
    if args.source == "chart":
        return QuoteChartFetcher(args.series or settings.fx_symbol, settings=settings)
    if args.source == "yahoo":
        return YahooFetcher(args.series or settings.us_fallback_ticker)
    if not args.series:
        raise SystemExit("--series (4-digit security code) is required for jquants")
    return JQuantsFetcher(args.series, settings=settings)


def cmd_report(args: argparse.Namespace, settings: Settings) -> int:
    result = compute_report_safe(settings)
    _print_json(result)
    return 0 if result.get("ok") else 1


def _authorized(args: argparse.Namespace, settings: Settings) -> bool:
    if settings.cron_secret and args.secret == settings.cron_secret:
        return True
    _print_json({"ok": False, "error": "unauthorized"})
    return False


def cmd_alert(args: argparse.Namespace, settings: Settings) -> int:
    if not _authorized(args, settings):
        return 2

    if args.dry_run:
        result = compute_report_safe(settings)
        _print_json(result)
        return 0 if result.get("ok") else 1

    notifier = SlackNotifier.from_settings(settings)
    try:
        result = send_report_alert(settings, notifier)
    finally:
        notifier.close()
    _print_json(result)
    return 0 if result.get("ok") else 1


def cmd_fetch(args: argparse.Namespace, settings: Settings) -> int:
    fetcher = _make_fetcher(args, settings)
    try:
        series = fetcher.fetch(args.count)
    finally:
        close = getattr(fetcher, "close", None)
        if close is not None:
            close()

    print(f"\n{series.name} [{series.source}] newest first:")
    print("-" * 40)
    for point in series:
        print(f"  {point.date.isoformat()}  {point.value:>10.4f}")
    return 0


def cmd_pullback(args: argparse.Namespace, settings: Settings) -> int:
    results = screen_pullbacks(
        args.tickers, settings, days=args.days, only_buy=args.only_buy
    )
    _print_json({"count": len(results), "results": [r.to_dict() for r in results]})
    return 0


def cmd_fourpoints(args: argparse.Namespace, settings: Settings) -> int:
    print(to_csv(collect_four_points(args.tickers, settings)), end="")
    return 0


def cmd_buy_alert(args: argparse.Namespace, settings: Settings) -> int:
    if not _authorized(args, settings):
        return 2

    notifier = SlackNotifier.from_settings(settings)
    try:
        result = send_buy_alert(settings, notifier, tickers=args.tickers)
    finally:
        notifier.close()
    _print_json(result)
    return 0 if result.get("ok") else 1


def cmd_slack_test(args: argparse.Namespace, settings: Settings) -> int:
    notifier = SlackNotifier.from_settings(settings)
    try:
        result = notifier.post_message(format_test_message())
    finally:
        notifier.close()
    _print_json(
        {"ok": result.ok, "status": result.status_code, "response": result.response}
    )
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rate-spread-monitor",
        description="US/JP 10Y rate spread trend report and alerts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("report", help="Compute the report and print JSON")

    alert = sub.add_parser("alert", help="Compute the report and post it to Slack")
    alert.add_argument("--secret", default="", help="Must match CRON_SECRET")
    alert.add_argument(
        "--dry-run", action="store_true", help="Print the report instead of posting"
    )

    fetch = sub.add_parser("fetch", help="Fetch one series and print it")
    fetch.add_argument("--source", choices=SOURCES, required=True)
    fetch.add_argument(
        "--series",
        type=str,
        help="Series id / URL / symbol / security code, depending on source",
    )
    fetch.add_argument("--count", type=int, default=10, help="Points to print")

    pullback = sub.add_parser("pullback", help="Run the pullback buy screen")
    pullback.add_argument("--tickers", required=True, help="Comma-separated 4-digit codes")
    pullback.add_argument(
        "--days", type=int, default=None, help="History window in days (260-600)"
    )
    pullback.add_argument("--only-buy", action="store_true", help="Show BUY results only")

    fourpoints = sub.add_parser("fourpoints", help="Print t0/t30/t60/t90 closes as CSV")
    fourpoints.add_argument("--tickers", required=True, help="Comma-separated 4-digit codes")

    buy_alert = sub.add_parser("buy-alert", help="Post pullback BUY candidates to Slack")
    buy_alert.add_argument("--secret", default="", help="Must match CRON_SECRET")
    buy_alert.add_argument("--tickers", default=None, help="Overrides ALERT_TICKERS")

    sub.add_parser("slack-test", help="Post a connectivity test message")
    return parser


COMMANDS = {
    "report": cmd_report,
    "alert": cmd_alert,
    "fetch": cmd_fetch,
    "pullback": cmd_pullback,
    "fourpoints": cmd_fourpoints,
    "buy-alert": cmd_buy_alert,
    "slack-test": cmd_slack_test,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = Settings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        return COMMANDS[args.command](args, settings)
    except RateSpreadError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
