"""Chat message formatting and the alert flow."""

import logging
import math
from datetime import datetime
from typing import Any, Callable

from rate_spread_monitor.config import Settings
from rate_spread_monitor.errors import ConfigurationMissingError, RateSpreadError
from rate_spread_monitor.indicators.pullback import screen_pullbacks
from rate_spread_monitor.indicators.report import RateSpreadReport
from rate_spread_monitor.models import Monotonicity, PullbackResult, Report
from rate_spread_monitor.notify.slack import SlackNotifier


logger = logging.getLogger(__name__)

ALERT_CONTEXT = "rate-diff-alerts"

CONSECUTIVE_LABELS = {
    Monotonicity.INCREASING: "5日連続：縮小",
    Monotonicity.DECREASING: "5日連続：拡大",
    Monotonicity.MIXED: "5日連続：混在",
}


def fmt(value: float | None, digits: int = 2) -> str:
    if value is None:
        return "n/a"
    return f"{value:.{digits}f}" if math.isfinite(value) else str(value)


def format_report_message(report: Report, reference_url: str | None = None) -> str:
    """Render the Slack alert for a successful report."""
    us = report.series["us10y"]
    jp = report.series["jp10y"]
    fx = report.series["usdjpy"]
    spread = report.derived
    t_spread = report.trend["spread"]
    t_us = report.trend["us10y"]
    t_jp = report.trend["jp10y"]
    t_fx = report.trend["usdjpy"]
    t_fut = report.trend.get("futures")

    fx_ret = f"{fmt(t_fx.ret * 100)}%" if t_fx is not None and t_fx.ret is not None else "n/a"
    fut_delta = fmt(t_fut.delta, 3) if t_fut is not None else "n/a（データなし）"

    lines = [
        f"{report.marker}【{report.classification.display_label}】日米金利差（10年）",
        "",
        f"US10Y: {fmt(us['value'])}% ({us['date']}) [{us['source']}]",
        f"JP10Y: {fmt(jp['value'])}% ({jp['date']}) [{jp['source']}]",
        f"Spread: {fmt(spread['value'])}%pt",
        "",
        f"📉 {t_spread.steps}営業日トレンド",
        f"Δ{t_spread.steps}: {fmt(t_spread.delta)}%pt / avg: {fmt(t_spread.avg_daily_delta)}%pt/day",
        CONSECUTIVE_LABELS[t_spread.monotonicity],
        f"内訳：US Δ{t_us.steps} {fmt(t_us.delta)} / JP Δ{t_jp.steps} {fmt(t_jp.delta)}",
        f"USDJPY: {fmt(fx.get('value'))} ({fx_ret}) / 先物Δ: {fut_delta}",
    ]
    if reference_url:
        lines += ["", "参照:", reference_url]
    return "\n".join(lines)


def format_failure_message(error: Exception, context: str = "rate-diff") -> str:
    """Render the warning posted when the report could not be computed."""
    kind = getattr(error, "kind", type(error).__name__)
    return "\n".join(
        [
            f"⚠️ 日米金利差レポート取得エラー（{context}）",
            f"kind: {kind}",
            f"message: {str(error)[:500]}",
        ]
    )


def format_test_message(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return "\n".join(
        [
            "✅ Slack送信テスト（rate-spread-monitor）",
            f"時刻: {now.isoformat(timespec='seconds')}",
            "これは疎通確認のテスト投稿です。",
        ]
    )


def send_report_alert(
    settings: Settings,
    notifier: SlackNotifier,
    builder: RateSpreadReport | None = None,
) -> dict[str, Any]:
    """
    Compute the report and post it; on failure post a warning instead.

    Slack delivery problems are logged and returned, never raised.
    """
    reference_url = settings.report_base_url or None
    try:
        builder = builder or RateSpreadReport(settings)
        with builder:
            report = builder.compute()
    except RateSpreadError as e:
        logger.error(f"Report failed, posting warning: {e}")
        result = notifier.post_message(format_failure_message(e, ALERT_CONTEXT))
        return {"ok": False, "sent": result.ok, "error_kind": e.kind, "error": str(e)}
    except Exception as e:
        # Unexpected failures still reach the channel
        logger.exception(f"Report failed unexpectedly, posting warning: {e}")
        result = notifier.post_message(format_failure_message(e, ALERT_CONTEXT))
        return {
            "ok": False,
            "sent": result.ok,
            "error_kind": type(e).__name__,
            "error": str(e),
        }

    result = notifier.post_message(format_report_message(report, reference_url))
    out = {"ok": True, "sent": result.ok, "label": report.classification.display_label}
    if not result.ok:
        out["delivery_error"] = result.error
    return out


def format_buy_alert(buys: list[PullbackResult], reference_url: str | None = None) -> str:
    """Render the BUY-candidate list posted by the pullback alert."""
    lines = ["@here ★★★ MARKET SIGNAL（BUY候補）", ""]
    for r in buys:
        dd = fmt(r.drawdown20 * 100, 1) if r.drawdown20 is not None else "n/a"
        lines.append(
            f"• {r.ticker}  close={fmt(r.close)}  DD20={dd}%  RSI14={fmt(r.rsi14, 1)}"
        )
    if reference_url:
        lines += ["", "確認（BUYだけ表示）:", reference_url]
    return "\n".join(lines)


def send_buy_alert(
    settings: Settings,
    notifier: SlackNotifier,
    tickers: str | None = None,
    screener: Callable[..., list[PullbackResult]] = screen_pullbacks,
) -> dict[str, Any]:
    """
    Screen the alert tickers and post BUY candidates.

    Nothing is posted when there are no candidates.
    """
    tickers = tickers or settings.alert_tickers
    if not tickers or not tickers.strip():
        raise ConfigurationMissingError("ALERT_TICKERS missing")

    buys = [r for r in screener(tickers, settings, only_buy=True) if r.is_buy]
    if not buys:
        logger.info("No BUY candidates, nothing posted")
        return {"ok": True, "sent": False, "count": 0}

    result = notifier.post_message(
        format_buy_alert(buys, settings.report_base_url or None)
    )
    out = {"ok": True, "sent": result.ok, "count": len(buys)}
    if not result.ok:
        out["delivery_error"] = result.error
    return out
