"""US/JP 10-year spread report: fetch, align, trend, classify."""

import logging
from typing import Any

import httpx

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data import (
    FallbackFetcher,
    FredFetcher,
    MofCsvFetcher,
    QuoteChartFetcher,
    SeriesFetcher,
    YahooFetcher,
)
from rate_spread_monitor.errors import RateSpreadError, UpstreamFailureError
from rate_spread_monitor.indicators.aligner import align
from rate_spread_monitor.indicators.classifier import (
    Thresholds,
    classify,
    classify_extended,
)
from rate_spread_monitor.indicators.trend import trend, trend_return
from rate_spread_monitor.models import AlignedRow, RawSeries, Report


logger = logging.getLogger(__name__)


def _window(rows: list[AlignedRow], pick) -> list[dict[str, Any]]:
    return [{"date": r.date.isoformat(), "value": pick(r)} for r in rows]


def _series_entry(series: RawSeries, series_id: str) -> dict[str, Any]:
    if series.is_empty:
        return {"id": series_id, "source": series.source, "available": False}
    latest = series.points[0]
    return {
        "id": series_id,
        "source": series.source,
        "available": True,
        "date": latest.date.isoformat(),
        "value": latest.value,
        "recent_window": [p.to_dict() for p in series.points],
    }


class RateSpreadReport:
    """
    Builds one ``Report`` per ``compute()`` call.

    Fetchers default to: US 10Y from FRED with Yahoo Finance ^TNX as
    fallback, JP 10Y from MOF jgbcm.csv with jgbcm_all.csv as fallback,
    USD/JPY (required) and Treasury futures (optional) from the chart API.
    Fetches run sequentially.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        us_fetcher: SeriesFetcher | None = None,
        jp_fetcher: SeriesFetcher | None = None,
        fx_fetcher: SeriesFetcher | None = None,
        futures_fetcher: SeriesFetcher | None = None,
    ) -> None:
        self.settings = settings or Settings()
        s = self.settings
        self.us_fetcher = us_fetcher or FallbackFetcher(
            FredFetcher(s.us_series_id, "us10y", settings=s),
            YahooFetcher(s.us_fallback_ticker, "us10y"),
            name="us10y",
        )
        self.jp_fetcher = jp_fetcher or FallbackFetcher(
            MofCsvFetcher(settings=s),
            MofCsvFetcher(
                url=s.mof_fallback_csv_url, source="MOF (jgbcm_all)", settings=s
            ),
            name="jp10y",
        )
        self.fx_fetcher = fx_fetcher or QuoteChartFetcher(
            s.fx_symbol, "usdjpy", settings=s
        )
        self.futures_fetcher = futures_fetcher or QuoteChartFetcher(
            s.futures_symbol, "futures", optional=True, settings=s
        )
        self.thresholds = Thresholds.from_settings(s)

    def close(self) -> None:
        for fetcher in (
            self.us_fetcher,
            self.jp_fetcher,
            self.fx_fetcher,
            self.futures_fetcher,
        ):
            close = getattr(fetcher, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "RateSpreadReport":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def compute(self) -> Report:
        """
        Run the full pipeline.

        Returns:
            Complete report

        Raises:
            RateSpreadError: any fatal failure; no partial report is produced
        """
        s = self.settings
        steps = s.trend_steps
        need = steps + 1

        # Oversized fetch to survive holidays and mismatched calendars
        us = self.us_fetcher.fetch(s.fetch_window)
        jp = self.jp_fetcher.fetch(s.fetch_window)
        aligned = align(us, jp, s.min_aligned)
        head = aligned[:need]

        t_spread = trend([r.derived for r in head], steps)
        t_us = trend([r.a for r in head], steps)
        t_jp = trend([r.b for r in head], steps)

        fx = self.fx_fetcher.fetch(need)
        t_fx = trend_return(fx.values, steps)

        futures = self.futures_fetcher.fetch(need)
        t_futures = None if futures.is_empty else trend(futures.values[:need], steps)

        classification = classify_extended(t_spread, t_fx, t_futures, self.thresholds)
        spread_only = classify(t_spread.delta, t_spread.monotonicity, self.thresholds.spread)
        logger.info(
            f"Spread {t_spread.latest:.3f} (delta {t_spread.delta:+.3f}, "
            f"{t_spread.monotonicity.value}) -> {classification.display_label}"
        )

        latest = aligned[0]
        series = {
            "us10y": {
                "id": s.us_series_id,
                "source": us.source,
                "date": latest.date.isoformat(),
                "value": latest.a,
                "recent_window": _window(aligned, lambda r: r.a),
            },
            "jp10y": {
                "id": "MOF_JP10Y",
                "source": jp.source,
                "date": latest.date.isoformat(),
                "value": latest.b,
                "recent_window": _window(aligned, lambda r: r.b),
            },
            "usdjpy": _series_entry(fx, s.fx_symbol),
            "futures": _series_entry(futures, s.futures_symbol),
        }
        derived = {
            "name": "spread10y",
            "date": latest.date.isoformat(),
            "value": latest.derived,
            "unit": "pct_points",
            "recent_window": _window(aligned, lambda r: r.derived),
        }
        notes = {
            "jp_source": f"{jp.source}: header row auto-detected (title/unit lines skipped).",
            "alignment": "US & JP aligned by common dates before computing the trend.",
        }
        if t_futures is None:
            notes["futures"] = f"{s.futures_symbol} unavailable; label has reduced confidence."

        return Report(
            series=series,
            derived=derived,
            trend={
                "spread": t_spread,
                "us10y": t_us,
                "jp10y": t_jp,
                "usdjpy": t_fx,
                "futures": t_futures,
            },
            classification=classification,
            spread_classification=spread_only,
            notes=notes,
        )


def compute_report(settings: Settings | None = None) -> Report:
    """Compute the spread report with the default sources."""
    with RateSpreadReport(settings) as builder:
        return builder.compute()


def compute_report_safe(settings: Settings | None = None) -> dict[str, Any]:
    """``compute_report`` as a JSON-ready dict; failures become an error body."""
    try:
        return compute_report(settings).to_dict()
    except RateSpreadError as e:
        logger.error(f"Report failed ({e.kind}): {e}")
        return e.to_dict()
    except httpx.HTTPError as e:
        logger.error(f"Report failed (HTTP): {e}")
        return UpstreamFailureError(f"HTTP error: {e}").to_dict()
