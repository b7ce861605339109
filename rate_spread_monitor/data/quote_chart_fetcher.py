"""Yahoo Finance chart API fetcher (FX and futures closes)."""

import logging

import httpx
import pandas as pd

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.base import HttpFetcher
from rate_spread_monitor.errors import RateSpreadError, UpstreamFailureError
from rate_spread_monitor.models import Point, RawSeries
from rate_spread_monitor.parsing import parse_number


logger = logging.getLogger(__name__)


class QuoteChartFetcher(HttpFetcher):
    """
    Fetches daily closes from the chart endpoint.

    With ``optional=True`` any failure, or fewer points than requested,
    yields an empty series instead of an error. Some instruments (notably
    futures) intermittently return no data and should not abort a report.
    """

    BASE_URL = "https://query1.finance.yahoo.com/v8/finance/chart"
    source = "Yahoo Chart"
    HEADERS = {"User-Agent": "Mozilla/5.0 (rate-spread-monitor)"}

    def __init__(
        self,
        symbol: str,
        name: str | None = None,
        optional: bool = False,
        chart_range: str | None = None,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(settings, client)
        self.symbol = symbol
        self.name = name or symbol
        self.optional = optional
        self.chart_range = chart_range or self.settings.chart_range

    def _fetch_chart(self) -> dict:
        response = self._get(
            f"{self.BASE_URL}/{self.symbol}",
            params={"range": self.chart_range, "interval": "1d"},
            headers=self.HEADERS,
        )
        return self._json(response)

    def parse(self, payload: dict, min_count: int) -> RawSeries:
        """Turn parallel timestamp/close arrays into newest-first points."""
        chart = payload.get("chart") or {}
        if not isinstance(chart, dict):
            raise UpstreamFailureError(
                f"Chart API payload for {self.symbol} is malformed: {str(payload)[:200]}"
            )
        results = chart.get("result") or []
        if not isinstance(results, list) or not results:
            error = chart.get("error")
            raise UpstreamFailureError(
                f"Chart API returned no result for {self.symbol}: {str(error)[:200]}"
            )

        result = results[0]
        if not isinstance(result, dict):
            raise UpstreamFailureError(
                f"Chart API result for {self.symbol} is not an object: {str(result)[:200]}"
            )
        timestamps = result.get("timestamp") or []
        try:
            closes = result["indicators"]["quote"][0].get("close") or []
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise UpstreamFailureError(
                f"Chart API payload for {self.symbol} has no close quotes"
            ) from e
        if not isinstance(timestamps, list) or not isinstance(closes, list):
            raise UpstreamFailureError(
                f"Chart API timestamp/close for {self.symbol} are not arrays"
            )
        if len(timestamps) != len(closes):
            raise UpstreamFailureError(
                f"Chart API arrays differ in length for {self.symbol}: "
                f"{len(timestamps)} timestamps vs {len(closes)} closes"
            )

        meta = result.get("meta")
        tz = (meta if isinstance(meta, dict) else {}).get("exchangeTimezoneName") or "UTC"
        try:
            days = pd.to_datetime(timestamps, unit="s", utc=True).tz_convert(tz).date
        except (ValueError, TypeError, KeyError, OverflowError) as e:
            raise UpstreamFailureError(
                f"Chart API timestamps for {self.symbol} are malformed: {str(timestamps)[:200]}"
            ) from e

        # Later bars for the same calendar day replace earlier ones
        by_date = {}
        for day, close in zip(days, closes):
            value = parse_number(close)
            if value is not None and not pd.isna(day):
                by_date[day] = value

        newest_first = sorted(by_date.items(), reverse=True)[:min_count]
        return RawSeries.build(
            self.name,
            self.source,
            (Point(day, value) for day, value in newest_first),
            min_count,
        )

    def fetch(self, min_count: int) -> RawSeries:
        logger.info(f"Fetching {self.symbol} chart ({self.chart_range})...")
        try:
            series = self.parse(self._fetch_chart(), min_count)
        except (RateSpreadError, httpx.HTTPError) as e:
            if not self.optional:
                raise
            logger.warning(f"  {self.symbol}: unavailable, continuing without it ({e})")
            return RawSeries.empty(self.name, self.source)
        logger.info(f"  {self.symbol}: {len(series)} points")
        return series
