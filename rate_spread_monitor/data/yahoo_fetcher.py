"""Yahoo Finance fetcher via yfinance, used as a secondary source."""

import logging

import numpy as np
import pandas as pd
import yfinance as yf

from rate_spread_monitor.errors import UpstreamFailureError
from rate_spread_monitor.models import Point, RawSeries


logger = logging.getLogger(__name__)


class YahooFetcher:
    """Daily closes for one ticker, e.g. ^TNX (10Y Treasury yield in %)."""

    source = "Yahoo Finance"

    def __init__(self, ticker: str = "^TNX", name: str = "us10y", period: str = "3mo") -> None:
        self.ticker = ticker
        self.name = name
        self.period = period

    def _download_close(self) -> pd.Series:
        data = yf.download(
            self.ticker,
            period=self.period,
            progress=False,
            auto_adjust=True,
        )
        if data is None or data.empty or "Close" not in data:
            raise UpstreamFailureError(f"Yahoo Finance returned no data for {self.ticker}")

        close = data["Close"]
        # Recent yfinance versions return ticker-level columns even for one ticker
        if isinstance(close, pd.DataFrame):
            close = close.iloc[:, 0]
        close = close.dropna()
        return close[np.isfinite(close.astype(float))]

    def fetch(self, min_count: int) -> RawSeries:
        logger.info(f"Downloading {self.ticker} from Yahoo Finance...")
        close = self._download_close()
        close.index = pd.to_datetime(close.index)
        close = close[~close.index.normalize().duplicated(keep="last")]
        close = close.sort_index(ascending=False).head(min_count)

        points = [
            Point(date=idx.date(), value=float(val)) for idx, val in close.items()
        ]
        logger.info(f"  {self.ticker}: {len(points)} observations")
        return RawSeries.build(self.name, self.source, points, min_count)
