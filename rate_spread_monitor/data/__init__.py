"""Series fetchers for the upstream data sources."""

from .base import SeriesFetcher
from .fallback import FallbackFetcher
from .fred_fetcher import FredFetcher
from .jquants_fetcher import JQuantsFetcher, JQuantsSession, parse_tickers
from .jquants_token import JQuantsTokenProvider
from .mof_fetcher import MofCsvFetcher
from .quote_chart_fetcher import QuoteChartFetcher
from .yahoo_fetcher import YahooFetcher

__all__ = [
    "SeriesFetcher",
    "FallbackFetcher",
    "FredFetcher",
    "JQuantsFetcher",
    "JQuantsSession",
    "parse_tickers",
    "JQuantsTokenProvider",
    "MofCsvFetcher",
    "QuoteChartFetcher",
    "YahooFetcher",
]
