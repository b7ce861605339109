"""Primary/secondary source chain for one semantic series."""

import logging

import httpx

from rate_spread_monitor.data.base import SeriesFetcher
from rate_spread_monitor.errors import RateSpreadError
from rate_spread_monitor.models import RawSeries


logger = logging.getLogger(__name__)


class FallbackFetcher:
    """
    Tries each fetcher in order and returns the first series obtained.

    The returned ``RawSeries.source`` names the fetcher that actually
    supplied the data. If every fetcher fails, the last error is re-raised
    with all attempts listed in its message.
    """

    def __init__(self, *fetchers: SeriesFetcher, name: str | None = None) -> None:
        if not fetchers:
            raise ValueError("FallbackFetcher needs at least one fetcher")
        self.fetchers = fetchers
        self.name = name or fetchers[0].name
        self.source = " -> ".join(f.source for f in fetchers)

    def fetch(self, min_count: int) -> RawSeries:
        failures: list[str] = []
        last_error: Exception | None = None

        for fetcher in self.fetchers:
            try:
                series = fetcher.fetch(min_count)
            except (RateSpreadError, httpx.HTTPError) as e:
                failures.append(f"{fetcher.source}: {e}")
                last_error = e
                logger.warning(f"{self.name}: {fetcher.source} failed, trying next source ({e})")
                continue
            if failures:
                logger.info(f"{self.name}: supplied by fallback source {fetcher.source}")
            return RawSeries(self.name, fetcher.source, series.points)

        summary = "; ".join(failures)
        if isinstance(last_error, RateSpreadError):
            last_error.message = f"{self.name}: all sources failed [{summary}]"
            last_error.args = (last_error.message,)
            last_error.context["attempts"] = failures
            raise last_error
        raise RateSpreadError(
            f"{self.name}: all sources failed [{summary}]",
            context={"attempts": failures},
        ) from last_error

    def close(self) -> None:
        for fetcher in self.fetchers:
            close = getattr(fetcher, "close", None)
            if close is not None:
                close()
