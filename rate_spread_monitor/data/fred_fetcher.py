"""FRED API data fetcher."""

import logging

import httpx
import numpy as np
import pandas as pd

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.base import HttpFetcher
from rate_spread_monitor.errors import UpstreamFailureError
from rate_spread_monitor.models import Point, RawSeries


logger = logging.getLogger(__name__)


class FredFetcher(HttpFetcher):
    """Fetches the most recent observations of one FRED series."""

    BASE_URL = "https://api.stlouisfed.org/fred"
    source = "FRED"

    def __init__(
        self,
        series_id: str = "DGS10",
        name: str = "us10y",
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(settings, client)
        self.settings.validate()
        self.series_id = series_id
        self.name = name

    def _fetch_observations(self) -> pd.DataFrame:
        """
        Fetch the newest ``fred_limit`` observations.

        The window is oversized so that holidays and "." (no data) sentinels
        still leave enough valid points.

        Returns:
            DataFrame with date and value columns, newest first
        """
        response = self._get(
            f"{self.BASE_URL}/series/observations",
            params={
                "series_id": self.series_id,
                "api_key": self.settings.fred_api_key,
                "file_type": "json",
                "sort_order": "desc",
                "limit": self.settings.fred_limit,
            },
        )
        data = self._json(response)

        if "observations" not in data:
            raise UpstreamFailureError(
                f"FRED: no observations in payload for {self.series_id}: "
                f"{str(data)[:200]}"
            )
        observations = data["observations"] or []
        if not isinstance(observations, list) or not all(
            isinstance(obs, dict) for obs in observations
        ):
            raise UpstreamFailureError(
                f"FRED: observations for {self.series_id} are not a list of records: "
                f"{str(observations)[:200]}",
                body=str(observations)[:200],
            )
        if not observations:
            return pd.DataFrame(columns=["date", "value"])

        df = pd.DataFrame(observations)
        if not {"date", "value"}.issubset(df.columns):
            raise UpstreamFailureError(
                f"FRED: observations for {self.series_id} lack date/value fields"
            )
        try:
            df["date"] = pd.to_datetime(df["date"], errors="coerce")
            # "." and other sentinels mean no data, never zero
            df["value"] = pd.to_numeric(df["value"], errors="coerce")
        except (TypeError, ValueError) as e:
            raise UpstreamFailureError(
                f"FRED: observations for {self.series_id} have malformed fields: {e}"
            ) from e
        df = df[["date", "value"]].dropna()
        df = df[np.isfinite(df["value"])]
        df = df.drop_duplicates(subset="date").sort_values("date", ascending=False)
        return df

    def fetch(self, min_count: int) -> RawSeries:
        """Return the newest ``min_count`` valid observations."""
        logger.info(f"Fetching {self.series_id} from FRED...")
        df = self._fetch_observations().head(min_count)
        points = [
            Point(date=row.date.date(), value=float(row.value))
            for row in df.itertuples(index=False)
        ]
        logger.info(f"  {self.series_id}: {len(points)} valid observations")
        return RawSeries.build(
            self.name, self.source, points, min_count
        )
