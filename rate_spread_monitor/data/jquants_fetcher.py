"""J-Quants daily quotes fetcher (brokerage data API)."""

import logging
import re
from datetime import date, timedelta
from typing import Iterable

import httpx
import numpy as np
import pandas as pd

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.base import HttpFetcher, check_response
from rate_spread_monitor.data.jquants_token import JQuantsTokenProvider
from rate_spread_monitor.errors import InvalidFormatError, UpstreamFailureError
from rate_spread_monitor.models import Point, RawSeries
from rate_spread_monitor.parsing import parse_calendar_date


logger = logging.getLogger(__name__)

_CODE4 = re.compile(r"\d{4}")

# 400 bodies on limited plans state the covered period as "YYYY-MM-DD ~ YYYY-MM-DD"
_COVERAGE_RANGE = re.compile(r"(\d{4}-\d{2}-\d{2})\s*~\s*(\d{4}-\d{2}-\d{2})")

QUOTE_COLUMNS = ["Close", "High", "Low", "Volume"]


def to_code4(ticker: str) -> str:
    """Extract the 4-digit security code from free text ("7203.T" -> "7203")."""
    m = _CODE4.search(ticker)
    if not m:
        raise InvalidFormatError(f"No 4-digit security code in {ticker!r}", raw=ticker)
    return m.group(0)


def parse_tickers(tickers: str | Iterable[str]) -> list[str]:
    """
    Unique 4-digit codes from a comma-separated string or a list, in order.

    Entries without a code are ignored; an empty result is an error.
    """
    if isinstance(tickers, str):
        tickers = tickers.split(",")
    codes: list[str] = []
    for raw in tickers:
        m = _CODE4.search(raw.strip())
        if m and m.group(0) not in codes:
            codes.append(m.group(0))
    if not codes:
        raise InvalidFormatError(
            "tickers required (comma-separated 4-digit codes)", raw=str(tickers)
        )
    return codes


def quotes_frame(quotes: list[dict]) -> pd.DataFrame:
    """Daily quote records as a date-indexed, ascending numeric frame."""
    if not quotes:
        return pd.DataFrame(columns=QUOTE_COLUMNS, index=pd.DatetimeIndex([], name="Date"))

    df = pd.DataFrame(quotes)
    if "Date" not in df.columns:
        raise UpstreamFailureError("J-Quants quotes lack a Date field")
    try:
        df["Date"] = pd.to_datetime(df["Date"], errors="coerce")
        for col in QUOTE_COLUMNS:
            df[col] = pd.to_numeric(df[col], errors="coerce") if col in df else np.nan
    except (TypeError, ValueError) as e:
        raise UpstreamFailureError(f"J-Quants quotes have malformed fields: {e}") from e

    df = df.dropna(subset=["Date"]).drop_duplicates(subset="Date", keep="last")
    df = df.set_index("Date").sort_index()
    df[QUOTE_COLUMNS] = df[QUOTE_COLUMNS].where(np.isfinite(df[QUOTE_COLUMNS]))
    return df[QUOTE_COLUMNS]


class JQuantsFetcher(HttpFetcher):
    """Daily quotes for one listed company."""

    BASE_URL = "https://api.jquants.com/v1"
    source = "J-Quants"

    def __init__(
        self,
        code: str,
        token_provider: JQuantsTokenProvider | None = None,
        window_days: int = 120,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        today: date | None = None,
    ) -> None:
        super().__init__(settings, client)
        self.code4 = to_code4(code)
        self.name = self.code4
        self._owns_provider = token_provider is None
        self.token_provider = token_provider or JQuantsTokenProvider(self.settings)
        self.window_days = window_days
        self.today = today

    def close(self) -> None:
        super().close()
        if self._owns_provider:
            self.token_provider.close()

    def _daily_quotes(self, code: str, token: str, start: date, end: date) -> httpx.Response:
        try:
            return self.client.get(
                f"{self.BASE_URL}/prices/daily_quotes",
                params={
                    "code": code,
                    "from": start.strftime("%Y%m%d"),
                    "to": end.strftime("%Y%m%d"),
                },
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"J-Quants request failed for {code}: {e}") from e

    def _request(self, token: str, start: date, end: date) -> httpx.Response:
        # 5-digit code (trailing 0) is canonical; some plans only accept 4 digits
        response = self._daily_quotes(self.code4 + "0", token, start, end)
        if response.status_code == 400:
            response = self._daily_quotes(self.code4, token, start, end)
        return response

    def daily_quotes(self) -> pd.DataFrame:
        """
        All quotes in the window, oldest first.

        Returns:
            DataFrame indexed by date with Close/High/Low/Volume columns
            (NaN where a field is missing)
        """
        token = self.token_provider.get_token()
        end = self.today or date.today()
        start = end - timedelta(days=self.window_days)
        logger.info(f"Fetching daily quotes for {self.code4} ({start} - {end})...")

        response = self._request(token, start, end)
        if response.status_code == 400:
            m = _COVERAGE_RANGE.search(response.text)
            if m:
                covered_to = parse_calendar_date(m.group(2))
                end = min(end, covered_to)
                start = end - timedelta(days=self.window_days)
                logger.warning(
                    f"  {self.code4}: plan covers data up to {covered_to}, retrying to {end}"
                )
                response = self._request(token, start, end)
        check_response(response, f"J-Quants prices failed for {self.code4}")

        quotes = self._json(response).get("daily_quotes") or []
        if not isinstance(quotes, list) or not all(isinstance(q, dict) for q in quotes):
            raise UpstreamFailureError(
                f"J-Quants daily_quotes for {self.code4} is not a list of records: "
                f"{str(quotes)[:200]}"
            )
        df = quotes_frame(quotes)
        logger.info(f"  {self.code4}: {len(df)} quotes")
        return df

    def fetch(self, min_count: int) -> RawSeries:
        close = self.daily_quotes()["Close"].dropna()
        close = close.sort_index(ascending=False).head(min_count)
        return RawSeries.build(
            self.name,
            self.source,
            (Point(idx.date(), float(value)) for idx, value in close.items()),
            min_count,
        )


class JQuantsSession:
    """One token provider and one HTTP client shared across several codes."""

    def __init__(
        self,
        settings: Settings | None = None,
        token_provider: JQuantsTokenProvider | None = None,
        client: httpx.Client | None = None,
        today: date | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=self.settings.http_timeout, follow_redirects=True
        )
        self._owns_provider = token_provider is None
        self.token_provider = token_provider or JQuantsTokenProvider(
            self.settings, client=self.client
        )
        self.today = today

    def authenticate(self) -> None:
        """Obtain the ID token up front so credential errors abort the run."""
        self.token_provider.get_token()

    def fetcher(self, code: str, window_days: int) -> JQuantsFetcher:
        return JQuantsFetcher(
            code,
            token_provider=self.token_provider,
            window_days=window_days,
            settings=self.settings,
            client=self.client,
            today=self.today,
        )

    def close(self) -> None:
        if self._owns_provider:
            self.token_provider.close()
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "JQuantsSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()
