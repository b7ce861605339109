"""Four-point price snapshot: closes now and roughly 1, 2 and 3 months ago."""

import logging
from datetime import date
from typing import Any, Iterable

import httpx
import pandas as pd

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.jquants_fetcher import JQuantsSession, parse_tickers
from rate_spread_monitor.data.jquants_token import JQuantsTokenProvider


logger = logging.getLogger(__name__)

WINDOW_DAYS = 120

# Column -> sessions back from the latest bar (22 sessions ~ one month)
OFFSETS: dict[str, int] = {
    "price_t90": 66,
    "price_t60": 44,
    "price_t30": 22,
    "price_t0": 0,
}

CSV_COLUMNS = ["ticker", *OFFSETS]


def four_points(ticker: str, quotes: pd.DataFrame) -> dict[str, Any]:
    """
    Closes at the fixed offsets; histories shorter than an offset use the
    oldest close, and an empty history gives None for every column.
    """
    closes = quotes["Close"].dropna()
    row: dict[str, Any] = {"ticker": ticker}
    for column, offset in OFFSETS.items():
        if closes.empty:
            row[column] = None
        else:
            row[column] = float(closes.iloc[max(0, len(closes) - 1 - offset)])
    return row


def collect_four_points(
    tickers: str | Iterable[str],
    settings: Settings | None = None,
    token_provider: JQuantsTokenProvider | None = None,
    client: httpx.Client | None = None,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """Snapshot rows for every ticker; any fetch failure aborts the run."""
    codes = parse_tickers(tickers)
    with JQuantsSession(settings, token_provider, client, today) as session:
        rows = [
            four_points(code, session.fetcher(code, WINDOW_DAYS).daily_quotes())
            for code in codes
        ]
    logger.info(f"Four-point snapshot: {len(rows)} tickers")
    return rows


def to_csv(rows: list[dict[str, Any]]) -> str:
    """Rows as CSV text with a header line; missing prices are blank."""
    return pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(index=False, lineterminator="\n")
