"""Pullback screen: buy a dip inside an established uptrend.

A security is a BUY candidate when three conditions hold on the latest bar:

- regime: SMA50 > SMA200, close > SMA200, and SMA200 higher than 20 sessions ago
- dip zone, at least two of: close within 2% of SMA50, close 6% or more
  below the 20-day high, or the gap to that high is at least 1.2 x ATR14
- rebound: close above the prior high, volume at least 1.2 x its 20-day
  average, RSI14 >= 45 and rising
"""

import logging
import math
from datetime import date
from typing import Iterable

import httpx
import pandas as pd

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.jquants_fetcher import JQuantsSession, parse_tickers
from rate_spread_monitor.data.jquants_token import JQuantsTokenProvider
from rate_spread_monitor.errors import ConfigurationMissingError, RateSpreadError
from rate_spread_monitor.models import PullbackResult, Signal


logger = logging.getLogger(__name__)

# SMA200 twenty sessions back needs ~220 bars; 260 calendar days is the floor
MIN_DAYS = 260
MAX_DAYS = 600
DEFAULT_DAYS = 450

MIN_CLOSES = 210
MIN_VOLUMES = 30


def clamp_days(days: int | None) -> int:
    return max(MIN_DAYS, min(MAX_DAYS, days or DEFAULT_DAYS))


def _value(x: float) -> float | None:
    x = float(x)
    return x if math.isfinite(x) else None


def sma(values: pd.Series, window: int) -> float | None:
    """Simple moving average of the last ``window`` values."""
    if len(values) < window:
        return None
    return _value(values.rolling(window=window).mean().iloc[-1])


def rsi(close: pd.Series, window: int = 14) -> float | None:
    """
    RSI from plain averages of the last ``window`` gains and losses.

    Returns 100 when there were no losses in the window.
    """
    if len(close) < window + 1:
        return None
    changes = close.diff().iloc[-window:]
    avg_gain = changes.clip(lower=0).sum() / window
    avg_loss = -changes.clip(upper=0).sum() / window
    if avg_loss == 0:
        return 100.0
    return float(100 - 100 / (1 + avg_gain / avg_loss))


def atr(high: pd.Series, low: pd.Series, close: pd.Series, window: int = 14) -> float | None:
    """Average true range over the last ``window`` bars."""
    if len(close) < window + 1:
        return None
    prev_close = close.shift(1)
    true_range = pd.concat(
        [high - low, (high - prev_close).abs(), (low - prev_close).abs()], axis=1
    ).max(axis=1).iloc[1:]
    return _value(true_range.iloc[-window:].mean())


def evaluate(ticker: str, quotes: pd.DataFrame) -> PullbackResult:
    """
    Score one security.

    Args:
        ticker: 4-digit code
        quotes: Date-indexed Close/High/Low/Volume frame, oldest first

    Returns:
        Result with indicators and signal, or an error for short histories
    """
    bars = quotes.dropna(subset=["Close", "High", "Low"])
    volume = quotes["Volume"].dropna()
    if len(bars) < MIN_CLOSES or len(volume) < MIN_VOLUMES:
        return PullbackResult(ticker, error="insufficient history")

    close, high, low = bars["Close"], bars["High"], bars["Low"]
    c0 = float(close.iloc[-1])
    prior_high = float(high.iloc[-2])

    sma50 = sma(close, 50)
    sma200 = sma(close, 200)
    sma200_prior = _value(close.rolling(window=200).mean().iloc[-21])
    rsi14 = rsi(close, 14)
    rsi14_prior = rsi(close.iloc[:-1], 14)
    atr14 = atr(high, low, close, 14)
    vol20 = sma(volume, 20)
    vol0 = float(volume.iloc[-1])

    regime = (
        sma50 is not None
        and sma200 is not None
        and sma200_prior is not None
        and sma50 > sma200
        and c0 > sma200
        and sma200 > sma200_prior
    )

    high20 = float(high.iloc[-20:].max())
    drawdown = c0 / high20 - 1
    dip_hits = [
        bool(sma50) and abs(c0 - sma50) / sma50 <= 0.02,
        drawdown <= -0.06,
        bool(atr14) and (high20 - c0) >= 1.2 * atr14,
    ]
    dip = sum(dip_hits) >= 2

    confirm = (
        c0 > prior_high
        and bool(vol20)
        and vol0 >= 1.2 * vol20
        and bool(rsi14)
        and rsi14 >= 45
        and rsi14 > (rsi14_prior or 0)
    )

    return PullbackResult(
        ticker=ticker,
        signal=Signal.BUY if regime and dip and confirm else Signal.NONE,
        as_of=bars.index[-1].date(),
        close=c0,
        sma50=sma50,
        sma200=sma200,
        rsi14=rsi14,
        atr14=atr14,
        volume=vol0,
        volume20=vol20,
        drawdown20=drawdown,
    )


def screen_pullbacks(
    tickers: str | Iterable[str],
    settings: Settings | None = None,
    days: int | None = None,
    only_buy: bool = False,
    token_provider: JQuantsTokenProvider | None = None,
    client: httpx.Client | None = None,
    today: date | None = None,
) -> list[PullbackResult]:
    """
    Run the screen over every ticker.

    A failure for one ticker is recorded in its result and the screen moves
    on; authentication failures abort the whole run.
    """
    codes = parse_tickers(tickers)
    window = clamp_days(days)
    results: list[PullbackResult] = []

    with JQuantsSession(settings, token_provider, client, today) as session:
        session.authenticate()
        for code in codes:
            try:
                quotes = session.fetcher(code, window).daily_quotes()
            except ConfigurationMissingError:
                raise
            except RateSpreadError as e:
                logger.warning(f"  {code}: skipped ({e})")
                results.append(PullbackResult(code, error=str(e)))
                continue
            results.append(evaluate(code, quotes))

    buys = sum(r.is_buy for r in results)
    logger.info(f"Pullback screen: {len(results)} tickers, {buys} BUY")
    if only_buy:
        return [r for r in results if r.is_buy]
    return results
