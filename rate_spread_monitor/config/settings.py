"""Configuration settings for the rate spread monitor."""

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from rate_spread_monitor.errors import ConfigurationMissingError


load_dotenv()


# Japanese era letter -> year offset (era year N is Gregorian offset + N)
ERA_YEAR_OFFSETS: dict[str, int] = {
    "S": 1925,  # Showa
    "H": 1988,  # Heisei
    "R": 2018,  # Reiwa
}

# Report series keys and display names
SERIES_LABELS: dict[str, str] = {
    "us10y": "US 10-Year Treasury Yield",
    "jp10y": "JGB 10-Year Yield",
    "spread10y": "US-JP 10Y Spread",
    "usdjpy": "USD/JPY",
    "futures": "10-Year T-Note Futures",
}

MOF_JGBCM_CSV = "https://www.mof.go.jp/jgbs/reference/interest_rate/jgbcm.csv"
MOF_JGBCM_ALL_CSV = (
    "https://www.mof.go.jp/jgbs/reference/interest_rate/data/jgbcm_all.csv"
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    return int(raw) if raw.strip() else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    return float(raw) if raw.strip() else default


@dataclass
class Settings:
    """Application settings."""

    fred_api_key: str = field(default_factory=lambda: os.getenv("FRED_API_KEY", ""))
    slack_webhook_url: str = field(
        default_factory=lambda: os.getenv("SLACK_WEBHOOK_URL", "")
    )
    cron_secret: str = field(default_factory=lambda: os.getenv("CRON_SECRET", ""))
    jquants_mail: str = field(default_factory=lambda: os.getenv("JQ_MAIL", ""))
    jquants_password: str = field(default_factory=lambda: os.getenv("JQ_PASS", ""))
    report_base_url: str = field(
        default_factory=lambda: os.getenv("REPORT_BASE_URL", "")
    )
    # Comma-separated 4-digit codes for the pullback buy alert
    alert_tickers: str = field(default_factory=lambda: os.getenv("ALERT_TICKERS", ""))

    # Fetch & trend tunables
    fetch_window: int = field(default_factory=lambda: _env_int("RSM_FETCH_WINDOW", 40))
    min_aligned: int = field(default_factory=lambda: _env_int("RSM_MIN_ALIGNED", 6))
    trend_steps: int = field(default_factory=lambda: _env_int("RSM_TREND_STEPS", 5))
    fred_limit: int = 120
    chart_range: str = "3mo"
    http_timeout: float = field(
        default_factory=lambda: _env_float("RSM_HTTP_TIMEOUT", 30.0)
    )

    # Classification thresholds
    spread_threshold: float = field(
        default_factory=lambda: _env_float("RSM_SPREAD_THRESHOLD", 0.10)
    )
    fx_return_threshold: float = field(
        default_factory=lambda: _env_float("RSM_FX_RETURN_THRESHOLD", 0.005)
    )
    futures_delta_threshold: float = field(
        default_factory=lambda: _env_float("RSM_FUTURES_DELTA_THRESHOLD", 0.25)
    )

    # Series identifiers
    us_series_id: str = "DGS10"
    us_fallback_ticker: str = "^TNX"
    fx_symbol: str = "JPY=X"
    futures_symbol: str = "ZN=F"
    mof_csv_url: str = MOF_JGBCM_CSV
    mof_fallback_csv_url: str = MOF_JGBCM_ALL_CSV

    def __post_init__(self) -> None:
        if self.min_aligned < self.trend_steps + 1:
            raise ValueError(
                f"min_aligned ({self.min_aligned}) must be at least "
                f"trend_steps + 1 ({self.trend_steps + 1})"
            )
        if self.fetch_window < self.min_aligned:
            raise ValueError(
                f"fetch_window ({self.fetch_window}) must be at least "
                f"min_aligned ({self.min_aligned})"
            )

    def validate(self) -> None:
        """Validate required settings."""
        if not self.fred_api_key:
            raise ConfigurationMissingError(
                "FRED_API_KEY not set. Get one at: "
                "https://fred.stlouisfed.org/docs/api/api_key.html"
            )

    def has_slack(self) -> bool:
        """Check if a Slack webhook is configured."""
        return bool(self.slack_webhook_url)

    def has_alert_tickers(self) -> bool:
        return bool(self.alert_tickers.strip())

    def has_jquants(self) -> bool:
        """Check if J-Quants credentials are configured."""
        return bool(self.jquants_mail and self.jquants_password)
