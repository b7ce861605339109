"""Ministry of Finance JGB yield-curve CSV fetcher.

jgbcm.csv is Shift-JIS (cp932), starts with a title and a unit line, and
uses era dates such as ``R6.3.1`` in the first column. Rows are in
ascending date order, so the newest points are read from the bottom up.
"""

import logging
import re
from datetime import date

import httpx

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.base import HttpFetcher
from rate_spread_monitor.errors import (
    InsufficientPointsError,
    InvalidFormatError,
    UpstreamFailureError,
)
from rate_spread_monitor.models import HeaderLocation, Point, RawSeries
from rate_spread_monitor.parsing import (
    TENOR_10Y_PATTERNS,
    locate_header,
    parse_calendar_date,
    parse_number,
    split_lines,
    split_row,
)


logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"


def decode_csv(content: bytes) -> str:
    """Decode as cp932 (Shift-JIS superset), falling back to UTF-8."""
    if content.startswith(UTF8_BOM):
        return content.decode("utf-8-sig", errors="replace")
    try:
        return content.decode("cp932")
    except UnicodeDecodeError:
        logger.warning("MOF CSV is not valid Shift-JIS, decoding as UTF-8")
        return content.decode("utf-8", errors="replace")


class MofCsvFetcher(HttpFetcher):
    """Reads one tenor column from a MOF yield-curve CSV."""

    source = "MOF"

    def __init__(
        self,
        url: str | None = None,
        name: str = "jp10y",
        target_patterns: list[re.Pattern] | None = None,
        column_index: int | None = None,
        source: str = "MOF",
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Args:
            url: CSV endpoint, defaults to ``settings.mof_csv_url``
            name: Series name used in results and diagnostics
            target_patterns: Header patterns for the target column
            column_index: Read this fixed column instead of locating the
                header by name (date is then column 0)
            source: Source label recorded on the returned series
        """
        super().__init__(settings, client)
        self.url = url or self.settings.mof_csv_url
        self.name = name
        self.target_patterns = target_patterns or TENOR_10Y_PATTERNS
        self.column_index = column_index
        self.source = source

    def _download_text(self) -> str:
        response = self._get(self.url)
        return decode_csv(response.content)

    def _locate(self, lines: list[str]) -> HeaderLocation:
        if self.column_index is None:
            return locate_header(lines, self.target_patterns)
        # Fixed-column mode: data starts after the last non-data line
        header_idx = -1
        for i, line in enumerate(lines):
            cells = split_row(line)
            if cells and _is_date(cells[0]):
                break
            header_idx = i
        cells = tuple(split_row(lines[header_idx])) if header_idx >= 0 else ()
        width = max(len(cells), self.column_index + 1)
        cells = cells + ("",) * (width - len(cells))
        return HeaderLocation(header_idx, cells, 0, self.column_index, "fixed_column")

    def parse(self, text: str, min_count: int) -> RawSeries:
        """
        Parse CSV text into the newest ``min_count`` points.

        Raises:
            UpstreamFailureError: too few lines to contain data
            HeaderNotFoundError: header could not be located
            InsufficientPointsError: fewer valid rows than requested
        """
        lines = split_lines(text)
        if len(lines) < 3:
            raise UpstreamFailureError(
                f"MOF CSV: too few lines ({len(lines)}) at {self.url}"
            )

        location = self._locate(lines)
        date_idx = location.date_column_index
        target_idx = location.target_column_index
        data_lines = lines[location.header_row_index + 1 :]

        points: dict[date, float] = {}
        for line in reversed(data_lines):
            cells = split_row(line)
            if len(cells) <= max(date_idx, target_idx):
                continue
            try:
                day = parse_calendar_date(cells[date_idx])
            except InvalidFormatError:
                continue
            value = parse_number(cells[target_idx])
            if value is None or day in points:
                continue
            points[day] = value
            if len(points) >= min_count:
                break

        if len(points) < min_count:
            header = "|".join(location.header_cells)
            raise InsufficientPointsError(
                f"MOF CSV: not enough valid {self.name} points "
                f"(need {min_count}, got {len(points)}). "
                f"header(line {location.header_row_index}, {location.strategy})={header} "
                f"date_col={date_idx} target_col={target_idx}",
                required=min_count,
                available=len(points),
                context={
                    "header": list(location.header_cells),
                    "date_column_index": date_idx,
                    "target_column_index": target_idx,
                },
            )

        newest_first = sorted(points.items(), reverse=True)
        return RawSeries.build(
            self.name,
            self.source,
            (Point(day, value) for day, value in newest_first),
            min_count,
        )

    def fetch(self, min_count: int) -> RawSeries:
        logger.info(f"Fetching {self.name} from {self.url}...")
        series = self.parse(self._download_text(), min_count)
        logger.info(f"  {self.name}: {len(series)} points, latest {series.points[0].date}")
        return series


def _is_date(cell: str) -> bool:
    try:
        parse_calendar_date(cell)
    except InvalidFormatError:
        return False
    return True
