"""Error types raised by the ingestion and trend pipeline.

Each error carries a ``kind`` (stable identifier used in JSON failure bodies)
and a ``context`` dict with the details an operator needs to debug a drifted
upstream format from the message alone.
"""

from typing import Any


class RateSpreadError(Exception):
    """Base class for all pipeline failures."""

    kind = "Error"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error_kind": self.kind, "error": self.message}


class InvalidFormatError(RateSpreadError):
    """Unparseable date or number."""

    kind = "InvalidFormat"

    def __init__(self, message: str, raw: str | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.raw = raw


class HeaderNotFoundError(RateSpreadError):
    """The column locator exhausted every detection strategy."""

    kind = "HeaderNotFound"

    def __init__(self, message: str, sample: list[str] | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.sample = sample or []


class InsufficientPointsError(RateSpreadError):
    """A fetcher, aligner or trend step got fewer valid points than required."""

    kind = "InsufficientPoints"

    def __init__(
        self,
        message: str,
        required: int | None = None,
        available: int | None = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.required = required
        self.available = available


class InsufficientOverlapError(InsufficientPointsError):
    """Two series share fewer common dates than required."""


class UpstreamFailureError(RateSpreadError):
    """Non-success HTTP status or malformed payload from a data source."""

    kind = "UpstreamFailure"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.body = body


class ConfigurationMissingError(RateSpreadError):
    """A required secret or credential is not configured."""

    kind = "ConfigurationMissing"
