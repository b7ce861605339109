"""Shared HTTP plumbing for series fetchers."""

import logging
from typing import Protocol

import httpx

from rate_spread_monitor.config import Settings
from rate_spread_monitor.errors import UpstreamFailureError
from rate_spread_monitor.models import RawSeries


logger = logging.getLogger(__name__)

BODY_HEAD_CHARS = 200


class SeriesFetcher(Protocol):
    """Anything that yields newest-first points for a minimum count."""

    name: str
    source: str

    def fetch(self, min_count: int) -> RawSeries: ...


class HttpFetcher:
    """Base class owning a lazily created httpx client."""

    name = ""
    source = ""

    def __init__(
        self, settings: Settings | None = None, client: httpx.Client | None = None
    ) -> None:
        self.settings = settings or Settings()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.settings.http_timeout, follow_redirects=True
            )
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _get(self, url: str, **kwargs) -> httpx.Response:
        """GET and raise UpstreamFailureError on a non-success status."""
        try:
            response = self.client.get(url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamFailureError(
                f"{self.source} request failed ({self.name}): {e}"
            ) from e
        check_response(response, f"{self.source} fetch failed ({self.name})")
        return response

    def _json(self, response: httpx.Response) -> dict:
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFailureError(
                f"{self.source}: response is not JSON ({self.name}): "
                f"{response.text[:BODY_HEAD_CHARS]}",
                status_code=response.status_code,
                body=response.text[:BODY_HEAD_CHARS],
            ) from e
        if not isinstance(payload, dict):
            raise UpstreamFailureError(
                f"{self.source}: unexpected JSON payload type {type(payload).__name__}"
            )
        return payload


def check_response(response: httpx.Response, what: str) -> None:
    """Raise UpstreamFailureError with status and body head for non-2xx."""
    if response.is_success:
        return
    body = response.text[:BODY_HEAD_CHARS]
    raise UpstreamFailureError(
        f"{what}: {response.status_code} {body}",
        status_code=response.status_code,
        body=body,
    )
