"""J-Quants ID token provider with in-memory caching."""

import logging
import time

import httpx

from rate_spread_monitor.config import Settings
from rate_spread_monitor.data.base import check_response
from rate_spread_monitor.errors import ConfigurationMissingError, UpstreamFailureError


logger = logging.getLogger(__name__)

# ID tokens are valid for 24h; refresh an hour early
TOKEN_TTL_SECONDS = 23 * 60 * 60


def _field(response: httpx.Response, key: str) -> str | None:
    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamFailureError(
            f"J-Quants returned non-JSON: {response.text[:200]}",
            status_code=response.status_code,
            body=response.text[:200],
        ) from e
    return payload.get(key) if isinstance(payload, dict) else None


class JQuantsTokenProvider:
    """Obtains ID tokens via auth_user -> auth_refresh, retrying once."""

    BASE_URL = "https://api.jquants.com/v1"

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        clock=time.time,
    ) -> None:
        self.settings = settings or Settings()
        self._client = client or httpx.Client(timeout=self.settings.http_timeout)
        self._owns_client = client is None
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0

    def _fetch_token(self) -> str:
        if self._token is not None and self._clock() < self._expires_at:
            return self._token

        if not self.settings.has_jquants():
            raise ConfigurationMissingError("Missing JQ_MAIL/JQ_PASS")

        r1 = self._post(
            f"{self.BASE_URL}/token/auth_user",
            json={
                "mailaddress": self.settings.jquants_mail,
                "password": self.settings.jquants_password,
            },
        )
        check_response(r1, "J-Quants auth_user failed")
        refresh_token = _field(r1, "refreshToken")
        if not refresh_token:
            raise UpstreamFailureError("J-Quants auth_user returned no refreshToken")

        r2 = self._post(
            f"{self.BASE_URL}/token/auth_refresh",
            params={"refreshtoken": refresh_token},
        )
        check_response(r2, "J-Quants auth_refresh failed")
        id_token = _field(r2, "idToken")
        if not id_token:
            raise UpstreamFailureError("J-Quants auth_refresh returned no idToken")

        self._token = id_token
        self._expires_at = self._clock() + TOKEN_TTL_SECONDS
        return id_token

    def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"J-Quants request failed: {e}") from e

    def get_token(self) -> str:
        """Return a cached or fresh ID token; on failure clear the cache and retry once."""
        try:
            return self._fetch_token()
        except UpstreamFailureError as e:
            logger.warning(f"J-Quants token fetch failed, retrying once: {e}")
            self.invalidate()
            return self._fetch_token()

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
