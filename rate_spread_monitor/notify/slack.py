"""Slack incoming-webhook notifier."""

import logging
from dataclasses import dataclass

import httpx

from rate_spread_monitor.config import Settings
from rate_spread_monitor.errors import ConfigurationMissingError


logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Outcome of one post; failures are reported here, not raised."""

    ok: bool
    status_code: int | None = None
    response: str = ""
    error: str | None = None


class SlackNotifier:
    """Posts plain-text messages to a Slack webhook."""

    def __init__(
        self,
        webhook_url: str,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not webhook_url:
            raise ConfigurationMissingError("SLACK_WEBHOOK_URL missing")
        self.webhook_url = webhook_url
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SlackNotifier":
        return cls(settings.slack_webhook_url, timeout=settings.http_timeout)

    def post_message(self, text: str) -> DeliveryResult:
        try:
            response = self._client.post(self.webhook_url, json={"text": text})
        except httpx.HTTPError as e:
            logger.error(f"Slack post failed: {e}")
            return DeliveryResult(ok=False, error=str(e))

        body = response.text[:200]
        if not response.is_success:
            logger.error(f"Slack post failed: {response.status_code} {body}")
            return DeliveryResult(
                ok=False,
                status_code=response.status_code,
                response=body,
                error=f"Slack post failed: {response.status_code}",
            )
        return DeliveryResult(ok=True, status_code=response.status_code, response=body)

    def close(self) -> None:
        self._client.close()
