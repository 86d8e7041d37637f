"""
Automation webhook gateway.

Fire-and-forget POST of a JSON payload to an operator-configured endpoint
(Zapier / Make / n8n style). When ``WEBHOOK_URL`` is unset the feature is
disabled: ``configured`` is False and ``send`` raises ConfigurationError.

Failures are reported to the caller and never retried automatically.
"""

from __future__ import annotations

import logging
import time

import requests

from portfolio.core.exceptions import ConfigurationError, GatewayError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 15
_PLACEHOLDER = "YOUR_WEBHOOK_URL_HERE"


class WebhookGateway:
    """POSTs automation payloads to the configured webhook."""

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout: int = _DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._session: requests.Session | None = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @property
    def configured(self) -> bool:
        return bool(self.url) and self.url != _PLACEHOLDER

    def send(self, payload: dict) -> int:
        """POST ``payload`` as JSON. Returns the HTTP status code on success."""
        if not self.configured:
            raise ConfigurationError(
                "WEBHOOK_URL",
                "The automation webhook URL is not configured; set WEBHOOK_URL.",
            )

        t0 = time.perf_counter()
        try:
            resp = self.session.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("Webhook timed out after %ss", self.timeout)
            raise GatewayError(f"Webhook timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            logger.warning("Webhook network error: %s", exc)
            raise GatewayError(f"Could not reach the webhook: {str(exc)[:300]}") from exc

        duration_ms = int((time.perf_counter() - t0) * 1000)
        if not resp.ok:
            logger.warning("Webhook failed status=%d duration_ms=%d", resp.status_code, duration_ms)
            raise GatewayError(
                f"Webhook call failed: HTTP {resp.status_code} - {resp.text[:300]}",
                status_code=resp.status_code,
            )

        logger.info("Webhook delivered status=%d duration_ms=%d", resp.status_code, duration_ms)
        return resp.status_code
