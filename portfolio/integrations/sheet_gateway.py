"""
Spreadsheet API gateway — persistence and auth collaborator.

The backing spreadsheet is fronted by a web-app script that takes a single
POST per call:

    POST {SHEET_API_URL}
    Content-Type: text/plain;charset=utf-8
    {"action": "<name>", "payload": {...}}

and answers with the envelope ``{"success": bool, "data"?: T, "error"?: str}``.

All outbound calls to the sheet go through this class. Behaviour:
  - One best-effort request per operation; no automatic retry.
  - Timeout: ``GATEWAY_TIMEOUT`` seconds (default 30).
  - Transport failures (network, timeout, non-2xx, invalid JSON) raise
    GatewayError. ``success: false`` raises RemoteError carrying the
    collaborator's message; on update/delete a "not found" message is
    raised as NotFoundError instead.
  - Missing URL raises ConfigurationError before any I/O.

Testability: pass a mock ``session`` to SheetGateway() in tests.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests

from portfolio.core.exceptions import ConfigurationError, GatewayError, NotFoundError, RemoteError
from portfolio.models.service import Service

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30

_PLACEHOLDER_MARKERS = ("YOUR_GOOGLE_APPS_SCRIPT_WEB_APP_URL_HERE", "YOUR_SHEET_API_URL")

# Messages the sheet script uses for an unknown id.
_NOT_FOUND_MARKERS = ("not found", "não encontrad", "nao encontrad")


def is_configured_url(url: str | None) -> bool:
    """True when ``url`` is set and is not a template placeholder."""
    return bool(url) and not any(marker in url for marker in _PLACEHOLDER_MARKERS)


class SheetGateway:
    """Spreadsheet-backed CRUD + auth API client.

    Usage:
        gw = SheetGateway(url=app.config["SHEET_API_URL"])
        services = gw.get_services()
    """

    # save-all may fan updates out over a thread pool
    supports_concurrent_writes = True

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
        self._session_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        # save-all workers may reach this first from several threads
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
        return self._session

    @property
    def configured(self) -> bool:
        return is_configured_url(self.url)

    # ── Core request dispatcher ───────────────────────────────────────────────

    def request(self, action: str, payload: dict | None = None) -> Any:
        """POST one action to the sheet API and unwrap the envelope.

        Returns:
            The ``data`` member of a successful envelope.

        Raises:
            ConfigurationError: SHEET_API_URL is unset.
            GatewayError: network error, timeout, non-2xx or unparsable body.
            RemoteError: envelope reported ``success: false``.
        """
        if not self.configured:
            raise ConfigurationError(
                "SHEET_API_URL",
                "The spreadsheet API URL is not configured; set SHEET_API_URL.",
            )

        body = {"action": action}
        if payload is not None:
            body["payload"] = payload

        t0 = time.perf_counter()
        try:
            resp = self.session.post(
                self.url,
                json=body,
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.Timeout as exc:
            logger.warning("Sheet action=%s timed out after %ss", action, self.timeout)
            raise GatewayError(f"Request timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            logger.warning("Sheet action=%s network error: %s", action, exc)
            raise GatewayError(
                f"Could not reach the spreadsheet API. Check your connection. Details: {str(exc)[:300]}"
            ) from exc

        duration_ms = int((time.perf_counter() - t0) * 1000)

        if not resp.ok:
            logger.warning(
                "Sheet action=%s failed status=%d duration_ms=%d", action, resp.status_code, duration_ms,
            )
            raise GatewayError(
                f"API error: HTTP {resp.status_code} - {resp.text[:300]}",
                status_code=resp.status_code,
            )

        try:
            envelope = resp.json()
        except ValueError as exc:
            logger.warning("Sheet action=%s returned a non-JSON body", action)
            raise GatewayError("The spreadsheet API returned an invalid response") from exc

        if not isinstance(envelope, dict):
            raise GatewayError("The spreadsheet API returned an invalid response")

        if envelope.get("success") is False:
            message = envelope.get("error") or "Unknown API error"
            logger.info("Sheet action=%s rejected: %s", action, message)
            raise RemoteError(action, message)

        logger.debug("Sheet action=%s ok duration_ms=%d", action, duration_ms)
        return envelope.get("data")

    def _request_by_id(self, action: str, payload: dict, service_id) -> Any:
        try:
            return self.request(action, payload)
        except RemoteError as exc:
            if any(marker in str(exc).lower() for marker in _NOT_FOUND_MARKERS):
                raise NotFoundError("Service", service_id, detail=str(exc)) from exc
            raise

    # ── Persistence operations ────────────────────────────────────────────────

    def get_services(self) -> list[Service]:
        data = self.request("getServices") or []
        if not isinstance(data, list):
            raise GatewayError("getServices returned an unexpected payload")
        return [Service.from_dict(row) for row in data if isinstance(row, dict)]

    def add_service(self, service: Service) -> Service:
        """Create a record; the sheet assigns id, creationDate, zero scores and revenue."""
        payload = {
            "service": {
                "service": service.service,
                "need": service.need,
                "targetAudience": service.target_audience,
                "cluster": service.cluster,
                "businessModel": service.business_model,
                "status": service.status,
                "creatorName": service.creator_name,
            }
        }
        data = self.request("addService", payload)
        if not isinstance(data, dict):
            raise GatewayError("addService returned an unexpected payload")
        return Service.from_dict(data)

    def update_service(self, service: Service) -> Service:
        """Full-record replace by id."""
        data = self._request_by_id("updateService", {"service": service.to_sheet_row()}, service.id)
        # Some deployments echo only {"id": ...}; fall back to what was sent.
        if isinstance(data, dict) and data.get("service"):
            return Service.from_dict(data)
        return service.copy()

    def delete_service(self, service_id: int) -> dict:
        data = self._request_by_id("deleteService", {"id": service_id}, service_id)
        if isinstance(data, dict) and "id" in data:
            return data
        return {"id": service_id}

    # ── Auth operations ───────────────────────────────────────────────────────

    def login_user(self, email: str, password: str) -> dict:
        return self._auth_result(self.request("loginUser", {"email": email, "password": password}))

    def register_user(self, name: str, email: str, password: str) -> dict:
        return self._auth_result(
            self.request("registerUser", {"name": name, "email": email, "password": password})
        )

    @staticmethod
    def _auth_result(data) -> dict:
        if not isinstance(data, dict) or not data.get("token") or not isinstance(data.get("user"), dict):
            raise GatewayError("Auth API returned an unexpected payload")
        return {"user": data["user"], "token": data["token"]}
