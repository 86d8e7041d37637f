"""Automation trigger: push one idea snapshot to the webhook flow."""

import logging
from datetime import datetime, timezone

from portfolio.core.exceptions import PermissionDeniedError
from portfolio.models.service import Service

logger = logging.getLogger(__name__)


def build_payload(service: Service, message: str = "", user: dict | None = None, now: datetime | None = None) -> dict:
    return {
        "service": service.to_dict(),
        "message": (message or "").strip(),
        "triggeredBy": (user or {}).get("name", ""),
        "triggeredAt": (now or datetime.now(timezone.utc)).isoformat(),
    }


def automation_status(webhook) -> dict:
    return {"configured": webhook.configured}


def trigger_automation(webhook, service: Service, message: str = "", user: dict | None = None) -> dict:
    """Send ``service`` (with total and classification) and the user's note to the webhook."""
    if user is not None and user.get("readOnly"):
        raise PermissionDeniedError("trigger automations")
    payload = build_payload(service, message, user)
    status_code = webhook.send(payload)
    logger.info("Automation triggered for service id=%s", service.id)
    return {"sent": True, "statusCode": status_code, "serviceId": service.id}
