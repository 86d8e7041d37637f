"""Standardised API error responses.

Usage
-----
    from portfolio.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Service not found")
    return api_error(E.VALIDATION_REQUIRED, "service is required")

Exceptions from ``portfolio.core.exceptions`` do not need manual handling:
``register_error_handlers(app)`` maps each type to the same envelope.
"""

from __future__ import annotations

import logging

from flask import jsonify

from portfolio.core.exceptions import (
    ConfigurationError,
    ConflictError,
    GatewayError,
    NotFoundError,
    PermissionDeniedError,
    RemoteError,
    SavingInProgressError,
    UnsavedChangesError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 400 / 422
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    VALIDATION_CONSTRAINT = "ERR_VALIDATION_CONSTRAINT"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    UNSAVED_CHANGES = "ERR_UNSAVED_CHANGES"

    # Auth – HTTP 401 / 403
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Collaborators
    REMOTE = "ERR_REMOTE"                    # 400: remote API said success=false
    GATEWAY = "ERR_GATEWAY"                  # 502: network / transport
    NOT_CONFIGURED = "ERR_NOT_CONFIGURED"    # 503: endpoint unset

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.VALIDATION_CONSTRAINT: 422,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.UNSAVED_CHANGES: 409,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.REMOTE: 400,
    E.GATEWAY: 502,
    E.NOT_CONFIGURED: 503,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for the UI.
    status : int, optional
        HTTP status override. Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field errors, pending edit count, ...).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map the platform exception hierarchy to JSON error responses."""

    @app.errorhandler(ValidationError)
    def _validation(exc):
        return api_error(E.VALIDATION_CONSTRAINT, str(exc), details=exc.details)

    @app.errorhandler(NotFoundError)
    def _not_found(exc):
        logger.info("Not found: %s", exc)
        return api_error(E.NOT_FOUND, f"{exc.resource} not found")

    @app.errorhandler(ConflictError)
    def _conflict(exc):
        return api_error(E.CONFLICT_DUPLICATE, str(exc))

    @app.errorhandler(UnsavedChangesError)
    def _unsaved(exc):
        return api_error(
            E.UNSAVED_CHANGES, str(exc),
            details={"pending": exc.pending, "action": exc.action},
        )

    @app.errorhandler(SavingInProgressError)
    def _saving(exc):
        return api_error(E.CONFLICT_STATE, str(exc))

    @app.errorhandler(PermissionDeniedError)
    def _forbidden(exc):
        return api_error(E.FORBIDDEN, str(exc))

    @app.errorhandler(RemoteError)
    def _remote(exc):
        return api_error(E.REMOTE, str(exc), details={"action": exc.action})

    @app.errorhandler(GatewayError)
    def _gateway(exc):
        logger.warning("Gateway failure surfaced to client: %s", exc)
        return api_error(E.GATEWAY, str(exc))

    @app.errorhandler(ConfigurationError)
    def _not_configured(exc):
        return api_error(E.NOT_CONFIGURED, str(exc), details={"setting": exc.setting})
