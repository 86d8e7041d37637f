"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — backend and collaborator status
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from portfolio.models import db
from portfolio.state import get_state

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check with dependency status.

    The database is only critical for the sql backend; the sheet and
    webhook are reported as configured / not configured without a call.
    """
    state = get_state()
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        if state.backend_name == "sql":
            overall = False
        logger.error("Health check — database failed: %s", exc)

    # ── Collaborators ────────────────────────────────────────────────
    checks["sheet"] = {"status": "configured" if state.sheet.configured else "not_configured"}
    if state.backend_name == "sheet" and not state.sheet.configured:
        overall = False
    checks["webhook"] = {"status": "configured" if state.webhook.configured else "not_configured"}

    checks["store"] = {"loaded": state.store.loaded, "records": len(state.store)}
    checks["app"] = {
        "name": "Service Portfolio",
        "backend": state.backend_name,
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
