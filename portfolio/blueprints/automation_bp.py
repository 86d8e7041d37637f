"""
Automation blueprint: push a service idea to the configured webhook.

Endpoints:
    GET  /api/v1/automation/status
    POST /api/v1/automation/services/<id>    {message}
"""

from flask import Blueprint, jsonify

from portfolio.auth import current_user, require_editor
from portfolio.blueprints import json_body
from portfolio.services import automation_service as svc
from portfolio.state import get_state

automation_bp = Blueprint("automation", __name__, url_prefix="/api/v1/automation")


@automation_bp.route("/status", methods=["GET"])
def status():
    return jsonify(svc.automation_status(get_state().webhook)), 200


@automation_bp.route("/services/<int:service_id>", methods=["POST"])
@require_editor
def trigger(service_id):
    state = get_state()
    service = state.ensure_loaded().get(service_id)
    data = json_body()
    result = svc.trigger_automation(state.webhook, service, data.get("message", ""), current_user())
    return jsonify(result), 200
