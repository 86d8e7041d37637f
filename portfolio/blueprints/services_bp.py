"""
Services blueprint: CRUD and search over service ideas.

Endpoints:
    GET    /api/v1/services              ?refresh=1 forces a full refetch
    POST   /api/v1/services
    GET    /api/v1/services/search       ?q=<term>&limit=10
    GET    /api/v1/services/<id>
    PUT    /api/v1/services/<id>
    DELETE /api/v1/services/<id>
"""

from flask import Blueprint, jsonify, request

from portfolio.auth import current_user, require_editor
from portfolio.blueprints import json_body
from portfolio.services import portfolio_service as svc
from portfolio.state import get_state
from portfolio.utils.helpers import parse_bool_arg

services_bp = Blueprint("services", __name__, url_prefix="/api/v1/services")


def _dump(records, state):
    return [r.to_dict(state.default_business_model) for r in records]


@services_bp.route("", methods=["GET"])
def list_services():
    state = get_state()
    if parse_bool_arg(request.args.get("refresh")):
        records = svc.refresh(state.store, state.backend)
    else:
        records = state.records()
    return jsonify({"items": _dump(records, state), "total": len(records)}), 200


@services_bp.route("", methods=["POST"])
@require_editor
def create_service():
    state = get_state()
    created = svc.create_service(state.ensure_loaded(), state.backend, json_body(), current_user())
    return jsonify(created.to_dict(state.default_business_model)), 201


@services_bp.route("/search", methods=["GET"])
def search_services():
    state = get_state()
    limit = request.args.get("limit", svc.SEARCH_LIMIT, type=int)
    hits = svc.search_services(state.records(), request.args.get("q", ""), limit=limit)
    return jsonify({"items": _dump(hits, state), "total": len(hits)}), 200


@services_bp.route("/<int:service_id>", methods=["GET"])
def get_service(service_id):
    state = get_state()
    record = state.ensure_loaded().get(service_id)
    return jsonify(record.to_dict(state.default_business_model)), 200


@services_bp.route("/<int:service_id>", methods=["PUT"])
@require_editor
def update_service(service_id):
    state = get_state()
    saved = svc.update_service(state.ensure_loaded(), state.backend, service_id, json_body(), current_user())
    return jsonify(saved.to_dict(state.default_business_model)), 200


@services_bp.route("/<int:service_id>", methods=["DELETE"])
@require_editor
def delete_service(service_id):
    state = get_state()
    result = svc.delete_service(state.ensure_loaded(), state.backend, service_id, current_user())
    return jsonify({"deleted": True, **result}), 200
