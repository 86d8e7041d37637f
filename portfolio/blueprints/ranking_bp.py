"""
Ranking blueprint: server-side prioritization boards.

A board is one user's ranking table: filters, sort, page and a buffer of
unsaved edits. Edits are only persisted by ``save``.

Endpoints:
    POST   /api/v1/ranking/boards                          open a board
    GET    /api/v1/ranking/boards/<bid>                    current page
    PATCH  /api/v1/ranking/boards/<bid>/view               filters / sort / page
    PATCH  /api/v1/ranking/boards/<bid>/services/<id>      edit one field
    POST   /api/v1/ranking/boards/<bid>/save               persist all edits
    POST   /api/v1/ranking/boards/<bid>/discard            drop all edits (confirm)
    DELETE /api/v1/ranking/boards/<bid>                    close (confirm if edits)

View body:
    {"filters": {"cluster", "classification", "status"},
     "sort": {"key", "direction"?},   # no direction → toggle like a header click
     "pageNumber": int,
     "confirm": bool}
"""

import logging

from flask import Blueprint, current_app, jsonify

from portfolio.auth import current_user, require_editor
from portfolio.blueprints import confirm_flag, json_body
from portfolio.core.exceptions import ValidationError
from portfolio.state import get_state
from portfolio.utils.helpers import parse_int

logger = logging.getLogger(__name__)

ranking_bp = Blueprint("ranking", __name__, url_prefix="/api/v1/ranking")

FILTER_KEYS = ("cluster", "classification", "status")


def _board(board_id):
    state = get_state()
    state.ensure_loaded()
    return state.boards.get(board_id, owner=current_user().get("email"))


def _view_changes(data: dict) -> dict:
    errors = {}
    changes = {"confirm": confirm_flag(data)}

    filters = data.get("filters")
    if filters is not None:
        if not isinstance(filters, dict):
            errors["filters"] = "must be an object"
        else:
            unknown = sorted(set(filters) - set(FILTER_KEYS))
            if unknown:
                errors["filters"] = f"unknown filter(s): {', '.join(unknown)}"
            changes["filters"] = {k: v for k, v in filters.items() if k in FILTER_KEYS}

    sort = data.get("sort")
    if sort is not None:
        if not isinstance(sort, dict) or not sort.get("key"):
            errors["sort"] = "must be an object with a key"
        else:
            changes["sort_key"] = sort["key"]
            changes["direction"] = sort.get("direction")

    if "pageNumber" in data:
        page_number = parse_int(data["pageNumber"])
        if page_number is None:
            errors["pageNumber"] = "must be an integer"
        changes["page_number"] = page_number

    if errors:
        raise ValidationError("Invalid view change", details=errors)
    return changes


@ranking_bp.route("/boards", methods=["POST"])
def open_board():
    state = get_state()
    state.ensure_loaded()
    data = json_body()
    page_size = parse_int(data.get("pageSize"), current_app.config["RANKING_PAGE_SIZE"])
    if page_size is None or page_size < 1:
        raise ValidationError("Invalid page size", details={"pageSize": "must be >= 1"})
    user = current_user()
    board = state.boards.create(
        page_size=page_size,
        read_only=user.get("readOnly", False),
        owner=user.get("email"),
        default_business_model=state.default_business_model,
    )
    return jsonify(board.page()), 201


@ranking_bp.route("/boards/<board_id>", methods=["GET"])
def get_board(board_id):
    return jsonify(_board(board_id).page()), 200


@ranking_bp.route("/boards/<board_id>/view", methods=["PATCH"])
def change_view(board_id):
    board = _board(board_id)
    return jsonify(board.change_view(**_view_changes(json_body()))), 200


@ranking_bp.route("/boards/<board_id>/services/<int:service_id>", methods=["PATCH"])
@require_editor
def edit_service(board_id, service_id):
    data = json_body()
    field_name = data.get("field")
    if not field_name:
        raise ValidationError("field is required", details={"field": "required"})
    board = _board(board_id)
    return jsonify(board.edit(service_id, field_name, data.get("value"))), 200


@ranking_bp.route("/boards/<board_id>/save", methods=["POST"])
@require_editor
def save_board(board_id):
    state = get_state()
    board = _board(board_id)
    result = board.save(state.backend)
    if result.failed:
        logger.warning("Board save partially failed", extra={"board_id": board_id, "action": "save"})
    return jsonify({"result": result.to_dict(), **board.page()}), 200


@ranking_bp.route("/boards/<board_id>/discard", methods=["POST"])
def discard_board(board_id):
    board = _board(board_id)
    discarded = board.discard(confirm=confirm_flag(json_body()))
    return jsonify({"discarded": discarded, **board.page()}), 200


@ranking_bp.route("/boards/<board_id>", methods=["DELETE"])
def close_board(board_id):
    state = get_state()
    discarded = state.boards.close(
        board_id, owner=current_user().get("email"), confirm=confirm_flag(json_body()),
    )
    return jsonify({"closed": True, "discarded": discarded}), 200
