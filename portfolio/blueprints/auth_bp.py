"""
Auth blueprint: login / register through the spreadsheet auth API.

Endpoints:
    POST /api/v1/auth/login      {email, password}        → {user, token}
    POST /api/v1/auth/register   {name, email, password}  → {user, token}
    POST /api/v1/auth/logout
    GET  /api/v1/auth/me
"""

import logging

from flask import Blueprint, g, jsonify

from portfolio.auth import current_user
from portfolio.blueprints import json_body
from portfolio.core.exceptions import ValidationError
from portfolio.state import get_state

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _require(data: dict, *fields) -> dict:
    values = {name: str(data.get(name) or "").strip() for name in fields}
    missing = {name: "required" for name, value in values.items() if not value}
    if missing:
        raise ValidationError("Please fill in all required fields", details=missing)
    return values


def _session_response(result: dict, status: int):
    state = get_state()
    user = state.tokens.remember(result["token"], result["user"])
    logger.info("User signed in: %s (role=%s)", user["email"], user["role"])
    return jsonify({"user": user, "token": result["token"]}), status


@auth_bp.route("/login", methods=["POST"])
def login():
    creds = _require(json_body(), "email", "password")
    result = get_state().sheet.login_user(creds["email"], creds["password"])
    return _session_response(result, 200)


@auth_bp.route("/register", methods=["POST"])
def register():
    creds = _require(json_body(), "name", "email", "password")
    result = get_state().sheet.register_user(creds["name"], creds["email"], creds["password"])
    return _session_response(result, 201)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    forgotten = get_state().tokens.forget(getattr(g, "auth_token", None))
    return jsonify({"loggedOut": forgotten}), 200


@auth_bp.route("/me", methods=["GET"])
def me():
    return jsonify(current_user()), 200
