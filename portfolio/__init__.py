"""
Service Portfolio
Flask Application Factory.

Usage:
    from portfolio import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from portfolio.auth import init_auth
from portfolio.blueprints import all_blueprints
from portfolio.config import config
from portfolio.middleware.logging_config import configure_logging
from portfolio.middleware.rate_limiter import init_rate_limits
from portfolio.middleware.timing import init_request_timing
from portfolio.models import db
from portfolio.state import init_state
from portfolio.utils.errors import E, api_error, register_error_handlers

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Runtime state (backend, store, boards, tokens) ───────────────────
    state = init_state(app)

    # ── Authentication & CSRF middleware ──────────────────────────────────
    init_auth(app, state.tokens)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Tables for the sql backend (CREATE IF NOT EXISTS) ────────────────
    from portfolio.models import service_record as _service_record  # noqa: F401

    if app.config["PERSISTENCE_BACKEND"] == "sql":
        with app.app_context():
            uri = app.config["SQLALCHEMY_DATABASE_URI"]
            if uri.startswith("sqlite:///") and ":memory:" not in uri:
                os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
            db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    for bp in all_blueprints():
        app.register_blueprint(bp)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.VALIDATION_INVALID, "Too many requests", status=429,
                         details={"retry_after": e.description})

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
