"""
Service Portfolio
Blueprint registry.
"""

from flask import request

from portfolio.utils.helpers import parse_bool_arg


def json_body() -> dict:
    """Request JSON as a dict; anything else (missing, list, invalid) → {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def confirm_flag(data: dict | None = None) -> bool:
    """``confirm`` from the JSON body or the query string."""
    if data and "confirm" in data:
        return parse_bool_arg(data.get("confirm"))
    return parse_bool_arg(request.args.get("confirm"))


def all_blueprints():
    from portfolio.blueprints.auth_bp import auth_bp
    from portfolio.blueprints.automation_bp import automation_bp
    from portfolio.blueprints.catalog_bp import catalog_bp
    from portfolio.blueprints.dashboard_bp import dashboard_bp
    from portfolio.blueprints.export_bp import export_bp
    from portfolio.blueprints.health_bp import health_bp
    from portfolio.blueprints.ranking_bp import ranking_bp
    from portfolio.blueprints.services_bp import services_bp

    return [
        auth_bp, services_bp, catalog_bp, dashboard_bp,
        ranking_bp, export_bp, automation_bp, health_bp,
    ]
