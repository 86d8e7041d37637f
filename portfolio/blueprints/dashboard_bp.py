"""
Dashboard blueprint: overview KPIs and chart widgets.

Endpoints:
    GET /api/v1/dashboard/overview
    GET /api/v1/dashboard/widgets            (catalog of widget types)
    GET /api/v1/dashboard/widgets/all        (every widget computed)
    GET /api/v1/dashboard/widgets/<type>
"""

from flask import Blueprint, current_app, jsonify

from portfolio.services.dashboard_engine import DashboardEngine
from portfolio.services.metrics import portfolio_overview
from portfolio.state import get_state
from portfolio.utils.errors import E, api_error

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


def _widget_kwargs(state) -> dict:
    cfg = current_app.config
    return {
        "new_days": cfg["NEW_IDEAS_WINDOW_DAYS"],
        "stagnant_days": cfg["STAGNANT_WINDOW_DAYS"],
        "limit": cfg["TOP_IDEAS_LIMIT"],
        "default_business_model": state.default_business_model,
    }


@dashboard_bp.route("/overview", methods=["GET"])
def overview():
    state = get_state()
    cfg = current_app.config
    return jsonify(portfolio_overview(
        state.records(),
        new_days=cfg["NEW_IDEAS_WINDOW_DAYS"],
        stagnant_days=cfg["STAGNANT_WINDOW_DAYS"],
        default_business_model=state.default_business_model,
    )), 200


@dashboard_bp.route("/widgets", methods=["GET"])
def widget_types():
    return jsonify({"items": DashboardEngine.list_widget_types()}), 200


@dashboard_bp.route("/widgets/all", methods=["GET"])
def all_widgets():
    state = get_state()
    return jsonify(DashboardEngine.compute_all(state.records(), **_widget_kwargs(state))), 200


@dashboard_bp.route("/widgets/<widget_type>", methods=["GET"])
def widget(widget_type):
    state = get_state()
    result = DashboardEngine.compute(widget_type, state.records(), **_widget_kwargs(state))
    if "error" in result:
        code = E.NOT_FOUND if widget_type not in DashboardEngine.widget_types() else E.INTERNAL
        return api_error(code, result["error"])
    return jsonify(result), 200
