"""
Catalog blueprint: static catalogs with the ideas grouped under them.

Endpoints:
    GET /api/v1/catalog/clusters
    GET /api/v1/catalog/business-models
    GET /api/v1/catalog/criteria
"""

from flask import Blueprint, jsonify

from portfolio.models.catalog import CRITERIA
from portfolio.services import portfolio_service as svc
from portfolio.state import get_state

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/v1/catalog")


@catalog_bp.route("/clusters", methods=["GET"])
def clusters():
    """Catalog clusters with their ideas, plus every cluster usable on a new idea."""
    state = get_state()
    records = state.records()
    return jsonify({
        "items": svc.ideas_by_cluster(records),
        "options": svc.cluster_options(state.store),
    }), 200


@catalog_bp.route("/business-models", methods=["GET"])
def business_models():
    state = get_state()
    items = svc.ideas_by_business_model(state.records(), state.default_business_model)
    return jsonify({"items": items, "default": state.default_business_model}), 200


@catalog_bp.route("/criteria", methods=["GET"])
def criteria():
    return jsonify({"items": CRITERIA}), 200
