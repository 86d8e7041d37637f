"""
Overview Dashboard Widget Engine.

Built-in widget types that turn the metric functions into chart-ready data.
Each widget returns a uniform structure:
  {"title": str, "type": str, "data": ..., "chart_config": {...}}
"""

import logging

from portfolio.models.catalog import DEFAULT_BUSINESS_MODEL, cluster_titles
from portfolio.models.scoring import TOTAL_MAX
from portfolio.services import metrics

logger = logging.getLogger(__name__)

CHART_COLORS = ["#374151", "#4B5563", "#6B7280", "#9CA3AF", "#D1D5DB", "#F3F4F6"]

# Viability (x) vs Customer Value (y); midline 2.5 on both axes.
MATRIX_MIDLINE = 2.5
MATRIX_X_INDEX = 3
MATRIX_Y_INDEX = 1


# ═════════════════════════════════════════════════════════════════════════════
# WIDGET REGISTRY
# ═════════════════════════════════════════════════════════════════════════════

class DashboardEngine:
    """Compute data for individual overview widgets."""

    _WIDGETS: dict = {}

    @classmethod
    def register(cls, widget_type: str, label: str, default_size: str = "1x1"):
        """Decorator to register a widget type."""
        def decorator(fn):
            cls._WIDGETS[widget_type] = {"fn": fn, "label": label, "size": default_size}
            return fn
        return decorator

    @classmethod
    def compute(cls, widget_type: str, records: list, **kwargs) -> dict:
        """Compute data for a widget; failures come back as ``{"error": ...}``."""
        entry = cls._WIDGETS.get(widget_type)
        if not entry:
            return {"error": f"Unknown widget type: {widget_type}"}
        try:
            return entry["fn"](records, **kwargs)
        except Exception as e:
            logger.exception("Widget %s failed: %s", widget_type, e)
            return {"error": str(e)}

    @classmethod
    def compute_all(cls, records: list, **kwargs) -> dict:
        return {widget_type: cls.compute(widget_type, records, **kwargs) for widget_type in cls._WIDGETS}

    @classmethod
    def widget_types(cls) -> set:
        return set(cls._WIDGETS)

    @classmethod
    def list_widget_types(cls) -> list[dict]:
        return [
            {"type": k, "label": v["label"], "default_size": v["size"]}
            for k, v in cls._WIDGETS.items()
        ]


def _bar(title, pairs, chart_type="bar"):
    return {
        "title": title,
        "type": chart_type,
        "data": {
            "labels": [label for label, _ in pairs],
            "values": [count for _, count in pairs],
        },
        "chart_config": {"colors": CHART_COLORS},
    }


# ═════════════════════════════════════════════════════════════════════════════
# WIDGET IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

# 1 ── KPI cards ───────────────────────────────────────────────────────────
@DashboardEngine.register("kpi_summary", "Portfolio KPIs", "3x1")
def _kpi_summary(records, **kw):
    new_days = kw.get("new_days", metrics.NEW_IDEAS_WINDOW_DAYS)
    stagnant_days = kw.get("stagnant_days", metrics.STAGNANT_WINDOW_DAYS)
    now = kw.get("now")
    return {
        "title": "Portfolio KPIs",
        "type": "kpi",
        "data": {
            "totalIdeas": metrics.total_ideas(records),
            "averageScore": round(metrics.average_score(records), metrics.SCORE_DECIMALS),
            "potentialRevenue": metrics.potential_revenue(records),
            "newIdeas": metrics.new_ideas_window(records, new_days, now=now),
            "approvalRate": metrics.approval_rate(records),
            "stagnantIdeas": metrics.stagnant_ideas(records, stagnant_days, now=now),
        },
    }


# 2 ── Ideas per cluster ──────────────────────────────────────────────────
@DashboardEngine.register("cluster_distribution", "Ideas by Cluster", "1x1")
def _cluster_distribution(records, **kw):
    return _bar("Ideas by Cluster", metrics.distribution_by(records, "cluster"))


# 3 ── Ideas per business model ──────────────────────────────────────────
@DashboardEngine.register("business_model_distribution", "Ideas by Business Model", "1x1")
def _business_model_distribution(records, **kw):
    default_bm = kw.get("default_business_model", DEFAULT_BUSINESS_MODEL)
    return _bar(
        "Ideas by Business Model",
        metrics.distribution_by(records, "business_model", default_business_model=default_bm),
    )


# 4 ── Priority tiers ─────────────────────────────────────────────────────
@DashboardEngine.register("priority_distribution", "Priority Distribution", "1x1")
def _priority_distribution(records, **kw):
    return _bar("Priority Distribution", metrics.distribution_by(records, "classification"), "donut")


# 5 ── Portfolio balance radar ───────────────────────────────────────────
@DashboardEngine.register("portfolio_balance", "Portfolio Balance", "2x1")
def _portfolio_balance(records, **kw):
    rows = metrics.average_score_by_cluster(records, cluster_titles())
    return {
        "title": "Portfolio Balance",
        "type": "radar",
        "data": [
            {"subject": row["cluster"], "score": round(row["average"], 2), "count": row["count"], "fullMark": TOTAL_MAX}
            for row in rows
        ],
    }


# 6 ── Top ideas ──────────────────────────────────────────────────────────
@DashboardEngine.register("top_ideas", "Top Ideas", "1x2")
def _top_ideas(records, **kw):
    limit = kw.get("limit", metrics.TOP_IDEAS_LIMIT)
    return {
        "title": "Top Ideas",
        "type": "list",
        "data": [
            {"id": r.id, "service": r.service, "total": r.total, "classification": r.classification}
            for r in metrics.top_n(records, limit)
        ],
    }


# 7 ── Prioritization matrix ─────────────────────────────────────────────
def _quadrant(viability: int, value: int) -> str:
    high_x = viability > MATRIX_MIDLINE
    high_y = value > MATRIX_MIDLINE
    if high_x and high_y:
        return "Executar"
    if high_y:
        return "Apostar"
    if high_x:
        return "Possível"
    return "A Questionar"


@DashboardEngine.register("prioritization_matrix", "Prioritization Matrix", "2x2")
def _prioritization_matrix(records, **kw):
    points = []
    for r in records:
        x = r.scores[MATRIX_X_INDEX]
        y = r.scores[MATRIX_Y_INDEX]
        points.append({
            "id": r.id,
            "service": r.service,
            "viabilidade": x,
            "valorCliente": y,
            "total": r.total,
            "quadrant": _quadrant(x, y),
        })
    return {
        "title": "Prioritization Matrix",
        "type": "scatter",
        "data": points,
        "chart_config": {"midline": MATRIX_MIDLINE, "domain": [0, 5.2]},
    }
