"""
Service Portfolio
Tests — portfolio metrics and dashboard widgets.

Covers:
    - scalar KPIs (revenue, approval rate, time windows)
    - distributions and top-N ordering
    - widget registry (unknown widget, matrix quadrants)
"""

from datetime import datetime, timedelta, timezone

from portfolio.models.service import Service
from portfolio.services import metrics
from portfolio.services.dashboard_engine import DashboardEngine

NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)


def _svc(sid, scores=(0, 0, 0, 0, 0), **kw):
    kw.setdefault("service", f"Ideia {sid}")
    return Service(id=sid, scores=list(scores), **kw)


def _three():
    return [
        _svc(1, (5, 5, 4, 4, 4), cluster="Casa Inteligente"),   # 22
        _svc(2, (3, 3, 3, 3, 3), cluster="Mobilidade"),         # 15
        _svc(3, (2, 2, 2, 2, 1), cluster="Casa Inteligente"),   # 9
    ]


class TestScalarKpis:
    def test_empty_portfolio(self):
        assert metrics.total_ideas([]) == 0
        assert metrics.average_score([]) == 0
        assert metrics.approval_rate([]) == 0

    def test_approval_rate_ignores_evaluation(self):
        records = [
            _svc(1, status="aprovada"),
            _svc(2, status="cancelada"),
            _svc(3, status="finalizada"),
            _svc(4, status="aprovada"),
            _svc(5, status="avaliação"),
        ]
        assert metrics.approval_rate(records) == 50.0

    def test_approval_rate_zero_without_terminal(self):
        assert metrics.approval_rate([_svc(1), _svc(2)]) == 0

    def test_potential_revenue_only_approved(self):
        records = [
            _svc(1, status="aprovada", revenue_estimate=1000),
            _svc(2, status="avaliação", revenue_estimate=5000),
            _svc(3, status="aprovada", revenue_estimate=250.5),
        ]
        assert metrics.potential_revenue(records) == 1250.5

    def test_new_ideas_window(self):
        records = [
            _svc(1, creation_date=NOW - timedelta(days=3)),
            _svc(2, creation_date=NOW - timedelta(days=45)),
            _svc(3),
        ]
        assert metrics.new_ideas_window(records, 30, now=NOW) == 1

    def test_stagnant_ideas_only_in_evaluation(self):
        records = [
            _svc(1, creation_date=NOW - timedelta(days=90)),
            _svc(2, creation_date=NOW - timedelta(days=90), status="aprovada"),
            _svc(3, creation_date=NOW - timedelta(days=10)),
        ]
        assert metrics.stagnant_ideas(records, 60, now=NOW) == 1

    def test_average_score(self):
        assert metrics.average_score(_three()) == (22 + 15 + 9) / 3


class TestDistributions:
    def test_classification_distribution(self):
        pairs = metrics.distribution_by(_three(), "classification")
        assert dict(pairs) == {"Altíssima": 1, "Média": 1, "Baixa": 1}
        # equal counts keep tier order
        assert [label for label, _ in pairs] == ["Altíssima", "Média", "Baixa"]

    def test_cluster_distribution_descending(self):
        pairs = metrics.distribution_by(_three(), "cluster")
        assert pairs == [("Casa Inteligente", 2), ("Mobilidade", 1)]

    def test_business_model_distribution_uses_mapper(self):
        records = [
            _svc(1, business_model="Aluguel"),
            _svc(2, business_model="Leasing"),
            _svc(3, business_model=""),
        ]
        assert metrics.distribution_by(records, "business_model") == [
            ("Locação", 2), ("Pacote de Serviço", 1),
        ]

    def test_average_by_cluster_lists_catalog_clusters(self):
        rows = metrics.average_score_by_cluster(_three())
        by_cluster = {row["cluster"]: row for row in rows}
        assert by_cluster["Casa Inteligente"]["average"] == (22 + 9) / 2
        assert by_cluster["Educação"]["count"] == 0

    def test_top_n(self):
        top = metrics.top_n(_three(), 2)
        assert [r.total for r in top] == [22, 15]

    def test_top_n_stable_on_ties(self):
        records = [_svc(1, (1, 1, 1, 1, 1)), _svc(2, (1, 1, 1, 1, 1)), _svc(3, (1, 1, 1, 1, 1))]
        assert [r.id for r in metrics.top_n(records, 5)] == [1, 2, 3]

    def test_idempotent(self):
        records = _three()
        first = metrics.portfolio_overview(records, now=NOW)
        second = metrics.portfolio_overview(records, now=NOW)
        assert first == second
        assert [r.id for r in records] == [1, 2, 3]


class TestWidgets:
    def test_unknown_widget_returns_error(self):
        assert "error" in DashboardEngine.compute("nope", [])

    def test_all_widgets_registered(self):
        types = {w["type"] for w in DashboardEngine.list_widget_types()}
        assert {
            "kpi_summary", "cluster_distribution", "business_model_distribution",
            "priority_distribution", "portfolio_balance", "top_ideas", "prioritization_matrix",
        } <= types

    def test_matrix_quadrants(self):
        records = [
            _svc(1, (0, 5, 0, 5, 0)),   # high value, high viability
            _svc(2, (0, 5, 0, 1, 0)),   # high value, low viability
            _svc(3, (0, 1, 0, 5, 0)),   # low value, high viability
            _svc(4, (0, 1, 0, 1, 0)),
        ]
        data = DashboardEngine.compute("prioritization_matrix", records)["data"]
        assert [p["quadrant"] for p in data] == ["Executar", "Apostar", "Possível", "A Questionar"]

    def test_kpi_summary_uses_window_kwargs(self):
        records = [_svc(1, creation_date=NOW - timedelta(days=5))]
        data = DashboardEngine.compute("kpi_summary", records, now=NOW, new_days=3)["data"]
        assert data["newIdeas"] == 0
