"""
Service Portfolio
Tests — ranking pipeline (filter → sort → paginate) and view state.
"""

import pytest

from portfolio.core.exceptions import ValidationError
from portfolio.models.service import Service
from portfolio.services.ranking import (
    ASCENDING,
    DESCENDING,
    FilterSpec,
    PageSpec,
    RankingView,
    SortSpec,
    clamp_page,
    collation_key,
    run_pipeline,
)


def _svc(sid, total=0, **kw):
    # spread ``total`` over the five criteria
    scores = [min(5, max(0, total - 5 * i)) for i in range(5)]
    kw.setdefault("service", f"Ideia {sid}")
    return Service(id=sid, scores=scores, **kw)


def _portfolio(n=25):
    clusters = ["Casa Inteligente", "Mobilidade", "Educação"]
    return [_svc(i, total=i % 26, cluster=clusters[i % 3]) for i in range(1, n + 1)]


class TestFilters:
    def test_cluster_filter(self):
        result = run_pipeline(_portfolio(), FilterSpec(cluster="Mobilidade"), page=PageSpec(page_size=50))
        assert result.total_count == 9
        assert all(r.cluster == "Mobilidade" for r in result.items)

    def test_filters_combine_with_and(self):
        records = [
            _svc(1, 22, cluster="Mobilidade", status="aprovada"),
            _svc(2, 22, cluster="Mobilidade"),
            _svc(3, 5, cluster="Mobilidade", status="aprovada"),
            _svc(4, 22, cluster="Educação", status="aprovada"),
        ]
        spec = FilterSpec(cluster="Mobilidade", classification="Altíssima", status="aprovada")
        assert [r.id for r in run_pipeline(records, spec).items] == [1]

    def test_missing_cluster_gives_empty_page_one(self):
        result = run_pipeline(_portfolio(), FilterSpec(cluster="Inexistente"), page=PageSpec(page_number=3))
        assert result.items == []
        assert result.total_count == 0
        assert result.total_pages == 0
        assert result.page_number == 1

    def test_all_means_no_constraint(self):
        assert FilterSpec(cluster="all", status="", classification=None) == FilterSpec()

    def test_invalid_classification(self):
        with pytest.raises(ValidationError):
            FilterSpec(classification="Urgente")

    def test_status_filter_is_normalized(self):
        assert FilterSpec(status="Aprovada").status == "aprovada"


class TestSorting:
    def test_default_is_total_descending(self):
        records = [_svc(1, 5), _svc(2, 20), _svc(3, 12)]
        assert [r.id for r in run_pipeline(records).items] == [2, 3, 1]

    def test_ties_keep_collection_order(self):
        records = [_svc(1, 10), _svc(2, 10), _svc(3, 10)]
        assert [r.id for r in run_pipeline(records).items] == [1, 2, 3]
        asc = run_pipeline(records, sort=SortSpec("total", ASCENDING))
        assert [r.id for r in asc.items] == [1, 2, 3]

    def test_text_sort_uses_collation(self):
        records = [_svc(1, service="banana"), _svc(2, service="Ábaco"), _svc(3, service="abacate")]
        result = run_pipeline(records, sort=SortSpec("service", ASCENDING))
        assert [r.service for r in result.items] == ["abacate", "Ábaco", "banana"]

    def test_collation_key_groups_accents(self):
        assert collation_key("Ábaco")[0] == collation_key("abaco")[0]
        assert collation_key(None) == ("", "", "")

    def test_sort_by_single_criterion(self):
        records = [
            Service(id=1, service="a", scores=[0, 2, 0, 0, 0]),
            Service(id=2, service="b", scores=[0, 5, 0, 0, 0]),
        ]
        result = run_pipeline(records, sort=SortSpec("score_1", DESCENDING))
        assert [r.id for r in result.items] == [2, 1]

    def test_missing_dates_sort_first_ascending(self):
        records = [
            _svc(1, creation_date="2024-05-01"),
            _svc(2),
            _svc(3, creation_date="2023-01-01"),
        ]
        result = run_pipeline(records, sort=SortSpec("creationDate", ASCENDING))
        assert [r.id for r in result.items] == [2, 3, 1]

    def test_unknown_sort_key(self):
        with pytest.raises(ValidationError):
            SortSpec("password")

    def test_input_not_mutated(self):
        records = [_svc(1, 5), _svc(2, 20)]
        run_pipeline(records)
        assert [r.id for r in records] == [1, 2]


class TestPagination:
    def test_page_slices(self):
        result = run_pipeline(_portfolio(25), page=PageSpec(page_size=10, page_number=3))
        assert result.total_pages == 3
        assert len(result.items) == 5
        assert result.start_index == 20

    def test_page_beyond_end_clamps(self):
        result = run_pipeline(_portfolio(25), page=PageSpec(page_size=10, page_number=9))
        assert result.page_number == 3

    def test_clamp_page(self):
        assert clamp_page(0, 15, 10) == 1
        assert clamp_page(5, 15, 10) == 2
        assert clamp_page(4, 0, 10) == 1

    def test_invalid_page_size(self):
        with pytest.raises(ValidationError):
            PageSpec(page_size=0)


class TestRankingView:
    def test_filter_change_resets_page(self):
        view = RankingView(page_size=5)
        view.go_to_page(3)
        assert view.set_filters(cluster="Mobilidade") is True
        assert view.page_number == 1

    def test_same_filter_is_not_a_change(self):
        view = RankingView(page_size=5)
        view.set_filters(cluster="Mobilidade")
        view.go_to_page(2)
        assert view.set_filters(cluster="Mobilidade") is False
        assert view.page_number == 2

    def test_toggle_sort(self):
        view = RankingView()
        assert view.sort == SortSpec("total", DESCENDING)
        assert view.toggle_sort("total").direction == ASCENDING
        assert view.toggle_sort("total").direction == DESCENDING
        view.toggle_sort("total")
        assert view.toggle_sort("service") == SortSpec("service", DESCENDING)

    def test_evaluate_reclamps_page(self):
        records = _portfolio(25)
        view = RankingView(page_size=10)
        view.go_to_page(3)
        view.evaluate(records)
        result = view.evaluate(records[:12])
        assert result.page_number == 2
        assert view.page_number == 2

    def test_to_dict(self):
        data = RankingView(page_size=7).to_dict()
        assert data["filters"] == {"cluster": "all", "classification": "all", "status": "all"}
        assert data["sort"] == {"key": "total", "direction": "descending"}
        assert data["pageSize"] == 7
