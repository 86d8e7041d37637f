"""
Service Portfolio
Tests — unsaved edit overlay, batch save and ranking boards.

Covers:
    - edit clamping and baseline-restoring edits
    - discard confirmation
    - save_all partial failure (sequential and concurrent backends)
    - saving lock, including two saves racing on one session
    - edits the baseline has caught up with, records deleted under an edit
    - board navigation rules and registry ownership
"""

import threading
import time
from unittest.mock import MagicMock

import pytest

from portfolio.core.exceptions import (
    GatewayError,
    NotFoundError,
    PermissionDeniedError,
    SavingInProgressError,
    UnsavedChangesError,
    ValidationError,
)
from portfolio.models.service import Service
from portfolio.services.edit_session import EditSession, modified_fields
from portfolio.services.ranking_board import BoardRegistry, RankingBoard
from portfolio.services.service_store import ServiceStore


def _svc(sid, scores=(1, 1, 1, 1, 1), **kw):
    kw.setdefault("service", f"Ideia {sid}")
    kw.setdefault("cluster", "Mobilidade")
    return Service(id=sid, scores=list(scores), **kw)


def _store(n=3):
    return ServiceStore([_svc(i) for i in range(1, n + 1)])


def _backend(concurrent=False, fail_ids=()):
    backend = MagicMock()
    backend.supports_concurrent_writes = concurrent

    def _update(service):
        if service.id in fail_ids:
            raise GatewayError("Sheet API unreachable")
        return service

    backend.update_service.side_effect = _update
    return backend


class TestEdit:
    def test_edit_is_clamped_and_tracked(self):
        session = EditSession(_store())
        edited = session.edit(1, "score_0", 9)
        assert edited.scores[0] == 5
        assert session.is_modified(1)
        assert session.modified_fields(1) == ["score_0"]

    def test_baseline_untouched(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)
        assert store.get(1).scores[0] == 1
        assert session.current(1).scores[0] == 4

    def test_restoring_baseline_drops_entry(self):
        session = EditSession(_store())
        session.edit(2, "score_3", 0)
        session.edit(2, "score_3", 1)
        assert not session.has_pending

    def test_edits_accumulate_per_record(self):
        session = EditSession(_store())
        session.edit(1, "score_0", 3)
        session.edit(1, "status", "aprovada")
        assert session.pending_count == 1
        assert set(session.modified_fields(1)) == {"score_0", "status"}

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            EditSession(_store()).edit(1, "total", 25)

    def test_bad_status(self):
        with pytest.raises(ValidationError):
            EditSession(_store()).edit(1, "status", "arquivada")

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            EditSession(_store()).edit(1, "service", "   ")

    def test_unknown_record(self):
        with pytest.raises(NotFoundError):
            EditSession(_store()).edit(99, "score_0", 1)

    def test_read_only(self):
        with pytest.raises(PermissionDeniedError):
            EditSession(_store(), read_only=True).edit(1, "score_0", 2)

    def test_overlay(self):
        store = _store()
        session = EditSession(store)
        session.edit(3, "score_4", 5)
        overlaid = session.overlay(store.snapshot())
        assert [r.scores[4] for r in overlaid] == [1, 1, 5]

    def test_modified_fields_without_baseline(self):
        assert "score_0" in modified_fields(_svc(1), None)


class TestBaselineCatchUp:
    def test_same_value_saved_elsewhere_is_not_modified(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)
        store.replace(store.get(1).with_field("score_0", 4))

        assert not session.is_modified(1)
        assert session.modified_fields(1) == []
        assert session.pending_ids == []
        assert session.pending_count == 0

    def test_partial_catch_up_keeps_remaining_fields(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)
        session.edit(1, "score_1", 2)
        store.replace(store.get(1).with_field("score_0", 4))

        assert session.is_modified(1)
        assert session.modified_fields(1) == ["score_1"]
        assert session.pending_ids == [1]

    def test_caught_up_edit_needs_no_discard_confirm(self):
        store = _store()
        session = EditSession(store)
        session.edit(2, "status", "aprovada")
        store.replace(store.get(2).with_field("status", "aprovada"))
        assert session.discard_all() == 0

    def test_caught_up_edit_is_not_sent(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)
        session.edit(2, "score_0", 3)
        store.replace(store.get(1).with_field("score_0", 4))

        backend = _backend()
        result = session.save_all(backend)
        assert [s.id for s in result.saved] == [2]
        assert backend.update_service.call_count == 1

    def test_board_row_follows_baseline(self):
        store = _store()
        board = RankingBoard(store)
        board.edit(1, "score_0", 4)
        store.replace(store.get(1).with_field("score_0", 4))

        page = board.page()
        row = next(item for item in page["items"] if item["id"] == 1)
        assert row["modified"] is False
        assert row["modifiedFields"] == []
        assert page["pending"] == []
        # no pending edits left, so a filter change goes through
        board.change_view(filters={"cluster": "Mobilidade"})


class TestDiscard:
    def test_requires_confirm(self):
        session = EditSession(_store())
        session.edit(1, "score_0", 3)
        with pytest.raises(UnsavedChangesError) as exc:
            session.discard_all()
        assert exc.value.pending == 1
        assert session.has_pending

    def test_with_confirm(self):
        session = EditSession(_store())
        session.edit(1, "score_0", 3)
        session.edit(2, "score_0", 3)
        assert session.discard_all(confirm=True) == 2
        assert not session.has_pending

    def test_nothing_pending_needs_no_confirm(self):
        assert EditSession(_store()).discard_all() == 0


class TestSaveAll:
    @pytest.mark.parametrize("concurrent", [False, True])
    def test_partial_failure_keeps_failed_edits(self, concurrent):
        store = _store()
        session = EditSession(store)
        for sid in (1, 2, 3):
            session.edit(sid, "score_0", 4)

        result = session.save_all(_backend(concurrent, fail_ids={2}))

        assert [s.id for s in result.saved] == [1, 3]
        assert list(result.failed) == [2]
        assert not result.ok
        assert session.pending_ids == [2]
        assert store.get(1).scores[0] == 4
        assert store.get(3).scores[0] == 4
        assert store.get(2).scores[0] == 1

    def test_one_update_per_record(self):
        session = EditSession(_store())
        session.edit(1, "score_0", 4)
        session.edit(1, "score_1", 4)
        backend = _backend()
        session.save_all(backend)
        assert backend.update_service.call_count == 1

    def test_nothing_pending(self):
        backend = _backend()
        result = EditSession(_store()).save_all(backend)
        assert result.ok
        backend.update_service.assert_not_called()

    def test_to_dict(self):
        session = EditSession(_store())
        session.edit(1, "score_0", 4)
        data = session.save_all(_backend(fail_ids={1})).to_dict()
        assert data == {"saved": [], "failed": [{"id": 1, "error": "Sheet API unreachable"}], "ok": False}

    def test_edit_blocked_while_saving(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)
        seen = {}

        def _update(service):
            with pytest.raises(SavingInProgressError):
                session.edit(2, "score_0", 2)
            seen["saving"] = session.saving
            return service

        backend = MagicMock(supports_concurrent_writes=False)
        backend.update_service.side_effect = _update
        session.save_all(backend)
        assert seen["saving"] is True
        assert session.saving is False

    def test_saved_record_removed_from_store_meanwhile(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)

        def _update(service):
            store.remove(1)
            return service

        backend = MagicMock(supports_concurrent_writes=False)
        backend.update_service.side_effect = _update
        result = session.save_all(backend)
        assert result.ok
        assert not session.has_pending

    def test_record_deleted_under_edit_leaves_the_map(self):
        store = _store()
        session = EditSession(store)
        session.edit(1, "score_0", 4)
        session.edit(2, "score_0", 4)

        backend = MagicMock(supports_concurrent_writes=False)

        def _update(service):
            if service.id == 1:
                raise NotFoundError("Service", 1)
            return service

        backend.update_service.side_effect = _update
        result = session.save_all(backend)

        assert list(result.failed) == [1]
        assert [s.id for s in result.saved] == [2]
        assert session.pending_ids == []
        # the next save has nothing left to retry
        assert session.save_all(backend).to_dict() == {"saved": [], "failed": [], "ok": True}
        assert backend.update_service.call_count == 2

    def test_racing_saves_dispatch_once(self):
        session = EditSession(_store())
        session.edit(1, "score_0", 4)
        release = threading.Event()

        def _update(service):
            release.wait(timeout=5)
            return service

        backend = MagicMock(supports_concurrent_writes=False)
        backend.update_service.side_effect = _update
        outcomes = []

        def _save():
            try:
                outcomes.append(session.save_all(backend))
            except SavingInProgressError as exc:
                outcomes.append(exc)

        threads = [threading.Thread(target=_save) for _ in range(2)]
        for thread in threads:
            thread.start()
        deadline = time.monotonic() + 5
        while not outcomes and time.monotonic() < deadline:
            time.sleep(0.01)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert backend.update_service.call_count == 1
        assert sum(isinstance(o, SavingInProgressError) for o in outcomes) == 1
        assert not session.has_pending


class TestRankingBoard:
    def test_filter_change_with_pending_needs_confirm(self):
        board = RankingBoard(_store())
        board.edit(1, "score_0", 5)
        with pytest.raises(UnsavedChangesError):
            board.change_view(filters={"cluster": "Educação"})
        assert board.view.filters.cluster is None

        page = board.change_view(filters={"cluster": "Educação"}, confirm=True)
        assert page["pending"] == []
        assert page["view"]["filters"]["cluster"] == "Educação"

    def test_sort_and_page_keep_edits(self):
        board = RankingBoard(_store(), page_size=2)
        board.edit(1, "score_0", 5)
        board.change_view(sort_key="service")
        page = board.change_view(page_number=2)
        assert page["pending"] == [1]

    def test_invalid_sort_applies_nothing(self):
        board = RankingBoard(_store())
        with pytest.raises(ValidationError):
            board.change_view(filters={"cluster": "Educação"}, sort_key="bogus")
        assert board.view.filters.cluster is None

    def test_page_overlays_edits(self):
        board = RankingBoard(_store())
        page = board.edit(2, "score_0", 5)
        row = next(item for item in page["items"] if item["id"] == 2)
        assert row["modified"] is True
        assert row["modifiedFields"] == ["score_0"]
        assert row["total"] == 9
        # order stays on the baseline totals until saved
        assert [item["rank"] for item in page["items"]] == [1, 2, 3]

    def test_view_blocked_while_saving(self):
        board = RankingBoard(_store())
        board.session.saving = True
        with pytest.raises(SavingInProgressError):
            board.change_view(page_number=1)


class TestBoardRegistry:
    def test_owner_isolation(self):
        registry = BoardRegistry(_store())
        board = registry.create(owner="ana@example.com")
        assert registry.get(board.id, "ana@example.com") is board
        with pytest.raises(NotFoundError):
            registry.get(board.id, "bruno@example.com")

    def test_close_with_pending_needs_confirm(self):
        registry = BoardRegistry(_store())
        board = registry.create()
        board.edit(1, "score_0", 3)
        with pytest.raises(UnsavedChangesError):
            registry.close(board.id)
        assert registry.close(board.id, confirm=True) == 1
        assert len(registry) == 0
