"""
Service Portfolio — ranking board API tests.

Tests cover:
  - open board, default ordering and pagination
  - view changes (filters, sort toggle, page clamping)
  - field edits, unsaved-change confirmation (409) and save
  - board ownership
"""

import pytest

from portfolio.auth import DEV_USER
from portfolio.core.exceptions import GatewayError


@pytest.fixture()
def portfolio(make_service):
    """Five ideas over two clusters with distinct totals."""
    return [
        make_service("Casa 1", scores=(5, 5, 5, 5, 5), cluster="Casa Inteligente"),
        make_service("Mob 1", scores=(4, 4, 4, 4, 4), cluster="Mobilidade"),
        make_service("Casa 2", scores=(3, 3, 3, 3, 3), cluster="Casa Inteligente"),
        make_service("Mob 2", scores=(2, 2, 2, 2, 2), cluster="Mobilidade"),
        make_service("Casa 3", scores=(1, 1, 1, 1, 1), cluster="Casa Inteligente"),
    ]


def _open(client, page_size=2):
    res = client.post("/api/v1/ranking/boards", json={"pageSize": page_size})
    assert res.status_code == 201
    return res.get_json()


def _view(client, board, **body):
    return client.patch(f"/api/v1/ranking/boards/{board}/view", json=body)


def _edit(client, board, service_id, field, value):
    return client.patch(
        f"/api/v1/ranking/boards/{board}/services/{service_id}",
        json={"field": field, "value": value},
    )


class TestBoardView:
    def test_open_board(self, client, portfolio):
        page = _open(client)
        assert [i["service"] for i in page["items"]] == ["Casa 1", "Mob 1"]
        assert [i["rank"] for i in page["items"]] == [1, 2]
        assert page["pagination"]["totalPages"] == 3
        assert page["pending"] == []
        assert page["readOnly"] is False

    def test_page_navigation(self, client, portfolio):
        board = _open(client)["board"]
        page = _view(client, board, pageNumber=3).get_json()
        assert [i["service"] for i in page["items"]] == ["Casa 3"]
        assert page["items"][0]["rank"] == 5

    def test_page_out_of_range_clamps(self, client, portfolio):
        board = _open(client)["board"]
        page = _view(client, board, pageNumber=40).get_json()
        assert page["pagination"]["pageNumber"] == 3

    def test_filter_resets_page(self, client, portfolio):
        board = _open(client)["board"]
        _view(client, board, pageNumber=2)
        page = _view(client, board, filters={"cluster": "Mobilidade"}).get_json()
        assert page["pagination"]["pageNumber"] == 1
        assert [i["service"] for i in page["items"]] == ["Mob 1", "Mob 2"]

    def test_filter_with_no_match(self, client, portfolio):
        board = _open(client)["board"]
        page = _view(client, board, filters={"cluster": "Educação"}).get_json()
        assert page["items"] == []
        assert page["pagination"]["pageNumber"] == 1
        assert page["pagination"]["totalCount"] == 0

    def test_sort_toggle(self, client, portfolio):
        board = _open(client)["board"]
        page = _view(client, board, sort={"key": "total"}).get_json()
        assert page["view"]["sort"] == {"key": "total", "direction": "ascending"}
        assert page["items"][0]["service"] == "Casa 3"

    def test_sort_with_direction(self, client, portfolio):
        board = _open(client)["board"]
        page = _view(client, board, sort={"key": "service", "direction": "ascending"}).get_json()
        assert [i["service"] for i in page["items"]] == ["Casa 1", "Casa 2"]

    def test_unknown_filter_key(self, client, portfolio):
        board = _open(client)["board"]
        res = _view(client, board, filters={"owner": "x"})
        assert res.status_code == 422

    def test_invalid_sort_key(self, client, portfolio):
        board = _open(client)["board"]
        assert _view(client, board, sort={"key": "nope"}).status_code == 422

    def test_unknown_board(self, client):
        assert client.get("/api/v1/ranking/boards/missing").status_code == 404


class TestBoardEdits:
    def test_edit_is_pending_until_saved(self, client, state, portfolio):
        board = _open(client)["board"]
        target = portfolio[1]
        page = _edit(client, board, target.id, "score_0", 1).get_json()
        assert page["pending"] == [target.id]
        row = next(i for i in page["items"] if i["id"] == target.id)
        assert row["modifiedFields"] == ["score_0"]
        assert state.store.get(target.id).scores[0] == 4

    def test_edit_clamps(self, client, portfolio):
        board = _open(client)["board"]
        page = _edit(client, board, portfolio[1].id, "score_0", 42).get_json()
        row = next(i for i in page["items"] if i["id"] == portfolio[1].id)
        assert row["scores"][0] == 5

    def test_edit_requires_field(self, client, portfolio):
        board = _open(client)["board"]
        res = client.patch(f"/api/v1/ranking/boards/{board}/services/{portfolio[0].id}", json={"value": 1})
        assert res.status_code == 422

    def test_filter_change_needs_confirm(self, client, portfolio):
        board = _open(client)["board"]
        _edit(client, board, portfolio[0].id, "score_0", 0)

        res = _view(client, board, filters={"cluster": "Mobilidade"})
        assert res.status_code == 409
        body = res.get_json()
        assert body["code"] == "ERR_UNSAVED_CHANGES"
        assert body["details"] == {"pending": 1, "action": "change_filters"}

        res = _view(client, board, filters={"cluster": "Mobilidade"}, confirm=True)
        assert res.status_code == 200
        assert res.get_json()["pending"] == []

    def test_sort_keeps_pending_edits(self, client, portfolio):
        board = _open(client)["board"]
        _edit(client, board, portfolio[0].id, "score_0", 0)
        page = _view(client, board, sort={"key": "service"}, pageNumber=2).get_json()
        assert page["pending"] == [portfolio[0].id]

    def test_save_persists(self, client, state, portfolio):
        board = _open(client)["board"]
        target = portfolio[4]
        _edit(client, board, target.id, "score_0", 5)
        _edit(client, board, target.id, "revenueEstimate", 2500)

        res = client.post(f"/api/v1/ranking/boards/{board}/save", json={})
        assert res.status_code == 200
        body = res.get_json()
        assert body["result"] == {"saved": [target.id], "failed": [], "ok": True}
        assert body["pending"] == []

        stored = next(r for r in state.backend.get_services() if r.id == target.id)
        assert stored.scores[0] == 5
        assert stored.revenue_estimate == 2500
        assert client.get(f"/api/v1/services/{target.id}").get_json()["total"] == 9

    def test_save_failure_keeps_edit(self, client, state, portfolio, monkeypatch):
        board = _open(client)["board"]
        target = portfolio[0]
        _edit(client, board, target.id, "score_0", 0)

        def _unreachable(service):
            raise GatewayError("Sheet API unreachable")

        monkeypatch.setattr(state.backend, "update_service", _unreachable)
        body = client.post(f"/api/v1/ranking/boards/{board}/save", json={}).get_json()
        assert body["result"]["ok"] is False
        assert body["result"]["failed"][0]["id"] == target.id
        assert body["pending"] == [target.id]

    def test_save_of_deleted_record_drops_edit(self, client, state, portfolio):
        board = _open(client)["board"]
        target = portfolio[0]
        _edit(client, board, target.id, "score_0", 0)
        state.backend.delete_service(target.id)

        body = client.post(f"/api/v1/ranking/boards/{board}/save", json={}).get_json()
        assert body["result"]["ok"] is False
        assert body["result"]["failed"][0]["id"] == target.id
        assert body["pending"] == []

    def test_same_value_written_elsewhere_clears_pending(self, client, portfolio):
        board = _open(client)["board"]
        target = portfolio[0]
        _edit(client, board, target.id, "score_0", 0)

        res = client.put(f"/api/v1/services/{target.id}", json={"scores": [0, 5, 5, 5, 5]})
        assert res.status_code == 200

        page = client.get(f"/api/v1/ranking/boards/{board}").get_json()
        row = next(i for i in page["items"] if i["id"] == target.id)
        assert row["modified"] is False
        assert row["modifiedFields"] == []
        assert page["pending"] == []

    def test_discard(self, client, portfolio):
        board = _open(client)["board"]
        _edit(client, board, portfolio[0].id, "score_0", 0)
        assert client.post(f"/api/v1/ranking/boards/{board}/discard", json={}).status_code == 409
        res = client.post(f"/api/v1/ranking/boards/{board}/discard", json={"confirm": True})
        assert res.get_json()["discarded"] == 1

    def test_close(self, client, portfolio):
        board = _open(client)["board"]
        _edit(client, board, portfolio[0].id, "score_0", 0)
        assert client.delete(f"/api/v1/ranking/boards/{board}").status_code == 409
        res = client.delete(f"/api/v1/ranking/boards/{board}?confirm=1")
        assert res.get_json() == {"closed": True, "discarded": 1}
        assert client.get(f"/api/v1/ranking/boards/{board}").status_code == 404


class TestBoardOwnership:
    def test_other_users_board_is_hidden(self, client, state, portfolio):
        other = state.boards.create(owner="someone@example.com")
        assert client.get(f"/api/v1/ranking/boards/{other.id}").status_code == 404
        mine = state.boards.create(owner=DEV_USER["email"])
        assert client.get(f"/api/v1/ranking/boards/{mine.id}").status_code == 200
