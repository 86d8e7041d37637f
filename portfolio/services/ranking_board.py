"""Ranking board — one user's prioritization table.

A board combines the view state (filters / sort / page) with the edit
session of unsaved changes. Boards are server-side objects addressed by id;
``BoardRegistry`` keeps them per application.

Navigation rules:
  - a filter change while edits are pending needs ``confirm=True`` and
    discards the edits
  - sort and page changes keep pending edits (they are keyed by id)
  - nothing moves while a save is in flight
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace

from portfolio.core.exceptions import (
    NotFoundError,
    SavingInProgressError,
    UnsavedChangesError,
    ValidationError,
)
from portfolio.models.catalog import DEFAULT_BUSINESS_MODEL
from portfolio.services.edit_session import EditSession, SaveResult
from portfolio.services.ranking import DEFAULT_PAGE_SIZE, DESCENDING, RankingView, SortSpec
from portfolio.services.service_store import ServiceStore

logger = logging.getLogger(__name__)


class RankingBoard:
    def __init__(
        self,
        store: ServiceStore,
        *,
        board_id: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        read_only: bool = False,
        owner: str | None = None,
        default_business_model: str = DEFAULT_BUSINESS_MODEL,
    ) -> None:
        self.id = board_id or uuid.uuid4().hex
        self.owner = owner
        self.store = store
        self.view = RankingView(page_size=page_size)
        self.session = EditSession(store, read_only=read_only)
        self.default_business_model = default_business_model

    @property
    def read_only(self) -> bool:
        return self.session.read_only

    def change_view(
        self,
        *,
        filters: dict | None = None,
        sort_key: str | None = None,
        direction: str | None = None,
        page_number: int | None = None,
        confirm: bool = False,
    ) -> dict:
        """Apply filter / sort / page changes and return the new page.

        ``sort_key`` without ``direction`` toggles, like clicking a column
        header. All changes are validated before any of them is applied.
        """
        if self.session.saving:
            raise SavingInProgressError()

        new_filters = replace(self.view.filters, **filters) if filters else self.view.filters
        filters_change = new_filters != self.view.filters
        if sort_key is not None:
            SortSpec(sort_key, direction or DESCENDING)
        if page_number is not None and not isinstance(page_number, int):
            raise ValidationError("Invalid page number", details={"page_number": "must be an integer"})

        if filters_change and self.session.has_pending:
            if not confirm:
                raise UnsavedChangesError(self.session.pending_count, "change_filters")
            self.session.discard_all(confirm=True)

        if filters_change:
            self.view.set_filters(
                cluster=new_filters.cluster,
                classification=new_filters.classification,
                status=new_filters.status,
            )
        if sort_key is not None:
            if direction is None:
                self.view.toggle_sort(sort_key)
            else:
                self.view.set_sort(sort_key, direction)
        if page_number is not None:
            self.view.go_to_page(page_number)

        return self.page()

    def edit(self, service_id: int, field_name: str, value) -> dict:
        self.session.edit(service_id, field_name, value)
        return self.page()

    def save(self, backend) -> SaveResult:
        return self.session.save_all(backend)

    def discard(self, confirm: bool = False) -> int:
        return self.session.discard_all(confirm=confirm)

    def page(self) -> dict:
        """Current page, baseline-ordered, with pending edits overlaid."""
        result = self.view.evaluate(self.store.snapshot())
        rows = []
        for offset, record in enumerate(self.session.overlay(result.items)):
            row = record.to_dict(self.default_business_model)
            row["rank"] = result.start_index + offset + 1
            row["modified"] = self.session.is_modified(record.id)
            row["modifiedFields"] = self.session.modified_fields(record.id)
            rows.append(row)
        return {
            "board": self.id,
            "view": self.view.to_dict(),
            "pagination": result.to_dict(),
            "items": rows,
            "pending": self.session.pending_ids,
            "saving": self.session.saving,
            "readOnly": self.read_only,
        }


class BoardRegistry:
    """Boards of one application, keyed by id."""

    def __init__(self, store: ServiceStore) -> None:
        self.store = store
        self._boards: dict[str, RankingBoard] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._boards)

    def create(self, **kwargs) -> RankingBoard:
        board = RankingBoard(self.store, **kwargs)
        with self._lock:
            self._boards[board.id] = board
        logger.info("Ranking board created", extra={"board_id": board.id})
        return board

    def get(self, board_id: str, owner: str | None = None) -> RankingBoard:
        board = self._boards.get(board_id)
        # Another user's board is reported as missing.
        if board is None or (owner is not None and board.owner not in (None, owner)):
            raise NotFoundError("RankingBoard", board_id)
        return board

    def close(self, board_id: str, owner: str | None = None, confirm: bool = False) -> int:
        """Remove a board; pending edits need ``confirm`` like any discard."""
        board = self.get(board_id, owner)
        discarded = board.discard(confirm=confirm)
        with self._lock:
            self._boards.pop(board_id, None)
        logger.info("Ranking board closed", extra={"board_id": board_id})
        return discarded
