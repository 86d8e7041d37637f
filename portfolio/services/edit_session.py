"""Unsaved-edit overlay for the ranking table.

The baseline collection (``ServiceStore``) is never touched while the user
edits. Edits live in a sparse patch set ``{service_id: edited snapshot}``;
a missing key means "unedited, shows the baseline".

    edit()        clamp + upsert one field; an edit that restores the baseline
                  drops the entry
    save_all()    one full-record update per entry; successes replace their
                  baseline and leave the map, failures stay in the map unless
                  the record no longer exists
    discard_all() clears the map, only with confirm=True
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from portfolio.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    SavingInProgressError,
    UnsavedChangesError,
    ValidationError,
)
from portfolio.models.service import TRACKED_FIELDS, Service
from portfolio.services.service_store import ServiceStore

logger = logging.getLogger(__name__)

_MAX_WORKERS = 8


@dataclass
class SaveResult:
    """Outcome of ``save_all``: per-record successes and failures."""

    saved: list = field(default_factory=list)
    failed: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "saved": [s.id for s in self.saved],
            "failed": [{"id": sid, "error": msg} for sid, msg in self.failed.items()],
            "ok": self.ok,
        }


def modified_fields(edited: Service, baseline: Service | None) -> list[str]:
    """Fields whose edited value differs from the baseline (all of them if no baseline)."""
    if baseline is None:
        return list(TRACKED_FIELDS)
    return [name for name in TRACKED_FIELDS if edited.get_field(name) != baseline.get_field(name)]


class EditSession:
    """Buffers per-record edits against a ServiceStore baseline."""

    def __init__(self, store: ServiceStore, *, read_only: bool = False, max_workers: int = _MAX_WORKERS) -> None:
        self.store = store
        self.read_only = read_only
        self.max_workers = max_workers
        self.saving = False
        self._edits: dict[int, Service] = {}
        self._lock = threading.RLock()

    # ── State ────────────────────────────────────────────────────────────

    @property
    def pending_ids(self) -> list[int]:
        self._prune()
        return list(self._edits)

    @property
    def pending_count(self) -> int:
        self._prune()
        return len(self._edits)

    @property
    def has_pending(self) -> bool:
        self._prune()
        return bool(self._edits)

    def current(self, service_id: int) -> Service:
        """Edited snapshot if any, else the baseline."""
        return self._edits.get(service_id) or self.store.get(service_id)

    def is_modified(self, service_id: int) -> bool:
        return bool(self.modified_fields(service_id))

    def modified_fields(self, service_id: int) -> list[str]:
        edited = self._edits.get(service_id)
        if edited is None:
            return []
        return modified_fields(edited, self.store.find(service_id))

    def overlay(self, records: list[Service]) -> list[Service]:
        """Swap in edited snapshots for the given (baseline) records."""
        self._prune()
        return [self._edits.get(r.id, r) for r in records]

    # ── Mutations ────────────────────────────────────────────────────────

    def edit(self, service_id: int, field_name: str, value) -> Service:
        """Apply one field edit (clamped) and return the resulting snapshot."""
        if self.read_only:
            raise PermissionDeniedError("edit services")
        with self._lock:
            if self.saving:
                raise SavingInProgressError()
            return self._apply_edit(service_id, field_name, value)

    def _apply_edit(self, service_id: int, field_name: str, value) -> Service:
        baseline = self.store.get(service_id)
        current = self._edits.get(service_id, baseline)
        try:
            updated = current.with_field(field_name, value)
        except KeyError:
            raise ValidationError(
                f"Field {field_name!r} cannot be edited", details={field_name: "not editable"},
            ) from None
        except ValueError as exc:
            raise ValidationError(str(exc), details={field_name: str(exc)}) from None

        if field_name == "service" and not updated.service.strip():
            raise ValidationError("service is required", details={"service": "required"})

        if modified_fields(updated, baseline):
            self._edits[service_id] = updated
        else:
            self._edits.pop(service_id, None)
        return updated

    def discard_all(self, confirm: bool = False) -> int:
        """Drop every pending edit. Requires explicit confirmation."""
        with self._lock:
            self._prune()
            pending = len(self._edits)
            if pending and not confirm:
                raise UnsavedChangesError(pending, "discard")
            self._edits.clear()
        if pending:
            logger.info("Discarded %d unsaved edit(s)", pending)
        return pending

    def save_all(self, backend) -> SaveResult:
        """Persist every pending edit through ``backend.update_service``.

        Updates go out concurrently when the backend allows it. Each record is
        one full-record update. A failed update keeps its entry in the map;
        other records are still committed. An update for a record the backend
        no longer has is reported as failed and leaves the map.
        """
        if self.read_only:
            raise PermissionDeniedError("save changes")

        result = SaveResult()
        with self._lock:
            if self.saving:
                raise SavingInProgressError()
            self._prune()
            entries = list(self._edits.items())
            if not entries:
                return result
            self.saving = True

        try:
            outcomes = self._dispatch(backend, entries)
            for service_id, snapshot in entries:
                saved, error = outcomes[service_id]
                if error is not None:
                    result.failed[service_id] = str(error)
                    logger.warning("Save failed for service id=%s: %s", service_id, error)
                    if isinstance(error, NotFoundError):
                        self._forget(service_id, snapshot)
                    continue
                self._commit(service_id, snapshot, saved)
                result.saved.append(saved)
        finally:
            self.saving = False

        logger.info("save_all: %d saved, %d failed", len(result.saved), len(result.failed))
        return result

    # ── Internals ────────────────────────────────────────────────────────

    def _prune(self) -> None:
        """Drop entries whose baseline has caught up with the edited snapshot."""
        with self._lock:
            for service_id, edited in list(self._edits.items()):
                baseline = self.store.find(service_id)
                if baseline is not None and not modified_fields(edited, baseline):
                    del self._edits[service_id]

    def _forget(self, service_id: int, snapshot: Service) -> None:
        with self._lock:
            if self._edits.get(service_id) is snapshot:
                del self._edits[service_id]
                logger.info("Dropped unsaved edit for missing service id=%s", service_id)

    def _dispatch(self, backend, entries: list) -> dict:
        """Run the updates; returns {id: (saved_record | None, error | None)}."""
        outcomes: dict = {}
        if getattr(backend, "supports_concurrent_writes", False) and len(entries) > 1:
            workers = min(self.max_workers, len(entries))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {pool.submit(backend.update_service, snap): sid for sid, snap in entries}
                for future in as_completed(futures):
                    sid = futures[future]
                    try:
                        outcomes[sid] = (future.result(), None)
                    except Exception as exc:  # isolated per record, reported in SaveResult
                        outcomes[sid] = (None, exc)
        else:
            for sid, snap in entries:
                try:
                    outcomes[sid] = (backend.update_service(snap), None)
                except Exception as exc:  # isolated per record, reported in SaveResult
                    outcomes[sid] = (None, exc)
        return outcomes

    def _commit(self, service_id: int, snapshot: Service, saved: Service) -> None:
        try:
            self.store.replace(saved)
        except NotFoundError:
            # Record vanished from the store (deleted or refreshed away) mid-save.
            logger.info("Saved service id=%s is no longer in the store; baseline not updated", service_id)
        # Only drop the entry if nobody re-edited or discarded it meanwhile.
        with self._lock:
            if self._edits.get(service_id) is snapshot:
                del self._edits[service_id]
