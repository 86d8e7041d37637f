"""In-memory record collection — the single shared owner of known services.

Mutated only by:
  (a) a full fetch completing (``refresh`` / ``load``)
  (b) a create/update/delete completing successfully (``add`` / ``replace`` / ``remove``)

Readers take ``snapshot()`` and run pure aggregation / pipeline functions on
it; the snapshot is a new list so later writes never change what a reader is
iterating.
"""
from __future__ import annotations

import logging
import threading

from portfolio.core.exceptions import ConflictError, NotFoundError
from portfolio.models.service import Service

logger = logging.getLogger(__name__)


class ServiceStore:
    """Ordered collection of services keyed by id."""

    def __init__(self, records: list[Service] | None = None) -> None:
        self._records: list[Service] = []
        self._loaded = False
        # Guards the list swap only; there is one logical writer.
        self._lock = threading.Lock()
        if records is not None:
            self.load(records)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._records)

    # ── Reads ────────────────────────────────────────────────────────────

    def snapshot(self) -> list[Service]:
        return list(self._records)

    def get(self, service_id: int) -> Service:
        for record in self._records:
            if record.id == service_id:
                return record
        raise NotFoundError("Service", service_id)

    def find(self, service_id: int) -> Service | None:
        return next((r for r in self._records if r.id == service_id), None)

    def clusters(self) -> list[str]:
        """Unique non-empty clusters observed on records, sorted."""
        return sorted({r.cluster for r in self._records if r.cluster})

    # ── Writes ───────────────────────────────────────────────────────────

    def load(self, records: list[Service]) -> None:
        """Replace the whole collection (full fetch). Later duplicates of an id are dropped."""
        seen: set = set()
        unique: list[Service] = []
        for record in records:
            if record.id in seen:
                logger.warning("Duplicate service id=%s in fetch; keeping the first", record.id)
                continue
            seen.add(record.id)
            unique.append(record)
        with self._lock:
            self._records = unique
            self._loaded = True

    def refresh(self, backend) -> list[Service]:
        """Full fetch through the persistence backend."""
        records = backend.get_services()
        self.load(records)
        logger.info("Service store refreshed: %d records", len(records))
        return self.snapshot()

    def add(self, record: Service) -> None:
        if self.find(record.id) is not None:
            raise ConflictError("Service", "id", str(record.id))
        with self._lock:
            self._records = self._records + [record]

    def replace(self, record: Service) -> None:
        """Swap the baseline for ``record.id`` in place (position preserved)."""
        with self._lock:
            for idx, existing in enumerate(self._records):
                if existing.id == record.id:
                    updated = list(self._records)
                    updated[idx] = record
                    self._records = updated
                    return
        raise NotFoundError("Service", record.id)

    def remove(self, service_id: int) -> None:
        with self._lock:
            remaining = [r for r in self._records if r.id != service_id]
            if len(remaining) == len(self._records):
                raise NotFoundError("Service", service_id)
            self._records = remaining
