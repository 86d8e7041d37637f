"""Ranking table pipeline — filter, sort and paginate service ideas.

Processing order is fixed:
  1. annotate every record with its total score
  2. apply the active filters (AND semantics)
  3. stable sort by the sort spec (text → locale collation, numbers → numeric)
  4. slice the requested page, clamping an out-of-range page number

``run_pipeline`` is pure. ``RankingView`` holds the user's filter / sort /
page choice and applies the interaction rules on top of it:
  - any filter change resets to page 1
  - re-selecting the active sort key flips its direction; a new key starts
    descending
  - every evaluation re-clamps the page number to the result size
"""
from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from portfolio.core.exceptions import ValidationError
from portfolio.models.scoring import TIERS, classify
from portfolio.models.service import SERVICE_STATUSES, Service, normalize_status, score_index

ALL = "all"

ASCENDING = "ascending"
DESCENDING = "descending"
DIRECTIONS = (ASCENDING, DESCENDING)

DEFAULT_SORT_KEY = "total"
DEFAULT_PAGE_SIZE = 10

TEXT_SORT_KEYS = {
    "service": "service",
    "need": "need",
    "targetAudience": "target_audience",
    "cluster": "cluster",
    "businessModel": "business_model",
    "status": "status",
    "creatorName": "creator_name",
}
NUMERIC_SORT_KEYS = {"id", "total", "revenueEstimate"}
DATE_SORT_KEYS = {"creationDate"}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def collation_key(text) -> tuple:
    """Locale-style sort key: accents and case only break ties.

    "Ábaco" sorts next to "abaco", before "b".
    """
    raw = "" if text is None else str(text)
    decomposed = unicodedata.normalize("NFKD", raw)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return (base, raw.casefold(), raw)


def is_sort_key(key: str) -> bool:
    return (
        key in TEXT_SORT_KEYS
        or key in NUMERIC_SORT_KEYS
        or key in DATE_SORT_KEYS
        or score_index(key) is not None
    )


# ── Specs ────────────────────────────────────────────────────────────────────


def _is_active(value) -> bool:
    return value not in (None, "", ALL)


@dataclass(frozen=True)
class FilterSpec:
    """Each field set to None/"all" means no constraint."""

    cluster: str | None = None
    classification: str | None = None
    status: str | None = None

    def __post_init__(self):
        # "all" and "" are stored as None so equal filters compare equal
        for name in ("cluster", "classification", "status"):
            if not _is_active(getattr(self, name)):
                object.__setattr__(self, name, None)

        errors = {}
        if _is_active(self.classification) and self.classification not in TIERS:
            errors["classification"] = f"must be one of {', '.join(TIERS)} or 'all'"
        if _is_active(self.status):
            try:
                object.__setattr__(self, "status", normalize_status(self.status, strict=True))
            except ValueError:
                errors["status"] = f"must be one of {', '.join(SERVICE_STATUSES)} or 'all'"
        if errors:
            raise ValidationError("Invalid filter", details=errors)

    @property
    def active(self) -> dict:
        return {
            name: value
            for name, value in (
                ("cluster", self.cluster),
                ("classification", self.classification),
                ("status", self.status),
            )
            if _is_active(value)
        }

    def to_dict(self) -> dict:
        return {
            "cluster": self.cluster if _is_active(self.cluster) else ALL,
            "classification": self.classification if _is_active(self.classification) else ALL,
            "status": self.status if _is_active(self.status) else ALL,
        }


@dataclass(frozen=True)
class SortSpec:
    key: str = DEFAULT_SORT_KEY
    direction: str = DESCENDING

    def __post_init__(self):
        if not is_sort_key(self.key):
            raise ValidationError("Invalid sort key", details={"key": f"unknown field {self.key!r}"})
        if self.direction not in DIRECTIONS:
            raise ValidationError("Invalid sort direction", details={"direction": "ascending or descending"})

    def to_dict(self) -> dict:
        return {"key": self.key, "direction": self.direction}


@dataclass(frozen=True)
class PageSpec:
    page_size: int = DEFAULT_PAGE_SIZE
    page_number: int = 1

    def __post_init__(self):
        if not isinstance(self.page_size, int) or self.page_size < 1:
            raise ValidationError("Invalid page size", details={"page_size": "must be >= 1"})
        if not isinstance(self.page_number, int):
            raise ValidationError("Invalid page number", details={"page_number": "must be an integer"})


@dataclass
class PipelineResult:
    items: list = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    page_number: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def start_index(self) -> int:
        return (self.page_number - 1) * self.page_size

    def to_dict(self) -> dict:
        return {
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "pageStartIndex": self.start_index,
        }


# ── Pipeline ─────────────────────────────────────────────────────────────────


def _sort_value(record: Service, total: int, key: str):
    idx = score_index(key)
    if idx is not None:
        return record.scores[idx] or 0
    if key == "total":
        return total
    if key == "revenueEstimate":
        return record.revenue_estimate or 0
    if key == "id":
        return record.id if record.id is not None else 0
    if key == "creationDate":
        return record.creation_date or _EPOCH
    return collation_key(getattr(record, TEXT_SORT_KEYS[key]))


def clamp_page(page_number: int, total_count: int, page_size: int) -> int:
    """Clamp into [1, last page]; an empty result always lands on page 1."""
    total_pages = math.ceil(total_count / page_size) if total_count else 0
    if total_pages == 0:
        return 1
    return max(1, min(page_number, total_pages))


def run_pipeline(
    records: list[Service],
    filters: FilterSpec | None = None,
    sort: SortSpec | None = None,
    page: PageSpec | None = None,
) -> PipelineResult:
    """Filter → sort → paginate. Does not modify ``records``."""
    filters = filters or FilterSpec()
    sort = sort or SortSpec()
    page = page or PageSpec()

    # 1. annotate
    annotated = [(record, record.total) for record in records]

    # 2. filter
    active = filters.active
    if "cluster" in active:
        annotated = [(r, t) for r, t in annotated if r.cluster == active["cluster"]]
    if "status" in active:
        annotated = [(r, t) for r, t in annotated if (r.status or SERVICE_STATUSES[0]) == active["status"]]
    if "classification" in active:
        annotated = [(r, t) for r, t in annotated if classify(t) == active["classification"]]

    # 3. sort (Python's sort is stable for reverse=True too)
    annotated.sort(key=lambda pair: _sort_value(pair[0], pair[1], sort.key), reverse=sort.direction == DESCENDING)

    # 4. paginate
    total_count = len(annotated)
    page_number = clamp_page(page.page_number, total_count, page.page_size)
    start = (page_number - 1) * page.page_size
    items = [record for record, _ in annotated[start:start + page.page_size]]

    return PipelineResult(
        items=items,
        total_count=total_count,
        total_pages=math.ceil(total_count / page.page_size) if total_count else 0,
        page_number=page_number,
        page_size=page.page_size,
    )


# ── Interactive view state ──────────────────────────────────────────────────


class RankingView:
    """Filter / sort / page state of one ranking table."""

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        filters: FilterSpec | None = None,
        sort: SortSpec | None = None,
    ) -> None:
        self.filters = filters or FilterSpec()
        self.sort = sort or SortSpec()
        self.page = PageSpec(page_size=page_size, page_number=1)

    @property
    def page_number(self) -> int:
        return self.page.page_number

    def set_filters(self, **changes) -> bool:
        """Update one or more filters; any effective change resets to page 1."""
        updated = replace(self.filters, **changes)
        if updated == self.filters:
            return False
        self.filters = updated
        self.page = replace(self.page, page_number=1)
        return True

    def toggle_sort(self, key: str) -> SortSpec:
        """Same key flips descending↔ascending; a new key starts descending."""
        if self.sort.key == key and self.sort.direction == DESCENDING:
            self.sort = SortSpec(key, ASCENDING)
        else:
            self.sort = SortSpec(key, DESCENDING)
        return self.sort

    def set_sort(self, key: str, direction: str) -> SortSpec:
        self.sort = SortSpec(key, direction)
        return self.sort

    def go_to_page(self, page_number: int) -> None:
        self.page = replace(self.page, page_number=page_number)

    def evaluate(self, records: list[Service]) -> PipelineResult:
        """Run the pipeline and keep the page number inside the result."""
        result = run_pipeline(records, self.filters, self.sort, self.page)
        if result.page_number != self.page.page_number:
            self.page = replace(self.page, page_number=result.page_number)
        return result

    def to_dict(self) -> dict:
        return {
            "filters": self.filters.to_dict(),
            "sort": self.sort.to_dict(),
            "pageSize": self.page.page_size,
            "pageNumber": self.page.page_number,
        }
