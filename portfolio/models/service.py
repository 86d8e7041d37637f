"""
Service Portfolio
Service idea — the sole persisted entity.

Records live in the remote sheet (or the local SQL table) and are held in
memory as plain ``Service`` objects. The write-side invariants are enforced
here so every code path that builds a record gets them for free:

    - exactly five scores, each clamped to [0, 5]
    - revenue estimate clamped to >= 0
    - status always one of SERVICE_STATUSES (absent → "avaliação")
"""

import dataclasses
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime

from portfolio.models.catalog import CRITERIA_SHEET_COLUMNS, DEFAULT_BUSINESS_MODEL, map_business_model
from portfolio.models.scoring import (
    CRITERIA_COUNT,
    clamp_revenue,
    clamp_score,
    classify,
    normalize_scores,
    total_score,
)
from portfolio.utils.helpers import parse_datetime, parse_int


# ── Status ───────────────────────────────────────────────────────────────────

STATUS_EVALUATION = "avaliação"
STATUS_APPROVED = "aprovada"
STATUS_CANCELLED = "cancelada"
STATUS_FINISHED = "finalizada"

SERVICE_STATUSES = (STATUS_EVALUATION, STATUS_APPROVED, STATUS_CANCELLED, STATUS_FINISHED)
TERMINAL_STATUSES = frozenset({STATUS_APPROVED, STATUS_CANCELLED, STATUS_FINISHED})


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold().strip()


_STATUS_LOOKUP = {_fold(s): s for s in SERVICE_STATUSES}


def normalize_status(value, strict: bool = False) -> str:
    """Return the canonical status for ``value``.

    Blank/None → "avaliação". Case and accents are ignored ("Avaliacao" works).
    Unknown values raise ValueError when ``strict``, else fall back to
    "avaliação".
    """
    if value is None or str(value).strip() == "":
        return STATUS_EVALUATION
    status = _STATUS_LOOKUP.get(_fold(str(value)))
    if status is None:
        if strict:
            raise ValueError(f"Unknown status: {value!r}")
        return STATUS_EVALUATION
    return status


# ── Field names ──────────────────────────────────────────────────────────────

SCORE_FIELD_PREFIX = "score_"
SCORE_FIELDS = tuple(f"{SCORE_FIELD_PREFIX}{i}" for i in range(CRITERIA_COUNT))

# API (camelCase) name → attribute name, for fields a user may edit.
EDITABLE_FIELDS = {
    "service": "service",
    "need": "need",
    "targetAudience": "target_audience",
    "cluster": "cluster",
    "businessModel": "business_model",
    "status": "status",
    "creatorName": "creator_name",
    "revenueEstimate": "revenue_estimate",
}

# Fields compared for per-cell "modified" highlighting in the ranking table.
TRACKED_FIELDS = SCORE_FIELDS + tuple(EDITABLE_FIELDS)


def score_index(field_name: str):
    """'score_3' → 3; anything else (or out of range) → None."""
    if not isinstance(field_name, str) or not field_name.startswith(SCORE_FIELD_PREFIX):
        return None
    idx = parse_int(field_name[len(SCORE_FIELD_PREFIX):])
    if idx is None or not 0 <= idx < CRITERIA_COUNT:
        return None
    return idx


def _first(data: dict, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class Service:
    """A scored service idea."""

    id: int | None
    service: str
    need: str = ""
    target_audience: str = ""
    cluster: str = ""
    business_model: str = ""
    status: str = STATUS_EVALUATION
    creator_name: str = ""
    creation_date: datetime | None = None
    scores: list = field(default_factory=lambda: [0] * CRITERIA_COUNT)
    revenue_estimate: float = 0.0

    def __post_init__(self):
        self.scores = normalize_scores(self.scores)
        self.revenue_estimate = clamp_revenue(self.revenue_estimate)
        self.status = normalize_status(self.status)
        self.creation_date = parse_datetime(self.creation_date)

    # ── Derived ──────────────────────────────────────────────────────────

    @property
    def total(self) -> int:
        return total_score(self.scores)

    @property
    def classification(self) -> str:
        return classify(self.total)

    def business_model_category(self, default: str = DEFAULT_BUSINESS_MODEL) -> str:
        return map_business_model(self.business_model, default=default)

    # ── Field access by API name ─────────────────────────────────────────

    def get_field(self, name: str):
        """Read a field by its API name ('score_2', 'revenueEstimate', 'total', ...)."""
        idx = score_index(name)
        if idx is not None:
            return self.scores[idx]
        if name == "total":
            return self.total
        if name == "classification":
            return self.classification
        if name == "creationDate":
            return self.creation_date
        if name == "id":
            return self.id
        attr = EDITABLE_FIELDS.get(name)
        if attr is None:
            raise KeyError(name)
        return getattr(self, attr)

    def with_field(self, name: str, value) -> "Service":
        """Return a copy with one field replaced, clamped per the invariants."""
        clone = self.copy()
        idx = score_index(name)
        if idx is not None:
            clone.scores[idx] = clamp_score(value)
            return clone
        attr = EDITABLE_FIELDS.get(name)
        if attr is None:
            raise KeyError(name)
        if attr == "revenue_estimate":
            value = clamp_revenue(value)
        elif attr == "status":
            value = normalize_status(value, strict=True)
        else:
            value = "" if value is None else str(value)
        setattr(clone, attr, value)
        return clone

    def copy(self, **changes) -> "Service":
        changes.setdefault("scores", list(self.scores))
        return dataclasses.replace(self, **changes)

    # ── Serialisation ────────────────────────────────────────────────────

    def to_dict(self, default_business_model: str = DEFAULT_BUSINESS_MODEL) -> dict:
        return {
            "id": self.id,
            "service": self.service,
            "need": self.need,
            "targetAudience": self.target_audience,
            "cluster": self.cluster,
            "businessModel": self.business_model,
            "businessModelCategory": self.business_model_category(default_business_model),
            "status": self.status,
            "creatorName": self.creator_name,
            "creationDate": self.creation_date.isoformat() if self.creation_date else None,
            "scores": list(self.scores),
            "revenueEstimate": self.revenue_estimate,
            "total": self.total,
            "classification": self.classification,
        }

    def to_sheet_row(self) -> dict:
        """Flatten into the column layout of the backing spreadsheet."""
        row = {
            "id": self.id,
            "service": self.service,
            "need": self.need,
            "cluster": self.cluster,
            "businessModel": self.business_model,
            "targetAudience": self.target_audience or "",
            "status": self.status or STATUS_EVALUATION,
            "creatorName": self.creator_name or "",
            "creationDate": self.creation_date.isoformat() if self.creation_date else "",
        }
        for column, score in zip(CRITERIA_SHEET_COLUMNS, self.scores):
            row[column] = score
        row["revenue_estimate"] = self.revenue_estimate
        return row

    @classmethod
    def from_dict(cls, data: dict) -> "Service":
        """Build from an API body or a sheet row (camelCase, snake_case or flat columns)."""
        scores = data.get("scores")
        if scores is None and any(col in data for col in CRITERIA_SHEET_COLUMNS):
            scores = [data.get(col, 0) for col in CRITERIA_SHEET_COLUMNS]

        raw_id = data.get("id")
        return cls(
            id=parse_int(raw_id) if raw_id not in (None, "") else None,
            service=str(_first(data, "service", default="")).strip(),
            need=str(_first(data, "need", default="")),
            target_audience=str(_first(data, "targetAudience", "target_audience", default="")),
            cluster=str(_first(data, "cluster", default="")),
            business_model=str(_first(data, "businessModel", "business_model", default="")),
            status=_first(data, "status"),
            creator_name=str(_first(data, "creatorName", "creator_name", default="")),
            creation_date=_first(data, "creationDate", "creation_date"),
            scores=scores,
            revenue_estimate=_first(data, "revenueEstimate", "revenue_estimate", default=0),
        )
