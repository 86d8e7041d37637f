"""
Service Portfolio
Portfolio service: create / update / delete / search of service ideas.

Every write goes to the persistence backend first; the in-memory store is
only touched after the backend accepted the change.
"""

import logging

from portfolio.core.exceptions import PermissionDeniedError, ValidationError
from portfolio.models.catalog import (
    BUSINESS_MODEL_CATEGORIES,
    BUSINESS_MODELS,
    CLUSTERS,
    DEFAULT_BUSINESS_MODEL,
    cluster_titles,
    map_business_model,
)
from portfolio.models.scoring import CRITERIA_COUNT
from portfolio.models.service import Service, normalize_status

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("service", "need", "targetAudience", "cluster", "businessModel")
TEXT_FIELDS = REQUIRED_FIELDS + ("creatorName",)
SEARCH_LIMIT = 10


def _check_editor(user):
    if user is not None and user.get("readOnly"):
        raise PermissionDeniedError("modify services")


def _clean_text_fields(data: dict) -> dict:
    cleaned = dict(data)
    for name in TEXT_FIELDS:
        value = cleaned.get(name)
        if value is not None:
            cleaned[name] = str(value).strip()
    return cleaned


def _validate_status(data: dict, errors: dict) -> None:
    if data.get("status") in (None, ""):
        return
    try:
        data["status"] = normalize_status(data["status"], strict=True)
    except ValueError as exc:
        errors["status"] = str(exc)


def _validate_scores(data: dict, errors: dict) -> None:
    scores = data.get("scores")
    if scores is None:
        return
    if not isinstance(scores, (list, tuple)) or len(scores) > CRITERIA_COUNT:
        errors["scores"] = f"must be a list of at most {CRITERIA_COUNT} numbers"


# ═════════════════════════════════════════════════════════════════════════════
# Writes
# ═════════════════════════════════════════════════════════════════════════════

def create_service(store, backend, data: dict, user: dict | None = None) -> Service:
    """Register a new idea.

    Required: service, need, targetAudience, cluster, businessModel.
    creatorName defaults to the user's display name; status to "avaliação".
    The backend assigns id, creation date and zeroed scores/revenue.
    """
    _check_editor(user)
    data = _clean_text_fields(data or {})

    errors = {name: "required" for name in REQUIRED_FIELDS if not data.get(name)}
    _validate_status(data, errors)
    if errors:
        raise ValidationError("Please fill in all required fields", details=errors)

    if not data.get("creatorName") and user:
        data["creatorName"] = user.get("name", "")

    draft = Service(
        id=None,
        service=data["service"],
        need=data["need"],
        target_audience=data["targetAudience"],
        cluster=data["cluster"],
        business_model=data["businessModel"],
        status=data.get("status"),
        creator_name=data.get("creatorName", ""),
    )
    created = backend.add_service(draft)
    store.add(created)
    logger.info("Service created id=%s cluster=%s", created.id, created.cluster)
    return created


def update_service(store, backend, service_id: int, data: dict, user: dict | None = None) -> Service:
    """Full-record replace of one idea.

    Fields missing from ``data`` keep their current value; id and creation
    date are immutable. Scores and revenue are clamped, not rejected.
    """
    _check_editor(user)
    current = store.get(service_id)
    data = _clean_text_fields(data or {})

    errors = {}
    if "service" in data and not data["service"]:
        errors["service"] = "required"
    _validate_status(data, errors)
    _validate_scores(data, errors)
    if errors:
        raise ValidationError("Invalid service data", details=errors)

    merged = current.to_dict()
    merged.update({k: v for k, v in data.items() if k not in ("id", "creationDate", "total", "classification")})
    merged["id"] = current.id
    merged["creationDate"] = current.creation_date
    candidate = Service.from_dict(merged)

    saved = backend.update_service(candidate)
    store.replace(saved)
    logger.info("Service updated id=%s", service_id)
    return saved


def delete_service(store, backend, service_id: int, user: dict | None = None) -> dict:
    _check_editor(user)
    store.get(service_id)
    result = backend.delete_service(service_id)
    store.remove(service_id)
    logger.info("Service deleted id=%s", service_id)
    return result


def refresh(store, backend) -> list[Service]:
    return store.refresh(backend)


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════

def search_services(records: list[Service], term: str, limit: int = SEARCH_LIMIT) -> list[Service]:
    """Case-insensitive substring match on the display name, collection order."""
    needle = (term or "").strip().casefold()
    if not needle:
        return []
    hits = [r for r in records if needle in (r.service or "").casefold()]
    return hits[:limit]


def cluster_options(store) -> list[str]:
    """Catalog clusters followed by any extra cluster already used on records."""
    options = cluster_titles()
    options += [c for c in store.clusters() if c not in options]
    return options


def ideas_by_cluster(records: list[Service]) -> list[dict]:
    """Catalog clusters with their ideas (highest total first)."""
    result = []
    for cluster in CLUSTERS:
        members = [r for r in records if r.cluster == cluster["shortTitle"]]
        members.sort(key=lambda r: -r.total)
        result.append({**cluster, "ideas": [r.to_dict() for r in members], "count": len(members)})
    return result


def ideas_by_business_model(records: list[Service], default_business_model: str = DEFAULT_BUSINESS_MODEL) -> list[dict]:
    """Business-model catalog entries with the ideas mapped into each category."""
    buckets = {category: [] for category in BUSINESS_MODEL_CATEGORIES}
    for r in records:
        buckets.setdefault(map_business_model(r.business_model, default=default_business_model), []).append(r)

    result = []
    for entry in BUSINESS_MODELS:
        members = sorted(buckets.get(entry["shortTitle"], []), key=lambda r: -r.total)
        result.append({
            **entry,
            "ideas": [r.to_dict(default_business_model) for r in members],
            "count": len(members),
        })
    return result
