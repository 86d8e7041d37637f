"""
Portfolio Metrics Engine

KPI computation for the overview dashboard: counts, revenue, approval rate,
time-windowed counts, distributions and rankings.

Every function takes the record list explicitly and is a pure read: calling
it twice on the same list yields the same result, and nothing is cached.

Usage:
    from portfolio.services.metrics import portfolio_overview
    kpis = portfolio_overview(store.snapshot())
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from portfolio.models.catalog import DEFAULT_BUSINESS_MODEL, cluster_titles
from portfolio.models.scoring import TIERS
from portfolio.models.service import (
    STATUS_APPROVED,
    STATUS_EVALUATION,
    TERMINAL_STATUSES,
    Service,
)

NEW_IDEAS_WINDOW_DAYS = 30
STAGNANT_WINDOW_DAYS = 60
TOP_IDEAS_LIMIT = 5
SCORE_DECIMALS = 2

UNASSIGNED_LABEL = "N/A"


# ═════════════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════════════

def _safe_pct(numerator: int, denominator: int) -> float:
    """Zero-safe percentage."""
    return round((numerator / denominator) * 100, 1) if denominator else 0.0


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


# ═════════════════════════════════════════════════════════════════════════════
# Scalar KPIs
# ═════════════════════════════════════════════════════════════════════════════

def total_ideas(records: list[Service]) -> int:
    return len(records)


def potential_revenue(records: list[Service]) -> float:
    """Sum of revenue estimates over approved ideas."""
    return sum(r.revenue_estimate or 0 for r in records if r.status == STATUS_APPROVED)


def new_ideas_window(records: list[Service], days: int = NEW_IDEAS_WINDOW_DAYS, now: datetime | None = None) -> int:
    """Ideas created within the last ``days`` days. Records without a date are skipped."""
    cutoff = _now(now) - timedelta(days=days)
    return sum(1 for r in records if r.creation_date and r.creation_date > cutoff)


def stagnant_ideas(records: list[Service], days: int = STAGNANT_WINDOW_DAYS, now: datetime | None = None) -> int:
    """Ideas still in evaluation that were created more than ``days`` days ago."""
    cutoff = _now(now) - timedelta(days=days)
    return sum(
        1 for r in records
        if r.status == STATUS_EVALUATION and r.creation_date and r.creation_date < cutoff
    )


def approval_rate(records: list[Service]) -> float:
    """approved / (approved + cancelled + finished) × 100; 0 when nothing is terminal."""
    terminal = [r for r in records if r.status in TERMINAL_STATUSES]
    approved = sum(1 for r in terminal if r.status == STATUS_APPROVED)
    return _safe_pct(approved, len(terminal))


def average_score(records: list[Service]) -> float:
    """Mean total score; 0 for an empty portfolio."""
    if not records:
        return 0.0
    return sum(r.total for r in records) / len(records)


# ═════════════════════════════════════════════════════════════════════════════
# Distributions & rankings
# ═════════════════════════════════════════════════════════════════════════════

def _key_fn(key: str, default_business_model: str) -> Callable[[Service], str]:
    if key == "cluster":
        return lambda r: r.cluster or UNASSIGNED_LABEL
    if key == "business_model":
        return lambda r: r.business_model_category(default_business_model)
    if key == "classification":
        return lambda r: r.classification
    raise ValueError(f"Unknown distribution key: {key!r}")


def distribution_by(
    records: list[Service],
    key: str,
    default_business_model: str = DEFAULT_BUSINESS_MODEL,
) -> list[tuple[str, int]]:
    """Group + count, ordered by descending count.

    Ties keep first-appearance order; for ``classification`` the tier order
    (Altíssima → Baixa) is the tie-break. Empty groups are not listed.
    """
    label_of = _key_fn(key, default_business_model)
    counts = Counter(label_of(r) for r in records)

    if key == "classification":
        order: Iterable[str] = TIERS
    else:
        order = dict.fromkeys(label_of(r) for r in records)

    pairs = [(label, counts[label]) for label in order if counts.get(label)]
    pairs.sort(key=lambda pair: -pair[1])
    return pairs


def average_score_by_cluster(records: list[Service], clusters: list[str] | None = None) -> list[dict]:
    """Mean total score per cluster for the portfolio-balance radar.

    Lists every catalog cluster (average 0 when empty), followed by any
    cluster that only appears on records.
    """
    ordered = list(clusters if clusters is not None else cluster_titles())
    for r in records:
        if r.cluster and r.cluster not in ordered:
            ordered.append(r.cluster)

    result = []
    for cluster in ordered:
        members = [r for r in records if r.cluster == cluster]
        avg = sum(r.total for r in members) / len(members) if members else 0.0
        result.append({"cluster": cluster, "average": avg, "count": len(members)})
    return result


def top_n(records: list[Service], n: int = TOP_IDEAS_LIMIT) -> list[Service]:
    """The ``n`` highest-scoring ideas; ties keep collection order."""
    if n <= 0:
        return []
    return sorted(records, key=lambda r: -r.total)[:n]


# ═════════════════════════════════════════════════════════════════════════════
# Aggregate
# ═════════════════════════════════════════════════════════════════════════════

def portfolio_overview(
    records: list[Service],
    *,
    now: datetime | None = None,
    new_days: int = NEW_IDEAS_WINDOW_DAYS,
    stagnant_days: int = STAGNANT_WINDOW_DAYS,
    default_business_model: str = DEFAULT_BUSINESS_MODEL,
) -> dict:
    """All overview KPIs in one structure."""
    def _pairs(key):
        return [
            {"name": label, "value": count}
            for label, count in distribution_by(records, key, default_business_model)
        ]

    return {
        "totalIdeas": total_ideas(records),
        "averageScore": round(average_score(records), SCORE_DECIMALS),
        "potentialRevenue": potential_revenue(records),
        "newIdeas": new_ideas_window(records, new_days, now=now),
        "newIdeasWindowDays": new_days,
        "approvalRate": approval_rate(records),
        "stagnantIdeas": stagnant_ideas(records, stagnant_days, now=now),
        "stagnantWindowDays": stagnant_days,
        "priorityDistribution": _pairs("classification"),
        "clusterDistribution": _pairs("cluster"),
        "businessModelDistribution": _pairs("business_model"),
    }
