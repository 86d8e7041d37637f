"""
Service Portfolio
Scoring & classification rules for service ideas.

Each idea is scored 0-5 on five fixed criteria; the total (0-25) maps to a
priority tier:

    21-25 → Altíssima  (very high)
    16-20 → Alta       (high)
    11-15 → Média      (medium)
     0-10 → Baixa      (low)
"""

import math

SCORE_MIN = 0
SCORE_MAX = 5
CRITERIA_COUNT = 5
TOTAL_MAX = SCORE_MAX * CRITERIA_COUNT

# ── Tiers ────────────────────────────────────────────────────────────────────

TIER_VERY_HIGH = "Altíssima"
TIER_HIGH = "Alta"
TIER_MEDIUM = "Média"
TIER_LOW = "Baixa"

# Highest first; also the display order of the priority chart.
TIERS = (TIER_VERY_HIGH, TIER_HIGH, TIER_MEDIUM, TIER_LOW)

# Inclusive lower bounds, checked top-down.
TIER_THRESHOLDS = (
    (21, TIER_VERY_HIGH),
    (16, TIER_HIGH),
    (11, TIER_MEDIUM),
)


def _as_number(value, default=0):
    """Coerce loose input (str, None, float) to a number; bad input → default."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip().replace(",", "."))
    except (TypeError, ValueError):
        return default


def clamp_score(value) -> int:
    """Clamp a single criterion score to [0, 5]. Non-numeric input → 0."""
    number = _as_number(value)
    if math.isnan(number):
        return SCORE_MIN
    return int(max(SCORE_MIN, min(SCORE_MAX, number)))


def clamp_revenue(value) -> float:
    """Revenue estimates are never negative."""
    number = float(_as_number(value))
    return number if math.isfinite(number) and number >= 0 else 0.0


def normalize_scores(scores) -> list[int]:
    """Return exactly five clamped scores; missing entries become 0."""
    if not isinstance(scores, (list, tuple)):
        scores = []
    values = list(scores)[:CRITERIA_COUNT]
    values += [0] * (CRITERIA_COUNT - len(values))
    return [clamp_score(v) for v in values]


def total_score(scores) -> int:
    """Sum of the criterion scores, treating missing entries as 0."""
    if not isinstance(scores, (list, tuple)):
        return 0
    return int(sum(_as_number(s) for s in scores[:CRITERIA_COUNT]))


def classify(total: int) -> str:
    """Map a total score to its priority tier."""
    for lower_bound, tier in TIER_THRESHOLDS:
        if total >= lower_bound:
            return tier
    return TIER_LOW
