# src/rules.py
from __future__ import annotations

NORMAL = "normal"
BORDERLINE = "borderline"
OUTLIER = "outlier"
MISSING = "missing"

# -------------------------
# Point colors (hex, shared by charts and PDF tables)
# -------------------------
GREEN = "#00B050"
BLUE = "#0047FF"
ORANGE = "#FFA63E"
RED = "#FA114F"
GREY = "#C0C0C0"

STATUS_COLORS = {
    NORMAL: GREEN,
    BORDERLINE: ORANGE,
    OUTLIER: RED,
    MISSING: GREY,
}

# Temperature plots its in-range points in blue instead of green
TEMPERATURE_COLORS = {**STATUS_COLORS, NORMAL: BLUE}

_SEVERITY = {MISSING: 0, NORMAL: 1, BORDERLINE: 2, OUTLIER: 3}

FASTING = "FASTING"
AFTER_A_MEAL = "AFTER_A_MEAL"
RANDOM = "RANDOM"
GLUCOSE_CATEGORIES = [FASTING, AFTER_A_MEAL, RANDOM]


def _in_range(value: float, rng: dict | None) -> bool:
    if not rng:
        return False
    return rng["min"] <= value <= rng["max"]


def classify_range(value, min_value: float, max_value: float) -> str:
    """
    Single normal range with a one-unit borderline window on each side.
    Used for temperature and heart rate.
    """
    if value is None:
        return MISSING
    if min_value <= value <= max_value:
        return NORMAL
    if (min_value - 1 <= value < min_value) or (max_value < value <= max_value + 1):
        return BORDERLINE
    return OUTLIER


def classify_tiered(value, tiers: dict) -> str:
    """
    Four-tier benchmark (lowBorderline / normal / highBorderline / high).
    Anything outside normal and the two borderline tiers is an outlier,
    including values inside the "high" tier.
    """
    if value is None:
        return MISSING
    if _in_range(value, tiers.get("normal")):
        return NORMAL
    if _in_range(value, tiers.get("lowBorderline")) or _in_range(value, tiers.get("highBorderline")):
        return BORDERLINE
    return OUTLIER


def glucose_tiers(benchmark: dict, category: str) -> dict:
    """FASTING readings use the before-meal tiers, everything else the after-meal/random tiers."""
    if category == FASTING:
        return benchmark["beforeMeals"]
    return benchmark["afterMealsAndRandom"]


def classify_glucose(value, category: str, benchmark: dict) -> str:
    return classify_tiered(value, glucose_tiers(benchmark, category))


def classify_banded(value, bands: dict | None) -> str:
    """
    Goal-relative bands (nutrition, activity, steps). Adjacent bands share
    their edges; a value on a shared edge counts as borderline.
    """
    if value is None:
        return MISSING

    low = (bands or {}).get("lowBorderline")
    normal = (bands or {}).get("normal")
    high = (bands or {}).get("highBorderline")
    if not low or not normal or not high:
        return OUTLIER

    if value < low["min"] or value > high["max"]:
        return OUTLIER
    if _in_range(value, low) or _in_range(value, high):
        return BORDERLINE
    return NORMAL


def status_color(status: str, palette: dict | None = None) -> str:
    return (palette or STATUS_COLORS)[status]


def worst_status(statuses) -> str:
    """Most severe of the given statuses (outlier > borderline > normal > missing)."""
    worst = MISSING
    for s in statuses:
        if _SEVERITY[s] > _SEVERITY[worst]:
            worst = s
    return worst
