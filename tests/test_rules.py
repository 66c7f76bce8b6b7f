"""
Benchmark classification at the range edges.
"""

import pytest

from rules import (
    BORDERLINE,
    MISSING,
    NORMAL,
    OUTLIER,
    STATUS_COLORS,
    TEMPERATURE_COLORS,
    classify_banded,
    classify_glucose,
    classify_range,
    classify_tiered,
    status_color,
    worst_status,
)

SYSTOLIC = {
    "lowBorderline": {"min": 70, "max": 89},
    "normal": {"min": 90, "max": 120},
    "highBorderline": {"min": 121, "max": 140},
    "high": {"min": 141, "max": 190},
}

GLUCOSE = {
    "beforeMeals": {
        "lowBorderline": {"min": 70, "max": 89},
        "normal": {"min": 90, "max": 99},
        "highBorderline": {"min": 100, "max": 125},
    },
    "afterMealsAndRandom": {
        "lowBorderline": {"min": 70, "max": 100},
        "normal": {"min": 101, "max": 140},
        "highBorderline": {"min": 141, "max": 199},
    },
}

CALORIE_BANDS = {
    "lowBorderline": {"min": 1200, "max": 1600},
    "normal": {"min": 1600, "max": 2400},
    "highBorderline": {"min": 2400, "max": 2800},
}


@pytest.mark.parametrize(
    "value, expected",
    [
        (60, NORMAL),
        (100, NORMAL),
        (59, BORDERLINE),
        (101, BORDERLINE),
        (58.5, OUTLIER),
        (101.5, OUTLIER),
        (None, MISSING),
    ],
)
def test_classify_range_edges(value, expected):
    assert classify_range(value, 60, 100) == expected


def test_classify_range_fractional_bounds():
    lo, hi = 97.4, 99.6
    assert classify_range(lo, lo, hi) == NORMAL
    assert classify_range(lo - 1, lo, hi) == BORDERLINE
    assert classify_range(hi + 1, lo, hi) == BORDERLINE
    assert classify_range(66.9, lo, hi) == OUTLIER


@pytest.mark.parametrize(
    "value, expected",
    [
        (90, NORMAL),
        (120, NORMAL),
        (89, BORDERLINE),
        (121, BORDERLINE),
        (70, BORDERLINE),
        (140, BORDERLINE),
        (69, OUTLIER),
        (141, OUTLIER),
        (150, OUTLIER),
    ],
)
def test_classify_tiered_edges(value, expected):
    assert classify_tiered(value, SYSTOLIC) == expected


@pytest.mark.parametrize(
    "value, category, expected",
    [
        (95, "FASTING", NORMAL),
        (95, "RANDOM", BORDERLINE),
        (120, "AFTER_A_MEAL", NORMAL),
        (120, "FASTING", BORDERLINE),
        (200, "RANDOM", OUTLIER),
        (67, "FASTING", OUTLIER),
    ],
)
def test_classify_glucose_uses_category_benchmark(value, category, expected):
    assert classify_glucose(value, category, GLUCOSE) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (2000, NORMAL),
        (1600, BORDERLINE),
        (2400, BORDERLINE),
        (1601, NORMAL),
        (2399, NORMAL),
        (1200, BORDERLINE),
        (2800, BORDERLINE),
        (1199, OUTLIER),
        (2801, OUTLIER),
    ],
)
def test_classify_banded_shared_edges_are_borderline(value, expected):
    assert classify_banded(value, CALORIE_BANDS) == expected


def test_classify_banded_without_benchmarks_is_outlier():
    assert classify_banded(2000, None) == OUTLIER
    assert classify_banded(2000, {"normal": CALORIE_BANDS["normal"]}) == OUTLIER


def test_status_colors():
    assert status_color(NORMAL) == "#00B050"
    assert status_color(NORMAL, TEMPERATURE_COLORS) == "#0047FF"
    assert status_color(BORDERLINE) == "#FFA63E"
    assert status_color(OUTLIER) == "#FA114F"
    assert STATUS_COLORS[MISSING] == "#C0C0C0"


def test_worst_status():
    assert worst_status([NORMAL, BORDERLINE]) == BORDERLINE
    assert worst_status([BORDERLINE, OUTLIER, NORMAL]) == OUTLIER
    assert worst_status([MISSING, NORMAL]) == NORMAL
    assert worst_status([]) == MISSING
