"""
Chart specifications and PNG rasterization.
"""

import pytest

from charts import (
    activity_chart,
    blood_glucose_chart,
    blood_pressure_chart,
    heart_rate_chart,
    hydration_chart,
    nutrition_chart,
    render_chart,
    steps_chart,
    temperature_chart,
    weight_chart,
)
from conftest import ms
from rules import BLUE, GREEN, ORANGE, RED


def test_temperature_chart_colors_and_baseline(minimal_payload, tz, now):
    spec = temperature_chart(minimal_payload["temperature"], 7, tz, now)
    series = spec["series"][0]

    assert spec["kind"] == "line"
    assert series["y"] == [98.2, 100.2]
    # in-range temperature points are blue; 100.2 is within one degree of 99.6
    assert series["point_colors"] == [BLUE, ORANGE]

    ref = spec["reference"]
    assert ref["label"] == "Normal Temperature (98.6°F)"
    assert ref["x"] == [series["x"][0], series["x"][-1]]
    assert ref["dashed"] is True


def test_heart_rate_chart_respects_timeframe(minimal_payload, tz, now):
    spec = heart_rate_chart(minimal_payload["heartRate"], 1, tz, now)
    assert spec["series"][0]["y"] == []
    assert spec["reference"] is None


def test_heart_rate_chart_colors(minimal_payload, tz, now):
    spec = heart_rate_chart(minimal_payload["heartRate"], 7, tz, now)
    assert spec["series"][0]["point_colors"] == [GREEN, ORANGE]


def test_blood_pressure_chart_has_sys_and_dia(sample_payload, tz, now):
    spec = blood_pressure_chart(sample_payload["bloodPressure"], 7, tz, now)
    labels = [s["label"] for s in spec["series"]]
    assert labels == ["SYS", "DIA"]
    assert spec["series"][0]["marker"] == "D"
    assert spec["series"][1]["dashed"] is True
    assert len(spec["series"][0]["x"]) == 7


def test_blood_glucose_chart_only_categories_with_data(tz, now, sample_payload):
    data = dict(sample_payload["bloodGlucose"])
    data["logs"] = [
        {"measurementDate": ms("2025-03-05 08:00"), "value": 95, "category": "FASTING"},
        {"measurementDate": ms("2025-03-06 08:00"), "value": 95, "category": "RANDOM"},
    ]
    spec = blood_glucose_chart(data, 7, tz, now)
    assert [s["label"] for s in spec["series"]] == ["Fasting", "Random"]
    assert spec["series"][0]["point_colors"] == [GREEN]
    assert spec["series"][1]["point_colors"] == [ORANGE]


def test_hydration_chart_segments_sum_to_larger_of_consumed_and_goal(tz, now):
    data = {
        "unit": "ml",
        "logs": [
            {"createdAt": ms("2025-03-03 00:00"), "consumed": 1000, "goal": 2500},
            {"createdAt": ms("2025-03-04 00:00"), "consumed": 2500, "goal": 2500},
            {"createdAt": ms("2025-03-05 00:00"), "consumed": 3250, "goal": 2500},
        ],
    }
    spec = hydration_chart(data, 7, tz, now)
    assert spec["kind"] == "stacked_bar"
    assert [seg["label"] for seg in spec["segments"]] == ["Intake", "Goal", "Excess"]

    totals = [sum(parts) for parts in zip(*(seg["y"] for seg in spec["segments"]))]
    assert totals == [2500, 2500, 3250]


def test_weight_chart_in_pounds_all_red(tz, now):
    data = {"currentWeight": 50, "logs": [{"createdAt": ms("2025-03-05 07:00"), "value": 50}]}
    spec = weight_chart(data, 7, tz, now)
    series = spec["series"][0]
    assert series["y"] == [pytest.approx(110.231)]
    assert series["point_colors"] == [RED]


def test_steps_chart_uses_garmin_logs_only(tz, now):
    data = {
        "goalAverage": 500,
        "unit": "steps",
        "benchMarks": {
            "lowBorderline": {"min": 250, "max": 400},
            "normal": {"min": 400, "max": 700},
            "highBorderline": {"min": 700, "max": 800},
        },
        "logs": [
            {"measurementDate": ms("2025-03-05 20:00"), "value": 450, "source": {"name": "garmin-connect"}},
            {"measurementDate": ms("2025-03-06 20:00"), "value": 900, "source": {"name": "restore-me"}},
            {"measurementDate": ms("2025-03-06 21:00"), "value": 300, "source": None},
        ],
    }
    spec = steps_chart(data, 7, tz, now)
    assert spec["series"][0]["y"] == [450]
    assert spec["series"][0]["point_colors"] == [GREEN]
    assert spec["reference"]["label"] == "Goal (500 steps)"


def test_render_line_chart(minimal_payload, tz, now, settings, tmp_path):
    spec = temperature_chart(minimal_payload["temperature"], 7, tz, now)
    out = render_chart(spec, tmp_path / "charts" / "temperature.png", settings)
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_stacked_bar_chart(sample_payload, tz, now, settings, tmp_path):
    spec = hydration_chart(sample_payload["hydration"], 7, tz, now)
    out = render_chart(spec, tmp_path / "hydration.png", settings)
    assert out.stat().st_size > 0


def test_render_empty_chart(minimal_payload, tz, now, settings, tmp_path):
    spec = heart_rate_chart(minimal_payload["heartRate"], 1, tz, now)
    assert render_chart(spec, tmp_path / "empty.png", settings).exists()


def test_render_unknown_kind(settings, tmp_path):
    with pytest.raises(ValueError):
        render_chart({"kind": "pie", "y_label": "", "series": []}, tmp_path / "x.png", settings)


def _bands(low, lower, upper, high):
    return {
        "lowBorderline": {"min": low, "max": lower},
        "normal": {"min": lower, "max": upper},
        "highBorderline": {"min": upper, "max": high},
    }


def test_nutrition_chart_goal_line_and_band_colors(tz, now):
    data = {
        "currentGoal": 2000,
        "unit": "kcal",
        "benchMarks": _bands(1200, 1600, 2400, 2800),
        "logs": [
            {"createdAt": ms("2025-03-02 00:00"), "consumed": 1199, "goal": 2000},
            {"createdAt": ms("2025-03-03 00:00"), "consumed": 1600, "goal": 2000},
            {"createdAt": ms("2025-03-04 00:00"), "consumed": 2000, "goal": 2000},
            {"createdAt": ms("2025-03-05 00:00"), "consumed": 2400, "goal": 2000},
            {"createdAt": ms("2025-03-06 00:00"), "consumed": 2801, "goal": 2000},
        ],
    }
    spec = nutrition_chart(data, 7, tz, now)
    series = spec["series"][0]

    assert spec["y_label"] == "Calorie (kcal)"
    assert series["label"] == "Consumption"
    # shared band edges count as borderline
    assert series["point_colors"] == [RED, ORANGE, GREEN, ORANGE, RED]

    ref = spec["reference"]
    assert ref["label"] == "Goal (2000 kcal)"
    assert ref["y"] == 2000.0
    assert ref["x"] == [series["x"][0], series["x"][-1]]


def test_activity_chart_goal_two_decimals(tz, now):
    data = {
        "calories": 450.5,
        "caloriesBurnt": 400,
        "unit": "kcal",
        "benchMarks": _bands(270, 360, 540, 630),
        "logs": [
            {"measurementDate": ms("2025-03-04 20:00"), "caloriesBurnt": 360},
            {"measurementDate": ms("2025-03-05 20:00"), "caloriesBurnt": 450},
            {"measurementDate": ms("2025-03-06 20:00"), "caloriesBurnt": 700},
        ],
    }
    spec = activity_chart(data, 7, tz, now)
    series = spec["series"][0]

    assert series["label"] == "Achieved"
    assert series["y"] == [360.0, 450.0, 700.0]
    assert series["point_colors"] == [ORANGE, GREEN, RED]
    assert spec["reference"]["label"] == "Goal (450.50 kcal)"
    assert spec["reference"]["x"] == [series["x"][0], series["x"][-1]]


def test_activity_chart_without_benchmarks_marks_outliers(tz, now):
    data = {
        "calories": 300,
        "unit": "kcal",
        "benchMarks": None,
        "logs": [{"measurementDate": ms("2025-03-06 20:00"), "caloriesBurnt": 300}],
    }
    spec = activity_chart(data, 7, tz, now)
    assert spec["series"][0]["point_colors"] == [RED]
