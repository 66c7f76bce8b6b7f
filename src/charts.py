# src/charts.py
from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import pandas as pd

from config import Settings, get_settings
from metrics import (
    KG_TO_LBS,
    filter_by_timeframe,
    fmt_value,
    garmin_logs,
    hydration_stack,
)
from rules import (
    AFTER_A_MEAL,
    BLUE,
    FASTING,
    GLUCOSE_CATEGORIES,
    GREEN,
    RANDOM,
    RED,
    TEMPERATURE_COLORS,
    classify_banded,
    classify_glucose,
    classify_range,
    classify_tiered,
    status_color,
)

logger = logging.getLogger(__name__)

LINE_GREY = "#636363"

# Glucose series styling per reading category
GLUCOSE_STYLES = {
    FASTING: {"label": "Fasting", "line_color": "#800080", "marker": "o", "dashed": False},
    AFTER_A_MEAL: {"label": "After A Meal", "line_color": "#FF1493", "marker": "^", "dashed": False},
    RANDOM: {"label": "Random", "line_color": "#0000FF", "marker": "D", "dashed": True},
}


# ----------------------------
# Chart specifications (plain dicts, rendered by render_chart)
# ----------------------------

def _xs(df: pd.DataFrame) -> list:
    if df.empty:
        return []
    return [d.to_pydatetime() for d in df["date"]]


def _ys(df: pd.DataFrame, col: str, scale: float = 1.0) -> list:
    if df.empty or col not in df.columns:
        return []
    return [None if pd.isna(v) else float(v) * scale for v in df[col]]


def _series(label, x, y, point_colors, line_color=LINE_GREY, marker="o", dashed=True) -> dict:
    return {
        "label": label,
        "x": x,
        "y": y,
        "point_colors": point_colors,
        "line_color": line_color,
        "marker": marker,
        "dashed": dashed,
    }


def _reference(label: str, y, x: list, dashed: bool = False) -> dict | None:
    """Horizontal baseline/goal line spanning the earliest to the latest plotted date."""
    if not x or y is None:
        return None
    return {"label": label, "y": float(y), "x": [x[0], x[-1]], "color": BLUE, "dashed": dashed}


def line_chart(y_label: str, series: list[dict], reference: dict | None = None) -> dict:
    return {"kind": "line", "y_label": y_label, "series": series, "reference": reference}


def temperature_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "measurementDate", tz, now)
    bm = data["benchMark"]
    rng = bm["normalRange"]

    x = _xs(df)
    y = _ys(df, "value")
    colors = [status_color(classify_range(v, rng["min"], rng["max"]), TEMPERATURE_COLORS) for v in y]

    baseline = bm.get("baseline")
    return line_chart(
        "Temperature °F",
        [_series("Temperature", x, y, colors)],
        _reference(f"Normal Temperature ({fmt_value(baseline)}°F)", baseline, x, dashed=True),
    )


def heart_rate_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "measurementDate", tz, now)
    bm = data["benchMark"]

    y = _ys(df, "value")
    colors = [status_color(classify_range(v, bm["min"], bm["max"])) for v in y]
    return line_chart("Heart Rate BPM", [_series("Heart Rate", _xs(df), y, colors)])


def blood_pressure_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "measurementDate", tz, now)
    bm = data["benchMark"]

    x = _xs(df)
    sys_y = _ys(df, "systolic")
    dia_y = _ys(df, "diastolic")
    sys_colors = [status_color(classify_tiered(v, bm["systolic"])) for v in sys_y]
    dia_colors = [status_color(classify_tiered(v, bm["diastolic"])) for v in dia_y]

    return line_chart(
        "BP mmHg",
        [
            _series("SYS", x, sys_y, sys_colors, line_color=BLUE, marker="D", dashed=False),
            _series("DIA", x, dia_y, dia_colors, line_color=LINE_GREY, marker="o", dashed=True),
        ],
    )


def blood_glucose_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "measurementDate", tz, now)
    bm = data["benchMark"]

    series = []
    for category in GLUCOSE_CATEGORIES:
        if df.empty or "category" not in df.columns:
            break
        part = df[df["category"] == category]
        if part.empty:
            continue
        y = _ys(part, "value")
        colors = [status_color(classify_glucose(v, category, bm)) for v in y]
        style = GLUCOSE_STYLES[category]
        series.append(
            _series(
                style["label"],
                _xs(part),
                y,
                colors,
                line_color=style["line_color"],
                marker=style["marker"],
                dashed=style["dashed"],
            )
        )

    return line_chart("Blood Glucose mg/dL", series)


def nutrition_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "createdAt", tz, now)
    unit = data.get("unit", "")

    x = _xs(df)
    y = _ys(df, "consumed")
    colors = [status_color(classify_banded(v, data.get("benchMarks"))) for v in y]

    goal = data.get("currentGoal")
    return line_chart(
        f"Calorie ({unit})",
        [_series("Consumption", x, y, colors)],
        _reference(f"Goal ({fmt_value(goal)} {unit})", goal, x),
    )


def hydration_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    """Stacked bars: green intake up to the goal, blue leftover to the goal, red excess over it."""
    df = hydration_stack(data.get("logs", []), timeframe_days, tz, now)
    unit = data.get("unit", "")

    x = _xs(df)
    return {
        "kind": "stacked_bar",
        "y_label": f"Milliliter ({unit})",
        "x": x,
        "segments": [
            {"label": "Intake", "y": _ys(df, "intake"), "color": GREEN},
            {"label": "Goal", "y": _ys(df, "goal_leftover"), "color": BLUE},
            {"label": "Excess", "y": _ys(df, "excess"), "color": RED},
        ],
    }


def weight_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "createdAt", tz, now)

    y = _ys(df, "value", scale=KG_TO_LBS)
    # No weight benchmark exists, so every point is drawn as an outlier
    colors = [RED for _ in y]
    return line_chart("Pounds (lbs)", [_series("Weight (lbs)", _xs(df), y, colors)])


def activity_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    df = filter_by_timeframe(data.get("logs", []), timeframe_days, "measurementDate", tz, now)
    unit = data.get("unit", "")

    x = _xs(df)
    y = _ys(df, "caloriesBurnt")
    colors = [status_color(classify_banded(v, data.get("benchMarks"))) for v in y]

    goal = data.get("calories")
    label = f"Goal ({float(goal):.2f} {unit})" if goal is not None else "Goal"
    return line_chart(
        f"Calorie ({unit})",
        [_series("Achieved", x, y, colors)],
        _reference(label, goal, x),
    )


def steps_chart(data: dict, timeframe_days: int, tz: str, now=None) -> dict:
    logs = garmin_logs(data.get("logs", []))
    df = filter_by_timeframe(logs, timeframe_days, "measurementDate", tz, now)
    unit = data.get("unit", "")

    x = _xs(df)
    y = _ys(df, "value")
    colors = [status_color(classify_banded(v, data.get("benchMarks"))) for v in y]

    goal = data.get("goalAverage")
    return line_chart(
        unit,
        [_series("Achieved", x, y, colors)],
        _reference(f"Goal ({fmt_value(goal)} {unit})", goal, x),
    )


# ----------------------------
# Rasterization
# ----------------------------

def _nan(values: list) -> list:
    return [float("nan") if v is None else v for v in values]


def _plot_line(spec: dict):
    for s in spec["series"]:
        if not s["x"]:
            continue
        y = _nan(s["y"])
        plt.plot(
            s["x"],
            y,
            color=s["line_color"],
            linestyle="--" if s["dashed"] else "-",
            linewidth=1.5,
            label=s["label"],
            zorder=1,
        )
        plt.scatter(s["x"], y, c=s["point_colors"], marker=s["marker"], s=30, zorder=2)

    ref = spec.get("reference")
    if ref:
        plt.plot(
            ref["x"],
            [ref["y"], ref["y"]],
            color=ref["color"],
            linestyle="--" if ref["dashed"] else "-",
            linewidth=1.5,
            label=ref["label"],
        )


def _plot_stacked_bar(spec: dict):
    x = spec["x"]
    if not x:
        return
    bottom = [0.0] * len(x)
    for seg in spec["segments"]:
        y = [v or 0.0 for v in seg["y"]]
        plt.bar(x, y, bottom=bottom, width=0.8, color=seg["color"], label=seg["label"])
        bottom = [b + v for b, v in zip(bottom, y)]


def render_chart(spec: dict, out_path: Path, settings: Settings | None = None) -> Path:
    """Rasterize a chart spec to PNG and return the written path."""
    settings = settings or get_settings()
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    dpi = settings.chart_dpi
    plt.figure(figsize=(settings.chart_width_px / dpi, settings.chart_height_px / dpi))

    if spec["kind"] == "stacked_bar":
        _plot_stacked_bar(spec)
    elif spec["kind"] == "line":
        _plot_line(spec)
    else:
        plt.close()
        raise ValueError(f"Unknown chart kind: {spec['kind']!r}")

    ax = plt.gca()
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%d %b", tz=settings.timezone))
    plt.xlabel("Date")
    plt.ylabel(spec["y_label"])
    plt.xticks(rotation=25, ha="right")

    handles, _ = ax.get_legend_handles_labels()
    if handles:
        plt.legend(loc="upper center", bbox_to_anchor=(0.5, -0.25), ncol=len(handles), frameon=False)

    plt.tight_layout()
    plt.savefig(out_path, dpi=dpi)
    plt.close()

    logger.debug("Rendered %s chart to %s", spec["kind"], out_path)
    return out_path
