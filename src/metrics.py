# src/metrics.py
from __future__ import annotations

import logging

import pandas as pd

from rules import (
    classify_banded,
    classify_glucose,
    classify_range,
    classify_tiered,
    worst_status,
    MISSING,
)

logger = logging.getLogger(__name__)

KG_TO_LBS = 2.20462
GARMIN_SOURCE = "garmin-connect"

DATE_FMT = "%d %b %Y"


def fmt_num(x, nd=2) -> str:
    if x is None:
        return "-"
    try:
        return f"{float(x):.{nd}f}"
    except (TypeError, ValueError):
        return str(x)


def fmt_value(x) -> str:
    """98.0 -> 98, 98.60 -> 98.6, None -> -"""
    if x is None:
        return "-"
    try:
        return f"{float(x):.2f}".rstrip("0").rstrip(".")
    except (TypeError, ValueError):
        return str(x)


def to_local(ms, tz: str) -> pd.Timestamp:
    return pd.Timestamp(int(ms), unit="ms", tz="UTC").tz_convert(tz)


def fmt_date(ms, tz: str) -> str:
    if ms is None:
        return "-"
    return to_local(ms, tz).strftime(DATE_FMT)


def window_start(timeframe_days: int, tz: str, now: pd.Timestamp | None = None) -> pd.Timestamp:
    """
    First instant of the reporting window: local midnight today minus
    (timeframe_days - 1) days, so "last 7 days" covers today plus the 6 before it.
    """
    if timeframe_days < 1:
        raise ValueError(f"timeframe_days must be >= 1, got {timeframe_days}")

    if now is None:
        now = pd.Timestamp.now(tz=tz)
    elif now.tzinfo is None:
        now = now.tz_localize(tz)
    else:
        now = now.tz_convert(tz)

    return now.normalize() - pd.Timedelta(days=timeframe_days - 1)


def filter_by_timeframe(
    logs: list[dict],
    timeframe_days: int,
    date_field: str = "measurementDate",
    tz: str = "UTC",
    now: pd.Timestamp | None = None,
) -> pd.DataFrame:
    """
    Keep logs whose `date_field` (epoch ms) falls on or after the window start.
    Returns a dataframe sorted by that field, with a tz-aware `date` column added.
    """
    start = window_start(timeframe_days, tz, now)
    start_ms = int(start.tz_convert("UTC").value // 1_000_000)

    df = pd.DataFrame(list(logs))
    if df.empty or date_field not in df.columns:
        return pd.DataFrame(columns=[date_field, "date"])

    df = df[df[date_field].notna()]
    df = df[df[date_field].astype("int64") >= start_ms]
    df = df.sort_values(date_field, kind="mergesort").reset_index(drop=True)
    df["date"] = pd.to_datetime(df[date_field].astype("int64"), unit="ms", utc=True).dt.tz_convert(tz)

    logger.debug("Kept %d of %d logs since %s", len(df), len(logs), start.isoformat())
    return df


def summarize(logs: list[dict], value_field: str, date_field: str, tz: str) -> dict:
    """
    Average and lowest value over all supplied logs (not only the charted window).
    Ties on the lowest value keep the earliest log in input order.
    """
    empty = {"average": "-", "lowest": "-", "lowest_date": "-"}
    if not logs:
        return empty

    values = pd.to_numeric(pd.Series([log.get(value_field) for log in logs]), errors="coerce")
    if values.notna().sum() == 0:
        return empty

    idx = int(values.idxmin())
    lowest_log = logs[idx]
    return {
        "average": fmt_num(values.mean(), 2),
        "lowest": fmt_value(lowest_log.get(value_field)),
        "lowest_date": fmt_date(lowest_log.get(date_field), tz),
        "lowest_raw": float(values.iloc[idx]),
    }


def split_hydration(consumed: float, goal: float) -> tuple[float, float, float]:
    """
    Splits one day's water intake into (intake, goal_leftover, excess).

    The three parts sum to max(consumed, goal); goal_leftover and excess
    are never both non-zero.
    """
    if consumed < goal:
        return consumed, goal - consumed, 0
    return goal, 0, consumed - goal


def hydration_stack(
    logs: list[dict],
    timeframe_days: int,
    tz: str,
    now: pd.Timestamp | None = None,
) -> pd.DataFrame:
    """One row per daily hydration log: date, consumed, goal, intake, goal_leftover, excess."""
    df = filter_by_timeframe(logs, timeframe_days, date_field="createdAt", tz=tz, now=now)
    cols = ["date", "consumed", "goal", "intake", "goal_leftover", "excess"]
    if df.empty:
        return pd.DataFrame(columns=cols)

    parts = [split_hydration(float(c), float(g)) for c, g in zip(df["consumed"], df["goal"])]
    df["intake"] = [p[0] for p in parts]
    df["goal_leftover"] = [p[1] for p in parts]
    df["excess"] = [p[2] for p in parts]
    return df[cols]


def garmin_logs(logs: list[dict]) -> list[dict]:
    """Step counts are only charted from Garmin Connect."""
    return [log for log in logs if (log.get("source") or {}).get("name") == GARMIN_SOURCE]


# ----------------------------
# Section statistics (text lines shown above each chart)
# ----------------------------

def temperature_lines(data: dict, tz: str) -> list[str]:
    s = summarize(data.get("logs", []), "value", "measurementDate", tz)
    return [
        f"Current Temperature: {fmt_value(data.get('value'))}°F",
        f"Average Temperature: {s['average']}°F",
        f"Lowest Temperature: {s['lowest']}°F on {s['lowest_date']}",
    ]


def heart_rate_lines(data: dict, tz: str) -> list[str]:
    s = summarize(data.get("logs", []), "value", "measurementDate", tz)
    return [
        f"Current Heart Rate: {fmt_value(data.get('value'))} BPM",
        f"Average Heart Rate: {s['average']} BPM",
        f"Lowest Heart Rate: {s['lowest']} BPM on {s['lowest_date']}",
    ]


def blood_pressure_lines(data: dict, tz: str) -> list[str]:
    logs = data.get("logs", [])
    sys_s = summarize(logs, "systolic", "measurementDate", tz)
    dia_s = summarize(logs, "diastolic", "measurementDate", tz)
    return [
        f"Current BP: {fmt_value(data.get('systolic'))}/{fmt_value(data.get('diastolic'))} mmHg",
        f"Average BP: {sys_s['average']}/{dia_s['average']} mmHg",
        f"Lowest Systolic: {sys_s['lowest']} mmHg on {sys_s['lowest_date']}",
        f"Lowest Diastolic: {dia_s['lowest']} mmHg on {dia_s['lowest_date']}",
    ]


def blood_glucose_lines(data: dict, tz: str) -> list[str]:
    s = summarize(data.get("logs", []), "value", "measurementDate", tz)
    category = data.get("category") or "-"
    return [
        f"Current Glucose: {fmt_value(data.get('value'))} mg/dL (Category: {category})",
        f"Average Glucose: {s['average']} mg/dL",
        f"Lowest Glucose: {s['lowest']} mg/dL on {s['lowest_date']}",
    ]


def nutrition_lines(data: dict, tz: str) -> list[str]:
    unit = data.get("unit", "")
    s = summarize(data.get("logs", []), "consumed", "createdAt", tz)
    return [
        f"Goal Average: {fmt_num(data.get('goalAverage'))} {unit}",
        f"Actual Average: {fmt_num(data.get('actualAverage'))} {unit}",
        f"Lowest Consumption: {s['lowest']} {unit} on {s['lowest_date']}",
    ]


def hydration_lines(data: dict, tz: str) -> list[str]:
    unit = data.get("unit", "")
    return [
        f"Goal Average: {fmt_num(data.get('goalAverage'))} {unit}",
        f"Actual Average: {fmt_num(data.get('actualAverage'))} {unit}",
    ]


def weight_lines(data: dict, tz: str) -> list[str]:
    current = data.get("currentWeight")
    current_lbs = fmt_num(current * KG_TO_LBS) if current is not None else "-"

    s = summarize(data.get("logs", []), "value", "createdAt", tz)
    lowest_lbs = fmt_num(s["lowest_raw"] * KG_TO_LBS) if "lowest_raw" in s else "-"
    return [
        f"Current Weight: {current_lbs} lbs",
        f"Lowest Weight: {lowest_lbs} lbs on {s['lowest_date']}",
    ]


def activity_lines(data: dict, tz: str) -> list[str]:
    unit = data.get("unit", "")
    return [
        f"Goal: {fmt_num(data.get('calories'))} {unit}",
        f"Current Achieved: {fmt_num(data.get('caloriesBurnt'))} {unit}",
    ]


def steps_lines(data: dict, tz: str) -> list[str]:
    unit = data.get("unit", "")
    return [
        f"Goal: {fmt_num(data.get('goalAverage'))} {unit} - Garmin Connect",
        f"Actual Average: {fmt_num(data.get('actualAverage'))} {unit}",
    ]


# ----------------------------
# Front-page summary (metric, current, average, status of current value)
# ----------------------------

def _latest(logs: list[dict], field: str, date_field: str):
    dated = [log for log in logs if log.get(date_field) is not None]
    if not dated:
        return None
    return max(dated, key=lambda log: log[date_field]).get(field)


def _mean(logs: list[dict], field: str):
    values = pd.to_numeric(pd.Series([log.get(field) for log in logs], dtype="object"), errors="coerce")
    if values.notna().sum() == 0:
        return None
    return float(values.mean())


def summary_rows(payload: dict) -> list[dict]:
    """
    One row per provided section. Status classifies the current value
    against that metric's benchmark ("missing" where there is no benchmark).
    """
    rows = []

    temp = payload.get("temperature")
    if temp:
        rng = temp["benchMark"]["normalRange"]
        rows.append({
            "metric": "Body Temperature (°F)",
            "current": fmt_value(temp.get("value")),
            "average": fmt_num(_mean(temp.get("logs", []), "value")),
            "status": classify_range(temp.get("value"), rng["min"], rng["max"]),
        })

    hr = payload.get("heartRate")
    if hr:
        bm = hr["benchMark"]
        rows.append({
            "metric": "Heart Rate (BPM)",
            "current": fmt_value(hr.get("value")),
            "average": fmt_num(_mean(hr.get("logs", []), "value")),
            "status": classify_range(hr.get("value"), bm["min"], bm["max"]),
        })

    bp = payload.get("bloodPressure")
    if bp:
        bm = bp["benchMark"]
        logs = bp.get("logs", [])
        rows.append({
            "metric": "Blood Pressure (mmHg)",
            "current": f"{fmt_value(bp.get('systolic'))}/{fmt_value(bp.get('diastolic'))}",
            "average": f"{fmt_num(_mean(logs, 'systolic'))}/{fmt_num(_mean(logs, 'diastolic'))}",
            "status": worst_status([
                classify_tiered(bp.get("systolic"), bm["systolic"]),
                classify_tiered(bp.get("diastolic"), bm["diastolic"]),
            ]),
        })

    bg = payload.get("bloodGlucose")
    if bg:
        rows.append({
            "metric": "Blood Glucose (mg/dL)",
            "current": fmt_value(bg.get("value")),
            "average": fmt_num(_mean(bg.get("logs", []), "value")),
            "status": classify_glucose(bg.get("value"), bg.get("category"), bg["benchMark"]),
        })

    nutrition = payload.get("nutrition")
    if nutrition:
        consumed = _latest(nutrition.get("logs", []), "consumed", "createdAt")
        rows.append({
            "metric": f"Nutrition ({nutrition.get('unit', '')})",
            "current": fmt_value(consumed),
            "average": fmt_num(nutrition.get("actualAverage")),
            "status": classify_banded(consumed, nutrition.get("benchMarks")),
        })

    hydration = payload.get("hydration")
    if hydration:
        rows.append({
            "metric": f"Water Intake ({hydration.get('unit', '')})",
            "current": fmt_value(_latest(hydration.get("logs", []), "consumed", "createdAt")),
            "average": fmt_num(hydration.get("actualAverage")),
            "status": MISSING,
        })

    weight = payload.get("weight")
    if weight:
        current = weight.get("currentWeight")
        avg = _mean(weight.get("logs", []), "value")
        rows.append({
            "metric": "Weight (lbs)",
            "current": fmt_num(current * KG_TO_LBS) if current is not None else "-",
            "average": fmt_num(avg * KG_TO_LBS) if avg is not None else "-",
            "status": MISSING,
        })

    activity = payload.get("activity")
    if activity:
        rows.append({
            "metric": f"Activity ({activity.get('unit', '')})",
            "current": fmt_num(activity.get("caloriesBurnt")),
            "average": fmt_num(_mean(activity.get("logs", []), "caloriesBurnt")),
            "status": classify_banded(activity.get("caloriesBurnt"), activity.get("benchMarks")),
        })

    steps = payload.get("steps")
    if steps:
        rows.append({
            "metric": f"Step Count ({steps.get('unit', '')})",
            "current": fmt_num(steps.get("actualAverage")),
            "average": fmt_num(_mean(garmin_logs(steps.get("logs", [])), "value")),
            "status": classify_banded(steps.get("actualAverage"), steps.get("benchMarks")),
        })

    return rows
