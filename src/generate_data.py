import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

PROFILES = ["HEALTHY", "HYPERTENSIVE", "DIABETIC"]

# -------------------------
# Benchmarks (same shapes the report expects)
# -------------------------
TEMPERATURE_BENCHMARK = {"baseline": 98.6, "normalRange": {"min": 97.4, "max": 99.6}}
HEART_RATE_BENCHMARK = {"min": 60, "max": 100}

BLOOD_PRESSURE_BENCHMARK = {
    "systolic": {
        "lowBorderline": {"min": 70, "max": 89},
        "normal": {"min": 90, "max": 120},
        "highBorderline": {"min": 121, "max": 140},
        "high": {"min": 141, "max": 190},
    },
    "diastolic": {
        "lowBorderline": {"min": 40, "max": 59},
        "normal": {"min": 60, "max": 80},
        "highBorderline": {"min": 81, "max": 90},
        "high": {"min": 91, "max": 100},
    },
}

BLOOD_GLUCOSE_BENCHMARK = {
    "beforeMeals": {
        "outlier": {"min": 0, "max": 69},
        "lowBorderline": {"min": 70, "max": 89},
        "normal": {"min": 90, "max": 99},
        "highBorderline": {"min": 100, "max": 125},
        "high": {"min": 126, "max": 1000},
    },
    "afterMealsAndRandom": {
        "outlier": {"min": 0, "max": 69},
        "lowBorderline": {"min": 70, "max": 100},
        "normal": {"min": 101, "max": 140},
        "highBorderline": {"min": 141, "max": 199},
        "high": {"min": 200, "max": 1000},
    },
}


def goal_bands(goal: float) -> dict:
    """Borderline/normal bands at 60-80-120-140% of a daily goal."""
    return {
        "lowBorderline": {"min": goal * 0.6, "max": goal * 0.8},
        "normal": {"min": goal * 0.8, "max": goal * 1.2},
        "highBorderline": {"min": goal * 1.2, "max": goal * 1.4},
    }


def _profile_baseline(profile: str) -> dict:
    """
    Per-profile centre values for the vitals. Unknown profiles fall back to HEALTHY.
    """
    base = {
        "temperature": 98.4,
        "heart_rate": 74,
        "systolic": 115,
        "diastolic": 76,
        "glucose_fasting": 94,
        "glucose_random": 125,
    }
    if profile == "HYPERTENSIVE":
        base.update({"systolic": 142, "diastolic": 92, "heart_rate": 86})
    elif profile == "DIABETIC":
        base.update({"glucose_fasting": 132, "glucose_random": 210})
    return base


def _ms(ts: pd.Timestamp) -> int:
    return int(ts.value // 1_000_000)


def generate_sample_payload(
    days: int = 30,
    seed: int = 42,
    profile: str = "HEALTHY",
    tz: str = "Asia/Kolkata",
    now: pd.Timestamp | None = None,
    patient: dict | None = None,
) -> dict:
    """
    Builds a synthetic single-patient payload covering every report section,
    one reading per day for `days` days ending today (local time).
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")

    rng = np.random.default_rng(seed)
    base = _profile_baseline(profile)

    if now is None:
        now = pd.Timestamp.now(tz=tz)
    today = now.tz_convert(tz).normalize() if now.tzinfo else now.tz_localize(tz).normalize()
    day_starts = [today - pd.Timedelta(days=i) for i in range(days - 1, -1, -1)]

    def vital(i, day, value, **extra):
        ts = _ms(day + pd.Timedelta(hours=9, minutes=int(rng.integers(0, 60))))
        return {"_id": f"sample-{i}", "measurementDate": ts, "createdAt": ts, "value": value, **extra}

    temperature_logs = [
        vital(i, d, round(float(rng.normal(base["temperature"], 0.7)), 1)) for i, d in enumerate(day_starts)
    ]
    heart_logs = [vital(i, d, int(rng.normal(base["heart_rate"], 9))) for i, d in enumerate(day_starts)]

    bp_logs = []
    for i, d in enumerate(day_starts):
        log = vital(i, d, None)
        log.pop("value")
        log["systolic"] = int(rng.normal(base["systolic"], 8))
        log["diastolic"] = int(rng.normal(base["diastolic"], 6))
        bp_logs.append(log)

    glucose_logs = []
    for i, d in enumerate(day_starts):
        category = ["FASTING", "AFTER_A_MEAL", "RANDOM"][i % 3]
        centre = base["glucose_fasting"] if category == "FASTING" else base["glucose_random"]
        glucose_logs.append(vital(i, d, int(rng.normal(centre, 12)), category=category))

    calorie_goal = 2200.0
    nutrition_logs = [
        {"createdAt": _ms(d), "consumed": round(float(rng.normal(calorie_goal, 400)), 1), "goal": calorie_goal}
        for d in day_starts
    ]

    water_goal = 2500
    hydration_logs = [
        {"createdAt": _ms(d), "consumed": int(rng.integers(4, 14)) * 250, "goal": water_goal} for d in day_starts
    ]

    weight_logs = []
    kg = 72.0
    for i, d in enumerate(day_starts):
        kg = round(kg + float(rng.normal(0, 0.3)), 2)
        weight_logs.append({"_id": f"sample-{i}", "createdAt": _ms(d) + 7 * 3_600_000, "value": kg})

    burn_goal = 1600.0
    activity_logs = [
        {"measurementDate": _ms(d) + 20 * 3_600_000, "caloriesBurnt": round(float(rng.normal(burn_goal, 350)), 1)}
        for d in day_starts
    ]

    step_goal = 8000
    step_logs = []
    for i, d in enumerate(day_starts):
        source = "garmin-connect" if i % 4 else "restore-me"
        step_logs.append(
            {
                "measurementDate": _ms(d) + 21 * 3_600_000,
                "value": int(rng.normal(step_goal, 1800)),
                "source": {"name": source},
            }
        )
    garmin_steps = [s["value"] for s in step_logs if s["source"]["name"] == "garmin-connect"]

    def avg(values):
        return float(np.mean(values)) if len(values) else None

    payload = {
        "patient": patient or {"name": "Sample Patient", "age": 45},
        "temperature": {
            "type": "temperature",
            "value": temperature_logs[-1]["value"],
            "benchMark": TEMPERATURE_BENCHMARK,
            "logs": temperature_logs,
        },
        "heartRate": {
            "type": "heartrate",
            "value": heart_logs[-1]["value"],
            "benchMark": HEART_RATE_BENCHMARK,
            "logs": heart_logs,
        },
        "bloodPressure": {
            "type": "bloodpressure",
            "systolic": bp_logs[-1]["systolic"],
            "diastolic": bp_logs[-1]["diastolic"],
            "benchMark": BLOOD_PRESSURE_BENCHMARK,
            "logs": bp_logs,
        },
        "bloodGlucose": {
            "type": "bloodglucose",
            "value": glucose_logs[-1]["value"],
            "category": glucose_logs[-1]["category"],
            "benchMark": BLOOD_GLUCOSE_BENCHMARK,
            "logs": glucose_logs,
        },
        "nutrition": {
            "goalAverage": calorie_goal,
            "actualAverage": avg([n["consumed"] for n in nutrition_logs]),
            "unit": "kcal",
            "currentGoal": calorie_goal,
            "benchMarks": goal_bands(calorie_goal),
            "logs": nutrition_logs,
        },
        "hydration": {
            "goalAverage": float(water_goal),
            "actualAverage": avg([h["consumed"] for h in hydration_logs]),
            "unit": "ml",
            "benchMarks": None,
            "logs": hydration_logs,
        },
        "weight": {
            "goalAverage": 0,
            "currentWeight": weight_logs[-1]["value"],
            "logs": weight_logs,
        },
        "activity": {
            "type": "activity",
            "calories": burn_goal,
            "caloriesBurnt": activity_logs[-1]["caloriesBurnt"],
            "unit": "kcal",
            "benchMarks": goal_bands(burn_goal),
            "logs": activity_logs,
        },
        "steps": {
            "goalAverage": step_goal,
            "actualAverage": avg(garmin_steps),
            "unit": "steps",
            "benchMarks": goal_bands(step_goal),
            "logs": step_logs,
        },
    }
    return payload


def write_sample(path: Path, **kwargs) -> Path:
    payload = generate_sample_payload(**kwargs)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Sample payload written: %s", path)
    return path
