"""
Shared fixtures: a fixed clock in the report timezone and small payloads.
"""

import pandas as pd
import pytest

from config import Settings
from generate_data import generate_sample_payload

TZ = "Asia/Kolkata"


def ms(s: str, tz: str = TZ) -> int:
    """Local wall-clock time -> epoch milliseconds."""
    return int(pd.Timestamp(s, tz=tz).value // 1_000_000)


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def now():
    return pd.Timestamp("2025-03-07 15:30", tz=TZ)


@pytest.fixture
def settings(tmp_path):
    return Settings(timezone=TZ, timeframe_days=7, output_dir=tmp_path / "out")


@pytest.fixture
def sample_payload(now):
    return generate_sample_payload(days=7, seed=7, tz=TZ, now=now)


@pytest.fixture
def minimal_payload():
    """Only the always-rendered sections."""
    return {
        "patient": {"name": "Jane Roe", "age": 52},
        "temperature": {
            "value": 98.2,
            "benchMark": {"baseline": 98.6, "normalRange": {"min": 97.4, "max": 99.6}},
            "logs": [
                {"measurementDate": ms("2025-03-05 09:00"), "value": 98.2},
                {"measurementDate": ms("2025-03-06 09:00"), "value": 100.2},
            ],
        },
        "heartRate": {
            "value": 72,
            "benchMark": {"min": 60, "max": 100},
            "logs": [
                {"measurementDate": ms("2025-03-05 09:00"), "value": 72},
                {"measurementDate": ms("2025-03-06 09:00"), "value": 101},
            ],
        },
    }
