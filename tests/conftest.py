"""Synthetic sample builders shared by the test modules."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from sleep_insights.samples import HeartRateSample, HrvSample, SleepStage, SleepStageSample

NOW = datetime(2026, 3, 15, 12, 0)


def stage(start: datetime, minutes: float, kind: SleepStage, source: str | None = "watch") -> SleepStageSample:
    return SleepStageSample(start=start, end=start + timedelta(minutes=minutes), stage=kind, source_id=source)


def detailed_night(day: date, bed_h: int = 23, bed_m: int = 0, source: str = "watch", in_bed_source: str | None = None) -> list[SleepStageSample]:
    """In bed at the given time, asleep 10 min later, ~7.5h of staged sleep.

    Sleep: core 120, deep 75, rem 100, awake 5, core 155 -> 450 min asleep, 1 awakening.
    """
    bed = datetime(day.year, day.month, day.day, bed_h, bed_m)
    onset = bed + timedelta(minutes=10)
    out = [stage(bed, 465, SleepStage.IN_BED, in_bed_source or source)]
    t = onset
    for kind, minutes in [
        (SleepStage.CORE, 120),
        (SleepStage.DEEP, 75),
        (SleepStage.REM, 100),
        (SleepStage.AWAKE, 5),
        (SleepStage.CORE, 155),
    ]:
        out.append(stage(t, minutes, kind, source))
        t += timedelta(minutes=minutes)
    return out


def asleep_only_night(day: date, bed_h: int = 23, minutes: int = 450, source: str = "phone") -> list[SleepStageSample]:
    start = datetime(day.year, day.month, day.day, bed_h, 0)
    return [stage(start, minutes, SleepStage.ASLEEP, source)]


def heart_rate_night(day: date, nadir_h: int = 2, nadir_m: int = 30) -> list[HeartRateSample]:
    """Readings every 30 min from 22:00 to 05:30 with the minimum at the nadir."""
    start = datetime(day.year, day.month, day.day, 22, 0)
    nadir = datetime(day.year, day.month, day.day, nadir_h, nadir_m) + timedelta(days=1 if nadir_h < 18 else 0)
    out = []
    for i in range(16):
        t = start + timedelta(minutes=30 * i)
        bpm = 52 + abs((t - nadir).total_seconds()) / 1800
        out.append(HeartRateSample(start=t, end=t + timedelta(minutes=1), value=bpm, source_id="watch"))
    return out


def hrv_reading(ts: datetime, value: float | None, source: str = "watch") -> HrvSample:
    return HrvSample(start=ts, end=ts + timedelta(minutes=1), value=value, source_id=source)


def daily_hrv(last_day: date, values: list[float], hour: int = 7) -> list[HrvSample]:
    """One reading per day, values[-1] on last_day."""
    out = []
    for i, v in enumerate(values):
        day = last_day - timedelta(days=len(values) - 1 - i)
        out.append(hrv_reading(datetime(day.year, day.month, day.day, hour, 0), v))
    return out


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def two_weeks_of_data() -> list:
    """14 nights: bedtime 23:00 +/- 10 min, HR nadir at 02:30, latest HRV well above average."""
    samples = []
    last_night = date(2026, 3, 14)
    offsets = [-10, 10, -5, 5, 0, -10, 10, -5, 5, 0, -10, 10, -5, 5]
    for i, offset in enumerate(offsets):
        day = last_night - timedelta(days=13 - i)
        bed = datetime(day.year, day.month, day.day, 23, 0) + timedelta(minutes=offset)
        samples += detailed_night(day, bed.hour, bed.minute)
        samples += heart_rate_night(day)
    samples += daily_hrv(date(2026, 3, 15), [40.0] * 13 + [60.0])
    return samples


ENV_VARS = (
    "SLEEP_NIGHT_BOUNDARY_HOUR",
    "SLEEP_NADIR_OFFSET_MIN",
    "SLEEP_LOW_HRV_ADJUSTMENT_MIN",
    "SLEEP_DEFAULT_BEDTIME",
    "SLEEP_IDEAL_MIN",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No SLEEP_* variables, and anything load_dotenv adds is removed afterwards."""
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def to_records(samples) -> list[dict]:
    """Flatten samples into export-style records."""
    out = []
    for s in samples:
        record = {
            "start_date": s.start.isoformat(),
            "end_date": s.end.isoformat(),
            "source_name": s.source_id,
        }
        if isinstance(s, SleepStageSample):
            record.update(data_type="sleep", sleep_stage=s.stage.value)
        elif isinstance(s, HrvSample):
            record.update(data_type="hrv", value=s.value)
        else:
            record.update(data_type="heart_rate", value=s.value)
        out.append(record)
    return out
