from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from sleep_insights.samples import (
    HeartRateSample,
    HrvSample,
    InvalidSampleError,
    SleepStage,
    SleepStageSample,
    is_nocturnal,
    night_key,
    parse_stage,
    partition_samples,
    record_to_sample,
    samples_to_frame,
    validate_samples,
)

from conftest import hrv_reading, stage


def test_night_key_boundary() -> None:
    assert night_key(datetime(2026, 3, 10, 17, 59)) == date(2026, 3, 9)
    assert night_key(datetime(2026, 3, 10, 18, 1)) == date(2026, 3, 10)


def test_night_key_folds_overnight_episode() -> None:
    assert night_key(datetime(2026, 3, 10, 23, 0)) == night_key(datetime(2026, 3, 11, 7, 0))


def test_night_key_custom_boundary() -> None:
    assert night_key(datetime(2026, 3, 10, 19, 0), boundary_hour=20) == date(2026, 3, 9)


def test_partition_samples() -> None:
    t = datetime(2026, 3, 10, 23, 0)
    samples = [
        HeartRateSample(t, t, 55.0),
        hrv_reading(t, 42.0),
        stage(t, 30, SleepStage.CORE),
        stage(t, 30, SleepStage.IN_BED),
    ]
    part = partition_samples(samples)
    assert part.counts() == {"heart_rate": 1, "hrv": 1, "sleep": 2}


def test_partition_rejects_foreign_objects() -> None:
    with pytest.raises(InvalidSampleError):
        partition_samples([{"data_type": "hrv"}])


def test_validate_rejects_none() -> None:
    with pytest.raises(InvalidSampleError):
        validate_samples(None)


def test_validate_rejects_negative_duration() -> None:
    t = datetime(2026, 3, 10, 23, 0)
    with pytest.raises(InvalidSampleError):
        validate_samples([HeartRateSample(t, t - timedelta(minutes=1), 60.0)])


def test_validate_rejects_mixed_timezones() -> None:
    naive = datetime(2026, 3, 10, 23, 0)
    aware = naive.replace(tzinfo=timezone.utc)
    with pytest.raises(InvalidSampleError):
        validate_samples([hrv_reading(naive, 40.0), hrv_reading(aware, 41.0)])


def test_validate_accepts_empty_and_generators() -> None:
    assert validate_samples([]) == []
    t = datetime(2026, 3, 10, 23, 0)
    assert len(validate_samples(hrv_reading(t, v) for v in (1.0, 2.0))) == 2


def test_parse_stage_aliases() -> None:
    assert parse_stage("inBed") is SleepStage.IN_BED
    assert parse_stage("asleepCore") is SleepStage.CORE
    assert parse_stage("asleepREM") is SleepStage.REM
    assert parse_stage("asleepUnspecified") is SleepStage.ASLEEP
    assert parse_stage("deep") is SleepStage.DEEP
    assert parse_stage("snoring") is None
    assert parse_stage(None) is None


def test_record_to_sample_type_tags() -> None:
    base = {"start_date": "2026-03-10T23:00:00", "end_date": "2026-03-10T23:01:00"}
    hr = record_to_sample({**base, "data_type": "HKQuantityTypeIdentifierHeartRate", "value": "58"})
    assert isinstance(hr, HeartRateSample) and hr.value == 58.0

    hrv = record_to_sample({**base, "data_type": "hrv", "value": 41.5, "source_bundle_id": "com.apple.health"})
    assert isinstance(hrv, HrvSample) and hrv.source_id == "com.apple.health"

    sleep = record_to_sample({**base, "data_type": "HKCategoryTypeIdentifierSleepAnalysis", "sleep_stage": "asleepDeep"})
    assert isinstance(sleep, SleepStageSample) and sleep.stage is SleepStage.DEEP

    assert record_to_sample({**base, "data_type": "steps", "value": 100}) is None
    assert record_to_sample({**base, "data_type": "sleep", "sleep_stage": None}) is None


def test_samples_to_frame_sorted_with_derived_columns() -> None:
    late = stage(datetime(2026, 3, 11, 2, 0), 60, SleepStage.DEEP)
    early = stage(datetime(2026, 3, 10, 23, 0), 60, SleepStage.CORE)
    df = samples_to_frame([late, early])
    assert list(df["sample"]) == [early, late]
    assert list(df["night_key"]) == [date(2026, 3, 10), date(2026, 3, 10)]
    assert list(df["minute_of_day"]) == [23 * 60, 120]
    assert list(df["duration_min"]) == [60.0, 60.0]


def test_samples_to_frame_empty() -> None:
    assert samples_to_frame([]).empty


def test_is_nocturnal_window() -> None:
    assert is_nocturnal(datetime(2026, 3, 10, 22, 0))
    assert is_nocturnal(datetime(2026, 3, 11, 5, 59))
    assert not is_nocturnal(datetime(2026, 3, 11, 6, 0))
    assert not is_nocturnal(datetime(2026, 3, 11, 21, 59))


def test_samples_to_frame_flags_nocturnal_rows() -> None:
    df = samples_to_frame([
        hrv_reading(datetime(2026, 3, 10, 21, 30), 40.0),
        hrv_reading(datetime(2026, 3, 10, 23, 45), 50.0),
    ])
    assert list(df["nocturnal"]) == [False, True]
    assert list(df["minute_of_day"]) == [21 * 60 + 30, 23 * 60 + 45]
