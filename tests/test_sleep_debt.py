from __future__ import annotations

from datetime import date, datetime, timedelta

from sleep_insights.config import AnalysisConfig
from sleep_insights.nights import Night
from sleep_insights.sleep_debt import clamp_ideal_minutes, compute_sleep_debt, sleep_debt_from_nights

from conftest import NOW


def _nights(minutes: list[int], last: date = date(2026, 3, 14)) -> list[Night]:
    out = []
    for i, total in enumerate(minutes):
        day = last - timedelta(days=i)
        start = datetime(day.year, day.month, day.day, 23, 0)
        out.append(Night(
            night_key=day,
            sleep_start=start,
            sleep_end=start + timedelta(minutes=total),
            in_bed_start=start,
            total_sleep_minutes=total,
            total_in_bed_minutes=total,
            deep_minutes=0,
            rem_minutes=0,
            core_minutes=total,
            awakenings_count=0,
            latency_minutes=0,
            hrv_samples=(),
            has_detailed_stages=False,
            source_records=(),
        ))
    return out


def test_moderate_debt() -> None:
    result = sleep_debt_from_nights(_nights([420, 420, 420]), NOW)
    assert result.total_debt_minutes == 180
    assert result.severity == "moderate"
    assert result.daily_average_debt_minutes == 60
    assert result.valid_night_count == 3
    assert result.recovery_plan.extra_minutes_per_night == 45
    assert result.recovery_plan.estimated_days_to_recover == 4
    assert result.recovery_plan.suggestion_key == "recovery_tip"


def test_mild_debt() -> None:
    result = sleep_debt_from_nights(_nights([440, 440]), NOW)
    assert result.severity == "mild"
    assert result.recovery_plan.extra_minutes_per_night == 30
    assert result.recovery_plan.estimated_days_to_recover == 3


def test_severe_debt_caps_recovery_days() -> None:
    result = sleep_debt_from_nights(_nights([300] * 12), NOW)
    assert result.total_debt_minutes == 2160
    assert result.severity == "severe"
    assert result.recovery_plan.estimated_days_to_recover == 30
    assert result.recovery_plan.suggestion_key == "recovery_tip_long_term"


def test_surplus_is_not_debt() -> None:
    result = sleep_debt_from_nights(_nights([540, 540]), NOW)
    assert result.total_debt_minutes == -120
    assert result.severity == "none"
    assert result.recovery_plan is None


def test_small_debt_has_no_plan() -> None:
    result = sleep_debt_from_nights(_nights([470, 470]), NOW)
    assert result.severity == "none"
    assert result.recovery_plan is None


def test_lookback_excludes_old_nights() -> None:
    nights = _nights([420, 420]) + _nights([300], last=date(2026, 2, 20))
    result = sleep_debt_from_nights(nights, NOW, lookback_days=14)
    assert result.valid_night_count == 2
    assert result.total_debt_minutes == 120


def test_no_nights() -> None:
    result = sleep_debt_from_nights([], NOW)
    assert result.total_debt_minutes == 0
    assert result.daily_average_debt_minutes == 0
    assert result.severity == "none"


def test_ideal_minutes_are_clamped() -> None:
    assert clamp_ideal_minutes(100) == 300
    assert clamp_ideal_minutes(1000) == 720
    assert sleep_debt_from_nights(_nights([420]), NOW, ideal_minutes=100).ideal_sleep_minutes == 300


def test_compute_sleep_debt_from_samples(two_weeks_of_data, now) -> None:
    result = compute_sleep_debt(two_weeks_of_data, now=now)
    assert result.valid_night_count == 14
    assert result.total_debt_minutes == 14 * 30
    assert result.severity == "severe"
    assert result.recovery_plan.estimated_days_to_recover == 7
    assert [d.date for d in result.night_details][0] == "2026-03-14"


def test_compute_sleep_debt_uses_config_ideal(two_weeks_of_data, now) -> None:
    result = compute_sleep_debt(two_weeks_of_data, now=now, config=AnalysisConfig(ideal_sleep_minutes=450))
    assert result.total_debt_minutes == 0
    assert compute_sleep_debt(two_weeks_of_data, ideal_minutes=420, now=now).total_debt_minutes == -420


def test_to_dict_nests_plan(two_weeks_of_data, now) -> None:
    data = compute_sleep_debt(two_weeks_of_data, now=now).to_dict()
    assert data["recovery_plan"]["extra_minutes_per_night"] == 60
    assert data["night_details"][0]["actual_minutes"] == 450
