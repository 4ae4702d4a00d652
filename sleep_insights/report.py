"""Assemble every analysis into one JSON-ready report."""

from datetime import datetime

from sleep_insights.bedtime import compute_bedtime_recommendation, format_time_until_bedtime
from sleep_insights.config import DEFAULT_CONFIG, AnalysisConfig
from sleep_insights.nights import parse_sleep_nights
from sleep_insights.recovery import compute_recovery_status
from sleep_insights.samples import current_time, partition_samples, validate_samples
from sleep_insights.scoring import compute_weekly_sleep_score
from sleep_insights.sleep_debt import sleep_debt_from_nights


def _or_none(result):
    return result.to_dict() if result is not None else None


def build_sleep_report(
    samples,
    language: str = "en",
    days: int = 7,
    debt_days: int = 14,
    ideal_sleep_minutes: int | None = None,
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
) -> dict:
    """Run all analyses over one sample window.

    Absent analyses appear as None; the report itself is always produced.
    """
    config = config or DEFAULT_CONFIG
    samples = validate_samples(samples)
    now = now or current_time(samples)

    bedtime = compute_bedtime_recommendation(samples, language=language, now=now, config=config)
    weekly = compute_weekly_sleep_score(samples, days=days, now=now, config=config)
    recovery = compute_recovery_status(samples)
    nights = parse_sleep_nights(samples, config.night_boundary_hour)
    debt = sleep_debt_from_nights(
        nights,
        now,
        ideal_sleep_minutes if ideal_sleep_minutes is not None else config.ideal_sleep_minutes,
        debt_days,
    )

    bedtime_dict = bedtime.to_dict()
    bedtime_dict["time_until"] = format_time_until_bedtime(bedtime, now, language)

    return {
        "generated_at": now.isoformat(),
        "language": language,
        "sample_counts": partition_samples(samples).counts(),
        "bedtime": bedtime_dict,
        "weekly_score": _or_none(weekly),
        "recovery": _or_none(recovery),
        "sleep_debt": debt.to_dict() if debt.valid_night_count else None,
        "nights": [n.to_dict() for n in nights],
    }
