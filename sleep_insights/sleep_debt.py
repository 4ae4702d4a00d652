"""Rolling sleep debt against an ideal nightly duration."""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta

from sleep_insights.config import DEFAULT_CONFIG, AnalysisConfig
from sleep_insights.nights import Night, parse_sleep_nights
from sleep_insights.samples import current_time, validate_samples

MIN_IDEAL_MINUTES = 300
MAX_IDEAL_MINUTES = 720
_MAX_RECOVERY_DAYS = 30

# severity by total debt in minutes: (upper bound, label)
_SEVERITY_BOUNDS = [(30, "none"), (120, "mild"), (300, "moderate")]
_EXTRA_MINUTES = {"mild": 30, "moderate": 45, "severe": 60}


@dataclass(frozen=True)
class NightDebt:
    date: str
    actual_minutes: int
    debt_minutes: int


@dataclass(frozen=True)
class RecoveryPlan:
    extra_minutes_per_night: int
    estimated_days_to_recover: int
    suggestion_key: str


@dataclass(frozen=True)
class SleepDebtResult:
    total_debt_minutes: int
    severity: str
    daily_average_debt_minutes: int
    valid_night_count: int
    lookback_days: int
    ideal_sleep_minutes: int
    night_details: list = field(default_factory=list)
    recovery_plan: RecoveryPlan | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def clamp_ideal_minutes(minutes: float) -> int:
    return int(max(MIN_IDEAL_MINUTES, min(MAX_IDEAL_MINUTES, round(minutes))))


def _severity(total: int) -> str:
    if total <= 0:
        return "none"
    for upper, label in _SEVERITY_BOUNDS:
        if total < upper:
            return label
    return "severe"


def _recovery_plan(total: int, severity: str) -> RecoveryPlan:
    extra = _EXTRA_MINUTES.get(severity, _EXTRA_MINUTES["mild"])
    raw_days = math.ceil(total / extra)
    return RecoveryPlan(
        extra_minutes_per_night=extra,
        estimated_days_to_recover=min(raw_days, _MAX_RECOVERY_DAYS),
        suggestion_key="recovery_tip_long_term" if raw_days > _MAX_RECOVERY_DAYS else "recovery_tip",
    )


def sleep_debt_from_nights(
    nights: list[Night],
    now: datetime,
    ideal_minutes: int = DEFAULT_CONFIG.ideal_sleep_minutes,
    lookback_days: int = 14,
) -> SleepDebtResult:
    """Debt over nights that started within ``lookback_days`` of ``now``."""
    ideal = clamp_ideal_minutes(ideal_minutes)
    cutoff = now - timedelta(days=lookback_days)
    recent = [n for n in nights if n.sleep_start >= cutoff]

    details = [
        NightDebt(
            date=n.night_key.isoformat(),
            actual_minutes=n.total_sleep_minutes,
            debt_minutes=ideal - n.total_sleep_minutes,
        )
        for n in recent
    ]
    total = sum(d.debt_minutes for d in details)
    daily_avg = int(math.floor(total / len(details) + 0.5)) if details else 0
    severity = _severity(total)

    return SleepDebtResult(
        total_debt_minutes=total,
        severity=severity,
        daily_average_debt_minutes=daily_avg,
        valid_night_count=len(details),
        lookback_days=lookback_days,
        ideal_sleep_minutes=ideal,
        night_details=details,
        recovery_plan=_recovery_plan(total, severity) if total > _SEVERITY_BOUNDS[0][0] else None,
    )


def compute_sleep_debt(
    samples,
    ideal_minutes: int | None = None,
    lookback_days: int = 14,
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
) -> SleepDebtResult:
    config = config or DEFAULT_CONFIG
    samples = validate_samples(samples)
    now = now or current_time(samples)
    nights = parse_sleep_nights(samples, config.night_boundary_hour)
    return sleep_debt_from_nights(
        nights,
        now,
        ideal_minutes if ideal_minutes is not None else config.ideal_sleep_minutes,
        lookback_days,
    )
