"""Fuse heart-rate nadir, bedtime regularity and HRV into one bedtime."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sleep_insights.circular import circular_mean, format_clock, parse_clock
from sleep_insights.config import DEFAULT_CONFIG, AnalysisConfig
from sleep_insights.factors import (
    HeartRateNadir,
    HrvStatus,
    SleepRegularity,
    analyse_heart_rate_nadir,
    analyse_hrv_status,
    analyse_sleep_regularity,
)
from sleep_insights.samples import current_time, partition_samples, validate_samples

logger = logging.getLogger(__name__)

# Confidence contributed by each factor when present
_NADIR_CONFIDENCE = 40
_REGULARITY_CONFIDENCE = 35
_HRV_CONFIDENCE = 25
ACTIONABLE_CONFIDENCE = 30

LANGUAGES = ("en", "zh")

_TEXT = {
    "en": {
        "lead": "Based on your data, we recommend going to bed at {time} tonight.",
        "regular": "Your sleep regularity is good (±{std} min). Keep it up!",
        "irregular": "Try to improve sleep regularity. Current: ±{std} min, target: <30 min.",
        "hrv_low": "Your HRV is lower today ({current}ms vs avg {average}ms). Consider sleeping earlier.",
        "hrv_high": "Your HRV is good today ({current}ms). You're in good recovery condition.",
        "insufficient": (
            "Insufficient data. Please keep syncing your health data for better recommendations. "
            "At least 5 days of sleep and heart rate data is needed."
        ),
        "until_past": "Past recommended bedtime",
        "until_hours": "{hours}h {minutes}m until bedtime",
        "until_minutes": "{minutes}m until bedtime",
    },
    "zh": {
        "lead": "根据你的数据分析，建议今晚 {time} 入睡。",
        "regular": "你的睡眠规律性很好（波动 {std} 分钟），继续保持！",
        "irregular": "建议增强睡眠规律性，目前波动 {std} 分钟，目标是控制在 30 分钟以内。",
        "hrv_low": "今天 HRV 偏低（{current}ms vs 平均 {average}ms），建议比平时早睡。",
        "hrv_high": "今天 HRV 良好（{current}ms），身体恢复状态不错。",
        "insufficient": "数据不足，建议持续同步健康数据以获得更准确的建议。需要至少 5 天的睡眠数据和心率数据。",
        "until_past": "已过建议入睡时间",
        "until_hours": "距建议入睡还有 {hours} 小时 {minutes} 分钟",
        "until_minutes": "距建议入睡还有 {minutes} 分钟",
    },
}


@dataclass(frozen=True)
class BedtimeFactors:
    heart_rate_nadir: HeartRateNadir | None = None
    sleep_regularity: SleepRegularity | None = None
    hrv_status: HrvStatus | None = None

    def to_dict(self) -> dict:
        return {
            "heart_rate_nadir": self.heart_rate_nadir.to_dict() if self.heart_rate_nadir else None,
            "sleep_regularity": self.sleep_regularity.to_dict() if self.sleep_regularity else None,
            "hrv_status": self.hrv_status.to_dict() if self.hrv_status else None,
        }


@dataclass(frozen=True)
class BedtimeRecommendation:
    recommended_time: str
    recommended_datetime: datetime
    confidence: int
    factors: BedtimeFactors = field(default_factory=BedtimeFactors)
    suggestion_text: str = ""
    insufficient_data_reason: str | None = None

    @property
    def is_actionable(self) -> bool:
        """Low-confidence recommendations must not be shown as firm guidance."""
        return self.confidence >= ACTIONABLE_CONFIDENCE

    def to_dict(self) -> dict:
        return {
            "recommended_time": self.recommended_time,
            "recommended_datetime": self.recommended_datetime.isoformat(),
            "confidence": self.confidence,
            "is_actionable": self.is_actionable,
            "factors": self.factors.to_dict(),
            "suggestion": self.suggestion_text,
            "insufficient_data_reason": self.insufficient_data_reason,
        }


def _text(language: str) -> dict:
    if language not in _TEXT:
        raise ValueError(f"Unsupported language: {language!r} (expected one of {LANGUAGES})")
    return _TEXT[language]


def build_suggestion(factors: BedtimeFactors, recommended_time: str, language: str = "en") -> str:
    t = _text(language)
    parts = [t["lead"].format(time=recommended_time)]

    reg = factors.sleep_regularity
    if reg:
        key = "regular" if reg.rating in ("excellent", "good") else "irregular"
        parts.append(t[key].format(std=reg.standard_deviation_minutes))

    hrv = factors.hrv_status
    if hrv and hrv.status == "low":
        parts.append(t["hrv_low"].format(current=hrv.current_hrv, average=hrv.average_hrv))
    elif hrv and hrv.status == "high":
        parts.append(t["hrv_high"].format(current=hrv.current_hrv))

    joiner = "" if language == "zh" else " "
    return joiner.join(parts)


def next_occurrence(clock: str, now: datetime) -> datetime:
    """The next instance of an HH:MM clock time at or after ``now``."""
    minutes = parse_clock(clock)
    candidate = now.replace(hour=minutes // 60, minute=minutes % 60, second=0, microsecond=0)
    if candidate < now:
        candidate += timedelta(days=1)
    return candidate


def compute_bedtime_recommendation(
    samples,
    language: str = "en",
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
) -> BedtimeRecommendation:
    """Recommend tonight's bedtime from whatever factors the data supports.

    Confidence adds up per available factor (nadir 40, regularity 35, HRV 25).
    With neither nadir nor regularity the default bedtime is used.
    """
    config = config or DEFAULT_CONFIG
    t = _text(language)
    samples = validate_samples(samples)
    part = partition_samples(samples)
    now = now or current_time(samples)

    factors = BedtimeFactors(
        heart_rate_nadir=analyse_heart_rate_nadir(
            part.heart_rate, config.nadir_offset_minutes, config.night_boundary_hour
        ),
        sleep_regularity=analyse_sleep_regularity(part.sleep, config.night_boundary_hour),
        hrv_status=analyse_hrv_status(part.hrv, config.low_hrv_adjustment_minutes),
    )

    confidence = 0
    candidates = []
    if factors.heart_rate_nadir:
        confidence += _NADIR_CONFIDENCE
        candidates.append(factors.heart_rate_nadir.suggested_bedtime_minutes)
    if factors.sleep_regularity:
        confidence += _REGULARITY_CONFIDENCE
        candidates.append(factors.sleep_regularity.average_bedtime_minutes)
    if factors.hrv_status:
        confidence += _HRV_CONFIDENCE
    confidence = min(confidence, 100)

    if not candidates:
        minutes = config.default_bedtime_minutes
    elif len(candidates) == 1:
        minutes = candidates[0]
    else:
        minutes = circular_mean(candidates)

    if factors.hrv_status:
        minutes += factors.hrv_status.adjustment_minutes

    recommended_time = format_clock(minutes)
    reason = t["insufficient"] if confidence < ACTIONABLE_CONFIDENCE else None
    logger.debug("bedtime %s, confidence %d, candidates %s", recommended_time, confidence, candidates)

    return BedtimeRecommendation(
        recommended_time=recommended_time,
        recommended_datetime=next_occurrence(recommended_time, now),
        confidence=confidence,
        factors=factors,
        suggestion_text=build_suggestion(factors, recommended_time, language),
        insufficient_data_reason=reason,
    )


def format_time_until_bedtime(recommendation: BedtimeRecommendation, now: datetime, language: str = "en") -> str:
    t = _text(language)
    diff = recommendation.recommended_datetime - now
    if diff < timedelta(0):
        return t["until_past"]
    total_minutes = int(diff.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return t["until_hours"].format(hours=hours, minutes=minutes)
    return t["until_minutes"].format(minutes=minutes)
