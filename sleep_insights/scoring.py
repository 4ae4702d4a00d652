"""Seven-dimension sleep-quality score.

| Dimension      | Weight | Ideal range           |
|----------------|--------|-----------------------|
| total sleep    | 25%    | 420-540 min (7-9h)    |
| efficiency     | 20%    | >90%                  |
| deep sleep     | 15%    | 15-20% of total sleep |
| REM sleep      | 15%    | 20-25% of total sleep |
| latency        | 10%    | <15 min               |
| awakenings     | 10%    | <=1                   |
| HRV recovery   | 5%     | night SDNN >= daytime |

Each dimension is scored 0-100 on a piecewise-linear curve that penalises
both falling short of and overshooting the ideal range.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sleep_insights.config import DEFAULT_CONFIG, AnalysisConfig
from sleep_insights.nights import Night, daytime_hrv_baseline, parse_sleep_nights
from sleep_insights.samples import current_time, validate_samples

logger = logging.getLogger(__name__)

WEIGHTS = {
    "total_sleep": 0.25,
    "efficiency": 0.20,
    "deep_sleep": 0.15,
    "rem_sleep": 0.15,
    "latency": 0.10,
    "awakenings": 0.10,
    "hrv_recovery": 0.05,
}

_IDEAL_RANGES = {
    "total_sleep": "7-9h (420-540min)",
    "efficiency": ">90%",
    "deep_sleep": "15-20%",
    "rem_sleep": "20-25%",
    "latency": "<15min",
    "awakenings": "<=1 times",
    "hrv_recovery": "Rising vs daytime",
}

_NEUTRAL_SCORE = 50
_MISSING_STAGE_SCORE = 20
_NO_IN_BED_CAP = 80
# in-bed within 5% of asleep time means the device reported no separate in-bed period
_NO_IN_BED_TOLERANCE = 0.05


@dataclass(frozen=True)
class DimensionScore:
    score: int
    weight: float
    weighted_score: float
    actual_value: float
    ideal_range: str
    status: str

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "weight": self.weight,
            "weighted_score": round(self.weighted_score, 2),
            "actual_value": self.actual_value,
            "ideal_range": self.ideal_range,
            "status": self.status,
        }


@dataclass(frozen=True)
class SleepScoreResult:
    total_score: int
    grade: str
    dimensions: dict
    night: Night

    def to_dict(self) -> dict:
        return {
            "night_date": self.night.night_key.isoformat(),
            "total_score": self.total_score,
            "grade": self.grade,
            "dimensions": {name: dim.to_dict() for name, dim in self.dimensions.items()},
        }


@dataclass(frozen=True)
class WeeklySleepScore:
    average_score: int
    grade: str
    night_count: int
    scores: list

    def to_dict(self) -> dict:
        return {
            "average_score": self.average_score,
            "grade": self.grade,
            "night_count": self.night_count,
            "nights": [s.to_dict() for s in self.scores],
        }


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_round(score: float) -> int:
    return max(0, min(100, _half_up(score)))


def _status(score: int) -> str:
    if score >= 85:
        return "optimal"
    elif score >= 70:
        return "good"
    elif score >= 50:
        return "fair"
    return "poor"


def grade_for(total: int) -> str:
    if total >= 85:
        return "excellent"
    elif total >= 70:
        return "good"
    elif total >= 50:
        return "fair"
    return "poor"


def _dimension(name: str, raw_score: float, actual_value: float) -> DimensionScore:
    score = _clamp_round(raw_score)
    weight = WEIGHTS[name]
    return DimensionScore(
        score=score,
        weight=weight,
        weighted_score=score * weight,
        actual_value=actual_value,
        ideal_range=_IDEAL_RANGES[name],
        status=_status(score),
    )


def score_total_sleep(minutes: float) -> DimensionScore:
    if 420 <= minutes <= 540:
        score = 100
    elif 360 <= minutes < 420:
        score = 70 + (minutes - 360) / 60 * 30
    elif 540 < minutes <= 600:
        score = 100 - (minutes - 540) / 60 * 20
    elif 300 <= minutes < 360:
        score = 40 + (minutes - 300) / 60 * 30
    elif minutes < 300:
        score = max(0, minutes / 300 * 40)
    else:
        # oversleeping keeps dropping past 10h
        score = max(30, 80 - (minutes - 600) / 60 * 25)
    return _dimension("total_sleep", score, _half_up(minutes))


def score_efficiency(sleep_minutes: float, in_bed_minutes: float) -> DimensionScore:
    if in_bed_minutes <= 0:
        return _dimension("efficiency", _NEUTRAL_SCORE, 0)

    efficiency = sleep_minutes / in_bed_minutes * 100
    no_in_bed_data = (in_bed_minutes - sleep_minutes) < in_bed_minutes * _NO_IN_BED_TOLERANCE

    if efficiency >= 90:
        score = 100
    elif efficiency >= 85:
        score = 85 + (efficiency - 85) / 5 * 15
    elif efficiency >= 75:
        score = 60 + (efficiency - 75) / 10 * 25
    elif efficiency >= 65:
        score = 30 + (efficiency - 65) / 10 * 30
    else:
        score = max(0, efficiency / 65 * 30)

    if no_in_bed_data:
        score = min(score, _NO_IN_BED_CAP)
    return _dimension("efficiency", score, _half_up(efficiency))


def _missing_stage(name: str, stage_minutes: float, total_minutes: float, detailed: bool) -> DimensionScore | None:
    """Neutral/low score for an empty stage dimension, or None to score normally."""
    if total_minutes <= 0:
        return _dimension(name, _NEUTRAL_SCORE, 0)
    if stage_minutes == 0 and total_minutes > 60:
        # detailed staging that still shows zero is a real absence;
        # otherwise the device just cannot report this stage
        return _dimension(name, _MISSING_STAGE_SCORE if detailed else _NEUTRAL_SCORE, 0)
    return None


def score_deep_sleep(deep_minutes: float, total_minutes: float, has_detailed_stages: bool) -> DimensionScore:
    missing = _missing_stage("deep_sleep", deep_minutes, total_minutes, has_detailed_stages)
    if missing:
        return missing

    ratio = deep_minutes / total_minutes * 100
    if 15 <= ratio <= 20:
        score = 100
    elif 20 < ratio <= 25:
        score = 90 + (25 - ratio) / 5 * 10
    elif 10 <= ratio < 15:
        score = 65 + (ratio - 10) / 5 * 35
    elif 25 < ratio <= 30:
        score = 75
    elif 5 <= ratio < 10:
        score = 30 + (ratio - 5) / 5 * 35
    elif ratio < 5:
        score = max(10, ratio / 5 * 30)
    else:
        score = 60
    return _dimension("deep_sleep", score, _half_up(ratio))


def score_rem_sleep(rem_minutes: float, total_minutes: float, has_detailed_stages: bool) -> DimensionScore:
    missing = _missing_stage("rem_sleep", rem_minutes, total_minutes, has_detailed_stages)
    if missing:
        return missing

    ratio = rem_minutes / total_minutes * 100
    if 20 <= ratio <= 25:
        score = 100
    elif 25 < ratio <= 30:
        score = 85 + (30 - ratio) / 5 * 15
    elif 15 <= ratio < 20:
        score = 65 + (ratio - 15) / 5 * 35
    elif 30 < ratio <= 35:
        score = 70
    elif 10 <= ratio < 15:
        score = 30 + (ratio - 10) / 5 * 35
    elif ratio < 10:
        score = max(10, ratio / 10 * 30)
    else:
        score = 55
    return _dimension("rem_sleep", score, _half_up(ratio))


def score_latency(latency_minutes: float) -> DimensionScore:
    if latency_minutes <= 15:
        score = 100
    elif latency_minutes <= 20:
        score = 85 + (20 - latency_minutes) / 5 * 15
    elif latency_minutes <= 30:
        score = 60 + (30 - latency_minutes) / 10 * 25
    elif latency_minutes <= 45:
        score = 30 + (45 - latency_minutes) / 15 * 30
    else:
        score = max(0, 30 - (latency_minutes - 45) / 15 * 15)
    return _dimension("latency", score, _half_up(latency_minutes))


def score_awakenings(count: int) -> DimensionScore:
    if count <= 1:
        score = 100
    elif count <= 2:
        score = 90
    elif count <= 3:
        score = 75
    elif count <= 5:
        score = 50 + (5 - count) / 2 * 25
    else:
        score = max(10, 50 - (count - 5) * 8)
    return _dimension("awakenings", score, count)


def score_hrv_recovery(night_hrv: tuple | list, daytime_hrv_avg: float | None) -> DimensionScore:
    if not night_hrv or not daytime_hrv_avg or daytime_hrv_avg <= 0:
        return _dimension("hrv_recovery", _NEUTRAL_SCORE, 0)

    night_avg = sum(night_hrv) / len(night_hrv)
    ratio = night_avg / daytime_hrv_avg
    if ratio >= 1.15:
        score = 100
    elif ratio >= 1.05:
        score = 85
    elif ratio >= 0.95:
        score = 70
    elif ratio >= 0.85:
        score = 50
    else:
        score = max(20, 50 - (0.85 - ratio) * 200)
    return _dimension("hrv_recovery", score, _half_up(night_avg))


def score_night(night: Night, daytime_hrv_avg: float | None = None) -> SleepScoreResult:
    """Score one night; ``daytime_hrv_avg`` feeds the HRV-recovery dimension."""
    dimensions = {
        "total_sleep": score_total_sleep(night.total_sleep_minutes),
        "efficiency": score_efficiency(night.total_sleep_minutes, night.total_in_bed_minutes),
        "deep_sleep": score_deep_sleep(night.deep_minutes, night.total_sleep_minutes, night.has_detailed_stages),
        "rem_sleep": score_rem_sleep(night.rem_minutes, night.total_sleep_minutes, night.has_detailed_stages),
        "latency": score_latency(night.latency_minutes),
        "awakenings": score_awakenings(night.awakenings_count),
        "hrv_recovery": score_hrv_recovery(night.hrv_samples, daytime_hrv_avg),
    }
    total = int(math.floor(sum(d.weighted_score for d in dimensions.values()) + 0.5))
    return SleepScoreResult(total_score=total, grade=grade_for(total), dimensions=dimensions, night=night)


def compute_weekly_sleep_score(
    samples,
    days: int = 7,
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
) -> WeeklySleepScore | None:
    """Average nightly score over the last ``days`` days; None without any scorable night."""
    config = config or DEFAULT_CONFIG
    samples = validate_samples(samples)
    now = now or current_time(samples)
    cutoff = now - timedelta(days=days)

    nights = [n for n in parse_sleep_nights(samples, config.night_boundary_hour) if n.sleep_start >= cutoff]
    if not nights:
        logger.debug("weekly score: no nights since %s", cutoff.isoformat())
        return None

    baseline = daytime_hrv_baseline(samples)
    scores = [score_night(n, baseline) for n in nights]
    average = int(math.floor(sum(s.total_score for s in scores) / len(scores) + 0.5))
    return WeeklySleepScore(
        average_score=average,
        grade=grade_for(average),
        night_count=len(scores),
        scores=scores,
    )
