"""Short-term recovery trend from daily SDNN averages.

Only SDNN is available upstream (no RMSSD, no frequency-domain HRV), so the
trend is a moving-average crossover: the 3 most recent daily means against a
baseline of up to 14 days.
"""

import logging
from dataclasses import asdict, dataclass

import numpy as np
from scipy import stats

from sleep_insights.samples import partition_samples, samples_to_frame, validate_samples

logger = logging.getLogger(__name__)

_MIN_READINGS = 5
_MIN_DAYS = 3
_SHORT_TERM_DAYS = 3
_BASELINE_DAYS = 14
_RISING_RATIO = 1.10
_FALLING_RATIO = 0.90

_STATUS_BY_TREND = {
    "rising": "well_recovered",
    "stable": "normal",
    "falling": "needs_recovery",
}


@dataclass(frozen=True)
class RecoveryAnalysis:
    status: str
    trend: str
    short_term_avg: float
    baseline_avg: float
    trend_ratio: float
    data_points: int
    daily_slope_ms: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def classify_trend(ratio: float) -> str:
    if ratio > _RISING_RATIO:
        return "rising"
    elif ratio < _FALLING_RATIO:
        return "falling"
    return "stable"


def compute_recovery_status(samples) -> RecoveryAnalysis | None:
    """Classify recovery from HRV alone; None when there is too little HRV."""
    hrv = [s for s in partition_samples(validate_samples(samples)).hrv if s.value is not None]
    if len(hrv) < _MIN_READINGS:
        logger.debug("recovery: %d hrv readings, need %d", len(hrv), _MIN_READINGS)
        return None

    df = samples_to_frame(hrv)
    daily = df.groupby("date")["value"].mean().sort_index(ascending=False)
    if len(daily) < _MIN_DAYS:
        logger.debug("recovery: %d days of hrv, need %d", len(daily), _MIN_DAYS)
        return None

    short_term = float(daily.iloc[:_SHORT_TERM_DAYS].mean())
    baseline_window = daily.iloc[:_BASELINE_DAYS]
    baseline = float(baseline_window.mean())
    if baseline <= 0:
        return None

    ratio = short_term / baseline
    trend = classify_trend(ratio)

    # oldest -> newest for the slope
    chronological = baseline_window.iloc[::-1].values
    x = np.arange(len(chronological), dtype=float)
    slope, _, _, _, _ = stats.linregress(x, chronological)

    return RecoveryAnalysis(
        status=_STATUS_BY_TREND[trend],
        trend=trend,
        short_term_avg=round(short_term, 1),
        baseline_avg=round(baseline, 1),
        trend_ratio=round(ratio, 2),
        data_points=len(daily),
        daily_slope_ms=round(float(slope), 2),
    )
