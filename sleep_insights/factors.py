"""Single-factor analyses feeding the bedtime recommendation.

Each analysis has its own minimum-data gate and returns None when the gate
is not met, so the caller can tell "no data" apart from a real result.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Iterable

import numpy as np

from sleep_insights.circular import circular_mean, circular_std, format_clock, wrap_minutes
from sleep_insights.config import NADIR_OFFSET_MINUTES, NIGHT_BOUNDARY_HOUR, LOW_HRV_ADJUSTMENT_MINUTES
from sleep_insights.samples import HeartRateSample, HrvSample, SleepStage, SleepStageSample, samples_to_frame

logger = logging.getLogger(__name__)

_NADIR_MIN_SAMPLES = 10
_NADIR_MIN_NIGHT_SAMPLES = 3
_NADIR_MIN_NIGHTS = 3

_REGULARITY_MIN_NIGHTS = 5
_REGULARITY_STAGES = [SleepStage.IN_BED.value, SleepStage.ASLEEP.value, SleepStage.CORE.value, SleepStage.DEEP.value]
# (upper bound in minutes, rating)
_REGULARITY_TIERS = [(15, "excellent"), (30, "good"), (60, "fair")]

_HRV_MIN_VALUES = 3
_HRV_WINDOW = 14
_HRV_LOW_RATIO = 0.8
_HRV_HIGH_RATIO = 1.2


@dataclass(frozen=True)
class HeartRateNadir:
    average_nadir_time: str
    average_nadir_minutes: float
    suggested_bedtime: str
    suggested_bedtime_minutes: float
    data_points: int

    def to_dict(self) -> dict:
        return {
            "average_nadir_time": self.average_nadir_time,
            "suggested_bedtime": self.suggested_bedtime,
            "data_points": self.data_points,
        }


@dataclass(frozen=True)
class SleepRegularity:
    average_bedtime: str
    average_bedtime_minutes: float
    standard_deviation_minutes: int
    rating: str
    data_points: int

    def to_dict(self) -> dict:
        return {
            "average_bedtime": self.average_bedtime,
            "standard_deviation_minutes": self.standard_deviation_minutes,
            "rating": self.rating,
            "data_points": self.data_points,
        }


@dataclass(frozen=True)
class HrvStatus:
    current_hrv: int
    average_hrv: int
    ratio: float
    status: str
    adjustment_minutes: int

    def to_dict(self) -> dict:
        return asdict(self)


def analyse_heart_rate_nadir(
    heart_rate: Iterable[HeartRateSample],
    offset_minutes: int = NADIR_OFFSET_MINUTES,
    boundary_hour: int = NIGHT_BOUNDARY_HOUR,
) -> HeartRateNadir | None:
    """Average clock time of the nightly heart-rate minimum.

    Sleep onset typically precedes the heart-rate/core-temperature minimum by
    about two and a half hours, so the suggested bedtime is the nadir minus
    ``offset_minutes``.
    """
    df = samples_to_frame(heart_rate, boundary_hour)
    if len(df) < _NADIR_MIN_SAMPLES:
        logger.debug("heart-rate nadir: %d samples, need %d", len(df), _NADIR_MIN_SAMPLES)
        return None

    night = df[df["nocturnal"] & df["value"].notna()]

    nadir_minutes = []
    # grouped by night key, not calendar date, so a 23:30 -> 02:30 night stays one night
    for _, group in night.groupby("night_key"):
        if len(group) < _NADIR_MIN_NIGHT_SAMPLES:
            continue
        # first occurrence of the minimum, in time order
        lowest = group.loc[group["value"].idxmin()]
        nadir_minutes.append(lowest["minute_of_day"])

    if len(nadir_minutes) < _NADIR_MIN_NIGHTS:
        logger.debug("heart-rate nadir: %d qualifying nights, need %d", len(nadir_minutes), _NADIR_MIN_NIGHTS)
        return None

    avg_nadir = circular_mean(nadir_minutes)
    bedtime = wrap_minutes(avg_nadir - offset_minutes)
    return HeartRateNadir(
        average_nadir_time=format_clock(avg_nadir),
        average_nadir_minutes=avg_nadir,
        suggested_bedtime=format_clock(bedtime),
        suggested_bedtime_minutes=bedtime,
        data_points=len(nadir_minutes),
    )


def _regularity_rating(std_minutes: float) -> str:
    for upper, rating in _REGULARITY_TIERS:
        if std_minutes < upper:
            return rating
    return "poor"


def analyse_sleep_regularity(
    sleep: Iterable[SleepStageSample],
    boundary_hour: int = NIGHT_BOUNDARY_HOUR,
) -> SleepRegularity | None:
    """Dispersion of nightly bedtimes (earliest in-bed/asleep sample per night)."""
    df = samples_to_frame(sleep, boundary_hour)
    if df.empty:
        return None

    qualifying = df[df["stage"].isin(_REGULARITY_STAGES)]
    # grouped by night key, not calendar date; the frame is time-ordered,
    # so the first row per night is its bedtime even when that is after midnight
    bedtimes = qualifying.groupby("night_key", sort=True)["minute_of_day"].first().tolist()

    if len(bedtimes) < _REGULARITY_MIN_NIGHTS:
        logger.debug("sleep regularity: %d nights, need %d", len(bedtimes), _REGULARITY_MIN_NIGHTS)
        return None

    avg = circular_mean(bedtimes)
    std = circular_std(bedtimes, avg)
    return SleepRegularity(
        average_bedtime=format_clock(avg),
        average_bedtime_minutes=avg,
        standard_deviation_minutes=int(np.floor(std + 0.5)),
        rating=_regularity_rating(std),
        data_points=len(bedtimes),
    )


def analyse_hrv_status(
    hrv: Iterable[HrvSample],
    low_adjustment_minutes: int = LOW_HRV_ADJUSTMENT_MINUTES,
) -> HrvStatus | None:
    """Compare the latest SDNN reading with the recent average."""
    readings = sorted(hrv, key=lambda s: s.start, reverse=True)
    if len(readings) < _HRV_MIN_VALUES:
        return None

    current = readings[0].value
    if current is None:
        logger.debug("hrv status: latest reading has no value")
        return None

    recent = [r.value for r in readings[:_HRV_WINDOW] if r.value is not None]
    if len(recent) < _HRV_MIN_VALUES:
        return None

    average = float(np.mean(recent))
    if average <= 0:
        return None

    ratio = current / average
    if ratio < _HRV_LOW_RATIO:
        status, adjustment = "low", low_adjustment_minutes
    elif ratio > _HRV_HIGH_RATIO:
        status, adjustment = "high", 0
    else:
        status, adjustment = "normal", 0

    return HrvStatus(
        current_hrv=int(np.floor(current + 0.5)),
        average_hrv=int(np.floor(average + 0.5)),
        ratio=round(ratio, 2),
        status=status,
        adjustment_minutes=adjustment,
    )
