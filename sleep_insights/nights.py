"""Segment sleep-stage samples into nights and reconcile overlapping sources.

Nights run from the boundary hour (18:00) to the boundary hour the next day,
so an episode that crosses midnight stays together. When several devices
report the same night, the most detailed one is kept and the rest only
contribute their in-bed timing.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

import pandas as pd

from sleep_insights.config import NIGHT_BOUNDARY_HOUR
from sleep_insights.samples import (
    ACTUAL_SLEEP_STAGES,
    DETAILED_STAGES,
    Sample,
    SleepStage,
    SleepStageSample,
    is_nocturnal,
    partition_samples,
    samples_to_frame,
)

logger = logging.getLogger(__name__)

_DAYTIME_HRV_MIN_VALUES = 3


@dataclass(frozen=True)
class Night:
    night_key: date
    sleep_start: datetime
    sleep_end: datetime
    in_bed_start: datetime
    total_sleep_minutes: int
    total_in_bed_minutes: int
    deep_minutes: int
    rem_minutes: int
    core_minutes: int
    awakenings_count: int
    latency_minutes: int
    hrv_samples: tuple[float, ...]
    has_detailed_stages: bool
    source_records: tuple[SleepStageSample, ...]

    def to_dict(self) -> dict:
        return {
            "night_date": self.night_key.isoformat(),
            "sleep_start": self.sleep_start.isoformat(),
            "sleep_end": self.sleep_end.isoformat(),
            "in_bed_start": self.in_bed_start.isoformat(),
            "total_sleep_min": self.total_sleep_minutes,
            "total_in_bed_min": self.total_in_bed_minutes,
            "deep_min": self.deep_minutes,
            "rem_min": self.rem_minutes,
            "core_min": self.core_minutes,
            "awakenings": self.awakenings_count,
            "latency_min": self.latency_minutes,
            "hrv_samples": list(self.hrv_samples),
            "has_detailed_stages": self.has_detailed_stages,
            "sources": sorted({r.source_id or "unknown" for r in self.source_records}),
        }


def _round_minutes(minutes: float) -> int:
    return int(math.floor(minutes + 0.5))


def reconcile_sources(records: list[SleepStageSample]) -> list[SleepStageSample]:
    """Keep one canonical source per night.

    The source with the most core/deep/rem samples wins (ties go to the one
    with more samples overall); other sources keep only their in-bed samples.
    """
    by_source: dict[str, list[SleepStageSample]] = {}
    for r in records:
        by_source.setdefault(r.source_id or "unknown", []).append(r)

    if len(by_source) <= 1:
        return list(records)

    def _rank(item):
        source, recs = item
        detail = sum(1 for r in recs if r.stage in DETAILED_STAGES)
        return (detail, len(recs), source)

    best_source = max(by_source.items(), key=_rank)[0]
    logger.debug("reconciled %d sources, canonical=%s", len(by_source), best_source)

    kept = []
    for source, recs in by_source.items():
        if source == best_source:
            kept.extend(recs)
        else:
            kept.extend(r for r in recs if r.stage == SleepStage.IN_BED)
    return kept


def build_night(key: date, records: Iterable[SleepStageSample], hrv_values: Iterable[float] = ()) -> Night | None:
    """Aggregate one night's reconciled records; None without any actual sleep."""
    frame = samples_to_frame(records)
    if frame.empty:
        return None

    sleep = frame[frame["stage"].isin([s.value for s in ACTUAL_SLEEP_STAGES])]
    if sleep.empty:
        return None

    sleep_start = min(sleep["sample"], key=lambda s: s.start).start
    sleep_end = max(sleep["sample"], key=lambda s: s.end).end

    in_bed = frame[frame["stage"] == SleepStage.IN_BED.value]
    in_bed_start = min(in_bed["sample"], key=lambda s: s.start).start if not in_bed.empty else sleep_start

    stage_minutes = sleep.groupby("stage")["duration_min"].sum()
    total_sleep = float(sleep["duration_min"].sum())
    in_bed_minutes = (sleep_end - in_bed_start).total_seconds() / 60
    latency = max(0.0, (sleep_start - in_bed_start).total_seconds() / 60)

    return Night(
        night_key=key,
        sleep_start=sleep_start,
        sleep_end=sleep_end,
        in_bed_start=in_bed_start,
        total_sleep_minutes=_round_minutes(total_sleep),
        total_in_bed_minutes=_round_minutes(in_bed_minutes),
        deep_minutes=_round_minutes(stage_minutes.get(SleepStage.DEEP.value, 0.0)),
        rem_minutes=_round_minutes(stage_minutes.get(SleepStage.REM.value, 0.0)),
        core_minutes=_round_minutes(
            stage_minutes.get(SleepStage.CORE.value, 0.0) + stage_minutes.get(SleepStage.ASLEEP.value, 0.0)
        ),
        awakenings_count=int((frame["stage"] == SleepStage.AWAKE.value).sum()),
        latency_minutes=_round_minutes(latency),
        hrv_samples=tuple(float(v) for v in hrv_values),
        has_detailed_stages=bool(frame["stage"].isin([s.value for s in DETAILED_STAGES]).any()),
        source_records=tuple(frame["sample"]),
    )


def _nocturnal_hrv_by_night(frame: pd.DataFrame) -> dict:
    hrv = frame[(frame["kind"] == "hrv") & frame["value"].notna()]
    hrv = hrv[hrv["nocturnal"]]
    return {key: grp["value"].tolist() for key, grp in hrv.groupby("night_key")}


def parse_sleep_nights(samples: Iterable[Sample], boundary_hour: int = NIGHT_BOUNDARY_HOUR) -> list[Night]:
    """Group samples into nights, newest first.

    Nights with no resolvable sleep start/end are dropped.
    """
    frame = samples_to_frame(samples, boundary_hour)
    if frame.empty:
        return []

    sleep = frame[frame["kind"] == "sleep"]
    if sleep.empty:
        return []

    hrv_by_night = _nocturnal_hrv_by_night(frame)

    nights = []
    for key, group in sleep.groupby("night_key", sort=True):
        records = reconcile_sources(list(group["sample"]))
        night = build_night(key, records, hrv_by_night.get(key, []))
        if night is None:
            logger.debug("night %s has no sleep stages, dropped", key)
            continue
        nights.append(night)

    nights.sort(key=lambda n: n.sleep_start, reverse=True)
    return nights


def daytime_hrv_baseline(samples: Iterable[Sample]) -> float | None:
    """Mean SDNN recorded between 06:00 and 22:00, or None with fewer than 3 values."""
    values = [
        s.value for s in partition_samples(samples).hrv
        if s.value is not None and not is_nocturnal(s.start)
    ]
    if len(values) < _DAYTIME_HRV_MIN_VALUES:
        return None
    return sum(values) / len(values)
