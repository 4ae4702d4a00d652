"""Sample types and the ingestion/filtering layer.

A sample collection is an unordered mix of heart-rate, HRV (SDNN) and
sleep-stage readings, possibly from several devices. Everything downstream
works from the partition or the frame built here.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Union

import pandas as pd

from sleep_insights.circular import minutes_of_day
from sleep_insights.config import NIGHT_BOUNDARY_HOUR

logger = logging.getLogger(__name__)


class InvalidSampleError(ValueError):
    """Raised when a sample collection cannot be analysed at all."""


class SleepStage(str, Enum):
    IN_BED = "in_bed"
    ASLEEP = "asleep"
    CORE = "core"
    DEEP = "deep"
    REM = "rem"
    AWAKE = "awake"


ACTUAL_SLEEP_STAGES = frozenset({SleepStage.ASLEEP, SleepStage.CORE, SleepStage.DEEP, SleepStage.REM})
DETAILED_STAGES = frozenset({SleepStage.CORE, SleepStage.DEEP, SleepStage.REM})

_STAGE_ALIASES = {
    "in_bed": SleepStage.IN_BED,
    "inbed": SleepStage.IN_BED,
    "asleep": SleepStage.ASLEEP,
    "asleepunspecified": SleepStage.ASLEEP,
    "core": SleepStage.CORE,
    "asleepcore": SleepStage.CORE,
    "light": SleepStage.CORE,
    "deep": SleepStage.DEEP,
    "asleepdeep": SleepStage.DEEP,
    "rem": SleepStage.REM,
    "asleeprem": SleepStage.REM,
    "awake": SleepStage.AWAKE,
}


def parse_stage(label) -> SleepStage | None:
    """Map a stage label (canonical or HealthKit spelling) to a SleepStage."""
    if label is None or (isinstance(label, float) and pd.isna(label)):
        return None
    if isinstance(label, SleepStage):
        return label
    key = str(label).strip().replace("-", "_").replace(" ", "")
    stage = _STAGE_ALIASES.get(key.lower()) or _STAGE_ALIASES.get(key.lower().replace("_", ""))
    if stage is None:
        logger.debug("unknown sleep stage label %r", label)
    return stage


@dataclass(frozen=True)
class HeartRateSample:
    start: datetime
    end: datetime
    value: float | None
    source_id: str | None = None


@dataclass(frozen=True)
class HrvSample:
    """Heart-rate variability as SDNN in milliseconds."""

    start: datetime
    end: datetime
    value: float | None
    source_id: str | None = None


@dataclass(frozen=True)
class SleepStageSample:
    start: datetime
    end: datetime
    stage: SleepStage
    source_id: str | None = None


Sample = Union[HeartRateSample, HrvSample, SleepStageSample]

SAMPLE_KINDS = {
    HeartRateSample: "heart_rate",
    HrvSample: "hrv",
    SleepStageSample: "sleep",
}

# data_type tags accepted from flat records
_TYPE_TAGS = {
    "heart_rate": HeartRateSample,
    "HKQuantityTypeIdentifierHeartRate": HeartRateSample,
    "hrv": HrvSample,
    "HKQuantityTypeIdentifierHeartRateVariabilitySDNN": HrvSample,
    "sleep": SleepStageSample,
    "sleep_stage": SleepStageSample,
    "HKCategoryTypeIdentifierSleepAnalysis": SleepStageSample,
}


@dataclass(frozen=True)
class SamplePartition:
    heart_rate: list[HeartRateSample] = field(default_factory=list)
    hrv: list[HrvSample] = field(default_factory=list)
    sleep: list[SleepStageSample] = field(default_factory=list)

    def counts(self) -> dict:
        return {"heart_rate": len(self.heart_rate), "hrv": len(self.hrv), "sleep": len(self.sleep)}


def partition_samples(samples: Iterable[Sample]) -> SamplePartition:
    """Split a mixed collection by sample type."""
    part = SamplePartition()
    for s in samples:
        if isinstance(s, HeartRateSample):
            part.heart_rate.append(s)
        elif isinstance(s, HrvSample):
            part.hrv.append(s)
        elif isinstance(s, SleepStageSample):
            part.sleep.append(s)
        else:
            raise InvalidSampleError(f"Unsupported sample object: {type(s).__name__}")
    return part


def validate_samples(samples) -> list[Sample]:
    """Reject collections the analyses cannot run on; return them as a list."""
    if samples is None:
        raise InvalidSampleError("Sample collection is None")
    samples = list(samples)
    aware = None
    for s in samples:
        if not isinstance(s, (HeartRateSample, HrvSample, SleepStageSample)):
            raise InvalidSampleError(f"Unsupported sample object: {type(s).__name__}")
        if s.end < s.start:
            raise InvalidSampleError(f"Negative duration: {s.start.isoformat()} -> {s.end.isoformat()}")
        is_aware = s.start.tzinfo is not None
        if aware is None:
            aware = is_aware
        elif aware != is_aware:
            raise InvalidSampleError("Cannot mix timezone-aware and naive timestamps")
    return samples


def night_key(ts: datetime, boundary_hour: int = NIGHT_BOUNDARY_HOUR):
    """Date of the night a timestamp belongs to.

    Anything before the boundary hour counts toward the previous evening, so
    a 23:00 -> 07:00 episode lands on a single key.
    """
    return (ts - timedelta(hours=boundary_hour)).date()


def is_nocturnal(ts: datetime) -> bool:
    """True between 22:00 and 06:00."""
    return ts.hour >= 22 or ts.hour < 6


_FRAME_COLUMNS = [
    "kind", "value", "stage", "source_id", "start", "end", "duration_min",
    "hour", "minute_of_day", "nocturnal", "date", "night_key", "sample",
]


def samples_to_frame(samples: Iterable[Sample], boundary_hour: int = NIGHT_BOUNDARY_HOUR) -> pd.DataFrame:
    """One row per sample with derived time-of-day columns, sorted by start."""
    rows = []
    for s in samples:
        rows.append({
            "kind": SAMPLE_KINDS[type(s)],
            "value": None if isinstance(s, SleepStageSample) else s.value,
            "stage": s.stage.value if isinstance(s, SleepStageSample) else None,
            "source_id": s.source_id or "unknown",
            "start": s.start,
            "end": s.end,
            "duration_min": (s.end - s.start).total_seconds() / 60,
            "hour": s.start.hour,
            "minute_of_day": minutes_of_day(s.start),
            "nocturnal": is_nocturnal(s.start),
            "date": s.start.date(),
            "night_key": night_key(s.start, boundary_hour),
            "sample": s,
        })
    df = pd.DataFrame(rows, columns=_FRAME_COLUMNS)
    if df.empty:
        return df
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    df["order"] = [s.start for s in df["sample"]]
    df = df.sort_values("order", kind="mergesort").drop(columns="order").reset_index(drop=True)
    return df


def record_to_sample(record: dict) -> Sample | None:
    """Build a sample from a flat record with a data_type tag; None if unusable."""
    cls = _TYPE_TAGS.get(str(record.get("data_type", "")).strip())
    if cls is None:
        logger.debug("skipping record with data_type %r", record.get("data_type"))
        return None

    start = record.get("start") or record.get("start_date")
    end = record.get("end") or record.get("end_date") or start
    if start is None:
        return None
    start, end = _to_datetime(start), _to_datetime(end)

    source = None
    for key in ("source_id", "source_bundle_id", "source_name"):
        val = record.get(key)
        if val is not None and not (isinstance(val, float) and pd.isna(val)) and str(val).strip():
            source = str(val)
            break

    if cls is SleepStageSample:
        stage = parse_stage(record.get("sleep_stage"))
        if stage is None:
            return None
        return SleepStageSample(start=start, end=end, stage=stage, source_id=source)

    value = record.get("value")
    if value is not None:
        value = pd.to_numeric(value, errors="coerce")
        value = None if pd.isna(value) else float(value)
    return cls(start=start, end=end, value=value, source_id=source)


def records_to_samples(records: Iterable[dict]) -> list[Sample]:
    out = []
    for record in records:
        sample = record_to_sample(record)
        if sample is not None:
            out.append(sample)
    return out


def _to_datetime(value) -> datetime:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


def current_time(samples: Iterable[Sample]) -> datetime:
    """Now, matching the naive/aware flavour of the samples."""
    for s in samples:
        if s.start.tzinfo is not None:
            return datetime.now(s.start.tzinfo)
        break
    return datetime.now()
