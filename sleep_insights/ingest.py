"""Load flat health-data exports (CSV or JSON) into samples."""

import json
import re
import zoneinfo
from datetime import timedelta, timezone, tzinfo
from pathlib import Path

import pandas as pd

from sleep_insights.samples import Sample, records_to_samples

_REQUIRED = {"data_type", "start_date"}


def _parse_timezone_offset(tz_str: str) -> tzinfo | None:
    """Convert 'UTC-05:00', 'UTC+5:30' or 'UTC' into a fixed-offset tzinfo."""
    if not tz_str or pd.isna(tz_str):
        return None
    tz_str = str(tz_str).strip()
    if tz_str.upper() in ("UTC", "Z"):
        return timezone.utc
    m = re.match(r"UTC([+-])(\d{1,2}):?(\d{2})?$", tz_str)
    if m:
        delta = timedelta(hours=int(m.group(2)), minutes=int(m.group(3) or 0))
        return timezone(-delta if m.group(1) == "-" else delta)
    return None


def resolve_timezone(tz_name: str | None) -> tzinfo | None:
    """Offset string or IANA name to a tzinfo; None when no conversion is wanted."""
    if tz_name is None or not str(tz_name).strip():
        return None
    offset = _parse_timezone_offset(tz_name)
    if offset:
        return offset
    try:
        return zoneinfo.ZoneInfo(str(tz_name).strip())
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name!r}") from None


def _read_frame(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".json":
        with open(path) as f:
            payload = json.load(f)
        if isinstance(payload, dict):
            payload = payload.get("samples") or payload.get("data") or []
        return pd.DataFrame(payload)
    return pd.read_csv(path)


def _parse_times(col: pd.Series, tz: tzinfo | None) -> pd.Series:
    if tz is not None:
        parsed = pd.to_datetime(col, format="mixed", utc=True)
        return parsed.dt.tz_convert(tz).astype(object)
    # Keep whatever wall-clock/offset each timestamp was written with
    return col.map(lambda v: pd.Timestamp(v) if pd.notna(v) else None)


def load_samples_frame(path: str | Path, tz_name: str | None = None) -> pd.DataFrame:
    """Read an export and normalise its timestamp columns.

    Returns the raw records with start_date/end_date as timestamps, converted
    into ``tz_name`` when given.
    """
    path = Path(path)
    df = _read_frame(path)

    if not _REQUIRED.issubset(df.columns):
        raise ValueError(f"{path} does not look like a health-data export (missing {sorted(_REQUIRED - set(df.columns))})")

    tz = resolve_timezone(tz_name)
    df["start_date"] = _parse_times(df["start_date"], tz)
    if "end_date" in df.columns:
        df["end_date"] = _parse_times(df["end_date"], tz)
    else:
        df["end_date"] = df["start_date"]

    if "value" in df.columns:
        df["value"] = pd.to_numeric(df["value"], errors="coerce")

    df = df.dropna(subset=["start_date"]).reset_index(drop=True)
    return df


def load_samples(path: str | Path, tz_name: str | None = None) -> list[Sample]:
    """Load one export file into a list of typed samples."""
    df = load_samples_frame(path, tz_name)
    records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    return records_to_samples(records)
