"""Tunable constants for the analysis, with optional .env overrides."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

NIGHT_BOUNDARY_HOUR = 18
NADIR_OFFSET_MINUTES = 150
LOW_HRV_ADJUSTMENT_MINUTES = -30
DEFAULT_BEDTIME_MINUTES = 22 * 60 + 30
IDEAL_SLEEP_MINUTES = 480


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_clock(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    from sleep_insights.circular import parse_clock
    return parse_clock(raw)


@dataclass(frozen=True)
class AnalysisConfig:
    """Constants taken from sleep research rather than from the user's data.

    The nadir offset and the low-HRV adjustment are published rules of thumb,
    kept here so they can be tuned without touching the analyses.
    """

    night_boundary_hour: int = NIGHT_BOUNDARY_HOUR
    nadir_offset_minutes: int = NADIR_OFFSET_MINUTES
    low_hrv_adjustment_minutes: int = LOW_HRV_ADJUSTMENT_MINUTES
    default_bedtime_minutes: int = DEFAULT_BEDTIME_MINUTES
    ideal_sleep_minutes: int = IDEAL_SLEEP_MINUTES

    def __post_init__(self):
        if not 0 <= self.night_boundary_hour <= 23:
            raise ValueError(f"night_boundary_hour must be 0-23, got {self.night_boundary_hour}")
        if not 0 <= self.default_bedtime_minutes < 1440:
            raise ValueError(f"default_bedtime_minutes must be 0-1439, got {self.default_bedtime_minutes}")

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "AnalysisConfig":
        """Build a config from SLEEP_* environment variables (and a .env file if present)."""
        load_dotenv(env_file or Path.cwd() / ".env")
        return cls(
            night_boundary_hour=_env_int("SLEEP_NIGHT_BOUNDARY_HOUR", NIGHT_BOUNDARY_HOUR),
            nadir_offset_minutes=_env_int("SLEEP_NADIR_OFFSET_MIN", NADIR_OFFSET_MINUTES),
            low_hrv_adjustment_minutes=_env_int("SLEEP_LOW_HRV_ADJUSTMENT_MIN", LOW_HRV_ADJUSTMENT_MINUTES),
            default_bedtime_minutes=_env_clock("SLEEP_DEFAULT_BEDTIME", DEFAULT_BEDTIME_MINUTES),
            ideal_sleep_minutes=_env_int("SLEEP_IDEAL_MIN", IDEAL_SLEEP_MINUTES),
        )


DEFAULT_CONFIG = AnalysisConfig()
