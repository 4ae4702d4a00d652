"""Clock-time statistics on a 24-hour circle.

Clock times are handled as minutes since midnight. Averaging them linearly
breaks across midnight (23:00 and 01:00 would average to noon), so every
time-of-day analysis goes through the circular helpers below.
"""

import math
import re
from datetime import datetime
from typing import Iterable

import numpy as np
from scipy.stats import circmean

MINUTES_PER_DAY = 1440

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def minutes_of_day(ts: datetime) -> int:
    """Wall-clock minutes since midnight for a timestamp."""
    return ts.hour * 60 + ts.minute


def wrap_minutes(minutes: float) -> float:
    """Fold any minute value into [0, 1440)."""
    return minutes % MINUTES_PER_DAY


def format_clock(minutes: float) -> str:
    """Render minutes since midnight as HH:MM, wrapping negatives and overflow."""
    total = int(math.floor(minutes + 0.5)) % MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def parse_clock(text: str) -> int:
    """Parse HH:MM into minutes since midnight."""
    m = _CLOCK_RE.match(str(text))
    if not m:
        raise ValueError(f"Not a HH:MM clock time: {text!r}")
    hours, mins = int(m.group(1)), int(m.group(2))
    if hours > 23 or mins > 59:
        raise ValueError(f"Clock time out of range: {text!r}")
    return hours * 60 + mins


def circular_mean(minutes: Iterable[float]) -> float | None:
    """Mean clock time via sin/cos averaging, in [0, 1440). None when empty."""
    values = np.asarray(list(minutes), dtype=float)
    if values.size == 0:
        return None
    mean = float(circmean(values, high=MINUTES_PER_DAY, low=0))
    # circmean can land on the upper bound through float error
    return 0.0 if mean >= MINUTES_PER_DAY else mean


def circular_distance(a: float, b: float) -> float:
    """Signed shortest distance from b to a on the clock, in [-720, 720). Works on arrays."""
    half = MINUTES_PER_DAY / 2
    return (a - b + half) % MINUTES_PER_DAY - half


def circular_std(minutes: Iterable[float], mean: float | None = None) -> float:
    """Root-mean-square of wrapped distances to the circular mean, in minutes."""
    values = np.asarray(list(minutes), dtype=float)
    if values.size <= 1:
        return 0.0
    if mean is None:
        mean = circular_mean(values)
    diffs = circular_distance(values, mean)
    return float(np.sqrt(np.mean(diffs ** 2)))
