"""Sleep analytics: bedtime recommendation, sleep-quality score, recovery trend."""

from sleep_insights.bedtime import BedtimeRecommendation, compute_bedtime_recommendation
from sleep_insights.config import AnalysisConfig
from sleep_insights.recovery import RecoveryAnalysis, compute_recovery_status
from sleep_insights.report import build_sleep_report
from sleep_insights.samples import (
    HeartRateSample,
    HrvSample,
    InvalidSampleError,
    SleepStage,
    SleepStageSample,
)
from sleep_insights.scoring import SleepScoreResult, WeeklySleepScore, compute_weekly_sleep_score
from sleep_insights.sleep_debt import compute_sleep_debt

__all__ = [
    "AnalysisConfig",
    "BedtimeRecommendation",
    "HeartRateSample",
    "HrvSample",
    "InvalidSampleError",
    "RecoveryAnalysis",
    "SleepScoreResult",
    "SleepStage",
    "SleepStageSample",
    "WeeklySleepScore",
    "build_sleep_report",
    "compute_bedtime_recommendation",
    "compute_recovery_status",
    "compute_sleep_debt",
    "compute_weekly_sleep_score",
]
