from __future__ import annotations

import json
import os

from sleep_insights.report import build_sleep_report
from sleep_insights.visualizations import generate_all_graphs


def test_full_report(two_weeks_of_data, now) -> None:
    report = build_sleep_report(two_weeks_of_data, now=now)

    assert report["generated_at"] == "2026-03-15T12:00:00"
    assert report["sample_counts"]["sleep"] == 14 * 6
    assert report["bedtime"]["recommended_time"] == "23:30"
    assert report["bedtime"]["time_until"] == "11h 30m until bedtime"
    assert report["weekly_score"]["night_count"] == 7
    assert report["recovery"]["trend"] == "rising"
    assert report["sleep_debt"]["valid_night_count"] == 14
    assert len(report["nights"]) == 14

    # plain data all the way down
    json.dumps(report)


def test_report_debt_window_and_ideal(two_weeks_of_data, now) -> None:
    report = build_sleep_report(two_weeks_of_data, now=now, debt_days=5, ideal_sleep_minutes=450)
    assert report["sleep_debt"]["valid_night_count"] == 5
    assert report["sleep_debt"]["total_debt_minutes"] == 0


def test_empty_report(now) -> None:
    report = build_sleep_report([], language="zh", now=now)
    assert report["bedtime"]["confidence"] == 0
    assert report["bedtime"]["insufficient_data_reason"].startswith("数据不足")
    assert report["weekly_score"] is None
    assert report["recovery"] is None
    assert report["sleep_debt"] is None
    assert report["nights"] == []


def test_graphs_written(two_weeks_of_data, now, tmp_path) -> None:
    report = build_sleep_report(two_weeks_of_data, now=now)
    written = generate_all_graphs(report, str(tmp_path / "graphs"))
    names = sorted(os.path.basename(p) for p in written)
    assert names == ["dimension_breakdown.png", "sleep_architecture.png", "sleep_debt.png", "weekly_sleep_score.png"]
    assert all(os.path.getsize(p) > 0 for p in written)


def test_no_graphs_without_data(now, tmp_path) -> None:
    assert generate_all_graphs(build_sleep_report([], now=now), str(tmp_path)) == []
