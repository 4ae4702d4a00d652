"""Render report graphs as PNGs."""

import os

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


_STYLE = {
    "figure.facecolor": "#f8f9fa",
    "axes.facecolor": "#ffffff",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.size": 10,
    "axes.titlesize": 13,
    "axes.labelsize": 11,
}

_GRADE_COLORS = {
    "excellent": "#2ecc71",
    "good": "#3498db",
    "fair": "#f1c40f",
    "poor": "#e74c3c",
}

_GRADE_BOUNDS = [
    ("excellent", 85, 100),
    ("good", 70, 85),
    ("fair", 50, 70),
    ("poor", 0, 50),
]

_DIMENSION_LABELS = {
    "total_sleep": "Duration",
    "efficiency": "Efficiency",
    "deep_sleep": "Deep",
    "rem_sleep": "REM",
    "latency": "Latency",
    "awakenings": "Awakenings",
    "hrv_recovery": "HRV recovery",
}


def generate_all_graphs(report: dict, graphs_dir: str) -> list[str]:
    """Write every graph the report has data for; returns the written paths."""
    plt.rcParams.update(_STYLE)
    os.makedirs(graphs_dir, exist_ok=True)

    written = []
    weekly = report.get("weekly_score")
    if weekly and weekly.get("nights"):
        written.append(_weekly_scores(weekly, graphs_dir))
        written.append(_dimension_breakdown(weekly["nights"][0], graphs_dir))

    if report.get("nights"):
        written.append(_sleep_architecture(report["nights"], graphs_dir))

    debt = report.get("sleep_debt")
    if debt and debt.get("night_details"):
        written.append(_sleep_debt(debt, graphs_dir))

    plt.close("all")
    return written


def _weekly_scores(weekly: dict, graphs_dir: str) -> str:
    nights = list(reversed(weekly["nights"]))
    labels = [n["night_date"] for n in nights]
    scores = [n["total_score"] for n in nights]

    fig, ax = plt.subplots(figsize=(max(8, len(nights) * 1.2), 5))
    for grade, lo, hi in _GRADE_BOUNDS:
        ax.axhspan(lo, hi, alpha=0.08, color=_GRADE_COLORS[grade])

    x = np.arange(len(scores))
    colors = [_GRADE_COLORS[n["grade"]] for n in nights]
    ax.bar(x, scores, color=colors, alpha=0.85, edgecolor="#2c3e50")
    ax.axhline(weekly["average_score"], color="#8e44ad", linestyle="--", linewidth=1.5,
               label=f"Average ({weekly['average_score']}, {weekly['grade']})")

    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45, ha="right")
    ax.set_ylabel("Sleep score")
    ax.set_ylim(0, 105)
    ax.set_title("Nightly Sleep Score")
    ax.legend(loc="lower right", fontsize=8)
    fig.tight_layout()
    path = os.path.join(graphs_dir, "weekly_sleep_score.png")
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def _dimension_breakdown(night: dict, graphs_dir: str) -> str:
    dims = night["dimensions"]
    names = list(dims.keys())
    labels = [f"{_DIMENSION_LABELS.get(n, n)} ({int(dims[n]['weight'] * 100)}%)" for n in names]
    scores = [dims[n]["score"] for n in names]
    colors = ["#2ecc71" if s >= 85 else "#3498db" if s >= 70 else "#f1c40f" if s >= 50 else "#e74c3c" for s in scores]

    fig, ax = plt.subplots(figsize=(9, 5))
    y = np.arange(len(names))
    ax.barh(y, scores, color=colors, alpha=0.85, edgecolor="#2c3e50")
    for i, s in enumerate(scores):
        ax.text(s + 1, i, str(s), va="center", fontsize=9)

    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlim(0, 110)
    ax.set_xlabel("Dimension score")
    ax.set_title(f"Score Breakdown, night of {night['night_date']} ({night['total_score']}, {night['grade']})")
    fig.tight_layout()
    path = os.path.join(graphs_dir, "dimension_breakdown.png")
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def _sleep_architecture(nights: list[dict], graphs_dir: str) -> str:
    nights = list(reversed(nights))
    labels = [n["night_date"] for n in nights]
    deep = [n["deep_min"] for n in nights]
    rem = [n["rem_min"] for n in nights]
    core = [n["core_min"] for n in nights]

    fig, ax = plt.subplots(figsize=(max(8, len(nights) * 1.2), 6))
    x = np.arange(len(labels))
    w = 0.5
    ax.bar(x, deep, w, label="Deep", color="#1a5276")
    ax.bar(x, rem, w, bottom=deep, label="REM", color="#2980b9")
    ax.bar(x, core, w, bottom=[d + r for d, r in zip(deep, rem)], label="Core / asleep", color="#85c1e9")

    for i, n in enumerate(nights):
        if not n["has_detailed_stages"]:
            ax.text(i, n["total_sleep_min"] + 5, "no stages", ha="center", fontsize=7, color="#7f8c8d")

    ax.axhspan(420, 540, alpha=0.08, color="#2ecc71", label="7-9h target")
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45, ha="right")
    ax.set_ylabel("Minutes")
    ax.set_title("Sleep Architecture")
    ax.legend(loc="upper right", fontsize=8)
    fig.tight_layout()
    path = os.path.join(graphs_dir, "sleep_architecture.png")
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def _sleep_debt(debt: dict, graphs_dir: str) -> str:
    details = list(reversed(debt["night_details"]))
    labels = [d["date"] for d in details]
    debts = [d["debt_minutes"] for d in details]
    cumulative = np.cumsum(debts)

    fig, ax1 = plt.subplots(figsize=(max(8, len(details) * 1.2), 5))
    x = np.arange(len(labels))
    colors = ["#e74c3c" if d > 0 else "#2ecc71" for d in debts]
    ax1.bar(x, debts, color=colors, alpha=0.7, label="Nightly debt (min)")
    ax1.axhline(0, color="#2c3e50", linewidth=1)
    ax1.set_ylabel("Minutes vs ideal")

    ax2 = ax1.twinx()
    ax2.plot(x, cumulative / 60, "o-", color="#8e44ad", linewidth=2, label="Cumulative (h)")
    ax2.set_ylabel("Cumulative debt (hours)", color="#8e44ad")
    ax2.tick_params(axis="y", labelcolor="#8e44ad")

    ax1.set_xticks(x)
    ax1.set_xticklabels(labels, rotation=45, ha="right")
    ax1.set_title(f"Sleep Debt ({debt['severity']}, ideal {debt['ideal_sleep_minutes']} min)")
    h1, l1 = ax1.get_legend_handles_labels()
    h2, l2 = ax2.get_legend_handles_labels()
    ax1.legend(h1 + h2, l1 + l2, loc="upper left", fontsize=8)
    fig.tight_layout()
    path = os.path.join(graphs_dir, "sleep_debt.png")
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path
