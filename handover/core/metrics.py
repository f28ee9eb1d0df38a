"""Completion metrics over the archived job log."""
from __future__ import annotations

from typing import Sequence

import pandas as pd

from handover.core.schema import CompletedJobRecord, ShiftPattern
from handover.core.shifts import classify, local_time, pattern_on_duty, phase_of, shift_day

UNASSIGNED = "unassigned"


def completed_departments(completed: Sequence[CompletedJobRecord]) -> list[str]:
    return sorted({job.department for job in completed})


def monthly_completions(completed: Sequence[CompletedJobRecord], *, tz: str | None = None) -> list[dict]:
    """One row per month (oldest first) with a completion count per department."""

    if not completed:
        return []
    df = pd.DataFrame(
        [
            {"month": local_time(job.completed_at, tz).strftime("%Y-%m"), "department": job.department}
            for job in completed
        ]
    )
    table = df.groupby(["month", "department"]).size().unstack(fill_value=0).sort_index()
    table = table.reindex(columns=sorted(table.columns))

    rows: list[dict] = []
    for month, counts in table.iterrows():
        label = pd.Timestamp(f"{month}-01").strftime("%b %Y")
        row: dict = {"month": month, "label": label}
        row.update({str(dept): int(count) for dept, count in counts.items()})
        rows.append(row)
    return rows


def shift_completions(
    completed: Sequence[CompletedJobRecord],
    patterns: Sequence[ShiftPattern],
    *,
    tz: str | None = None,
) -> list[dict]:
    """Completions per shift pattern, phase and shift day.

    Jobs finished in the small hours count towards the previous day's night.
    """

    if not completed:
        return []
    records: list[dict] = []
    for job in completed:
        instant = local_time(job.completed_at, tz)
        pattern = pattern_on_duty(instant, patterns)
        record = {
            "pattern_id": UNASSIGNED,
            "pattern_name": UNASSIGNED,
            "phase": phase_of(instant),
            "day_key": shift_day(instant).isoformat(),
            "cycle_day": None,
        }
        if pattern is not None:
            result = classify(instant, pattern)
            record.update(pattern_id=pattern.id, pattern_name=pattern.name, cycle_day=result.cycle_day)
        records.append(record)

    df = pd.DataFrame(records)
    grouped = (
        df.groupby(["pattern_id", "pattern_name", "phase", "day_key"], dropna=False)
        .agg(count=("day_key", "size"), cycle_day=("cycle_day", "first"))
        .reset_index()
        .sort_values(["day_key", "phase", "pattern_id"])
    )
    rows: list[dict] = []
    for item in grouped.to_dict(orient="records"):
        cycle_day = item["cycle_day"]
        item["cycle_day"] = None if pd.isna(cycle_day) else int(cycle_day)
        item["count"] = int(item["count"])
        rows.append(item)
    return rows
