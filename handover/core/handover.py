from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Literal, Sequence

from handover.core.schema import CompletedJobRecord, JobRecord
from handover.core.shifts import local_time
from handover.domain import JobStatus

HandoverMode = Literal["small", "large"]
ALL_DEPARTMENTS = "All"


def job_status(job: JobRecord) -> JobStatus:
    if job.job_complete and job.sap_complete:
        return JobStatus.CLOSED
    if job.job_complete:
        return JobStatus.JOB_DONE
    return JobStatus.OPEN


def handover_jobs(
    active: Iterable[JobRecord],
    completed: Iterable[CompletedJobRecord],
    now: datetime,
    *,
    mode: HandoverMode = "small",
    department: str = ALL_DEPARTMENTS,
    shift_hours: int = 12,
    set_hours: int = 96,
    tz: str | None = None,
) -> list[JobRecord]:
    """Jobs to hand over: the last shift (small) or the last set of shifts (large)."""

    current = local_time(now, tz)
    hours = shift_hours if mode == "small" else set_hours
    cutoff = current - timedelta(hours=hours)

    selected: list[tuple[datetime, JobRecord]] = []
    for job in [*active, *completed]:
        instant = local_time(job.date, tz)
        if instant < cutoff:
            continue
        if mode == "small" and instant > current:
            continue
        if department != ALL_DEPARTMENTS and job.department != department:
            continue
        selected.append((instant, job))
    selected.sort(key=lambda item: item[0], reverse=True)
    return [job for _, job in selected]


def search_completed(
    jobs: Sequence[CompletedJobRecord],
    term: str = "",
    department: str = ALL_DEPARTMENTS,
) -> list[CompletedJobRecord]:
    needle = term.strip().lower()
    results: list[CompletedJobRecord] = []
    for job in jobs:
        if department != ALL_DEPARTMENTS and job.department != department:
            continue
        if needle:
            haystack = (job.description.lower(), f"{job.date:%d %B %Y}".lower(), job.date.date().isoformat())
            if not any(needle in text for text in haystack):
                continue
        results.append(job)
    return results
