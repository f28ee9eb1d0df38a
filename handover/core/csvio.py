from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from handover.core.schema import CompletedJobRecord

COMPLETED_LOG_COLUMNS = [
    "id",
    "date",
    "completedAt",
    "department",
    "jobNumber",
    "description",
    "resolution",
    "jobComplete",
    "sapComplete",
]


def completed_log_rows(jobs: Sequence[CompletedJobRecord]) -> list[dict]:
    rows = []
    for job in jobs:
        wire = job.to_wire()
        rows.append({column: wire.get(column) for column in COMPLETED_LOG_COLUMNS})
    return rows


def records_to_csv_text(rows: Iterable[dict], columns: list[str] | None = None) -> str:
    df = pd.DataFrame(list(rows), columns=columns)
    return df.to_csv(index=False)


def write_records_to_csv(path: Path, rows: Iterable[dict], columns: list[str] | None = None) -> Path:
    df = pd.DataFrame(list(rows), columns=columns)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def completed_jobs_csv(jobs: Sequence[CompletedJobRecord]) -> str:
    return records_to_csv_text(completed_log_rows(jobs), COMPLETED_LOG_COLUMNS)
