"""JSON backup export and import for the job board."""
from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Sequence, TypeVar

from pydantic import ValidationError

from handover.core.schema import CompletedJobRecord, JobRecord, PersistableState

RecordT = TypeVar("RecordT", bound=JobRecord)


class BackupImportError(ValueError):
    """Raised when an uploaded backup cannot be applied."""


def export_backup(state: PersistableState, exported_at: datetime | None = None) -> dict[str, Any]:
    payload = state.to_wire()
    stamp = exported_at or datetime.now(timezone.utc)
    payload["exportedAt"] = stamp.isoformat()
    return payload


def dumps_backup(state: PersistableState, exported_at: datetime | None = None) -> str:
    return json.dumps(export_backup(state, exported_at), indent=2, ensure_ascii=False)


def backup_filename(day: date) -> str:
    return f"job-log-backup-{day.isoformat()}.json"


def _merge_by_id(existing: Sequence[RecordT], imported: Sequence[RecordT]) -> list[RecordT]:
    incoming = {job.id: job for job in imported}
    merged = [incoming.pop(job.id, job) for job in existing]
    merged.extend(job for job in imported if job.id in incoming)
    return merged


def _parse_section(data: dict[str, Any], key: str, model: type[RecordT]) -> list[RecordT] | None:
    if key not in data or data[key] is None:
        return None
    section = data[key]
    if not isinstance(section, list):
        raise BackupImportError(f"{key} must be a list")
    try:
        return [model.model_validate(item) for item in section]
    except ValidationError as exc:
        raise BackupImportError(f"{key} holds invalid jobs: {exc.error_count()} errors") from exc


def import_backup(raw: str | bytes, current: PersistableState, *, merge: bool = False) -> PersistableState:
    """Apply a backup file to ``current`` and return the resulting state.

    Replace mode swaps each section present in the file; merge mode unions
    by job id with the imported record winning.  Nothing is applied unless
    the whole file is valid.
    """

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise BackupImportError("backup is not valid JSON") from exc
    if not isinstance(data, dict):
        raise BackupImportError("backup must be a JSON object")

    active = _parse_section(data, "activeJobs", JobRecord)
    completed = _parse_section(data, "completedJobs", CompletedJobRecord)

    if active is not None:
        active = _merge_by_id(current.active_jobs, active) if merge else active
    if completed is not None:
        completed = _merge_by_id(current.completed_jobs, completed) if merge else completed

    try:
        return PersistableState(
            active_jobs=current.active_jobs if active is None else active,
            completed_jobs=current.completed_jobs if completed is None else completed,
        )
    except ValidationError as exc:
        raise BackupImportError(str(exc.errors()[0].get("msg", "invalid backup"))) from exc
