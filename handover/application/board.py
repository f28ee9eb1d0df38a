"""In-memory job board producing immutable state snapshots."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from handover.core.schema import CompletedJobRecord, JobRecord, PersistableState

SnapshotListener = Callable[[PersistableState], None]


class JobBoard:
    """Active jobs and the completed log.

    Every mutation replaces the current :class:`PersistableState` with a new
    snapshot and hands it to the subscribed listeners.
    """

    def __init__(self, state: PersistableState | None = None, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._state = state or PersistableState()
        self._clock = clock
        self._listeners: list[SnapshotListener] = []

    @property
    def state(self) -> PersistableState:
        return self._state

    @property
    def active_jobs(self) -> list[JobRecord]:
        return list(self._state.active_jobs)

    @property
    def completed_jobs(self) -> list[CompletedJobRecord]:
        return list(self._state.completed_jobs)

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _commit(
        self,
        *,
        active: list[JobRecord] | None = None,
        completed: list[CompletedJobRecord] | None = None,
    ) -> PersistableState:
        self._state = PersistableState(
            active_jobs=self._state.active_jobs if active is None else active,
            completed_jobs=self._state.completed_jobs if completed is None else completed,
        )
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    @staticmethod
    def _apply(job: JobRecord, updates: dict[str, Any]) -> JobRecord:
        if "id" in updates and updates["id"] != job.id:
            raise ValueError("job id cannot be changed")
        return type(job).model_validate({**job.model_dump(), **updates})

    # ------------------------------------------------------------------
    # active jobs
    # ------------------------------------------------------------------
    def add_job(
        self,
        *,
        department: str,
        description: str,
        date: datetime | None = None,
        **extra: Any,
    ) -> JobRecord:
        job = JobRecord(date=date or self._clock(), department=department, description=description, **extra)
        self._commit(active=[*self._state.active_jobs, job])
        return job

    def update_job(self, job_id: str, **updates: Any) -> JobRecord:
        jobs = list(self._state.active_jobs)
        for index, job in enumerate(jobs):
            if job.id == job_id:
                jobs[index] = self._apply(job, updates)
                self._commit(active=jobs)
                return jobs[index]
        raise KeyError(job_id)

    def delete_job(self, job_id: str) -> bool:
        jobs = [job for job in self._state.active_jobs if job.id != job_id]
        if len(jobs) == len(self._state.active_jobs):
            return False
        self._commit(active=jobs)
        return True

    def archive_completed(self) -> list[CompletedJobRecord]:
        """Move jobs with both completion flags set into the completed log."""

        done = [job for job in self._state.active_jobs if job.job_complete and job.sap_complete]
        if not done:
            return []
        completed_at = self._clock()
        archived = [CompletedJobRecord(**job.model_dump(), completed_at=completed_at) for job in done]
        archived_ids = {job.id for job in archived}
        kept = [job for job in self._state.completed_jobs if job.id not in archived_ids]
        self._commit(
            active=[job for job in self._state.active_jobs if job.id not in archived_ids],
            completed=[*kept, *archived],
        )
        return archived

    # ------------------------------------------------------------------
    # completed log (admin edits)
    # ------------------------------------------------------------------
    def update_completed_job(self, job_id: str, **updates: Any) -> CompletedJobRecord:
        jobs = list(self._state.completed_jobs)
        for index, job in enumerate(jobs):
            if job.id == job_id:
                jobs[index] = self._apply(job, updates)
                self._commit(completed=jobs)
                return jobs[index]
        raise KeyError(job_id)

    def delete_completed_job(self, job_id: str) -> bool:
        jobs = [job for job in self._state.completed_jobs if job.id != job_id]
        if len(jobs) == len(self._state.completed_jobs):
            return False
        self._commit(completed=jobs)
        return True

    def replace_state(self, state: PersistableState) -> None:
        self._commit(active=list(state.active_jobs), completed=list(state.completed_jobs))
