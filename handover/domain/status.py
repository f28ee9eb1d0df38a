from __future__ import annotations

from enum import Enum


class SaveStatus(str, Enum):
    """Autosave indicator state; never persisted."""

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class JobStatus(str, Enum):
    """Row colour state of a job on the board."""

    OPEN = "open"
    JOB_DONE = "job_done"
    CLOSED = "closed"
