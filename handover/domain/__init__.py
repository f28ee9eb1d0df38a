"""Domain value objects for the job board and shift classification."""

from .shifts import ShiftBlock, ShiftClassification, ShiftWindow
from .status import JobStatus, SaveStatus

__all__ = [
    "JobStatus",
    "SaveStatus",
    "ShiftBlock",
    "ShiftClassification",
    "ShiftWindow",
]
