"""Application services."""

from .board import JobBoard
from .jobs import JobStoreService, get_job_store_service, reset_job_store
from .persistence import PersistenceCoordinator
from .session import HandoverSession

__all__ = [
    "HandoverSession",
    "JobBoard",
    "JobStoreService",
    "PersistenceCoordinator",
    "get_job_store_service",
    "reset_job_store",
]
