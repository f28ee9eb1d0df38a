"""Infrastructure layer exports."""

from .local import ACTIVE_JOBS_KEY, COMPLETED_JOBS_KEY, LocalFallbackStore
from .remote import RemoteJobsStore, RemoteStoreError
from .store import DuckDBKeyValueRepository, KeyValueRepository

__all__ = [
    "ACTIVE_JOBS_KEY",
    "COMPLETED_JOBS_KEY",
    "DuckDBKeyValueRepository",
    "KeyValueRepository",
    "LocalFallbackStore",
    "RemoteJobsStore",
    "RemoteStoreError",
]
