"""Application service behind the key-value HTTP endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from handover.core.logger import get_logger
from handover.core.schema import PersistableState, SaveReceipt, StoredItem
from handover.core.settings import get_settings
from handover.infrastructure import DuckDBKeyValueRepository, KeyValueRepository

logger = get_logger(__name__)

JOBS_TABLE = "jobs"
ITEMS_TABLE = "items"


class JobStoreService:
    """Coordinates reads and writes of the jobs blob and generic items."""

    def __init__(self, repository: KeyValueRepository, *, retention: int = 100) -> None:
        self._repository = repository
        self._retention = retention

    # ------------------------------------------------------------------
    # jobs blob
    # ------------------------------------------------------------------
    def latest_payload(self) -> dict[str, Any]:
        row = self._repository.latest(JOBS_TABLE)
        if row is None or not isinstance(row.data, dict):
            return {"activeJobs": [], "completedJobs": []}
        return row.data

    def load_state(self) -> PersistableState:
        payload = self.latest_payload()
        try:
            return PersistableState.model_validate(
                {
                    "activeJobs": payload.get("activeJobs") or [],
                    "completedJobs": payload.get("completedJobs") or [],
                }
            )
        except ValidationError as exc:
            logger.warning("stored jobs blob is not valid, reporting empty board: %s", exc)
            return PersistableState()

    def save_state(self, state: PersistableState) -> SaveReceipt:
        row = self._repository.insert(JOBS_TABLE, state.to_wire())
        self._repository.prune(JOBS_TABLE, self._retention)
        return SaveReceipt(id=row.id, created_at=row.created_at)

    def history_size(self) -> int:
        return len(self._repository.list_items(JOBS_TABLE))

    # ------------------------------------------------------------------
    # generic items
    # ------------------------------------------------------------------
    def list_items(self) -> list[StoredItem]:
        return self._repository.list_items(ITEMS_TABLE)

    def save_item(self, data: Any, *, item_id: str | None = None) -> SaveReceipt:
        row = self._repository.upsert(ITEMS_TABLE, data, item_id=item_id)
        return SaveReceipt(id=row.id, created_at=row.created_at)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_service: JobStoreService | None = None


def get_job_store_service() -> JobStoreService:
    """Return the process-wide store service, opening the database on first use."""

    global _service
    if _service is None:
        settings = get_settings()
        _service = JobStoreService(DuckDBKeyValueRepository(settings.db_path), retention=settings.retention)
    return _service


def reset_job_store() -> None:
    """Clear stored rows (used in tests)."""

    get_job_store_service().reset()
