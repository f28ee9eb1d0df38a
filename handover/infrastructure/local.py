"""File-backed stand-in for the browser's local storage."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from handover.core.logger import get_logger
from handover.core.schema import PersistableState

ACTIVE_JOBS_KEY = "activeJobs"
COMPLETED_JOBS_KEY = "completedJobs"

logger = get_logger(__name__)


class LocalFallbackStore:
    """Keeps the last snapshot under two fixed keys in a JSON file.

    Each key holds the JSON-serialised list, mirroring how the browser client
    stores ``activeJobs`` and ``completedJobs`` in local storage.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_raw(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            content = self._path.read_text(encoding="utf-8").strip()
            if not content:
                return {}
            data = json.loads(content)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("local store unreadable, starting empty: %s", exc)
            return {}
        return data if isinstance(data, dict) else {}

    def read(self) -> PersistableState:
        raw = self._read_raw()
        sections: dict[str, Any] = {}
        for key in (ACTIVE_JOBS_KEY, COMPLETED_JOBS_KEY):
            value = raw.get(key)
            if isinstance(value, str):
                try:
                    value = json.loads(value)
                except json.JSONDecodeError:
                    value = None
            sections[key] = value if isinstance(value, list) else []
        try:
            return PersistableState.model_validate(sections)
        except ValidationError as exc:
            logger.warning("local store holds invalid jobs, starting empty: %s", exc)
            return PersistableState()

    def write(self, state: PersistableState) -> None:
        wire = state.to_wire()
        payload = {
            ACTIVE_JOBS_KEY: json.dumps(wire["activeJobs"]),
            COMPLETED_JOBS_KEY: json.dumps(wire["completedJobs"]),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fp:
            json.dump(payload, fp, indent=2, ensure_ascii=False)
        tmp_path.replace(self._path)
