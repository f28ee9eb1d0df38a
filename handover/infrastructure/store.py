"""Key-value persistence backing the ``/api/jobs`` and ``/api/items`` endpoints."""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import duckdb

from handover.core.logger import get_logger, log_event
from handover.core.schema import StoredItem

logger = get_logger(__name__)

TABLES = ("jobs", "items")


class KeyValueRepository(Protocol):
    """Persistence contract for the ``(id, created_at, data)`` tables."""

    def insert(self, table: str, data: Any, *, item_id: str | None = None) -> StoredItem: ...

    def upsert(self, table: str, data: Any, *, item_id: str | None = None) -> StoredItem: ...

    def latest(self, table: str) -> StoredItem | None: ...

    def list_items(self, table: str, limit: int | None = None) -> list[StoredItem]: ...

    def prune(self, table: str, keep: int) -> int: ...

    def reset(self) -> None: ...


class DuckDBKeyValueRepository:
    """All key-value tables in one DuckDB database (``:memory:`` by default)."""

    def __init__(self, path: str = ":memory:") -> None:
        self._path = path
        self._connection = duckdb.connect(path)
        self._lock = threading.Lock()
        self._last_stamp: datetime | None = None
        self._ensure_tables()

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _ensure_tables(self) -> None:
        with self._lock:
            for table in TABLES:
                self._connection.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} ("
                    "id TEXT PRIMARY KEY, created_at TEXT NOT NULL, data TEXT NOT NULL)"
                )

    @staticmethod
    def _table(name: str) -> str:
        if name not in TABLES:
            raise ValueError(f"unknown table: {name}")
        return name

    def _timestamp(self) -> str:
        # strictly increasing so newest-first ordering never ties
        now = datetime.now(timezone.utc)
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now.isoformat(timespec="microseconds")

    @staticmethod
    def _row_to_item(row: tuple) -> StoredItem:
        item_id, created_at, data = row
        return StoredItem(id=item_id, created_at=created_at, data=json.loads(data))

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def insert(self, table: str, data: Any, *, item_id: str | None = None) -> StoredItem:
        name = self._table(table)
        with self._lock:
            item = StoredItem(id=item_id or str(uuid.uuid4()), created_at=self._timestamp(), data=data)
            self._connection.execute(
                f"INSERT INTO {name} (id, created_at, data) VALUES (?, ?, ?)",
                [item.id, item.created_at, json.dumps(data)],
            )
        return item

    def upsert(self, table: str, data: Any, *, item_id: str | None = None) -> StoredItem:
        name = self._table(table)
        with self._lock:
            item = StoredItem(id=item_id or str(uuid.uuid4()), created_at=self._timestamp(), data=data)
            self._connection.execute(
                f"INSERT INTO {name} (id, created_at, data) VALUES (?, ?, ?) "
                "ON CONFLICT (id) DO UPDATE SET created_at = excluded.created_at, data = excluded.data",
                [item.id, item.created_at, json.dumps(data)],
            )
        return item

    def latest(self, table: str) -> StoredItem | None:
        items = self.list_items(table, limit=1)
        return items[0] if items else None

    def list_items(self, table: str, limit: int | None = None) -> list[StoredItem]:
        name = self._table(table)
        sql = f"SELECT id, created_at, data FROM {name} ORDER BY created_at DESC"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        with self._lock:
            rows = self._connection.execute(sql).fetchall()
        return [self._row_to_item(row) for row in rows]

    def prune(self, table: str, keep: int) -> int:
        name = self._table(table)
        with self._lock:
            (before,) = self._connection.execute(f"SELECT count(*) FROM {name}").fetchone()
            self._connection.execute(
                f"DELETE FROM {name} WHERE id NOT IN "
                f"(SELECT id FROM {name} ORDER BY created_at DESC LIMIT {int(keep)})"
            )
            (after,) = self._connection.execute(f"SELECT count(*) FROM {name}").fetchone()
        removed = int(before) - int(after)
        if removed:
            log_event(logger, logging.DEBUG, "pruned old rows", table=name, removed=removed, kept=int(after))
        return removed

    def reset(self) -> None:
        with self._lock:
            for table in TABLES:
                self._connection.execute(f"DELETE FROM {table}")
            self._last_stamp = None
