"""Autosave coordination for the job board state.

The coordinator sits between the job board and the two stores.  Every
snapshot the board produces is written to the local fallback straight away;
the remote store only sees the last snapshot of each quiet period, never more
than one request at a time, and never a snapshot identical to the last one it
acknowledged.

All of it runs on a single asyncio event loop: :meth:`notify` must be called
from a coroutine or callback running on that loop.
"""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable

from handover.core.logger import get_logger, log_event
from handover.core.schema import PersistableState
from handover.core.settings import Settings
from handover.domain import SaveStatus
from handover.infrastructure import LocalFallbackStore, RemoteJobsStore, RemoteStoreError
from handover.infrastructure.remote import TRANSPORT_ERRORS

logger = get_logger(__name__)

StatusListener = Callable[[SaveStatus], None]

DEBOUNCE_SECONDS = 0.3
SAVED_DISPLAY_SECONDS = 2.0


class PersistenceCoordinator:
    """Debounced, coalesced autosave with a local safety net."""

    def __init__(
        self,
        remote: RemoteJobsStore,
        local: LocalFallbackStore,
        *,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        saved_display_seconds: float = SAVED_DISPLAY_SECONDS,
        availability_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._remote = remote
        self._local = local
        self._owns_remote = False
        self._debounce_seconds = debounce_seconds
        self._saved_display_seconds = saved_display_seconds
        self._availability_ttl = availability_ttl
        self._clock = clock

        self._status = SaveStatus.IDLE
        self._listeners: list[StatusListener] = []

        self._latest: PersistableState | None = None
        self._last_saved = ""
        self._in_flight = False
        self._dirty = False
        self._attempted = False

        self._debounce_handle: asyncio.TimerHandle | None = None
        self._decay_handle: asyncio.TimerHandle | None = None
        self._drain_task: asyncio.Task[None] | None = None

        # probed once; re-probed only when a TTL is configured
        self._remote_available: bool | None = None
        self._probed_at: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings, base_url: str, *, local_path: Path | None = None) -> "PersistenceCoordinator":
        coordinator = cls(
            RemoteJobsStore(base_url),
            LocalFallbackStore(local_path or settings.local_path),
            debounce_seconds=settings.debounce_seconds,
            saved_display_seconds=settings.saved_display_seconds,
            availability_ttl=settings.availability_ttl_seconds,
        )
        coordinator._owns_remote = True
        return coordinator

    # ------------------------------------------------------------------
    # status signal
    # ------------------------------------------------------------------
    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def remote_available(self) -> bool | None:
        """Last probe result for the status bar (``None`` until the first probe)."""

        return self._remote_available

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Call ``listener`` on every status change; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: SaveStatus) -> None:
        if status == self._status:
            return
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    # ------------------------------------------------------------------
    # write path
    # ------------------------------------------------------------------
    def notify(self, snapshot: PersistableState, initialized: bool) -> None:
        """Record a new board snapshot and (re)start the debounce timer."""

        if not initialized:
            return
        self._latest = snapshot
        self._write_local(snapshot)

        loop = asyncio.get_running_loop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(self._debounce_seconds, self._on_quiet)

    def _on_quiet(self) -> None:
        self._debounce_handle = None
        self._request_save()

    def _request_save(self) -> None:
        snapshot = self._latest
        if snapshot is None:
            return
        if snapshot.serialise() == self._last_saved:
            return
        if self._in_flight:
            self._dirty = True
            return
        self._in_flight = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while True:
                snapshot = self._latest
                if snapshot is None:
                    break
                serialised = snapshot.serialise()
                if serialised == self._last_saved:
                    break
                self._dirty = False
                await self._save_once(snapshot, serialised)
                if not self._dirty:
                    break
        finally:
            self._in_flight = False
            self._dirty = False
            self._drain_task = None

    async def _save_once(self, snapshot: PersistableState, serialised: str) -> None:
        first = not self._attempted
        self._attempted = True
        self._cancel_decay()
        if not first:
            self._set_status(SaveStatus.SAVING)

        try:
            await self._write_remote(snapshot)
        except (RemoteStoreError, *TRANSPORT_ERRORS) as exc:
            if first:
                log_event(logger, logging.WARNING, "initial sync to remote failed", error=str(exc))
                self._set_status(SaveStatus.IDLE)
            else:
                log_event(logger, logging.ERROR, "autosave failed", error=str(exc))
                self._set_status(SaveStatus.ERROR)
            return

        self._last_saved = serialised
        self._set_status(SaveStatus.SAVED)
        self._decay_handle = asyncio.get_running_loop().call_later(self._saved_display_seconds, self._decay)

    async def _write_remote(self, snapshot: PersistableState) -> None:
        if not await self._check_available():
            logger.debug("remote store unavailable, snapshot kept locally only")
            return
        await self._remote.save(snapshot)

    def _write_local(self, snapshot: PersistableState) -> None:
        try:
            self._local.write(snapshot)
        except (OSError, TypeError, ValueError) as exc:
            log_event(logger, logging.ERROR, "local fallback write failed", path=str(self._local.path), error=str(exc))

    def _decay(self) -> None:
        self._decay_handle = None
        if self._status == SaveStatus.SAVED:
            self._set_status(SaveStatus.IDLE)

    def _cancel_decay(self) -> None:
        if self._decay_handle is not None:
            self._decay_handle.cancel()
            self._decay_handle = None

    # ------------------------------------------------------------------
    # read path
    # ------------------------------------------------------------------
    async def _check_available(self) -> bool:
        if self._remote_available is not None:
            if self._availability_ttl is None:
                return self._remote_available
            if self._probed_at is not None and self._clock() - self._probed_at < self._availability_ttl:
                return self._remote_available

        self._remote_available = await self._remote.probe()
        self._probed_at = self._clock()
        log_event(logger, logging.INFO, "remote store probed", url=self._remote.url, available=self._remote_available)
        return self._remote_available

    async def load(self) -> PersistableState:
        """Load the board from the remote store, falling back to the local copy."""

        if await self._check_available():
            try:
                return await self._remote.fetch()
            except RemoteStoreError as exc:
                log_event(logger, logging.WARNING, "remote load failed, using local copy", error=str(exc))
        else:
            logger.info("remote store not available, loading local copy")
        return self._local.read()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    async def flush(self) -> None:
        """Skip the remaining quiet period and wait until pending saves settle."""

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
            self._request_save()
        while self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    async def aclose(self) -> None:
        """Cancel timers, let an in-flight save settle, release owned clients."""

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._cancel_decay()
        if self._drain_task is not None:
            await asyncio.shield(self._drain_task)
        if self._owns_remote:
            await self._remote.aclose()


__all__ = ["PersistenceCoordinator", "DEBOUNCE_SECONDS", "SAVED_DISPLAY_SECONDS"]
