from __future__ import annotations

from handover.application.board import JobBoard
from handover.application.persistence import PersistenceCoordinator
from handover.core.schema import PersistableState
from handover.domain import SaveStatus


class HandoverSession:
    """Wires a job board to its autosave coordinator.

    Snapshots produced before :meth:`start` finishes loading are ignored by
    the coordinator, so the empty default board never overwrites stored data.
    """

    def __init__(self, coordinator: PersistenceCoordinator, board: JobBoard | None = None) -> None:
        self.coordinator = coordinator
        self.board = board or JobBoard()
        self._initialized = False
        self.board.subscribe(self._on_snapshot)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def save_status(self) -> SaveStatus:
        return self.coordinator.status

    @property
    def offline(self) -> bool:
        """True once the remote store was probed and found unavailable."""

        return self.coordinator.remote_available is False

    def _on_snapshot(self, snapshot: PersistableState) -> None:
        self.coordinator.notify(snapshot, self._initialized)

    async def start(self) -> PersistableState:
        state = await self.coordinator.load()
        self.board.replace_state(state)
        self._initialized = True
        # first sync after load; shows no "saving" flash
        self.coordinator.notify(self.board.state, self._initialized)
        return state

    async def close(self) -> None:
        await self.coordinator.aclose()
