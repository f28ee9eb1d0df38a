"""HTTP client for the remote jobs store (``/api/jobs``)."""
from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from handover.core.schema import PersistableState


class RemoteStoreError(RuntimeError):
    """Raised when the remote jobs store is unreachable or answers badly."""


# InvalidURL is not an HTTPError subclass
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class RemoteJobsStore:
    """Async client speaking the jobs endpoint contract."""

    def __init__(
        self,
        base_url: str,
        *,
        jobs_path: str = "/api/jobs",
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not jobs_path.startswith("/"):
            jobs_path = f"/{jobs_path}"
        self._url = f"{base_url.rstrip('/')}{jobs_path}"
        # no timeout by default: a hung write holds the in-flight slot until it settles
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    @property
    def url(self) -> str:
        return self._url

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _is_json(response: httpx.Response) -> bool:
        content_type = response.headers.get("content-type") or ""
        return "application/json" in content_type

    @staticmethod
    def _parse_state(payload: Any) -> PersistableState:
        if not isinstance(payload, dict):
            raise RemoteStoreError("jobs payload must be an object")
        try:
            return PersistableState.model_validate(
                {
                    "activeJobs": payload.get("activeJobs") or [],
                    "completedJobs": payload.get("completedJobs") or [],
                }
            )
        except ValidationError as exc:
            raise RemoteStoreError(f"malformed jobs payload: {exc.error_count()} errors") from exc

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def probe(self) -> bool:
        """True when the endpoint answers 2xx with a JSON body."""

        try:
            response = await self._client.get(self._url)
        except TRANSPORT_ERRORS:
            return False
        return response.is_success and self._is_json(response)

    async def fetch(self) -> PersistableState:
        try:
            response = await self._client.get(self._url)
        except TRANSPORT_ERRORS as exc:
            raise RemoteStoreError(f"failed to load jobs: {exc}") from exc
        if not response.is_success:
            raise RemoteStoreError(f"failed to load jobs: HTTP {response.status_code}")
        if not self._is_json(response):
            raise RemoteStoreError("failed to load jobs: response is not JSON")
        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteStoreError("failed to load jobs: invalid JSON") from exc
        return self._parse_state(payload)

    async def save(self, state: PersistableState) -> dict[str, Any]:
        try:
            response = await self._client.post(self._url, json=state.to_wire())
        except TRANSPORT_ERRORS as exc:
            raise RemoteStoreError(f"failed to save jobs: {exc}") from exc
        if not response.is_success:
            raise RemoteStoreError(f"failed to save jobs: HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError:
            return {"ok": True}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["RemoteJobsStore", "RemoteStoreError"]
