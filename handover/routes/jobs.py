from __future__ import annotations

import duckdb
from fastapi import APIRouter, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from handover.application import get_job_store_service
from handover.core.logger import get_logger
from handover.core.schema import PersistableState
from handover.routes.common import json_response, preflight_response

router = APIRouter(prefix="/jobs", tags=["jobs"])
logger = get_logger(__name__)


@router.options("")
async def jobs_preflight() -> Response:
    return preflight_response()


@router.get("")
async def load_jobs() -> JSONResponse:
    service = get_job_store_service()
    try:
        payload = service.latest_payload()
    except duckdb.Error as exc:
        logger.error("loading jobs failed: %s", exc)
        payload = {"activeJobs": [], "completedJobs": []}
    return json_response(payload)


@router.post("")
async def save_jobs(payload: dict) -> JSONResponse:
    try:
        state = PersistableState.model_validate(
            {
                "activeJobs": payload.get("activeJobs") or [],
                "completedJobs": payload.get("completedJobs") or [],
            }
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"invalid jobs payload: {exc.error_count()} errors") from exc

    service = get_job_store_service()
    try:
        receipt = service.save_state(state)
    except duckdb.Error as exc:
        logger.error("saving jobs failed: %s", exc)
        return json_response({"ok": False, "error": str(exc)}, status_code=500)
    return json_response(receipt.model_dump())
