from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Response
from fastapi.responses import JSONResponse

from handover.application import get_job_store_service
from handover.routes.common import json_response, preflight_response

router = APIRouter(prefix="/items", tags=["items"])


@router.options("")
async def items_preflight() -> Response:
    return preflight_response()


@router.get("")
async def list_items() -> JSONResponse:
    service = get_job_store_service()
    return json_response([item.model_dump() for item in service.list_items()])


@router.post("")
async def save_item(payload: Any = Body(...)) -> JSONResponse:
    if isinstance(payload, dict):
        item_id = payload.get("id")
        data = payload["data"] if payload.get("data") is not None else payload
    else:
        item_id, data = None, payload
    if item_id is not None and not isinstance(item_id, str):
        raise HTTPException(status_code=400, detail="id must be a string")

    service = get_job_store_service()
    receipt = service.save_item(data, item_id=item_id or None)
    return json_response(receipt.model_dump())
