from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, HTTPException, Query, Request, Response

from handover.application import get_job_store_service
from handover.core.backup import BackupImportError, backup_filename, dumps_backup, import_backup
from handover.core.csvio import completed_jobs_csv
from handover.core.handover import ALL_DEPARTMENTS, handover_jobs, job_status, search_completed
from handover.core.metrics import completed_departments, monthly_completions, shift_completions
from handover.core.settings import get_settings
from handover.core.shifts import block_for_date, block_window, filter_jobs_by_block, generate_shift_blocks

router = APIRouter(tags=["reports"])


@router.get("/handover")
async def get_handover(
    mode: str = Query(default="small"),
    department: str = Query(default=ALL_DEPARTMENTS),
) -> dict:
    if mode not in {"small", "large"}:
        raise HTTPException(status_code=400, detail="mode must be small or large")
    settings = get_settings()
    state = get_job_store_service().load_state()
    now = datetime.now().astimezone()
    jobs = handover_jobs(
        state.active_jobs,
        state.completed_jobs,
        now,
        mode=mode,  # type: ignore[arg-type]
        department=department,
        shift_hours=settings.shift_duration_hours,
        set_hours=settings.set_duration_hours,
        tz=settings.timezone,
    )
    hours = settings.shift_duration_hours if mode == "small" else settings.set_duration_hours
    return {
        "mode": mode,
        "hours": hours,
        "department": department,
        "items": [{**job.to_wire(), "status": job_status(job).value} for job in jobs],
    }


@router.get("/metrics/monthly")
async def get_monthly_metrics() -> dict:
    settings = get_settings()
    completed = get_job_store_service().load_state().completed_jobs
    return {
        "total": len(completed),
        "departments": completed_departments(completed),
        "items": monthly_completions(completed, tz=settings.timezone),
    }


@router.get("/metrics/shifts")
async def get_shift_metrics() -> dict:
    settings = get_settings()
    completed = get_job_store_service().load_state().completed_jobs
    return {
        "patterns": [pattern.to_wire() for pattern in settings.shift_patterns],
        "items": shift_completions(completed, settings.shift_patterns, tz=settings.timezone),
    }


@router.get("/shifts/patterns")
async def get_shift_patterns() -> dict:
    settings = get_settings()
    return {"items": [pattern.to_wire() for pattern in settings.shift_patterns]}


@router.get("/shifts/blocks")
async def get_shift_blocks(
    pattern_start: date = Query(alias="patternStart"),
    shift: str = Query(default="days"),
) -> dict:
    if shift not in {"days", "nights"}:
        raise HTTPException(status_code=400, detail="shift must be days or nights")
    blocks = generate_shift_blocks(pattern_start, date.today())
    items = []
    for block in blocks:
        window = block_window(block, shift)  # type: ignore[arg-type]
        items.append(
            {
                "label": block.label,
                "blockStart": block.block_start.isoformat(),
                "blockEnd": block.block_end.isoformat(),
                "windowStart": window.start.isoformat(),
                "windowEnd": window.end.isoformat(),
                "shift": shift,
            }
        )
    return {"patternStart": pattern_start.isoformat(), "items": items}


@router.get("/shifts/blocks/jobs")
async def get_block_jobs(
    pattern_start: date = Query(alias="patternStart"),
    block_start: date = Query(alias="blockStart"),
    shift: str = Query(default="days"),
) -> dict:
    if shift not in {"days", "nights"}:
        raise HTTPException(status_code=400, detail="shift must be days or nights")
    block = block_for_date(block_start, pattern_start)
    if not block.is_active:
        raise HTTPException(status_code=400, detail="blockStart falls on an off block")
    settings = get_settings()
    state = get_job_store_service().load_state()
    jobs = filter_jobs_by_block([*state.active_jobs, *state.completed_jobs], block, shift, tz=settings.timezone)  # type: ignore[arg-type]
    return {
        "label": block.label,
        "shift": shift,
        "items": [{**job.to_wire(), "status": job_status(job).value} for job in jobs],
    }


@router.get("/completed")
async def get_completed(
    search: str = Query(default=""),
    department: str = Query(default=ALL_DEPARTMENTS),
) -> dict:
    completed = get_job_store_service().load_state().completed_jobs
    results = search_completed(completed, search, department)
    return {"total": len(completed), "items": [job.to_wire() for job in results]}


@router.get("/config")
async def get_config() -> dict:
    settings = get_settings()
    return {
        "departments": settings.departments,
        "flagPresets": [preset.to_wire() for preset in settings.flag_presets],
        "shiftPatterns": [pattern.to_wire() for pattern in settings.shift_patterns],
    }


@router.get("/export")
async def export_jobs() -> Response:
    state = get_job_store_service().load_state()
    filename = backup_filename(date.today())
    return Response(
        content=dumps_backup(state),
        media_type="application/json",
        headers={"content-disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/export.csv")
async def export_completed_csv() -> Response:
    state = get_job_store_service().load_state()
    return Response(
        content=completed_jobs_csv(state.completed_jobs),
        media_type="text/csv",
        headers={"content-disposition": 'attachment; filename="completed-jobs.csv"'},
    )


@router.post("/import")
async def import_jobs(request: Request, merge: bool = Query(default=False)) -> dict:
    service = get_job_store_service()
    raw = await request.body()
    try:
        state = import_backup(raw, service.load_state(), merge=merge)
    except BackupImportError as exc:
        raise HTTPException(status_code=400, detail=f"import failed: {exc}") from exc
    receipt = service.save_state(state)
    return {
        **receipt.model_dump(),
        "activeJobs": len(state.active_jobs),
        "completedJobs": len(state.completed_jobs),
    }
