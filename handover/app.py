from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from handover.application import get_job_store_service
from handover.core.logger import get_logger
from handover.core.settings import get_settings
from handover.routes import items, jobs, reports
from handover.routes.common import CORS_HEADERS

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    get_job_store_service()
    logger.info("job store ready (db=%s, retention=%s)", settings.db_path, settings.retention)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Shift Handover Job Tracker API", version="0.1.0", lifespan=lifespan)

    # every origin is allowed; preflights are answered by the OPTIONS routes
    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.include_router(jobs.router, prefix="/api")
    app.include_router(items.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Shift Handover Job Tracker API",
                "docs": "/docs",
                "health": "/api/jobs",
            }
        )

    return app


app = create_app()
