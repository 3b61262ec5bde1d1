import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coachslots.api.routes import funnel, intake_configs, scheduling
from coachslots.core.config import _ENV_FILE, settings
from coachslots.core.db import async_session_maker, init_db
from coachslots.services.availability_service import delete_blocked_slots_older_than
from coachslots.services.slot_service import InvalidQuery

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 24 * 60 * 60  # 24 hours


async def _run_blocked_slot_cleanup() -> None:
    """Delete blocked slots that ended more than blocked_slot_retention_days ago."""
    try:
        async with async_session_maker() as session:
            try:
                n = await delete_blocked_slots_older_than(session, settings.blocked_slot_retention_days)
                await session.commit()
                if n:
                    logger.info(
                        "Blocked slot cleanup: deleted %d record(s) older than %d days",
                        n,
                        settings.blocked_slot_retention_days,
                    )
            except Exception:
                await session.rollback()
                raise
    except Exception as e:
        logger.exception("Blocked slot cleanup failed: %s", e)


async def _cleanup_loop() -> None:
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        await _run_blocked_slot_cleanup()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info(
        "Scheduling: default timezone %s, max range %d days, blocked slot retention %d days",
        settings.default_timezone,
        settings.max_slot_range_days,
        settings.blocked_slot_retention_days,
    )
    if settings.auto_create_tables:
        await init_db()
    if settings.external_calendar_enabled:
        logger.info("External calendar busy times: %s", settings.external_calendar_url)
    else:
        logger.warning("External calendar busy times: NOT configured (EXTERNAL_CALENDAR_URL empty)")
    # Startup: run cleanup once
    await _run_blocked_slot_cleanup()
    # Background: run every 24h
    task = asyncio.create_task(_cleanup_loop())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    title="Coachslots API",
    description="Coach availability and bookable slot resolution",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(scheduling.router, prefix="/api")
app.include_router(funnel.router, prefix="/api")
app.include_router(intake_configs.router, prefix="/api")


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(InvalidQuery)
async def invalid_query_handler(request: Request, exc: InvalidQuery) -> JSONResponse:
    """Bad query parameters on the slot endpoints."""
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and return a generic 500; include CORS so the browser can read it."""
    headers = _cors_headers(request.headers.get("origin"))
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=headers,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
