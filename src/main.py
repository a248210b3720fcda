"""lumi - focus sessions, boards and a reward garden."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.cache_client import ActiveSessionCache
from src.core.config import constants, settings
from src.core.db_client import close_connection, init_db
from src.core.errors import ErrorCode, ErrorKind
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.rate_limiter import ActivePollLimiter
from src.core.scheduler import get_scheduler_status, start_scheduler, stop_scheduler
from src.interface.api_router import router as api_router
from src.services.pomodoro_service import PomodoroService


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    await init_db()
    logger.info("Database initialized", extra={"db_path": settings.sqlite_db_path})

    cache = ActiveSessionCache()
    app.state.active_session_cache = cache
    app.state.pomodoro_service = PomodoroService(cache=cache)
    app.state.poll_limiter = ActivePollLimiter()

    start_scheduler(cache=cache)
    yield
    # Shutdown
    stop_scheduler()
    await cache.close()
    await close_connection()


app = FastAPI(
    title="lumi",
    description="Pomodoro focus sessions, kanban tasks and a reward garden",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests with the same envelope as service failures."""
    return JSONResponse(
        content={
            "success": False,
            "error": {
                "message": "; ".join(str(e.get("msg", "")) for e in exc.errors()) or "Invalid request",
                "code": ErrorCode.ERR_INVALID_INPUT,
                "kind": ErrorKind.INVALID_INPUT,
            },
        },
        status_code=constants.HTTP_BAD_REQUEST,
    )


@app.exception_handler(HTTPException)
async def http_error_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    """Pass enveloped details through as the body; wrap plain ones in ``detail``."""
    content = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    return JSONResponse(content=content, status_code=exc.status_code, headers=exc.headers)


@app.get("/health")
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    cache: ActiveSessionCache | None = getattr(request.app.state, "active_session_cache", None)
    return JSONResponse(
        content={
            "status": "healthy",
            "cache": cache.get_health_status() if cache else {"enabled": False},
        },
        status_code=constants.HTTP_OK,
    )


@app.get("/health/scheduler")
async def scheduler_health_check() -> JSONResponse:
    """Scheduler health check endpoint with registered jobs."""
    status = get_scheduler_status()
    return JSONResponse(
        content={"status": "healthy" if status["running"] else "stopped", **status},
        status_code=constants.HTTP_OK if status["running"] else constants.HTTP_SERVICE_UNAVAILABLE,
    )
