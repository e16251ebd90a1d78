"""
Content Engine
==============
Generation-and-gating pipeline: idea dedup, multi-vendor article
generation, quality gate, advisory revision validation and risk-gated
automatic publishing.
"""

import asyncio
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from content_engine.agents.publish_scheduler import publish_scheduler
from content_engine.api.envelope import error_envelope, pipeline_error_envelope
from content_engine.api.routes.articles import router as articles_router
from content_engine.api.routes.automation import router as automation_router
from content_engine.api.routes.ideas import router as ideas_router
from content_engine.api.routes.quality import router as quality_router
from content_engine.core.config import get_settings
from content_engine.core.correlation import (
    get_correlation_id,
    new_correlation_id,
    set_correlation_id,
)
from content_engine.core.database import close_db, init_db
from content_engine.core.errors import PipelineError
from content_engine.core.logging import get_logger, setup_logging
from content_engine.schemas import HealthResponse

VERSION = "1.0.0"

settings = get_settings()
logger = get_logger("main")

_start_time = time.time()
_shutdown_event = asyncio.Event()
_automation_task: asyncio.Task | None = None


async def _run_automation_once():
    set_correlation_id(new_correlation_id("tick"))
    structlog.contextvars.bind_contextvars(correlation_id=get_correlation_id())
    try:
        await publish_scheduler.run_tick()
    finally:
        structlog.contextvars.clear_contextvars()
        set_correlation_id("")


async def _periodic_loop(name: str, interval_seconds: int, job):
    logger.info("periodic_loop_started", loop=name, interval_seconds=interval_seconds)
    while not _shutdown_event.is_set():
        started = time.time()
        try:
            await job()
        except Exception as exc:  # noqa: BLE001
            logger.error("periodic_loop_error", loop=name, error=str(exc))

        elapsed = int(time.time() - started)
        sleep_for = max(1, interval_seconds - elapsed)
        try:
            await asyncio.wait_for(_shutdown_event.wait(), timeout=sleep_for)
        except asyncio.TimeoutError:
            pass
    logger.info("periodic_loop_stopped", loop=name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup & shutdown lifecycle."""

    # ── Startup ──
    setup_logging(debug=settings.app_debug)
    logger.info("app_starting", app=settings.app_name, env=settings.app_env)

    await init_db()
    logger.info("database_initialized")

    global _automation_task
    _shutdown_event.clear()
    if settings.automation_enabled:
        _automation_task = asyncio.create_task(
            _periodic_loop(
                "automation",
                max(5, settings.automation_interval_seconds),
                _run_automation_once,
            )
        )
        logger.info("automation_enabled", interval_seconds=settings.automation_interval_seconds)

    logger.info("app_ready", port=settings.app_port)

    yield

    # ── Shutdown ──
    _shutdown_event.set()
    if _automation_task:
        _automation_task.cancel()
        await asyncio.gather(_automation_task, return_exceptions=True)
    await publish_scheduler.shutdown()
    await close_db()
    logger.info("app_shutdown")


# ── Create FastAPI App ──

app = FastAPI(
    title=settings.app_name,
    description=(
        "Turns topic ideas into published articles through external LLM services, "
        "gated by a deterministic quality score and risk level."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Logging Middleware ──

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing and a correlation id."""
    correlation_id = request.headers.get("x-correlation-id") or new_correlation_id()
    set_correlation_id(correlation_id)
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    start = time.time()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        elapsed = round((time.time() - start) * 1000, 2)
        if response is not None:
            response.headers["x-correlation-id"] = correlation_id
        if request.url.path not in ["/health", "/docs", "/redoc", "/openapi.json"]:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=response.status_code if response is not None else 500,
                elapsed_ms=elapsed,
            )
        structlog.contextvars.clear_contextvars()
        set_correlation_id("")


# ── Exception Handlers ──

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning("http_exception", path=request.url.path, status_code=exc.status_code, detail=str(exc.detail))
    return error_envelope(
        code="http_error",
        message="Request failed",
        status_code=exc.status_code,
        details=exc.detail,
        meta={"path": request.url.path},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("validation_error", path=request.url.path, errors=exc.errors())
    return error_envelope(
        code="validation_error",
        message="Validation failed",
        status_code=422,
        details=exc.errors(),
        meta={"path": request.url.path},
    )


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(request: Request, exc: PipelineError):
    logger.warning("pipeline_error", path=request.url.path, error_code=exc.code, error=str(exc))
    return pipeline_error_envelope(exc, meta={"path": request.url.path})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_envelope(
        code="internal_error",
        message="Internal server error",
        status_code=500,
        meta={"path": request.url.path},
    )


# ── Register Routers ──

app.include_router(quality_router, prefix="/api/v1")
app.include_router(ideas_router, prefix="/api/v1")
app.include_router(articles_router, prefix="/api/v1")
app.include_router(automation_router, prefix="/api/v1")


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """System health check endpoint."""
    return HealthResponse(
        status="ok",
        version=VERSION,
        uptime_seconds=round(time.time() - _start_time, 2),
        services={
            "automation": "running" if _automation_task and not _automation_task.done() else "stopped",
            "humanization_provider": settings.humanization_provider,
        },
    )
