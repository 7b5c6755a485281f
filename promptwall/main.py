"""PromptWall FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan — @asynccontextmanager startup/shutdown sequence
  - /        route  — service discovery root
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()           → app.state.config
  2. ScanLatencyTracker()    → app.state.latency_tracker
  3. PromptFirewall(config)  → app.state.firewall (rules compiled once here)
  4. Config file watcher     → asyncio.Task (only when a config file was found)
  5. app.state.ready = True

Shutdown sequence (reverse):
  app.state.ready = False → stop watcher
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from promptwall.api import limiter, router as prompts_router
from promptwall.config import FirewallConfig, load_config
from promptwall.constants import SERVICE_NAME, SERVICE_VERSION
from promptwall.firewall import PromptFirewall
from promptwall.middleware import BodySizeLimitMiddleware
from promptwall.utils.latency import ScanLatencyTracker
from promptwall.utils.logger import (
    clear_request_id,
    configure_logging,
    get_logger,
    set_request_id,
)
from promptwall.utils.ulid import generate_ulid
from promptwall.watcher import watch_config

# ─── Logging Setup ────────────────────────────────────────────────────────────
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-PromptWall-Request-ID"

root_router = APIRouter(tags=["root"])


@root_router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint — service identity / discovery."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "validate": "/api/v1/prompts/validate",
        "health": "/api/v1/prompts/health",
    }


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup and shutdown sequence.

    ``load_config()`` never raises: a missing or broken config file starts the
    service on the built-in defaults (firewall enabled, no pattern rules).
    """
    logger.info("PromptWall starting up...")

    config: FirewallConfig = load_config()
    app.state.config = config

    latency_tracker = ScanLatencyTracker()
    app.state.latency_tracker = latency_tracker

    firewall = PromptFirewall(config, config_path=config.path, latency_tracker=latency_tracker)
    app.state.firewall = firewall
    logger.info(
        "Prompt firewall initialised",
        enabled=firewall.enabled,
        patterns=len(firewall.active_rules()),
        scanners=[s.name for s in firewall.scanners],
    )

    watcher_task: Optional[asyncio.Task[None]] = None
    if config.path:
        watcher_task = asyncio.create_task(watch_config(firewall, config.path))
    else:
        logger.debug("Config file watcher disabled (no config file to watch)")

    app.state.ready = True
    logger.info("PromptWall ready", host=config.server.host, port=config.server.port)

    yield

    logger.info("PromptWall shutting down...")
    app.state.ready = False

    if watcher_task is not None and not watcher_task.done():
        watcher_task.cancel()
        try:
            await watcher_task
        except asyncio.CancelledError:
            pass

    logger.info("PromptWall shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the PromptWall FastAPI application.

    Call this function directly in tests to get an isolated app instance:
        app = create_app()

    The module-level `app` is created at import time for uvicorn:
        uvicorn promptwall.main:app --host 127.0.0.1 --port 3000
    """
    application = FastAPI(
        title="PromptWall",
        description="Prompt firewall: pattern and steganographic screening for LLM prompts",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
        openapi_url="/openapi.json" if DEBUG else None,
    )

    # /health must answer 503 for any request that arrives before startup completes.
    application.state.ready = False

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Starlette: the LAST-added middleware is OUTERMOST (runs first).
    application.add_middleware(BodySizeLimitMiddleware)
    application.add_middleware(SlowAPIMiddleware)

    @application.middleware("http")
    async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
        request_id = generate_ulid()
        set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    application.include_router(root_router)
    application.include_router(prompts_router)

    @application.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("Invalid request body", path=str(request.url.path))
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return application


app = create_app()
