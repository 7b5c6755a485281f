"""Prompt validation endpoints for PromptWall.

All routes live under ``/api/v1/prompts``:

  POST /validate        — one prompt; 403 when blocked, 200 otherwise
  POST /batch_validate  — up to MAX_BATCH_SIZE prompts; always 200
  GET  /config          — active rules without their regex sources
  POST /reload_config   — re-read the config source (rate-limited)
  GET  /health          — 503 before startup completes, 200 after

Filtering is CPU-bound and synchronous, so it runs in Starlette's threadpool;
the firewall's snapshot swap makes that safe during a concurrent reload.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from promptwall.api.limiter import RELOAD_RATE_LIMIT, limiter
from promptwall.constants import MAX_BATCH_SIZE, MAX_PROMPT_CHARS, SERVICE_VERSION
from promptwall.firewall import PromptFirewall
from promptwall.models.verdict import FilterResult
from promptwall.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/prompts", tags=["prompts"])


# ─── Request bodies ───────────────────────────────────────────────────────────


class ValidateRequest(BaseModel):
    prompt: Optional[str] = Field(default=None, description="The prompt text to validate")


class BatchValidateRequest(BaseModel):
    # Typed loosely so a non-list gets the API's own 400 message.
    prompts: Optional[Any] = Field(default=None, description="Prompt texts to validate")


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """Raise HTTP 503 until the lifespan has built the firewall."""
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "PromptWall is starting up. Firewall loading...",
            },
        )


def get_firewall(request: Request) -> PromptFirewall:
    return request.app.state.firewall


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _verdict_body(result: FilterResult) -> dict[str, Any]:
    return {
        "allowed": result.allowed,
        "action": result.action,
        "message": result.message,
        "matched_patterns": [m.to_dict() for m in result.matched_patterns],
    }


def _batch_item_error(index: int, message: str) -> dict[str, Any]:
    return {"index": index, "error": message, "allowed": False, "action": "error"}


def _validate_batch(firewall: PromptFirewall, prompts: list[Any]) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    for index, prompt in enumerate(prompts):
        if _is_blank(prompt):
            results.append(_batch_item_error(index, "Prompt cannot be empty"))
        elif not isinstance(prompt, str):
            results.append(_batch_item_error(index, "Prompt must be a string"))
        elif len(prompt) > MAX_PROMPT_CHARS:
            results.append(_batch_item_error(index, f"Prompt exceeds {MAX_PROMPT_CHARS} characters"))
        else:
            results.append({"index": index, **_verdict_body(firewall.filter(prompt))})
    return results


# ─── Endpoints ────────────────────────────────────────────────────────────────


@router.post("/validate", dependencies=[Depends(require_ready)])
async def validate(body: ValidateRequest, request: Request) -> JSONResponse:
    """Validate one prompt. 400 when blank, 403 when blocked, 200 otherwise."""
    if body.prompt is None:
        return _bad_request("param is missing or the value is empty: prompt")
    if _is_blank(body.prompt):
        return _bad_request("Prompt cannot be empty")
    if len(body.prompt) > MAX_PROMPT_CHARS:
        return _bad_request(f"Prompt exceeds {MAX_PROMPT_CHARS} characters")

    firewall = get_firewall(request)
    result = await run_in_threadpool(firewall.filter, body.prompt)

    content = {**_verdict_body(result), "timestamp": _timestamp()}
    return JSONResponse(status_code=403 if result.blocked else 200, content=content)


@router.post("/batch_validate", dependencies=[Depends(require_ready)])
async def batch_validate(body: BatchValidateRequest, request: Request) -> JSONResponse:
    """Validate up to MAX_BATCH_SIZE prompts in one call."""
    prompts = body.prompts
    if prompts is None:
        return _bad_request("param is missing or the value is empty: prompts")
    if not isinstance(prompts, list):
        return _bad_request("Prompts must be an array")
    if not prompts:
        return _bad_request("Prompts array cannot be empty")
    if len(prompts) > MAX_BATCH_SIZE:
        return _bad_request(f"Maximum {MAX_BATCH_SIZE} prompts allowed per batch")

    firewall = get_firewall(request)
    with PerformanceLogger("batch_validate", logger, slow_ms=500.0):
        results = await run_in_threadpool(_validate_batch, firewall, prompts)

    errors = sum(1 for r in results if r["action"] == "error")
    allowed = sum(1 for r in results if r["allowed"])
    return JSONResponse(
        status_code=200,
        content={
            "results": results,
            "summary": {
                "total": len(results),
                "allowed": allowed,
                "blocked": len(results) - allowed - errors,
                "errors": errors,
            },
            "timestamp": _timestamp(),
        },
    )


@router.get("/config", dependencies=[Depends(require_ready)])
async def get_config(request: Request) -> dict[str, Any]:
    """Active configuration summary. Regex sources are never exposed."""
    firewall = get_firewall(request)
    rules = firewall.active_rules()
    return {
        "enabled": firewall.enabled,
        "patterns_count": len(rules),
        "patterns": [
            {"name": rule.name, "action": rule.action, "description": rule.description}
            for rule in rules
        ],
        "timestamp": _timestamp(),
    }


@router.post("/reload_config", dependencies=[Depends(require_ready)])
@limiter.limit(RELOAD_RATE_LIMIT)
async def reload_config(request: Request) -> dict:
    """Re-read the config source and swap the firewall snapshot."""
    firewall = get_firewall(request)
    config = await run_in_threadpool(firewall.reload)
    return {
        "message": "Configuration reloaded successfully",
        "enabled": config.enabled,
        "patterns_count": len(config.patterns),
        "timestamp": _timestamp(),
    }


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Health check. 503 until the lifespan sets ``app.state.ready``."""
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "PromptWall is starting up. Firewall loading...",
            },
        )

    firewall = get_firewall(request)
    latency_tracker = getattr(request.app.state, "latency_tracker", None)
    return {
        "status": "healthy",
        "firewall_enabled": firewall.enabled,
        "patterns_loaded": len(firewall.active_rules()),
        "timestamp": _timestamp(),
        "version": SERVICE_VERSION,
        "avg_filter_ms": round(latency_tracker.avg_ms, 3) if latency_tracker else 0.0,
        "p99_filter_ms": round(latency_tracker.p99_ms, 3) if latency_tracker else 0.0,
    }
