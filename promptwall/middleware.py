"""Request body size limit middleware for PromptWall.

Oversized bodies are rejected with HTTP 413 before any route handler parses
them or the firewall scans them:

  1. Content-Length fast path: reject on the declared size alone.
  2. Chunked path: accumulate the stream with a rolling cap and reject as soon
     as ``MAX_REQUEST_BODY_BYTES`` is exceeded.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from promptwall.constants import MAX_REQUEST_BODY_BYTES
from promptwall.utils.logger import get_logger

logger = get_logger(__name__)

_PAYLOAD_TOO_LARGE_BODY: dict = {
    "error": f"Request body too large. Maximum size: {MAX_REQUEST_BODY_BYTES} bytes",
}

_INVALID_CONTENT_LENGTH_BODY: dict = {
    "error": "Invalid Content-Length header",
}


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware enforcing the request body hard cap.

    - Content-Length > limit            → 413, body never read
    - Content-Length not an integer     → 400
    - No Content-Length, stream > limit → 413
    - Otherwise the (cached) body is passed on untouched
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        content_length_header = request.headers.get("content-length")

        if content_length_header is not None:
            try:
                declared_size = int(content_length_header)
            except ValueError:
                logger.warning(
                    "Invalid Content-Length header",
                    value=content_length_header,
                    path=request.url.path,
                )
                return JSONResponse(status_code=400, content=_INVALID_CONTENT_LENGTH_BODY)

            if declared_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (Content-Length)",
                    declared_size=declared_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)

            return await call_next(request)

        if request.method in ("GET", "HEAD", "OPTIONS"):
            return await call_next(request)

        body_chunks: list[bytes] = []
        total_size = 0
        async for chunk in request.stream():
            total_size += len(chunk)
            if total_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (chunked)",
                    accumulated_size=total_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)
            body_chunks.append(chunk)

        # Starlette's Request.body() returns the cached bytes if _body is set.
        request._body = b"".join(body_chunks)  # type: ignore[attr-defined]
        return await call_next(request)
