"""Programmatic uvicorn entry point for PromptWall.

Reads host and port from the loaded config (127.0.0.1:3000 by default) and
starts uvicorn with hardened defaults:

  --limit-concurrency 100  Max 100 concurrent connections; HTTP 503 when exceeded
  --backlog 50             OS connection queue depth
  --timeout-keep-alive 5   Reduces the Slow Loris attack window

Usage:
    python -m promptwall.run   # reads config/prompt_filters.yaml
    promptwall                 # via pyproject.toml [project.scripts]
"""

from __future__ import annotations

import uvicorn

from promptwall.config import load_config
from promptwall.utils.logger import get_logger

logger = get_logger(__name__)

UVICORN_LIMIT_CONCURRENCY: int = 100
UVICORN_BACKLOG: int = 50
UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the PromptWall API server."""
    config = load_config()

    if config.server.host == "0.0.0.0":
        logger.warning(
            "SECURITY WARNING: PromptWall is listening on all interfaces",
            host=config.server.host,
            port=config.server.port,
        )

    uvicorn.run(
        "promptwall.main:app",
        host=config.server.host,
        port=config.server.port,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
