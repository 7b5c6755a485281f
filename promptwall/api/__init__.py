"""HTTP API for PromptWall (FastAPI routers and the shared rate limiter)."""

from promptwall.api.limiter import limiter
from promptwall.api.router import router

__all__ = ["limiter", "router"]
