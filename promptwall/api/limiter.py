"""Shared rate limiter for the PromptWall admin endpoints.

The Limiter instance is created here and shared between:
  - promptwall/api/router.py (route decorators)
  - promptwall/main.py       (app.state.limiter + SlowAPIMiddleware registration)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Reloading recompiles every rule; 10 per minute per client is plenty.
RELOAD_RATE_LIMIT = "10/minute"
