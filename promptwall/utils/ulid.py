"""ULID generation for PromptWall request ids.

Every HTTP request gets a 26-character ULID, used as:
  - X-PromptWall-Request-ID response header value
  - request_id field bound into every structured log line for that request

Uses the ``python-ulid`` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Example::

        request_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
        assert len(request_id) == 26
    """
    return str(ULID())
