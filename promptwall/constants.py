"""Shared constants for PromptWall.

All size limits, scanner tunables and severity tables used across modules are
defined here. No magic numbers in other modules — import from here.
"""

# ─── Severity ordering ───────────────────────────────────────────────────────

# Strict total order of actions. Anything not listed ranks as "allow" (0).
SEVERITY_ORDER: dict[str, int] = {
    "allow": 0,
    "log": 1,
    "warn": 2,
    "block": 3,
}

# Action applied to a pattern rule that omits its own.
DEFAULT_ACTION: str = "block"

# ─── Morse code scanner tunables ─────────────────────────────────────────────

# Minimum length of a dot/dash/whitespace run before it is considered at all.
DEFAULT_MIN_MORSE_LENGTH: int = 10

# Hard cap on decoded output per candidate (bounds work on adversarial input).
DEFAULT_MAX_DECODE_LENGTH: int = 1_000

# A run "looks like morse" only when dots+dashes exceed this share of its
# non-whitespace characters.
MORSE_RATIO_THRESHOLD: float = 0.7

# Decoded single tokens longer than this get word boundaries re-inserted.
WORD_BOUNDARY_MIN_LENGTH: int = 10

# A decoding must keep at least this many real characters to be reported.
MIN_DECODED_CHARS: int = 3

# Decoded character for an unrecognised morse letter.
MORSE_PLACEHOLDER: str = "?"

# ─── HTTP layer limits ────────────────────────────────────────────────────────

# HTTP 413 is returned for request bodies exceeding this limit, before any scan.
MAX_REQUEST_BODY_BYTES: int = 1_048_576  # 1 MB

# Prompts longer than this are rejected with HTTP 400 by the API layer.
MAX_PROMPT_CHARS: int = 100_000

# Maximum prompts accepted by a single batch_validate call.
MAX_BATCH_SIZE: int = 100

# Prompt preview length included in debug-level verdict logs.
LOG_PROMPT_PREVIEW_CHARS: int = 100

# ─── Service identity ────────────────────────────────────────────────────────

SERVICE_NAME: str = "PromptWall"
SERVICE_VERSION: str = "1.0.0"
