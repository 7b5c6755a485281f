"""Root test configuration for PromptWall.

Every test runs with:
  - no PROMPTWALL_* environment variables leaking in from the shell
  - the working directory set to an empty tmp dir, so ``load_config()`` never
    picks up the repository's own ``config/prompt_filters.yaml`` by accident
  - a fresh rate-limiter storage
"""

from __future__ import annotations

import pathlib

import pytest

from promptwall.config import FirewallConfig, PatternRule
from promptwall.scanner.morse import MORSE_CODE_MAP

REPO_ROOT = pathlib.Path(__file__).parent.parent
SAMPLE_CONFIG = REPO_ROOT / "config" / "prompt_filters.yaml"

_ENCODE = {letter: code for code, letter in MORSE_CODE_MAP.items()}


def to_morse(text: str) -> str:
    """Encode ``text`` as canonical morse (1 space between letters, 3 between words)."""
    return "   ".join(
        " ".join(_ENCODE[c] for c in word.upper()) for word in text.split()
    )


@pytest.fixture
def morse():
    """The ``to_morse`` encoder, for building steganographic prompts."""
    return to_morse


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    for var in ("PROMPTWALL_CONFIG", "PROMPTWALL_ENV", "PROMPTWALL_PORT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Prevent rate-limit bleed between tests hitting the same endpoint."""
    from promptwall.api.limiter import limiter

    limiter.reset()


@pytest.fixture
def rules_config() -> FirewallConfig:
    """A small config with one rule per severity (no file I/O)."""
    return FirewallConfig(
        patterns=(
            PatternRule(
                name="SQL Injection",
                pattern=r"(?i)\bdrop\s+table\b",
                action="block",
                description="Detects potential SQL injection attempts",
            ),
            PatternRule(
                name="Role Override",
                pattern=r"(?i)\byou\s+are\s+now\b",
                action="warn",
                description="Attempts to reassign the assistant role",
            ),
            PatternRule(
                name="Email Address",
                pattern=r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}",
                action="log",
                description="Prompt contains an email address",
            ),
        )
    )


@pytest.fixture
def sample_config_path() -> str:
    """Path to the repository's shipped ``config/prompt_filters.yaml``."""
    return str(SAMPLE_CONFIG)
