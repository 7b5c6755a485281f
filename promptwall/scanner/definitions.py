"""Built-in suspicious-content rules for decoded steganographic text.

These rules are NOT user-configurable: they run against text recovered from
morse code hidden inside a prompt, where any instruction-like content is
already suspicious.

All patterns are pre-compiled at module load time using google-re2.
NO pattern compilation happens per-request, per-call, or lazily.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in app scanner modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import re2  # google-re2 — NOT stdlib re

from promptwall.models.scan import Action


@dataclass(frozen=True)
class SuspiciousContentRule:
    """A single compiled steganography rule.

    Fields:
        name:        Rule name reported on the ScanMatch.
        pattern:     Pre-compiled re2 pattern object. Compiled at module load.
        action:      Severity action when the rule fires.
        description: Human-readable description reported on the ScanMatch.
    """

    name: str
    pattern: Any  # re2._Regexp — pre-compiled at module load
    action: Action
    description: str

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


# ===========================================================================
# SUSPICIOUS CONTENT RULES
# COMPILED AT MODULE LOAD — never per-request
# ===========================================================================

SUSPICIOUS_CONTENT_RULES: tuple[SuspiciousContentRule, ...] = (
    # ─── Instruction override ─────────────────────────────────────────────
    SuspiciousContentRule(
        name="Morse Code Injection Attempt",
        pattern=re2.compile(
            r'(?i)(ignore\s+(all\s+)?(previous|above)\s+(instructions|prompts|rules)'
            r'|forget\s+(everything|all|previous))'
        ),
        action=Action.BLOCK,
        description="Detected instruction override attempt hidden in morse code",
    ),
    # ─── Role override ────────────────────────────────────────────────────
    SuspiciousContentRule(
        name="Morse Code Role Override",
        pattern=re2.compile(r'(?i)(you\s+are\s+now|act\s+as\s+if|pretend\s+to\s+be|roleplay\s+as)'),
        action=Action.WARN,
        description="Detected role override attempt hidden in morse code",
    ),
    # ─── System prompt extraction ─────────────────────────────────────────
    SuspiciousContentRule(
        name="Morse Code System Prompt Extraction",
        pattern=re2.compile(
            r'(?i)(show\s+me\s+your|what\s+is\s+your|reveal\s+your)\s+'
            r'(system\s+prompt|instructions|rules)'
        ),
        action=Action.BLOCK,
        description="Detected system prompt extraction attempt hidden in morse code",
    ),
    # ─── Jailbreak ────────────────────────────────────────────────────────
    SuspiciousContentRule(
        name="Morse Code Jailbreak Attempt",
        pattern=re2.compile(r'(?i)(jailbreak|dan\s+mode|developer\s+mode|god\s+mode|admin\s+mode)'),
        action=Action.BLOCK,
        description="Detected jailbreak attempt hidden in morse code",
    ),
    # ─── Harmful content ──────────────────────────────────────────────────
    SuspiciousContentRule(
        name="Morse Code Harmful Content",
        pattern=re2.compile(
            r'(?i)(how\s+to\s+(kill|murder|harm|hurt)|instructions\s+for\s+(violence|weapons))'
        ),
        action=Action.BLOCK,
        description="Detected harmful content request hidden in morse code",
    ),
)
