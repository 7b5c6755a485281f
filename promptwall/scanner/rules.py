"""Rule Set compilation for the pattern scanner.

Every configured PatternRule is compiled exactly once, when a configuration
snapshot is built. NO pattern compilation happens per-request or lazily.

All rules compile with google-re2: matching time is linear in the input, so a
user-supplied rule cannot trigger catastrophic backtracking. The price is that
backreferences and lookaround are unsupported; such rules fail to compile and
are neutralised like any other invalid pattern.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in app scanner modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import re2  # google-re2 — NOT stdlib re

from promptwall.config import PatternRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """A PatternRule paired with its compiled regex.

    Fields:
        rule:   The rule as configured.
        regex:  Pre-compiled re2 pattern, or None when the source failed to
                compile (the rule then never matches).
        action: Effective action — the rule's own, or the scanner default.
    """

    rule: PatternRule
    regex: Optional[Any]
    action: str

    @property
    def valid(self) -> bool:
        return self.regex is not None

    def search(self, text: str) -> bool:
        if self.regex is None:
            return False
        return self.regex.search(text) is not None


def compile_rule(rule: PatternRule, default_action: str) -> CompiledRule:
    """Compile one rule. Invalid patterns are logged and neutralised, never raised."""
    action = rule.action or default_action
    try:
        regex = re2.compile(rule.pattern)
    except re2.error as exc:
        logger.error("Invalid regex pattern '%s' in rule '%s': %s", rule.pattern, rule.name, exc)
        return CompiledRule(rule=rule, regex=None, action=action)
    return CompiledRule(rule=rule, regex=regex, action=action)


def compile_rules(rules: Iterable[PatternRule], default_action: str) -> tuple[CompiledRule, ...]:
    """Compile ``rules`` in configured order; order only affects diagnostics."""
    compiled = tuple(compile_rule(rule, default_action) for rule in rules)
    invalid = sum(1 for c in compiled if not c.valid)
    if invalid:
        logger.warning("%d of %d pattern rules failed to compile and are disabled", invalid, len(compiled))
    return compiled
