"""Pattern scanner — applies the configured Rule Set to raw prompt text.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in app scanner modules.
"""

from __future__ import annotations

from typing import Iterable, Optional

from promptwall.config import PatternRule
from promptwall.constants import DEFAULT_ACTION
from promptwall.models.scan import ScanResult
from promptwall.scanner.base import BaseScanner
from promptwall.scanner.rules import CompiledRule, compile_rules

SCANNER_TYPE = "regex"


class PatternScanner(BaseScanner):
    """Match each configured rule against the full prompt text.

    Emits one ScanMatch per matching rule, in configured order. Rules whose
    pattern did not compile are skipped silently at scan time (the error was
    logged once, at construction).
    """

    def __init__(
        self,
        patterns: Iterable[PatternRule] = (),
        default_action: str = DEFAULT_ACTION,
        enabled: bool = True,
    ) -> None:
        super().__init__(enabled=enabled)
        self._default_action = default_action
        self._rules: tuple[CompiledRule, ...] = compile_rules(patterns, default_action)

    @property
    def name(self) -> str:
        return "Pattern Scanner"

    @property
    def rules(self) -> tuple[CompiledRule, ...]:
        return self._rules

    def scan(self, prompt: Optional[str]) -> ScanResult:
        if not self.enabled() or not prompt:
            return self._result()

        matches = [
            self._match(
                name=compiled.rule.name,
                action=compiled.action,
                description=compiled.rule.description,
                metadata={
                    "pattern": compiled.rule.pattern,
                    "scanner_type": SCANNER_TYPE,
                },
            )
            for compiled in self._rules
            if compiled.search(prompt)
        ]

        result = self._result(matches)
        self._log_scan(result)
        return result
