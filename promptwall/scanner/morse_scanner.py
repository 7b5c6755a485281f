"""Steganographic scanner — instructions hidden as morse code inside a prompt.

Decodes every morse-looking run (see ``promptwall.scanner.morse``) and checks
the decoded text against the built-in SUSPICIOUS_CONTENT_RULES. One decoded
candidate may fire several rules; every firing is reported.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in app scanner modules.
"""

from __future__ import annotations

from typing import Optional

from promptwall.constants import DEFAULT_MAX_DECODE_LENGTH, DEFAULT_MIN_MORSE_LENGTH
from promptwall.models.scan import ScanMatch, ScanResult
from promptwall.scanner.base import BaseScanner
from promptwall.scanner.definitions import SUSPICIOUS_CONTENT_RULES, SuspiciousContentRule
from promptwall.scanner.morse import decode_candidates

SCANNER_TYPE = "morse_code"


class MorseCodeScanner(BaseScanner):
    def __init__(
        self,
        enabled: bool = True,
        min_morse_length: int = DEFAULT_MIN_MORSE_LENGTH,
        max_decode_length: int = DEFAULT_MAX_DECODE_LENGTH,
        rules: tuple[SuspiciousContentRule, ...] = SUSPICIOUS_CONTENT_RULES,
    ) -> None:
        super().__init__(enabled=enabled)
        self.min_morse_length = min_morse_length
        self.max_decode_length = max_decode_length
        self._rules = rules

    @property
    def name(self) -> str:
        return "Morse Code Scanner"

    def scan(self, prompt: Optional[str]) -> ScanResult:
        if not self.enabled() or not prompt:
            return self._result()

        matches: list[ScanMatch] = []
        for candidate, decoded_text in decode_candidates(
            prompt, self.min_morse_length, self.max_decode_length
        ):
            for rule in self._rules:
                if not rule.matches(decoded_text):
                    continue
                matches.append(
                    self._match(
                        name=rule.name,
                        action=rule.action.value,
                        description=rule.description,
                        metadata={
                            "morse_sequence": candidate.sequence,
                            "decoded_text": decoded_text,
                            "original_position": candidate.position,
                            "scanner_type": SCANNER_TYPE,
                        },
                    )
                )

        result = self._result(matches)
        self._log_scan(result)
        return result
