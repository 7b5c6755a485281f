"""Final per-prompt verdict types.

``FilterResult`` is what ``PromptFirewall.filter()`` returns and what the HTTP
layer serialises. ``MatchedPattern`` is the flattened view of a ``ScanMatch``
with the originating pattern source lifted out of its metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from promptwall.models.scan import ScanMatch, ScanResult


@dataclass(frozen=True)
class MatchedPattern:
    name: str
    action: str
    description: Optional[str] = None
    pattern: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_match(cls, match: ScanMatch) -> "MatchedPattern":
        return cls(
            name=match.name,
            action=match.action,
            description=match.description,
            pattern=match.metadata.get("pattern"),
            metadata=match.metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "action": self.action,
            "description": self.description,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class FilterResult:
    """The verdict for one prompt.

    Fields:
        allowed:          False if and only if ``action == "block"``.
        action:           Highest-severity action among all matches, or ``"allow"``.
        matched_patterns: Every match from every scanner, in encounter order.
        message:          Human-readable summary; None when nothing actionable fired.
        scanner_results:  Per-scanner breakdown, in scanner order.
    """

    allowed: bool
    action: str
    matched_patterns: tuple[MatchedPattern, ...] = ()
    message: Optional[str] = None
    scanner_results: tuple[ScanResult, ...] = ()

    @property
    def blocked(self) -> bool:
        return not self.allowed

    @property
    def matched_names(self) -> list[str]:
        return [m.name for m in self.matched_patterns]

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "action": self.action,
            "matched_patterns": [m.to_dict() for m in self.matched_patterns],
            "message": self.message,
            "scanner_results": [r.to_dict() for r in self.scanner_results],
        }
