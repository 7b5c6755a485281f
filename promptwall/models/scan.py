"""Scan contracts shared by every scanner and the orchestrator.

Provides:
  - ``Action``:        the four severity actions, ordered allow < log < warn < block.
  - ``severity_rank``: rank of an action string; unknown strings rank as ``allow``.
  - ``ScanMatch``:     one rule that fired (frozen).
  - ``ScanResult``:    one scanner's output for one prompt (frozen).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from promptwall.constants import SEVERITY_ORDER


class Action(str, Enum):
    """Severity action attached to every rule, in increasing strictness."""

    ALLOW = "allow"
    LOG = "log"
    WARN = "warn"
    BLOCK = "block"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER[self.value]


def severity_rank(action: Any) -> int:
    """Return the severity rank of ``action``.

    Accepts an ``Action`` or a plain string. Strings outside the known ordering
    (typos in a config file, future actions) rank as ``allow`` (0).
    """
    if isinstance(action, Action):
        return action.rank
    return SEVERITY_ORDER.get(str(action), 0)


@dataclass(frozen=True)
class ScanMatch:
    """A single rule that fired during a scan.

    Fields:
        name:        Rule name (used in verdict messages).
        action:      Rule action string. Normally one of ``Action``; unknown
                     values are kept verbatim and rank as ``allow``.
        description: Human-readable rule description.
        metadata:    Rule-specific diagnostics (pattern source, decoded text, ...).
                     Stored read-only.
    """

    name: str
    action: str
    description: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.action, Action):
            object.__setattr__(self, "action", self.action.value)
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "action": self.action,
            "description": self.description,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ScanResult:
    """Output of one scanner for one prompt.

    ``error`` is set only when the scanner raised and the orchestrator replaced
    its output with an empty result.
    """

    scanner_name: str
    matches: tuple[ScanMatch, ...] = ()
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "matches", tuple(self.matches))

    @property
    def has_matches(self) -> bool:
        return bool(self.matches)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scanner_name": self.scanner_name,
            "matches": [m.to_dict() for m in self.matches],
        }
        if self.error is not None:
            data["error"] = self.error
        return data
