"""Scanner contract — the interface every PromptWall detector implements.

A scanner is built once per configuration snapshot and is read-only from then
on: ``scan()`` must not touch shared state, so one instance can serve many
concurrent ``filter()`` calls.

Adding a detector means subclassing ``BaseScanner`` and registering it in
``promptwall.scanner.build_scanners()``; the orchestrator never changes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional

from promptwall.models.scan import ScanMatch, ScanResult

logger = logging.getLogger(__name__)


class BaseScanner(ABC):
    """Abstract base for all scanners.

    Subclasses implement ``name`` and ``scan()``. ``enabled()`` defaults to
    True unless the scanner was constructed with ``enabled=False``.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable label carried on every ScanResult this scanner produces."""

    @abstractmethod
    def scan(self, prompt: Optional[str]) -> ScanResult:
        """Scan ``prompt`` and return zero or more matches.

        MUST return an empty result (never raise) for empty or None text.
        """

    def enabled(self) -> bool:
        return self._enabled

    # ── Helpers for subclasses ────────────────────────────────────────────────

    def _match(
        self,
        name: str,
        action: str,
        description: Optional[str],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ScanMatch:
        return ScanMatch(name=name, action=action, description=description, metadata=metadata or {})

    def _result(self, matches: Iterable[ScanMatch] = ()) -> ScanResult:
        return ScanResult(scanner_name=self.name, matches=tuple(matches))

    def _log_scan(self, result: ScanResult) -> None:
        if result.has_matches:
            logger.info("%s found %d matches in prompt", self.name, len(result.matches))
        else:
            logger.debug("%s found no matches in prompt", self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(enabled={self._enabled})"
