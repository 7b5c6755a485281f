"""Prompt firewall orchestrator.

Runs every enabled scanner over one prompt, aggregates their matches and
escalates to the single most severe action.

SNAPSHOT INVARIANTS:
  - ``PromptFirewall`` holds exactly one ``FirewallSnapshot`` reference.
  - ``filter()`` reads that reference ONCE at entry and uses only that
    snapshot for the whole call — never a mix of two config generations.
  - ``reload()`` builds a complete new snapshot first, then swaps the
    reference in a single assignment. Readers take no lock; the lock only
    serialises concurrent reloads.

Per call: Start → RunScanners → AggregateMatches → DetermineAction →
{allowed | warn | log | blocked}. There is no retry.
"""

from __future__ import annotations

import copy
import threading
import time
from dataclasses import dataclass
from typing import Optional

from promptwall.config import FirewallConfig, LoggingConfig, PatternRule, load_config
from promptwall.constants import LOG_PROMPT_PREVIEW_CHARS
from promptwall.models.scan import Action, ScanResult, severity_rank
from promptwall.models.verdict import FilterResult, MatchedPattern
from promptwall.scanner import BaseScanner, build_scanners
from promptwall.utils.latency import ScanLatencyTracker
from promptwall.utils.logger import get_logger

logger = get_logger(__name__)

_MESSAGE_PREFIXES: dict[str, str] = {
    Action.BLOCK.value: "Prompt blocked due to security policy violations",
    Action.WARN.value: "Prompt flagged for review",
    Action.LOG.value: "Prompt logged for monitoring",
}


@dataclass(frozen=True)
class FirewallSnapshot:
    """One immutable configuration generation plus the scanners built from it."""

    config: FirewallConfig
    scanners: tuple[BaseScanner, ...]

    @classmethod
    def build(cls, config: FirewallConfig) -> "FirewallSnapshot":
        return cls(config=config, scanners=build_scanners(config))


def escalate(current: str, candidate: str) -> str:
    """Return ``candidate`` only if it is strictly more severe than ``current``."""
    return candidate if severity_rank(candidate) > severity_rank(current) else current


def build_message(action: str, matched: list[MatchedPattern]) -> Optional[str]:
    prefix = _MESSAGE_PREFIXES.get(action)
    if prefix is None:
        return None
    return f"{prefix}: {', '.join(m.name for m in matched)}"


class PromptFirewall:
    """Decide whether prompts are allowed, flagged or blocked.

    Usage::

        firewall = PromptFirewall(load_config())
        verdict = firewall.filter("What is the weather like today?")
        verdict.allowed   # True
        firewall.reload() # re-read the config file, atomically

    Args:
        config:          Initial snapshot. When None, ``load_config(config_path)``.
        config_path:     Source re-read by ``reload()`` without an argument.
        latency_tracker: Optional tracker that records every filter duration.
    """

    def __init__(
        self,
        config: Optional[FirewallConfig] = None,
        config_path: Optional[str] = None,
        latency_tracker: Optional[ScanLatencyTracker] = None,
    ) -> None:
        self._config_path = config_path
        self._latency_tracker = latency_tracker
        self._reload_lock = threading.Lock()
        if config is None:
            config = load_config(config_path)
        self._snapshot = FirewallSnapshot.build(config)

    # ── Public read API ───────────────────────────────────────────────────────

    @property
    def enabled(self) -> bool:
        return self._snapshot.config.enabled

    @property
    def scanners(self) -> tuple[BaseScanner, ...]:
        return self._snapshot.scanners

    def active_rules(self) -> tuple[PatternRule, ...]:
        """Configured pattern rules of the active snapshot (frozen values)."""
        return self._snapshot.config.patterns

    def active_config(self) -> FirewallConfig:
        """Defensive copy of the active configuration."""
        return copy.deepcopy(self._snapshot.config)

    # ── Filtering ─────────────────────────────────────────────────────────────

    def filter(self, prompt: Optional[str]) -> FilterResult:
        """Return the verdict for ``prompt``. Never raises for scanner faults."""
        snapshot = self._snapshot
        t0 = time.perf_counter()
        try:
            return self._evaluate(snapshot, prompt)
        finally:
            if self._latency_tracker is not None:
                self._latency_tracker.record((time.perf_counter() - t0) * 1000)

    def _evaluate(self, snapshot: FirewallSnapshot, prompt: Optional[str]) -> FilterResult:
        config = snapshot.config
        if not config.enabled:
            return FilterResult(allowed=True, action=Action.ALLOW.value)

        matched: list[MatchedPattern] = []
        scanner_results: list[ScanResult] = []
        highest = Action.ALLOW.value

        for scanner in snapshot.scanners:
            if not scanner.enabled():
                continue
            scan_result = _run_scanner(scanner, prompt)
            scanner_results.append(scan_result)
            for match in scan_result.matches:
                matched.append(MatchedPattern.from_match(match))
                highest = escalate(highest, match.action)

        if not matched:
            result = FilterResult(
                allowed=True,
                action=Action.ALLOW.value,
                scanner_results=tuple(scanner_results),
            )
        else:
            result = FilterResult(
                allowed=highest != Action.BLOCK.value,
                action=highest,
                matched_patterns=tuple(matched),
                message=build_message(highest, matched),
                scanner_results=tuple(scanner_results),
            )

        log_verdict(config.logging, prompt or "", result)
        return result

    # ── Reload ────────────────────────────────────────────────────────────────

    def reload(self, new_config: Optional[FirewallConfig] = None) -> FirewallConfig:
        """Replace the active snapshot.

        With ``new_config`` that config becomes active; otherwise the config
        source is re-read (a broken file yields the built-in defaults, see
        ``load_config``). In-flight ``filter()`` calls finish on the snapshot
        they started with.

        Returns the config now active.
        """
        with self._reload_lock:
            if new_config is None:
                new_config = load_config(self._config_path or self._snapshot.config.path)
            snapshot = FirewallSnapshot.build(new_config)
            self._snapshot = snapshot

        logger.info(
            "Prompt firewall configuration reloaded",
            enabled=new_config.enabled,
            patterns=len(new_config.patterns),
            path=new_config.path,
        )
        return new_config


def _run_scanner(scanner: BaseScanner, prompt: Optional[str]) -> ScanResult:
    """Run one scanner; a fault yields an empty result carrying the error."""
    try:
        result = scanner.scan(prompt)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Scanner raised — treating as no matches",
            scanner=scanner.name,
            error_type=type(exc).__name__,
            error=str(exc),
            exc_info=True,
        )
        return ScanResult(scanner_name=scanner.name, error=f"{type(exc).__name__}: {exc}")

    if not isinstance(result, ScanResult):
        logger.error(
            "Scanner returned invalid type — treating as no matches",
            scanner=scanner.name,
            actual_type=type(result).__name__,
        )
        return ScanResult(scanner_name=scanner.name, error=f"invalid result type: {type(result).__name__}")
    return result


# ─── Verdict logging policy ───────────────────────────────────────────────────


def should_log(policy: LoggingConfig, result: FilterResult) -> bool:
    if not policy.enabled:
        return False
    return (result.blocked and policy.log_blocked) or (result.allowed and policy.log_allowed)


def log_verdict(policy: LoggingConfig, prompt: str, result: FilterResult) -> None:
    """Emit one log line for ``result`` according to the logging policy.

    Levels:
      debug — every logged verdict, with a prompt preview
      info  — every logged verdict
      warn  — only verdicts whose action is not allow
      error — only blocked verdicts
    """
    if not should_log(policy, result):
        return

    if result.blocked:
        message = f"BLOCKED: {result.message}"
    elif result.action == Action.WARN.value:
        message = f"WARNING: {result.message}"
    else:
        message = "ALLOWED: Prompt passed firewall checks"

    fields = {
        "prompt_length": len(prompt),
        "action": result.action,
        "allowed": result.allowed,
        "matched_patterns": result.matched_names,
    }

    if policy.level == "debug":
        logger.debug(message, prompt_preview=prompt[:LOG_PROMPT_PREVIEW_CHARS], **fields)
    elif policy.level == "info":
        logger.info(message, **fields)
    elif policy.level == "warn":
        if result.action != Action.ALLOW.value:
            logger.warning(message, **fields)
    elif policy.level == "error":
        if result.blocked:
            logger.error(message, **fields)
