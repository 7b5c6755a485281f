"""PromptWall scanner package.

Provides the detectors and the registry that builds them from a config
snapshot:

  - base.py            — BaseScanner contract
  - rules.py           — Rule Set compilation (google-re2)
  - pattern_scanner.py — user-configured regex rules
  - definitions.py     — built-in suspicious-content rules
  - morse.py           — morse extraction / decoding (pure functions)
  - morse_scanner.py   — steganographic morse-code scanner
"""

from __future__ import annotations

from promptwall.config import FirewallConfig
from promptwall.scanner.base import BaseScanner
from promptwall.scanner.morse_scanner import MorseCodeScanner
from promptwall.scanner.pattern_scanner import PatternScanner

__all__ = ["BaseScanner", "MorseCodeScanner", "PatternScanner", "build_scanners"]


def build_scanners(config: FirewallConfig) -> tuple[BaseScanner, ...]:
    """Build the ordered scanner tuple for one config snapshot.

    New detectors are registered here; the orchestrator iterates whatever
    this returns.
    """
    morse = config.morse_code_scanner
    return (
        PatternScanner(
            patterns=config.patterns,
            default_action=config.default_action,
            enabled=config.enabled,
        ),
        MorseCodeScanner(
            enabled=morse.enabled,
            min_morse_length=morse.min_morse_length,
            max_decode_length=morse.max_decode_length,
        ),
    )
