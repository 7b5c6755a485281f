"""Unit tests for promptwall/scanner/pattern_scanner.py and rules.py.

Verifies:
  - one match per matching rule, in configured order, with regex metadata
  - default_action applies to rules without their own action
  - invalid patterns (re2-unsupported syntax included) are neutralised at
    compile time and never stop the other rules
  - linear-time matching on a classic catastrophic-backtracking pattern
  - No bare 'import re' in promptwall/scanner/ (CI lint gate)
"""

from __future__ import annotations

import logging
import pathlib
import subprocess
import time

import pytest

from promptwall.config import PatternRule
from promptwall.scanner.pattern_scanner import PatternScanner
from promptwall.scanner.rules import compile_rule, compile_rules

SCANNER_DIR = pathlib.Path(__file__).parent.parent.parent / "promptwall" / "scanner"


# ---------------------------------------------------------------------------
# CI lint gate
# ---------------------------------------------------------------------------


class TestNoBareImportReInScanner:
    def test_no_bare_import_re_in_scanner_package(self) -> None:
        """grep must find zero bare 'import re' lines under promptwall/scanner/."""
        result = subprocess.run(
            ["grep", "-rn", "-E", r"^import re$|^from re import|^import re ", str(SCANNER_DIR)],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, (
            f"LINT GATE FAILURE: bare 'import re' in promptwall/scanner:\n{result.stdout}"
        )


# ---------------------------------------------------------------------------
# Rule compilation
# ---------------------------------------------------------------------------


class TestCompileRules:
    def test_valid_rule(self) -> None:
        compiled = compile_rule(PatternRule(name="r", pattern=r"abc", action="warn"), "block")
        assert compiled.valid
        assert compiled.action == "warn"
        assert compiled.search("xxabcxx") is True
        assert compiled.search("xyz") is False

    def test_rule_without_action_uses_default(self) -> None:
        compiled = compile_rule(PatternRule(name="r", pattern=r"abc"), "log")
        assert compiled.action == "log"

    @pytest.mark.parametrize(
        "pattern",
        [
            r"([a-z]+",  # unbalanced
            r"(a)\1",  # backreference: unsupported by re2
            r"(?<=x)y",  # lookbehind: unsupported by re2
            r"foo(?!bar)",  # negative lookahead: unsupported by re2
        ],
    )
    def test_invalid_pattern_neutralised(self, pattern: str, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="promptwall.scanner.rules"):
            compiled = compile_rule(PatternRule(name="Broken", pattern=pattern), "block")
        assert compiled.valid is False
        assert compiled.search("anything (a)a xy foo") is False
        assert "Invalid regex pattern" in caplog.text
        assert "Broken" in caplog.text

    def test_compile_rules_keeps_order_and_counts_invalid(self, caplog: pytest.LogCaptureFixture) -> None:
        rules = [
            PatternRule(name="a", pattern="a"),
            PatternRule(name="bad", pattern="(a)\\1"),
            PatternRule(name="c", pattern="c"),
        ]
        with caplog.at_level(logging.WARNING, logger="promptwall.scanner.rules"):
            compiled = compile_rules(rules, "block")
        assert [c.rule.name for c in compiled] == ["a", "bad", "c"]
        assert [c.valid for c in compiled] == [True, False, True]
        assert "1 of 3 pattern rules failed to compile" in caplog.text


# ---------------------------------------------------------------------------
# PatternScanner
# ---------------------------------------------------------------------------


class TestPatternScanner:
    def test_name(self) -> None:
        assert PatternScanner().name == "Pattern Scanner"

    def test_single_match_with_metadata(self) -> None:
        scanner = PatternScanner(
            [PatternRule("SQL Injection", r"(?i)drop\s+table", "block", "Detects SQL injection")]
        )
        result = scanner.scan("'; DROP TABLE users; --")

        assert result.scanner_name == "Pattern Scanner"
        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.name == "SQL Injection"
        assert match.action == "block"
        assert match.description == "Detects SQL injection"
        assert match.metadata == {"pattern": r"(?i)drop\s+table", "scanner_type": "regex"}

    def test_matches_in_configured_order(self) -> None:
        scanner = PatternScanner(
            [
                PatternRule("second-defined-first", r"world"),
                PatternRule("never", r"absent"),
                PatternRule("first-defined-last", r"hello"),
            ]
        )
        result = scanner.scan("hello world")
        assert [m.name for m in result.matches] == ["second-defined-first", "first-defined-last"]

    def test_default_action_applied(self) -> None:
        scanner = PatternScanner([PatternRule("r", r"x")], default_action="warn")
        assert scanner.scan("x").matches[0].action == "warn"

    def test_case_sensitive_unless_flagged(self) -> None:
        scanner = PatternScanner([PatternRule("r", r"secret")])
        assert scanner.scan("SECRET").matches == ()
        scanner = PatternScanner([PatternRule("r", r"(?i)secret")])
        assert len(scanner.scan("SECRET").matches) == 1

    def test_invalid_rule_does_not_stop_others(self) -> None:
        scanner = PatternScanner(
            [
                PatternRule("broken", r"(?<=a)b"),
                PatternRule("works", r"drop"),
            ]
        )
        result = scanner.scan("ab drop")
        assert [m.name for m in result.matches] == ["works"]
        assert [r.valid for r in scanner.rules] == [False, True]

    def test_unknown_action_kept_verbatim(self) -> None:
        scanner = PatternScanner([PatternRule("r", r"x", action="quarantine")])
        assert scanner.scan("x").matches[0].action == "quarantine"

    def test_empty_and_none_prompt(self) -> None:
        scanner = PatternScanner([PatternRule("any", r".*")])
        assert scanner.scan("").matches == ()
        assert scanner.scan(None).matches == ()

    def test_disabled(self) -> None:
        scanner = PatternScanner([PatternRule("r", r"x")], enabled=False)
        assert scanner.scan("x").matches == ()

    def test_no_rules(self) -> None:
        assert PatternScanner().scan("anything").matches == ()

    def test_linear_time_on_redos_pattern(self) -> None:
        scanner = PatternScanner([PatternRule("redos", r"^(a+)+$")])
        prompt = "a" * 50_000 + "!"
        start = time.perf_counter()
        result = scanner.scan(prompt)
        elapsed = time.perf_counter() - start
        assert result.matches == ()
        assert elapsed < 1.0
