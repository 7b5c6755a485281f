"""PromptWall models package.

Defines the shared value types flowing through the scan pipeline:

  - scan.py    — Action, severity_rank(), ScanMatch, ScanResult (per-scanner output)
  - verdict.py — MatchedPattern, FilterResult (the final per-prompt decision)

Every type here is a frozen dataclass; aggregation only ever reads them.
"""
