"""PromptWall utilities: structured logging, request ids, latency tracking.

  - logger.py  — structlog setup, request-id context, PerformanceLogger
  - ulid.py    — request id generation
  - latency.py — rolling filter-latency window for /health
"""
