"""Config loading for PromptWall.

Reads ``config/prompt_filters.yaml`` (or ``~/.promptwall/prompt_filters.yaml``).
If no config file is found, or the file cannot be read or parsed, the built-in
defaults are returned: firewall enabled, ``default_action: block``, no rules.
A broken config file never stops the service.

Config search order:
  1. ``config_path`` argument (if provided — for testing or explicit override)
  2. PROMPTWALL_CONFIG environment variable (if set)
  3. ``config/prompt_filters.yaml`` (working directory — for development)
  4. ``~/.promptwall/prompt_filters.yaml`` (home directory — for deployments)

File format:
  The document is either a flat config mapping, or a mapping of environment
  sections (``development:``, ``production:``, ...) plus an optional
  ``default:`` section. PROMPTWALL_ENV (default ``development``) picks the
  section. ``${VAR}`` references are expanded from the environment
  before the YAML is parsed; unset variables are left as written. A bare
  ``$VAR`` is never expanded, so regex rules can match a literal ``$HOME``.
  Write ``$${VAR}`` for a literal ``${VAR}``.

Environment variable overrides:
  PROMPTWALL_PORT — overrides server.port
  PROMPTWALL_CONFIG — sets an explicit config file path to try first
  PROMPTWALL_ENV — selects the environment section
"""

from __future__ import annotations

import dataclasses
import os
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from promptwall.constants import (
    DEFAULT_ACTION,
    DEFAULT_MAX_DECODE_LENGTH,
    DEFAULT_MIN_MORSE_LENGTH,
    SEVERITY_ORDER,
)
from promptwall.utils.logger import get_logger

logger = get_logger(__name__)

# Default config search paths (PROMPTWALL_CONFIG env var prepended at runtime)
DEFAULT_CONFIG_PATHS = [
    "config/prompt_filters.yaml",
    os.path.expanduser("~/.promptwall/prompt_filters.yaml"),
]

DEFAULT_ENVIRONMENT = "development"

VALID_LOG_LEVELS: frozenset[str] = frozenset({"debug", "info", "warn", "error"})

# ${NAME} expands; $${NAME} is an escaped literal ${NAME}
_ENV_REF_RE = re.compile(r"\$(\$)?\{([A-Za-z_][A-Za-z0-9_]*)\}")


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PatternRule:
    """One configured detection rule.

    ``action`` is None when the rule defers to the config's ``default_action``.
    ``pattern`` is the regex source exactly as authored (case-insensitivity is
    expressed inline, e.g. ``(?i)``).
    """

    name: str
    pattern: str
    action: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "action": self.action,
            "description": self.description,
        }


@dataclass(frozen=True)
class MorseScannerConfig:
    enabled: bool = True
    min_morse_length: int = DEFAULT_MIN_MORSE_LENGTH
    max_decode_length: int = DEFAULT_MAX_DECODE_LENGTH


@dataclass(frozen=True)
class LoggingConfig:
    """Verdict logging policy.

    enabled:     master switch for verdict logging
    level:       "debug" | "info" | "warn" | "error"
    log_blocked: log prompts that were blocked
    log_allowed: log prompts that were allowed (including warn/log verdicts)
    """

    enabled: bool = True
    level: str = "info"
    log_blocked: bool = True
    log_allowed: bool = False


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass(frozen=True)
class FirewallConfig:
    """Root configuration snapshot.

    Frozen: a running firewall never sees this object change. Reload builds a
    new instance and swaps it in whole.
    """

    enabled: bool = True
    default_action: str = DEFAULT_ACTION
    patterns: tuple[PatternRule, ...] = ()
    morse_code_scanner: MorseScannerConfig = field(default_factory=MorseScannerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    path: Optional[str] = None  # file the snapshot was loaded from (for reload/watch)

    @classmethod
    def defaults(cls) -> "FirewallConfig":
        """Return the built-in default config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "FirewallConfig":
        """Construct a FirewallConfig from a parsed config mapping.

        Merges user-supplied values onto defaults; unknown keys are ignored.
        Invalid entries are logged and dropped rather than failing the load.
        """
        default_action = raw.get("default_action", DEFAULT_ACTION)
        if default_action not in SEVERITY_ORDER:
            logger.warning(
                "Invalid default_action — falling back to block",
                default_action=default_action,
                valid=sorted(SEVERITY_ORDER),
            )
            default_action = DEFAULT_ACTION

        # ── Morse code scanner ────────────────────────────────────────────────
        morse_raw = _section(raw, "morse_code_scanner")
        morse = MorseScannerConfig(
            enabled=bool(morse_raw.get("enabled", True)),
            min_morse_length=_positive_int(
                morse_raw.get("min_morse_length"), DEFAULT_MIN_MORSE_LENGTH, "min_morse_length"
            ),
            max_decode_length=_positive_int(
                morse_raw.get("max_decode_length"), DEFAULT_MAX_DECODE_LENGTH, "max_decode_length"
            ),
        )

        # ── Logging policy ────────────────────────────────────────────────────
        logging_raw = _section(raw, "logging")
        level = str(logging_raw.get("level", "info")).lower()
        if level not in VALID_LOG_LEVELS:
            logger.warning("Unknown logging.level — using info", level=level)
            level = "info"
        logging_cfg = LoggingConfig(
            enabled=bool(logging_raw.get("enabled", True)),
            level=level,
            log_blocked=bool(logging_raw.get("log_blocked", True)),
            log_allowed=bool(logging_raw.get("log_allowed", False)),
        )

        # ── Server ────────────────────────────────────────────────────────────
        server_raw = _section(raw, "server")
        server = ServerConfig(
            host=server_raw.get("host", "127.0.0.1"),
            port=_positive_int(server_raw.get("port"), 3000, "server.port"),
        )

        enabled = raw.get("enabled")
        return cls(
            enabled=True if enabled is None else bool(enabled),
            default_action=default_action,
            patterns=parse_patterns(raw.get("patterns")),
            morse_code_scanner=morse,
            logging=logging_cfg,
            server=server,
            path=path,
        )


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> FirewallConfig:
    """Load PromptWall configuration.

    Search order:
      1. ``config_path`` argument
      2. ``PROMPTWALL_CONFIG`` environment variable
      3. ``config/prompt_filters.yaml``
      4. ``~/.promptwall/prompt_filters.yaml``

    Never raises. Missing file → defaults (info log). Unreadable file, YAML
    syntax error or a non-mapping document → defaults (error log).

    ``PROMPTWALL_PORT`` is applied afterwards regardless of the source.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("PROMPTWALL_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    if found_path is None:
        logger.info("No config file found — using defaults", searched=search_paths)
        return _apply_env_overrides(FirewallConfig.defaults())

    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            text = expand_env_vars(fh.read())
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.error(
            "Error loading prompt filters configuration — using defaults",
            path=found_path,
            error=str(exc),
        )
        return _apply_env_overrides(FirewallConfig.defaults())
    except OSError as exc:
        logger.error(
            "Could not read prompt filters configuration — using defaults",
            path=found_path,
            error=str(exc),
        )
        return _apply_env_overrides(FirewallConfig.defaults())

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.error(
            "Config root is not a mapping — using defaults",
            path=found_path,
            actual_type=type(raw).__name__,
        )
        return _apply_env_overrides(FirewallConfig.defaults())

    environment = os.environ.get("PROMPTWALL_ENV", DEFAULT_ENVIRONMENT)
    section = select_environment(raw, environment)

    config = _apply_env_overrides(FirewallConfig.from_dict(section, path=found_path))
    logger.info(
        "Config loaded",
        path=found_path,
        environment=environment,
        enabled=config.enabled,
        default_action=config.default_action,
        patterns=len(config.patterns),
    )
    return config


def expand_env_vars(text: str) -> str:
    """Expand ``${NAME}`` from the environment; leave everything else untouched."""

    def _replace(m: "re.Match[str]") -> str:
        name = m.group(2)
        if m.group(1):
            return "${" + name + "}"
        return os.environ.get(name, m.group(0))

    return _ENV_REF_RE.sub(_replace, text)


def select_environment(raw: dict, environment: str) -> dict:
    """Pick the section of ``raw`` that applies to ``environment``.

    ``raw[environment]`` wins, then ``raw["default"]``; if neither is a mapping
    the document itself is the config.
    """
    for key in (environment, "default"):
        section = raw.get(key)
        if isinstance(section, dict):
            return section
    return raw


def parse_patterns(raw_list: Any) -> tuple[PatternRule, ...]:
    """Parse the ``patterns:`` list into PatternRule values.

    Skips invalid entries with a WARNING (never crashes). Regex validity is
    NOT checked here — compiling is the pattern scanner's job.
    """
    if raw_list is None:
        return ()
    if not isinstance(raw_list, list):
        logger.warning("patterns is not a list — ignoring", actual_type=type(raw_list).__name__)
        return ()

    rules: list[PatternRule] = []
    for i, item in enumerate(raw_list):
        if not isinstance(item, dict):
            logger.warning(
                "Pattern entry is not a mapping — skipping",
                index=i,
                actual_type=type(item).__name__,
            )
            continue

        name = item.get("name")
        pattern = item.get("pattern")
        if not name or not isinstance(pattern, str) or not pattern:
            logger.warning("Pattern entry missing name or pattern — skipping", index=i)
            continue

        action = item.get("action")
        if action is not None and action not in SEVERITY_ORDER:
            # Kept as authored: ranks as allow when aggregated.
            logger.warning("Unknown pattern action", name=name, action=action)

        rules.append(
            PatternRule(
                name=str(name),
                pattern=pattern,
                action=None if action is None else str(action),
                description=item.get("description"),
            )
        )
    return tuple(rules)


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Config section is not a mapping — using defaults", section=key)
        return {}
    return value


def _positive_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Config value is not an integer — using default", key=name, value=value)
        return default
    if number <= 0:
        logger.warning("Config value must be positive — using default", key=name, value=value)
        return default
    return number


def _apply_env_overrides(config: FirewallConfig) -> FirewallConfig:
    """Return ``config`` with environment overrides applied.

    Currently handles:
      PROMPTWALL_PORT — overrides config.server.port (invalid values are ignored)
    """
    env_port = os.environ.get("PROMPTWALL_PORT")
    if env_port is None:
        return config
    try:
        port = int(env_port)
    except ValueError:
        logger.warning("PROMPTWALL_PORT is not a valid integer — ignored", value=env_port)
        return config
    return dataclasses.replace(config, server=dataclasses.replace(config.server, port=port))
