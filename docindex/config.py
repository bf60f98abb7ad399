"""Configuration — where the doc bundle lives and how many fragments to expect.

Values come from a YAML file (``docindex.yaml`` in the working directory by
default) and may be overridden by ``DOCINDEX_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_FILE = "docindex.yaml"
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised for unreadable or invalid configuration."""


@dataclass
class DocIndexConfig:
    docs_root: Path = Path("docs")
    expected_fragments: int | None = None  # No completeness signal unless set
    log_level: str = "WARNING"


def load_config(path: str | Path | None = None) -> DocIndexConfig:
    """Load configuration from YAML, then apply environment overrides.

    A missing default file is fine; a missing explicitly-named file is not.
    """
    data: dict = {}
    config_path = Path(path) if path else Path(DEFAULT_CONFIG_FILE)

    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")
        logger.debug("Loaded configuration from %s", config_path)
    elif path:
        raise ConfigError(f"Config file not found: {config_path}")

    env = os.environ
    docs_root = env.get("DOCINDEX_DOCS_ROOT", data.get("docs_root", "docs"))
    expected = env.get("DOCINDEX_EXPECTED_FRAGMENTS", data.get("expected_fragments"))
    log_level = env.get("DOCINDEX_LOG_LEVEL", data.get("log_level", "WARNING"))

    return DocIndexConfig(
        docs_root=Path(docs_root),
        expected_fragments=_parse_expected(expected),
        log_level=_parse_log_level(log_level),
    )


def _parse_expected(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        expected = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"expected_fragments must be an integer, got {value!r}")
    if expected < 0:
        raise ConfigError(f"expected_fragments must not be negative, got {expected}")
    return expected


def _parse_log_level(value) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log_level '{value}'. Must be one of: {sorted(LOG_LEVELS)}")
    return level
