"""Shared dependencies — the process-wide docs index."""

from __future__ import annotations

from functools import lru_cache

from docindex.config import load_config
from docindex.utils.docs_loader import DocsIndex, build_index
from docindex.utils.logging_setup import configure_logging


@lru_cache(maxsize=1)
def get_docs_index() -> DocsIndex:
    """Build the index once per process from ``docindex.yaml`` / ``DOCINDEX_*``."""
    config = load_config()
    configure_logging(config.log_level)
    return build_index(config)
