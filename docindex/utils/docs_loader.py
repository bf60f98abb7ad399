"""Docs loader — discover fragment files in a doc bundle and deliver them.

Layout of a doc bundle::

    docs/
      implementors/core/fmt/trait.Display.js   # one fragment per trait
      implementors/extra/local.yaml            # structured fragments
      egui/sidebar-items.js                    # one sidebar index per crate
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from docindex.config import DocIndexConfig
from docindex.formats.legacy import (
    FragmentFormatError,
    parse_implementors_file,
    parse_sidebar_file,
)
from docindex.formats.structured import STRUCTURED_SUFFIXES, parse_structured_file
from docindex.models.implementor import Fragment
from docindex.models.sidebar import SidebarCatalog
from docindex.registry.channel import DeliveryChannel
from docindex.registry.implementor_registry import ImplementorRegistry

logger = logging.getLogger(__name__)

IMPLEMENTORS_DIR = "implementors"
SIDEBAR_FILE = "sidebar-items.js"


@dataclass
class LoadReport:
    """What happened while delivering a directory of fragment files."""

    delivered: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # file -> reason

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class DocsIndex:
    """A ready-to-query bundle: the registry, its channel and the sidebar catalog."""

    channel: DeliveryChannel
    registry: ImplementorRegistry
    sidebars: SidebarCatalog
    load_report: LoadReport
    expected_fragments: int | None = None


def scan_fragment_files(docs_root: Path) -> list[Path]:
    """Find implementor fragments (legacy ``.js`` and structured) under ``implementors/``."""
    base = Path(docs_root) / IMPLEMENTORS_DIR
    if not base.is_dir():
        return []
    files = [
        p
        for p in base.rglob("*")
        if p.is_file() and (p.suffix == ".js" or p.suffix in STRUCTURED_SUFFIXES)
    ]
    return sorted(files)


def scan_sidebar_files(docs_root: Path) -> list[Path]:
    """Find ``<crate>/sidebar-items.js`` files directly below ``docs_root``."""
    root = Path(docs_root)
    if not root.is_dir():
        return []
    return sorted(p for p in root.glob(f"*/{SIDEBAR_FILE}") if p.is_file())


def read_fragment_file(path: Path, docs_root: Path) -> Fragment:
    if path.suffix in STRUCTURED_SUFFIXES:
        return parse_structured_file(path, docs_root=docs_root)
    return parse_implementors_file(path, docs_root=docs_root)


def deliver_directory(channel: DeliveryChannel, docs_root: str | Path) -> LoadReport:
    """Parse every fragment file under ``docs_root`` and deliver it to ``channel``.

    Files that cannot be read or parsed are logged and reported, never fatal.
    """
    root = Path(docs_root)
    report = LoadReport()
    for path in scan_fragment_files(root):
        rel = str(path.relative_to(root))
        try:
            fragment = read_fragment_file(path, root)
        except (OSError, UnicodeDecodeError, FragmentFormatError) as e:
            logger.warning("Skipping fragment file %s: %s", rel, e)
            report.failed[rel] = str(e)
            continue
        channel.deliver(fragment)
        report.delivered.append(rel)
    logger.info(
        "Delivered %d fragment file(s) from %s (%d failed)",
        len(report.delivered),
        root,
        len(report.failed),
    )
    return report


def load_sidebars(docs_root: str | Path) -> SidebarCatalog:
    """Build a catalog from every crate's ``sidebar-items.js``."""
    catalog = SidebarCatalog()
    for path in scan_sidebar_files(Path(docs_root)):
        try:
            catalog.add(parse_sidebar_file(path))
        except (OSError, UnicodeDecodeError, FragmentFormatError) as e:
            logger.warning("Skipping sidebar file %s: %s", path, e)
    return catalog


def build_index(config: DocIndexConfig) -> DocsIndex:
    """Wire up channel, registry and sidebars for ``config.docs_root``.

    Files are delivered before the registry is initialized, so everything
    found on disk reaches the registry through the drain.
    """
    channel = DeliveryChannel()
    report = deliver_directory(channel, config.docs_root)

    registry = ImplementorRegistry()
    registry.initialize(channel)

    return DocsIndex(
        channel=channel,
        registry=registry,
        sidebars=load_sidebars(config.docs_root),
        load_report=report,
        expected_fragments=config.expected_fragments,
    )
