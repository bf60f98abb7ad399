"""Sidebar item catalogs — per-crate symbol lists grouped by kind.

Each crate's sidebar index is self-contained. The catalog only routes lookups
to the right crate; it never combines two crates' items.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SidebarItem:
    """A single symbol shown in a crate's navigation sidebar."""

    symbol_name: str
    description: str = ""


@dataclass
class SidebarIndex:
    """All sidebar items of one crate, grouped by kind (``fn``, ``struct``...)."""

    crate: str
    items: dict[str, tuple[SidebarItem, ...]] = field(default_factory=dict)

    @property
    def kinds(self) -> list[str]:
        return list(self.items)

    def lookup(self, kind: str) -> tuple[SidebarItem, ...]:
        return self.items.get(kind, ())

    @property
    def item_count(self) -> int:
        return sum(len(v) for v in self.items.values())


class SidebarCatalog:
    """Lookup table of sidebar indexes, one per crate."""

    def __init__(self) -> None:
        self._indexes: dict[str, SidebarIndex] = {}

    def add(self, index: SidebarIndex) -> None:
        """Register a crate's index, replacing any earlier one for that crate."""
        self._indexes[index.crate] = index

    def get(self, crate: str) -> SidebarIndex | None:
        return self._indexes.get(crate)

    @property
    def crates(self) -> list[str]:
        return sorted(self._indexes)

    def lookup_by_crate_and_kind(self, crate: str, kind: str) -> tuple[SidebarItem, ...]:
        index = self._indexes.get(crate)
        if index is None:
            return ()
        return index.lookup(kind)

    def __len__(self) -> int:
        return len(self._indexes)
