"""Implementor records and the fragments that carry them.

A fragment is produced once per documented trait by an upstream doc build and
lists, per owner crate, the types implementing that trait. Fragments are
immutable and may be delivered more than once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Sequence


@dataclass(frozen=True)
class ImplementorRecord:
    """One fact: ``implementing_type`` from ``owning_crate`` implements ``trait_name``."""

    trait_name: str
    implementing_type: str
    owning_crate: str = ""
    constraint_text: str = ""  # Opaque generics / where-clause text
    synthetic: bool = False  # Compiler-synthesized (auto trait) impl
    rendered: str = field(default="", compare=False)  # Display only, not identity

    @property
    def identity(self) -> tuple[str, str, str, str]:
        return (
            self.trait_name,
            self.owning_crate,
            self.implementing_type,
            self.constraint_text,
        )

    @property
    def is_valid(self) -> bool:
        if not all(isinstance(value, str) for value in self.identity):
            return False
        return bool(self.trait_name) and bool(self.implementing_type)

    @property
    def short_type(self) -> str:
        return self.implementing_type.rsplit("::", 1)[-1]


@dataclass(frozen=True)
class Fragment:
    """An immutable bundle of implementor records keyed by owner crate."""

    entries: Mapping[str, tuple[ImplementorRecord, ...]] = field(default_factory=dict)
    source: str = ""  # e.g. "core/fmt/trait.Display.js"

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Sequence[Any]], source: str = ""
    ) -> Fragment:
        """Build a fragment from a plain ``crate -> [record, ...]`` mapping."""
        return cls(
            entries={crate: tuple(records) for crate, records in mapping.items()},
            source=source,
        )

    @property
    def crates(self) -> list[str]:
        return list(self.entries)

    def records(self) -> Iterator[ImplementorRecord]:
        """Yield every record in crate order, then listing order."""
        for records in self.entries.values():
            yield from records

    def __len__(self) -> int:
        return sum(len(records) for records in self.entries.values())
