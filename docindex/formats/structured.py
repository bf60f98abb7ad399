"""Structured fragments — JSON or YAML mappings of crate to implementor descriptors.

Example::

    crateX:
      - trait: Display
        type: Foo
        where: "T: Clone"
        synthetic: false

``trait`` and ``type`` are required for a record to be merged; descriptors
missing them are still turned into (invalid) records so that the registry
can count the drop.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from docindex.formats.legacy import FragmentFormatError
from docindex.models.implementor import Fragment, ImplementorRecord

STRUCTURED_SUFFIXES = {".json", ".yaml", ".yml"}


def fragment_from_data(data: Any, source: str = "", default_trait: str = "") -> Fragment:
    """Build a fragment from an already-parsed ``{crate: [descriptor, ...]}`` mapping."""
    if not isinstance(data, dict):
        raise FragmentFormatError(
            f"Structured fragment {source or '<data>'} must be a mapping of crate to descriptors"
        )

    entries: dict[str, tuple[ImplementorRecord, ...]] = {}
    for crate, descriptors in data.items():
        if not isinstance(descriptors, list):
            descriptors = [descriptors]
        entries[str(crate)] = tuple(
            _descriptor_to_record(d, str(crate), default_trait) for d in descriptors
        )
    return Fragment(entries=entries, source=source)


def _descriptor_to_record(descriptor: Any, crate: str, default_trait: str) -> ImplementorRecord:
    if not isinstance(descriptor, dict):
        return ImplementorRecord(trait_name="", implementing_type="", owning_crate=crate)
    return ImplementorRecord(
        trait_name=str(descriptor.get("trait") or default_trait),
        implementing_type=str(descriptor.get("type") or ""),
        owning_crate=str(descriptor.get("crate") or crate),
        constraint_text=str(descriptor.get("where") or ""),
        synthetic=bool(descriptor.get("synthetic", False)),
        rendered=str(descriptor.get("text") or ""),
    )


def parse_structured(text: str, source: str = "", fmt: str = "json") -> Fragment:
    """Parse JSON (``fmt="json"``) or YAML (``fmt="yaml"``) fragment text."""
    try:
        data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise FragmentFormatError(f"Invalid {fmt} fragment {source or '<string>'}: {e}") from e
    return fragment_from_data(data, source=source)


def parse_structured_file(path: str | Path, docs_root: str | Path | None = None) -> Fragment:
    """Read a ``.json`` / ``.yaml`` / ``.yml`` fragment file."""
    p = Path(path)
    if p.suffix not in STRUCTURED_SUFFIXES:
        raise FragmentFormatError(f"Unsupported fragment file type: {p.suffix}")
    fmt = "json" if p.suffix == ".json" else "yaml"
    source = str(p.relative_to(docs_root)) if docs_root else p.name
    return parse_structured(p.read_text(encoding="utf-8"), source=source, fmt=fmt)


def fragment_to_data(fragment: Fragment) -> dict[str, list[dict[str, Any]]]:
    """Dump a fragment back to the structured mapping form."""
    data: dict[str, list[dict[str, Any]]] = {}
    for crate, records in fragment.entries.items():
        data[crate] = [
            {
                "trait": r.trait_name,
                "type": r.implementing_type,
                "where": r.constraint_text,
                "synthetic": r.synthetic,
            }
            for r in records
        ]
    return data
