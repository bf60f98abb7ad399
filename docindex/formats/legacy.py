"""Legacy doc-bundle formats — self-executing implementor fragments and sidebar items.

An implementor fragment looks like::

    (function() {var implementors = {};
    implementors["ab_glyph"] = [{"text":"impl ...","synthetic":false,"types":["ab_glyph::err::InvalidFont"]}];
    if (window.register_implementors) {window.register_implementors(implementors);} else {window.pending_implementors = implementors;}})()

The trait itself is not named inside the payload; it is implied by the file's
location (``implementors/core/fmt/trait.Display.js``).
"""

from __future__ import annotations

import html
import json
import re
from pathlib import Path
from typing import Any

from docindex.models.implementor import Fragment, ImplementorRecord
from docindex.models.sidebar import SidebarIndex, SidebarItem

FRAGMENT_HEADER = "(function() {var implementors = {};"
FRAGMENT_FOOTER = (
    "if (window.register_implementors) {window.register_implementors(implementors);}"
    " else {window.pending_implementors = implementors;}})()"
)

_ASSIGNMENT_RE = re.compile(r'^implementors\[("(?:[^"\\]|\\.)*")\]\s*=\s*(\[.*\]);\s*$', re.MULTILINE)
_TAG_RE = re.compile(r"<[^>]+>")
_SIDEBAR_RE = re.compile(r"^\s*initSidebarItems\((.*)\);?\s*$", re.DOTALL)


class FragmentFormatError(ValueError):
    """Raised when a payload is not a recognizable fragment at all."""


def html_to_text(markup: str) -> str:
    """Strip tags and entities from rendered impl HTML, collapsing whitespace."""
    text = _TAG_RE.sub(" ", markup)
    text = html.unescape(text)
    text = " ".join(text.split())
    # Tag removal leaves gaps inside paths and generics: "Foo <T>", "& Bar", "A:: Item"
    text = re.sub(r"\s+([<>,)\]])", r"\1", text)
    text = re.sub(r"([(<&\[]|::)\s+", r"\1", text)
    return text


def trait_path_from_file(path: str | Path) -> str:
    """Derive ``core::fmt::Display`` from ``.../implementors/core/fmt/trait.Display.js``."""
    p = Path(path)
    name = p.stem
    if name.startswith("trait."):
        name = name[len("trait."):]
    parts = list(p.parts[:-1])
    if "implementors" in parts:
        module = parts[len(parts) - parts[::-1].index("implementors"):]
    else:
        module = []
    return "::".join([*module, name])


def descriptor_to_record(trait_name: str, crate: str, descriptor: Any) -> ImplementorRecord:
    """Convert one ``{"text", "synthetic", "types"}`` descriptor into a record.

    Descriptors without type tokens still produce a record; the registry drops
    it at merge time.
    """
    if not isinstance(descriptor, dict):
        return ImplementorRecord(trait_name=trait_name, implementing_type="", owning_crate=crate)

    types = descriptor.get("types") or []
    implementing_type = str(types[0]) if isinstance(types, list) and types else ""
    text = str(descriptor.get("text") or "")
    return ImplementorRecord(
        trait_name=trait_name,
        implementing_type=implementing_type,
        owning_crate=crate,
        constraint_text=html_to_text(text),
        synthetic=bool(descriptor.get("synthetic", False)),
        rendered=text,
    )


def parse_implementors(source: str, trait_name: str, fragment_id: str = "") -> Fragment:
    """Parse a legacy implementor fragment for ``trait_name``."""
    if "var implementors" not in source:
        raise FragmentFormatError(f"Not an implementor fragment: {fragment_id or '<string>'}")

    entries: dict[str, tuple[ImplementorRecord, ...]] = {}
    for match in _ASSIGNMENT_RE.finditer(source):
        try:
            crate = json.loads(match.group(1))
            descriptors = json.loads(match.group(2))
        except json.JSONDecodeError as e:
            raise FragmentFormatError(f"Invalid implementor list in {fragment_id or '<string>'}: {e}") from e
        entries[crate] = tuple(descriptor_to_record(trait_name, crate, d) for d in descriptors)

    return Fragment(entries=entries, source=fragment_id)


def parse_implementors_file(path: str | Path, docs_root: str | Path | None = None) -> Fragment:
    """Read and parse a fragment file, taking the trait from its path."""
    p = Path(path)
    fragment_id = str(p.relative_to(docs_root)) if docs_root else p.name
    return parse_implementors(p.read_text(encoding="utf-8"), trait_path_from_file(p), fragment_id)


def render_implementors(fragment: Fragment) -> str:
    """Render a fragment in the legacy self-executing format.

    Records that carry no rendered HTML fall back to their escaped
    constraint text, or a plain ``impl Trait for Type`` line.
    """
    lines = [FRAGMENT_HEADER]
    for crate, records in fragment.entries.items():
        descriptors = [_record_to_descriptor(r) for r in records]
        lines.append(
            f"implementors[{json.dumps(crate)}] = "
            f"{json.dumps(descriptors, ensure_ascii=False, separators=(',', ':'))};"
        )
    lines.append(FRAGMENT_FOOTER)
    return "\n".join(lines)


def _record_to_descriptor(record: ImplementorRecord) -> dict[str, Any]:
    text = record.rendered
    if not text:
        plain = record.constraint_text or (
            f"impl {record.trait_name.rsplit('::', 1)[-1]} for {record.short_type}"
        )
        text = html.escape(plain, quote=False)
    return {
        "text": text,
        "synthetic": record.synthetic,
        "types": [record.implementing_type],
    }


# ── Sidebar items ────────────────────────────────────────────────────


def parse_sidebar(source: str, crate: str) -> SidebarIndex:
    """Parse an ``initSidebarItems({...});`` payload for ``crate``."""
    match = _SIDEBAR_RE.match(source)
    if not match:
        raise FragmentFormatError(f"Not a sidebar-items payload for crate '{crate}'")
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise FragmentFormatError(f"Invalid sidebar items for crate '{crate}': {e}") from e
    if not isinstance(data, dict):
        raise FragmentFormatError(f"Sidebar items for crate '{crate}' must be an object")

    items: dict[str, tuple[SidebarItem, ...]] = {}
    for kind, entries in data.items():
        parsed = []
        for entry in entries or []:
            if isinstance(entry, list) and entry:
                description = entry[1] if len(entry) > 1 else ""
                parsed.append(SidebarItem(symbol_name=str(entry[0]), description=str(description or "")))
            elif isinstance(entry, str):
                parsed.append(SidebarItem(symbol_name=entry))
        items[kind] = tuple(parsed)
    return SidebarIndex(crate=crate, items=items)


def parse_sidebar_file(path: str | Path) -> SidebarIndex:
    """Parse ``<crate>/sidebar-items.js``; the crate is the parent directory."""
    p = Path(path)
    return parse_sidebar(p.read_text(encoding="utf-8"), p.parent.name)
