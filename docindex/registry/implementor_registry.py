"""In-memory implementor registry.

Accumulates the records of every fragment delivered through a
``DeliveryChannel`` into a ``trait -> implementors`` mapping. Merging is
idempotent and the resulting set per trait does not depend on delivery
order; only the display order (first successful merge) does.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Iterator

from docindex.models.implementor import Fragment, ImplementorRecord
from docindex.registry.channel import DeliveryChannel
from docindex.registry.models import (
    MergeReport,
    ReadinessReport,
    RegistryStateError,
    RegistryStats,
)

logger = logging.getLogger(__name__)


class ImplementorSequence(Sequence):
    """Read-only view over one trait's implementors.

    The trait is looked up in the registry on every access, so the view is
    lazy, can be iterated any number of times and picks up records merged
    after it was created, including a trait's first records.
    """

    def __init__(self, trait_name: str, by_subject: Mapping[str, list[ImplementorRecord]]):
        self.trait_name = trait_name
        self._by_subject = by_subject

    def _records(self) -> Sequence[ImplementorRecord]:
        return self._by_subject.get(self.trait_name, ())

    def __getitem__(self, index):
        return self._records()[index]

    def __len__(self) -> int:
        return len(self._records())

    def __iter__(self) -> Iterator[ImplementorRecord]:
        return iter(self._records())

    def __repr__(self) -> str:
        return f"ImplementorSequence({self.trait_name!r}, {len(self)} records)"


class ImplementorRegistry:
    """Process-wide merge target for implementor fragments.

    Lifecycle: construct once, call ``initialize(channel)`` once, then merge
    and query for as long as the process lives.
    """

    def __init__(self) -> None:
        self._by_subject: dict[str, list[ImplementorRecord]] = {}
        self._seen: set[tuple[str, str, str, str]] = set()
        self._initialized = False
        self.stats = RegistryStats()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self, channel: DeliveryChannel) -> list[MergeReport]:
        """Install ``merge`` as the channel's entry point and drain its buffer.

        Buffered fragments are merged in arrival order through the same path
        used for live delivery. Returns one report per drained fragment.
        """
        if self._initialized:
            raise RegistryStateError("Registry is already initialized")
        channel.install(self.merge)
        self._initialized = True

        pending = channel.take_pending()
        if pending:
            logger.debug("Draining %d buffered fragment(s)", len(pending))
        return [self.merge(fragment) for fragment in pending]

    def merge(self, fragment: Any) -> MergeReport:
        """Merge every valid, unseen record of ``fragment``.

        Invalid records and crate entries that are not record lists are
        dropped and counted without affecting their siblings. Payloads that
        are not fragments, or whose entries are not a mapping, are rejected
        whole. Nothing here raises.
        """
        if not isinstance(fragment, Fragment) or not isinstance(fragment.entries, Mapping):
            report = MergeReport(rejected=True)
            logger.warning("Rejected malformed payload of type %s", type(fragment).__name__)
            self.stats.absorb(report)
            return report

        source = fragment.source if isinstance(fragment.source, str) else ""
        report = MergeReport(source=source)
        identities: list[tuple[str, str, str, str]] = []
        try:
            for records in fragment.entries.values():
                if not isinstance(records, (list, tuple)):
                    report.dropped += 1
                    continue
                for record in records:
                    if not isinstance(record, ImplementorRecord) or not record.is_valid:
                        report.dropped += 1
                        continue
                    key = record.identity
                    identities.append(key)
                    if key in self._seen:
                        report.duplicates += 1
                        continue
                    self._seen.add(key)
                    self._by_subject.setdefault(record.trait_name, []).append(record)
                    report.added += 1
        finally:
            if not report.source:
                report.source = _content_id(identities)
            self.stats.absorb(report)

        if report.dropped:
            logger.warning(
                "Dropped %d malformed record(s) from fragment %s",
                report.dropped,
                source or "<unnamed>",
            )
        logger.debug(
            "Merged fragment %s: %d of %d record(s) added, %d duplicate(s)",
            source or "<unnamed>",
            report.added,
            report.total,
            report.duplicates,
        )
        return report

    def query(self, trait_name: str) -> ImplementorSequence:
        """Return the implementors of ``trait_name`` (empty if unknown)."""
        return ImplementorSequence(trait_name, self._by_subject)

    def traits(self) -> list[str]:
        return sorted(self._by_subject)

    def resolve_trait(self, name: str) -> list[str]:
        """Match a full or short trait name (``Display``) against known traits."""
        if name in self._by_subject:
            return [name]
        return [t for t in self.traits() if t.rsplit("::", 1)[-1] == name]

    def crates_for(self, trait_name: str) -> list[str]:
        crates: list[str] = []
        for record in self._by_subject.get(trait_name, []):
            if record.owning_crate not in crates:
                crates.append(record.owning_crate)
        return crates

    def implementors_in_crate(self, crate: str) -> list[ImplementorRecord]:
        """Every record owned by ``crate``, across all traits."""
        return [
            record
            for records in self._by_subject.values()
            for record in records
            if record.owning_crate == crate
        ]

    def readiness(self, expected_fragments: int | None = None) -> ReadinessReport:
        """Compare distinct fragments merged so far against ``expected_fragments``.

        Fragments are told apart by ``source``; fragments without one count
        by a digest of their valid records.
        """
        return ReadinessReport(
            received=self.stats.distinct_sources, expected=expected_fragments
        )

    def __len__(self) -> int:
        return len(self._seen)


def _content_id(identities: list[tuple[str, str, str, str]]) -> str:
    """Stable id for a fragment without a source, derived from its records."""
    digest = hashlib.sha1(repr(sorted(set(identities))).encode("utf-8")).hexdigest()
    return f"content:{digest[:16]}"
