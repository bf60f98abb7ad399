"""Registry data models — merge reports, counters and readiness."""

from __future__ import annotations

from dataclasses import dataclass, field


class RegistryStateError(RuntimeError):
    """Raised when the registry lifecycle is violated (e.g. initialized twice)."""


@dataclass
class MergeReport:
    """Outcome of merging a single fragment."""

    source: str = ""
    added: int = 0
    duplicates: int = 0
    dropped: int = 0
    rejected: bool = False  # Payload was not a Fragment at all

    @property
    def total(self) -> int:
        return self.added + self.duplicates + self.dropped


@dataclass
class RegistryStats:
    """Running counters over every merge the registry has performed."""

    fragments_merged: int = 0
    fragments_rejected: int = 0
    records: int = 0
    duplicates: int = 0
    dropped: int = 0
    sources: set[str] = field(default_factory=set)

    @property
    def distinct_sources(self) -> int:
        return len(self.sources)

    def absorb(self, report: MergeReport) -> None:
        if report.rejected:
            self.fragments_rejected += 1
            return
        self.fragments_merged += 1
        self.records += report.added
        self.duplicates += report.duplicates
        self.dropped += report.dropped
        if report.source:
            self.sources.add(report.source)


@dataclass
class ReadinessReport:
    """Whether the expected number of distinct fragments has been merged.

    The fragments themselves carry no completion signal, so ``expected``
    has to be supplied by the caller (usually from configuration).
    """

    received: int
    expected: int | None = None

    @property
    def ready(self) -> bool:
        return self.expected is not None and self.received >= self.expected

    @property
    def missing(self) -> int | None:
        if self.expected is None:
            return None
        return max(self.expected - self.received, 0)

    def summary(self) -> str:
        if self.expected is None:
            return f"{self.received} fragment source(s) merged, no expected count configured"
        status = "ready" if self.ready else f"waiting on {self.missing}"
        return f"{self.received}/{self.expected} fragment source(s) merged ({status})"
