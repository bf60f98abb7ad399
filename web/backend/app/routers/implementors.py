"""Implementors router -- read-only queries against the merged registry."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from docindex.models.implementor import ImplementorRecord
from docindex.utils.docs_loader import DocsIndex
from web.backend.app.dependencies import get_docs_index
from web.backend.app.models.api import (
    ImplementorListResponse,
    ImplementorResponse,
    RegistryStatsResponse,
    TraitSummaryResponse,
)

router = APIRouter(prefix="/api/implementors", tags=["implementors"])


def _record_to_response(record: ImplementorRecord) -> ImplementorResponse:
    return ImplementorResponse(
        trait_name=record.trait_name,
        implementing_type=record.implementing_type,
        owning_crate=record.owning_crate,
        constraint_text=record.constraint_text,
        synthetic=record.synthetic,
    )


@router.get(
    "",
    response_model=list[TraitSummaryResponse],
    summary="List traits with implementors",
)
async def list_traits(index: DocsIndex = Depends(get_docs_index)):
    """List every trait that has at least one recorded implementor."""
    registry = index.registry
    return [
        TraitSummaryResponse(
            trait_name=name,
            implementor_count=len(registry.query(name)),
            crates=registry.crates_for(name),
        )
        for name in registry.traits()
    ]


@router.get(
    "/stats",
    response_model=RegistryStatsResponse,
    summary="Merge counters and readiness",
)
async def registry_stats(
    expected: Optional[int] = Query(None, ge=0, description="Expected fragment count"),
    index: DocsIndex = Depends(get_docs_index),
):
    """Return merge counters; readiness uses ``expected`` or the configured count."""
    s = index.registry.stats
    readiness = index.registry.readiness(
        expected if expected is not None else index.expected_fragments
    )
    return RegistryStatsResponse(
        fragments_merged=s.fragments_merged,
        fragments_rejected=s.fragments_rejected,
        distinct_sources=s.distinct_sources,
        records=s.records,
        duplicates=s.duplicates,
        dropped=s.dropped,
        expected_fragments=readiness.expected,
        ready=readiness.ready,
        failed_files=index.load_report.failed,
    )


@router.get(
    "/{trait_name}",
    response_model=ImplementorListResponse,
    summary="Implementors of a trait",
)
async def get_implementors(
    trait_name: str,
    crate: Optional[str] = Query(None, description="Only implementors owned by this crate"),
    index: DocsIndex = Depends(get_docs_index),
):
    """Return a trait's implementors in merge order. Unknown traits yield an empty list."""
    records = [
        r
        for r in index.registry.query(trait_name)
        if crate is None or r.owning_crate == crate
    ]
    return ImplementorListResponse(
        trait_name=trait_name,
        implementors=[_record_to_response(r) for r in records],
        total_count=len(records),
    )
