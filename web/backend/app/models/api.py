"""Pydantic models for API response serialization.

These models mirror the docindex dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Implementor models
# ---------------------------------------------------------------------------


class ImplementorResponse(BaseModel):
    """Mirrors docindex.models.implementor.ImplementorRecord."""

    trait_name: str
    implementing_type: str
    owning_crate: str = ""
    constraint_text: str = ""
    synthetic: bool = False


class ImplementorListResponse(BaseModel):
    trait_name: str
    implementors: list[ImplementorResponse] = Field(default_factory=list)
    total_count: int = 0


class TraitSummaryResponse(BaseModel):
    trait_name: str
    implementor_count: int = 0
    crates: list[str] = Field(default_factory=list)


class RegistryStatsResponse(BaseModel):
    """Mirrors docindex.registry.models.RegistryStats plus readiness."""

    fragments_merged: int = 0
    fragments_rejected: int = 0
    distinct_sources: int = 0
    records: int = 0
    duplicates: int = 0
    dropped: int = 0
    expected_fragments: Optional[int] = None
    ready: bool = False
    failed_files: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Sidebar models
# ---------------------------------------------------------------------------


class SidebarItemResponse(BaseModel):
    symbol_name: str
    description: str = ""


class SidebarKindResponse(BaseModel):
    crate: str
    kind: str
    items: list[SidebarItemResponse] = Field(default_factory=list)
