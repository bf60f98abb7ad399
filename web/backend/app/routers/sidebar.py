"""Sidebar router -- per-crate symbol catalogs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from docindex.utils.docs_loader import DocsIndex
from web.backend.app.dependencies import get_docs_index
from web.backend.app.models.api import SidebarItemResponse, SidebarKindResponse

router = APIRouter(prefix="/api/sidebar", tags=["sidebar"])


@router.get("", response_model=list[str], summary="List crates with sidebar indexes")
async def list_crates(index: DocsIndex = Depends(get_docs_index)):
    return index.sidebars.crates


@router.get(
    "/{crate}/{kind}",
    response_model=SidebarKindResponse,
    summary="Sidebar items of one kind",
)
async def get_sidebar_items(crate: str, kind: str, index: DocsIndex = Depends(get_docs_index)):
    """Return a crate's sidebar items of ``kind`` (``fn``, ``struct``, ...)."""
    if index.sidebars.get(crate) is None:
        raise HTTPException(status_code=404, detail=f"Crate '{crate}' has no sidebar index")
    items = index.sidebars.lookup_by_crate_and_kind(crate, kind)
    return SidebarKindResponse(
        crate=crate,
        kind=kind,
        items=[
            SidebarItemResponse(symbol_name=i.symbol_name, description=i.description)
            for i in items
        ],
    )
