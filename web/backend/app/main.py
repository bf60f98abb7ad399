"""FastAPI application serving a doc bundle's implementor and sidebar indexes.

Provides read-only REST endpoints for:
- Implementor queries (per trait, trait listing, merge stats)
- Sidebar lookups (per crate and item kind)
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docindex import __version__
from web.backend.app.routers import implementors, sidebar

app = FastAPI(
    title="docindex API",
    description=(
        "Read-only REST API over the merged implementor registry and the "
        "per-crate sidebar catalogs of a generated doc bundle."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(implementors.router)
app.include_router(sidebar.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "docindex API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
