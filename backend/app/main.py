"""
HierTable backend – FastAPI service for hierarchical allocation tables.

=== ROLE IN THE SYSTEM ===
Holds the current snapshot of each table session and applies the two user
actions of the grid frontend ("Allocation Val" and "Allocation %") through the
hierarchy engine (engine.services). The frontend only renders what these
routes return; it never recomputes subtotals itself.

=== ROUTES ===
  GET    /api/health                                    → liveness probe
  POST   /api/sessions                                  → create table (sample rows or posted rows)
  GET    /api/sessions/{id}                             → current table + grand total
  DELETE /api/sessions/{id}                             → drop the session
  GET    /api/sessions/{id}/rows/flat                   → display-ordered rows (no nesting)
  POST   /api/sessions/{id}/rows/{row_id}/value         → direct value allocation
  POST   /api/sessions/{id}/rows/{row_id}/percentage    → percentage allocation
  POST   /api/sessions/{id}/upload                      → replace rows from CSV/Excel
  GET    /api/sessions/{id}/export?format=csv|xlsx      → flat export

=== LIMITATIONS ===
- Sessions live in process memory and vanish on restart.
- One process only: the per-session lock does not cover multi-worker uvicorn.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.state as state
from app.config import CORS_ORIGINS
from app.routers.tables import router as tables_router

_log = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    _log.info("HierTable backend starting")
    yield
    _log.info("HierTable backend stopping, discarding %d sessions", len(state._TABLES))
    state._TABLES.clear()


app = FastAPI(title="HierTable", lifespan=_lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(tables_router)
