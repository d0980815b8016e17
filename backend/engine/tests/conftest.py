"""Shared pytest fixtures for engine and API integration tests.

Provides:
- test_client: session-scoped FastAPI TestClient with lifespan handling
- session_id: per-test table session (sample rows) with automatic cleanup
- electronics_forest: the Electronics → {Phones, Laptops} table, initialized
- make_rows_csv / make_rows_excel: in-memory flat-row uploads
- SAMPLE_FLAT_ROWS: flat equivalent of the sample dataset
"""

from __future__ import annotations

import io
from typing import Any

import pandas as pd
import pytest
from starlette.testclient import TestClient

import app.state as state
from app.main import app
from engine.core.nodes import build_forest
from engine.services.hierarchy import initialize


# ── TestClient ─────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def test_client():
    """Session-scoped TestClient; triggers app lifespan."""
    with TestClient(app) as client:
        yield client


# ── Session management ─────────────────────────────────────────────────────

@pytest.fixture()
def session_id(test_client: TestClient):
    """Create a fresh table session from the sample rows, clean up on teardown."""
    resp = test_client.post("/api/sessions")
    assert resp.status_code == 200
    sid = resp.json()["sessionId"]
    yield sid
    state._TABLES.pop(sid, None)


# ── Engine fixtures ────────────────────────────────────────────────────────

ELECTRONICS_SPECS: list[dict[str, Any]] = [
    {
        "id": "electronics",
        "label": "Electronics",
        "value": 0,
        "originalValue": 1500,
        "isSubtotal": True,
        "children": [
            {"id": "phones", "label": "Phones", "value": 800, "originalValue": 800},
            {"id": "laptops", "label": "Laptops", "value": 700, "originalValue": 700},
        ],
    },
]


@pytest.fixture()
def electronics_forest():
    return initialize(build_forest(ELECTRONICS_SPECS))


# ── Flat-row uploads ───────────────────────────────────────────────────────

SAMPLE_FLAT_ROWS: list[dict[str, Any]] = [
    {"id": "electronics", "label": "Electronics", "parent_id": "", "value": "", "original_value": "1500"},
    {"id": "phones", "label": "Phones", "parent_id": "electronics", "value": "800", "original_value": "800"},
    {"id": "laptops", "label": "Laptops", "parent_id": "electronics", "value": "700", "original_value": "700"},
    {"id": "furniture", "label": "Furniture", "parent_id": "", "value": "", "original_value": "1000"},
    {"id": "tables", "label": "Tables", "parent_id": "furniture", "value": "300", "original_value": "300"},
    {"id": "chairs", "label": "Chairs", "parent_id": "furniture", "value": "700", "original_value": "700"},
]


def make_rows_csv(rows: list[dict[str, Any]] | None = None) -> io.BytesIO:
    df = pd.DataFrame(rows if rows is not None else SAMPLE_FLAT_ROWS)
    buf = io.BytesIO(df.to_csv(index=False).encode("utf-8"))
    buf.seek(0)
    return buf


def make_rows_excel(rows: list[dict[str, Any]] | None = None) -> io.BytesIO:
    df = pd.DataFrame(rows if rows is not None else SAMPLE_FLAT_ROWS)
    buf = io.BytesIO()
    df.to_excel(buf, index=False, engine="openpyxl")
    buf.seek(0)
    return buf
