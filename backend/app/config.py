"""Application constants: sample dataset and environment-driven settings."""

from __future__ import annotations

import os
from pathlib import Path

# Seeds a new session when the client sends no rows. Interior values are
# placeholders; initialize() derives them from the leaves.
SAMPLE_ROWS: list[dict] = [
    {
        "id": "electronics",
        "label": "Electronics",
        "value": 1500,
        "originalValue": 1500,
        "isSubtotal": True,
        "children": [
            {"id": "phones", "label": "Phones", "value": 800, "originalValue": 800},
            {"id": "laptops", "label": "Laptops", "value": 700, "originalValue": 700},
        ],
    },
    {
        "id": "furniture",
        "label": "Furniture",
        "value": 1000,
        "originalValue": 1000,
        "isSubtotal": True,
        "children": [
            {"id": "tables", "label": "Tables", "value": 300, "originalValue": 300},
            {"id": "chairs", "label": "Chairs", "value": 700, "originalValue": 700},
        ],
    },
]

# Optional CSV/Excel file used instead of SAMPLE_ROWS for new sessions.
_sample_path = os.environ.get("HIERTABLE_SAMPLE_PATH")
SAMPLE_PATH: Path | None = Path(_sample_path) if _sample_path else None

# Dev frontends (Vite / CRA ports). Extra origins, e.g. a packaged webview,
# come comma-separated in HIERTABLE_CORS_ORIGINS.
DEFAULT_CORS_ORIGINS = [
    "http://localhost:8080",
    "http://127.0.0.1:8080",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
CORS_ORIGINS = DEFAULT_CORS_ORIGINS + [
    o.strip() for o in os.environ.get("HIERTABLE_CORS_ORIGINS", "").split(",") if o.strip()
]

UPLOAD_SUFFIXES = (".csv", ".xlsx", ".xls")
