"""
Global mutable state shared across the application.

All modules access these via ``import app.state as state`` and then
``state._TABLES`` so that rebinding (e.g. in tests) is visible everywhere.
"""

from __future__ import annotations

# Live table sessions keyed by session id; in-memory only.
_TABLES: dict = {}
