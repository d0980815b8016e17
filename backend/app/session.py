"""In-memory table sessions (no persistence)."""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException

import app.state as state
from app.config import SAMPLE_PATH, SAMPLE_ROWS
from engine.core.nodes import Forest
from engine.io import read_rows_tabular

_log = logging.getLogger(__name__)


@dataclass
class TableSession:
    session_id: str
    created_at: str
    forest: Forest
    revision: int = 0
    # Serialises edits: one set_value + recompute at a time per session.
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


def _default_row_specs() -> list[dict[str, Any]]:
    if SAMPLE_PATH is not None:
        return read_rows_tabular(SAMPLE_PATH)
    return copy.deepcopy(SAMPLE_ROWS)


def _create_session(forest: Forest) -> TableSession:
    session = TableSession(
        session_id=str(uuid.uuid4()),
        created_at=datetime.now(timezone.utc).isoformat(),
        forest=forest,
    )
    state._TABLES[session.session_id] = session
    _log.info("Created table session %s (%d root rows)", session.session_id, len(forest))
    return session


def _get_session(session_id: str) -> TableSession:
    session = state._TABLES.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found. Create it first via POST /api/sessions")
    return session


def _drop_session(session_id: str) -> None:
    _get_session(session_id)
    state._TABLES.pop(session_id, None)
    _log.info("Dropped table session %s", session_id)
