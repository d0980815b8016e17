"""Table session routes: create, read, allocate (value / percentage), upload, export, delete."""

from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from pathlib import Path

from fastapi import APIRouter, Body, File, HTTPException, Response, UploadFile
from fastapi.responses import StreamingResponse

from app.config import UPLOAD_SUFFIXES
from app.schemas import (
    FlatRowsResponse,
    PercentageAllocationRequest,
    TableCreateRequest,
    TableSessionResponse,
    ValueAllocationRequest,
)
from app.services.table_view import _flat_rows, _forest_from_specs, _table_data
from app.session import (
    TableSession,
    _create_session,
    _default_row_specs,
    _drop_session,
    _get_session,
)
from engine.core.nodes import Forest
from engine.io import forest_to_dataframe, read_rows_tabular
from engine.services.allocation import allocate_percentage, allocate_value
from engine.services.hierarchy import grand_total

_log = logging.getLogger(__name__)

router = APIRouter()


def _session_response(session: TableSession) -> TableSessionResponse:
    return TableSessionResponse(
        session_id=session.session_id,
        created_at=session.created_at,
        revision=session.revision,
        table=_table_data(session.forest),
    )


@router.post("/api/sessions", response_model=TableSessionResponse)
def create_session(payload: TableCreateRequest | None = Body(default=None)) -> TableSessionResponse:
    try:
        if payload is None or payload.rows is None:
            forest = _forest_from_specs(_default_row_specs())
        else:
            forest = _forest_from_specs(payload.rows)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _session_response(_create_session(forest))


@router.get("/api/sessions/{session_id}", response_model=TableSessionResponse)
def get_session(session_id: str) -> TableSessionResponse:
    return _session_response(_get_session(session_id))


@router.delete("/api/sessions/{session_id}")
def delete_session(session_id: str) -> dict[str, str]:
    _drop_session(session_id)
    return {"status": "ok"}


@router.get("/api/sessions/{session_id}/rows/flat", response_model=FlatRowsResponse)
def get_flat_rows(session_id: str) -> FlatRowsResponse:
    session = _get_session(session_id)
    forest = session.forest
    return FlatRowsResponse(
        session_id=session_id,
        revision=session.revision,
        rows=_flat_rows(forest),
        grand_total=grand_total(forest),
    )


# ── Allocation actions ─────────────────────────────────────────────────────

def _apply(session: TableSession, forest: Forest) -> None:
    # Unknown row ids leave the table (and its revision) untouched.
    if forest != session.forest:
        session.forest = forest
        session.revision += 1


@router.post("/api/sessions/{session_id}/rows/{row_id}/value", response_model=TableSessionResponse)
def allocate_row_value(
    session_id: str, row_id: str, req: ValueAllocationRequest,
) -> TableSessionResponse:
    session = _get_session(session_id)
    with session.lock:
        _apply(session, allocate_value(session.forest, row_id, req.value))
        return _session_response(session)


@router.post("/api/sessions/{session_id}/rows/{row_id}/percentage", response_model=TableSessionResponse)
def allocate_row_percentage(
    session_id: str, row_id: str, req: PercentageAllocationRequest,
) -> TableSessionResponse:
    session = _get_session(session_id)
    with session.lock:
        _apply(session, allocate_percentage(session.forest, row_id, req.percentage))
        return _session_response(session)


# ── Upload / export ────────────────────────────────────────────────────────

@router.post("/api/sessions/{session_id}/upload", response_model=TableSessionResponse)
async def upload_rows(session_id: str, file: UploadFile = File(...)) -> TableSessionResponse:
    session = _get_session(session_id)

    raw_filename = file.filename or "rows.csv"
    suffix = Path(raw_filename).suffix.lower()
    if suffix not in UPLOAD_SUFFIXES:
        raise HTTPException(status_code=400, detail="Only .csv/.xlsx/.xls files are supported")

    content = await file.read()
    try:
        forest = _forest_from_specs(read_rows_tabular(BytesIO(content), suffix=suffix))
    except (ValueError, zipfile.BadZipFile) as exc:
        raise HTTPException(status_code=400, detail=f"Could not read {Path(raw_filename).name}: {exc}")

    with session.lock:
        session.forest = forest
        session.revision += 1
        _log.info("Replaced table of session %s from %s", session_id, Path(raw_filename).name)
        return _session_response(session)


@router.get("/api/sessions/{session_id}/export")
def export_rows(session_id: str, format: str = "csv") -> Response:
    session = _get_session(session_id)
    df = forest_to_dataframe(session.forest)

    if format == "csv":
        return Response(
            content=df.to_csv(index=False),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="table_{session_id}.csv"'},
        )
    if format == "xlsx":
        buf = BytesIO()
        df.to_excel(buf, index=False, sheet_name="Rows", engine="openpyxl")
        buf.seek(0)
        return StreamingResponse(
            buf,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f'attachment; filename="table_{session_id}.xlsx"'},
        )
    raise HTTPException(status_code=400, detail="format must be 'csv' or 'xlsx'")
