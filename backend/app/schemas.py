"""Pydantic models defining the REST contract between frontend and backend.

JSON keys are camelCase (``originalValue``, ``grandTotal``); the models also
accept snake_case on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Table construction ──────────────────────────────────────────────────────

class RowSpec(_ApiModel):
    """One row of the construction input; nest ``children`` for subtotals."""
    id: str
    label: str | None = None
    value: float | None = Field(default=None, allow_inf_nan=False)
    original_value: float | None = Field(default=None, allow_inf_nan=False)
    is_subtotal: bool | None = None
    children: list[RowSpec] = Field(default_factory=list)


class TableCreateRequest(_ApiModel):
    # None → seed with the sample dataset
    rows: list[RowSpec] | None = None


# ── Table rows ──────────────────────────────────────────────────────────────

class HierarchicalRow(_ApiModel):
    id: str
    label: str
    value: float
    original_value: float
    parent_id: str | None = None
    level: int = 0
    is_subtotal: bool = False
    variance: float | None = None
    children: list[HierarchicalRow] = Field(default_factory=list)


class FlatRow(_ApiModel):
    id: str
    label: str
    value: float
    original_value: float
    parent_id: str | None = None
    level: int = 0
    is_subtotal: bool = False
    has_children: bool = False
    variance: float | None = None


class TableData(_ApiModel):
    rows: list[HierarchicalRow]
    grand_total: float


class TableSessionResponse(_ApiModel):
    session_id: str
    created_at: str
    revision: int
    table: TableData


class FlatRowsResponse(_ApiModel):
    session_id: str
    revision: int
    rows: list[FlatRow]
    grand_total: float


# ── Allocation actions ──────────────────────────────────────────────────────

class ValueAllocationRequest(_ApiModel):
    value: float = Field(allow_inf_nan=False)


class PercentageAllocationRequest(_ApiModel):
    percentage: float = Field(allow_inf_nan=False)
