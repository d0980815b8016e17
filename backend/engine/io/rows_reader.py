"""Flat tabular rows (one row per node, ``parent_id`` back-reference) ↔ nested row specs.

Expected columns (header case / spacing is normalised)::

    id | label | parent_id | value | original_value | is_subtotal

``id`` and ``value`` are required; the rest are optional. A blank
``parent_id`` marks a root. Row order fixes sibling order. Values of
interior rows are placeholders (``initialize`` derives them) and may be
blank.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, BinaryIO

import numpy as np
import pandas as pd

from engine.core.nodes import Node, flatten_hierarchy
from engine.io._utils import norm_id, norm_token, parse_bool, slugify_column_name

REQUIRED_COLUMNS = ("id", "value")
OPTIONAL_COLUMNS = ("label", "parent_id", "original_value", "is_subtotal")

_COLUMN_ALIASES = {
    "parentid": "parent_id",
    "parent": "parent_id",
    "originalvalue": "original_value",
    "baseline": "original_value",
    "issubtotal": "is_subtotal",
    "name": "label",
}

EXPORT_COLUMNS = [
    "id",
    "label",
    "parent_id",
    "level",
    "is_subtotal",
    "value",
    "original_value",
    "variance",
]


def _normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    renamed = {}
    for col in df.columns:
        slug = slugify_column_name(col)
        renamed[col] = _COLUMN_ALIASES.get(slug, slug)
    out = df.rename(columns=renamed)
    if out.columns.duplicated().any():
        dupes = sorted(set(out.columns[out.columns.duplicated()]))
        raise ValueError(f"Duplicate columns after normalisation: {dupes}")
    return out


def _numeric_column(df: pd.DataFrame, col: str, ids: list[str]) -> list[float | None]:
    if col not in df.columns:
        return [None] * len(df)

    raw = df[col]
    numeric = pd.to_numeric(raw, errors="coerce")
    blank = raw.map(lambda v: norm_token(v) is None)
    bad = numeric.isna() & ~blank
    if bad.any():
        row_id = ids[int(np.flatnonzero(bad.to_numpy())[0])]
        raise ValueError(f"Row '{row_id}': {col} is not numeric")

    arr = numeric.to_numpy(dtype=float, na_value=np.nan)
    infinite = np.isinf(arr)
    if infinite.any():
        row_id = ids[int(np.flatnonzero(infinite)[0])]
        raise ValueError(f"Row '{row_id}': {col} must be finite")
    return [None if np.isnan(v) else float(v) for v in arr]


def read_rows_dataframe(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a flat DataFrame into nested row specs for ``build_forest``.

    Raises ValueError on missing columns, blank / duplicate ids, unknown
    parents, parent cycles and non-numeric or non-finite values.
    """
    df = _normalise_columns(df)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing} (found {list(df.columns)})")
    if df.empty:
        raise ValueError("No rows found")

    ids: list[str] = []
    for pos, raw in enumerate(df["id"].tolist()):
        token = norm_id(raw)
        if token is None:
            raise ValueError(f"Row {pos + 1} has a blank id")
        ids.append(token)
    seen: set[str] = set()
    for row_id in ids:
        if row_id in seen:
            raise ValueError(f"Duplicate row id '{row_id}'")
        seen.add(row_id)

    parents = (
        [norm_id(v) for v in df["parent_id"].tolist()]
        if "parent_id" in df.columns
        else [None] * len(df)
    )
    for row_id, parent in zip(ids, parents):
        if parent is not None and parent not in seen:
            raise ValueError(f"Row '{row_id}' references unknown parent '{parent}'")

    labels = (
        [norm_token(v) for v in df["label"].tolist()]
        if "label" in df.columns
        else [None] * len(df)
    )
    values = _numeric_column(df, "value", ids)
    originals = _numeric_column(df, "original_value", ids)
    subtotals = (
        [parse_bool(v) for v in df["is_subtotal"].tolist()]
        if "is_subtotal" in df.columns
        else [None] * len(df)
    )

    specs: dict[str, dict[str, Any]] = {}
    by_parent: dict[str | None, list[str]] = {}
    for row_id, parent, label, value, original, subtotal in zip(
        ids, parents, labels, values, originals, subtotals,
    ):
        spec: dict[str, Any] = {"id": row_id, "label": label or row_id}
        if value is not None:
            spec["value"] = value
        if original is not None:
            spec["originalValue"] = original
        if subtotal is not None:
            spec["isSubtotal"] = subtotal
        specs[row_id] = spec
        by_parent.setdefault(parent, []).append(row_id)

    placed = 0

    def _assemble(row_id: str) -> dict[str, Any]:
        nonlocal placed
        placed += 1
        spec = specs[row_id]
        child_ids = by_parent.get(row_id, [])
        if child_ids:
            spec["children"] = [_assemble(cid) for cid in child_ids]
        elif "value" not in spec and "originalValue" not in spec:
            raise ValueError(f"Leaf row '{row_id}' has no value")
        return spec

    roots = [_assemble(rid) for rid in by_parent.get(None, [])]
    if placed != len(ids):
        orphaned = sorted(set(ids) - _reachable(by_parent))
        raise ValueError(f"Rows not reachable from any root (parent cycle?): {orphaned}")
    return roots


def _reachable(by_parent: dict[str | None, list[str]]) -> set[str]:
    out: set[str] = set()
    stack = list(by_parent.get(None, []))
    while stack:
        rid = stack.pop()
        out.add(rid)
        stack.extend(by_parent.get(rid, []))
    return out


def read_rows_tabular(
    source: str | Path | BinaryIO,
    suffix: str | None = None,
) -> list[dict[str, Any]]:
    """Read a ``.csv`` / ``.xlsx`` / ``.xls`` file of flat rows into nested specs.

    ``source`` is a path or a binary buffer; buffers need an explicit ``suffix``.
    """
    if suffix is None:
        if not isinstance(source, (str, Path)):
            raise ValueError("suffix is required when reading from a buffer")
        suffix = Path(source).suffix
    suffix = suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    elif suffix in {".xlsx", ".xls"}:
        df = pd.read_excel(source, dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"Unsupported file type '{suffix}' (expected .csv, .xlsx or .xls)")
    return read_rows_dataframe(df)


def forest_to_dataframe(forest: Sequence[Node]) -> pd.DataFrame:
    """One row per node in display order (pre-order)."""
    records = [
        {
            "id": node.id,
            "label": node.label,
            "parent_id": node.parent_id,
            "level": node.level,
            "is_subtotal": node.is_subtotal,
            "value": node.value,
            "original_value": node.original_value,
            "variance": node.variance,
        }
        for node in flatten_hierarchy(forest)
    ]
    return pd.DataFrame.from_records(records, columns=EXPORT_COLUMNS)
