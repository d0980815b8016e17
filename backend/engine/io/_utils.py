"""Shared IO utilities for header and cell normalisation."""

from __future__ import annotations

import re
from typing import Any

import pandas as pd


def slugify_column_name(value: Any) -> str:
    """``"Parent ID"`` → ``"parent_id"``; empty headers become ``"column"``."""
    s = str(value).strip()
    # camelCase → snake_case before lower-casing
    s = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", s).lower()
    s = re.sub(r"[^0-9a-z]+", "_", s).strip("_")
    return s or "column"


def norm_token(value: Any) -> str | None:
    """Normalise a cell value to a stripped string, or None if blank/NaN."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if value is pd.NA:
        return None
    s = str(value).strip()
    return s if s else None


def norm_id(value: Any) -> str | None:
    """Like ``norm_token`` but integral floats lose their ``.0`` (``1.0`` → ``"1"``).

    pandas stores an integer id column with blanks as float64.
    """
    if isinstance(value, float) and not pd.isna(value) and value.is_integer():
        return str(int(value))
    return norm_token(value)


def parse_bool(value: Any) -> bool | None:
    """Parse ``true/false/1/0/yes/no`` cells; blank → None."""
    token = norm_token(value)
    if token is None:
        return None
    folded = token.lower()
    if folded in {"true", "1", "1.0", "yes", "y", "x"}:
        return True
    if folded in {"false", "0", "0.0", "no", "n"}:
        return False
    raise ValueError(f"Cannot interpret {value!r} as a boolean")
