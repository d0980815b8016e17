"""Hierarchical row model: leaf / interior nodes and forest construction.

A forest is a plain ``tuple`` of root nodes. Nodes are frozen dataclasses;
every engine operation builds new nodes with ``dataclasses.replace`` and
shares the subtrees it did not touch, so earlier snapshots stay valid.

Construction input is a sequence of nested mappings (the JSON contract
consumed by the frontend)::

    build_forest([
        {"id": "electronics", "label": "Electronics", "originalValue": 1500,
         "children": [
             {"id": "phones", "label": "Phones", "value": 800},
             {"id": "laptops", "label": "Laptops", "value": 700},
         ]},
    ])

A spec whose ``children`` is absent or empty becomes a ``Leaf``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Union


@dataclass(frozen=True)
class Leaf:
    id: str
    label: str
    value: float
    original_value: float
    parent_id: str | None = None
    level: int = 0
    is_subtotal: bool = False
    variance: float | None = None

    @property
    def children(self) -> tuple[Node, ...]:
        return ()

    @property
    def is_leaf(self) -> bool:
        return True


@dataclass(frozen=True)
class Interior:
    id: str
    label: str
    value: float
    original_value: float
    children: tuple[Node, ...]
    parent_id: str | None = None
    level: int = 0
    is_subtotal: bool = True
    variance: float | None = None

    def __post_init__(self) -> None:
        if not self.children:
            raise ValueError(f"Interior row '{self.id}' needs at least one child; use Leaf instead.")

    @property
    def is_leaf(self) -> bool:
        return False


Node = Union[Leaf, Interior]
Forest = tuple[Node, ...]


# ── Spec helpers ────────────────────────────────────────────────────────────

# JSON contract (camelCase) → attribute name.
_SPEC_ALIASES = {
    "originalValue": "original_value",
    "parentId": "parent_id",
    "isSubtotal": "is_subtotal",
}


def _spec_get(spec: Mapping[str, Any], key: str) -> Any:
    if key in spec:
        return spec[key]
    for alias, canonical in _SPEC_ALIASES.items():
        if canonical == key and alias in spec:
            return spec[alias]
    return None


def _as_float(raw: Any, row_id: str, field_name: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Row '{row_id}': {field_name} must be numeric, got {raw!r}") from None


def _build_node(
    spec: Mapping[str, Any],
    parent_id: str | None,
    level: int,
    seen: set[str],
) -> Node:
    raw_id = spec.get("id")
    row_id = "" if raw_id is None else str(raw_id).strip()
    if not row_id:
        raise ValueError(f"Row at level {level} has no id (label={spec.get('label')!r})")
    if row_id in seen:
        raise ValueError(f"Duplicate row id '{row_id}'; ids must be unique across the whole table")
    seen.add(row_id)

    label = str(spec.get("label") or row_id)
    raw_value = _spec_get(spec, "value")
    raw_original = _spec_get(spec, "original_value")
    raw_subtotal = _spec_get(spec, "is_subtotal")
    raw_variance = _spec_get(spec, "variance")
    variance = None if raw_variance is None else _as_float(raw_variance, row_id, "variance")

    child_specs = spec.get("children") or ()
    if child_specs:
        children = tuple(_build_node(c, row_id, level + 1, seen) for c in child_specs)
        if raw_original is None:
            original = sum(c.original_value for c in children)
        else:
            original = _as_float(raw_original, row_id, "originalValue")
        # Placeholder until initialize() derives it from the children.
        value = original if raw_value is None else _as_float(raw_value, row_id, "value")
        return Interior(
            id=row_id,
            label=label,
            value=value,
            original_value=original,
            children=children,
            parent_id=parent_id,
            level=level,
            is_subtotal=True if raw_subtotal is None else bool(raw_subtotal),
            variance=variance,
        )

    if raw_value is None and raw_original is None:
        raise ValueError(f"Leaf row '{row_id}' needs a value or an originalValue")
    value = _as_float(raw_original if raw_value is None else raw_value, row_id, "value")
    original = value if raw_original is None else _as_float(raw_original, row_id, "originalValue")
    return Leaf(
        id=row_id,
        label=label,
        value=value,
        original_value=original,
        parent_id=parent_id,
        level=level,
        is_subtotal=False if raw_subtotal is None else bool(raw_subtotal),
        variance=variance,
    )


def build_forest(specs: Sequence[Mapping[str, Any]]) -> Forest:
    """Build an immutable forest from nested row specs.

    ``level`` and ``parent_id`` are derived from the nesting. Interior values
    are placeholders: call ``initialize`` to derive them.

    Raises ValueError on empty / duplicate ids and non-numeric values.
    """
    seen: set[str] = set()
    return tuple(_build_node(spec, None, 0, seen) for spec in specs)


def to_spec(node: Node) -> dict[str, Any]:
    """Nested mapping using the JSON contract field names."""
    out: dict[str, Any] = {
        "id": node.id,
        "label": node.label,
        "value": node.value,
        "originalValue": node.original_value,
        "level": node.level,
        "isSubtotal": node.is_subtotal,
    }
    if node.parent_id is not None:
        out["parentId"] = node.parent_id
    if node.variance is not None:
        out["variance"] = node.variance
    if node.children:
        out["children"] = [to_spec(c) for c in node.children]
    return out


# ── Traversal ───────────────────────────────────────────────────────────────

def iter_nodes(forest: Sequence[Node]) -> Iterator[Node]:
    """Pre-order walk (parent before children, siblings in order)."""
    for node in forest:
        yield node
        yield from iter_nodes(node.children)


def find_node(forest: Sequence[Node], row_id: str) -> Node | None:
    for node in iter_nodes(forest):
        if node.id == row_id:
            return node
    return None


def flatten_hierarchy(forest: Sequence[Node]) -> list[Node]:
    """Rows in display order, each carrying its depth in ``level``."""

    def _walk(items: Sequence[Node], level: int) -> Iterator[Node]:
        for item in items:
            yield item if item.level == level else _with_level(item, level)
            yield from _walk(item.children, level + 1)

    return list(_walk(forest, 0))


def _with_level(node: Node, level: int) -> Node:
    return replace(node, level=level)
