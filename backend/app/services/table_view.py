"""Engine forest ↔ REST models."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from app.schemas import FlatRow, HierarchicalRow, RowSpec, TableData
from engine.core.nodes import Forest, Node, build_forest, flatten_hierarchy
from engine.services.hierarchy import grand_total, initialize


def _row_from_node(node: Node) -> HierarchicalRow:
    return HierarchicalRow(
        id=node.id,
        label=node.label,
        value=node.value,
        original_value=node.original_value,
        parent_id=node.parent_id,
        level=node.level,
        is_subtotal=node.is_subtotal,
        variance=node.variance,
        children=[_row_from_node(child) for child in node.children],
    )


def _table_data(forest: Sequence[Node]) -> TableData:
    return TableData(
        rows=[_row_from_node(node) for node in forest],
        grand_total=grand_total(forest),
    )


def _flat_rows(forest: Sequence[Node]) -> list[FlatRow]:
    return [
        FlatRow(
            id=node.id,
            label=node.label,
            value=node.value,
            original_value=node.original_value,
            parent_id=node.parent_id,
            level=node.level,
            is_subtotal=node.is_subtotal,
            has_children=bool(node.children),
            variance=node.variance,
        )
        for node in flatten_hierarchy(forest)
    ]


def _spec_from_row(row: RowSpec) -> dict[str, Any]:
    spec = row.model_dump(by_alias=True, exclude_none=True, exclude={"children"})
    if row.children:
        spec["children"] = [_spec_from_row(child) for child in row.children]
    return spec


def _forest_from_specs(specs: Sequence[RowSpec | Mapping[str, Any]]) -> Forest:
    """Build and initialize a forest. Raises ValueError on malformed rows."""
    raw = [_spec_from_row(s) if isinstance(s, RowSpec) else s for s in specs]
    return initialize(build_forest(raw))
