"""User allocation actions: direct value ("Allocation Val") and percentage ("Allocation %").

Each action is one ``set_value`` followed by one ``recompute_subtotals`` so the
returned forest satisfies the subtotal invariant again.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from engine.core.nodes import Forest, Node, find_node
from engine.services.hierarchy import recompute_subtotals, set_value

_log = logging.getLogger(__name__)


def percentage_to_value(current: float, percentage: float) -> float:
    """Value after increasing ``current`` by ``percentage`` percent (negative decreases)."""
    return current + current * percentage / 100


def allocate_value(forest: Sequence[Node], row_id: str, value: float) -> Forest:
    """Set ``row_id`` to ``value`` and re-derive every subtotal."""
    if find_node(forest, row_id) is None:
        _log.warning("Allocation ignored: row '%s' does not exist", row_id)
        return forest
    updated = recompute_subtotals(set_value(forest, row_id, value))
    _log.info("Allocated value %s to row '%s'", value, row_id)
    return updated


def allocate_percentage(forest: Sequence[Node], row_id: str, percentage: float) -> Forest:
    """Increase ``row_id`` by ``percentage`` percent of its current value."""
    node = find_node(forest, row_id)
    if node is None:
        _log.warning("Percentage allocation ignored: row '%s' does not exist", row_id)
        return forest
    return allocate_value(forest, row_id, percentage_to_value(node.value, percentage))
