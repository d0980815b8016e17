"""
Hierarchy engine: subtotal aggregation and proportional allocation.

Four pure operations over an immutable forest (see ``engine.core.nodes``):

    initialize(forest)                    interior values := sum of children (post-order)
    set_value(forest, row_id, new_value)  assign one row, rescale its direct children
    recompute_subtotals(forest)           interior values + variances from the leaves up
    variance_of(current, baseline)        % deviation from the baseline

``set_value`` only touches the target row and its direct children. Callers
run ``recompute_subtotals`` afterwards so every ancestor of the edited row is
re-derived (``engine.services.allocation`` wraps both steps).

Nothing here raises on well-formed input: an unknown row id, an all-zero
redistribution base and a zero baseline all degrade to "no visible change".
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import replace

from engine.config import VALUE_DECIMALS
from engine.core.nodes import Forest, Node

_log = logging.getLogger(__name__)


# ── Arithmetic helpers ───────────────────────────────────────────────────────

def variance_of(current: float, baseline: float) -> float:
    """Percentage deviation of ``current`` from ``baseline`` (0 for a zero baseline)."""
    if baseline == 0:
        return 0.0
    return (current - baseline) / baseline * 100


def subtotal_of(children: Sequence[Node]) -> float:
    return float(sum(child.value for child in children))


def grand_total(forest: Sequence[Node]) -> float:
    """Sum of the root rows."""
    return subtotal_of(forest)


def round_half_up(value: float, decimals: int = VALUE_DECIMALS) -> float:
    """Round halves towards +inf (``Math.round`` semantics, not banker's rounding)."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


# ── initialize ───────────────────────────────────────────────────────────────

def _initialize_node(node: Node) -> Node:
    if not node.children:
        return node
    children = tuple(_initialize_node(child) for child in node.children)
    return replace(node, value=subtotal_of(children), children=children)


def initialize(forest: Sequence[Node]) -> Forest:
    """Derive every interior value from its (initialized) children.

    Leaves and variances are left as they are. Runs once, when a table is built.
    """
    return tuple(_initialize_node(node) for node in forest)


# ── set_value ────────────────────────────────────────────────────────────────

def _redistribute(children: tuple[Node, ...], new_total: float, parent_id: str) -> tuple[Node, ...]:
    base = subtotal_of(children)
    if base <= 0:
        _log.warning(
            "Row '%s': children sum to %s, proportional redistribution skipped",
            parent_id, base,
        )
        return children

    ratio = new_total / base
    rescaled: list[Node] = []
    for child in children:
        # Variance is computed on the rounded value.
        value = round_half_up(child.value * ratio)
        rescaled.append(replace(child, value=value, variance=variance_of(value, child.original_value)))
    return tuple(rescaled)


def _assign(node: Node, new_value: float) -> Node:
    updated = replace(node, value=new_value, variance=variance_of(new_value, node.original_value))
    if node.children:
        updated = replace(updated, children=_redistribute(node.children, new_value, node.id))
    return updated


def _set_in(items: Sequence[Node], target_id: str, new_value: float) -> tuple[Forest, bool]:
    out: list[Node] = []
    hit = False
    for item in items:
        if hit:
            out.append(item)
        elif item.id == target_id:
            out.append(_assign(item, new_value))
            hit = True
        elif item.children:
            children, hit = _set_in(item.children, target_id, new_value)
            out.append(replace(item, children=children) if hit else item)
        else:
            out.append(item)
    return tuple(out), hit


def set_value(forest: Sequence[Node], target_id: str, new_value: float) -> Forest:
    """Assign ``new_value`` to the row ``target_id``.

    An interior target rescales its direct children by ``new_value / S``
    where ``S`` is their current sum, each result rounded to ``VALUE_DECIMALS``
    places. When ``S <= 0`` the children are left alone. Grandchildren are
    never touched. An unknown ``target_id`` returns the input forest object itself.
    Rows off the target's path are shared with the input.
    """
    updated, hit = _set_in(forest, target_id, new_value)
    if not hit:
        _log.debug("Row '%s' not found, set_value is a no-op", target_id)
        return forest
    return updated


# ── recompute_subtotals ──────────────────────────────────────────────────────

def _recompute_node(node: Node) -> Node:
    if not node.children:
        return node
    children = tuple(_recompute_node(child) for child in node.children)
    subtotal = subtotal_of(children)
    return replace(
        node,
        value=subtotal,
        variance=variance_of(subtotal, node.original_value),
        children=children,
    )


def recompute_subtotals(forest: Sequence[Node]) -> Forest:
    """Re-derive every interior value and variance bottom-up. Idempotent."""
    return tuple(_recompute_node(node) for node in forest)
