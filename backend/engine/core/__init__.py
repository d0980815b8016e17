"""Core domain objects: hierarchical rows and forest traversal."""

from engine.core.nodes import (
    Forest,
    Interior,
    Leaf,
    Node,
    build_forest,
    find_node,
    flatten_hierarchy,
    iter_nodes,
    to_spec,
)

__all__ = [
    "Forest",
    "Interior",
    "Leaf",
    "Node",
    "build_forest",
    "find_node",
    "flatten_hierarchy",
    "iter_nodes",
    "to_spec",
]
