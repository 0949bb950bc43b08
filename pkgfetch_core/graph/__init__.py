"""Dependency graph model and file codec."""

from .io import GRAPH_SCHEMA, GRAPH_SCHEMA_VERSION, graph_from_dict, graph_to_dict, read_graph_file, write_graph_file
from .models import (
    DependencyGraph,
    LookupEntry,
    NodeState,
    NodeType,
    PkgNode,
    VersionedPkg,
    find_unresolved_nodes,
    has_unresolved_nodes,
)

__all__ = [
    "DependencyGraph",
    "LookupEntry",
    "NodeState",
    "NodeType",
    "PkgNode",
    "VersionedPkg",
    "find_unresolved_nodes",
    "has_unresolved_nodes",
    "GRAPH_SCHEMA",
    "GRAPH_SCHEMA_VERSION",
    "graph_from_dict",
    "graph_to_dict",
    "read_graph_file",
    "write_graph_file",
]
