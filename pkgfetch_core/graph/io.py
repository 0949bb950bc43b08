"""JSON reader/writer for dependency graph files."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pkgfetch_core.errors import GraphError, GraphReadError, GraphWriteError

from .models import DependencyGraph, NodeState, NodeType, PkgNode, VersionedPkg

GRAPH_SCHEMA = "pkgfetch.graph"
GRAPH_SCHEMA_VERSION = "1.0"


def read_graph_file(path: str | Path) -> DependencyGraph:
    graph_path = Path(path)
    try:
        payload = json.loads(graph_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise GraphReadError(f"unable to read graph file '{graph_path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise GraphReadError(f"graph file '{graph_path}' is not valid JSON: {exc}") from exc
    try:
        return graph_from_dict(payload)
    except GraphReadError:
        raise
    except (GraphError, KeyError, TypeError, ValueError) as exc:
        raise GraphReadError(f"invalid graph file '{graph_path}': {exc}") from exc


def write_graph_file(graph: DependencyGraph, path: str | Path) -> Path:
    graph_path = Path(path)
    tmp_path = graph_path.with_name(f".{graph_path.name}.tmp")
    try:
        graph_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(graph_to_dict(graph), indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, graph_path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise GraphWriteError(f"unable to write graph file '{graph_path}': {exc}") from exc
    return graph_path


def graph_from_dict(payload: Any) -> DependencyGraph:
    if not isinstance(payload, dict):
        raise GraphReadError("graph document must be a JSON object")
    schema = payload.get("schema")
    if schema is not None and schema != GRAPH_SCHEMA:
        raise GraphReadError(f"unsupported graph schema: {schema!r}")
    nodes = payload.get("nodes")
    edges = payload.get("edges", [])
    if not isinstance(nodes, list) or not isinstance(edges, list):
        raise GraphReadError("graph document requires 'nodes' and 'edges' lists")

    graph = DependencyGraph()
    for raw in nodes:
        graph.add_node(_node_from_dict(raw))
    for edge in edges:
        if not isinstance(edge, (list, tuple)) or len(edge) != 2:
            raise GraphReadError(f"invalid edge entry: {edge!r}")
        graph.add_edge(int(edge[0]), int(edge[1]))
    return graph


def graph_to_dict(graph: DependencyGraph) -> dict[str, Any]:
    return {
        "schema": GRAPH_SCHEMA,
        "schema_version": GRAPH_SCHEMA_VERSION,
        "nodes": [_node_to_dict(node) for node in graph.all_nodes()],
        "edges": [[from_id, to_id] for from_id, to_id in graph.edges()],
    }


def _node_from_dict(raw: Any) -> PkgNode:
    if not isinstance(raw, dict):
        raise GraphReadError(f"invalid node entry: {raw!r}")
    pkg = raw.get("versioned_pkg")
    if not isinstance(pkg, dict) or not str(pkg.get("name") or "").strip():
        raise GraphReadError(f"node {raw.get('id')!r} is missing a package name")
    try:
        state = NodeState(str(raw.get("state") or NodeState.UNRESOLVED.value))
        node_type = NodeType(str(raw.get("type") or NodeType.RUN.value))
    except ValueError as exc:
        raise GraphReadError(f"node {raw.get('id')!r}: {exc}") from exc
    return PkgNode(
        id=int(raw["id"]),
        versioned_pkg=VersionedPkg(
            name=str(pkg["name"]).strip(),
            version=str(pkg.get("version") or ""),
            condition=str(pkg.get("condition") or ""),
            sversion=str(pkg.get("sversion") or ""),
            scondition=str(pkg.get("scondition") or ""),
        ),
        state=state,
        type=node_type,
        implicit=bool(raw.get("implicit", False)),
        rpm_path=str(raw.get("rpm_path") or ""),
        srpm_path=str(raw.get("srpm_path") or ""),
        spec_path=str(raw.get("spec_path") or ""),
        architecture=str(raw.get("architecture") or ""),
    )


def _node_to_dict(node: PkgNode) -> dict[str, Any]:
    pkg = node.versioned_pkg
    versioned: dict[str, str] = {"name": pkg.name}
    for key in ("version", "condition", "sversion", "scondition"):
        value = getattr(pkg, key)
        if value:
            versioned[key] = value
    return {
        "id": node.id,
        "versioned_pkg": versioned,
        "state": node.state.value,
        "type": node.type.value,
        "implicit": node.implicit,
        "rpm_path": node.rpm_path,
        "srpm_path": node.srpm_path,
        "spec_path": node.spec_path,
        "architecture": node.architecture,
    }
