"""Dependency graph datatypes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from pkgfetch_core.errors import GraphError


class NodeState(str, Enum):
    META = "meta"
    BUILD = "build"
    UP_TO_DATE = "up_to_date"
    UNRESOLVED = "unresolved"
    CACHED = "cached"
    BUILD_ERROR = "build_error"


class NodeType(str, Enum):
    UNKNOWN = "unknown"
    BUILD = "build"
    RUN = "run"
    GOAL = "goal"
    REMOTE = "remote"
    PURE_META = "pure_meta"
    PREBUILT = "prebuilt"


@dataclass(frozen=True)
class VersionedPkg:
    """A package requirement: name plus an optional (possibly ranged) version constraint."""

    name: str
    version: str = ""
    condition: str = ""
    sversion: str = ""
    scondition: str = ""

    def __str__(self) -> str:
        parts = [self.name]
        if self.version:
            parts.extend([self.condition or "=", self.version])
        if self.sversion:
            parts.extend([self.scondition or "=", self.sversion])
        return " ".join(parts)


@dataclass(eq=False)
class PkgNode:
    id: int
    versioned_pkg: VersionedPkg
    state: NodeState = NodeState.UNRESOLVED
    type: NodeType = NodeType.RUN
    implicit: bool = False
    rpm_path: str = ""
    srpm_path: str = ""
    spec_path: str = ""
    architecture: str = ""

    def friendly_name(self) -> str:
        return f"{self.versioned_pkg}-{self.type.value.upper()}"

    def __str__(self) -> str:
        return f"{self.friendly_name()} ({self.state.value})"


@dataclass
class LookupEntry:
    """Lookup table slot for one versioned package."""

    versioned_pkg: VersionedPkg
    run_node: PkgNode | None = None
    build_node: PkgNode | None = None


class DependencyGraph:
    """Directed graph of package nodes; an edge ``a -> b`` means ``a`` depends on ``b``.

    Resolution mutates node fields only; the edge set is fixed once the graph is
    loaded.
    """

    def __init__(self) -> None:
        self._nodes: dict[int, PkgNode] = {}
        self._out_edges: dict[int, set[int]] = {}
        self._in_edges: dict[int, set[int]] = {}
        self.lookup: dict[str, list[LookupEntry]] = {}

    def add_node(self, node: PkgNode) -> PkgNode:
        if node.id in self._nodes:
            raise GraphError(f"duplicate node id {node.id} ({node.friendly_name()})")
        self._nodes[node.id] = node
        self._out_edges.setdefault(node.id, set())
        self._in_edges.setdefault(node.id, set())
        if node.type in (NodeType.RUN, NodeType.BUILD):
            self._add_to_lookup(node)
        return node

    def add_edge(self, from_id: int, to_id: int) -> None:
        if from_id not in self._nodes or to_id not in self._nodes:
            raise GraphError(f"edge {from_id} -> {to_id} references a missing node")
        self._out_edges[from_id].add(to_id)
        self._in_edges[to_id].add(from_id)

    def node(self, node_id: int) -> PkgNode:
        try:
            return self._nodes[node_id]
        except KeyError as exc:
            raise GraphError(f"no node with id {node_id}") from exc

    def all_nodes(self) -> list[PkgNode]:
        return [self._nodes[key] for key in sorted(self._nodes)]

    def all_run_nodes(self) -> list[PkgNode]:
        """Nodes occupying a run slot of the lookup table, remote nodes merged in included."""
        run_nodes = {
            entry.run_node.id: entry.run_node
            for entries in self.lookup.values()
            for entry in entries
            if entry.run_node is not None
        }
        return [run_nodes[key] for key in sorted(run_nodes)]

    def edges(self) -> Iterator[tuple[int, int]]:
        for from_id in sorted(self._out_edges):
            for to_id in sorted(self._out_edges[from_id]):
                yield from_id, to_id

    def dependents_of(self, node: PkgNode) -> list[PkgNode]:
        """Nodes with an edge pointing at ``node``."""
        return [self._nodes[key] for key in sorted(self._in_edges.get(node.id, ()))]

    def add_remote_to_lookup(self, node: PkgNode, replace_run_node: bool) -> None:
        """Register a remote node in the lookup table.

        An existing entry for the same versioned package keeps a single slot: a
        run node is replaced by the remote node when ``replace_run_node`` is set,
        otherwise the duplicate is an error.
        """
        if node.type != NodeType.REMOTE:
            raise GraphError(f"{node.friendly_name()} is not a remote node")
        entry = self.find_lookup(node.versioned_pkg)
        if entry is None:
            entry = LookupEntry(versioned_pkg=node.versioned_pkg, run_node=node)
            self.lookup.setdefault(node.versioned_pkg.name, []).append(entry)
            return
        if entry.run_node is node:
            return
        if entry.run_node is not None and not replace_run_node:
            raise GraphError(
                f"duplicate run node for '{node.versioned_pkg}': "
                f"{entry.run_node.friendly_name()} and {node.friendly_name()}"
            )
        entry.run_node = node

    def merge_remote_nodes(self) -> None:
        for node in self.all_nodes():
            if node.type == NodeType.REMOTE:
                self.add_remote_to_lookup(node, True)

    def find_lookup(self, pkg: VersionedPkg) -> LookupEntry | None:
        for entry in self.lookup.get(pkg.name, ()):
            if entry.versioned_pkg == pkg:
                return entry
        return None

    def _add_to_lookup(self, node: PkgNode) -> None:
        entry = self.find_lookup(node.versioned_pkg)
        if entry is None:
            entry = LookupEntry(versioned_pkg=node.versioned_pkg)
            self.lookup.setdefault(node.versioned_pkg.name, []).append(entry)
        if node.type == NodeType.RUN:
            if entry.run_node is not None:
                raise GraphError(f"duplicate run node for '{node.versioned_pkg}'")
            entry.run_node = node
        else:
            if entry.build_node is not None:
                raise GraphError(f"duplicate build node for '{node.versioned_pkg}'")
            entry.build_node = node

    def __len__(self) -> int:
        return len(self._nodes)


def find_unresolved_nodes(nodes: Iterable[PkgNode]) -> list[PkgNode]:
    return [node for node in nodes if node.state == NodeState.UNRESOLVED]


def has_unresolved_nodes(graph: DependencyGraph) -> bool:
    return bool(find_unresolved_nodes(graph.all_run_nodes()))
