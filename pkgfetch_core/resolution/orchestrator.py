"""Drives per-node resolution over every unresolved run node of a graph."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from pkgfetch_core.errors import NodeResolutionError, ProviderResolutionError, StopOnFailureError, SummaryRestoreError
from pkgfetch_core.graph.models import DependencyGraph, NodeState, PkgNode, find_unresolved_nodes
from pkgfetch_core.manifest import ToolchainManifest
from pkgfetch_core.repo.summary import (
    RecordedResolution,
    ResolutionSummary,
    SummaryCloner,
    restore_cloned_repo_contents,
    save_cloned_repo_contents,
)
from pkgfetch_core.timing import TimingRecorder

from .cache import FetchCache
from .models import NodeOutcome, OutcomeKind, ResolutionReport
from .resolver import CompetingResolver, NodeResolver, RepoCloner

logger = logging.getLogger(__name__)


class ResolvingCloner(RepoCloner, SummaryCloner, Protocol):
    """A cloner usable both for resolution and for summary save/restore."""


def resolve_graph_nodes(
    graph: DependencyGraph,
    cloner: ResolvingCloner,
    toolchain: ToolchainManifest,
    *,
    out_dir: str | Path,
    competing_resolver: CompetingResolver,
    input_summary_file: str | None = None,
    output_summary_file: str | None = None,
    stop_on_failure: bool = False,
    clone_deps: bool = True,
    timer: TimingRecorder | None = None,
) -> ResolutionReport:
    """Resolve every unresolved run node, or restore a previous run from a summary.

    Nodes are handled one at a time. A node that fails is recorded in the report
    and the loop moves on; the stop-on-failure policy is applied once every node
    has been tried, after the output summary is written.
    """
    timer = timer or TimingRecorder(tool="pkgfetch")
    report = ResolutionReport()
    recorded: dict[str, RecordedResolution] = {}

    with timer.event("clone packages"):
        if (input_summary_file or "").strip():
            with timer.event("restore packages"):
                summary = restore_cloned_repo_contents(cloner, input_summary_file)
                _apply_summary(graph, summary)
                recorded.update(summary.resolutions)
                report.restored_from = input_summary_file
        else:
            resolver = NodeResolver(
                cloner,
                out_dir=out_dir,
                toolchain=toolchain,
                competing_resolver=competing_resolver,
                clone_deps=clone_deps,
            )
            cache = FetchCache()
            with timer.event("clone graph"):
                for node in find_unresolved_nodes(graph.all_run_nodes()):
                    report.add(_resolve_one(graph, resolver, node, cache))

    if (output_summary_file or "").strip():
        recorded.update(_recorded_resolutions(report))
        save_cloned_repo_contents(cloner, output_summary_file, recorded)

    if stop_on_failure and not report.caching_succeeded:
        raise StopOnFailureError(
            f"failed to cache unresolved nodes ({len(report.hard_failures)} of {len(report.outcomes)} failed)"
        )
    return report


def _resolve_one(graph: DependencyGraph, resolver: NodeResolver, node: PkgNode, cache: FetchCache) -> NodeOutcome:
    dependents = tuple(graph.dependents_of(node))
    try:
        resolution = resolver.resolve(node, cache)
    except ProviderResolutionError as exc:
        if not node.implicit:
            _log_node_failure(node, exc, dependents)
            return NodeOutcome(node=node, kind=OutcomeKind.HARD_FAILURE, error=exc, dependents=dependents)
        logger.debug("Implicit node '%s' left unresolved: %s", node, exc)
        return NodeOutcome(node=node, kind=OutcomeKind.SOFT_FAILURE, error=exc, dependents=dependents)
    except NodeResolutionError as exc:
        _log_node_failure(node, exc, dependents)
        return NodeOutcome(node=node, kind=OutcomeKind.HARD_FAILURE, error=exc, dependents=dependents)
    return NodeOutcome(node=node, kind=OutcomeKind.RESOLVED, resolution=resolution, dependents=dependents)


def _log_node_failure(node: PkgNode, error: Exception, dependents: tuple[PkgNode, ...]) -> None:
    logger.warning("Failed to resolve graph node '%s':\n%s", node, error)
    lines = [
        f"Failed to resolve all nodes in the graph while resolving '{node}'",
        "Nodes which have this as a dependency:",
    ]
    lines.extend(f"\t'{dependent}' depends on '{node}'" for dependent in dependents)
    logger.debug("\n".join(lines))


def _apply_summary(graph: DependencyGraph, summary: ResolutionSummary) -> None:
    matches: list[tuple[PkgNode, RecordedResolution]] = []
    for node in find_unresolved_nodes(graph.all_run_nodes()):
        recorded = summary.resolutions.get(str(node.versioned_pkg))
        if recorded is None:
            continue
        if recorded.state not in (NodeState.CACHED, NodeState.UP_TO_DATE) or not recorded.rpm_path:
            raise SummaryRestoreError(f"summary entry for '{node.versioned_pkg}' is not a resolved node")
        matches.append((node, recorded))
    for node, recorded in matches:
        node.rpm_path = recorded.rpm_path
        node.state = recorded.state
        node.type = recorded.type
        logger.debug("Restored '%s' for '%s'.", Path(recorded.rpm_path).name, node.versioned_pkg)


def _recorded_resolutions(report: ResolutionReport) -> dict[str, RecordedResolution]:
    return {
        str(item.node.versioned_pkg): RecordedResolution(
            rpm_path=item.resolution.rpm_path,
            state=item.resolution.state,
            type=item.resolution.type,
        )
        for item in report.resolved
        if item.resolution is not None
    }
