"""End-to-end run: read the graph, resolve unresolved nodes, write the graph back."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from pkgfetch_core.config import FetchSettings
from pkgfetch_core.errors import PkgFetchError, RepoConversionError
from pkgfetch_core.graph import has_unresolved_nodes, read_graph_file, write_graph_file
from pkgfetch_core.manifest import read_toolchain_manifest
from pkgfetch_core.repo import ClonerConfig, RpmRepoCloner, construct_cloner, resolve_competing_packages
from pkgfetch_core.resolution import CompetingResolver, ResolutionReport, resolve_graph_nodes
from pkgfetch_core.timing import TimingRecorder

logger = logging.getLogger(__name__)

DOWNLOAD_DEPENDENCIES = True

ClonerFactory = Callable[[ClonerConfig], RpmRepoCloner]


@dataclass(frozen=True)
class FetchResult:
    output_graph: Path
    report: ResolutionReport | None = None


def fetch_packages(
    settings: FetchSettings,
    *,
    cloner_factory: ClonerFactory = construct_cloner,
    competing_resolver: CompetingResolver | None = None,
    timer: TimingRecorder | None = None,
) -> FetchResult:
    """Run one fetch over ``settings.input_graph``.

    Any fatal error propagates before the output graph is written, so a missing
    output graph means the run was aborted.
    """
    timer = timer or TimingRecorder(tool="pkgfetch")
    graph = read_graph_file(settings.input_graph)
    toolchain = read_toolchain_manifest(settings.toolchain_manifest)

    # a remote node may stand in for a run node of the same package
    graph.merge_remote_nodes()

    if not has_unresolved_nodes(graph):
        logger.info("No unresolved packages to cache")
        return FetchResult(output_graph=write_graph_file(graph, settings.output_graph))

    cloner = cloner_factory(settings.cloner_config())
    try:
        if competing_resolver is None:
            competing_resolver = functools.partial(
                resolve_competing_packages,
                cloner.worker_root,
                rpm_binary=settings.cloner.rpm_binary,
                timeout_seconds=settings.cloner.timeout_seconds,
            )
        logger.info("Found unresolved packages to cache, downloading packages")
        report = resolve_graph_nodes(
            graph,
            cloner,
            toolchain,
            out_dir=settings.out_dir,
            competing_resolver=competing_resolver,
            input_summary_file=settings.input_summary_file,
            output_summary_file=settings.output_summary_file,
            stop_on_failure=settings.stop_on_failure,
            clone_deps=DOWNLOAD_DEPENDENCIES,
            timer=timer,
        )
        _log_report(report)

        # the graph is written before the repo conversion so resolved nodes survive a conversion failure
        output_graph = write_graph_file(graph, settings.output_graph)

        try:
            cloner.convert_downloaded_packages_into_repo()
        except (PkgFetchError, OSError) as exc:
            raise RepoConversionError(f"failed to convert downloaded RPMs into a repo: {exc}") from exc
    finally:
        cloner.close()
    return FetchResult(output_graph=output_graph, report=report)


def _log_report(report: ResolutionReport) -> None:
    if report.restored_from:
        logger.info("Restored cloned packages from %s", report.restored_from)
        return
    logger.info(
        "Resolved %d node(s), %d implicit node(s) left unresolved, %d node(s) failed",
        len(report.resolved),
        len(report.soft_failures),
        len(report.hard_failures),
    )
