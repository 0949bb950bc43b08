"""Per-node resolution: provider lookup, cloning, candidate selection and classification."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Protocol, Sequence

from pkgfetch_core.errors import (
    CompetingResolutionError,
    FetchError,
    PkgFetchError,
    ProviderResolutionError,
    UnsatisfiableCandidatesError,
)
from pkgfetch_core.graph.models import NodeState, NodeType, PkgNode, VersionedPkg
from pkgfetch_core.manifest import ToolchainManifest

from .cache import FetchCache
from .models import NodeResolution

logger = logging.getLogger(__name__)

CompetingResolver = Callable[..., Sequence[str]]


class RepoCloner(Protocol):
    def what_provides(self, pkg: VersionedPkg) -> list[str]: ...

    def clone(self, include_deps: bool, *packages: str) -> bool: ...


def rpm_package_to_rpm_path(rpm_package: str, out_dir: str | Path) -> str:
    return str(Path(out_dir) / f"{rpm_package}.rpm")


def is_toolchain_package(rpm_path: str, toolchain: ToolchainManifest) -> bool:
    return toolchain.contains_path(rpm_path)


def select_competing_package(
    requirement: VersionedPkg,
    rpm_paths: Sequence[str],
    competing_resolver: CompetingResolver,
) -> str:
    """Pick one RPM among several that all provide ``requirement``.

    Several installable results are not an error: the first one reported wins.
    """
    logger.debug("Found %d candidates. Resolving.", len(rpm_paths))
    try:
        resolved = list(competing_resolver(*rpm_paths))
    except (PkgFetchError, OSError) as exc:
        logger.error("Failed while trying to pick an RPM providing '%s' from the following RPMs: %s", requirement.name, list(rpm_paths))
        raise CompetingResolutionError(f"failed to resolve competing packages for '{requirement}': {exc}") from exc

    if not resolved:
        logger.error(
            "Failed while trying to pick an RPM providing '%s'. No RPM can be installed from the following: %s",
            requirement.name,
            list(rpm_paths),
        )
        raise UnsatisfiableCandidatesError(f"no installable candidate provides '{requirement}' among {list(rpm_paths)}")
    if len(resolved) > 1:
        logger.warning("Found %d candidates to provide '%s'. Picking the first one.", len(resolved), requirement.name)
    return resolved[0]


def classify_resolution(
    rpm_path: str,
    provider: str,
    cache: FetchCache,
    toolchain: ToolchainManifest,
    node_type: NodeType = NodeType.RUN,
) -> NodeResolution:
    """Locally available toolchain RPMs are usable right away; everything else is just cached."""
    prebuilt = cache.is_prebuilt(provider) or cache.is_prebuilt(rpm_path)
    if prebuilt and is_toolchain_package(rpm_path, toolchain):
        logger.debug("Using a prebuilt toolchain package to resolve this dependency")
        cache.mark_prebuilt(rpm_path)
        return NodeResolution(
            rpm_path=rpm_path,
            state=NodeState.UP_TO_DATE,
            type=NodeType.PREBUILT,
            provider=provider,
            prebuilt=True,
        )
    return NodeResolution(rpm_path=rpm_path, state=NodeState.CACHED, type=node_type, provider=provider, prebuilt=prebuilt)


def apply_resolution(node: PkgNode, resolution: NodeResolution) -> None:
    node.rpm_path = resolution.rpm_path
    node.state = resolution.state
    node.type = resolution.type


class NodeResolver:
    def __init__(
        self,
        cloner: RepoCloner,
        *,
        out_dir: str | Path,
        toolchain: ToolchainManifest,
        competing_resolver: CompetingResolver,
        clone_deps: bool = True,
    ) -> None:
        self.cloner = cloner
        self.out_dir = Path(out_dir)
        self.toolchain = toolchain
        self.competing_resolver = competing_resolver
        self.clone_deps = clone_deps

    def resolve(self, node: PkgNode, cache: FetchCache) -> NodeResolution:
        """Resolve one unresolved node and update it in place.

        The node is only modified after every step succeeded; on error it is left
        exactly as it was.
        """
        logger.debug("Adding node %s to the cache", node.friendly_name())
        providers = self._find_providers(node)

        for provider in providers:
            if not cache.needs_fetch(provider):
                continue
            try:
                prebuilt = self.cloner.clone(self.clone_deps, provider)
            except (PkgFetchError, OSError) as exc:
                raise FetchError(f"failed to clone '{provider}' from RPM repo: {exc}") from exc
            cache.record_fetch(provider, prebuilt)
            logger.debug("Fetched '%s' as potential candidate (is pre-built: %s).", provider, prebuilt)

        rpm_paths = [rpm_package_to_rpm_path(provider, self.out_dir) for provider in providers]
        if len(rpm_paths) == 1:
            rpm_path = rpm_paths[0]
        else:
            rpm_path = select_competing_package(node.versioned_pkg, rpm_paths, self.competing_resolver)
            if rpm_path not in rpm_paths:
                raise CompetingResolutionError(f"competing package resolution returned unknown candidate '{rpm_path}'")
        provider = providers[rpm_paths.index(rpm_path)]

        resolution = classify_resolution(rpm_path, provider, cache, self.toolchain, node.type)
        apply_resolution(node, resolution)
        logger.info("Choosing '%s' to provide '%s'.", Path(rpm_path).name, node.versioned_pkg.name)
        return resolution

    def _find_providers(self, node: PkgNode) -> list[str]:
        logger.debug("Searching for a package which supplies: %s", node.versioned_pkg.name)
        try:
            found = self.cloner.what_provides(node.versioned_pkg)
        except (PkgFetchError, OSError) as exc:
            error = ProviderResolutionError(f"failed to resolve ({node.versioned_pkg}) to a package: {exc}")
            self._log_lookup_failure(node, str(error))
            raise error from exc

        providers: list[str] = []
        for name in found:
            if name not in providers:
                providers.append(name)
        if not providers:
            error = ProviderResolutionError(f"failed to find any packages providing '{node.versioned_pkg}'")
            self._log_lookup_failure(node, str(error))
            raise error
        return providers

    @staticmethod
    def _log_lookup_failure(node: PkgNode, message: str) -> None:
        # implicit requirements may still be produced later in the build
        if node.implicit:
            logger.debug(message)
        else:
            logger.error(message)
