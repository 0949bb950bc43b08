"""Save and restore the summary of packages cloned during a run."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol

from pkgfetch_core.errors import PkgFetchError, SummaryRestoreError, SummarySaveError
from pkgfetch_core.graph.models import NodeState, NodeType

from .types import ClonedPackage

logger = logging.getLogger(__name__)

SUMMARY_SCHEMA = "pkgfetch.summary"
SUMMARY_SCHEMA_VERSION = "1.0"


class SummaryCloner(Protocol):
    out_dir: Path

    def rpm_path_for(self, package: str) -> Path: ...

    def clone(self, include_deps: bool, *packages: str) -> bool: ...

    def record_clone(self, package: ClonedPackage) -> None: ...

    def cloned_packages(self) -> tuple[ClonedPackage, ...]: ...


@dataclass(frozen=True)
class RecordedResolution:
    rpm_path: str
    state: NodeState
    type: NodeType


@dataclass(frozen=True)
class ResolutionSummary:
    packages: tuple[ClonedPackage, ...] = ()
    resolutions: Mapping[str, RecordedResolution] = field(default_factory=dict)


def save_cloned_repo_contents(
    cloner: SummaryCloner,
    path: str | Path,
    resolutions: Mapping[str, RecordedResolution] | None = None,
) -> Path:
    summary_path = Path(path)
    payload = {
        "schema": SUMMARY_SCHEMA,
        "schema_version": SUMMARY_SCHEMA_VERSION,
        "packages": [
            {"name": item.name, "file": item.path.name, "prebuilt": item.prebuilt}
            for item in cloner.cloned_packages()
        ],
        "resolutions": {
            key: {"rpm_path": value.rpm_path, "state": value.state.value, "type": value.type.value}
            for key, value in sorted((resolutions or {}).items())
        },
    }
    try:
        summary_path.parent.mkdir(parents=True, exist_ok=True)
        summary_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        raise SummarySaveError(f"unable to write summary file '{summary_path}': {exc}") from exc
    logger.debug("saved %s cloned packages to %s", len(payload["packages"]), summary_path)
    return summary_path


def read_summary(path: str | Path) -> ResolutionSummary:
    summary_path = Path(path)
    try:
        payload = json.loads(summary_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SummaryRestoreError(f"unable to read summary file '{summary_path}': {exc}") from exc
    try:
        return _summary_from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise SummaryRestoreError(f"invalid summary file '{summary_path}': {exc}") from exc


def restore_cloned_repo_contents(cloner: SummaryCloner, path: str | Path) -> ResolutionSummary:
    """Rebuild the cloner state from a saved summary.

    Packages whose RPM is already in the output directory are recorded without
    touching any repo; missing ones are cloned by exact name, without their
    dependency closure. Any failure aborts the restore.
    """
    summary = read_summary(path)
    for package in summary.packages:
        target = cloner.rpm_path_for(package.name)
        if target.exists():
            cloner.record_clone(ClonedPackage(name=package.name, path=target, prebuilt=package.prebuilt))
            continue
        logger.debug("restoring missing package '%s'", package.name)
        try:
            cloner.clone(False, package.name)
        except (PkgFetchError, OSError) as exc:
            raise SummaryRestoreError(f"failed to restore '{package.name}': {exc}") from exc
    return summary


def _summary_from_dict(payload: Any) -> ResolutionSummary:
    if not isinstance(payload, dict):
        raise ValueError("summary document must be a JSON object")
    if payload.get("schema") != SUMMARY_SCHEMA:
        raise ValueError(f"unsupported summary schema: {payload.get('schema')!r}")
    packages_raw = payload.get("packages")
    resolutions_raw = payload.get("resolutions", {})
    if not isinstance(packages_raw, list) or not isinstance(resolutions_raw, dict):
        raise ValueError("summary requires a 'packages' list and a 'resolutions' object")

    packages = []
    for item in packages_raw:
        name = str(item["name"]).strip()
        if not name:
            raise ValueError("summary package entry without a name")
        packages.append(ClonedPackage(name=name, path=Path(str(item["file"])), prebuilt=bool(item.get("prebuilt"))))

    resolutions = {
        str(key): RecordedResolution(
            rpm_path=str(value["rpm_path"]),
            state=NodeState(str(value["state"])),
            type=NodeType(str(value["type"])),
        )
        for key, value in resolutions_raw.items()
    }
    return ResolutionSummary(packages=tuple(packages), resolutions=resolutions)
