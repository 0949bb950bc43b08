"""Cloner datatypes and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ClonerConfig:
    out_dir: Path
    worker_tar: Path
    rpm_dirs: tuple[Path, ...] = ()
    repo_files: tuple[Path, ...] = ()
    tmp_dir: Path | None = None
    use_preview_repo: bool = False
    disable_default_repos: bool = False
    disable_upstream_repos: bool = False
    tls_cert: str | None = None
    tls_key: str | None = None
    tdnf_binary: str = "tdnf"
    createrepo_binary: str = "createrepo"
    preview_repo_pattern: str = "*-preview*"
    default_repo_pattern: str = "*-official-*"
    timeout_seconds: float | None = None
    max_retries: int = 1
    backoff_seconds: float = 0.0


@dataclass(frozen=True)
class ClonedPackage:
    name: str
    path: Path
    prebuilt: bool
