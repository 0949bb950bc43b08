"""Installability checks over the rpm CLI."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from pkgfetch_core.errors import RepoCommandError

from .security import redact_command_for_log

logger = logging.getLogger(__name__)

# rpm -vv reports every package it would install as "D: ========== +++ <nevr> <arch>-linux 0x0"
_INSTALLED_RPM_RE = re.compile(r"^D: =+ \+{3} (\S+)\s+(\S+?)-linux")


def resolve_competing_packages(
    root_dir: str | Path,
    *rpm_paths: str,
    rpm_binary: str = "rpm",
    timeout_seconds: float | None = None,
) -> list[str]:
    """Return the subset of ``rpm_paths`` that rpm would install together.

    The result keeps the order in which rpm reports the packages, so repeated
    calls over the same candidates give the same list.
    """
    if not rpm_paths:
        return []
    command = [
        rpm_binary,
        "-Uvvh",
        "--replacepkgs",
        "--nodeps",
        "--root",
        str(root_dir),
        "--test",
        *rpm_paths,
    ]
    logger.debug("rpm command cmd=%s", " ".join(redact_command_for_log(command)))
    try:
        result = subprocess.run(command, check=False, capture_output=True, text=True, timeout=timeout_seconds)
    except FileNotFoundError as exc:
        raise RepoCommandError(f"{rpm_binary} not found. Install it and ensure it is available in PATH.") from exc
    except subprocess.TimeoutExpired as exc:
        raise RepoCommandError(f"rpm transaction test timed out after {timeout_seconds}s") from exc

    by_stem = {_rpm_stem(path): path for path in rpm_paths}
    installable: list[str] = []
    for line in (result.stderr or "").splitlines():
        match = _INSTALLED_RPM_RE.match(line.strip())
        if not match:
            continue
        nevr, arch = match.groups()
        path = by_stem.get(f"{nevr}.{arch}")
        if path is not None and path not in installable:
            installable.append(path)

    if result.returncode != 0:
        logger.debug("rpm transaction test exited with %s: %s", result.returncode, (result.stderr or "").strip())
    return installable


def _rpm_stem(rpm_path: str) -> str:
    name = Path(rpm_path).name
    return name[: -len(".rpm")] if name.endswith(".rpm") else name
