"""Helpers for safe archive extraction and command logging."""

from __future__ import annotations

import tarfile
from pathlib import Path
from urllib.parse import urlsplit

from pkgfetch_core.errors import RepoSecurityError

_SENSITIVE_KEYS = ("password", "token", "sslclientkey", "tls-key")


def safe_output_path(base_dir: Path, relative_path: str) -> Path:
    target = (base_dir / relative_path).resolve()
    root = base_dir.resolve()
    if target == root:
        return target
    if root not in target.parents:
        raise RepoSecurityError(f"path traversal blocked for extracted path: {relative_path}")
    return target


def safe_extract_tar(archive: Path, dest: Path) -> None:
    """Extract ``archive`` under ``dest``, refusing members that escape it."""
    dest = dest.resolve()
    with tarfile.open(archive, "r:*") as tf:
        members = tf.getmembers()
        for member in members:
            safe_output_path(dest, member.name)
            if member.islnk():
                safe_output_path(dest, member.linkname)
            elif member.issym() and not Path(member.linkname).is_absolute():
                # absolute links are resolved inside the worker root, not on the host
                target = ((dest / member.name).parent / member.linkname).resolve()
                if target != dest and dest not in target.parents:
                    raise RepoSecurityError(f"path traversal blocked for link: {member.name} -> {member.linkname}")
        tf.extractall(dest, members=members, filter="tar")


def redact_command_for_log(command: list[str]) -> list[str]:
    redacted: list[str] = []
    for item in command:
        lower = item.lower()
        if any(key in lower for key in _SENSITIVE_KEYS):
            name, sep, _ = item.partition("=")
            redacted.append(f"{name}{sep}***" if sep else "***")
            continue
        if "://" in item:
            parsed = urlsplit(item)
            if parsed.password:
                safe_netloc = parsed.netloc.replace(parsed.password, "***")
                redacted.append(item.replace(parsed.netloc, safe_netloc))
                continue
        redacted.append(item)
    return redacted
