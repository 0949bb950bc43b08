"""Toolchain manifest: file names of RPMs produced by the bootstrap toolchain."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pkgfetch_core.errors import ManifestReadError


@dataclass(frozen=True)
class ToolchainManifest:
    rpm_names: frozenset[str] = frozenset()

    def __contains__(self, rpm_file_name: object) -> bool:
        return rpm_file_name in self.rpm_names

    def __len__(self) -> int:
        return len(self.rpm_names)

    def contains_path(self, rpm_path: str | Path) -> bool:
        return Path(rpm_path).name in self.rpm_names


def read_toolchain_manifest(path: str | Path | None) -> ToolchainManifest:
    """Read one RPM file name per line; an unset path yields an empty manifest."""
    if path is None or not str(path).strip():
        return ToolchainManifest()
    manifest_path = Path(path)
    try:
        lines = manifest_path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestReadError(f"unable to read toolchain manifest file '{manifest_path}': {exc}") from exc
    names = {line.strip() for line in lines if line.strip() and not line.strip().startswith("#")}
    return ToolchainManifest(rpm_names=frozenset(names))
