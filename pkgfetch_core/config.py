"""Run settings: command line values layered over an optional YAML config file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from pkgfetch_core.repo.types import ClonerConfig

REQUIRED_SETTINGS = ("input_graph", "output_graph", "out_dir", "rpm_dir", "toolchain_rpms_dir", "worker_tar", "repo_files")


def _ensure_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if isinstance(data, Mapping):
        return data
    raise ValueError(f"expected mapping for {what}")


def _resolve_env_value(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_name = value[2:-1].strip()
        if env_name:
            return os.getenv(env_name, "")
    return value


def _to_optional_str(value: Any) -> str | None:
    value = _resolve_env_value(value)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_optional_float(value: Any) -> float | None:
    value = _resolve_env_value(value)
    if value is None or value == "":
        return None
    return float(value)


def _to_bool(value: Any) -> bool:
    value = _resolve_env_value(value)
    if value is None or value == "":
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        raise ValueError(f"invalid boolean value: {value!r}")
    return bool(value)


def _to_str_tuple(value: Any) -> tuple[str, ...]:
    value = _resolve_env_value(value)
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(_resolve_env_value(item)) for item in value if str(item).strip())


@dataclass(frozen=True)
class ClonerTuning:
    tdnf_binary: str = "tdnf"
    rpm_binary: str = "rpm"
    createrepo_binary: str = "createrepo"
    preview_repo_pattern: str = "*-preview*"
    default_repo_pattern: str = "*-official-*"
    timeout_seconds: float | None = None
    max_retries: int = 1
    backoff_seconds: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ClonerTuning":
        raw = _ensure_mapping(data or {}, "cloner settings")
        defaults = cls()
        return cls(
            tdnf_binary=_to_optional_str(raw.get("tdnf_binary")) or defaults.tdnf_binary,
            rpm_binary=_to_optional_str(raw.get("rpm_binary")) or defaults.rpm_binary,
            createrepo_binary=_to_optional_str(raw.get("createrepo_binary")) or defaults.createrepo_binary,
            preview_repo_pattern=_to_optional_str(raw.get("preview_repo_pattern")) or defaults.preview_repo_pattern,
            default_repo_pattern=_to_optional_str(raw.get("default_repo_pattern")) or defaults.default_repo_pattern,
            timeout_seconds=_to_optional_float(raw.get("timeout_seconds")),
            max_retries=max(int(_resolve_env_value(raw.get("max_retries")) or defaults.max_retries), 1),
            backoff_seconds=_to_optional_float(raw.get("backoff_seconds")) or defaults.backoff_seconds,
        )


@dataclass(frozen=True)
class FetchSettings:
    input_graph: str
    output_graph: str
    out_dir: str
    rpm_dir: str
    toolchain_rpms_dir: str
    worker_tar: str
    repo_files: tuple[str, ...]
    tmp_dir: str | None = None
    use_preview_repo: bool = False
    disable_default_repos: bool = False
    disable_upstream_repos: bool = False
    toolchain_manifest: str | None = None
    tls_cert: str | None = None
    tls_key: str | None = None
    stop_on_failure: bool = False
    input_summary_file: str | None = None
    output_summary_file: str | None = None
    timestamp_file: str | None = None
    cloner: ClonerTuning = field(default_factory=ClonerTuning)

    def cloner_config(self) -> ClonerConfig:
        return ClonerConfig(
            out_dir=Path(self.out_dir),
            worker_tar=Path(self.worker_tar),
            rpm_dirs=(Path(self.rpm_dir), Path(self.toolchain_rpms_dir)),
            repo_files=tuple(Path(item) for item in self.repo_files),
            tmp_dir=Path(self.tmp_dir) if self.tmp_dir else None,
            use_preview_repo=self.use_preview_repo,
            disable_default_repos=self.disable_default_repos,
            disable_upstream_repos=self.disable_upstream_repos,
            tls_cert=self.tls_cert,
            tls_key=self.tls_key,
            tdnf_binary=self.cloner.tdnf_binary,
            createrepo_binary=self.cloner.createrepo_binary,
            preview_repo_pattern=self.cloner.preview_repo_pattern,
            default_repo_pattern=self.cloner.default_repo_pattern,
            timeout_seconds=self.cloner.timeout_seconds,
            max_retries=self.cloner.max_retries,
            backoff_seconds=self.cloner.backoff_seconds,
        )


_BOOL_SETTINGS = {"use_preview_repo", "disable_default_repos", "disable_upstream_repos", "stop_on_failure"}


def load_settings_file(path: str | Path) -> dict[str, Any]:
    config_path = Path(path)
    payload = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    return dict(_ensure_mapping(payload, f"config file {config_path}"))


def build_settings(file_values: Mapping[str, Any] | None = None, overrides: Mapping[str, Any] | None = None) -> FetchSettings:
    """Merge config file values with command line overrides; overrides win when set."""
    merged: dict[str, Any] = dict(file_values or {})
    for key, value in (overrides or {}).items():
        if value is None or value == () or value == []:
            continue
        if key in _BOOL_SETTINGS and value is False:
            continue
        merged[key] = value

    known = {item.name for item in fields(FetchSettings)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ValueError(f"unknown setting(s): {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for name in known:
        if name == "cloner":
            values[name] = ClonerTuning.from_dict(merged.get("cloner"))
        elif name == "repo_files":
            values[name] = _to_str_tuple(merged.get(name))
        elif name in _BOOL_SETTINGS:
            values[name] = _to_bool(merged.get(name))
        else:
            values[name] = _to_optional_str(merged.get(name))

    missing = [name for name in REQUIRED_SETTINGS if not values.get(name)]
    if missing:
        raise ValueError(f"missing required setting(s): {', '.join(missing)}")
    return FetchSettings(**values)
