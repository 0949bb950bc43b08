"""RPM repo access: cloner, installability checks and run summaries."""

from .cloner import RpmRepoCloner, construct_cloner, rpm_file_name
from .rpm import resolve_competing_packages
from .security import redact_command_for_log, safe_extract_tar, safe_output_path
from .summary import (
    SUMMARY_SCHEMA,
    SUMMARY_SCHEMA_VERSION,
    RecordedResolution,
    ResolutionSummary,
    read_summary,
    restore_cloned_repo_contents,
    save_cloned_repo_contents,
)
from .types import ClonedPackage, ClonerConfig

__all__ = [
    "RpmRepoCloner",
    "ClonerConfig",
    "ClonedPackage",
    "construct_cloner",
    "rpm_file_name",
    "resolve_competing_packages",
    "redact_command_for_log",
    "safe_extract_tar",
    "safe_output_path",
    "SUMMARY_SCHEMA",
    "SUMMARY_SCHEMA_VERSION",
    "RecordedResolution",
    "ResolutionSummary",
    "read_summary",
    "restore_cloned_repo_contents",
    "save_cloned_repo_contents",
]
