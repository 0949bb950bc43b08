"""Command line interface for graph package fetching."""

from __future__ import annotations

import logging
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Any, Sequence

import yaml

from pkgfetch_core.config import build_settings, load_settings_file
from pkgfetch_core.errors import PkgFetchError
from pkgfetch_core.fetcher import fetch_packages
from pkgfetch_core.timing import TimingRecorder

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="pkgfetch",
        description="Download the unresolved packages of a dependency graph into a given directory.",
    )
    parser.add_argument("--input", dest="input_graph", help="Path to the graph file to read")
    parser.add_argument("--output", dest="output_graph", help="Updated graph file with unresolved nodes marked as resolved")
    parser.add_argument("--output-dir", dest="out_dir", help="Directory to download packages into")
    parser.add_argument(
        "--rpm-dir",
        dest="rpm_dir",
        help="Directory that contains already built RPMs. Should contain top level directories for architecture.",
    )
    parser.add_argument(
        "--toolchain-rpms-dir",
        dest="toolchain_rpms_dir",
        help="Directory that contains already built toolchain RPMs. Should contain top level directories for architecture.",
    )
    parser.add_argument("--tmp-dir", dest="tmp_dir", help="Directory to store temporary files while downloading")
    parser.add_argument("--tdnf-worker", dest="worker_tar", help="Full path to the worker chroot archive")
    parser.add_argument("--repo-file", dest="repo_files", action="append", default=[], help="Full path to a repo file (repeatable)")
    parser.add_argument("--use-preview-repo", action="store_true", help="Pull packages from the upstream preview repo")
    parser.add_argument("--disable-default-repos", action="store_true", help="Disable pulling packages from the default repos")
    parser.add_argument("--disable-upstream-repos", action="store_true", help="Disable pulling packages from upstream repos")
    parser.add_argument(
        "--toolchain-manifest",
        help="Path to a list of RPMs which are created by the toolchain. RPMs from this list are marked as prebuilt.",
    )
    parser.add_argument("--tls-cert", help="TLS client certificate to use when downloading files")
    parser.add_argument("--tls-key", help="TLS client key to use when downloading files")
    parser.add_argument("--stop-on-failure", action="store_true", help="Stop if failed to cache all unresolved nodes")
    parser.add_argument("--input-summary-file", help="Path to a file with the summary of packages cloned to be restored")
    parser.add_argument("--output-summary-file", help="Path to save the summary of packages cloned")
    parser.add_argument("--timestamp-file", help="File that stores timestamps for this program")
    parser.add_argument("--config", help="YAML file providing defaults for any of the options above")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="INFO", help="Set the logging level")
    parser.add_argument("--log-file", help="Log output file")
    return parser


def configure_logging(level: str, log_file: str | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT, handlers=handlers, force=True)


def _overrides(args: Namespace) -> dict[str, Any]:
    keys = (
        "input_graph",
        "output_graph",
        "out_dir",
        "rpm_dir",
        "toolchain_rpms_dir",
        "tmp_dir",
        "worker_tar",
        "repo_files",
        "use_preview_repo",
        "disable_default_repos",
        "disable_upstream_repos",
        "toolchain_manifest",
        "tls_cert",
        "tls_key",
        "stop_on_failure",
        "input_summary_file",
        "output_summary_file",
        "timestamp_file",
    )
    return {key: getattr(args, key, None) for key in keys}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level, args.log_file)

    try:
        file_values = load_settings_file(args.config) if args.config else {}
        settings = build_settings(file_values, _overrides(args))
    except (OSError, yaml.YAMLError, ValueError) as exc:
        parser.print_usage(sys.stderr)
        print(f"pkgfetch: error: {exc}", file=sys.stderr)
        return 2

    timer = TimingRecorder(tool="pkgfetch", path=Path(settings.timestamp_file) if settings.timestamp_file else None)
    try:
        with timer.event("pkgfetch"):
            fetch_packages(settings, timer=timer)
    except PkgFetchError as exc:
        logger.error("Failed to fetch packages. Error: %s", exc)
        return 1
    finally:
        timer.flush()
    return 0
