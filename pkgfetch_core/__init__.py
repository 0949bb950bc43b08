"""Resolve unresolved package nodes of a build dependency graph into cached RPMs."""

from .config import FetchSettings, build_settings, load_settings_file
from .errors import PkgFetchError
from .fetcher import FetchResult, fetch_packages

__all__ = [
    "FetchResult",
    "FetchSettings",
    "PkgFetchError",
    "build_settings",
    "fetch_packages",
    "load_settings_file",
]
