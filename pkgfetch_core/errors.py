"""Error hierarchy for graph package fetching."""

from __future__ import annotations


class PkgFetchError(Exception):
    """Base class for every error raised by pkgfetch."""


class GraphError(PkgFetchError):
    """Raised when the dependency graph is structurally invalid."""


class GraphReadError(GraphError):
    """Raised when the input graph file cannot be read or parsed."""


class GraphWriteError(GraphError):
    """Raised when the updated graph cannot be written."""


class ManifestReadError(PkgFetchError):
    """Raised when the toolchain manifest cannot be read."""


class RepoCommandError(PkgFetchError):
    """Raised when a package manager command fails."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class RepoSecurityError(PkgFetchError):
    """Raised when an archive member would escape its extraction root."""


class FetcherSetupError(PkgFetchError):
    """Raised when the cloner or its worker environment cannot be constructed."""


class NodeResolutionError(PkgFetchError):
    """Base class for failures that only affect a single graph node."""


class ProviderResolutionError(NodeResolutionError):
    """Raised when no package provides a node's requirement."""


class FetchError(NodeResolutionError):
    """Raised when a provider could not be cloned into the output directory."""


class CompetingResolutionError(NodeResolutionError):
    """Raised when competing candidates could not be disambiguated."""


class UnsatisfiableCandidatesError(CompetingResolutionError):
    """Raised when none of the competing candidates can be installed."""


class SummaryRestoreError(PkgFetchError):
    """Raised when a saved summary cannot be restored."""


class SummarySaveError(PkgFetchError):
    """Raised when the summary of cloned packages cannot be written."""


class StopOnFailureError(PkgFetchError):
    """Raised when some nodes failed to resolve and the run must stop."""


class RepoConversionError(PkgFetchError):
    """Raised when downloaded packages cannot be turned into a local repo."""
