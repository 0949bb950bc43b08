"""Node resolution engine."""

from .cache import FetchCache
from .models import NodeOutcome, NodeResolution, OutcomeKind, ResolutionReport
from .orchestrator import ResolvingCloner, resolve_graph_nodes
from .resolver import (
    CompetingResolver,
    NodeResolver,
    RepoCloner,
    apply_resolution,
    classify_resolution,
    is_toolchain_package,
    rpm_package_to_rpm_path,
    select_competing_package,
)

__all__ = [
    "FetchCache",
    "NodeOutcome",
    "NodeResolution",
    "OutcomeKind",
    "ResolutionReport",
    "ResolvingCloner",
    "resolve_graph_nodes",
    "CompetingResolver",
    "NodeResolver",
    "RepoCloner",
    "apply_resolution",
    "classify_resolution",
    "is_toolchain_package",
    "rpm_package_to_rpm_path",
    "select_competing_package",
]
