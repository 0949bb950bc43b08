"""Outcome types collected by the resolution orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pkgfetch_core.graph.models import NodeState, NodeType, PkgNode


class OutcomeKind(str, Enum):
    RESOLVED = "resolved"
    SOFT_FAILURE = "soft_failure"
    HARD_FAILURE = "hard_failure"


@dataclass(frozen=True)
class NodeResolution:
    """Fields assigned to a node once every resolution step has succeeded."""

    rpm_path: str
    state: NodeState
    type: NodeType
    provider: str
    prebuilt: bool = False


@dataclass(frozen=True)
class NodeOutcome:
    node: PkgNode
    kind: OutcomeKind
    resolution: NodeResolution | None = None
    error: Exception | None = None
    dependents: tuple[PkgNode, ...] = ()


@dataclass
class ResolutionReport:
    outcomes: list[NodeOutcome] = field(default_factory=list)
    restored_from: str | None = None

    def add(self, outcome: NodeOutcome) -> None:
        self.outcomes.append(outcome)

    def _of_kind(self, kind: OutcomeKind) -> list[NodeOutcome]:
        return [item for item in self.outcomes if item.kind == kind]

    @property
    def resolved(self) -> list[NodeOutcome]:
        return self._of_kind(OutcomeKind.RESOLVED)

    @property
    def soft_failures(self) -> list[NodeOutcome]:
        return self._of_kind(OutcomeKind.SOFT_FAILURE)

    @property
    def hard_failures(self) -> list[NodeOutcome]:
        return self._of_kind(OutcomeKind.HARD_FAILURE)

    @property
    def caching_succeeded(self) -> bool:
        return not self.hard_failures
