"""Base classes for cross-workspace analyzers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ..models import PackageImportSummary, WorkspaceGraph


@dataclass(frozen=True)
class WorkspaceContext:
    """Complete inputs for cross-workspace analysis.

    Only built once every package analysis has finished.
    """

    graph: WorkspaceGraph
    summaries: Mapping[str, PackageImportSummary] = field(default_factory=dict)


class WorkspaceAnalyzer(ABC):
    """Contract for analyzers that consume the full workspace graph."""

    name: str = "workspace"

    @abstractmethod
    def analyze(self, context: WorkspaceContext) -> Sequence[object]:
        """Return the issue records found across the workspace."""
