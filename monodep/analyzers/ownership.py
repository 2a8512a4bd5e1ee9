"""Dependency ownership placement suggestions (informational only)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from .base import WorkspaceAnalyzer, WorkspaceContext
from ..config import OwnershipPolicy
from ..models import OwnershipIssue, OwnershipUsage


@dataclass
class _Usage:
    prod: Set[str] = field(default_factory=set)
    dev: Set[str] = field(default_factory=set)

    @property
    def consumers(self) -> List[str]:
        return sorted(self.prod | self.dev)

    @property
    def kind(self) -> OwnershipUsage:
        if self.prod and self.dev:
            return "mixed"
        return "prod" if self.prod else "dev"


class OwnershipAnalyzer(WorkspaceAnalyzer):
    """Suggests where shared dependencies should be declared.

    ``root-shared`` prefers declaring dependencies used by several workspaces
    at the root; ``workspace-explicit`` prefers every consumer declaring its
    own dependencies even when the root already does.
    """

    name = "ownership"

    def __init__(self, policy: OwnershipPolicy = "root-shared") -> None:
        self.policy = policy

    def analyze(self, context: WorkspaceContext) -> List[OwnershipIssue]:
        graph = context.graph
        root = graph.root_package
        declarations: Dict[str, Set[str]] = {
            package.name: package.declared_names() for package in graph.packages
        }
        root_declarations = declarations.get(root.name, set()) if root is not None else set()

        usage: Dict[str, _Usage] = {}
        for package in graph.packages:
            if package.is_root:
                continue
            summary = context.summaries.get(package.name)
            if summary is None:
                continue
            for dependency in summary.prod_imports:
                usage.setdefault(dependency, _Usage()).prod.add(package.name)
            for dependency in summary.dev_imports:
                usage.setdefault(dependency, _Usage()).dev.add(package.name)

        issues: List[OwnershipIssue] = []
        for dependency in sorted(usage):
            entry = usage[dependency]
            consumers = entry.consumers
            if not consumers:
                continue

            if self.policy == "root-shared":
                if len(consumers) >= 2 and dependency not in root_declarations:
                    issues.append(
                        OwnershipIssue(
                            dependency=dependency,
                            type="root-shared-candidate",
                            usage=entry.kind,
                            packages=tuple(consumers),
                            detail=(
                                f"Used by {len(consumers)} workspaces ({', '.join(consumers)}). "
                                "Consider declaring at root for shared ownership policy."
                            ),
                        )
                    )
                continue

            if dependency not in root_declarations:
                continue
            undeclared = [
                name for name in consumers if dependency not in declarations.get(name, set())
            ]
            if undeclared:
                issues.append(
                    OwnershipIssue(
                        dependency=dependency,
                        type="workspace-explicit-candidate",
                        usage=entry.kind,
                        packages=tuple(undeclared),
                        detail=(
                            f"Root declares {dependency}, but workspace-explicit policy prefers "
                            f"local declarations in: {', '.join(undeclared)}."
                        ),
                    )
                )

        return issues


__all__ = ["OwnershipAnalyzer"]
