"""Validation of references between workspace packages."""

from __future__ import annotations

from typing import List

from .base import WorkspaceAnalyzer, WorkspaceContext
from ..models import InternalIssue
from ..versions import is_local_range


class InternalReferenceAnalyzer(WorkspaceAnalyzer):
    """Checks that workspace packages reference each other through local links.

    Two problems are reported per package:

    * ``not-workspace``: another workspace package is declared with a registry
      range instead of a ``workspace:``/``file:`` link.
    * ``unlisted-internal``: another workspace package is imported but not
      declared in any dependency map.
    """

    name = "internal"

    def analyze(self, context: WorkspaceContext) -> List[InternalIssue]:
        workspace_names = context.graph.names()
        issues: List[InternalIssue] = []

        for package in context.graph.packages:
            declared = package.combined()

            for dependency, version_range in declared.items():
                if dependency not in workspace_names or dependency == package.name:
                    continue
                if not is_local_range(version_range):
                    issues.append(
                        InternalIssue(
                            package=package.name,
                            dependency=dependency,
                            type="not-workspace",
                            detail=f'Should use "workspace:*" instead of "{version_range}"',
                        )
                    )

            summary = context.summaries.get(package.name)
            if summary is None:
                continue
            for imported in sorted(summary.all_imports):
                if imported == package.name or imported not in workspace_names:
                    continue
                if imported not in declared:
                    issues.append(
                        InternalIssue(
                            package=package.name,
                            dependency=imported,
                            type="unlisted-internal",
                            detail="Internal package is imported but not listed in dependencies",
                        )
                    )

        return issues


__all__ = ["InternalReferenceAnalyzer"]
