"""Version consistency across workspace packages."""

from __future__ import annotations

from typing import Dict, List

from .base import WorkspaceAnalyzer, WorkspaceContext
from ..models import VersionMismatch, VersionUsage
from ..versions import is_local_range


class ConsistencyAnalyzer(WorkspaceAnalyzer):
    """Flags dependencies declared with more than one range across the workspace."""

    name = "consistency"

    def analyze(self, context: WorkspaceContext) -> List[VersionMismatch]:
        # dict preserves first-seen order for both dependencies and ranges.
        usage: Dict[str, Dict[str, List[str]]] = {}
        for package in context.graph.packages:
            # One effective range per package; later dependency kinds win.
            for dependency, version_range in package.combined().items():
                if is_local_range(version_range):
                    continue
                usage.setdefault(dependency, {}).setdefault(version_range, []).append(
                    package.name
                )

        mismatches: List[VersionMismatch] = []
        for dependency, ranges in usage.items():
            if len(ranges) < 2:
                continue
            versions = tuple(
                VersionUsage(range=version_range, packages=tuple(packages))
                for version_range, packages in ranges.items()
            )
            detail = " vs ".join(
                f"{version.range} ({', '.join(version.packages)})" for version in versions
            )
            mismatches.append(
                VersionMismatch(dependency=dependency, versions=versions, detail=detail)
            )
        return mismatches


__all__ = ["ConsistencyAnalyzer"]
