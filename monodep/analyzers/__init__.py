"""Analyzer implementations and discovery utilities."""

from __future__ import annotations

from typing import Callable, List, Sequence, Set

from .base import WorkspaceAnalyzer, WorkspaceContext
from .consistency import ConsistencyAnalyzer
from .internal import InternalReferenceAnalyzer
from .ownership import OwnershipAnalyzer
from .package import PackageAnalyzer
from .peers import InstalledPeerDiagnostics, InstalledPeerResult, PeerAnalyzer

_BUILTIN_FACTORIES: dict[str, Callable[[], WorkspaceAnalyzer]] = {
    "consistency": ConsistencyAnalyzer,
    "internal": InternalReferenceAnalyzer,
    "peers": PeerAnalyzer,
}


def discover_analyzers(enabled: Sequence[str] | None = None) -> List[WorkspaceAnalyzer]:
    """Return the blocking cross-workspace analyzers, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    analyzers: List[WorkspaceAnalyzer] = []
    for name, factory in _BUILTIN_FACTORIES.items():
        if enabled_set is not None and name not in enabled_set:
            continue
        analyzers.append(factory())
        if enabled_set is not None:
            enabled_set.discard(name)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown analyzers requested: {missing}")

    return analyzers


__all__ = [
    "ConsistencyAnalyzer",
    "InstalledPeerDiagnostics",
    "InstalledPeerResult",
    "InternalReferenceAnalyzer",
    "OwnershipAnalyzer",
    "PackageAnalyzer",
    "PeerAnalyzer",
    "WorkspaceAnalyzer",
    "WorkspaceContext",
    "discover_analyzers",
]
