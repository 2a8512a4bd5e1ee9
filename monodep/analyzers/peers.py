"""Peer dependency validation for declared and installed packages."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .base import WorkspaceAnalyzer, WorkspaceContext
from ..logging import get_logger
from ..models import PackageManifest, PeerIssue, PeerIssueType, WorkspaceGraph
from ..resolver import ManifestResolver, NodeModulesResolver
from ..versions import clean_version, is_local_range, satisfies
from ..workspace import load_manifest_data

DEFAULT_MAX_MANIFESTS = 2000
DEFAULT_DEADLINE_SECONDS = 8.0


@dataclass(frozen=True)
class InstalledPeerDiagnostics:
    """Bookkeeping for one installed-peer traversal.

    ``truncated`` is set when the manifest cap or the deadline stopped the
    traversal early; the issues found up to that point are still returned.
    """

    resolved: int
    manifest_reads: int
    cache_hits: int
    unresolved: int
    elapsed_seconds: float
    truncated: bool = False
    truncation_reason: Optional[str] = None


@dataclass(frozen=True)
class InstalledPeerResult:
    issues: Tuple[PeerIssue, ...]
    diagnostics: InstalledPeerDiagnostics


class PeerAnalyzer(WorkspaceAnalyzer):
    """Checks that peer dependency requirements are provided in the workspace."""

    name = "peers"

    def __init__(
        self,
        resolver: ManifestResolver | None = None,
        *,
        max_manifests: int = DEFAULT_MAX_MANIFESTS,
        deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        manifest_loader: Callable[[Path], Optional[Dict[str, Any]]] = load_manifest_data,
    ) -> None:
        self.resolver = resolver
        self.max_manifests = max_manifests
        self.deadline_seconds = deadline_seconds
        self.clock = clock
        self.manifest_loader = manifest_loader
        self.logger = get_logger("analyzers.peers")

    def analyze(self, context: WorkspaceContext) -> List[PeerIssue]:
        """Validate each package's own ``peerDependencies`` against local and root declarations."""
        graph = context.graph
        root = graph.root_package
        root_provided = _provided(root) if root is not None else {}

        issues: List[PeerIssue] = []
        for package in graph.packages:
            local_provided = _provided(package)
            for peer, peer_range in package.peer_dependencies.items():
                if is_local_range(peer_range):
                    continue
                provided = local_provided.get(peer) or root_provided.get(peer)
                issue = self._check_peer(
                    package=package.name,
                    dependency=package.name,
                    peer=peer,
                    peer_range=peer_range,
                    provided=provided,
                    missing_type="missing-peer",
                    incompatible_type="incompatible-peer",
                )
                if issue is not None:
                    issues.append(issue)
        return issues

    def check_installed(self, graph: WorkspaceGraph) -> InstalledPeerResult:
        """Validate the peers of every installed dependency, within the configured budget."""
        started = self.clock()
        # Without an injected resolver, lookups stop at the workspace root.
        resolver = self.resolver or NodeModulesResolver(stop_at=graph.root)
        root = graph.root_package
        root_provided = dict(root.combined()) if root is not None else {}

        cache: Dict[str, Optional[Dict[str, str]]] = {}
        issues: List[PeerIssue] = []
        resolved = reads = cache_hits = unresolved = 0
        truncation: Optional[str] = None

        for package in graph.packages:
            local_provided = package.combined()
            declared: Dict[str, str] = {}
            declared.update(package.dependencies)
            declared.update(package.dev_dependencies)
            declared.update(package.optional_dependencies)

            for dependency in declared:
                truncation = self._budget_exhausted(started, resolved)
                if truncation is not None:
                    break

                manifest = resolver.resolve(dependency, package.location)
                if manifest is None:
                    unresolved += 1
                    self.logger.debug(
                        "Could not resolve installed manifest for %s from %s",
                        dependency,
                        package.name,
                    )
                    continue
                resolved += 1

                if manifest.path in cache:
                    cache_hits += 1
                    peers = cache[manifest.path]
                else:
                    reads += 1
                    peers = _peer_map(self.manifest_loader(Path(manifest.path)))
                    cache[manifest.path] = peers
                if not peers:
                    continue

                for peer, peer_range in peers.items():
                    if is_local_range(peer_range):
                        continue
                    provided = local_provided.get(peer) or root_provided.get(peer)
                    issue = self._check_peer(
                        package=package.name,
                        dependency=dependency,
                        peer=peer,
                        peer_range=peer_range,
                        provided=provided,
                        missing_type="installed-missing-peer",
                        incompatible_type="installed-incompatible-peer",
                    )
                    if issue is not None:
                        issues.append(issue)

            if truncation is not None:
                break

        elapsed = self.clock() - started
        if truncation is not None:
            self.logger.info(
                "Installed peer check truncated (%s) after %d manifests", truncation, resolved
            )
        diagnostics = InstalledPeerDiagnostics(
            resolved=resolved,
            manifest_reads=reads,
            cache_hits=cache_hits,
            unresolved=unresolved,
            elapsed_seconds=elapsed,
            truncated=truncation is not None,
            truncation_reason=truncation,
        )
        return InstalledPeerResult(issues=tuple(issues), diagnostics=diagnostics)

    def _budget_exhausted(self, started: float, resolved: int) -> Optional[str]:
        if self.clock() - started > self.deadline_seconds:
            return "deadline"
        if resolved >= self.max_manifests:
            return "manifest-cap"
        return None

    @staticmethod
    def _check_peer(
        *,
        package: str,
        dependency: str,
        peer: str,
        peer_range: str,
        provided: Optional[str],
        missing_type: PeerIssueType,
        incompatible_type: PeerIssueType,
    ) -> Optional[PeerIssue]:
        installed = missing_type.startswith("installed")
        if not provided:
            if installed:
                detail = (
                    f"Installed dependency {dependency} requires peer {peer}@{peer_range}, "
                    "but it is not installed in workspace/root"
                )
            else:
                detail = f"Peer dependency {peer}@{peer_range} is not installed"
            return PeerIssue(
                package=package, dependency=dependency, peer=peer, type=missing_type, detail=detail
            )

        version = clean_version(provided)
        if version and not satisfies(version, peer_range):
            if installed:
                detail = (
                    f"Installed dependency {dependency} requires {peer}@{peer_range}, "
                    f"but found {provided}"
                )
            else:
                detail = f"Peer requires {peer}@{peer_range} but found {provided}"
            return PeerIssue(
                package=package,
                dependency=dependency,
                peer=peer,
                type=incompatible_type,
                detail=detail,
            )
        return None


def _provided(package: PackageManifest) -> Dict[str, str]:
    provided: Dict[str, str] = {}
    provided.update(package.optional_dependencies)
    provided.update(package.dev_dependencies)
    provided.update(package.dependencies)
    return provided


def _peer_map(manifest: Optional[Mapping[str, Any]]) -> Optional[Dict[str, str]]:
    if manifest is None:
        return None
    peers = manifest.get("peerDependencies")
    if not isinstance(peers, dict):
        return {}
    return {
        name: version
        for name, version in peers.items()
        if isinstance(name, str) and isinstance(version, str)
    }


__all__ = [
    "DEFAULT_DEADLINE_SECONDS",
    "DEFAULT_MAX_MANIFESTS",
    "InstalledPeerDiagnostics",
    "InstalledPeerResult",
    "PeerAnalyzer",
]
