"""Pipeline orchestration for a full monodep run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .analyzers import (
    InstalledPeerDiagnostics,
    OwnershipAnalyzer,
    PackageAnalyzer,
    PeerAnalyzer,
    WorkspaceAnalyzer,
    WorkspaceContext,
    discover_analyzers,
)
from .config import DynamicImportPolicy, MonodepConfig, OwnershipPolicy, load_config
from .logging import get_logger
from .models import (
    DynamicImportCandidate,
    InternalIssue,
    MissingDependency,
    OutdatedDependency,
    OwnershipIssue,
    PackageAnalysis,
    PeerIssue,
    UnusedDependency,
    VersionMismatch,
    WorkspaceGraph,
    WrongTypeDependency,
)
from .registry import VersionChecker
from .versions import is_local_range
from .workspace import WorkspaceLoader


@dataclass
class RunOptions:
    """Per-run switches; ``None`` defers to the configuration file."""

    only_extras: bool = False
    check_outdated: Optional[bool] = None
    check_installed_peers: Optional[bool] = None
    ownership_report: Optional[bool] = None
    ownership_policy: Optional[OwnershipPolicy] = None
    dynamic_import_policy: Optional[DynamicImportPolicy] = None


@dataclass(frozen=True)
class Settings:
    """Effective settings after merging run options over configuration."""

    only_extras: bool
    check_outdated: bool
    check_installed_peers: bool
    ownership_report: bool
    ownership_policy: OwnershipPolicy
    dynamic_import_policy: DynamicImportPolicy
    ignore_patterns: Tuple[str, ...]
    ignore_dependencies: Tuple[str, ...]
    skip_packages: Tuple[str, ...]

    @classmethod
    def merge(cls, config: MonodepConfig, options: RunOptions) -> "Settings":
        def _pick(value, fallback):  # type: ignore[no-untyped-def]
            return fallback if value is None else value

        return cls(
            only_extras=options.only_extras,
            check_outdated=bool(_pick(options.check_outdated, config.check_outdated)),
            check_installed_peers=bool(options.check_installed_peers)
            or config.check_installed_peers,
            ownership_report=bool(options.ownership_report) or config.ownership_report,
            ownership_policy=_pick(options.ownership_policy, config.ownership_policy),
            dynamic_import_policy=_pick(
                options.dynamic_import_policy, config.dynamic_import_policy
            ),
            ignore_patterns=tuple(config.ignore_patterns),
            ignore_dependencies=tuple(config.ignore_dependencies),
            skip_packages=tuple(config.skip_packages),
        )


@dataclass(frozen=True)
class AnalysisReport:
    """Everything a run found, ready for rendering."""

    root: str
    settings: Settings
    analyses: Tuple[PackageAnalysis, ...]
    mismatches: Tuple[VersionMismatch, ...] = ()
    internal_issues: Tuple[InternalIssue, ...] = ()
    peer_issues: Tuple[PeerIssue, ...] = ()
    installed_peer_issues: Tuple[PeerIssue, ...] = ()
    ownership_issues: Tuple[OwnershipIssue, ...] = ()
    outdated: Tuple[OutdatedDependency, ...] = ()
    installed_peer_diagnostics: Optional[InstalledPeerDiagnostics] = None

    @property
    def unused(self) -> List[UnusedDependency]:
        if self.settings.only_extras:
            return []
        return [issue for analysis in self.analyses for issue in analysis.unused]

    @property
    def missing(self) -> List[MissingDependency]:
        if self.settings.only_extras:
            return []
        return [issue for analysis in self.analyses for issue in analysis.missing]

    @property
    def wrong_type(self) -> List[WrongTypeDependency]:
        return [issue for analysis in self.analyses for issue in analysis.wrong_type]

    @property
    def dynamic_candidates(self) -> List[DynamicImportCandidate]:
        if self.settings.dynamic_import_policy == "off":
            return []
        return [item for analysis in self.analyses for item in analysis.dynamic_candidates]

    @property
    def blocking_dynamic_count(self) -> int:
        if self.settings.dynamic_import_policy != "strict":
            return 0
        return len(self.dynamic_candidates)

    @property
    def total_issues(self) -> int:
        """Number of blocking issues; ownership and non-strict dynamic imports never count."""
        return (
            len(self.unused)
            + len(self.missing)
            + len(self.wrong_type)
            + len(self.outdated)
            + len(self.mismatches)
            + len(self.internal_issues)
            + len(self.peer_issues)
            + len(self.installed_peer_issues)
            + self.blocking_dynamic_count
        )

    @property
    def exit_code(self) -> int:
        return 1 if self.total_issues > 0 else 0

    def packages_with_issues(self) -> List[str]:
        names: Set[str] = set()
        for issue in (*self.unused, *self.missing, *self.wrong_type, *self.outdated):
            names.add(issue.package)
        if self.settings.dynamic_import_policy == "strict":
            names.update(item.package for item in self.dynamic_candidates)
        for issue in (*self.internal_issues, *self.peer_issues, *self.installed_peer_issues):
            names.add(issue.package)
        for mismatch in self.mismatches:
            names.update(mismatch.packages)
        return sorted(names)

    def stats(self) -> Dict[str, int]:
        return {
            "packages_scanned": len(self.analyses),
            "packages_with_issues": len(self.packages_with_issues()),
            "unused": len(self.unused),
            "missing": len(self.missing),
            "wrong_type": len(self.wrong_type),
            "outdated": len(self.outdated),
            "mismatch": len(self.mismatches),
            "internal": len(self.internal_issues),
            "peer": len(self.peer_issues),
            "installed_peer": len(self.installed_peer_issues),
            "dynamic": len(self.dynamic_candidates),
            "ownership": len(self.ownership_issues),
        }


class Orchestrator:
    """Coordinates workspace loading, per-package analysis and cross-workspace checks."""

    def __init__(
        self,
        package_analyzer: PackageAnalyzer | None = None,
        analyzers: Optional[Iterable[WorkspaceAnalyzer]] = None,
        peer_analyzer: PeerAnalyzer | None = None,
        version_checker_factory: Callable[[], VersionChecker] = VersionChecker,
        config_loader: Callable[[Path], MonodepConfig] = load_config,
    ) -> None:
        self.package_analyzer = package_analyzer or PackageAnalyzer()
        self._analyzer_overrides = list(analyzers) if analyzers is not None else None
        self.peer_analyzer = peer_analyzer or PeerAnalyzer()
        self.version_checker_factory = version_checker_factory
        self.config_loader = config_loader
        self.logger = get_logger("orchestrator")

    def run(self, path: str | Path, options: RunOptions | None = None) -> AnalysisReport:
        """Analyze the monorepo at ``path`` and return the full report."""
        root = Path(path).expanduser().resolve()
        self.logger.info("Analyzing project at %s", root)
        options = options or RunOptions()

        config = self.config_loader(root)
        settings = Settings.merge(config, options)
        graph = WorkspaceLoader(root).load()

        analyses = self._analyze_packages(graph, settings)
        context = WorkspaceContext(
            graph=graph,
            summaries={analysis.package.name: analysis.summary for analysis in analyses},
        )

        results: Dict[str, Tuple[object, ...]] = {}
        for analyzer in self._workspace_analyzers():
            results[analyzer.name] = tuple(analyzer.analyze(context))
            self.logger.debug("%s analyzer produced %d issues", analyzer.name, len(results[analyzer.name]))

        installed_issues: Tuple[PeerIssue, ...] = ()
        diagnostics: Optional[InstalledPeerDiagnostics] = None
        if settings.check_installed_peers:
            installed = self.peer_analyzer.check_installed(graph)
            installed_issues = installed.issues
            diagnostics = installed.diagnostics

        ownership: Tuple[OwnershipIssue, ...] = ()
        if settings.ownership_report:
            ownership = tuple(OwnershipAnalyzer(settings.ownership_policy).analyze(context))

        outdated: Tuple[OutdatedDependency, ...] = ()
        if settings.check_outdated:
            outdated = tuple(self._check_outdated(analyses))

        return AnalysisReport(
            root=str(root),
            settings=settings,
            analyses=tuple(analyses),
            mismatches=results.get("consistency", ()),  # type: ignore[arg-type]
            internal_issues=results.get("internal", ()),  # type: ignore[arg-type]
            peer_issues=results.get("peers", ()),  # type: ignore[arg-type]
            installed_peer_issues=installed_issues,
            ownership_issues=ownership,
            outdated=outdated,
            installed_peer_diagnostics=diagnostics,
        )

    def _workspace_analyzers(self) -> Sequence[WorkspaceAnalyzer]:
        if self._analyzer_overrides is not None:
            return self._analyzer_overrides
        analyzers = discover_analyzers()
        # The configured peer analyzer handles both the declared and installed checks.
        return [self.peer_analyzer if analyzer.name == "peers" else analyzer for analyzer in analyzers]

    def _analyze_packages(
        self, graph: WorkspaceGraph, settings: Settings
    ) -> List[PackageAnalysis]:
        skipped = set(settings.skip_packages)
        analyses: List[PackageAnalysis] = []
        for package in graph.packages:
            if package.name in skipped:
                self.logger.debug("Skipping %s", package.name)
                continue
            ignore_patterns = [*graph.nested_patterns(package), *settings.ignore_patterns]
            analyses.append(
                self.package_analyzer.analyze(
                    package,
                    ignore_patterns=ignore_patterns,
                    ignore_dependencies=settings.ignore_dependencies,
                )
            )
        return analyses

    def _check_outdated(self, analyses: Iterable[PackageAnalysis]) -> List[OutdatedDependency]:
        checker = self.version_checker_factory()
        analyses = list(analyses)
        names: List[str] = []
        seen: Set[str] = set()
        for analysis in analyses:
            for name, version_range in _registry_dependencies(analysis).items():
                if name not in seen and not is_local_range(version_range):
                    seen.add(name)
                    names.append(name)
        checker.prefetch(names)

        outdated: List[OutdatedDependency] = []
        for analysis in analyses:
            outdated.extend(
                checker.check_versions(analysis.package.name, _registry_dependencies(analysis))
            )
        return outdated


def _registry_dependencies(analysis: PackageAnalysis) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    merged.update(analysis.package.dependencies)
    merged.update(analysis.package.dev_dependencies)
    return merged


__all__ = ["AnalysisReport", "Orchestrator", "RunOptions", "Settings"]
