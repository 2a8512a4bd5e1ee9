"""Core data models shared across monodep components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Literal, Mapping, Optional, Set, Tuple

DependencyKind = Literal[
    "dependencies", "devDependencies", "peerDependencies", "optionalDependencies"
]
ImportKind = Literal["value", "type-only", "dynamic-candidate"]
InternalIssueType = Literal["not-workspace", "unlisted-internal"]
PeerIssueType = Literal[
    "missing-peer",
    "incompatible-peer",
    "installed-missing-peer",
    "installed-incompatible-peer",
]
OwnershipIssueType = Literal["root-shared-candidate", "workspace-explicit-candidate"]
OwnershipUsage = Literal["prod", "dev", "mixed"]


@dataclass(frozen=True)
class PackageManifest:
    """A workspace package and its four dependency declaration maps."""

    name: str
    location: str
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    optional_dependencies: Mapping[str, str] = field(default_factory=dict)
    is_root: bool = False

    def declared_names(self) -> Set[str]:
        return (
            set(self.dependencies)
            | set(self.dev_dependencies)
            | set(self.peer_dependencies)
            | set(self.optional_dependencies)
        )

    def combined(self) -> Dict[str, str]:
        """Merge all four maps; later kinds win, matching package manager precedence."""
        merged: Dict[str, str] = {}
        merged.update(self.dependencies)
        merged.update(self.dev_dependencies)
        merged.update(self.peer_dependencies)
        merged.update(self.optional_dependencies)
        return merged

    def iter_declarations(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(name, range)`` pairs in declaration order across all kinds."""
        for mapping in (
            self.dependencies,
            self.dev_dependencies,
            self.peer_dependencies,
            self.optional_dependencies,
        ):
            yield from mapping.items()


@dataclass(frozen=True)
class WorkspaceGraph:
    """Ordered, immutable view of every manifest in the monorepo."""

    root: str
    packages: Tuple[PackageManifest, ...]

    @property
    def root_package(self) -> Optional[PackageManifest]:
        for package in self.packages:
            if package.is_root:
                return package
        return None

    def names(self) -> FrozenSet[str]:
        return frozenset(package.name for package in self.packages)

    def nested_patterns(self, package: PackageManifest) -> List[str]:
        """Ignore patterns covering packages located inside ``package``."""
        base = Path(package.location)
        patterns: List[str] = []
        for other in self.packages:
            if other.location == package.location:
                continue
            other_path = Path(other.location)
            if base in other_path.parents:
                patterns.append(f"{other_path.relative_to(base).as_posix()}/**")
        return patterns


@dataclass(frozen=True)
class SourceFileRecord:
    """A candidate source file with its dev/prod classification."""

    path: str
    is_dev: bool


@dataclass(frozen=True)
class DynamicCandidate:
    """A dynamic import or require whose target is not a literal."""

    line: int
    expression: str


@dataclass(frozen=True)
class ImportRecord:
    """One import found in a source file."""

    kind: ImportKind
    specifier: Optional[str] = None
    line: Optional[int] = None
    expression: Optional[str] = None


@dataclass(frozen=True)
class ExtractedImports:
    """Everything the import extractor found in a single file."""

    values: FrozenSet[str] = frozenset()
    type_only: FrozenSet[str] = frozenset()
    dynamic: Tuple[DynamicCandidate, ...] = ()

    def records(self) -> List[ImportRecord]:
        records = [ImportRecord(kind="value", specifier=spec) for spec in sorted(self.values)]
        records.extend(
            ImportRecord(kind="type-only", specifier=spec) for spec in sorted(self.type_only)
        )
        records.extend(
            ImportRecord(
                kind="dynamic-candidate", line=candidate.line, expression=candidate.expression
            )
            for candidate in self.dynamic
        )
        return records


@dataclass(frozen=True)
class PackageImportSummary:
    """Package names imported by one workspace package, split by context."""

    package: str
    prod_imports: FrozenSet[str] = frozenset()
    dev_imports: FrozenSet[str] = frozenset()

    @property
    def all_imports(self) -> FrozenSet[str]:
        return self.prod_imports | self.dev_imports


# Issue records


@dataclass(frozen=True)
class UnusedDependency:
    package: str
    dependency: str
    detail: str = ""


@dataclass(frozen=True)
class MissingDependency:
    package: str
    dependency: str
    detail: str = ""


@dataclass(frozen=True)
class WrongTypeDependency:
    package: str
    dependency: str
    expected: DependencyKind
    actual: DependencyKind
    detail: str = ""


@dataclass(frozen=True)
class VersionUsage:
    range: str
    packages: Tuple[str, ...]


@dataclass(frozen=True)
class VersionMismatch:
    dependency: str
    versions: Tuple[VersionUsage, ...]
    detail: str = ""

    @property
    def packages(self) -> Tuple[str, ...]:
        seen: List[str] = []
        for usage in self.versions:
            for name in usage.packages:
                if name not in seen:
                    seen.append(name)
        return tuple(seen)


@dataclass(frozen=True)
class InternalIssue:
    package: str
    dependency: str
    type: InternalIssueType
    detail: str = ""


@dataclass(frozen=True)
class PeerIssue:
    package: str
    dependency: str
    peer: str
    type: PeerIssueType
    detail: str = ""


@dataclass(frozen=True)
class OwnershipIssue:
    dependency: str
    type: OwnershipIssueType
    usage: OwnershipUsage
    packages: Tuple[str, ...]
    detail: str = ""


@dataclass(frozen=True)
class DynamicImportCandidate:
    package: str
    file: str
    line: int
    expression: str


@dataclass(frozen=True)
class OutdatedDependency:
    package: str
    dependency: str
    current: str
    latest: str


@dataclass(frozen=True)
class PackageAnalysis:
    """Per-package result of the package analyzer."""

    package: PackageManifest
    summary: PackageImportSummary
    unused: Tuple[UnusedDependency, ...] = ()
    missing: Tuple[MissingDependency, ...] = ()
    wrong_type: Tuple[WrongTypeDependency, ...] = ()
    dynamic_candidates: Tuple[DynamicImportCandidate, ...] = ()
    files_scanned: int = 0
