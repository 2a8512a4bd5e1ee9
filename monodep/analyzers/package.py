"""Per-package usage analysis: unused, missing and misclassified dependencies."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..builtins import DEFAULT_BUILTINS, BuiltinModules
from ..imports import ImportExtractor, read_source
from ..logging import get_logger
from ..models import (
    DynamicImportCandidate,
    ExtractedImports,
    MissingDependency,
    PackageAnalysis,
    PackageImportSummary,
    PackageManifest,
    SourceFileRecord,
    UnusedDependency,
    WrongTypeDependency,
)
from ..scanner import Scanner

TYPES_PREFIX = "@types/"

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_WINDOWS_ABSOLUTE = re.compile(r"^[A-Za-z]:[\\/]")


def is_type_package(name: str) -> bool:
    return name.startswith(TYPES_PREFIX)


class PackageAnalyzer:
    """Reduces a package's imports and compares them with its manifest."""

    def __init__(
        self,
        scanner: Scanner | None = None,
        extractor: ImportExtractor | None = None,
        builtins: BuiltinModules = DEFAULT_BUILTINS,
        max_workers: int = 8,
    ) -> None:
        self.scanner = scanner or Scanner()
        self.extractor = extractor or ImportExtractor()
        self.builtins = builtins
        self.max_workers = max(1, max_workers)
        self.logger = get_logger("analyzers.package")

    def analyze(
        self,
        package: PackageManifest,
        ignore_patterns: Sequence[str] = (),
        ignore_dependencies: Iterable[str] = (),
    ) -> PackageAnalysis:
        records = self.scanner.scan(package.location, ignore_patterns)
        self.logger.debug("Scanning %d files in %s", len(records), package.name)
        extracted = self._extract_all(records)
        summary, dynamic = self.reduce(package, extracted)
        return self.evaluate(
            package,
            summary,
            ignore_dependencies=ignore_dependencies,
            dynamic_candidates=dynamic,
            files_scanned=len(records),
        )

    def package_name(self, specifier: str) -> Optional[str]:
        """Map an import specifier to the package it loads, or None for local/built-in ones."""
        if not specifier or specifier.startswith((".", "/", "#", "~")):
            return None
        if _WINDOWS_ABSOLUTE.match(specifier):
            return None
        if self.builtins.is_builtin(specifier):
            return None
        if _SCHEME.match(specifier):
            return None

        parts = specifier.split("/")
        if specifier.startswith("@"):
            if len(parts) < 2 or parts[0] == "@" or not parts[1]:
                return None
            return f"{parts[0]}/{parts[1]}"
        return parts[0] or None

    def reduce(
        self,
        package: PackageManifest,
        extracted: Sequence[Tuple[SourceFileRecord, ExtractedImports]],
    ) -> Tuple[PackageImportSummary, List[DynamicImportCandidate]]:
        prod: Set[str] = set()
        dev: Set[str] = set()
        type_names: Set[str] = set()
        dynamic: List[DynamicImportCandidate] = []

        for record, imports in extracted:
            for entry in imports.records():
                if entry.kind == "dynamic-candidate":
                    dynamic.append(
                        DynamicImportCandidate(
                            package=package.name,
                            file=record.path,
                            line=entry.line or 0,
                            expression=entry.expression or "",
                        )
                    )
                    continue
                name = self.package_name(entry.specifier or "")
                if name is None:
                    continue
                if entry.kind == "type-only":
                    type_names.add(name)
                elif record.is_dev:
                    dev.add(name)
                else:
                    prod.add(name)

        # A type usage never demotes a runtime usage.
        dev.update(type_names - prod)

        summary = PackageImportSummary(
            package=package.name,
            prod_imports=frozenset(prod),
            dev_imports=frozenset(dev),
        )
        return summary, dynamic

    def evaluate(
        self,
        package: PackageManifest,
        summary: PackageImportSummary,
        *,
        ignore_dependencies: Iterable[str] = (),
        dynamic_candidates: Sequence[DynamicImportCandidate] = (),
        files_scanned: int = 0,
    ) -> PackageAnalysis:
        ignored = set(ignore_dependencies)
        declared = package.declared_names()
        imported = summary.all_imports

        unused: List[UnusedDependency] = []
        seen: Set[str] = set()
        for name, _ in package.iter_declarations():
            if name in seen:
                continue
            seen.add(name)
            if is_type_package(name) or name in ignored:
                continue
            if name not in imported:
                unused.append(
                    UnusedDependency(
                        package=package.name,
                        dependency=name,
                        detail="Declared but never imported",
                    )
                )

        missing = [
            MissingDependency(
                package=package.name,
                dependency=name,
                detail="Imported but not declared in package.json",
            )
            for name in sorted(imported)
            if name not in ignored and name not in declared
        ]

        wrong_type: List[WrongTypeDependency] = []
        for name in package.dev_dependencies:
            if self._exempt(package, name):
                continue
            if name in summary.prod_imports:
                wrong_type.append(
                    WrongTypeDependency(
                        package=package.name,
                        dependency=name,
                        expected="dependencies",
                        actual="devDependencies",
                        detail="Imported from production code",
                    )
                )
        for name in package.dependencies:
            if self._exempt(package, name):
                continue
            if name in summary.dev_imports and name not in summary.prod_imports:
                wrong_type.append(
                    WrongTypeDependency(
                        package=package.name,
                        dependency=name,
                        expected="devDependencies",
                        actual="dependencies",
                        detail="Only imported from development code",
                    )
                )

        return PackageAnalysis(
            package=package,
            summary=summary,
            unused=tuple(unused),
            missing=tuple(missing),
            wrong_type=tuple(wrong_type),
            dynamic_candidates=tuple(dynamic_candidates),
            files_scanned=files_scanned,
        )

    @staticmethod
    def _exempt(package: PackageManifest, name: str) -> bool:
        return is_type_package(name) or name in package.peer_dependencies

    def _extract_all(
        self, records: Sequence[SourceFileRecord]
    ) -> List[Tuple[SourceFileRecord, ExtractedImports]]:
        if not records:
            return []
        # Reads run concurrently; parsers are not shared across threads.
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(records))) as pool:
            contents = list(pool.map(read_source, [record.path for record in records]))

        results: List[Tuple[SourceFileRecord, ExtractedImports]] = []
        for record, content in zip(records, contents):
            if content is None:
                results.append((record, ExtractedImports()))
                continue
            results.append((record, self.extractor.extract(content, record.path)))
        return results


__all__ = ["PackageAnalyzer", "TYPES_PREFIX", "is_type_package"]
