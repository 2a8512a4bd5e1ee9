"""Source file discovery and dev/prod classification for workspace packages."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .models import SourceFileRecord

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".mts", ".cts")

_EXCLUDED_DIRS = {
    "node_modules",
    "dist",
    "build",
    "fixtures",
    "coverage",
    ".git",
}

_DECLARATION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")

FilePredicate = Callable[[str], bool]


def _regex(pattern: str) -> FilePredicate:
    compiled = re.compile(pattern)
    return lambda path: compiled.search(path) is not None


# Ordered; the first matching predicate marks a file as dev-only.
DEV_FILE_PREDICATES: Tuple[Tuple[str, FilePredicate], ...] = (
    ("test-suffix", _regex(r"\.(test|spec)\.[cm]?[tj]sx?$")),
    ("story", _regex(r"\.(stories|story)\.[cm]?[tj]sx?$")),
    ("test-directory", _regex(r"/(test|tests|__tests__|__mocks__|e2e|cypress)/")),
    ("storybook", _regex(r"/\.storybook/")),
    ("setup-tests", _regex(r"/setupTests\.[cm]?[tj]sx?$")),
    ("test-runner-config", _regex(r"(jest|vitest|playwright|cypress)\.config\.[cm]?[tj]s$")),
    ("vite-config", _regex(r"/vite\.config\.[cm]?[tj]s$")),
    ("slidev-config", _regex(r"/slidev\.config\.[cm]?[tj]s$")),
)


class FileClassifier:
    """Decides whether a source file belongs to the development context."""

    def __init__(
        self, predicates: Sequence[Tuple[str, FilePredicate]] = DEV_FILE_PREDICATES
    ) -> None:
        self._predicates = tuple(predicates)

    def matching_rule(self, path: str) -> Optional[str]:
        normalized = normalize_path(path)
        for name, predicate in self._predicates:
            if predicate(normalized):
                return name
        return None

    def is_dev(self, path: str) -> bool:
        return self.matching_rule(path) is not None


@dataclass
class IgnoreRule:
    """A gitignore-style pattern relative to the scanned directory."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            candidates = [self.pattern]
            # A leading "**/" also matches zero directories.
            if self.pattern.startswith("**/"):
                candidates.append(self.pattern[3:])
            for pattern in candidates:
                if fnmatchcase(rel_path, pattern):
                    return True
                # "pkg/**" also covers the "pkg" directory itself.
                if pattern.endswith("/**") and fnmatchcase(rel_path, pattern[:-3]):
                    return True
            return False

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = normalize_path(pattern.strip())
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]
    while pattern.startswith("./"):
        pattern = pattern[2:]
    while pattern.startswith("**/**/"):
        pattern = pattern[3:]
    # "**/name" is a plain segment match; "**/dir/**" keeps its slash.
    if pattern.startswith("**/") and "/" not in pattern[3:]:
        pattern = pattern[3:]

    has_slash = "/" in pattern
    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash=has_slash,
    )


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes regardless of the host separator."""
    return path.replace(os.sep, "/").replace("\\", "/")


class Scanner:
    """Enumerates candidate source files below a package directory."""

    def __init__(self, classifier: FileClassifier | None = None) -> None:
        self.classifier = classifier or FileClassifier()

    def scan(
        self, directory: str | Path, ignore_patterns: Sequence[str] = ()
    ) -> List[SourceFileRecord]:
        root = Path(directory)
        if not root.is_dir():
            return []
        rules = [rule for rule in map(build_ignore_rule, ignore_patterns) if rule is not None]
        # Classify on the package-relative path so the checkout location never matters.
        records = [
            SourceFileRecord(
                path=str(path),
                is_dev=self.classifier.is_dev("/" + path.relative_to(root).as_posix()),
            )
            for path in _iter_source_files(root, rules)
        ]
        records.sort(key=lambda record: record.path)
        return records


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    return any(rule.matches(rel_path, is_dir) for rule in rules)


def _is_source_file(filename: str) -> bool:
    if filename.endswith(_DECLARATION_SUFFIXES):
        return False
    return filename.endswith(SOURCE_EXTENSIONS)


def _iter_source_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in dirnames:
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept.append(name)
        dirnames[:] = sorted(kept)

        for filename in filenames:
            if not _is_source_file(filename):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


__all__ = [
    "DEV_FILE_PREDICATES",
    "FileClassifier",
    "IgnoreRule",
    "SOURCE_EXTENSIONS",
    "Scanner",
    "build_ignore_rule",
    "normalize_path",
]
