"""Workspace discovery and manifest loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import yaml

from .logging import get_logger
from .models import PackageManifest, WorkspaceGraph

_MANIFEST_NAME = "package.json"
_PNPM_WORKSPACE_FILE = "pnpm-workspace.yaml"
_SKIPPED_DIRS = {"node_modules", ".git"}


class WorkspaceError(RuntimeError):
    """Raised when the workspace root itself cannot be read."""


class WorkspaceLoader:
    """Resolves workspace membership and loads every package manifest."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()
        self.logger = get_logger("workspace")

    def load(self) -> WorkspaceGraph:
        """Return the immutable package graph for the workspace root."""
        if not self.root.exists():
            raise WorkspaceError(f"Workspace root not found: {self.root}")
        if not self.root.is_dir():
            raise WorkspaceError(f"Workspace root is not a directory: {self.root}")
        try:
            next(self.root.iterdir(), None)
        except OSError as exc:
            raise WorkspaceError(f"Workspace root is not readable: {self.root}: {exc}") from exc

        patterns = self.workspace_patterns()
        self.logger.debug("Workspace patterns: %s", ", ".join(patterns))
        manifest_paths = self._match_manifests(patterns)

        root_manifest = self.root / _MANIFEST_NAME
        if root_manifest.is_file() and root_manifest not in manifest_paths:
            manifest_paths.append(root_manifest)

        packages: List[PackageManifest] = []
        seen: Set[str] = set()
        for manifest_path in manifest_paths:
            package = self._load_manifest(manifest_path)
            if package is None:
                continue
            if package.name in seen:
                self.logger.warning(
                    "Duplicate package name %s at %s; keeping the first manifest",
                    package.name,
                    package.location,
                )
                continue
            seen.add(package.name)
            packages.append(package)

        self.logger.info("Found %d packages under %s", len(packages), self.root)
        return WorkspaceGraph(root=str(self.root), packages=tuple(packages))

    def workspace_patterns(self) -> List[str]:
        """Return workspace globs from pnpm-workspace.yaml, package.json, or the default."""
        pnpm_file = self.root / _PNPM_WORKSPACE_FILE
        if pnpm_file.is_file():
            try:
                document = yaml.safe_load(pnpm_file.read_text(encoding="utf-8"))
            except (OSError, yaml.YAMLError) as exc:
                self.logger.warning("Failed to parse %s: %s", _PNPM_WORKSPACE_FILE, exc)
            else:
                if isinstance(document, dict) and isinstance(document.get("packages"), list):
                    return _string_items(document["packages"])

        root_manifest = self.root / _MANIFEST_NAME
        data = None
        if root_manifest.is_file():
            data = load_manifest_data(root_manifest, logger=self.logger)
        if data is not None:
            workspaces = data.get("workspaces")
            if isinstance(workspaces, list):
                return _string_items(workspaces)
            if isinstance(workspaces, dict) and isinstance(workspaces.get("packages"), list):
                return _string_items(workspaces["packages"])

        return ["."]

    def _match_manifests(self, patterns: Sequence[str]) -> List[Path]:
        included: Set[Path] = set()
        excluded: Set[Path] = set()
        for raw in patterns:
            negate = raw.startswith("!")
            pattern = raw[1:] if negate else raw
            target = excluded if negate else included
            target.update(self._glob_manifests(pattern))
        return sorted(included - excluded)

    def _glob_manifests(self, pattern: str) -> List[Path]:
        pattern = pattern.strip().rstrip("/")
        while pattern.startswith("./"):
            pattern = pattern[2:]
        if pattern in ("", "."):
            candidate = self.root / _MANIFEST_NAME
            return [candidate] if candidate.is_file() else []

        try:
            matches = list(self.root.glob(f"{pattern}/{_MANIFEST_NAME}"))
        except (ValueError, NotImplementedError) as exc:
            self.logger.warning("Ignoring invalid workspace pattern %r: %s", pattern, exc)
            return []

        results: List[Path] = []
        for match in matches:
            relative_parts = match.relative_to(self.root).parts
            if _SKIPPED_DIRS.intersection(relative_parts):
                continue
            if match.is_file():
                results.append(match)
        return results

    def _load_manifest(self, manifest_path: Path) -> Optional[PackageManifest]:
        data = load_manifest_data(manifest_path, logger=self.logger)
        if data is None:
            return None

        location = manifest_path.parent
        name = data.get("name")
        if not isinstance(name, str) or not name:
            name = location.name
        return PackageManifest(
            name=name,
            location=str(location),
            dependencies=_dependency_map(data.get("dependencies")),
            dev_dependencies=_dependency_map(data.get("devDependencies")),
            peer_dependencies=_dependency_map(data.get("peerDependencies")),
            optional_dependencies=_dependency_map(data.get("optionalDependencies")),
            is_root=location == self.root,
        )


def build_workspace_graph(root: str | Path) -> WorkspaceGraph:
    """Convenience wrapper around :class:`WorkspaceLoader`."""
    return WorkspaceLoader(root).load()


def load_manifest_data(
    path: Path, logger: Optional[logging.Logger] = None
) -> Optional[Dict[str, Any]]:
    """Return a parsed manifest mapping, or None when it cannot be read.

    Failures are reported on ``logger`` when one is given.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        if logger is not None:
            logger.warning("Failed to parse %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        if logger is not None:
            logger.warning("Failed to parse %s: manifest is not an object", path)
        return None
    return data


def _dependency_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        name: version
        for name, version in value.items()
        if isinstance(name, str) and isinstance(version, str)
    }


def _string_items(values: List[Any]) -> List[str]:
    return [value for value in values if isinstance(value, str) and value.strip()]


__all__ = [
    "WorkspaceError",
    "WorkspaceLoader",
    "build_workspace_graph",
    "load_manifest_data",
]
