"""Installed-manifest resolution for peer validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

_MODULES_DIR = "node_modules"


@dataclass(frozen=True)
class ResolvedManifest:
    """Location of an installed dependency's package.json."""

    name: str
    path: str


class ManifestResolver(Protocol):
    """Resolves a dependency's installed manifest as seen from a directory."""

    def resolve(self, name: str, from_directory: str) -> Optional[ResolvedManifest]:
        """Return the installed manifest location, or None when it is not installed."""


class NodeModulesResolver:
    """Node's ``node_modules`` lookup, starting at the consuming package.

    Mirrors ``require.resolve("<name>/package.json")`` from ``from_directory``:
    each ancestor's ``node_modules`` directory is checked in turn, nearest first.
    """

    def __init__(self, stop_at: str | Path | None = None) -> None:
        self._stop_at = Path(stop_at).resolve() if stop_at is not None else None

    def resolve(self, name: str, from_directory: str) -> Optional[ResolvedManifest]:
        if not name or name.startswith((".", "/")):
            return None
        start = Path(from_directory)
        for directory in (start, *start.parents):
            if directory.name == _MODULES_DIR:
                continue
            candidate = directory / _MODULES_DIR / name / "package.json"
            if candidate.is_file():
                return ResolvedManifest(name=name, path=str(candidate.resolve()))
            if self._stop_at is not None and directory == self._stop_at:
                break
        return None


__all__ = ["ManifestResolver", "NodeModulesResolver", "ResolvedManifest"]
