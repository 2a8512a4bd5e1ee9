"""Tests for monodep.workspace."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

import pytest

from monodep.models import PackageManifest, WorkspaceGraph
from monodep.workspace import WorkspaceError, WorkspaceLoader, load_manifest_data
from tests._fixtures.workspace_builder import WorkspaceBuilder


def _package(graph: WorkspaceGraph, name: str) -> PackageManifest:
    return next(package for package in graph.packages if package.name == name)


def test_pnpm_workspace_file_takes_precedence(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["apps/*"])
    workspace.write({"pnpm-workspace.yaml": "packages:\n  - 'packages/*'\n"})
    workspace.manifest("packages/a", "a")
    workspace.manifest("apps/web", "web")

    graph = workspace.load()

    assert [package.name for package in graph.packages] == ["a", "root"]
    root = graph.root_package
    assert root is not None
    assert root.name == "root"
    assert root.is_root is True
    assert _package(graph, "a").is_root is False


def test_package_json_workspaces_support_negation(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*", "!packages/private"])
    workspace.manifest("packages/a", "a")
    workspace.manifest("packages/b", "b")
    workspace.manifest("packages/private", "private")

    graph = workspace.load()

    assert graph.names() == frozenset({"root", "a", "b"})


def test_workspaces_object_form(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces={"packages": ["libs/**"]})
    workspace.manifest("libs/core", "core")
    workspace.manifest("libs/nested/util", "util")

    graph = workspace.load()

    assert {"core", "util", "root"} <= set(graph.names())


def test_single_package_repo_defaults_to_root(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "solo", dependencies={"react": "^18.2.0"})
    workspace.manifest("examples/demo", "demo")

    graph = workspace.load()

    assert [package.name for package in graph.packages] == ["solo"]
    assert graph.packages[0].dependencies == {"react": "^18.2.0"}


def test_manifest_maps_keep_only_string_entries(workspace: WorkspaceBuilder) -> None:
    workspace.manifest(
        "",
        "root",
        dependencies={"react": "^18.0.0", "broken": 3},
        devDependencies={"vitest": "^1.0.0"},
        peerDependencies={"react-dom": "^18.0.0"},
        optionalDependencies={"fsevents": "^2.3.0"},
    )

    package = workspace.load().packages[0]

    assert package.dependencies == {"react": "^18.0.0"}
    assert package.dev_dependencies == {"vitest": "^1.0.0"}
    assert package.peer_dependencies == {"react-dom": "^18.0.0"}
    assert package.optional_dependencies == {"fsevents": "^2.3.0"}


def test_unreadable_manifest_is_skipped(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.manifest("packages/good", "good")
    workspace.write({"packages/bad/package.json": "{ not json"})

    graph = workspace.load()

    assert graph.names() == frozenset({"root", "good"})


class _RecordingLogger:
    def __init__(self) -> None:
        self.warnings: List[str] = []

    def debug(self, message: str, *args: Any) -> None:
        pass

    info = debug

    def warning(self, message: str, *args: Any) -> None:
        self.warnings.append(message % args)


def test_unreadable_manifests_are_reported(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.write(
        {
            "packages/bad/package.json": "{ not json",
            "packages/list/package.json": "[1, 2]",
        }
    )
    recorder = _RecordingLogger()
    loader = WorkspaceLoader(workspace.path())
    loader.logger = recorder  # type: ignore[assignment]

    graph = loader.load()

    assert graph.names() == frozenset({"root"})
    assert len(recorder.warnings) == 2
    assert all(message.startswith("Failed to parse") for message in recorder.warnings)
    assert any("manifest is not an object" in message for message in recorder.warnings)


def test_load_manifest_data_is_silent_without_logger(tmp_path: Path) -> None:
    broken = tmp_path / "package.json"
    broken.write_text("{ not json", encoding="utf-8")

    assert load_manifest_data(broken) is None
    assert load_manifest_data(tmp_path / "missing.json") is None


def test_duplicate_names_keep_first_manifest(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.manifest("packages/a", "shared", dependencies={"left": "1.0.0"})
    workspace.manifest("packages/b", "shared", dependencies={"right": "1.0.0"})

    graph = workspace.load()

    shared = _package(graph, "shared")
    assert shared.dependencies == {"left": "1.0.0"}
    assert len(graph.packages) == 2


def test_unnamed_manifest_uses_directory_name(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["tools/*"])
    workspace.manifest("tools/scripts")

    graph = workspace.load()

    assert "scripts" in graph.names()


def test_manifests_under_node_modules_are_ignored(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["**"])
    workspace.manifest("packages/a", "a")
    workspace.manifest("node_modules/react", "react")

    graph = workspace.load()

    assert "react" not in graph.names()
    assert "a" in graph.names()


def test_nested_patterns_cover_inner_packages(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.manifest("packages/a", "a")
    workspace.manifest("packages-extra", "sibling")

    graph = workspace.load()
    root = graph.root_package
    assert root is not None

    assert graph.nested_patterns(root) == ["packages/a/**"]
    assert graph.nested_patterns(_package(graph, "a")) == []


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceError):
        WorkspaceLoader(tmp_path / "missing").load()


def test_root_must_be_directory(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(WorkspaceError):
        WorkspaceLoader(target).load()
