"""Tests for report rendering."""

from __future__ import annotations

import json

from monodep.orchestrator import Orchestrator, RunOptions
from monodep.reporting import render_compact, render_json, render_text
from tests._fixtures.workspace_builder import WorkspaceBuilder


def _report(workspace: WorkspaceBuilder):  # type: ignore[no-untyped-def]
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.manifest("packages/a", "a", dependencies={"left-pad": "^1.3.0"})
    workspace.write({"packages/a/index.js": 'import "chalk";\n'})
    return Orchestrator().run(workspace.path(), RunOptions(check_outdated=False))


def test_render_compact_lists_one_line_per_issue(workspace: WorkspaceBuilder) -> None:
    output = render_compact(_report(workspace))

    assert output.splitlines() == [
        "[monodep] scanned=2 issues=2",
        "[unused] a: left-pad (Declared but never imported)",
        "[missing] a: chalk (Imported but not declared in package.json)",
    ]


def test_render_text_groups_by_package(workspace: WorkspaceBuilder) -> None:
    output = render_text(_report(workspace))

    assert "Scanned 2 packages" in output
    assert "\na\n" in output
    assert "left-pad" in output
    assert output.rstrip().endswith("2 issues across 1 packages")


def test_render_text_for_clean_workspace(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "solo")

    report = Orchestrator().run(workspace.path(), RunOptions(check_outdated=False))

    assert "No dependency issues found." in render_text(report)


def test_render_json_is_plain_data(workspace: WorkspaceBuilder) -> None:
    payload = json.loads(render_json(_report(workspace)))

    assert payload["total_issues"] == 2
    assert payload["exit_code"] == 1
    assert payload["unused"] == [
        {"package": "a", "dependency": "left-pad", "detail": "Declared but never imported"}
    ]
    assert payload["stats"]["packages_with_issues"] == 1
    assert payload["installed_peer_diagnostics"] is None
