"""CLI parser and entrypoint tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from monodep.cli import _build_parser, _options_from_args, main
from tests._fixtures.workspace_builder import WorkspaceBuilder


def test_cli_defaults() -> None:
    args = _build_parser().parse_args([])

    assert args.directory == "."
    assert args.compact is False
    assert args.json is False
    options = _options_from_args(args)
    assert options.check_outdated is None
    assert options.check_installed_peers is None
    assert options.ownership_policy is None


def test_cli_flags_map_to_run_options() -> None:
    args = _build_parser().parse_args(
        [
            "repo",
            "--only-extras",
            "--no-outdated",
            "--check-installed-peers",
            "--ownership-report",
            "--ownership-policy",
            "workspace-explicit",
            "--dynamic-imports",
            "strict",
            "-v",
        ]
    )
    options = _options_from_args(args)

    assert args.directory == "repo"
    assert args.verbose is True
    assert options.only_extras is True
    assert options.check_outdated is False
    assert options.check_installed_peers is True
    assert options.ownership_report is True
    assert options.ownership_policy == "workspace-explicit"
    assert options.dynamic_import_policy == "strict"


def test_cli_rejects_conflicting_output_modes() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["--json", "--compact"])


def test_main_returns_zero_for_clean_workspace(
    workspace: WorkspaceBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    workspace.manifest("", "solo")

    code = main([str(workspace.path()), "--compact", "--no-outdated"])

    assert code == 0
    assert capsys.readouterr().out.strip() == "[monodep] scanned=1 issues=0"


def test_main_returns_one_when_issues_found(
    workspace: WorkspaceBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    workspace.manifest("", "solo", dependencies={"left-pad": "^1.3.0"})

    code = main([str(workspace.path()), "--json", "--no-outdated"])

    assert code == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["unused"][0]["dependency"] == "left-pad"


def test_main_returns_two_for_missing_root(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = main([str(tmp_path / "missing"), "--no-outdated"])

    assert code == 2
    assert "Workspace root not found" in capsys.readouterr().err
