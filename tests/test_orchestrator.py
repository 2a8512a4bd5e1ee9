"""Tests for monodep.orchestrator."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import pytest

from monodep.analyzers import PeerAnalyzer
from monodep.orchestrator import Orchestrator, RunOptions
from monodep.registry import VersionChecker
from monodep.reporting import render_json
from monodep.resolver import ResolvedManifest
from monodep.workspace import WorkspaceError
from tests._fixtures.workspace_builder import WorkspaceBuilder

OFFLINE = RunOptions(check_outdated=False)


def _seed_monorepo(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", private=True, workspaces=["packages/*"])
    workspace.manifest(
        "packages/app",
        "app",
        dependencies={"react": "^18.2.0", "@acme/ui": "1.0.0", "left-pad": "^1.3.0"},
    )
    workspace.manifest(
        "packages/ui",
        "@acme/ui",
        dependencies={"react": "^17.0.2"},
        peerDependencies={"react": "^18.0.0"},
    )
    workspace.write(
        {
            "packages/app/src/index.tsx": """
                import React from "react";
                import { Button } from "@acme/ui";
                import chalk from "chalk";
                export const App = () => <Button />;
            """,
            "packages/ui/src/index.ts": """
                import React from "react";
                export const Button = () => null;
            """,
        }
    )


def _seed_single(workspace: WorkspaceBuilder, source: str) -> None:
    workspace.manifest("", "solo")
    workspace.write({"src/index.ts": source})


def test_run_reports_every_blocking_category(workspace: WorkspaceBuilder) -> None:
    _seed_monorepo(workspace)

    report = Orchestrator().run(workspace.path(), OFFLINE)

    assert [analysis.package.name for analysis in report.analyses] == ["app", "@acme/ui", "root"]
    assert [(issue.package, issue.dependency) for issue in report.unused] == [("app", "left-pad")]
    assert [(issue.package, issue.dependency) for issue in report.missing] == [("app", "chalk")]
    assert report.wrong_type == []
    assert [mismatch.dependency for mismatch in report.mismatches] == ["react"]
    assert [(issue.package, issue.type) for issue in report.internal_issues] == [
        ("app", "not-workspace")
    ]
    assert [(issue.package, issue.type) for issue in report.peer_issues] == [
        ("@acme/ui", "incompatible-peer")
    ]
    assert report.outdated == ()
    assert report.installed_peer_diagnostics is None
    assert report.exit_code == 1
    assert report.packages_with_issues() == ["@acme/ui", "app"]

    stats = report.stats()
    assert stats["packages_scanned"] == 3
    assert stats["unused"] == 1
    assert stats["mismatch"] == 1


def test_root_analysis_excludes_nested_packages(workspace: WorkspaceBuilder) -> None:
    _seed_monorepo(workspace)

    report = Orchestrator().run(workspace.path(), OFFLINE)

    root = next(analysis for analysis in report.analyses if analysis.package.is_root)
    assert root.files_scanned == 0
    assert root.summary.all_imports == frozenset()


def test_repeated_runs_are_identical(workspace: WorkspaceBuilder) -> None:
    _seed_monorepo(workspace)
    orchestrator = Orchestrator()

    first = orchestrator.run(workspace.path(), OFFLINE)
    second = orchestrator.run(workspace.path(), OFFLINE)

    assert render_json(first) == render_json(second)


def test_only_extras_hides_unused_and_missing(workspace: WorkspaceBuilder) -> None:
    _seed_monorepo(workspace)

    report = Orchestrator().run(
        workspace.path(), RunOptions(only_extras=True, check_outdated=False)
    )

    assert report.unused == []
    assert report.missing == []
    assert report.mismatches


@pytest.mark.parametrize(
    ("policy", "candidates", "exit_code"),
    [("off", 0, 0), ("warn", 1, 0), ("strict", 1, 1)],
)
def test_dynamic_import_policy(
    workspace: WorkspaceBuilder, policy: str, candidates: int, exit_code: int
) -> None:
    _seed_single(
        workspace,
        """
        export async function load(name: string) {
          return import(name);
        }
        """,
    )

    report = Orchestrator().run(
        workspace.path(),
        RunOptions(check_outdated=False, dynamic_import_policy=policy),  # type: ignore[arg-type]
    )

    assert len(report.dynamic_candidates) == candidates
    assert report.exit_code == exit_code
    if candidates:
        candidate = report.dynamic_candidates[0]
        assert candidate.line == 2
        assert candidate.expression == "name"
        assert report.missing == []


def test_config_file_drives_ignores_and_skips(workspace: WorkspaceBuilder) -> None:
    _seed_monorepo(workspace)
    workspace.write(
        {
            ".monodeprc.yaml": """
                ignoreDependencies: [left-pad, chalk]
                skipPackages: ["@acme/ui"]
                checkOutdated: false
            """
        }
    )

    report = Orchestrator().run(workspace.path())

    assert [analysis.package.name for analysis in report.analyses] == ["app", "root"]
    assert report.unused == []
    assert report.missing == []
    assert report.outdated == ()


def test_config_ignore_patterns_skip_generated_sources(workspace: WorkspaceBuilder) -> None:
    _seed_single(workspace, 'import { z } from "zod";\n')
    workspace.manifest("", "solo", dependencies={"zod": "^3.22.0"})
    workspace.write(
        {
            ".monodeprc.json": '{"ignorePatterns": ["**/generated/**"], "checkOutdated": false}',
            "src/generated/client.ts": 'import axios from "axios";\n',
        }
    )

    report = Orchestrator().run(workspace.path())

    assert report.missing == []
    assert report.unused == []
    assert report.analyses[0].files_scanned == 1


def test_outdated_uses_injected_version_checker(workspace: WorkspaceBuilder) -> None:
    _seed_monorepo(workspace)
    requested = []

    def fetch(name: str) -> Optional[str]:
        requested.append(name)
        return {"react": "18.3.1", "left-pad": "1.3.0"}.get(name)

    orchestrator = Orchestrator(version_checker_factory=lambda: VersionChecker(fetch))

    report = orchestrator.run(workspace.path(), RunOptions(check_outdated=True))

    assert sorted(requested) == ["@acme/ui", "left-pad", "react"]
    assert [(item.package, item.dependency, item.latest) for item in report.outdated] == [
        ("@acme/ui", "react", "18.3.1")
    ]


class _StaticResolver:
    def __init__(self, installed: Dict[str, str]) -> None:
        self.installed = installed

    def resolve(self, name: str, from_directory: str) -> Optional[ResolvedManifest]:
        path = self.installed.get(name)
        return ResolvedManifest(name=name, path=path) if path else None


def test_installed_peer_check_is_opt_in(workspace: WorkspaceBuilder, tmp_path: Path) -> None:
    _seed_monorepo(workspace)
    installed = tmp_path / "installed" / "package.json"
    installed.parent.mkdir()
    installed.write_text('{"peerDependencies": {"react-native": "*"}}', encoding="utf-8")
    peer_analyzer = PeerAnalyzer(_StaticResolver({"react": str(installed)}))
    orchestrator = Orchestrator(peer_analyzer=peer_analyzer)

    quiet = orchestrator.run(workspace.path(), OFFLINE)
    checked = orchestrator.run(
        workspace.path(), RunOptions(check_outdated=False, check_installed_peers=True)
    )

    assert quiet.installed_peer_issues == ()
    assert {(issue.package, issue.type) for issue in checked.installed_peer_issues} == {
        ("app", "installed-missing-peer"),
        ("@acme/ui", "installed-missing-peer"),
    }
    assert checked.installed_peer_diagnostics is not None
    assert checked.installed_peer_diagnostics.cache_hits == 1


def test_ownership_report_never_blocks(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.manifest("packages/a", "a", dependencies={"lodash": "^4.17.21"})
    workspace.manifest("packages/b", "b", dependencies={"lodash": "^4.17.21"})
    workspace.write(
        {
            "packages/a/index.js": 'import lodash from "lodash";\n',
            "packages/b/index.js": 'const lodash = require("lodash");\n',
        }
    )

    report = Orchestrator().run(
        workspace.path(), RunOptions(check_outdated=False, ownership_report=True)
    )

    assert [(issue.dependency, issue.packages) for issue in report.ownership_issues] == [
        ("lodash", ("a", "b"))
    ]
    assert report.exit_code == 0


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceError):
        Orchestrator().run(tmp_path / "missing", OFFLINE)
