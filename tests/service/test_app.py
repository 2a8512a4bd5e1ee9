"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient  # noqa: E402

from monodep.service import create_app  # noqa: E402
from tests._fixtures.workspace_builder import WorkspaceBuilder  # noqa: E402


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_endpoint(client: TestClient, workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "root", workspaces=["packages/*"])
    workspace.manifest("packages/a", "a", dependencies={"left-pad": "^1.3.0"})
    workspace.write({"packages/a/index.ts": 'import "zod";\n'})

    response = client.post(
        "/analyze",
        json={"path": str(workspace.path()), "check_outdated": False},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["exit_code"] == 1
    assert [item["dependency"] for item in data["unused"]] == ["left-pad"]
    assert [item["dependency"] for item in data["missing"]] == ["zod"]


def test_analyze_only_extras(client: TestClient, workspace: WorkspaceBuilder) -> None:
    workspace.manifest("", "solo", dependencies={"left-pad": "^1.3.0"})

    response = client.post(
        "/analyze",
        json={"path": str(workspace.path()), "only_extras": True, "check_outdated": False},
    )

    assert response.status_code == 200
    assert response.json()["total_issues"] == 0


def test_analyze_missing_root(client: TestClient, tmp_path: Path) -> None:
    response = client.post(
        "/analyze", json={"path": str(tmp_path / "missing"), "check_outdated": False}
    )

    assert response.status_code == 404
    assert "Workspace root not found" in response.json()["detail"]
