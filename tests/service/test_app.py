"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from addonmap.config import ConfigError
from addonmap.orchestrator import Orchestrator, RunOutcome
from addonmap.render import ArtifactPaths
from addonmap.repo_scanner import FatalInputError
from addonmap.service import create_app
from tests._fixtures.repo_builder import AddonRepoBuilder


class _StubOrchestrator:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[dict[str, object]] = []
        self.error = error

    def run(self, workspace, repo="odoo", repo_path=None, output_dir=None, workers=None) -> RunOutcome:
        self.calls.append(
            {"workspace": workspace, "repo": repo, "repo_path": repo_path, "output_dir": output_dir}
        )
        if self.error is not None:
            raise self.error
        root = Path(workspace)
        return RunOutcome(
            workspace=root,
            repository=root / "repositories" / repo,
            output_dir=root / "out",
            metrics={"modules": 2},
            confidence_score=0.55,
            artifacts=[
                ArtifactPaths(
                    name="module-map",
                    json_path=root / "out" / "module-map.json",
                    md_path=root / "out" / "module-map.md",
                )
            ],
        )


def _client(orchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint() -> None:
    response = _client(_StubOrchestrator()).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_scan_endpoint_invokes_orchestrator(tmp_path: Path) -> None:
    orchestrator = _StubOrchestrator()

    response = _client(orchestrator).post(
        "/scan", json={"workspace": str(tmp_path), "repo": "enterprise"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["repository"] == "repositories/enterprise"
    assert body["metrics"] == {"modules": 2}
    assert body["confidence_score"] == 0.55
    assert body["artifacts"][0]["name"] == "module-map"
    assert orchestrator.calls == [
        {"workspace": str(tmp_path), "repo": "enterprise", "repo_path": None, "output_dir": None}
    ]


def test_scan_maps_fatal_input_to_404(tmp_path: Path) -> None:
    orchestrator = _StubOrchestrator(FatalInputError("Workspace path not found: x"))

    response = _client(orchestrator).post("/scan", json={"workspace": str(tmp_path)})

    assert response.status_code == 404
    assert "Workspace path not found" in response.json()["detail"]


def test_scan_maps_config_error_to_400(tmp_path: Path) -> None:
    orchestrator = _StubOrchestrator(ConfigError("bad config"))

    response = _client(orchestrator).post("/scan", json={"workspace": str(tmp_path)})

    assert response.status_code == 400
    assert response.json() == {"detail": "bad config"}


def test_scan_against_real_repository(repo_builder: AddonRepoBuilder) -> None:
    repo_builder.add_module("sale", depends=["base"])

    response = _client(Orchestrator()).post(
        "/scan", json={"workspace": str(repo_builder.workspace), "output_dir": "out"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["metrics"]["modules"] == 1
    assert len(body["artifacts"]) == 6
    assert (repo_builder.workspace / "out" / "route-map.json").is_file()
