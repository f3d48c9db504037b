"""Tests for addonmap.orchestrator."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from addonmap.config import ConfigError
from addonmap.extractors.routes import RouteExtractor
from addonmap.orchestrator import DEFAULT_OUTPUT_DIR, Orchestrator
from addonmap.repo_scanner import FatalInputError
from tests._fixtures.repo_builder import AddonRepoBuilder

ARTIFACTS = [
    "module-map",
    "orm-model-map",
    "security-map",
    "ui-map",
    "route-map",
    "expert-summary",
]


def _load(outcome, name: str) -> dict:
    path = outcome.output_dir / f"{name}.json"
    return json.loads(path.read_text(encoding="utf-8"))


def _raw_without_timestamp(outcome, name: str) -> str:
    text = (outcome.output_dir / f"{name}.json").read_text(encoding="utf-8")
    lines = [line for line in text.splitlines(keepends=True) if '"generated_at":' not in line]
    assert len(lines) == text.count("\n") - 1
    return "".join(lines)


def _seed_sample_repo(builder: AddonRepoBuilder) -> None:
    builder.add_module(
        "partner_extension",
        depends=["base"],
        files={
            "models/partner.py": """
            from odoo import models


            class PartnerExtension(models.Model):
                _name = "res.partner.extension"
            """,
        },
    )
    builder.add_module("reporting", depends=["base"])


def test_run_end_to_end(repo_builder: AddonRepoBuilder) -> None:
    _seed_sample_repo(repo_builder)

    outcome = Orchestrator().run(repo_builder.workspace)

    assert outcome.output_dir == repo_builder.workspace.resolve() / DEFAULT_OUTPUT_DIR
    assert [artifact.name for artifact in outcome.artifacts] == ARTIFACTS
    for artifact in outcome.artifacts:
        assert artifact.json_path.is_file()
        assert artifact.md_path.is_file()

    module_map = _load(outcome, "module-map")
    assert module_map["module_count"] == 2
    assert module_map["top_dependencies"] == [{"name": "base", "count": 2}]
    assert module_map["repository"] == "repositories/odoo"

    orm_map = _load(outcome, "orm-model-map")
    assert orm_map["models_detected"] == 1
    assert orm_map["provenance"]["scan_roots"] == ["repositories/odoo/**/models"]

    summary = _load(outcome, "expert-summary")
    assert summary["metrics"]["modules"] == 2
    assert summary["metrics"]["orm_models"] == 1
    assert summary["high_impact_modules"] == [{"name": "base", "count": 2}]
    assert summary["priority_risks"] == []
    assert outcome.metrics == summary["metrics"]
    assert outcome.confidence_score == summary["confidence_score"]


def test_every_artifact_is_stamped_and_bounded(repo_builder: AddonRepoBuilder) -> None:
    _seed_sample_repo(repo_builder)

    outcome = Orchestrator().run(repo_builder.workspace)

    for name in ARTIFACTS:
        payload = _load(outcome, name)
        assert payload["artifact"] == name
        assert payload["generated_at"].endswith("Z")
        assert 0.55 <= payload["confidence_score"] <= 0.97
        assert set(payload["provenance"]) == {"scan_roots", "method", "assumptions"}
        assert any("heuristic" in item for item in payload["provenance"]["assumptions"])


def test_empty_repository_scores_floor(repo_builder: AddonRepoBuilder) -> None:
    outcome = Orchestrator().run(repo_builder.workspace)

    assert outcome.metrics["modules"] == 0
    for name in ARTIFACTS:
        assert _load(outcome, name)["confidence_score"] == pytest.approx(0.55)


def test_runs_are_idempotent_apart_from_timestamp(repo_builder: AddonRepoBuilder) -> None:
    _seed_sample_repo(repo_builder)
    repo_builder.add_module(
        "website",
        files={
            "controllers/main.py": "@http.route(['/b', '/a'], auth='public')\ndef f():\n    pass\n",
            "security/ir.model.access.csv": "id,model_id:id,group_id:id,perm_read,perm_write\nacc,m,,1,1\n",
        },
    )

    first = Orchestrator().run(repo_builder.workspace)
    snapshot = {name: _raw_without_timestamp(first, name) for name in ARTIFACTS}
    second = Orchestrator().run(repo_builder.workspace, workers=4)

    for name in ARTIFACTS:
        assert _raw_without_timestamp(second, name) == snapshot[name]


def test_output_dir_and_repo_path_resolve_against_workspace(
    repo_builder: AddonRepoBuilder,
) -> None:
    _seed_sample_repo(repo_builder)

    outcome = Orchestrator().run(
        repo_builder.workspace,
        repo_path="repositories/odoo",
        output_dir="out",
    )

    assert outcome.output_dir == repo_builder.workspace.resolve() / "out"
    assert (outcome.output_dir / "expert-summary.md").is_file()


def test_config_output_dir_and_extractor_selection(repo_builder: AddonRepoBuilder) -> None:
    _seed_sample_repo(repo_builder)
    (repo_builder.workspace / ".addonmap.yml").write_text(
        "output_dir: artifacts\nextractors:\n  enabled: [orm]\n", encoding="utf-8"
    )

    outcome = Orchestrator().run(repo_builder.workspace)

    assert outcome.output_dir == repo_builder.workspace.resolve() / "artifacts"
    assert [artifact.name for artifact in outcome.artifacts] == [
        "module-map",
        "orm-model-map",
        "expert-summary",
    ]


def test_unknown_extractor_in_config_is_config_error(repo_builder: AddonRepoBuilder) -> None:
    (repo_builder.workspace / ".addonmap.yml").write_text(
        "extractors:\n  enabled: [nope]\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError):
        Orchestrator().run(repo_builder.workspace)


def test_extractor_overrides(repo_builder: AddonRepoBuilder) -> None:
    _seed_sample_repo(repo_builder)

    outcome = Orchestrator(extractors=[RouteExtractor()]).run(repo_builder.workspace)

    assert [artifact.name for artifact in outcome.artifacts] == [
        "module-map",
        "route-map",
        "expert-summary",
    ]


def test_missing_repository_is_fatal(tmp_path: Path) -> None:
    (tmp_path / "repositories").mkdir()

    with pytest.raises(FatalInputError):
        Orchestrator().run(tmp_path)
    with pytest.raises(FatalInputError):
        Orchestrator().run(tmp_path / "missing")
