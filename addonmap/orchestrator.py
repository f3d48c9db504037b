"""Pipeline orchestration: resolve, collect, extract, aggregate, render."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .aggregation import (
    CONFIDENCE_NOTE,
    build_expert_summary,
    confidence_score,
    merge_metrics,
    risk_lines,
)
from .config import AddonMapConfig, ConfigError, load_config
from .extractors import ExtractionContext, ExtractionResult, Extractor, discover_extractors
from .logging import get_logger, log_stage
from .models import ModuleMap, ScanDiagnostics
from .module_collector import (
    MODULE_MAP_ASSUMPTIONS,
    ModuleCollector,
    module_map_metrics,
    module_map_payload,
)
from .render import ArtifactPaths, Provenance, stamp_payload, utc_timestamp, write_artifact_pair
from .repo_scanner import RepoScanner, relative_posix, resolve_repository

DEFAULT_REPO = "odoo"
DEFAULT_OUTPUT_DIR = Path("context-engineering") / "sources" / "odoo-business-model"


@dataclass
class RunOutcome:
    """Result of one pipeline execution."""

    workspace: Path
    repository: Path
    output_dir: Path
    metrics: Dict[str, int]
    confidence_score: float
    artifacts: List[ArtifactPaths] = field(default_factory=list)
    diagnostics: ScanDiagnostics = field(default_factory=ScanDiagnostics)

    @property
    def repository_label(self) -> str:
        return relative_posix(self.repository, self.workspace)


class Orchestrator:
    """Coordinates one scan of an addon repository into the artifact set."""

    def __init__(self, extractors: Optional[Iterable[Extractor]] = None) -> None:
        self._extractor_overrides = list(extractors) if extractors is not None else None
        self.logger = get_logger("orchestrator")

    def run(
        self,
        workspace: str | Path,
        repo: str = DEFAULT_REPO,
        repo_path: str | None = None,
        output_dir: str | None = None,
        workers: int | None = None,
    ) -> RunOutcome:
        """Scan the resolved repository and write every artifact pair."""
        workspace_path = Path(workspace).expanduser().resolve()
        repository = resolve_repository(workspace_path, repo or DEFAULT_REPO, repo_path)
        config = load_config(workspace_path)
        if workers is not None:
            config.workers = max(1, workers)
        target_dir = self._resolve_output_dir(workspace_path, output_dir or config.output_dir)
        self.logger.info("Scanning %s into %s", repository, target_dir)

        limits = config.limits
        scanner = RepoScanner(
            manifest_filename=config.manifest_filename,
            exclude_dirs=config.exclude_dirs,
            max_files=limits.manifest_walk_max_files,
            walk_max_files=limits.walk_max_files,
        )
        diagnostics = ScanDiagnostics()

        with log_stage(self.logger, "modules"):
            module_map = ModuleCollector(scanner, limits).collect(repository, diagnostics)

        context = ExtractionContext(
            repository=repository,
            module_map=module_map,
            scanner=scanner,
            limits=limits,
            diagnostics=diagnostics,
            workers=config.workers,
            delegated_order=config.delegated_order,
        )
        results: List[ExtractionResult] = []
        for extractor in self._select_extractors(config):
            with log_stage(self.logger, extractor.name):
                results.append(extractor.extract(context))

        label = relative_posix(repository, workspace_path)
        generated_at = utc_timestamp()
        payloads = self._build_payloads(
            config, label, generated_at, module_map, results, diagnostics
        )

        with log_stage(self.logger, "render"):
            artifacts = [write_artifact_pair(target_dir, payload) for payload in payloads]

        summary = payloads[-1]
        self.logger.info("Wrote %d artifacts to %s", len(artifacts), target_dir)
        return RunOutcome(
            workspace=workspace_path,
            repository=repository,
            output_dir=target_dir,
            metrics=dict(summary["metrics"]),
            confidence_score=float(summary["confidence_score"]),
            artifacts=artifacts,
            diagnostics=diagnostics,
        )

    # ------------------------------------------------------------------
    # Helpers

    def _select_extractors(self, config: AddonMapConfig) -> List[Extractor]:
        if self._extractor_overrides is not None:
            return list(self._extractor_overrides)
        try:
            return discover_extractors(config.extractors.enabled)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    @staticmethod
    def _resolve_output_dir(workspace: Path, output_dir: str | None) -> Path:
        if not output_dir:
            return workspace / DEFAULT_OUTPUT_DIR
        candidate = Path(output_dir).expanduser()
        return candidate if candidate.is_absolute() else workspace / candidate

    def _build_payloads(
        self,
        config: AddonMapConfig,
        label: str,
        generated_at: str,
        module_map: ModuleMap,
        results: Sequence[ExtractionResult],
        diagnostics: ScanDiagnostics,
    ) -> List[Dict[str, Any]]:
        payloads: List[Dict[str, Any]] = []

        def _stamp(
            name: str,
            body: Mapping[str, Any],
            metrics: Mapping[str, int],
            scan_roots: Sequence[str],
            method: str,
            assumptions: Sequence[str],
        ) -> None:
            payloads.append(
                stamp_payload(
                    name,
                    body,
                    repository=label,
                    confidence=confidence_score(metrics, config.confidence),
                    provenance=Provenance(
                        scan_roots=scan_roots,
                        method=method,
                        assumptions=tuple(assumptions) + (CONFIDENCE_NOTE,),
                    ),
                    generated_at=generated_at,
                )
            )

        module_metrics = module_map_metrics(module_map)
        _stamp(
            "module-map",
            module_map_payload(module_map),
            module_metrics,
            [label],
            "manifest-scan",
            MODULE_MAP_ASSUMPTIONS,
        )

        for result in results:
            roots = [f"{label}/**/{sub}" for sub in result.scan_subdirectories] or [label]
            _stamp(
                result.artifact,
                result.to_payload(),
                result.metrics(),
                roots,
                result.method,
                result.assumptions,
            )

        metrics = merge_metrics(module_metrics, *(result.metrics() for result in results))
        _stamp(
            "expert-summary",
            build_expert_summary(
                metrics,
                module_map.top_dependencies,
                risk_lines(results),
                diagnostics,
                high_impact_limit=config.limits.high_impact_modules,
            ),
            metrics,
            [label],
            "aggregation",
            (),
        )
        return payloads


__all__ = ["DEFAULT_OUTPUT_DIR", "DEFAULT_REPO", "Orchestrator", "RunOutcome"]
