"""Module manifest collection and dependency ranking."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .config import LimitsConfig
from .extractors.base import sort_key
from .extractors.fields import extract_list_field
from .logging import get_logger
from .models import (
    DependencyCount,
    ExtensionCount,
    FileStats,
    ModuleInfo,
    ModuleMap,
    ScanDiagnostics,
)
from .repo_scanner import RepoScanner, read_text_safe, relative_posix

logger = get_logger("modules")

NO_EXTENSION = "[no_ext]"

MODULE_MAP_ASSUMPTIONS = (
    "A module is any directory holding a manifest file; manifests are read as text, not executed.",
    "List fields are captured up to the first closing bracket; nested lists are not supported.",
)


class DependencyCounter:
    """Accumulates how many modules depend on each dependency."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def add(self, dependencies: Iterable[str]) -> None:
        self._counts.update(set(dependencies))

    def count(self, name: str) -> int:
        return self._counts[name]

    def top(self, limit: int) -> List[DependencyCount]:
        ranked = sorted(self._counts.items(), key=lambda item: (-item[1], item[0]))
        return [DependencyCount(name=name, count=count) for name, count in ranked[:limit]]


def _extension_of(path: Path) -> str:
    suffix = path.suffix.lower()
    return suffix or NO_EXTENSION


class ModuleCollector:
    """Reads every manifest and builds the module map."""

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        limits: LimitsConfig | None = None,
    ) -> None:
        self.scanner = scanner or RepoScanner()
        self.limits = limits or LimitsConfig()

    def collect(
        self, repository: Path, diagnostics: ScanDiagnostics | None = None
    ) -> ModuleMap:
        diagnostics = diagnostics or ScanDiagnostics()
        counter = DependencyCounter()
        modules: List[ModuleInfo] = []

        for manifest_path in self.scanner.locate_manifests(repository):
            module = self._collect_module(repository, manifest_path, diagnostics)
            counter.add(module.depends)
            modules.append(module)

        modules.sort(key=lambda item: sort_key(item.name) + (item.path,))
        logger.info("Collected %d modules", len(modules))
        return ModuleMap(
            modules=modules,
            top_dependencies=counter.top(self.limits.top_dependencies),
        )

    def _collect_module(
        self, repository: Path, manifest_path: Path, diagnostics: ScanDiagnostics
    ) -> ModuleInfo:
        module_dir = manifest_path.parent
        content = read_text_safe(manifest_path, self.limits.manifest_chars, diagnostics)
        return ModuleInfo(
            name=module_dir.name,
            path=relative_posix(module_dir, repository),
            abs_path=str(module_dir),
            depends=tuple(extract_list_field(content, "depends")),
            data_files=tuple(extract_list_field(content, "data")),
            demo_files=tuple(extract_list_field(content, "demo")),
            file_stats=self.sample_extensions(module_dir),
        )

    def sample_extensions(self, module_dir: Path) -> FileStats:
        """Histogram of file extensions over a bounded sample of the module."""
        files = self.scanner.list_module_files(
            module_dir, max_files=self.limits.extension_sample_files
        )
        counts = Counter(_extension_of(path) for path in files)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return FileStats(
            sampled_files=len(files),
            top_extensions=tuple(
                ExtensionCount(ext=ext, count=count)
                for ext, count in ranked[: self.limits.top_extensions]
            ),
        )


def module_map_payload(module_map: ModuleMap) -> Dict[str, Any]:
    return {
        "module_count": module_map.module_count,
        "top_dependencies": [item.to_dict() for item in module_map.top_dependencies],
        "modules": [module.to_dict() for module in module_map.modules],
    }


def module_map_metrics(module_map: ModuleMap) -> Dict[str, int]:
    return {"modules": module_map.module_count}


__all__ = [
    "DependencyCounter",
    "ModuleCollector",
    "module_map_metrics",
    "module_map_payload",
]
