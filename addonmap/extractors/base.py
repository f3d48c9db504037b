"""Base classes for extractor plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, List, Sequence, Tuple, TypeVar

from ..config import LimitsConfig
from ..models import ModuleInfo, ModuleMap, ScanDiagnostics
from ..repo_scanner import RepoScanner, read_text_safe, relative_posix

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class ExtractionContext:
    """Everything an extractor may read during one pipeline run."""

    repository: Path
    module_map: ModuleMap
    scanner: RepoScanner
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    diagnostics: ScanDiagnostics = field(default_factory=ScanDiagnostics)
    workers: int = 1
    delegated_order: str = "key-first"


@dataclass(frozen=True)
class FileJob:
    """One file to parse on behalf of a module."""

    module: ModuleInfo
    path: Path
    relative: str


class ExtractionResult(ABC):
    """Aggregated output of one extractor, rendered as one artifact."""

    artifact: ClassVar[str]
    method: ClassVar[str] = "pattern-scan"
    assumptions: ClassVar[Tuple[str, ...]] = ()
    scan_subdirectories: ClassVar[Tuple[str, ...]] = ()

    @abstractmethod
    def to_payload(self) -> Dict[str, Any]:
        """Return the artifact body with every collection explicitly sorted."""

    @abstractmethod
    def metrics(self) -> Dict[str, int]:
        """Return headline counts feeding the summary and confidence score."""

    def risks(self) -> List[str]:
        """Return human-readable risks worth reviewing before a change."""
        return []


class Extractor(ABC):
    """Contract for extractors that mine one concern from every module."""

    name: ClassVar[str]

    @abstractmethod
    def extract(self, context: ExtractionContext) -> ExtractionResult:
        """Scan the modules in ``context`` and return the aggregated result."""

    # ------------------------------------------------------------------
    # Shared helpers

    def collect_jobs(
        self,
        context: ExtractionContext,
        subdirectory: str,
        suffix: str,
        max_files: int,
    ) -> List[FileJob]:
        """List ``suffix`` files under ``<module>/<subdirectory>`` for every module."""
        jobs: List[FileJob] = []
        for module in context.module_map.modules:
            directory = Path(module.abs_path) / subdirectory
            if not directory.is_dir():
                continue
            files = context.scanner.list_module_files(
                directory,
                include=lambda path: path.name.endswith(suffix),
                max_files=max_files,
            )
            for path in files:
                jobs.append(
                    FileJob(
                        module=module,
                        path=path,
                        relative=relative_posix(path, context.repository),
                    )
                )
        return jobs

    def read(self, context: ExtractionContext, path: Path, max_chars: int) -> str:
        return read_text_safe(path, max_chars, context.diagnostics)

    def map_jobs(
        self, context: ExtractionContext, jobs: Sequence[T], worker: Callable[[T], R]
    ) -> List[R]:
        """Apply ``worker`` to every job, in parallel when configured.

        Results come back in job order so callers merge them deterministically
        from a single thread.
        """
        if context.workers <= 1 or len(jobs) < 2:
            return [worker(job) for job in jobs]
        with ThreadPoolExecutor(max_workers=context.workers) as pool:
            return list(pool.map(worker, jobs))


def sort_key(value: str) -> Tuple[str, str]:
    """Case-insensitive ordering with a byte-order tie-break."""
    return (value.casefold(), value)


__all__ = [
    "ExtractionContext",
    "ExtractionResult",
    "Extractor",
    "FileJob",
    "sort_key",
]
