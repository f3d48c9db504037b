"""Helper utilities for constructing throwaway addon workspaces in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping, Sequence

from addonmap.config import LimitsConfig
from addonmap.extractors.base import ExtractionContext
from addonmap.models import ScanDiagnostics
from addonmap.module_collector import ModuleCollector
from addonmap.repo_scanner import RepoScanner


class AddonRepoBuilder:
    """Writes a workspace with ``repositories/<name>`` holding addon modules."""

    def __init__(self, tmp_path: Path, repo_name: str = "odoo") -> None:
        self.workspace = tmp_path / "workspace"
        self.root = self.workspace / "repositories" / repo_name
        self.root.mkdir(parents=True)

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries relative to the repository root."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def add_module(
        self,
        name: str,
        *,
        depends: Sequence[str] = (),
        data: Sequence[str] = (),
        demo: Sequence[str] = (),
        files: Mapping[str, str] | None = None,
        parent: str = "addons",
    ) -> Path:
        """Create a module directory with a manifest and optional extra files."""
        prefix = f"{parent}/{name}" if parent else name
        manifest = (
            "{\n"
            f"    'name': '{name}',\n"
            f"    'depends': {list(depends)!r},\n"
            f"    'data': {list(data)!r},\n"
            f"    'demo': {list(demo)!r},\n"
            "}\n"
        )
        entries = {f"{prefix}/__manifest__.py": manifest}
        for relative, content in (files or {}).items():
            entries[f"{prefix}/{relative}"] = content
        self.write(entries)
        return self.root / prefix

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root

    def context(
        self,
        *,
        limits: LimitsConfig | None = None,
        workers: int = 1,
        delegated_order: str = "key-first",
    ) -> ExtractionContext:
        """Collect the modules and return a ready extraction context."""
        limits = limits or LimitsConfig()
        scanner = RepoScanner()
        diagnostics = ScanDiagnostics()
        module_map = ModuleCollector(scanner, limits).collect(self.root, diagnostics)
        return ExtractionContext(
            repository=self.root,
            module_map=module_map,
            scanner=scanner,
            limits=limits,
            diagnostics=diagnostics,
            workers=workers,
            delegated_order=delegated_order,
        )


__all__ = ["AddonRepoBuilder"]
