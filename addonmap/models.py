"""Core data models shared across addonmap components."""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple


@dataclass(frozen=True)
class ExtensionCount:
    """Number of sampled files carrying one extension."""

    ext: str
    count: int


@dataclass(frozen=True)
class FileStats:
    """Bounded file-extension histogram for a module directory."""

    sampled_files: int
    top_extensions: Tuple[ExtensionCount, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sampled_files": self.sampled_files,
            "top_extensions": [
                {"ext": item.ext, "count": item.count} for item in self.top_extensions
            ],
        }


@dataclass(frozen=True)
class ModuleInfo:
    """A module root identified by its manifest."""

    name: str
    path: str
    abs_path: str
    depends: Tuple[str, ...] = ()
    data_files: Tuple[str, ...] = ()
    demo_files: Tuple[str, ...] = ()
    file_stats: FileStats = FileStats(sampled_files=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.name,
            "path": self.path,
            "depends": list(self.depends),
            "data_files": list(self.data_files),
            "demo_files": list(self.demo_files),
            "file_stats": self.file_stats.to_dict(),
        }


@dataclass(frozen=True)
class DependencyCount:
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass
class ModuleMap:
    """Collected modules plus the ranked dependency table."""

    modules: List[ModuleInfo]
    top_dependencies: List[DependencyCount]

    @property
    def module_count(self) -> int:
        return len(self.modules)


@dataclass(frozen=True)
class ModelClassEntry:
    """One persistence-model class header found in a source file."""

    module: str
    file: str
    class_name: str
    model: str
    kind: str
    inherits: Tuple[str, ...] = ()
    delegated_inherits: Tuple[str, ...] = ()

    @property
    def identity(self) -> str:
        return self.model or f"{self.module}.{self.class_name}"


@dataclass
class ModelRecord:
    """All facts gathered for one model identity across the tree."""

    model: str
    modules: Set[str] = field(default_factory=set)
    files: Set[str] = field(default_factory=set)
    inheritance_links: Set[str] = field(default_factory=set)
    delegated_links: Set[str] = field(default_factory=set)
    kinds: Set[str] = field(default_factory=set)

    def merge(self, entry: ModelClassEntry) -> None:
        self.modules.add(entry.module)
        self.files.add(entry.file)
        self.inheritance_links.update(entry.inherits)
        self.delegated_links.update(entry.delegated_inherits)
        self.kinds.add(entry.kind)

    @property
    def extension_points(self) -> int:
        return len(self.inheritance_links) + len(self.delegated_links)


@dataclass(frozen=True)
class Hotspot:
    model: str
    extension_points: int
    modules_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "extension_points": self.extension_points,
            "modules_count": self.modules_count,
        }


@dataclass(frozen=True)
class AclEntry:
    """A row of a module's access-control table."""

    module: str
    id: str
    model_ref: str
    group_ref: str
    perm_read: bool = False
    perm_write: bool = False
    perm_create: bool = False
    perm_unlink: bool = False

    @property
    def is_risky(self) -> bool:
        return not self.group_ref and (
            self.perm_write or self.perm_create or self.perm_unlink
        )


@dataclass(frozen=True)
class RecordRule:
    module: str
    file: str
    id: str
    model_ref: str
    groups: Tuple[str, ...] = ()
    has_domain_force: bool = False

    @property
    def is_global(self) -> bool:
        return not self.groups


@dataclass(frozen=True)
class ViewEntry:
    module: str
    file: str
    id: str
    model: str
    inherit_ref: str

    @property
    def is_inherited(self) -> bool:
        return bool(self.inherit_ref)


@dataclass(frozen=True)
class ActionEntry:
    module: str
    file: str
    id: str
    res_model: str


@dataclass(frozen=True)
class MenuEntry:
    module: str
    file: str
    id: str
    name: str
    action: str
    parent: str


@dataclass(frozen=True)
class RouteEntry:
    """One exposed HTTP route path."""

    module: str
    file: str
    route: str
    auth: str = "user"
    type: str = "http"
    methods: Tuple[str, ...] = ()

    @property
    def is_public(self) -> bool:
        return self.auth == "public"


@dataclass
class ScanDiagnostics:
    """Non-fatal problems accumulated during one pipeline run."""

    unreadable_files: int = 0
    short_rows: int = 0
    warnings: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def record_unreadable(self) -> None:
        with self._lock:
            self.unreadable_files += 1

    def record_short_row(self) -> None:
        with self._lock:
            self.short_rows += 1

    def warn(self, message: str) -> None:
        with self._lock:
            if message not in self.warnings:
                self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unreadable_files": self.unreadable_files,
            "short_rows": self.short_rows,
            "warnings": sorted(self.warnings),
        }
