"""Configuration loading for addonmap (.addonmap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".addonmap.yml"

DEFAULT_EXCLUDE_DIRS = (
    ".git",
    ".hg",
    ".svn",
    ".venv",
    ".tox",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
)

DELEGATED_ORDERS = ("key-first", "value-first")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LimitsConfig:
    """File-count and character caps bounding every scan."""

    walk_max_files: int = 10000
    manifest_walk_max_files: int = 20000
    manifest_chars: int = 50000
    extension_sample_files: int = 450
    top_extensions: int = 10
    top_dependencies: int = 40
    model_files: int = 600
    model_chars: int = 120000
    class_body_chars: int = 12000
    model_file_sample: int = 12
    top_hotspots: int = 40
    security_xml_files: int = 200
    acl_chars: int = 120000
    security_xml_chars: int = 180000
    risk_sample: int = 300
    security_entries: int = 3000
    view_files: int = 500
    view_chars: int = 220000
    inherited_views: int = 400
    views: int = 3500
    actions: int = 2000
    menus: int = 2000
    controller_files: int = 300
    controller_chars: int = 160000
    route_block_chars: int = 4000
    public_routes: int = 400
    routes: int = 4000
    high_impact_modules: int = 20


@dataclass
class ConfidenceConfig:
    """Bounds of the heuristic confidence score."""

    baseline: float = 0.55
    floor: float = 0.55
    ceiling: float = 0.97


@dataclass
class ExtractorConfig:
    """Extractor enablement."""

    enabled: List[str] = field(default_factory=list)


@dataclass
class AddonMapConfig:
    """Represents the settings defined in .addonmap.yml."""

    root: Path
    manifest_filename: str = "__manifest__.py"
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    workers: int = 1
    output_dir: Optional[str] = None
    delegated_order: str = "key-first"
    extractors: ExtractorConfig = field(default_factory=ExtractorConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)


def load_config(config_path: Path) -> AddonMapConfig:
    """Load configuration from disk, returning defaults when no file exists."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AddonMapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = AddonMapConfig(root=root)

    manifest_filename = _as_str(data.get("manifest_filename"))
    if manifest_filename:
        config.manifest_filename = manifest_filename

    if "exclude_dirs" in data:
        config.exclude_dirs = _as_str_list(data.get("exclude_dirs"))

    workers = _as_int(data.get("workers"))
    if workers is not None:
        config.workers = max(1, workers)

    config.output_dir = _as_str(data.get("output_dir"))

    extractor_data = _as_dict(data.get("extractors"))
    if extractor_data:
        config.extractors.enabled = _as_str_list(extractor_data.get("enabled"))

    orm_data = _as_dict(data.get("orm"))
    order = _as_str(orm_data.get("delegated_order")) if orm_data else None
    if order is not None:
        if order not in DELEGATED_ORDERS:
            allowed = ", ".join(DELEGATED_ORDERS)
            raise ConfigError(f"orm.delegated_order must be one of: {allowed}")
        config.delegated_order = order

    limits_data = _as_dict(data.get("limits"))
    for item in fields(LimitsConfig):
        value = _as_int(limits_data.get(item.name))
        if value is not None and value > 0:
            setattr(config.limits, item.name, value)

    confidence_data = _as_dict(data.get("confidence"))
    for item in fields(ConfidenceConfig):
        value = _as_float(confidence_data.get(item.name))
        if value is not None:
            setattr(config.confidence, item.name, value)
    if config.confidence.floor > config.confidence.ceiling:
        raise ConfigError("confidence.floor must not exceed confidence.ceiling")

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AddonMapConfig",
    "ConfidenceConfig",
    "ConfigError",
    "ExtractorConfig",
    "LimitsConfig",
    "load_config",
]
