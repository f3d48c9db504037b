"""Built-in extractors and plugin discovery.

Third-party packages contribute extractors through the ``addonmap.extractors``
entry-point group. An entry point may name an ``Extractor`` subclass, an
instance, or a zero-argument factory returning one.
"""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, List, Sequence

from .base import ExtractionContext, ExtractionResult, Extractor
from .orm import ModelExtractor
from .routes import RouteExtractor
from .security import SecurityExtractor
from .ui import UiExtractor

ENTRY_POINT_GROUP = "addonmap.extractors"

ExtractorFactory = Callable[[], Extractor]

BUILTIN_EXTRACTORS: Dict[str, ExtractorFactory] = {
    "orm": ModelExtractor,
    "security": SecurityExtractor,
    "ui": UiExtractor,
    "routes": RouteExtractor,
}


def _instantiate(name: str, target: object) -> Extractor:
    if isinstance(target, type) and issubclass(target, Extractor):
        return target()
    instance = target() if callable(target) and not isinstance(target, Extractor) else target
    if not isinstance(instance, Extractor):
        raise TypeError(f"Extractor '{name}' must be an Extractor subclass, instance or factory")
    return instance


def _registry() -> Dict[str, object]:
    """Map lower-cased names to extractor targets; built-ins shadow plugins."""
    registry: Dict[str, object] = dict(BUILTIN_EXTRACTORS)
    for entry in metadata.entry_points().select(group=ENTRY_POINT_GROUP):
        key = entry.name.lower()
        if key in registry:
            continue
        try:
            registry[key] = entry.load()
        except Exception as exc:  # pragma: no cover - plugin import failure
            raise RuntimeError(f"Failed to load extractor plugin '{entry.name}': {exc}") from exc
    return registry


def discover_extractors(enabled: Sequence[str] | None = None) -> List[Extractor]:
    """Return extractor instances, built-ins first in a fixed order.

    An empty or missing ``enabled`` list selects everything. Names are
    case-insensitive; an unknown name raises ValueError.
    """
    registry = _registry()
    if enabled:
        wanted = {name.lower() for name in enabled}
        unknown = sorted(wanted - registry.keys())
        if unknown:
            raise ValueError(f"Unknown extractors requested: {', '.join(unknown)}")
        selected = [name for name in registry if name in wanted]
    else:
        selected = list(registry)
    return [_instantiate(name, registry[name]) for name in selected]


__all__ = [
    "BUILTIN_EXTRACTORS",
    "ENTRY_POINT_GROUP",
    "ExtractionContext",
    "ExtractionResult",
    "Extractor",
    "discover_extractors",
]
