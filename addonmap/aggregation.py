"""Confidence scoring and the cross-artifact expert summary.

The confidence score is a heuristic informativeness indicator: it grows with
the volume of facts extracted and says nothing statistical about their
correctness. Each signal contributes ``min(count / scale, cap)`` on top of a
baseline, and the total is clamped to ``[floor, ceiling]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from .config import ConfidenceConfig
from .models import DependencyCount, ScanDiagnostics


@dataclass(frozen=True)
class SignalWeight:
    scale: float
    cap: float


CONFIDENCE_WEIGHTS: Dict[str, SignalWeight] = {
    "modules": SignalWeight(scale=1000, cap=0.14),
    "orm_models": SignalWeight(scale=5000, cap=0.10),
    "acl_entries": SignalWeight(scale=2000, cap=0.08),
    "views": SignalWeight(scale=8000, cap=0.06),
    "routes": SignalWeight(scale=1500, cap=0.04),
}

SUMMARY_METRICS = (
    "modules",
    "orm_models",
    "acl_entries",
    "record_rules",
    "views",
    "inherited_views",
    "routes",
    "public_routes",
)

RECOMMENDED_WORKFLOW = (
    "Start from module-map to identify impacted modules and dependencies.",
    "Inspect orm-model-map before changing models, fields, or inheritance.",
    "Validate ACL and record rules from security-map before merge.",
    "Trace inherited views/actions from ui-map before changing UI.",
    "Validate route auth/type/methods from route-map for API/controller work.",
)

CONFIDENCE_NOTE = (
    "confidence_score is a heuristic informativeness indicator derived from the "
    "volume of extracted signals, not a statistical confidence interval."
)


def confidence_score(
    metrics: Mapping[str, int],
    config: ConfidenceConfig | None = None,
    weights: Mapping[str, SignalWeight] = CONFIDENCE_WEIGHTS,
) -> float:
    """Return the bounded confidence score for the given signal counts.

    Unknown metric names are ignored, so an artifact only scores on the
    signals it actually produces.
    """
    config = config or ConfidenceConfig()
    total = config.baseline
    for name, weight in weights.items():
        count = max(0, metrics.get(name, 0))
        total += min(count / weight.scale, weight.cap)
    clamped = max(config.floor, min(config.ceiling, total))
    return round(clamped, 2)


def build_expert_summary(
    metrics: Mapping[str, int],
    top_dependencies: Sequence[DependencyCount],
    risks: Sequence[str],
    diagnostics: ScanDiagnostics,
    *,
    high_impact_limit: int = 20,
) -> Dict[str, Any]:
    """Return the expert-summary body from the merged metrics of every artifact."""
    return {
        "metrics": {name: int(metrics.get(name, 0)) for name in SUMMARY_METRICS},
        "high_impact_modules": [
            item.to_dict() for item in top_dependencies[:high_impact_limit]
        ],
        "priority_risks": list(risks),
        "recommended_workflow": list(RECOMMENDED_WORKFLOW),
        "diagnostics": diagnostics.to_dict(),
    }


def merge_metrics(*groups: Mapping[str, int]) -> Dict[str, int]:
    merged: Dict[str, int] = {}
    for group in groups:
        for name, value in group.items():
            merged[name] = merged.get(name, 0) + value
    return merged


def risk_lines(results: Sequence[Any]) -> List[str]:
    lines: List[str] = []
    for result in results:
        lines.extend(result.risks())
    return lines


__all__ = [
    "CONFIDENCE_NOTE",
    "CONFIDENCE_WEIGHTS",
    "RECOMMENDED_WORKFLOW",
    "SignalWeight",
    "build_expert_summary",
    "confidence_score",
    "merge_metrics",
    "risk_lines",
]
