"""Stamping and writing of JSON/Markdown artifact pairs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from ..logging import get_logger
from .markdown import render_markdown

logger = get_logger("render")


@dataclass(frozen=True)
class Provenance:
    """How an artifact was produced."""

    scan_roots: Sequence[str]
    method: str
    assumptions: Sequence[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scan_roots": list(self.scan_roots),
            "method": self.method,
            "assumptions": list(self.assumptions),
        }


@dataclass(frozen=True)
class ArtifactPaths:
    name: str
    json_path: Path
    md_path: Path


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def stamp_payload(
    name: str,
    body: Mapping[str, Any],
    *,
    repository: str,
    confidence: float,
    provenance: Provenance,
    generated_at: str | None = None,
) -> Dict[str, Any]:
    """Return ``body`` extended with the common artifact header fields."""
    payload: Dict[str, Any] = dict(body)
    payload.update(
        {
            "artifact": name,
            "generated_at": generated_at or utc_timestamp(),
            "repository": repository,
            "confidence_score": confidence,
            "provenance": provenance.to_dict(),
        }
    )
    return payload


def dump_json(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


def write_artifact_pair(output_dir: Path, payload: Mapping[str, Any]) -> ArtifactPaths:
    """Write ``<artifact>.json`` and ``<artifact>.md`` into ``output_dir``."""
    name = str(payload["artifact"])
    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"{name}.json"
    md_path = output_dir / f"{name}.md"
    json_path.write_text(dump_json(payload), encoding="utf-8")
    md_path.write_text(render_markdown(payload) + "\n", encoding="utf-8")
    logger.debug("Wrote %s and %s", json_path, md_path)
    return ArtifactPaths(name=name, json_path=json_path, md_path=md_path)


__all__ = [
    "ArtifactPaths",
    "Provenance",
    "dump_json",
    "stamp_payload",
    "utc_timestamp",
    "write_artifact_pair",
]
