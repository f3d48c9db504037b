"""Persistence-model extraction and inheritance hotspot ranking."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from .base import ExtractionContext, ExtractionResult, Extractor, FileJob, sort_key
from .fields import extract_assignment_value, extract_block, extract_quoted
from ..logging import get_logger
from ..models import Hotspot, ModelClassEntry, ModelRecord

logger = get_logger("extractors.orm")

_CLASS_HEADER = re.compile(r"class\s+([A-Za-z0-9_]+)\s*\(([^)]*)\)\s*:")
_MODEL_BASE = re.compile(r"models\.(Model|TransientModel|AbstractModel)\b")
_NAME = re.compile(r"\n[ \t]*_name[ \t]*=[ \t]*['\"]([^'\"]+)['\"]")
_INHERITS = re.compile(r"\n[ \t]*_inherits[ \t]*=[ \t]*(?=\{)")
_FIELD_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def classify_kind(bases: str) -> str:
    """Transient beats abstract beats the default plain model."""
    if "TransientModel" in bases:
        return "transient"
    if "AbstractModel" in bases:
        return "abstract"
    return "model"


def split_delegated(tokens: Sequence[str], order: str = "key-first") -> Tuple[List[str], List[str]]:
    """Split ``_inherits`` tokens into (model targets, link fields).

    Tokens are assumed to alternate key/value. ``key-first`` takes the even
    positions as targets, ``value-first`` the odd ones.
    """
    evens = [token for index, token in enumerate(tokens) if index % 2 == 0]
    odds = [token for index, token in enumerate(tokens) if index % 2 == 1]
    return (evens, odds) if order == "key-first" else (odds, evens)


def delegated_order_suspicious(targets: Sequence[str], links: Sequence[str]) -> bool:
    """True when targets look like field names and links look like model names."""
    if not targets or not links:
        return False
    targets_look_like_fields = all(_FIELD_NAME.match(token) for token in targets)
    links_look_like_models = all("." in token for token in links)
    return targets_look_like_fields and links_look_like_models


@dataclass
class ParsedModelFile:
    entries: List[ModelClassEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def parse_model_classes(
    content: str,
    module: str,
    relative_file: str,
    *,
    body_cap: int = 12000,
    delegated_order: str = "key-first",
) -> ParsedModelFile:
    """Return the persistence-model classes declared in one source file."""
    parsed = ParsedModelFile()
    headers = list(_CLASS_HEADER.finditer(content))
    for position, header in enumerate(headers):
        bases = header.group(2) or ""
        if not _MODEL_BASE.search(bases):
            continue

        start = header.start()
        end = headers[position + 1].start() if position + 1 < len(headers) else len(content)
        body = content[start : min(end, start + body_cap)]

        name_match = _NAME.search(body)
        inherit_value = extract_assignment_value(body, "_inherit")
        inherits = extract_quoted(inherit_value) if inherit_value else []

        delegated: List[str] = []
        inherits_match = _INHERITS.search(body)
        if inherits_match:
            block = extract_block(body, inherits_match.end(), body_cap) or ""
            delegated, links = split_delegated(extract_quoted(block), delegated_order)
            if delegated_order_suspicious(delegated, links):
                parsed.warnings.append(
                    f"{relative_file}:{header.group(1)} _inherits tokens look reversed "
                    f"({', '.join(delegated)}); check orm.delegated_order"
                )

        parsed.entries.append(
            ModelClassEntry(
                module=module,
                file=relative_file,
                class_name=header.group(1),
                model=name_match.group(1) if name_match else (inherits[0] if inherits else ""),
                kind=classify_kind(bases),
                inherits=tuple(inherits),
                delegated_inherits=tuple(delegated),
            )
        )
    return parsed


def aggregate_models(entries: Sequence[ModelClassEntry]) -> Dict[str, ModelRecord]:
    """Union every class entry into one record per model identity."""
    records: Dict[str, ModelRecord] = {}
    for entry in entries:
        key = entry.identity
        record = records.get(key)
        if record is None:
            record = records[key] = ModelRecord(model=key)
        record.merge(entry)
    return records


def rank_hotspots(records: Sequence[ModelRecord], limit: int) -> List[Hotspot]:
    """Most-extended models first, then most modules, then identity."""
    hotspots = [
        Hotspot(
            model=record.model,
            extension_points=record.extension_points,
            modules_count=len(record.modules),
        )
        for record in records
    ]
    hotspots.sort(key=lambda item: (-item.extension_points, -item.modules_count, item.model))
    return hotspots[:limit]


@dataclass
class OrmModelMap(ExtractionResult):
    artifact = "orm-model-map"
    scan_subdirectories = ("models",)
    assumptions = (
        "Models are recognised from class headers whose bases reference models.Model, "
        "models.TransientModel or models.AbstractModel.",
        "A class without _name takes its identity from the first _inherit target.",
        "_inherits mappings are read as alternating model/field tokens.",
    )

    records: Dict[str, ModelRecord] = field(default_factory=dict)
    raw_class_entries: int = 0
    file_sample: int = 12
    hotspot_limit: int = 40

    def sorted_records(self) -> List[ModelRecord]:
        return sorted(self.records.values(), key=lambda record: sort_key(record.model))

    def hotspots(self) -> List[Hotspot]:
        return rank_hotspots(self.sorted_records(), self.hotspot_limit)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "models_detected": len(self.records),
            "raw_class_entries": self.raw_class_entries,
            "model_entries": [
                {
                    "model": record.model,
                    "modules": sorted(record.modules),
                    "files": sorted(record.files)[: self.file_sample],
                    "inheritance_links": sorted(record.inheritance_links),
                    "delegated_links": sorted(record.delegated_links),
                    "kinds": sorted(record.kinds),
                }
                for record in self.sorted_records()
            ],
            "hotspots": [hotspot.to_dict() for hotspot in self.hotspots()],
        }

    def metrics(self) -> Dict[str, int]:
        return {"orm_models": len(self.records)}


class ModelExtractor(Extractor):
    """Mines persistence-model declarations from each module's models/ folder."""

    name = "orm"

    def extract(self, context: ExtractionContext) -> OrmModelMap:
        limits = context.limits
        jobs = self.collect_jobs(context, "models", ".py", limits.model_files)

        def _parse(job: FileJob) -> ParsedModelFile:
            content = self.read(context, job.path, limits.model_chars)
            return parse_model_classes(
                content,
                job.module.name,
                job.relative,
                body_cap=limits.class_body_chars,
                delegated_order=context.delegated_order,
            )

        entries: List[ModelClassEntry] = []
        for parsed in self.map_jobs(context, jobs, _parse):
            entries.extend(parsed.entries)
            for warning in parsed.warnings:
                logger.warning(warning)
                context.diagnostics.warn(warning)

        records = aggregate_models(entries)
        logger.info(
            "Detected %d models from %d class entries in %d files",
            len(records),
            len(entries),
            len(jobs),
        )
        return OrmModelMap(
            records=records,
            raw_class_entries=len(entries),
            file_sample=limits.model_file_sample,
            hotspot_limit=limits.top_hotspots,
        )


__all__ = [
    "ModelExtractor",
    "OrmModelMap",
    "aggregate_models",
    "classify_kind",
    "parse_model_classes",
    "rank_hotspots",
    "split_delegated",
]
