"""Access-control table and record-rule extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import ExtractionContext, ExtractionResult, Extractor, FileJob, sort_key
from .fields import csv_header_index, parse_csv_line
from .markup import field_eval, field_ref, field_text, find_records, record_fields, ref_calls
from ..logging import get_logger
from ..models import AclEntry, RecordRule, ScanDiagnostics

logger = get_logger("extractors.security")

ACL_FILENAME = "ir.model.access.csv"
RULE_MODEL = "ir.rule"

_TRUE_VALUES = {"1", "true", "yes"}

# Column names by header, with the legacy "/id" spelling accepted as an alias.
_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "id": ("id",),
    "model_ref": ("model_id:id", "model_id/id"),
    "group_ref": ("group_id:id", "group_id/id"),
    "perm_read": ("perm_read",),
    "perm_write": ("perm_write",),
    "perm_create": ("perm_create",),
    "perm_unlink": ("perm_unlink",),
}


def _as_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _resolve_columns(headers: Sequence[str]) -> Dict[str, Optional[int]]:
    index = csv_header_index(headers)
    resolved: Dict[str, Optional[int]] = {}
    for key, names in _COLUMNS.items():
        resolved[key] = next((index[name] for name in names if name in index), None)
    return resolved


def parse_acl_csv(
    content: str, module: str, diagnostics: ScanDiagnostics | None = None
) -> List[AclEntry]:
    """Parse an access-control table, resolving columns by header name.

    Cells missing from a short row read as empty, so their permissions
    default to false.
    """
    lines = [line.strip() for line in content.splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return []

    headers = parse_csv_line(lines[0])
    columns = _resolve_columns(headers)
    entries: List[AclEntry] = []
    for line in lines[1:]:
        row = parse_csv_line(line)
        if len(row) < len(headers) and diagnostics is not None:
            diagnostics.record_short_row()

        def get(key: str) -> str:
            position = columns[key]
            if position is None or position >= len(row):
                return ""
            return row[position].strip()

        entries.append(
            AclEntry(
                module=module,
                id=get("id"),
                model_ref=get("model_ref"),
                group_ref=get("group_ref"),
                perm_read=_as_bool(get("perm_read")),
                perm_write=_as_bool(get("perm_write")),
                perm_create=_as_bool(get("perm_create")),
                perm_unlink=_as_bool(get("perm_unlink")),
            )
        )
    return entries


def parse_record_rules(
    content: str, module: str, relative_file: str, max_body_chars: int = 200000
) -> List[RecordRule]:
    rules: List[RecordRule] = []
    for record in find_records(content, RULE_MODEL, max_body_chars):
        fields = record_fields(record.body)
        domain = field_text(fields, "domain_force") or field_eval(fields, "domain_force")
        rules.append(
            RecordRule(
                module=module,
                file=relative_file,
                id=record.attr("id"),
                model_ref=field_ref(fields, "model_id"),
                groups=tuple(sorted(set(ref_calls(record.body)))),
                has_domain_force=bool(domain),
            )
        )
    return rules


def _acl_to_dict(entry: AclEntry) -> Dict[str, Any]:
    return {
        "module": entry.module,
        "id": entry.id,
        "model_ref": entry.model_ref,
        "group_ref": entry.group_ref,
        "perm_read": entry.perm_read,
        "perm_write": entry.perm_write,
        "perm_create": entry.perm_create,
        "perm_unlink": entry.perm_unlink,
    }


def _rule_to_dict(rule: RecordRule) -> Dict[str, Any]:
    return {
        "module": rule.module,
        "file": rule.file,
        "id": rule.id,
        "model_ref": rule.model_ref,
        "groups": list(rule.groups),
        "has_domain_force": rule.has_domain_force,
    }


@dataclass
class SecurityMap(ExtractionResult):
    artifact = "security-map"
    scan_subdirectories = ("security",)
    assumptions = (
        "ACL columns are resolved by header name; missing or unparsable permissions read as false.",
        "An ACL row is risky when it has no group and grants write, create or unlink.",
        "A record rule is global when no ref('...') group reference appears in its record.",
    )

    acl_entries: List[AclEntry] = field(default_factory=list)
    record_rules: List[RecordRule] = field(default_factory=list)
    risk_sample: int = 300
    entry_limit: int = 3000

    def sorted_acl(self) -> List[AclEntry]:
        return sorted(self.acl_entries, key=lambda entry: sort_key(entry.module) + (entry.id,))

    def sorted_rules(self) -> List[RecordRule]:
        return sorted(
            self.record_rules,
            key=lambda rule: sort_key(rule.module) + (rule.file, rule.id),
        )

    def risky_acl(self) -> List[AclEntry]:
        return [entry for entry in self.sorted_acl() if entry.is_risky]

    def global_rules(self) -> List[RecordRule]:
        return [rule for rule in self.sorted_rules() if rule.is_global]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "acl_count": len(self.acl_entries),
            "record_rule_count": len(self.record_rules),
            "risky_acl_entries": [_acl_to_dict(e) for e in self.risky_acl()[: self.risk_sample]],
            "global_record_rules": [
                _rule_to_dict(rule) for rule in self.global_rules()[: self.risk_sample]
            ],
            "acl_entries": [_acl_to_dict(e) for e in self.sorted_acl()[: self.entry_limit]],
            "record_rules": [
                _rule_to_dict(rule) for rule in self.sorted_rules()[: self.entry_limit]
            ],
        }

    def metrics(self) -> Dict[str, int]:
        return {
            "acl_entries": len(self.acl_entries),
            "record_rules": len(self.record_rules),
            "risky_acl_entries": len(self.risky_acl()),
            "global_record_rules": len(self.global_rules()),
        }

    def risks(self) -> List[str]:
        risks: List[str] = []
        risky = len(self.risky_acl())
        if risky:
            risks.append(
                f"Review {risky} ACL entries that grant write/create/delete without explicit groups."
            )
        global_rules = len(self.global_rules())
        if global_rules:
            risks.append(
                f"Review {global_rules} record rules with global scope (no group restriction)."
            )
        return risks


class SecurityExtractor(Extractor):
    """Parses each module's security/ folder."""

    name = "security"

    def extract(self, context: ExtractionContext) -> SecurityMap:
        limits = context.limits
        acl_entries: List[AclEntry] = []
        for module in context.module_map.modules:
            acl_path = self.security_dir(module.abs_path) / ACL_FILENAME
            if acl_path.is_file():
                content = self.read(context, acl_path, limits.acl_chars)
                acl_entries.extend(parse_acl_csv(content, module.name, context.diagnostics))

        jobs = self.collect_jobs(context, "security", ".xml", limits.security_xml_files)

        def _parse(job: FileJob) -> List[RecordRule]:
            content = self.read(context, job.path, limits.security_xml_chars)
            return parse_record_rules(
                content, job.module.name, job.relative, limits.security_xml_chars
            )

        record_rules: List[RecordRule] = []
        for rules in self.map_jobs(context, jobs, _parse):
            record_rules.extend(rules)

        logger.info(
            "Parsed %d ACL entries and %d record rules", len(acl_entries), len(record_rules)
        )
        return SecurityMap(
            acl_entries=acl_entries,
            record_rules=record_rules,
            risk_sample=limits.risk_sample,
            entry_limit=limits.security_entries,
        )

    @staticmethod
    def security_dir(module_path: str) -> Path:
        return Path(module_path) / "security"


__all__ = [
    "SecurityExtractor",
    "SecurityMap",
    "parse_acl_csv",
    "parse_record_rules",
]
