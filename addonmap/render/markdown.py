"""Human-readable Markdown views of every artifact."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

MODULE_SAMPLE = 120
RISKY_ACL_SAMPLE = 80
GLOBAL_RULE_SAMPLE = 80
INHERITED_VIEW_SAMPLE = 100
PUBLIC_ROUTE_SAMPLE = 120

_TITLES = {
    "module-map": "Module Map",
    "orm-model-map": "ORM Model Map",
    "security-map": "Security Map",
    "ui-map": "UI Map",
    "route-map": "Route Map",
    "expert-summary": "Expert Context Summary",
}


def _header(payload: Mapping[str, Any], *keys: str) -> List[str]:
    name = str(payload.get("artifact", ""))
    title = _TITLES.get(name, name.replace("-", " ").title() or "Artifact")
    lines = [f"# {title}", ""]
    lines.append(f"- generated_at: {payload.get('generated_at', '')}")
    lines.append(f"- repository: {payload.get('repository', '')}")
    for key in keys:
        lines.append(f"- {key}: {payload.get(key, '')}")
    lines.append(f"- confidence_score: {payload.get('confidence_score', '')}")
    lines.append("")
    return lines


def _section(lines: List[str], title: str, items: List[str]) -> None:
    lines.append(f"## {title}")
    lines.append("")
    lines.extend(items or ["- none"])
    lines.append("")


def _provenance(lines: List[str], payload: Mapping[str, Any]) -> None:
    provenance = payload.get("provenance")
    if not isinstance(provenance, dict):
        return
    items = [f"- method: {provenance.get('method', '')}"]
    for root in provenance.get("scan_roots", []):
        items.append(f"- scan_root: {root}")
    for assumption in provenance.get("assumptions", []):
        items.append(f"- assumption: {assumption}")
    _section(lines, "Provenance", items)


def _perms(acl: Mapping[str, Any]) -> str:
    flags = (
        ("R", acl.get("perm_read")),
        ("W", acl.get("perm_write")),
        ("C", acl.get("perm_create")),
        ("D", acl.get("perm_unlink")),
    )
    return "".join(f"{letter}{1 if value else 0}" for letter, value in flags)


def render_module_map(payload: Mapping[str, Any]) -> str:
    lines = _header(payload, "module_count")
    _section(
        lines,
        "Top Dependencies",
        [f"- {dep['name']}: {dep['count']}" for dep in payload.get("top_dependencies", [])],
    )
    modules: List[str] = []
    for item in payload.get("modules", [])[:MODULE_SAMPLE]:
        modules.append(f"- {item['module']} ({item['path']})")
        modules.append(f"  - depends: {', '.join(item.get('depends', [])) or 'none'}")
        modules.append(f"  - data_files: {len(item.get('data_files', []))}")
        modules.append(f"  - demo_files: {len(item.get('demo_files', []))}")
    _section(lines, "Module Sample", modules)
    _provenance(lines, payload)
    return "\n".join(lines)


def render_orm_model_map(payload: Mapping[str, Any]) -> str:
    lines = _header(payload, "models_detected", "raw_class_entries")
    _section(
        lines,
        "Model Hotspots",
        [
            f"- {item['model']}: extension_points={item['extension_points']}, "
            f"modules={item['modules_count']}"
            for item in payload.get("hotspots", [])
        ],
    )
    _provenance(lines, payload)
    return "\n".join(lines)


def render_security_map(payload: Mapping[str, Any]) -> str:
    risky = payload.get("risky_acl_entries", [])
    global_rules = payload.get("global_record_rules", [])
    lines = _header(payload, "acl_count", "record_rule_count")
    lines.insert(-1, f"- risky_acl_entries: {len(risky)}")
    lines.insert(-1, f"- global_record_rules: {len(global_rules)}")
    _section(
        lines,
        "Risky ACL Sample",
        [
            f"- {acl['module']}:{acl['id']} model={acl['model_ref']} perms={_perms(acl)}"
            for acl in risky[:RISKY_ACL_SAMPLE]
        ],
    )
    _section(
        lines,
        "Global Record Rules Sample",
        [
            f"- {rule['module']}:{rule['id']} model={rule['model_ref'] or 'n/a'} "
            f"domain={'yes' if rule['has_domain_force'] else 'no'}"
            for rule in global_rules[:GLOBAL_RULE_SAMPLE]
        ],
    )
    _provenance(lines, payload)
    return "\n".join(lines)


def render_ui_map(payload: Mapping[str, Any]) -> str:
    lines = _header(
        payload, "view_count", "inherited_view_count", "action_count", "menu_count"
    )
    _section(
        lines,
        "Inherited Views Sample",
        [
            f"- {item['module']}:{item['id']} model={item['model'] or 'n/a'} "
            f"inherit={item['inherit_ref']}"
            for item in payload.get("inherited_views", [])[:INHERITED_VIEW_SAMPLE]
        ],
    )
    _provenance(lines, payload)
    return "\n".join(lines)


def render_route_map(payload: Mapping[str, Any]) -> str:
    lines = _header(payload, "route_count", "public_route_count")
    _section(
        lines,
        "Public Route Sample",
        [
            f"- {item['module']}:{item['route']} type={item['type']} "
            f"methods={'|'.join(item.get('methods', [])) or 'ANY'}"
            for item in payload.get("public_routes", [])[:PUBLIC_ROUTE_SAMPLE]
        ],
    )
    _provenance(lines, payload)
    return "\n".join(lines)


def render_expert_summary(payload: Mapping[str, Any]) -> str:
    lines = _header(payload)
    metrics = payload.get("metrics", {})
    _section(lines, "Senior Signals", [f"- {key}: {value}" for key, value in metrics.items()])
    _section(lines, "Priority Risks", [f"- {item}" for item in payload.get("priority_risks", [])])
    _section(
        lines,
        "Recommended Workflow",
        [f"- {item}" for item in payload.get("recommended_workflow", [])],
    )
    _section(
        lines,
        "High-Impact Modules",
        [f"- {item['name']}: {item['count']}" for item in payload.get("high_impact_modules", [])],
    )
    diagnostics = payload.get("diagnostics") or {}
    _section(
        lines,
        "Diagnostics",
        [
            f"- unreadable_files: {diagnostics.get('unreadable_files', 0)}",
            f"- short_rows: {diagnostics.get('short_rows', 0)}",
        ]
        + [f"- warning: {item}" for item in diagnostics.get("warnings", [])],
    )
    _provenance(lines, payload)
    return "\n".join(lines)


def render_generic(payload: Mapping[str, Any]) -> str:
    """Fallback for plugin artifacts: scalar fields plus provenance."""
    scalars = [
        key
        for key, value in sorted(payload.items())
        if isinstance(value, (int, float, str))
        and key not in {"artifact", "generated_at", "repository", "confidence_score"}
    ]
    lines = _header(payload, *scalars)
    _provenance(lines, payload)
    return "\n".join(lines)


MARKDOWN_RENDERERS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    "module-map": render_module_map,
    "orm-model-map": render_orm_model_map,
    "security-map": render_security_map,
    "ui-map": render_ui_map,
    "route-map": render_route_map,
    "expert-summary": render_expert_summary,
}


def render_markdown(payload: Mapping[str, Any]) -> str:
    renderer = MARKDOWN_RENDERERS.get(str(payload.get("artifact", "")), render_generic)
    return renderer(payload)


__all__ = ["MARKDOWN_RENDERERS", "render_markdown"]
