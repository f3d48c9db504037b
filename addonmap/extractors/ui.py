"""View, window-action and menu extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .base import ExtractionContext, ExtractionResult, Extractor, FileJob, sort_key
from .markup import field_ref, field_text, find_records, record_fields, self_closing_tags
from ..logging import get_logger
from ..models import ActionEntry, MenuEntry, ViewEntry

logger = get_logger("extractors.ui")

VIEW_MODEL = "ir.ui.view"
ACTION_MODEL = "ir.actions.act_window"
MENU_TAG = "menuitem"

# Above this many inherited views UI work should begin from the inheritance chain.
INHERITED_VIEW_ALERT = 2000


@dataclass
class ParsedUiFile:
    views: List[ViewEntry] = field(default_factory=list)
    actions: List[ActionEntry] = field(default_factory=list)
    menus: List[MenuEntry] = field(default_factory=list)


def parse_ui_file(
    content: str, module: str, relative_file: str, max_body_chars: int = 200000
) -> ParsedUiFile:
    parsed = ParsedUiFile()

    for record in find_records(content, VIEW_MODEL, max_body_chars):
        fields = record_fields(record.body)
        parsed.views.append(
            ViewEntry(
                module=module,
                file=relative_file,
                id=record.attr("id"),
                model=field_text(fields, "model"),
                inherit_ref=field_ref(fields, "inherit_id"),
            )
        )

    for record in find_records(content, ACTION_MODEL, max_body_chars):
        fields = record_fields(record.body)
        parsed.actions.append(
            ActionEntry(
                module=module,
                file=relative_file,
                id=record.attr("id"),
                res_model=field_text(fields, "res_model"),
            )
        )

    for tag in self_closing_tags(content, MENU_TAG):
        parsed.menus.append(
            MenuEntry(
                module=module,
                file=relative_file,
                id=tag.attr("id"),
                name=tag.attr("name"),
                action=tag.attr("action"),
                parent=tag.attr("parent"),
            )
        )

    return parsed


def _view_to_dict(view: ViewEntry) -> Dict[str, Any]:
    return {
        "module": view.module,
        "file": view.file,
        "id": view.id,
        "model": view.model,
        "inherit_ref": view.inherit_ref,
    }


def _action_to_dict(action: ActionEntry) -> Dict[str, Any]:
    return {
        "module": action.module,
        "file": action.file,
        "id": action.id,
        "res_model": action.res_model,
    }


def _menu_to_dict(menu: MenuEntry) -> Dict[str, Any]:
    return {
        "module": menu.module,
        "file": menu.file,
        "id": menu.id,
        "name": menu.name,
        "action": menu.action,
        "parent": menu.parent,
    }


def _entry_key(entry: ViewEntry | ActionEntry | MenuEntry) -> Tuple[str, ...]:
    return sort_key(entry.module) + (entry.file, entry.id)


@dataclass
class UiMap(ExtractionResult):
    artifact = "ui-map"
    scan_subdirectories = ("views",)
    assumptions = (
        "Views and window actions are read from <record> elements under views/.",
        "A view is inherited when its inherit_id field carries a ref.",
        "Menus are read from self-closing <menuitem/> tags only.",
    )

    views: List[ViewEntry] = field(default_factory=list)
    actions: List[ActionEntry] = field(default_factory=list)
    menus: List[MenuEntry] = field(default_factory=list)
    inherited_limit: int = 400
    view_limit: int = 3500
    action_limit: int = 2000
    menu_limit: int = 2000

    def inherited_views(self) -> List[ViewEntry]:
        return [view for view in sorted(self.views, key=_entry_key) if view.is_inherited]

    def to_payload(self) -> Dict[str, Any]:
        inherited = self.inherited_views()
        return {
            "view_count": len(self.views),
            "inherited_view_count": len(inherited),
            "action_count": len(self.actions),
            "menu_count": len(self.menus),
            "inherited_views": [_view_to_dict(v) for v in inherited[: self.inherited_limit]],
            "views": [
                _view_to_dict(v) for v in sorted(self.views, key=_entry_key)[: self.view_limit]
            ],
            "actions": [
                _action_to_dict(a)
                for a in sorted(self.actions, key=_entry_key)[: self.action_limit]
            ],
            "menus": [
                _menu_to_dict(m) for m in sorted(self.menus, key=_entry_key)[: self.menu_limit]
            ],
        }

    def metrics(self) -> Dict[str, int]:
        return {
            "views": len(self.views),
            "inherited_views": len(self.inherited_views()),
            "actions": len(self.actions),
            "menus": len(self.menus),
        }

    def risks(self) -> List[str]:
        if len(self.inherited_views()) > INHERITED_VIEW_ALERT:
            return [
                "High volume of inherited views; UI changes should start from inheritance chain analysis."
            ]
        return []


class UiExtractor(Extractor):
    """Parses each module's views/ folder."""

    name = "ui"

    def extract(self, context: ExtractionContext) -> UiMap:
        limits = context.limits
        jobs = self.collect_jobs(context, "views", ".xml", limits.view_files)

        def _parse(job: FileJob) -> ParsedUiFile:
            content = self.read(context, job.path, limits.view_chars)
            return parse_ui_file(content, job.module.name, job.relative, limits.view_chars)

        result = UiMap(
            inherited_limit=limits.inherited_views,
            view_limit=limits.views,
            action_limit=limits.actions,
            menu_limit=limits.menus,
        )
        for parsed in self.map_jobs(context, jobs, _parse):
            result.views.extend(parsed.views)
            result.actions.extend(parsed.actions)
            result.menus.extend(parsed.menus)

        logger.info(
            "Parsed %d views, %d actions and %d menus",
            len(result.views),
            len(result.actions),
            len(result.menus),
        )
        return result


__all__ = ["UiExtractor", "UiMap", "parse_ui_file"]
