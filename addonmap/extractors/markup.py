"""Depth-aware scanning of XML configuration records.

Data files are frequently hand edited and may be malformed, so they are not fed
to an XML parser. Instead the tags of one element kind are paired with a stack:
each opening tag is matched with the closing tag at the same nesting depth.
An opening tag that is never closed is bounded by the next opening tag of the
same kind (or the body cap), so one broken record cannot swallow its
neighbours.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional

_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_ATTR = re.compile(r"([A-Za-z_][\w.:-]*)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
_REF_CALL = re.compile(r"ref\(\s*['\"]([^'\"]+)['\"]\s*\)")


@lru_cache(maxsize=32)
def _tag_pattern(tag: str) -> re.Pattern[str]:
    # Attribute values may legally contain ">" so quoted runs are consumed whole.
    return re.compile(
        rf"<(?P<close>/)?{re.escape(tag)}(?=[\s/>])"
        r"(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*?)(?P<selfclose>/)?>",
        re.DOTALL,
    )


@dataclass(frozen=True)
class MarkupElement:
    """One element occurrence with its attributes and raw inner text."""

    tag: str
    start: int
    end: int
    attrs: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    self_closing: bool = False
    closed: bool = True

    def attr(self, name: str) -> str:
        return self.attrs.get(name, "")

    @property
    def text(self) -> str:
        return self.body.strip()


def parse_attrs(raw: str) -> Dict[str, str]:
    """Return attribute name/value pairs; the first occurrence of a name wins."""
    attrs: Dict[str, str] = {}
    for match in _ATTR.finditer(raw):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs.setdefault(match.group(1), value or "")
    return attrs


def blank_comments(text: str) -> str:
    """Replace XML comments with spaces, keeping character offsets stable."""
    return _COMMENT.sub(lambda match: " " * len(match.group(0)), text)


def find_elements(text: str, tag: str, max_body_chars: int = 200000) -> List[MarkupElement]:
    """Return every ``tag`` element in ``text`` ordered by position."""
    opens: List[re.Match[str]] = []
    stack: List[re.Match[str]] = []
    bodies: Dict[int, MarkupElement] = {}

    for match in _tag_pattern(tag).finditer(text):
        if match.group("close"):
            if stack:
                opening = stack.pop()
                body_end = min(match.start(), opening.end() + max_body_chars)
                bodies[opening.start()] = MarkupElement(
                    tag=tag,
                    start=opening.start(),
                    end=match.end(),
                    attrs=parse_attrs(opening.group("attrs")),
                    body=text[opening.end() : body_end],
                )
            continue
        if match.group("selfclose"):
            bodies[match.start()] = MarkupElement(
                tag=tag,
                start=match.start(),
                end=match.end(),
                attrs=parse_attrs(match.group("attrs")),
                self_closing=True,
            )
            continue
        opens.append(match)
        stack.append(match)

    for position, opening in enumerate(opens):
        if opening.start() in bodies:
            continue
        next_open = opens[position + 1].start() if position + 1 < len(opens) else len(text)
        body_end = min(next_open, opening.end() + max_body_chars)
        bodies[opening.start()] = MarkupElement(
            tag=tag,
            start=opening.start(),
            end=body_end,
            attrs=parse_attrs(opening.group("attrs")),
            body=text[opening.end() : body_end],
            closed=False,
        )

    return [bodies[key] for key in sorted(bodies)]


def top_level(elements: List[MarkupElement]) -> List[MarkupElement]:
    """Drop elements nested inside another element of the same list."""
    result: List[MarkupElement] = []
    outer_end = -1
    for element in elements:
        if element.start < outer_end:
            continue
        result.append(element)
        outer_end = element.end
    return result


def find_records(
    text: str, model: str, max_body_chars: int = 200000
) -> List[MarkupElement]:
    """Return ``<record>`` elements whose ``model`` attribute equals ``model``.

    Records without an ``id`` attribute are skipped.
    """
    cleaned = blank_comments(text)
    return [
        element
        for element in find_elements(cleaned, "record", max_body_chars)
        if element.attr("model") == model and element.attr("id") and not element.self_closing
    ]


def record_fields(body: str) -> Dict[str, MarkupElement]:
    """Return the direct ``<field>`` children of a record body keyed by name."""
    fields: Dict[str, MarkupElement] = {}
    for element in top_level(find_elements(body, "field")):
        name = element.attr("name")
        if name:
            fields.setdefault(name, element)
    return fields


def field_text(fields: Dict[str, MarkupElement], name: str) -> str:
    element = fields.get(name)
    if element is None or element.self_closing:
        return ""
    return element.text


def field_ref(fields: Dict[str, MarkupElement], name: str) -> str:
    element = fields.get(name)
    return element.attr("ref") if element is not None else ""


def field_eval(fields: Dict[str, MarkupElement], name: str) -> str:
    element = fields.get(name)
    return element.attr("eval").strip() if element is not None else ""


def ref_calls(text: str) -> List[str]:
    """Return the targets of every ``ref('...')`` call in ``text``."""
    return [match.group(1) for match in _REF_CALL.finditer(text)]


def self_closing_tags(text: str, tag: str) -> List[MarkupElement]:
    """Return only the self-closing form of ``tag`` (e.g. ``<menuitem .../>``)."""
    cleaned = blank_comments(text)
    return [element for element in find_elements(cleaned, tag) if element.self_closing]


__all__ = [
    "MarkupElement",
    "blank_comments",
    "field_eval",
    "field_ref",
    "field_text",
    "find_elements",
    "find_records",
    "parse_attrs",
    "record_fields",
    "ref_calls",
    "self_closing_tags",
    "top_level",
]
