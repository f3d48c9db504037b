"""Low-level scanners for semi-structured source text.

These helpers never raise on malformed input: a missing key, an unterminated
literal or a truncated block simply yields an empty or partial result.
"""

from __future__ import annotations

import csv
import re
from typing import Dict, List, Optional, Sequence

_QUOTES = ("'", '"')
_CLOSERS = {"[": "]", "(": ")", "{": "}"}


def extract_quoted(text: str) -> List[str]:
    """Return every quoted string literal in ``text`` in order of appearance.

    A literal opens with ``'`` or ``"`` and closes on the same unescaped quote,
    so ``"it's"`` yields ``it's``. Backslash escapes of quotes and backslashes
    are unescaped; other escapes are kept verbatim. Unterminated literals are
    dropped.
    """
    values: List[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char not in _QUOTES:
            index += 1
            continue
        quote = char
        index += 1
        buffer: List[str] = []
        closed = False
        while index < length:
            current = text[index]
            if current == "\\" and index + 1 < length:
                following = text[index + 1]
                if following in _QUOTES or following == "\\":
                    buffer.append(following)
                else:
                    buffer.append(current + following)
                index += 2
                continue
            if current == quote:
                closed = True
                index += 1
                break
            buffer.append(current)
            index += 1
        if closed:
            values.append("".join(buffer))
    return values


def unique_sorted(values: Sequence[str]) -> List[str]:
    return sorted(set(values))


def _list_field_pattern(field_name: str) -> re.Pattern[str]:
    name = re.escape(field_name)
    return re.compile(
        rf"(?:[\"']{name}[\"']\s*:|(?<![\w.]){name}\s*=)\s*\[(.*?)\]",
        re.DOTALL,
    )


def extract_list_field(content: str, field_name: str) -> List[str]:
    """Return the distinct quoted entries of the list assigned to ``field_name``.

    Matches both dict style (``'depends': [...]``) and keyword style
    (``depends=[...]``). Only the first occurrence is used and the list is
    captured up to the first closing bracket. The result is sorted.
    """
    match = _list_field_pattern(field_name).search(content)
    if not match:
        return []
    return unique_sorted(extract_quoted(match.group(1)))


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV row honouring quoted commas and doubled-quote escapes.

    A row the csv module rejects (for instance a cell over
    ``csv.field_size_limit()``) degrades to a plain comma split.
    """
    try:
        return next(csv.reader([line]), [])
    except csv.Error:
        return line.split(",")


def csv_header_index(headers: Sequence[str]) -> Dict[str, int]:
    """Map stripped header names to column positions (first occurrence wins).

    A leading byte-order mark on a header name is ignored.
    """
    index: Dict[str, int] = {}
    for position, name in enumerate(headers):
        index.setdefault(name.lstrip("\ufeff").strip(), position)
    return index


def extract_block(text: str, start: int, max_chars: int) -> Optional[str]:
    """Return the text inside the bracket opening at ``text[start]``.

    Nested brackets of any kind are balanced and brackets inside quoted
    literals are ignored. When no matching close appears within ``max_chars``
    characters the block is cut at the cap. Returns None when ``text[start]``
    is not an opening bracket.
    """
    if start >= len(text) or text[start] not in _CLOSERS:
        return None
    limit = min(len(text), start + 1 + max_chars)
    stack = [_CLOSERS[text[start]]]
    quote: Optional[str] = None
    index = start + 1
    while index < limit:
        char = text[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char == stack[-1]:
            stack.pop()
            if not stack:
                return text[start + 1 : index]
        index += 1
    return text[start + 1 : limit]


def extract_assignment_value(body: str, name: str, max_chars: int = 4000) -> Optional[str]:
    """Return the right-hand side of the first ``name = ...`` line in ``body``.

    Bracketed values are captured across lines with :func:`extract_block`;
    anything else is the remainder of the line.
    """
    match = re.search(rf"(?:^|\n)[ \t]*{re.escape(name)}[ \t]*=[ \t]*", body)
    if not match:
        return None
    start = match.end()
    if start < len(body) and body[start] in _CLOSERS:
        block = extract_block(body, start, max_chars)
        return block if block is not None else ""
    end = body.find("\n", start)
    return body[start:] if end == -1 else body[start:end]


__all__ = [
    "csv_header_index",
    "extract_assignment_value",
    "extract_block",
    "extract_list_field",
    "extract_quoted",
    "parse_csv_line",
    "unique_sorted",
]
