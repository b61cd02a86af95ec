"""Line classification and per-line metadata extraction.

Every physical line of an outline document is classified into one of four
kinds (empty, header, block bullet, plain text) and, for bullets and plain
text, scanned for task prefixes, ``[[page]]`` references, ``id::`` block ids,
``key:: value`` properties and ``#tags``.

Classification never fails: any string maps to exactly one LineType.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from seqgraph.outline.todo import TodoInfo, parse_todo_info


class LineType(Enum):
    """Kind of a classified line."""

    EMPTY = "empty"
    HEADER = "header"
    BLOCK = "block"
    TEXT = "text"


PAGE_REF_PATTERN = re.compile(r"\[\[(.*?)\]\]")
BLOCK_ID_PATTERN = re.compile(r"\bid::\s*([a-zA-Z0-9\-]+)")
PROPERTY_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9\-_]*)::\s*(.*)$")
TAG_PATTERN = re.compile(r"(?:^|\s)#([a-zA-Z0-9\-_/]+)")


@dataclass(frozen=True)
class Line:
    """One physical line's classification result.

    Attributes:
        number: 1-based line number within its document (or block content)
        type: Line kind
        content: Trimmed content (bullet marker / header hashes removed)
        header_level: Number of leading ``#`` (headers only, else 0)
        todo: Task keyword / checkbox information
        references: ``[[page]]`` inner texts in order, duplicates preserved
        block_id: Value of an ``id::`` marker, if any
        properties: ``key:: value`` pair when the whole line is a property
        tags: ``#tag`` names in order
    """

    number: int
    type: LineType
    content: str = ""
    header_level: int = 0
    todo: TodoInfo = field(default_factory=TodoInfo)
    references: list[str] = field(default_factory=list)
    block_id: Optional[str] = None
    properties: dict[str, str] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)


def classify_line(number: int, text: str) -> Line:
    """Classify one raw line and extract its metadata.

    Args:
        number: 1-based line number
        text: Raw line (leading indentation allowed)

    Returns:
        Classified Line

    Examples:
        >>> line = classify_line(1, "- TODO [#A] Fix #bug in [[parser]] id:: abc-123")
        >>> line.type, line.todo.priority, line.tags, line.references, line.block_id
        (<LineType.BLOCK: 'block'>, 'A', ['bug'], ['parser'], 'abc-123')
    """
    trimmed = text.strip()

    if not trimmed:
        return Line(number=number, type=LineType.EMPTY)

    if trimmed.startswith("#"):
        level = len(trimmed) - len(trimmed.lstrip("#"))
        return Line(
            number=number,
            type=LineType.HEADER,
            content=trimmed[level:].strip(),
            header_level=level,
        )

    if trimmed.startswith("-"):
        return content_line(number, trimmed[1:], LineType.BLOCK)

    return content_line(number, trimmed, LineType.TEXT)


def content_line(number: int, text: str, line_type: LineType = LineType.TEXT) -> Line:
    """Build a bullet or plain-text Line from text whose marker is already removed.

    Used by ``classify_line`` and when a block's content is replaced: the
    text is taken as block body, so a leading ``#`` or ``-`` is kept as
    content rather than re-read as header or bullet syntax.
    """
    content = text.strip()
    if not content:
        if line_type is LineType.BLOCK:
            return Line(number=number, type=LineType.BLOCK)
        return Line(number=number, type=LineType.EMPTY)

    return Line(
        number=number,
        type=line_type,
        content=content,
        todo=parse_todo_info(content),
        references=extract_page_references(content),
        block_id=extract_block_id(content),
        properties=extract_properties(content),
        tags=extract_tags(content),
    )


def extract_page_references(text: str) -> list[str]:
    """Find all ``[[page]]`` references, left to right, keeping duplicates."""
    return PAGE_REF_PATTERN.findall(text)


def extract_block_id(text: str) -> Optional[str]:
    """Find the token of an ``id:: <token>`` marker."""
    match = BLOCK_ID_PATTERN.search(text)
    return match.group(1) if match else None


def extract_properties(text: str) -> dict[str, str]:
    """Return ``{key: value}`` when the whole text is a property line.

    ``id`` is a block identifier, not a property, and is never returned.
    """
    match = PROPERTY_PATTERN.match(text)
    if not match:
        return {}

    key, value = match.group(1), match.group(2).strip()
    if key == "id":
        return {}
    return {key: value}


def extract_tags(text: str) -> list[str]:
    """Find ``#tag`` names preceded by line start or whitespace."""
    return TAG_PATTERN.findall(text)
