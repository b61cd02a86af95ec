"""Inline markup tokenization.

Block content is split into typed segments by repeatedly searching for the
left-most match of a single ordered alternation of every inline form the
dialect knows. When two forms could match at the same offset the one listed
first wins, so the order of ``_INLINE_FORMS`` is part of the dialect and
must not be changed.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SegmentType(Enum):
    """Kind of an inline segment."""

    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    HIGHLIGHT = "highlight"
    LINK = "link"
    IMAGE = "image"
    TAG = "tag"
    BLOCK_REF = "block_ref"
    PROPERTY = "property"
    BLOCK_ID = "block_id"
    QUERY = "query"
    EMBED = "embed"


@dataclass(frozen=True)
class Segment:
    """One inline markup token.

    Attributes:
        type: Segment kind
        content: Display text (markup delimiters removed where applicable)
        target: Link page/URL, image path, tag name or referenced block id
        alt: Image alt text
    """

    type: SegmentType
    content: str
    target: Optional[str] = None
    alt: Optional[str] = None


# (group name, pattern) in precedence order
_INLINE_FORMS = [
    ("query", r"\{\{query.*?\}\}"),
    ("embed", r"\{\{embed.*?\}\}"),
    ("block_ref", r"\(\((?P<ref_id>[a-fA-F0-9\-]+)\)\)"),
    ("strike", r"~~(?P<strike_text>.*?)~~"),
    ("highlight", r"==(?P<highlight_text>.*?)=="),
    ("caret_highlight", r"\^\^(?P<caret_text>.*?)\^\^"),
    ("tag", r"#(?P<tag_name>[a-zA-Z0-9\-_/]+)"),
    ("block_id", r"\bid::\s*(?P<id_value>[a-fA-F0-9\-]+)"),
    ("property", r"[a-zA-Z][a-zA-Z0-9\-_]*::\s*[^\n]+"),
    ("bold", r"\*\*(?P<bold_text>.*?)\*\*"),
    ("italic", r"\*(?P<italic_text>[^*]+?)\*"),
    ("named_page_link", r"\[(?P<np_text>[^\]]+)\]\(\[\[(?P<np_page>[^\]]+)\]\]\)"),
    ("markdown_link", r"\[(?P<md_text>[^\]]+)\]\((?P<md_url>[^)]+)\)"),
    ("page_link", r"\[\[(?P<page>.*?)\]\]"),
    ("image", r"!\[(?P<alt>.*?)\]\((?P<src>.*?)\)"),
]

INLINE_PATTERN = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _INLINE_FORMS)
)


def parse_segments(text: str) -> list[Segment]:
    """Tokenize content into an ordered list of segments.

    Args:
        text: Block content (task/checkbox prefix already removed)

    Returns:
        Segments in source order; empty list for empty text

    Examples:
        >>> [s.type.value for s in parse_segments("Check [[Page A]] and [[Page B]] for details")]
        ['text', 'link', 'text', 'link', 'text']
    """
    segments: list[Segment] = []
    position = 0

    for match in INLINE_PATTERN.finditer(text):
        if match.start() > position:
            segments.append(Segment(SegmentType.TEXT, text[position:match.start()]))
        segments.append(_to_segment(match))
        position = match.end()

    if position < len(text):
        segments.append(Segment(SegmentType.TEXT, text[position:]))

    return segments


def _to_segment(match: re.Match) -> Segment:
    """Convert a match of INLINE_PATTERN into the segment of its alternative."""
    kind = match.lastgroup
    raw = match.group(kind)

    if kind == "query":
        return Segment(SegmentType.QUERY, raw)
    if kind == "embed":
        return Segment(SegmentType.EMBED, raw)
    if kind == "block_ref":
        ref_id = match.group("ref_id")
        return Segment(SegmentType.BLOCK_REF, ref_id, target=ref_id)
    if kind == "strike":
        return Segment(SegmentType.STRIKETHROUGH, match.group("strike_text"))
    if kind == "highlight":
        return Segment(SegmentType.HIGHLIGHT, match.group("highlight_text"))
    if kind == "caret_highlight":
        return Segment(SegmentType.HIGHLIGHT, match.group("caret_text"))
    if kind == "tag":
        tag = match.group("tag_name")
        return Segment(SegmentType.TAG, tag, target=tag)
    if kind == "block_id":
        return Segment(SegmentType.BLOCK_ID, raw, target=match.group("id_value"))
    if kind == "property":
        return Segment(SegmentType.PROPERTY, raw)
    if kind == "bold":
        return Segment(SegmentType.BOLD, match.group("bold_text"))
    if kind == "italic":
        return Segment(SegmentType.ITALIC, match.group("italic_text"))
    if kind == "named_page_link":
        return Segment(SegmentType.LINK, match.group("np_text"), target=match.group("np_page"))
    if kind == "markdown_link":
        return Segment(SegmentType.LINK, match.group("md_text"), target=match.group("md_url"))
    if kind == "page_link":
        page = match.group("page")
        return Segment(SegmentType.LINK, page, target=page)
    if kind == "image":
        alt = match.group("alt")
        return Segment(SegmentType.IMAGE, alt, target=match.group("src"), alt=alt)

    return Segment(SegmentType.TEXT, raw)


def segments_to_text(segments: list[Segment]) -> str:
    """Reassemble the display text of segments (markup delimiters dropped)."""
    return "".join(segment.content for segment in segments)


def page_link_targets(segments: list[Segment]) -> list[str]:
    """Targets of link segments, in order, duplicates preserved."""
    return [s.target for s in segments if s.type is SegmentType.LINK and s.target]
