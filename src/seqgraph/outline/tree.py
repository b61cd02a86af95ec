"""Block tree construction and whole-document parsing.

Lines are turned into a forest with a stack of open blocks: the stack holds
the path from a root to the most recently created block. A new bullet pops
every open block whose depth is at least its indent level; whatever remains
on top becomes its parent.

Indentation is lenient. A bullet indented several levels deeper than its
predecessor is attached to the current stack top and keeps its raw indent
level as depth. Nothing is renormalized, so ``depth`` always reflects the
source indentation. Such jumps are reported as non-fatal ParseIssues.

Block ids are unique within a document. A bullet whose ``id::`` is already
taken gets its sequential ``block-N`` id instead, and the clash is reported.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from seqgraph.outline.block import Block, Page
from seqgraph.outline.lines import Line, LineType, classify_line
from seqgraph.utils.ids import sequential_block_id

INDENT_WIDTH = 2


@dataclass(frozen=True)
class ParseIssue:
    """Non-fatal diagnostic produced while parsing a document.

    Attributes:
        line: 1-based line number the issue refers to
        message: Human-readable description
    """

    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass
class ParseResult:
    """Result of parsing one document.

    Attributes:
        page: Best-effort parsed page (always present)
        lines: Every classified line of the source
        errors: Non-fatal diagnostics
    """

    page: Page
    lines: list[Line] = field(default_factory=list)
    errors: list[ParseIssue] = field(default_factory=list)


def calculate_indent_level(raw_line: str) -> int:
    """Count leading spaces and divide by the indent width (2)."""
    spaces = len(raw_line) - len(raw_line.lstrip(" "))
    return spaces // INDENT_WIDTH


def build_block_tree(
    entries: Iterable[tuple[Line, int]],
    issues: Optional[list[ParseIssue]] = None,
) -> list[Block]:
    """Build the block forest of one document.

    Args:
        entries: (line, indent_level) pairs in document order
        issues: Optional list receiving indentation diagnostics

    Returns:
        Top-level blocks, each populated with its children

    Examples:
        >>> roots = build_block_tree([(classify_line(1, "- A"), 0), (classify_line(2, "  - B"), 1)])
        >>> roots[0].children[0].content
        'B'
    """
    roots: list[Block] = []
    stack: list[Block] = []
    used_ids: set[str] = set()
    counter = 0

    def report(line: Line, message: str) -> None:
        if issues is not None:
            issues.append(ParseIssue(line=line.number, message=message))

    for line, indent_level in entries:
        if line.type is LineType.EMPTY:
            continue

        if line.type is LineType.TEXT:
            # Body text indented under the open bullet continues that block
            if stack and indent_level > stack[-1].depth:
                owner = stack[-1]
                had_declared_id = owner.block_id is not None
                owner.append_line(line)
                if line.block_id and not had_declared_id:
                    if line.block_id in used_ids:
                        report(line, f"duplicate block id '{line.block_id}'; keeping '{owner.id}'")
                    else:
                        used_ids.discard(owner.id)
                        owner.id = line.block_id
                        used_ids.add(owner.id)
            continue

        if line.type is not LineType.BLOCK:
            continue

        counter += 1
        while stack and stack[-1].depth >= indent_level:
            stack.pop()

        block_id = _unique_block_id(line.block_id, counter, used_ids)
        if line.block_id and block_id != line.block_id:
            report(line, f"duplicate block id '{line.block_id}'; using '{block_id}'")
        used_ids.add(block_id)

        block = Block(
            id=block_id,
            lines=[line],
            depth=indent_level,
        )

        if stack:
            parent = stack[-1]
            if indent_level > parent.depth + 1:
                report(
                    line,
                    f"indentation jumps from depth {parent.depth} to {indent_level}; "
                    f"attached to the enclosing block",
                )
            block.parent = parent
            parent.children.append(block)
        else:
            roots.append(block)

        stack.append(block)

    return roots


def _unique_block_id(declared: Optional[str], counter: int, used_ids: set[str]) -> str:
    """Declared id if still free, else ``block-N`` (suffixed until unused)."""
    if declared and declared not in used_ids:
        return declared

    candidate = sequential_block_id(counter)
    suffix = 1
    while candidate in used_ids:
        suffix += 1
        candidate = f"{sequential_block_id(counter)}-{suffix}"
    return candidate


def parse_document(text: str, name: str = "") -> ParseResult:
    """Parse an outline document into a Page.

    Never raises: malformed input degrades to the most specific
    classification that succeeds and the page is always returned.

    Args:
        text: Raw document text
        name: Optional collection name for the page (e.g. file stem)

    Returns:
        ParseResult with page, classified lines and diagnostics
    """
    lines: list[Line] = []
    entries: list[tuple[Line, int]] = []

    for number, raw_line in enumerate(text.split("\n"), start=1):
        line = classify_line(number, raw_line)
        lines.append(line)
        entries.append((line, calculate_indent_level(raw_line)))

    issues: list[ParseIssue] = []
    blocks = build_block_tree(entries, issues)

    title = next((line.content for line in lines if line.type is LineType.HEADER), None)
    page = Page(name=name, title=title, blocks=blocks)

    return ParseResult(page=page, lines=lines, errors=issues)
