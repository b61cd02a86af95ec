"""Block and Page entities of the outline document model.

A Block owns its classified lines and its children. Content, task info and
inline segments are derived from the lines and are only ever changed
together through ``Block.set_content`` (or ``Block.append_line`` while a
tree is being built), so the derived fields can never drift from the text.
"""

import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from seqgraph.outline.lines import Line, LineType, content_line
from seqgraph.outline.segments import Segment, parse_segments
from seqgraph.outline.todo import TodoInfo, remove_todo_prefix
from seqgraph.utils.ids import generate_random_uuid


class InvalidContentError(ValueError):
    """Raised when new block content cannot be stored in a single block.

    Attributes:
        line: 1-based line number within the content
        text: The offending line
    """

    def __init__(self, line: int, text: str):
        self.line = line
        self.text = text
        super().__init__(f"line {line} would start a new bullet or header: {text!r}")


@dataclass(eq=False)
class Block:
    """Single bullet in the outline with its children.

    Blocks compare by identity: two blocks with equal text are still two
    different places in the forest.

    Attributes:
        id: Identifier, stable within a session (``id::`` value, ``block-N``
            from the tree builder, or a random UUID for new blocks)
        lines: Classified lines making up the block (bullet line first)
        children: Ordered child blocks (owned)
        depth: Nesting depth (0 = top-level)
        content: Newline-joined line contents (derived)
        todo: Task info of the first line (derived)
        segments: Inline segments of the content without task prefix (derived)
    """

    id: str = ""
    lines: list[Line] = field(default_factory=list)
    children: list["Block"] = field(default_factory=list)
    depth: int = 0
    content: str = field(default="", init=False)
    todo: TodoInfo = field(default_factory=TodoInfo, init=False)
    segments: list[Segment] = field(default_factory=list, init=False)
    _parent_ref: Optional[weakref.ref] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if not self.id:
            self.id = self._declared_id() or generate_random_uuid()
        self._derive()

    @classmethod
    def from_content(cls, content: str, block_id: Optional[str] = None) -> "Block":
        """Create a detached block from block text.

        Args:
            content: Block text without bullet marker (may span lines)
            block_id: Optional explicit identifier

        Returns:
            New Block with derived fields computed
        """
        block = cls(id=block_id or "")
        block.set_content(content)
        if not block_id:
            block.id = block._declared_id() or block.id
        return block

    @property
    def parent(self) -> Optional["Block"]:
        """Parent block, or None for top-level and detached blocks.

        The back-reference is weak: parents own children, never the reverse.
        """
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, parent: Optional["Block"]) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    def set_content(self, new_content: str) -> None:
        """Replace the block's text, re-deriving lines, task info and segments.

        The first line is read as the bullet line; further lines are body
        lines. Each line is trimmed, so ``content`` afterwards is the
        newline-joined trimmed lines.

        Body lines starting with ``-`` or ``#`` are rejected: written back
        to a file they would be read as a new bullet or a header, and the
        block would change shape on the next parse.

        Args:
            new_content: New block text without the bullet marker

        Raises:
            InvalidContentError: If a body line starts with ``-`` or ``#``
        """
        raw_lines = new_content.split("\n")
        for number, raw in enumerate(raw_lines[1:], start=2):
            if raw.strip().startswith(("-", "#")):
                raise InvalidContentError(number, raw.strip())

        self.lines = [
            content_line(i + 1, raw, LineType.BLOCK if i == 0 else LineType.TEXT)
            for i, raw in enumerate(raw_lines)
        ]
        self._derive()

    def append_line(self, line: Line) -> None:
        """Attach a continuation line read from the source document."""
        self.lines.append(line)
        self._derive()

    def add_child(self, child: "Block", position: Optional[int] = None) -> "Block":
        """Attach a block as child, fixing its parent and depth.

        Args:
            child: Block to attach (must not be attached elsewhere)
            position: Optional index to insert at (None = append to end)

        Returns:
            The attached child
        """
        if position is None:
            self.children.append(child)
        else:
            self.children.insert(position, child)
        child.attach_to(self)
        return child

    def attach_to(self, parent: Optional["Block"]) -> None:
        """Set parent reference and recompute depth of this subtree."""
        self.parent = parent
        self._set_depth(parent.depth + 1 if parent is not None else 0)

    def walk(self):
        """Yield this block and all its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    @property
    def block_id(self) -> Optional[str]:
        """Explicit ``id::`` value declared in the block, if any."""
        return self._declared_id()

    @property
    def properties(self) -> dict[str, str]:
        """All ``key:: value`` properties declared on the block's lines."""
        merged: dict[str, str] = {}
        for line in self.lines:
            merged.update(line.properties)
        return merged

    @property
    def references(self) -> list[str]:
        """All ``[[page]]`` references of the block's lines, duplicates kept."""
        return [ref for line in self.lines for ref in line.references]

    @property
    def tags(self) -> list[str]:
        """All ``#tag`` names of the block's lines."""
        return [tag for line in self.lines for tag in line.tags]

    def _declared_id(self) -> Optional[str]:
        for line in self.lines:
            if line.block_id:
                return line.block_id
        return None

    def _set_depth(self, depth: int) -> None:
        self.depth = depth
        for child in self.children:
            child._set_depth(depth + 1)

    def _derive(self) -> None:
        self.content = "\n".join(line.content for line in self.lines)
        self.todo = self.lines[0].todo if self.lines else TodoInfo()

        segment_source = self.content
        if self.todo.is_task:
            segment_source = remove_todo_prefix(self.content)
        self.segments = parse_segments(segment_source)


@dataclass
class Page:
    """A parsed outline document.

    Attributes:
        name: Collection key (file stem or caller-supplied name)
        title: Text of the first header line, if any
        blocks: Top-level blocks (owned by the page)
        all_blocks: Pre-order flattening of every block
        created: When the page object was created
        modified: When the page was parsed or last structurally edited
    """

    name: str = ""
    title: Optional[str] = None
    blocks: list[Block] = field(default_factory=list)
    all_blocks: list[Block] = field(default_factory=list)
    created: datetime = field(default_factory=datetime.now)
    modified: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.all_blocks:
            self.all_blocks = self.get_all_blocks()

    @property
    def page_name(self) -> str:
        """Name the page is referenced by: its title, else its collection name."""
        return self.title or self.name

    def get_all_blocks(self) -> list[Block]:
        """Return every block of the page in pre-order."""
        return [block for root in self.blocks for block in root.walk()]

    def refresh(self) -> None:
        """Recompute ``all_blocks`` after a structural change."""
        self.all_blocks = self.get_all_blocks()
        self.modified = datetime.now()

    def find_block(self, block_id: str) -> Optional[Block]:
        """Find a block by identifier."""
        for block in self.all_blocks:
            if block.id == block_id:
                return block
        return None
