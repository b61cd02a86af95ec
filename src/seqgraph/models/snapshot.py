"""Serializable page snapshots for storage and UI collaborators."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from seqgraph.index.backlinks import BlockReference
from seqgraph.outline.block import Block, Page


class SegmentSnapshot(BaseModel):
    """Inline segment as plain data."""

    type: str = Field(..., description="Segment kind (SegmentType value)")
    content: str = Field(..., description="Display text")
    target: Optional[str] = Field(default=None, description="Link/image/tag/block-ref target")
    alt: Optional[str] = Field(default=None, description="Image alt text")

    model_config = {"frozen": True}


class BlockSnapshot(BaseModel):
    """Block with every derived field, recursively including children."""

    id: str = Field(..., description="Block identifier")
    content: str = Field(..., description="Newline-joined block content")
    depth: int = Field(..., ge=0, description="Nesting depth (0 = top-level)")
    todo_state: str = Field(default="", description="Task keyword (empty if none)")
    checkbox_state: str = Field(default="", description="Checkbox marker (empty if none)")
    priority: Optional[str] = Field(default=None, description="Task priority letter")
    segments: list[SegmentSnapshot] = Field(default_factory=list)
    children: list["BlockSnapshot"] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_block(cls, block: Block) -> "BlockSnapshot":
        """Snapshot a block and its subtree."""
        return cls(
            id=block.id,
            content=block.content,
            depth=block.depth,
            todo_state=block.todo.state.value,
            checkbox_state=block.todo.checkbox.value,
            priority=block.todo.priority,
            segments=[
                SegmentSnapshot(type=s.type.value, content=s.content, target=s.target, alt=s.alt)
                for s in block.segments
            ],
            children=[cls.from_block(child) for child in block.children],
        )

    def to_block(self) -> Block:
        """Rebuild a live Block subtree; derived fields are recomputed from content."""
        block = Block.from_content(self.content, block_id=self.id)
        block.depth = self.depth
        for child_snapshot in self.children:
            child = child_snapshot.to_block()
            block.children.append(child)
            child.parent = block
        return block


class PageSnapshot(BaseModel):
    """Page as plain data: title plus the block forest with derived fields."""

    name: str = Field(default="", description="Collection key of the page")
    title: Optional[str] = Field(default=None, description="Title from first header")
    blocks: list[BlockSnapshot] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_page(cls, page: Page) -> "PageSnapshot":
        """Snapshot a page."""
        return cls(
            name=page.name,
            title=page.title,
            blocks=[BlockSnapshot.from_block(block) for block in page.blocks],
        )

    def to_page(self) -> Page:
        """Rebuild a live Page."""
        return Page(
            name=self.name,
            title=self.title,
            blocks=[snapshot.to_block() for snapshot in self.blocks],
        )


class ReferenceSnapshot(BaseModel):
    """BlockReference as plain data."""

    page_name: str
    block_id: str
    position: int

    model_config = {"frozen": True}

    @classmethod
    def from_reference(cls, ref: BlockReference) -> "ReferenceSnapshot":
        return cls(page_name=ref.page_name, block_id=ref.block_id, position=ref.position)


class CachedPage(BaseModel):
    """Cache entry: snapshot plus the data needed to invalidate it."""

    page: PageSnapshot
    file_path: str = Field(..., description="Source file the page was parsed from")
    file_mtime: float = Field(..., description="Source file mtime when cached")
    dependencies: list[str] = Field(default_factory=list, description="Pages this page links to")
    cached_at: datetime = Field(default_factory=datetime.now)
