"""Positional (path-based) block addressing.

A BlockPath is the sequence of child indices leading from a page's top-level
list to a block: ``(0, 1, 0)`` is the first child of the second child of the
first top-level block. Paths carry no identity and go stale after any
structural change at or before the addressed position; ``compute_path_shifts``
tells editors how previously handed-out paths move after an insertion.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from seqgraph.outline.block import Block

BlockPath = tuple[int, ...]


class PathError(Exception):
    """Base class for addressing errors."""


class EmptyPathError(PathError):
    """Raised when an operation receives an empty path."""

    def __init__(self, message: str = "empty path"):
        super().__init__(message)


class InvalidPathError(PathError):
    """Raised when a path element is outside the valid range.

    Attributes:
        index: The offending index
        position: Position of the offending element within the path
        max_index: Largest valid index at that level (-1 if the level is empty)
    """

    def __init__(self, index: int, position: int, max_index: int):
        self.index = index
        self.position = position
        self.max_index = max_index
        super().__init__(
            f"invalid index {index} (max {max_index}) at path position {position}"
        )


@dataclass(frozen=True)
class PathShift:
    """Old and new path of a block moved by an insertion."""

    old_path: BlockPath
    new_path: BlockPath


def find_block_by_path(forest: Sequence[Block], path: Sequence[int]) -> Block:
    """Resolve a path to a block.

    Args:
        forest: Top-level blocks of a page
        path: Child indices from the top level down

    Returns:
        The addressed block

    Raises:
        EmptyPathError: If path is empty
        InvalidPathError: At the first out-of-range element
    """
    if not path:
        raise EmptyPathError()

    level: Sequence[Block] = forest
    block: Optional[Block] = None
    for position, index in enumerate(path):
        if index < 0 or index >= len(level):
            raise InvalidPathError(index, position, len(level) - 1)
        block = level[index]
        level = block.children

    return block


def get_block_path(forest: Sequence[Block], target: Block) -> Optional[BlockPath]:
    """Compute the current path of a block, or None if it is not in the forest."""

    def search(blocks: Sequence[Block], prefix: BlockPath) -> Optional[BlockPath]:
        for i, block in enumerate(blocks):
            path = prefix + (i,)
            if block is target:
                return path
            if found := search(block.children, path):
                return found
        return None

    return search(forest, ())


def insert_block_at_path(forest: list[Block], block: Block, path: Sequence[int]) -> None:
    """Insert a block so that it ends up at ``path``.

    The last element may equal the sibling count (append). For a one-element
    path the ``forest`` list itself is mutated, so callers pass the list the
    page owns (``page.blocks``) and refresh the page afterwards.

    Raises:
        EmptyPathError: If path is empty
        InvalidPathError: If the parent path or insertion index is invalid
    """
    if not path:
        raise EmptyPathError()

    siblings, parent = _container(forest, path)
    index = path[-1]
    if index < 0 or index > len(siblings):
        raise InvalidPathError(index, len(path) - 1, len(siblings))

    siblings.insert(index, block)
    block.attach_to(parent)


def remove_block_at_path(forest: list[Block], path: Sequence[int]) -> Block:
    """Detach and return the block at ``path``.

    For a one-element path the ``forest`` list itself is mutated.

    Raises:
        EmptyPathError: If path is empty
        InvalidPathError: If any path element is invalid
    """
    if not path:
        raise EmptyPathError()

    siblings, _parent = _container(forest, path)
    index = path[-1]
    if index < 0 or index >= len(siblings):
        raise InvalidPathError(index, len(path) - 1, len(siblings) - 1)

    removed = siblings.pop(index)
    removed.attach_to(None)
    return removed


def compute_path_shifts(forest: Sequence[Block], insert_path: Sequence[int]) -> list[PathShift]:
    """Compute how existing paths move when a block is inserted at ``insert_path``.

    Must be called on the forest as it was before the insertion. A block is
    affected when its path equals ``insert_path`` on every level above the
    insertion level and its index at that level is at least the inserted
    index; its index at that level grows by one. Descendants of shifted
    blocks are reported too.

    Examples:
        Three top-level blocks, insert at ``(1,)``: ``(1,) -> (2,)`` and
        ``(2,) -> (3,)``; ``(0,)`` is unaffected.
    """
    if not insert_path:
        raise EmptyPathError()

    level = len(insert_path) - 1
    prefix = tuple(insert_path[:level])
    shifts: list[PathShift] = []

    def traverse(blocks: Sequence[Block], current: BlockPath) -> None:
        for i, block in enumerate(blocks):
            path = current + (i,)
            if len(path) > level and path[:level] == prefix and path[level] >= insert_path[level]:
                new_path = path[:level] + (path[level] + 1,) + path[level + 1:]
                shifts.append(PathShift(old_path=path, new_path=new_path))
            traverse(block.children, path)

    traverse(forest, ())
    return shifts


def _container(forest: list[Block], path: Sequence[int]) -> tuple[list[Block], Optional[Block]]:
    """Return the sibling list addressed by all but the last path element, and its owner."""
    if len(path) == 1:
        return forest, None
    parent = find_block_by_path(forest, path[:-1])
    return parent.children, parent
