"""seqgraph - Parse and cross-reference outline-structured markdown notes.

This package turns Logseq-style outline documents into a tree of blocks,
tokenizes their inline markup, tracks task state, and maintains a
bidirectional index of ``[[page]]`` references across a graph of pages.

Key features:
- Parse outline markdown into a Block forest (lenient indentation)
- Typed inline segments (links, tags, block refs, formatting...)
- TODO/DOING/DONE keywords, checkboxes and priorities
- Forward and backward page-link maps kept in sync on edits
- Path-based block addressing for editors

Example:
    >>> from seqgraph import parse_document
    >>> page = parse_document("# Notes\\n- See [[Project X]]\\n  - TODO follow up").page
    >>> page.blocks[0].children[0].todo.state
    <TodoState.TODO: 'TODO'>
"""

from seqgraph.outline.block import Block, Page
from seqgraph.outline.lines import Line, LineType, classify_line
from seqgraph.outline.segments import Segment, SegmentType, parse_segments
from seqgraph.outline.todo import CheckboxState, TodoInfo, TodoState, parse_todo_info
from seqgraph.outline.tree import ParseIssue, ParseResult, build_block_tree, parse_document
from seqgraph.outline.position import (
    BlockPath,
    PathShift,
    compute_path_shifts,
    find_block_by_path,
    insert_block_at_path,
    remove_block_at_path,
)
from seqgraph.outline.render import render_page
from seqgraph.index.backlinks import BacklinkIndex, BlockReference
from seqgraph.graph import GraphPaths

__version__ = "0.1.0"

__all__ = [
    "Block",
    "Page",
    "Line",
    "LineType",
    "classify_line",
    "Segment",
    "SegmentType",
    "parse_segments",
    "CheckboxState",
    "TodoInfo",
    "TodoState",
    "parse_todo_info",
    "ParseIssue",
    "ParseResult",
    "build_block_tree",
    "parse_document",
    "BlockPath",
    "PathShift",
    "compute_path_shifts",
    "find_block_by_path",
    "insert_block_at_path",
    "remove_block_at_path",
    "render_page",
    "BacklinkIndex",
    "BlockReference",
    "GraphPaths",
]
