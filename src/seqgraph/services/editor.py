"""Editing of loaded pages, by block path or block id.

GraphSession holds the pages of a graph and their backlink index, applies
edits addressed by BlockPath (or by block id, resolved to a path), and keeps
the index in sync incrementally: only the references of the edited block are
diffed and re-recorded.

Every operation returns a delta describing the change so a front-end can
update its view without reloading the page. Insert deltas include the path
shifts of blocks that moved.

Edits stay in memory until ``save_page`` writes the page back to its file.

A session is single-writer: callers editing from several threads must
serialize access themselves.
"""

from datetime import date
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import structlog

from seqgraph.graph import GraphPaths
from seqgraph.index.backlinks import BacklinkIndex
from seqgraph.models.snapshot import BlockSnapshot
from seqgraph.outline.block import Block, Page
from seqgraph.outline.position import (
    compute_path_shifts,
    find_block_by_path,
    get_block_path,
    insert_block_at_path,
    remove_block_at_path,
)
from seqgraph.outline.render import render_page
from seqgraph.outline.tree import parse_document
from seqgraph.services.batch import GraphResult
from seqgraph.services.exceptions import BlockNotFoundError, PageNotFoundError
from seqgraph.services.file_operations import atomic_write
from seqgraph.utils.dates import format_date_for_page, is_date_page, parse_date_title
from seqgraph.utils.ids import generate_random_uuid, sequential_block_id

logger = structlog.get_logger()


class GraphSession:
    """Loaded pages plus backlink index, edited through block paths."""

    def __init__(
        self,
        pages: Optional[dict[str, Page]] = None,
        backlinks: Optional[BacklinkIndex] = None,
        graph: Optional[GraphPaths] = None,
        paths: Optional[dict[str, Path]] = None,
    ):
        """Initialize a session.

        Args:
            pages: page name -> Page
            backlinks: Index over ``pages`` (built here when omitted)
            graph: Graph directory that new and saved pages are written to
            paths: page name -> source file of pages read from disk
        """
        self.pages: dict[str, Page] = pages if pages is not None else {}
        if backlinks is None:
            backlinks = BacklinkIndex()
            backlinks.add_documents(self.pages.values())
        self.backlinks = backlinks
        self.graph = graph
        self.paths: dict[str, Path] = dict(paths) if paths else {}

    @classmethod
    def from_result(cls, result: GraphResult, graph: Optional[GraphPaths] = None) -> "GraphSession":
        """Create a session over the output of a batch parse."""
        return cls(pages=result.pages, backlinks=result.backlinks, graph=graph, paths=result.paths)

    def get_page(self, page_name: str) -> Page:
        """Look up a loaded page (case-insensitive fallback).

        Raises:
            PageNotFoundError: If no page has that name
        """
        page = self._find_page(page_name)
        if page is None:
            raise PageNotFoundError(page_name)
        return page

    def add_page(self, page: Page) -> None:
        """Add (or replace) a page and index its references."""
        self.backlinks.remove_document(page.page_name)
        self.pages[page.page_name] = page
        self.backlinks.add_document(page)

    def update_block_at_path(self, page_name: str, path: Sequence[int], content: str) -> dict[str, Any]:
        """Replace the content of the block at ``path``.

        Returns:
            Delta ``{"action": "update", "path", "block", "old_content",
            "added_links", "removed_links"}``

        Raises:
            PageNotFoundError: If the page is not loaded
            PathError: If the path does not address a block
            InvalidContentError: If the content cannot be stored in one block
        """
        page = self.get_page(page_name)
        block = find_block_by_path(page.blocks, path)

        old_content = block.content
        block.set_content(content)
        added, removed = self.backlinks.update_block(page.page_name, block)
        page.refresh()

        logger.info("block_updated", page=page.page_name, path=list(path), block_id=block.id)
        return {
            "action": "update",
            "path": tuple(path),
            "block": BlockSnapshot.from_block(block),
            "old_content": old_content,
            "added_links": sorted(added),
            "removed_links": sorted(removed),
        }

    def add_block_at_path(self, page_name: str, path: Sequence[int], content: str) -> dict[str, Any]:
        """Insert a new block with ``content`` so that it ends up at ``path``.

        A block whose declared ``id::`` is already used on the page gets a
        random id instead.

        Returns:
            Delta ``{"action": "add", "path", "block", "shifts"}`` where shifts
            lists the blocks whose paths moved

        Raises:
            PageNotFoundError: If the page is not loaded
            PathError: If the path is not a valid insertion point
            InvalidContentError: If the content cannot be stored in one block
        """
        page = self.get_page(page_name)
        block = Block.from_content(content)
        if page.find_block(block.id) is not None:
            logger.warning("block_id_in_use", page=page.page_name, block_id=block.id)
            block.id = generate_random_uuid()

        shifts = compute_path_shifts(page.blocks, path)
        insert_block_at_path(page.blocks, block, path)
        page.refresh()
        self.backlinks.update_block(page.page_name, block)

        logger.info("block_added", page=page.page_name, path=list(path), shifted=len(shifts))
        return {
            "action": "add",
            "path": tuple(path),
            "block": BlockSnapshot.from_block(block),
            "shifts": shifts,
        }

    def remove_block_at_path(self, page_name: str, path: Sequence[int]) -> dict[str, Any]:
        """Remove the block at ``path`` together with its descendants.

        Returns:
            Delta ``{"action": "remove", "path", "block"}``

        Raises:
            PageNotFoundError: If the page is not loaded
            PathError: If the path does not address a block
        """
        page = self.get_page(page_name)
        removed = remove_block_at_path(page.blocks, path)
        page.refresh()

        for block in removed.walk():
            self.backlinks.remove_references_for(page.page_name, block.id)

        logger.info("block_removed", page=page.page_name, path=list(path), block_id=removed.id)
        return {
            "action": "remove",
            "path": tuple(path),
            "block": BlockSnapshot.from_block(removed),
        }

    def update_block(self, page_name: str, block_id: str, content: str) -> dict[str, Any]:
        """Replace the content of the block with id ``block_id``.

        Raises:
            PageNotFoundError: If the page is not loaded
            BlockNotFoundError: If the page has no such block
        """
        page = self.get_page(page_name)
        block = page.find_block(block_id)
        if block is None:
            raise BlockNotFoundError(page.page_name, block_id)

        return self.update_block_at_path(page.page_name, get_block_path(page.blocks, block), content)

    def add_block(
        self,
        page_name: str,
        content: str,
        parent_id: Optional[str] = None,
        after_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Add a block under ``parent_id`` (top level if None).

        The block goes right after the sibling ``after_id``, or last when
        ``after_id`` is None.

        Raises:
            PageNotFoundError: If the page is not loaded
            BlockNotFoundError: If the parent or the sibling does not exist
        """
        page = self.get_page(page_name)

        if parent_id is None:
            base, siblings = (), page.blocks
        else:
            parent = page.find_block(parent_id)
            if parent is None:
                raise BlockNotFoundError(page.page_name, parent_id)
            base, siblings = get_block_path(page.blocks, parent), parent.children

        if after_id is None:
            index = len(siblings)
        else:
            positions = [i for i, sibling in enumerate(siblings) if sibling.id == after_id]
            if not positions:
                raise BlockNotFoundError(page.page_name, after_id)
            index = positions[0] + 1

        return self.add_block_at_path(page.page_name, base + (index,), content)

    def page_path(self, page_name: str) -> Path:
        """File a page is stored in.

        Pages read from disk keep their source file. Other pages go to
        ``journals/`` when their name is a date, else to ``pages/``.

        Raises:
            PageNotFoundError: If the page is not loaded
            ValueError: If the page has no file and the session has no graph
        """
        page = self.get_page(page_name)
        known = self.paths.get(page.page_name)
        if known is not None:
            return known

        if self.graph is None:
            raise ValueError(f"No graph directory to store page '{page.page_name}' in")
        if is_date_page(page.page_name):
            return self.graph.get_journal_path(parse_date_title(page.page_name))
        return self.graph.get_page_path(page.page_name)

    def save_page(self, page_name: str) -> Path:
        """Render a page and write it back to its file atomically.

        Returns:
            Path written

        Raises:
            PageNotFoundError: If the page is not loaded
            ValueError: If there is nowhere to write the page
            OSError: If the file cannot be written
        """
        page = self.get_page(page_name)
        path = self.page_path(page.page_name)

        atomic_write(path, render_page(page))
        self.paths[page.page_name] = path

        logger.info("page_saved", page=page.page_name, path=str(path), blocks=len(page.all_blocks))
        return path

    def create_page(self, title: str) -> Page:
        """Create ``pages/<title>.md`` with one empty block and load it.

        A page that is already loaded is returned as is; an existing file
        is loaded instead of overwritten.

        Raises:
            ValueError: If the session has no graph
        """
        page = self._find_page(title)
        if page is not None:
            return page

        graph = self._require_graph(title)
        return self._create_document(title, graph.get_page_path(title))

    def create_journal_page(self, day: Union[date, str]) -> Page:
        """Create the journal page of a date (or date title) and load it.

        Behaves like ``create_page``; the page is titled in journal format
        and stored as ``journals/YYYY_MM_DD.md``.

        Raises:
            ValueError: If ``day`` is not a date title, or the session has no graph
        """
        if isinstance(day, str):
            day = parse_date_title(day)
        title = format_date_for_page(day)

        page = self._find_page(title)
        if page is not None:
            return page

        graph = self._require_graph(title)
        return self._create_document(title, graph.get_journal_path(day))

    def _find_page(self, page_name: str) -> Optional[Page]:
        if page_name in self.pages:
            return self.pages[page_name]

        folded = page_name.casefold()
        for name, page in self.pages.items():
            if name.casefold() == folded:
                return page
        return None

    def _require_graph(self, title: str) -> GraphPaths:
        if self.graph is None:
            raise ValueError(f"No graph directory to create page '{title}' in")
        return self.graph

    def _create_document(self, title: str, path: Path) -> Page:
        if path.exists():
            page = parse_document(path.read_text(encoding="utf-8"), name=path.stem).page
            logger.info("page_loaded_existing", page=page.page_name, path=str(path))
        else:
            page = Page(name=path.stem, title=title, blocks=[Block.from_content("", block_id=sequential_block_id(1))])
            atomic_write(path, render_page(page))
            logger.info("page_created", page=title, path=str(path))

        self.add_page(page)
        self.paths[page.page_name] = path
        return page
