"""Bidirectional page reference index.

The index keeps two adjacency maps that are always mirror images of each
other:

    forward_links[source][target]  -> [BlockReference, ...]
    backward_links[target][source] -> [BlockReference, ...]

A BlockReference records the source page, the referencing block and the
offset of the first ``[[target]]`` occurrence in that block's content. Each
block contributes at most one reference per distinct target.

Page names are matched case-insensitively. The spelling stored in the maps
is the first one the index saw for that name.

The index is plain shared state with no locking: build and update it from a
single thread, after parsing has finished.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from seqgraph.outline.block import Block, Page
from seqgraph.outline.lines import PAGE_REF_PATTERN
from seqgraph.outline.segments import page_link_targets

logger = structlog.get_logger()


class IndexConsistencyError(Exception):
    """Raised when forward and backward maps are not mirror images.

    This signals a programming error in index maintenance, not bad input.
    """


@dataclass(frozen=True)
class BlockReference:
    """One block of a source page referencing a target page.

    Attributes:
        page_name: Source page containing the reference
        block_id: Identifier of the referencing block
        position: Character offset of the first ``[[target]]`` in the block content
    """

    page_name: str
    block_id: str
    position: int


def block_link_targets(block: Block) -> dict[str, int]:
    """Page references of a block with their first-occurrence offsets.

    Link segments whose ``[[target]]`` form does not occur in the content
    (plain ``[text](url)`` links) are not page references. Targets differing
    only in case are one target: the first spelling and the offset of the
    first ``[[...]]`` matching it in any case are kept.

    Returns:
        Mapping target -> offset, in first-occurrence order
    """
    offsets: dict[str, int] = {}
    for match in PAGE_REF_PATTERN.finditer(block.content):
        offsets.setdefault(match.group(1).casefold(), match.start())

    targets: dict[str, int] = {}
    seen: set[str] = set()
    for target in page_link_targets(block.segments):
        key = target.casefold()
        if key in seen or key not in offsets:
            continue
        seen.add(key)
        targets[target] = offsets[key]
    return targets


class BacklinkIndex:
    """Forward and backward page-reference maps over a set of pages."""

    def __init__(self) -> None:
        self.forward_links: dict[str, dict[str, list[BlockReference]]] = {}
        self.backward_links: dict[str, dict[str, list[BlockReference]]] = {}
        self._canonical: dict[str, str] = {}

    def canonical_name(self, name: str) -> str:
        """Return the stored spelling of a page name, registering it if new."""
        return self._canonical.setdefault(name.casefold(), name)

    def _lookup_name(self, name: str) -> Optional[str]:
        return self._canonical.get(name.casefold())

    def add_document(self, page: Page) -> None:
        """Index every page reference made by the page's blocks.

        Self-references are skipped.
        """
        source = self.canonical_name(page.page_name)
        added = 0

        for block in page.all_blocks:
            for target, position in block_link_targets(block).items():
                if target.casefold() == source.casefold():
                    continue
                ref = BlockReference(page_name=source, block_id=block.id, position=position)
                self.add_backlink(source, target, ref)
                added += 1

        logger.debug("document_indexed", page=source, references=added)

    def add_documents(self, pages: Iterable[Page]) -> None:
        """Index several pages."""
        for page in pages:
            self.add_document(page)

    def rebuild(self, pages: Iterable[Page]) -> None:
        """Discard all entries and index the given pages from scratch."""
        self.forward_links.clear()
        self.backward_links.clear()
        self._canonical.clear()
        self.add_documents(pages)

    def remove_document(self, page_name: str) -> None:
        """Drop every reference the page makes to other pages.

        References made *to* the page by other pages are kept.
        """
        source = self._lookup_name(page_name)
        if source is None:
            return

        for target in list(self.forward_links.get(source, {})):
            self.remove_backlink(source, target)

    def add_backlink(self, source: str, target: str, ref: BlockReference) -> None:
        """Record one reference in both maps.

        A reference already present for the same block is replaced, so each
        block holds at most one reference per target.
        """
        source = self.canonical_name(source)
        target = self.canonical_name(target)

        forward = self.forward_links.setdefault(source, {}).setdefault(target, [])
        backward = self.backward_links.setdefault(target, {}).setdefault(source, [])

        for refs in (forward, backward):
            refs[:] = [r for r in refs if r.block_id != ref.block_id]
            refs.append(ref)

    def remove_backlink(self, source: str, target: str, block_id: Optional[str] = None) -> None:
        """Remove references from ``source`` to ``target`` in both maps.

        Args:
            source: Referencing page
            target: Referenced page
            block_id: Only remove the reference of this block (None = all)

        Emptied inner lists and mappings are deleted.
        """
        source = self._lookup_name(source)
        target = self._lookup_name(target)
        if source is None or target is None:
            return

        _discard(self.forward_links, source, target, block_id)
        _discard(self.backward_links, target, source, block_id)

    def remove_references_for(self, source: str, block_id: str) -> None:
        """Remove every reference made by one block of ``source``."""
        canonical = self._lookup_name(source)
        if canonical is None:
            return

        for target, refs in list(self.forward_links.get(canonical, {}).items()):
            if any(r.block_id == block_id for r in refs):
                self.remove_backlink(canonical, target, block_id)

    def update_block(self, source: str, block: Block) -> tuple[set[str], set[str]]:
        """Bring the references of one block in line with its current content.

        Diffs the targets the index holds for the block against the block's
        current targets: vanished targets are removed, new ones added, and
        offsets of kept targets refreshed.

        Returns:
            (added targets, removed targets), by stored spelling
        """
        source = self.canonical_name(source)
        old_targets = {
            target
            for target, refs in self.forward_links.get(source, {}).items()
            if any(r.block_id == block.id for r in refs)
        }
        new_targets = {
            target: position
            for target, position in block_link_targets(block).items()
            if target.casefold() != source.casefold()
        }

        old_keys = {t.casefold(): t for t in old_targets}
        new_keys = {t.casefold(): t for t in new_targets}

        removed = {old_keys[k] for k in old_keys.keys() - new_keys.keys()}
        for target in removed:
            self.remove_backlink(source, target, block.id)

        added = set()
        for key, target in new_keys.items():
            ref = BlockReference(page_name=source, block_id=block.id, position=new_targets[target])
            self.add_backlink(source, target, ref)
            if key not in old_keys:
                added.add(self.canonical_name(target))

        if added or removed:
            logger.debug(
                "block_references_updated",
                page=source,
                block_id=block.id,
                added=sorted(added),
                removed=sorted(removed),
            )
        return added, removed

    def get_backlinks(self, page_name: str) -> dict[str, list[BlockReference]]:
        """Pages referencing ``page_name``: source -> references (possibly empty)."""
        name = self._lookup_name(page_name)
        return self.backward_links.get(name, {}) if name is not None else {}

    def get_forward_links(self, page_name: str) -> dict[str, list[BlockReference]]:
        """Pages referenced by ``page_name``: target -> references (possibly empty)."""
        name = self._lookup_name(page_name)
        return self.forward_links.get(name, {}) if name is not None else {}

    def get_all_pages(self) -> list[str]:
        """Every page name that appears as a source or a target."""
        return sorted(set(self.forward_links) | set(self.backward_links))

    def is_orphan(self, page_name: str) -> bool:
        """True if the page neither references nor is referenced by any page."""
        return not self.get_forward_links(page_name) and not self.get_backlinks(page_name)

    def check_consistency(self) -> None:
        """Verify that forward and backward maps mirror each other.

        Raises:
            IndexConsistencyError: On the first entry without its mirror
        """
        for source, targets in self.forward_links.items():
            for target, refs in targets.items():
                mirrored = self.backward_links.get(target, {}).get(source)
                if mirrored is None or sorted(refs, key=_ref_key) != sorted(mirrored, key=_ref_key):
                    raise IndexConsistencyError(
                        f"forward entry {source!r} -> {target!r} has no matching backward entry"
                    )

        for target, sources in self.backward_links.items():
            for source in sources:
                if target not in self.forward_links.get(source, {}):
                    raise IndexConsistencyError(
                        f"backward entry {target!r} <- {source!r} has no matching forward entry"
                    )


def find_orphan_blocks(blocks: Iterable[Block]) -> list[Block]:
    """Blocks with non-blank content that reference no page."""
    return [
        block for block in blocks
        if block.content.strip() and not block_link_targets(block)
    ]


def _ref_key(ref: BlockReference) -> tuple[str, str, int]:
    return (ref.page_name, ref.block_id, ref.position)


def _discard(
    links: dict[str, dict[str, list[BlockReference]]],
    outer: str,
    inner: str,
    block_id: Optional[str],
) -> None:
    inner_map = links.get(outer)
    if inner_map is None or inner not in inner_map:
        return

    if block_id is None:
        del inner_map[inner]
    else:
        remaining = [r for r in inner_map[inner] if r.block_id != block_id]
        if remaining:
            inner_map[inner] = remaining
        else:
            del inner_map[inner]

    if not inner_map:
        del links[outer]
