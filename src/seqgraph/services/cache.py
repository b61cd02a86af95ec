"""Page cache keyed by page name and source file mtime.

Parsed pages are stored as PageSnapshots in a single JSON file together with
the source file's mtime and the names of the pages they link to. An entry is
a miss as soon as the file's mtime is newer than the recorded one, so the
cache never serves a page older than its file.

File format:
{
    "version": "1",
    "graph_path": "/path/to/graph",
    "updated": "2025-01-15T10:00:00",
    "pages": {"page_name": {CachedPage...}, ...},
    "backlinks": {"page_name": {"source": [{ref}, ...]}, ...}
}
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from seqgraph.index.backlinks import BlockReference
from seqgraph.models.snapshot import CachedPage, PageSnapshot, ReferenceSnapshot
from seqgraph.outline.block import Page
from seqgraph.services.exceptions import CacheError

logger = structlog.get_logger()

CACHE_VERSION = "1"


def graph_cache_name(graph_path: Path) -> str:
    """Generate a unique cache file name for a graph path.

    Uses pattern: (basename)-(16-digit-hash).json

    Example:
        /home/user/Documents/my-graph -> my-graph-a1b2c3d4e5f6a7b8.json
    """
    abs_path = str(graph_path.resolve())
    hash_hex = hashlib.sha256(abs_path.encode("utf-8")).hexdigest()[:16]
    return f"{graph_path.name}-{hash_hex}.json"


@dataclass
class CacheStats:
    """Hit/miss and write counters of a PageCache since it was opened."""

    hits: int = 0
    misses: int = 0
    saves: int = 0
    save_errors: int = 0
    pruned: int = 0
    started: datetime = field(default_factory=datetime.now)

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Percentage of lookups served from the cache (0 when none)."""
        if not self.lookups:
            return 0.0
        return self.hits / self.lookups * 100

    def reset(self) -> None:
        self.hits = self.misses = self.saves = self.save_errors = self.pruned = 0
        self.started = datetime.now()


class CacheFile(BaseModel):
    """On-disk layout of the page cache."""

    version: str = CACHE_VERSION
    graph_path: str = ""
    updated: datetime = Field(default_factory=datetime.now)
    pages: dict[str, CachedPage] = Field(default_factory=dict)
    backlinks: dict[str, dict[str, list[ReferenceSnapshot]]] = Field(default_factory=dict)


class PageCache:
    """JSON-file cache of parsed pages for one graph."""

    def __init__(self, cache_path: Path, graph_path: Optional[Path] = None):
        """Initialize page cache.

        An existing cache file written for another graph or cache version is
        discarded.

        Args:
            cache_path: Path to cache JSON file
            graph_path: Graph the cache belongs to
        """
        self.cache_path = cache_path
        self.graph_path = str(graph_path.resolve()) if graph_path else ""
        self.data = CacheFile(graph_path=self.graph_path)
        self.stats = CacheStats()

        if cache_path.exists():
            try:
                self.load()
            except CacheError as e:
                logger.warning("page_cache_unreadable", path=str(cache_path), error=str(e))
                self.clear()
                return

            if not self.is_valid():
                logger.info(
                    "page_cache_invalidated",
                    path=str(cache_path),
                    version=self.data.version,
                    graph_path=self.data.graph_path,
                )
                self.clear()

    def load(self) -> None:
        """Load cache from disk.

        Raises:
            CacheError: If the cache file is malformed
        """
        try:
            content = self.cache_path.read_text(encoding="utf-8")
            self.data = CacheFile.model_validate_json(content)
        except (OSError, ValidationError) as e:
            raise CacheError(f"Malformed cache file {self.cache_path}: {e}") from e

    def save(self) -> None:
        """Save cache to disk atomically (write to temp, then rename)."""
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.data.updated = datetime.now()

        temp_path = self.cache_path.with_suffix(".tmp")
        try:
            temp_path.write_text(self.data.model_dump_json(indent=2), encoding="utf-8")
            temp_path.replace(self.cache_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            self.stats.save_errors += 1
            raise CacheError(f"Failed to save cache: {e}") from e

    def is_valid(self) -> bool:
        """True if the loaded data belongs to this graph and cache version."""
        return self.data.version == CACHE_VERSION and self.data.graph_path == self.graph_path

    def get_page(self, page_name: str, file_path: Path) -> Optional[Page]:
        """Return the cached page, or None on a miss.

        A missing source file, a missing entry or a source file modified
        after the entry was written are all misses.
        """
        cached = self.data.pages.get(page_name)
        if cached is None:
            self.stats.misses += 1
            return None

        try:
            mtime = file_path.stat().st_mtime
        except OSError:
            self.stats.misses += 1
            return None

        if mtime > cached.file_mtime:
            self.stats.misses += 1
            return None

        self.stats.hits += 1
        return cached.page.to_page()

    def save_page(self, page: Page, page_name: str, file_path: Path, dependencies: list[str]) -> None:
        """Store a parsed page with the current mtime of its source file.

        Raises:
            CacheError: If the source file cannot be stat'ed
        """
        try:
            mtime = file_path.stat().st_mtime
        except OSError as e:
            self.stats.save_errors += 1
            raise CacheError(f"Failed to stat {file_path}: {e}") from e

        self.stats.saves += 1
        self.data.pages[page_name] = CachedPage(
            page=PageSnapshot.from_page(page),
            file_path=str(file_path),
            file_mtime=mtime,
            dependencies=dependencies,
        )

    def save_backlinks(self, page_name: str, backlinks: dict[str, list[BlockReference]]) -> None:
        """Store the backlinks of a page (source -> references)."""
        self.data.backlinks[page_name] = {
            source: [ReferenceSnapshot.from_reference(ref) for ref in refs]
            for source, refs in backlinks.items()
        }

    def get_backlinks(self, page_name: str) -> Optional[dict[str, list[BlockReference]]]:
        """Return cached backlinks of a page, or None if not cached."""
        cached = self.data.backlinks.get(page_name)
        if cached is None:
            return None
        return {
            source: [BlockReference(r.page_name, r.block_id, r.position) for r in refs]
            for source, refs in cached.items()
        }

    def get_dependencies(self, page_name: str) -> list[str]:
        """Names of the pages a cached page links to."""
        cached = self.data.pages.get(page_name)
        return list(cached.dependencies) if cached else []

    def remove(self, page_name: str) -> None:
        """Remove a page and its backlinks from the cache."""
        self.data.pages.pop(page_name, None)
        self.data.backlinks.pop(page_name, None)

    def retain(self, page_names: Iterable[str]) -> list[str]:
        """Drop page entries not in ``page_names`` (e.g. deleted files).

        Returns:
            Names of the dropped entries
        """
        keep = set(page_names)
        dropped = [name for name in self.data.pages if name not in keep]
        for name in dropped:
            del self.data.pages[name]

        if dropped:
            self.stats.pruned += len(dropped)
            logger.info("page_cache_pruned", pages=dropped)
        return dropped

    def clear_backlinks(self) -> None:
        """Forget every cached backlink entry."""
        self.data.backlinks = {}

    def has_page(self, page_name: str) -> bool:
        """Check if page is cached."""
        return page_name in self.data.pages

    def clear(self) -> None:
        """Drop all entries."""
        self.data = CacheFile(graph_path=self.graph_path)
