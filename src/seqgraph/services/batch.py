"""Batch parsing of outline documents into a graph.

Parsing one document never depends on another, so documents may be parsed
in worker threads, each building its own forest. The backlink index is
always built afterwards on the calling thread over the complete set of
parsed pages.

Read failures are collected as DocumentErrors next to the partial result;
one bad file never aborts the batch.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import structlog

from seqgraph.graph import GraphPaths
from seqgraph.index.backlinks import BacklinkIndex, block_link_targets
from seqgraph.outline.block import Page
from seqgraph.outline.tree import parse_document
from seqgraph.services.cache import PageCache
from seqgraph.services.exceptions import CacheError, DocumentError

logger = structlog.get_logger()


@dataclass
class GraphResult:
    """Pages of a batch with their shared backlink index.

    Attributes:
        pages: page name -> Page
        backlinks: Index built over all pages
        errors: Diagnostics collected while reading/parsing
        paths: page name -> source file, for pages read from disk
    """

    pages: dict[str, Page] = field(default_factory=dict)
    backlinks: BacklinkIndex = field(default_factory=BacklinkIndex)
    errors: list[Exception] = field(default_factory=list)
    paths: dict[str, Path] = field(default_factory=dict)


def parse_documents(documents: Iterable[tuple[str, str]], workers: int = 1) -> GraphResult:
    """Parse (name, text) pairs and index them.

    Args:
        documents: (name, text) pairs; name becomes ``Page.name``
        workers: Number of parser threads (1 = parse on the calling thread)

    Returns:
        GraphResult keyed by each page's ``page_name`` (title, else name)
    """
    documents = list(documents)

    if workers > 1 and len(documents) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            pages = list(executor.map(lambda doc: parse_document(doc[1], name=doc[0]).page, documents))
    else:
        pages = [parse_document(text, name=name).page for name, text in documents]

    result = GraphResult()
    for page in pages:
        _store_page(result, page)

    result.backlinks.add_documents(result.pages.values())
    logger.info("graph_parsed", pages=len(result.pages), errors=len(result.errors))
    return result


def parse_files(paths: Iterable[Path], workers: int = 1) -> GraphResult:
    """Read and parse files; the file stem becomes the page name.

    Unreadable files are reported in ``errors`` and skipped.
    """
    paths = list(paths)
    documents = []
    errors: list[Exception] = []

    for path in paths:
        try:
            documents.append((path.stem, path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("document_read_failed", path=str(path), error=str(e))
            errors.append(DocumentError(path, f"error reading file ({e})"))

    result = parse_documents(documents, workers=workers)
    result.errors = errors + result.errors

    paths_by_stem = {path.stem: path for path in paths}
    for name, page in result.pages.items():
        result.paths[name] = paths_by_stem[page.name]
    return result


def parse_directory(
    graph: GraphPaths,
    workers: int = 1,
    cache: Optional[PageCache] = None,
) -> GraphResult:
    """Parse every document of a graph directory.

    With a cache, pages whose file has not changed since they were cached
    are restored from it; the others are parsed and written back. Cache
    write failures are reported as diagnostics and never abort the batch.

    Args:
        graph: Graph directory layout
        workers: Number of parser threads
        cache: Optional page cache

    Returns:
        GraphResult over all documents of the graph
    """
    paths = graph.list_documents()
    if cache is None:
        return parse_files(paths, workers=workers)

    cached_pages: list[Page] = []
    stale: list[Path] = []
    for path in paths:
        page = cache.get_page(path.stem, path)
        if page is not None:
            cached_pages.append(page)
        else:
            stale.append(path)

    parsed = parse_files(stale, workers=workers)
    result = GraphResult(errors=list(parsed.errors))
    paths_by_stem = {path.stem: path for path in paths}

    for page in cached_pages:
        _store_page(result, page)
        result.paths[page.page_name] = paths_by_stem[page.name]

    for page in parsed.pages.values():
        _store_page(result, page)
        result.paths[page.page_name] = paths_by_stem[page.name]
        try:
            cache.save_page(page, page.name, paths_by_stem[page.name], extract_dependencies(page))
        except CacheError as e:
            result.errors.append(DocumentError(page.name, f"warning: failed to cache page ({e})"))

    result.backlinks.add_documents(result.pages.values())

    # Entries of deleted files and backlinks that no longer exist are dropped
    cache.retain(paths_by_stem)
    cache.clear_backlinks()
    for page_name in result.pages:
        backlinks = result.backlinks.get_backlinks(page_name)
        if backlinks:
            cache.save_backlinks(page_name, backlinks)

    try:
        cache.save()
    except CacheError as e:
        result.errors.append(DocumentError(cache.cache_path, f"warning: failed to save cache ({e})"))

    logger.info(
        "graph_loaded",
        pages=len(result.pages),
        cache_hits=cache.stats.hits,
        cache_misses=cache.stats.misses,
        cache_hit_rate=round(cache.stats.hit_rate, 1),
        cache_pruned=cache.stats.pruned,
    )
    return result


def extract_dependencies(page: Page) -> list[str]:
    """Names of the pages a page links to, in first-occurrence order."""
    dependencies: dict[str, None] = {}
    for block in page.all_blocks:
        for target in block_link_targets(block):
            dependencies.setdefault(target, None)
    return list(dependencies)


def _store_page(result: GraphResult, page: Page) -> None:
    key = page.page_name
    if key in result.pages:
        result.errors.append(DocumentError(page.name or key, f"duplicate page name '{key}', later document wins"))
    result.pages[key] = page
