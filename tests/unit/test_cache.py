"""Unit tests for the page cache."""

import json
import os

import pytest

from seqgraph.index.backlinks import BlockReference
from seqgraph.outline.tree import parse_document
from seqgraph.services.cache import CACHE_VERSION, PageCache, graph_cache_name
from seqgraph.services.exceptions import CacheError


@pytest.fixture
def source_file(tmp_path):
    """A page file on disk."""
    path = tmp_path / "graph" / "pages" / "alpha.md"
    path.parent.mkdir(parents=True)
    path.write_text("# Alpha\n- See [[Beta]]\n", encoding="utf-8")
    return path


@pytest.fixture
def cache(tmp_path):
    """Empty cache for the test graph."""
    return PageCache(tmp_path / "cache" / "pages.json", graph_path=tmp_path / "graph")


def parse_file(path):
    return parse_document(path.read_text(encoding="utf-8"), name=path.stem).page


class TestPageCacheEntries:
    """Tests for storing and retrieving pages."""

    def test_hit_when_file_unchanged(self, cache, source_file):
        """Test a cached page is returned while its file is unchanged."""
        cache.save_page(parse_file(source_file), "alpha", source_file, ["Beta"])

        page = cache.get_page("alpha", source_file)

        assert page is not None
        assert page.title == "Alpha"
        assert page.blocks[0].content == "See [[Beta]]"

    def test_miss_when_file_newer(self, cache, source_file):
        """Test a newer mtime invalidates the entry."""
        cache.save_page(parse_file(source_file), "alpha", source_file, [])
        mtime = source_file.stat().st_mtime
        os.utime(source_file, (mtime + 10, mtime + 10))

        assert cache.get_page("alpha", source_file) is None

    def test_miss_when_not_cached(self, cache, source_file):
        """Test unknown pages are misses."""
        assert cache.get_page("alpha", source_file) is None

    def test_miss_when_file_deleted(self, cache, source_file):
        """Test a vanished source file is a miss."""
        cache.save_page(parse_file(source_file), "alpha", source_file, [])
        source_file.unlink()

        assert cache.get_page("alpha", source_file) is None

    def test_save_page_missing_file(self, cache, tmp_path):
        """Test caching a page whose file cannot be stat'ed fails."""
        with pytest.raises(CacheError):
            cache.save_page(parse_document("- x").page, "x", tmp_path / "missing.md", [])

    def test_dependencies_and_remove(self, cache, source_file):
        """Test dependency lists and removal."""
        cache.save_page(parse_file(source_file), "alpha", source_file, ["Beta"])

        assert cache.has_page("alpha")
        assert cache.get_dependencies("alpha") == ["Beta"]

        cache.remove("alpha")

        assert not cache.has_page("alpha")
        assert cache.get_dependencies("alpha") == []

    def test_backlinks(self, cache):
        """Test backlinks are stored per page."""
        refs = {"Alpha": [BlockReference("Alpha", "block-1", 4)]}

        cache.save_backlinks("Beta", refs)

        assert cache.get_backlinks("Beta") == refs
        assert cache.get_backlinks("Gamma") is None

    def test_retain_drops_other_pages(self, cache, source_file):
        """Test retain keeps only the named entries and reports the rest."""
        page = parse_file(source_file)
        cache.save_page(page, "alpha", source_file, [])
        cache.save_page(page, "gone", source_file, [])

        assert cache.retain(["alpha"]) == ["gone"]
        assert cache.has_page("alpha")
        assert not cache.has_page("gone")
        assert cache.stats.pruned == 1

    def test_clear_backlinks(self, cache):
        """Test every backlink entry is forgotten."""
        cache.save_backlinks("Beta", {"Alpha": [BlockReference("Alpha", "block-1", 4)]})

        cache.clear_backlinks()

        assert cache.get_backlinks("Beta") is None


class TestCacheStats:
    """Tests for hit/miss accounting."""

    def test_counts(self, cache, source_file):
        """Test lookups and saves are counted."""
        cache.get_page("alpha", source_file)
        cache.save_page(parse_file(source_file), "alpha", source_file, [])
        cache.get_page("alpha", source_file)
        cache.get_page("alpha", source_file)

        assert cache.stats.hits == 2
        assert cache.stats.misses == 1
        assert cache.stats.saves == 1
        assert cache.stats.lookups == 3
        assert cache.stats.hit_rate == pytest.approx(200 / 3)

    def test_failed_stat_is_a_save_error(self, cache, tmp_path):
        """Test a page that cannot be cached counts as a save error."""
        with pytest.raises(CacheError):
            cache.save_page(parse_document("- x").page, "x", tmp_path / "missing.md", [])

        assert cache.stats.save_errors == 1
        assert cache.stats.saves == 0

    def test_empty_hit_rate_and_reset(self, cache, source_file):
        """Test the hit rate without lookups is zero and reset clears counters."""
        assert cache.stats.hit_rate == 0.0

        cache.get_page("alpha", source_file)
        cache.stats.reset()

        assert cache.stats.lookups == 0


class TestPageCachePersistence:
    """Tests for loading and saving the cache file."""

    def test_save_and_reload(self, tmp_path, cache, source_file):
        """Test entries survive a save/load cycle."""
        cache.save_page(parse_file(source_file), "alpha", source_file, ["Beta"])
        cache.save()

        reloaded = PageCache(cache.cache_path, graph_path=tmp_path / "graph")

        assert reloaded.has_page("alpha")
        assert reloaded.get_page("alpha", source_file).title == "Alpha"
        assert not cache.cache_path.with_suffix(".tmp").exists()

    def test_file_format(self, cache):
        """Test the JSON layout on disk."""
        cache.save()

        data = json.loads(cache.cache_path.read_text())

        assert data["version"] == CACHE_VERSION
        assert data["graph_path"] == cache.graph_path
        assert data["pages"] == {}

    def test_other_graph_invalidates(self, tmp_path, cache, source_file):
        """Test a cache written for another graph is discarded."""
        cache.save_page(parse_file(source_file), "alpha", source_file, [])
        cache.save()

        other = PageCache(cache.cache_path, graph_path=tmp_path / "elsewhere")

        assert not other.has_page("alpha")

    def test_version_mismatch_invalidates(self, tmp_path, cache, source_file):
        """Test a cache from another format version is discarded."""
        cache.save_page(parse_file(source_file), "alpha", source_file, [])
        cache.save()
        data = json.loads(cache.cache_path.read_text())
        data["version"] = "0"
        cache.cache_path.write_text(json.dumps(data))

        reloaded = PageCache(cache.cache_path, graph_path=tmp_path / "graph")

        assert not reloaded.has_page("alpha")

    def test_corrupted_file_starts_empty(self, tmp_path):
        """Test a malformed cache file is ignored."""
        cache_path = tmp_path / "pages.json"
        cache_path.write_text("{not json")

        cache = PageCache(cache_path, graph_path=tmp_path)

        assert cache.data.pages == {}


class TestGraphCacheName:
    """Tests for graph_cache_name."""

    def test_pattern(self, tmp_path):
        """Test basename plus 16-digit hash."""
        name = graph_cache_name(tmp_path / "my-graph")

        basename, digest = name[:-len(".json")].rsplit("-", 1)
        assert basename == "my-graph"
        assert len(digest) == 16
        assert name.endswith(".json")

    def test_distinct_graphs(self, tmp_path):
        """Test graphs with the same basename get different names."""
        assert graph_cache_name(tmp_path / "a" / "notes") != graph_cache_name(tmp_path / "b" / "notes")
