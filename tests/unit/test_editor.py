"""Unit tests for path-addressed editing sessions."""

from datetime import date

import pytest

from seqgraph.graph import GraphPaths
from seqgraph.outline.block import InvalidContentError
from seqgraph.outline.position import InvalidPathError, PathShift, find_block_by_path
from seqgraph.outline.tree import parse_document
from seqgraph.services.batch import parse_directory, parse_documents
from seqgraph.services.editor import GraphSession
from seqgraph.services.exceptions import BlockNotFoundError, PageNotFoundError


@pytest.fixture
def session():
    """Session over two linked pages."""
    result = parse_documents([
        ("notes", "# Notes\n- Intro to [[Topic]]\n  - detail\n- Second"),
        ("topic", "# Topic\n- Mentions [[Notes]]"),
    ])
    return GraphSession.from_result(result)


class TestGetPage:
    """Tests for page lookup."""

    def test_exact_and_case_insensitive(self, session):
        """Test lookup by exact name and by other casing."""
        assert session.get_page("Notes").title == "Notes"
        assert session.get_page("notes").title == "Notes"

    def test_missing(self, session):
        """Test unknown pages raise PageNotFoundError."""
        with pytest.raises(PageNotFoundError, match="Page not found: Nope"):
            session.get_page("Nope")


class TestUpdateBlock:
    """Tests for update_block_at_path."""

    def test_update_replaces_content_and_links(self, session):
        """Test content change updates the index incrementally."""
        delta = session.update_block_at_path("Notes", [0], "Intro to [[Other]]")

        assert delta["action"] == "update"
        assert delta["path"] == (0,)
        assert delta["old_content"] == "Intro to [[Topic]]"
        assert delta["block"].content == "Intro to [[Other]]"
        assert delta["added_links"] == ["Other"]
        assert delta["removed_links"] == ["Topic"]

        assert session.backlinks.get_backlinks("Topic") == {}
        assert set(session.backlinks.get_backlinks("Other")) == {"Notes"}
        session.backlinks.check_consistency()

    def test_update_task_state(self, session):
        """Test derived task fields follow the new content."""
        delta = session.update_block_at_path("Notes", [0, 0], "DONE detail")

        assert delta["block"].todo_state == "DONE"
        assert session.get_page("Notes").all_blocks[1].todo.state.value == "DONE"

    def test_update_invalid_path(self, session):
        """Test invalid paths are rejected without changes."""
        with pytest.raises(InvalidPathError):
            session.update_block_at_path("Notes", [5], "x")


class TestAddBlock:
    """Tests for add_block_at_path."""

    def test_add_reports_shifts(self, session):
        """Test inserting before existing roots shifts them and their children."""
        delta = session.add_block_at_path("Notes", [0], "New first [[Topic]]")

        assert delta["action"] == "add"
        assert delta["shifts"] == [
            PathShift(old_path=(0,), new_path=(1,)),
            PathShift(old_path=(0, 0), new_path=(1, 0)),
            PathShift(old_path=(1,), new_path=(2,)),
        ]

        page = session.get_page("Notes")
        assert find_block_by_path(page.blocks, [0]).content == "New first [[Topic]]"
        assert page.all_blocks[0].content == "New first [[Topic]]"

    def test_add_indexes_new_block(self, session):
        """Test references of the new block are indexed."""
        delta = session.add_block_at_path("Notes", [0, 1], "see [[Fresh]]")

        refs = session.backlinks.get_backlinks("Fresh")["Notes"]
        assert [r.block_id for r in refs] == [delta["block"].id]
        assert delta["block"].depth == 1
        session.backlinks.check_consistency()

    def test_add_invalid_path(self, session):
        """Test insertion past the end fails."""
        with pytest.raises(InvalidPathError):
            session.add_block_at_path("Notes", [4], "x")


class TestRemoveBlock:
    """Tests for remove_block_at_path."""

    def test_remove_subtree_drops_references(self, session):
        """Test removing a block removes the references of its whole subtree."""
        session.update_block_at_path("Notes", [0, 0], "child links [[Deep]]")

        delta = session.remove_block_at_path("Notes", [0])

        assert delta["action"] == "remove"
        assert delta["block"].content == "Intro to [[Topic]]"
        assert session.backlinks.get_backlinks("Topic") == {}
        assert session.backlinks.get_backlinks("Deep") == {}
        assert [b.content for b in session.get_page("Notes").all_blocks] == ["Second"]
        session.backlinks.check_consistency()


class TestAddPage:
    """Tests for add_page."""

    def test_replacing_page_reindexes(self, session):
        """Test a replaced page's old references are dropped."""
        session.add_page(parse_document("# Topic\n- Now about [[Elsewhere]]").page)

        assert session.backlinks.get_backlinks("Notes") == {}
        assert set(session.backlinks.get_backlinks("Elsewhere")) == {"Topic"}
        session.backlinks.check_consistency()


class TestIdAddressedEdits:
    """Tests for update_block and add_block."""

    def test_update_by_id(self, session):
        """Test a block is found by id and its references re-indexed."""
        delta = session.update_block("Notes", "block-2", "detail about [[Topic]]")

        assert delta["path"] == (0, 0)
        assert delta["added_links"] == ["Topic"]
        assert [r.block_id for r in session.backlinks.get_backlinks("Topic")["Notes"]] == ["block-1", "block-2"]

    def test_update_unknown_id(self, session):
        """Test a missing block id raises BlockNotFoundError."""
        with pytest.raises(BlockNotFoundError, match="Block 'nope' not found in page 'Notes'"):
            session.update_block("Notes", "nope", "x")

    def test_update_rejects_content_with_bullets(self, session):
        """Test content that would split into blocks leaves the page unchanged."""
        with pytest.raises(InvalidContentError):
            session.update_block("Notes", "block-3", "first\n- second")

        assert session.get_page("Notes").blocks[1].content == "Second"

    def test_add_after_sibling(self, session):
        """Test a top-level block is inserted after the named sibling."""
        delta = session.add_block("Notes", "Between [[Topic]]", after_id="block-1")

        assert delta["path"] == (1,)
        assert [b.content for b in session.get_page("Notes").blocks] == [
            "Intro to [[Topic]]",
            "Between [[Topic]]",
            "Second",
        ]
        assert len(session.backlinks.get_backlinks("Topic")["Notes"]) == 2

    def test_add_under_parent(self, session):
        """Test a block without after_id is appended to its parent's children."""
        delta = session.add_block("Notes", "another detail", parent_id="block-1")

        parent = session.get_page("Notes").blocks[0]
        assert delta["path"] == (0, 1)
        assert [c.content for c in parent.children] == ["detail", "another detail"]
        assert parent.children[1].depth == 1

    def test_add_at_end_of_page(self, session):
        """Test a block with neither parent nor sibling goes last."""
        delta = session.add_block("Notes", "Last")
        assert delta["path"] == (2,)

    def test_add_unknown_parent_or_sibling(self, session):
        """Test unknown anchors raise BlockNotFoundError."""
        with pytest.raises(BlockNotFoundError):
            session.add_block("Notes", "x", parent_id="nope")
        with pytest.raises(BlockNotFoundError):
            session.add_block("Notes", "x", parent_id="block-1", after_id="block-3")

    def test_added_block_with_used_id_gets_fresh_id(self, session):
        """Test a declared id:: already on the page is not reused."""
        delta = session.add_block("Notes", "copy id:: block-1")

        assert delta["block"].id != "block-1"
        assert session.get_page("Notes").find_block("block-1").content == "Intro to [[Topic]]"


class TestWriteBack:
    """Tests for saving and creating pages on disk."""

    def test_save_page_to_source_file(self, graph_dir):
        """Test an edited page is written to the file it was read from."""
        graph = GraphPaths(graph_dir)
        session = GraphSession.from_result(parse_directory(graph), graph=graph)
        session.update_block_at_path("Lonely Page", [0], "Linked to [[Project X]]")

        path = session.save_page("Lonely Page")

        assert path == graph_dir / "pages" / "lonely-page.md"
        text = path.read_text(encoding="utf-8")
        assert text.startswith("# Lonely Page\n\n- Linked to [[Project X]]\n")
        assert not list(path.parent.glob(".*.tmp.*"))

    def test_save_page_without_graph(self, session):
        """Test pages never read from disk need a graph to be saved."""
        with pytest.raises(ValueError, match="No graph directory"):
            session.save_page("Notes")

    def test_create_page(self, graph_dir):
        """Test a new page file is written with one empty block and loaded."""
        graph = GraphPaths(graph_dir)
        session = GraphSession.from_result(parse_directory(graph), graph=graph)

        page = session.create_page("Fresh Ideas")

        path = graph_dir / "pages" / "fresh-ideas.md"
        assert path.read_text(encoding="utf-8") == "# Fresh Ideas\n\n-\n"
        assert session.get_page("fresh ideas") is page
        assert [b.id for b in page.blocks] == ["block-1"]
        assert session.page_path("Fresh Ideas") == path

    def test_create_page_loads_existing_file(self, graph_dir):
        """Test an existing file is loaded, not overwritten."""
        graph = GraphPaths(graph_dir)
        session = GraphSession(graph=graph)
        before = (graph_dir / "pages" / "project-x.md").read_text(encoding="utf-8")

        page = session.create_page("Project X")

        assert page.title == "Project X"
        assert (graph_dir / "pages" / "project-x.md").read_text(encoding="utf-8") == before
        assert set(session.backlinks.get_forward_links("Project X")) == {"Design Notes"}

    def test_create_page_returns_loaded_page(self, session):
        """Test a loaded page is returned without touching the disk."""
        assert session.create_page("notes") is session.get_page("Notes")

    def test_create_journal_page(self, graph_dir):
        """Test a journal page is created from a date title."""
        graph = GraphPaths(graph_dir)
        session = GraphSession(graph=graph)

        page = session.create_journal_page("2025-02-03")

        assert page.title == "Feb 3rd, 2025"
        path = graph_dir / "journals" / "2025_02_03.md"
        assert path.read_text(encoding="utf-8") == "# Feb 3rd, 2025\n\n-\n"
        assert session.create_journal_page(date(2025, 2, 3)) is page

    def test_create_journal_page_invalid_title(self, graph_dir):
        """Test a title that is not a date is rejected."""
        session = GraphSession(graph=GraphPaths(graph_dir))
        with pytest.raises(ValueError, match="not a valid date"):
            session.create_journal_page("someday")

    def test_unsaved_date_page_goes_to_journals(self, graph_dir):
        """Test a page added in memory with a date title is stored as a journal."""
        graph = GraphPaths(graph_dir)
        session = GraphSession(graph=graph)
        session.add_page(parse_document("# Mar 1st, 2025\n- planning").page)

        path = session.save_page("Mar 1st, 2025")

        assert path == graph_dir / "journals" / "2025_03_01.md"
        assert "- planning" in path.read_text(encoding="utf-8")

    def test_create_without_graph(self, session):
        """Test creating pages needs a graph directory."""
        with pytest.raises(ValueError, match="No graph directory"):
            session.create_page("Anything")
