"""Unit tests for outline rendering."""

from seqgraph.outline.block import Block, Page
from seqgraph.outline.render import render_blocks, render_page
from seqgraph.outline.tree import parse_document


class TestRenderPage:
    """Tests for render_page."""

    def test_round_trip_well_formed(self, sample_outline):
        """Test a well-formed document renders back to its source."""
        page = parse_document(sample_outline).page
        assert render_page(page) == sample_outline

    def test_continuation_lines(self):
        """Test continuation lines are indented under their bullet."""
        source = "- Book notes\n  author:: Someone\n  - child\n"
        assert render_page(parse_document(source).page) == source

    def test_lenient_depth_survives(self):
        """Test raw indentation depth is written back unchanged."""
        source = "- A\n      - deep\n"
        assert render_page(parse_document(source).page) == source

    def test_empty_page(self):
        """Test an empty page renders to an empty string."""
        assert render_page(Page()) == ""

    def test_title_only(self):
        """Test a title without blocks."""
        assert render_page(Page(title="Alone")) == "# Alone\n"


class TestRenderBlocks:
    """Tests for render_blocks."""

    def test_empty_bullet(self):
        """Test an empty block renders as a bare dash."""
        assert render_blocks([Block.from_content("")]) == ["-"]

    def test_edited_block(self, sample_page):
        """Test edits show up in the rendered output."""
        sample_page.blocks[1].set_content("TODO B edited")
        assert "- TODO B edited" in render_blocks(sample_page.blocks)
