"""Shared test fixtures for all test modules."""

import pytest

from seqgraph.outline.tree import parse_document


# Well-formed outline used across tree, path and editor tests:
#
#   A          (0,)
#     A1       (0, 0)
#     A2       (0, 1)
#       A21    (0, 1, 0)
#   B          (1,)
#   C          (2,)
#     C1       (2, 0)
SAMPLE_OUTLINE = """# Sample

- A
  - A1
  - A2
    - A21
- B
- C
  - C1
"""


@pytest.fixture
def sample_outline():
    """Raw text of the sample outline."""
    return SAMPLE_OUTLINE


@pytest.fixture
def sample_page(sample_outline):
    """Parsed page of the sample outline."""
    return parse_document(sample_outline, name="sample").page


@pytest.fixture
def graph_dir(tmp_path):
    """
    Small graph on disk with pages/ and journals/.

    Project X is referenced from the journal and from Design Notes;
    Lonely Page references nothing and is referenced by nothing.
    """
    root = tmp_path / "graph"
    pages = root / "pages"
    journals = root / "journals"
    pages.mkdir(parents=True)
    journals.mkdir()

    (pages / "project-x.md").write_text(
        "# Project X\n"
        "- Goals\n"
        "  - TODO [#A] Write the parser\n"
        "  - DONE Pick a name\n"
        "- Related to [[Design Notes]]\n",
        encoding="utf-8",
    )
    (pages / "design-notes.md").write_text(
        "# Design Notes\n"
        "- The tree builder for [[Project X]] uses a stack\n"
        "- DOING Review [[Project X]] indentation rules\n",
        encoding="utf-8",
    )
    (pages / "lonely-page.md").write_text(
        "# Lonely Page\n"
        "- Nothing links here\n"
        "- [ ] Find it a friend\n",
        encoding="utf-8",
    )
    (journals / "2025_01_15.md").write_text(
        "- Met about [[project x]]\n"
        "  - LATER Send notes\n",
        encoding="utf-8",
    )
    return root
