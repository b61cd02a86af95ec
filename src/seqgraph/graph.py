"""Graph directory layout.

A graph is a directory of outline documents. Pages live in ``pages/`` and
journals in ``journals/``; markdown files directly in the graph root are
treated as pages too.
"""

from datetime import date
from pathlib import Path

from seqgraph.utils.dates import journal_filename
from seqgraph.utils.titles import title_to_filename


class GraphPaths:
    """Utility class for graph path operations.

    Attributes:
        graph_path: Root path to the graph directory
    """

    def __init__(self, graph_path: Path):
        """Initialize with graph root path.

        Args:
            graph_path: Path to graph directory

        Raises:
            ValueError: If graph_path doesn't exist or isn't a directory
        """
        if not graph_path.exists():
            raise ValueError(f"Graph path does not exist: {graph_path}")
        if not graph_path.is_dir():
            raise ValueError(f"Graph path is not a directory: {graph_path}")

        self.graph_path = graph_path

    @property
    def journals_dir(self) -> Path:
        """Path to journals/ directory."""
        return self.graph_path / "journals"

    @property
    def pages_dir(self) -> Path:
        """Path to pages/ directory."""
        return self.graph_path / "pages"

    def get_journal_path(self, day: date) -> Path:
        """Get path to the journal file of a date (journals/YYYY_MM_DD.md)."""
        return self.journals_dir / journal_filename(day)

    def get_page_path(self, title: str) -> Path:
        """Get path to the page file of a title (pages/<safe-name>.md)."""
        return self.pages_dir / title_to_filename(title)

    def list_journals(self) -> list[Path]:
        """List all journal files in chronological order."""
        if not self.journals_dir.exists():
            return []
        return sorted(self.journals_dir.glob("*.md"))

    def list_pages(self) -> list[Path]:
        """List page files (pages/ and the graph root) in alphabetical order."""
        page_files = list(self.graph_path.glob("*.md"))
        if self.pages_dir.exists():
            page_files.extend(self.pages_dir.glob("*.md"))
        return sorted(page_files)

    def list_documents(self) -> list[Path]:
        """List every document of the graph: pages first, then journals."""
        return self.list_pages() + self.list_journals()
