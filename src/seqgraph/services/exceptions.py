"""Custom exceptions for seqgraph services."""

from pathlib import Path
from typing import Union


class DocumentError(Exception):
    """Raised (or collected) when a document of a batch cannot be read.

    Batch operations collect these next to their partial results instead of
    raising them, so one unreadable file never aborts the rest of a graph.

    Attributes:
        path: Path or name of the document
        message: Human-readable error message
    """

    def __init__(self, path: Union[str, Path], message: str):
        """Initialize DocumentError.

        Args:
            path: Path or name of the document
            message: Human-readable error message
        """
        self.path = str(path)
        self.message = message
        super().__init__(f"{message}: {path}")


class PageNotFoundError(Exception):
    """Raised when an editing operation names a page that is not loaded.

    Attributes:
        page_name: The requested page name
    """

    def __init__(self, page_name: str):
        self.page_name = page_name
        super().__init__(f"Page not found: {page_name}")


class BlockNotFoundError(Exception):
    """Raised when an editing operation names a block id absent from its page.

    Attributes:
        page_name: Page that was searched
        block_id: The requested block id
    """

    def __init__(self, page_name: str, block_id: str):
        self.page_name = page_name
        self.block_id = block_id
        super().__init__(f"Block '{block_id}' not found in page '{page_name}'")


class CacheError(Exception):
    """Raised when the page cache file cannot be read or written."""
