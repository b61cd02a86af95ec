"""Identifier generation utilities for seqgraph."""

import uuid


def generate_random_uuid() -> str:
    """
    Generate random UUID v4.

    Used for new blocks that don't have existing IDs.

    Returns:
        UUID string in standard format

    Example:
        >>> generate_random_uuid()
        "f47ac10b-58cc-4372-a567-0e02b2c3d479"
    """
    return str(uuid.uuid4())


def sequential_block_id(counter: int) -> str:
    """
    Identifier given by the tree builder to the N-th bullet of a document.

    Example:
        >>> sequential_block_id(3)
        "block-3"
    """
    return f"block-{counter}"
