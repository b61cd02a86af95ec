"""Outline markdown renderer.

Renders a Page back to the dialect it was parsed from: an optional
``# title`` header followed by bullets indented two spaces per depth level.
Continuation lines are written two spaces deeper than their bullet.
"""

from seqgraph.outline.block import Block, Page
from seqgraph.outline.tree import INDENT_WIDTH


def render_page(page: Page) -> str:
    """Render a page to outline markdown.

    Args:
        page: Page to render

    Returns:
        Markdown text ending with a newline (empty string for an empty page)
    """
    lines = []
    if page.title:
        lines.append(f"# {page.title}")
        if page.blocks:
            lines.append("")

    lines.extend(render_blocks(page.blocks))

    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def render_blocks(blocks: list[Block]) -> list[str]:
    """Render blocks and their descendants to markdown lines.

    Each block is indented by its own ``depth`` so lenient source
    indentation survives a parse/render round trip.
    """
    lines = []

    for block in blocks:
        indent = " " * (INDENT_WIDTH * block.depth)
        content_lines = block.content.split("\n")

        first = content_lines[0]
        lines.append(f"{indent}- {first}" if first else f"{indent}-")

        for line in content_lines[1:]:
            lines.append(f"{indent}  {line}" if line else "")

        lines.extend(render_blocks(block.children))

    return lines
