"""Page title to filesystem name conversion."""

import re

_UNSAFE_CHARACTERS = re.compile(r'[/\\:*?"<>|]')


def title_to_filename(title: str) -> str:
    """Convert a page title to a filesystem-safe markdown filename.

    Lowercases the title, turns spaces and path/reserved characters into
    hyphens and appends ``.md``.

    Examples:
        >>> title_to_filename("Project X: Design/Review")
        'project-x--design-review.md'
    """
    filename = title.strip().lower().replace(" ", "-")
    filename = _UNSAFE_CHARACTERS.sub("-", filename)
    return f"{filename}.md"
