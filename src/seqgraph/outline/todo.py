"""Task state, checkbox and priority extraction for outline blocks.

A block may start with a task keyword (``TODO``, ``DONE``...) optionally
followed by a ``[#A]`` priority, or with a markdown checkbox (``[ ]``,
``[x]``, ``[-]``). Only one of the two is ever recognized per line: the
checkbox is checked only when no task keyword matched.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from seqgraph.outline.block import Block


class TodoState(Enum):
    """Task keyword recognized at the start of a block."""

    NONE = ""
    TODO = "TODO"
    DOING = "DOING"
    DONE = "DONE"
    WAITING = "WAITING"
    CANCELED = "CANCELED"
    LATER = "LATER"
    NOW = "NOW"


class CheckboxState(Enum):
    """Markdown checkbox recognized at the start of a block."""

    NONE = ""
    UNCHECKED = "[ ]"
    CHECKED = "[x]"
    PARTIAL = "[-]"


# Aliases map onto the canonical state
_KEYWORDS = {
    "TODO": TodoState.TODO,
    "DOING": TodoState.DOING,
    "DONE": TodoState.DONE,
    "WAITING": TodoState.WAITING,
    "WAIT": TodoState.WAITING,
    "CANCELED": TodoState.CANCELED,
    "CANCELLED": TodoState.CANCELED,
    "LATER": TodoState.LATER,
    "NOW": TodoState.NOW,
}

_CHECKBOXES = {
    " ": CheckboxState.UNCHECKED,
    "x": CheckboxState.CHECKED,
    "X": CheckboxState.CHECKED,
    "-": CheckboxState.PARTIAL,
}

# Longest keywords first so WAITING is never read as WAIT
_KEYWORD_ALTERNATION = "|".join(sorted(_KEYWORDS, key=len, reverse=True))

TODO_PATTERN = re.compile(
    rf"^({_KEYWORD_ALTERNATION})\s+(?:\[#([A-Z])\]\s+)?"
)
CHECKBOX_PATTERN = re.compile(r"^\[([ xX\-])\]\s+")


@dataclass(frozen=True)
class TodoInfo:
    """Task metadata of a line or block.

    Attributes:
        state: Task keyword state (TodoState.NONE if absent)
        checkbox: Checkbox state (CheckboxState.NONE if absent)
        priority: Priority letter from ``[#X]`` or None
    """

    state: TodoState = TodoState.NONE
    checkbox: CheckboxState = CheckboxState.NONE
    priority: Optional[str] = None

    @property
    def is_task(self) -> bool:
        """True when either a task keyword or a checkbox is present."""
        return self.state is not TodoState.NONE or self.checkbox is not CheckboxState.NONE


def parse_todo_info(content: str) -> TodoInfo:
    """Recognize a task keyword or checkbox at the start of content.

    Args:
        content: Block text with the bullet already removed

    Returns:
        TodoInfo describing the prefix (empty TodoInfo if there is none)

    Examples:
        >>> parse_todo_info("TODO [#A] Write tests")
        TodoInfo(state=<TodoState.TODO: 'TODO'>, checkbox=<CheckboxState.NONE: ''>, priority='A')
        >>> parse_todo_info("[x] Ship it").checkbox
        <CheckboxState.CHECKED: '[x]'>
    """
    trimmed = content.strip()

    match = TODO_PATTERN.match(trimmed)
    if match:
        return TodoInfo(state=_KEYWORDS[match.group(1)], priority=match.group(2))

    match = CHECKBOX_PATTERN.match(trimmed)
    if match:
        return TodoInfo(checkbox=_CHECKBOXES[match.group(1)])

    return TodoInfo()


def remove_todo_prefix(content: str) -> str:
    """Strip a leading task keyword (with priority) or checkbox.

    Args:
        content: Block content

    Returns:
        Trimmed content without the task/checkbox prefix
    """
    trimmed = content.strip()

    match = TODO_PATTERN.match(trimmed)
    if match:
        return trimmed[match.end():]

    match = CHECKBOX_PATTERN.match(trimmed)
    if match:
        return trimmed[match.end():]

    return trimmed


def get_todo_blocks(blocks: list["Block"]) -> list["Block"]:
    """Collect every block in the forest carrying a task keyword or checkbox.

    Blocks are returned in pre-order (parents before their children).
    """
    todo_blocks = []
    for block in blocks:
        if block.todo.is_task:
            todo_blocks.append(block)
        todo_blocks.extend(get_todo_blocks(block.children))
    return todo_blocks


def filter_blocks_by_todo_state(blocks: list["Block"], state: TodoState) -> list["Block"]:
    """Collect every block in the forest whose task state equals ``state``."""
    filtered = []
    for block in blocks:
        if block.todo.state is state:
            filtered.append(block)
        filtered.extend(filter_blocks_by_todo_state(block.children, state))
    return filtered
