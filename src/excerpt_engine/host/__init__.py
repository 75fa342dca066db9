"""Host boundary: collaborator protocol, render functions, commands, controller."""

from .commands import (
    CLEAR_FILE_SELECTIONS,
    COLLECT_AND_COPY,
    SELECT_RANGE,
    UNSELECT_ALL_IN_FILE,
    UNSELECT_RANGE,
    UNSELECT_SPECIFIC_FILE,
    CommandContext,
    CommandResult,
    available_commands,
    run_command,
)
from .controller import ControllerBus, ExcerptController
from .protocols import HostCollaborator, SelectionSpan
from .render import (
    HighlightInstruction,
    TreeEntry,
    relative_label,
    render_highlights,
    render_tree,
)

__all__ = [
    "CLEAR_FILE_SELECTIONS",
    "COLLECT_AND_COPY",
    "SELECT_RANGE",
    "UNSELECT_ALL_IN_FILE",
    "UNSELECT_RANGE",
    "UNSELECT_SPECIFIC_FILE",
    "CommandContext",
    "CommandResult",
    "ControllerBus",
    "ExcerptController",
    "HighlightInstruction",
    "HostCollaborator",
    "SelectionSpan",
    "TreeEntry",
    "available_commands",
    "relative_label",
    "render_highlights",
    "render_tree",
    "run_command",
]
