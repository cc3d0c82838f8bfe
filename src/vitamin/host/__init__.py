"""Host-side surfaces: protocols plus an in-memory reference view."""

from .history import EditHistory, Snapshot
from .text_view import EOL_MODES, TextView
from .view import KeyHandler, KeySource, Prompt, View

__all__ = [
    "EOL_MODES",
    "EditHistory",
    "KeyHandler",
    "KeySource",
    "Prompt",
    "Snapshot",
    "TextView",
    "View",
]
