"""Protocols describing what the grammar needs from its host editor."""

from __future__ import annotations

from typing import Callable, MutableMapping, Optional, Protocol, Tuple

KeyHandler = Callable[[str], bool]


class View(Protocol):
    """Editing surface passed as the first argument to every action.

    Positions are character offsets. The selection runs from ``anchor`` to
    ``current_pos``; moving with ``goto_pos`` collapses it while
    ``set_current_pos`` extends it.
    """

    current_pos: int
    anchor: int
    first_visible_line: int
    lines_on_screen: int
    marks: MutableMapping[str, int]

    @property
    def length(self) -> int: ...

    @property
    def eol(self) -> str: ...

    @property
    def line_count(self) -> int: ...

    def line_from_position(self, pos: int) -> int: ...

    def position_from_line(self, line: int) -> int: ...

    def line_end_position(self, line: int) -> int: ...

    def text_range(self, start: int, end: int) -> str: ...

    def get_sel_text(self) -> str: ...

    def goto_pos(self, pos: int) -> None: ...

    def set_current_pos(self, pos: int) -> None: ...

    def set_selection(self, anchor: int, caret: int) -> None: ...

    def clear(self) -> None:
        """Delete the selected text."""
        ...

    def add_text(self, text: str) -> None:
        """Replace the selection (or insert at the caret) with ``text``."""
        ...

    def search(self, pattern: str, start: int, end: int) -> Optional[Tuple[int, int]]:
        """Regex search inside ``[start, end)``; backwards when ``end < start``."""
        ...

    def brace_match(self, pos: int) -> int: ...

    def scroll_lines(self, delta: int) -> None: ...

    def undo(self) -> None: ...

    def redo(self) -> None: ...


class Prompt(Protocol):
    """Single-line input owned by the host UI."""

    @property
    def active(self) -> bool: ...

    def run(self, label: str, on_submit: Callable[[str], None]) -> None: ...


class KeySource(Protocol):
    """Host key-press event surface.

    Handlers return ``True`` to swallow the key and ``False`` to let the host
    apply its default handling.
    """

    def connect(self, handler: KeyHandler) -> None: ...

    def disconnect(self, handler: KeyHandler) -> None: ...


__all__ = ["KeyHandler", "KeySource", "Prompt", "View"]
