"""In-memory host view used by the demo app and the test-suite."""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import Dict, List, Optional, Tuple

from .history import EditHistory, Snapshot

EOL_MODES = ("\n", "\r\n", "\r")
_ANY_EOL = re.compile(r"\r\n|\n|\r")
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {close: open_ for open_, close in _OPENERS.items()}


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class TextView:
    """A caret/anchor text surface with the subset of Scintilla-like calls
    the default definition tables rely on."""

    def __init__(
        self,
        text: str = "",
        *,
        eol: str = "\n",
        lines_on_screen: int = 24,
        name: str = "untitled",
    ) -> None:
        if eol not in EOL_MODES:
            raise ValueError(f"Unsupported line ending {eol!r}")
        self.name = name
        self._eol = eol
        self._text = _ANY_EOL.sub(eol, text)
        self._starts: Optional[List[int]] = None
        self.current_pos = 0
        self.anchor = 0
        self.first_visible_line = 0
        self.lines_on_screen = lines_on_screen
        self.marks: Dict[str, int] = {}
        self.history = EditHistory()

    def __repr__(self) -> str:
        return (
            f"TextView(name={self.name!r}, length={self.length}, "
            f"anchor={self.anchor}, caret={self.current_pos})"
        )

    @property
    def text(self) -> str:
        return self._text

    @property
    def length(self) -> int:
        return len(self._text)

    @property
    def eol(self) -> str:
        return self._eol

    @property
    def line_count(self) -> int:
        return len(self._line_starts())

    @property
    def selection_empty(self) -> bool:
        return self.anchor == self.current_pos

    def convert_eols(self, eol: str) -> None:
        if eol not in EOL_MODES:
            raise ValueError(f"Unsupported line ending {eol!r}")
        caret_line = self.line_from_position(self.current_pos)
        column = self.current_pos - self.position_from_line(caret_line)
        self._eol = eol
        self._set_text(_ANY_EOL.sub(eol, self._text))
        self.goto_pos(self.position_from_line(caret_line) + column)

    def _line_starts(self) -> List[int]:
        if self._starts is None:
            starts = [0]
            step = len(self._eol)
            index = self._text.find(self._eol)
            while index != -1:
                starts.append(index + step)
                index = self._text.find(self._eol, index + step)
            self._starts = starts
        return self._starts

    def line_from_position(self, pos: int) -> int:
        pos = _clamp(pos, 0, self.length)
        return bisect_right(self._line_starts(), pos) - 1

    def position_from_line(self, line: int) -> int:
        starts = self._line_starts()
        if line < 0:
            return 0
        if line >= len(starts):
            return self.length
        return starts[line]

    def line_end_position(self, line: int) -> int:
        starts = self._line_starts()
        line = _clamp(line, 0, len(starts) - 1)
        if line == len(starts) - 1:
            return self.length
        return starts[line + 1] - len(self._eol)

    def get_line(self, line: int) -> str:
        return self._text[self.position_from_line(line) : self.line_end_position(line)]

    def text_range(self, start: int, end: int) -> str:
        low, high = sorted((start, end))
        return self._text[_clamp(low, 0, self.length) : _clamp(high, 0, self.length)]

    def get_sel_text(self) -> str:
        return self.text_range(self.anchor, self.current_pos)

    def goto_pos(self, pos: int) -> None:
        pos = _clamp(pos, 0, self.length)
        self.current_pos = self.anchor = pos
        self._scroll_to_caret()

    def set_current_pos(self, pos: int) -> None:
        self.current_pos = _clamp(pos, 0, self.length)
        self._scroll_to_caret()

    def set_selection(self, anchor: int, caret: int) -> None:
        self.anchor = _clamp(anchor, 0, self.length)
        self.set_current_pos(caret)

    def clear(self) -> None:
        if self.selection_empty:
            return
        low, high = sorted((self.anchor, self.current_pos))
        self._replace(low, high, "")

    def add_text(self, text: str) -> None:
        low, high = sorted((self.anchor, self.current_pos))
        self._replace(low, high, _ANY_EOL.sub(self._eol, text))

    def search(self, pattern: str, start: int, end: int) -> Optional[Tuple[int, int]]:
        compiled = re.compile(pattern, re.MULTILINE)
        start = _clamp(start, 0, self.length)
        end = _clamp(end, 0, self.length)
        if end >= start:
            match = compiled.search(self._text, start, end)
            return match.span() if match else None
        last = None
        for match in compiled.finditer(self._text, end, start):
            last = match
        return last.span() if last else None

    def brace_match(self, pos: int) -> int:
        if not 0 <= pos < self.length:
            return -1
        char = self._text[pos]
        if char in _OPENERS:
            target, step = _OPENERS[char], 1
        elif char in _CLOSERS:
            target, step = _CLOSERS[char], -1
        else:
            return -1
        depth = 0
        index = pos
        while 0 <= index < self.length:
            current = self._text[index]
            if current == char:
                depth += 1
            elif current == target:
                depth -= 1
                if depth == 0:
                    return index
            index += step
        return -1

    def scroll_lines(self, delta: int) -> None:
        self.first_visible_line = _clamp(
            self.first_visible_line + delta, 0, self.line_count - 1
        )

    def undo(self) -> None:
        snapshot = self.history.undo(Snapshot(self._text, self.current_pos))
        if snapshot is not None:
            self._restore(snapshot)

    def redo(self) -> None:
        snapshot = self.history.redo(Snapshot(self._text, self.current_pos))
        if snapshot is not None:
            self._restore(snapshot)

    def _restore(self, snapshot: Snapshot) -> None:
        self._set_text(snapshot.text)
        self.goto_pos(snapshot.caret)

    def _set_text(self, text: str) -> None:
        self._text = text
        self._starts = None

    def _replace(self, low: int, high: int, text: str) -> None:
        self.history.record(Snapshot(self._text, self.current_pos))
        self._set_text(self._text[:low] + text + self._text[high:])
        delta = len(text) - (high - low)
        for name, pos in list(self.marks.items()):
            if pos >= high:
                self.marks[name] = pos + delta
            elif pos > low:
                self.marks[name] = low
        self.goto_pos(low + len(text))

    def _scroll_to_caret(self) -> None:
        line = self.line_from_position(self.current_pos)
        if line < self.first_visible_line:
            self.first_visible_line = line
        elif line >= self.first_visible_line + self.lines_on_screen:
            self.first_visible_line = line - self.lines_on_screen + 1


__all__ = ["EOL_MODES", "TextView"]
