"""Buffer-changing actions: cut/copy/paste, replace, join, case and indent."""

from __future__ import annotations

import re
from typing import Optional, Tuple

from vitamin.errors import ActionError
from vitamin.host import View
from vitamin.registers import LINE, Register

from .motions import (
    current_line,
    first_nonblank,
    is_bare_line_selection,
    is_tail_selection,
    line_span,
    selected_lines,
)

INDENT = "\t"
_DEDENT = re.compile(r"^(\t| {1,4})")


def _capture(view: View) -> Tuple[str, bool]:
    """Selected text, always ending in a line break for linewise selections.

    A document-ending line selection is rotated so the break that preceded it
    becomes a trailing one.
    """

    low, high = sorted((view.anchor, view.current_pos))
    text = view.get_sel_text()
    if is_tail_selection(view, low, high) and text.startswith(view.eol):
        return text[len(view.eol) :] + view.eol, True
    if is_bare_line_selection(view, low, high):
        return text + view.eol, False
    return text, False


def cut_selection(view: View, argument: object = None) -> Optional[str]:
    """Delete the selection and return it for the register."""

    if view.anchor == view.current_pos:
        return None
    text, _ = _capture(view)
    view.clear()
    return text


def copy_selection(view: View, argument: object = None) -> Optional[str]:
    if view.anchor == view.current_pos:
        return None
    text, tail = _capture(view)
    low = min(view.anchor, view.current_pos)
    view.goto_pos(low + len(view.eol) if tail else low)
    return text


def change_selection(view: View, argument: object = None) -> Optional[str]:
    """Cut like ``d``, leaving an empty line behind when whole lines went."""

    if view.anchor == view.current_pos:
        return None
    low, high = sorted((view.anchor, view.current_pos))
    whole = is_bare_line_selection(view, low, high)
    text, tail = _capture(view)
    view.clear()
    if text.endswith(view.eol) and not whole:
        pos = view.current_pos
        view.add_text(view.eol)
        if not tail:
            view.goto_pos(pos)
    return text


def _paste_payload(view: View, argument: object) -> Tuple[str, str, int]:
    register, times = argument if isinstance(argument, tuple) else (argument, 1)
    if not isinstance(register, Register):
        raise ActionError("nothing to paste")
    text, mode = register.value(view.eol)
    return text, mode, max(1, times)


def paste_after(view: View, argument: object = None) -> None:
    text, mode, times = _paste_payload(view, argument)
    if not text:
        return
    if mode == LINE:
        line = current_line(view)
        end = view.line_end_position(line)
        view.goto_pos(end)
        body = text[: -len(view.eol)] if text.endswith(view.eol) else text
        view.add_text((view.eol + body) * times)
        view.goto_pos(first_nonblank(view, line + 1))
        return
    _, end = line_span(view)
    if view.current_pos < end:
        view.goto_pos(view.current_pos + 1)
    view.add_text(text * times)
    view.goto_pos(view.current_pos - 1)


def paste_before(view: View, argument: object = None) -> None:
    text, mode, times = _paste_payload(view, argument)
    if not text:
        return
    if mode == LINE:
        line = current_line(view)
        start = view.position_from_line(line)
        view.goto_pos(start)
        view.add_text(text * times)
        view.goto_pos(first_nonblank(view, line))
        return
    pos = view.current_pos
    view.add_text(text * times)
    view.goto_pos(pos + len(text) * times - 1)


def replace_chars(view: View, argument: object = None) -> None:
    """``r``: overwrite ``count`` characters with the argument character."""

    char, times = argument if isinstance(argument, tuple) else (argument, 1)
    if not isinstance(char, str) or len(char) != 1:
        raise ActionError("replace needs a single character")
    pos = view.current_pos
    _, end = line_span(view)
    if pos + times > end:
        raise ActionError("too few characters to replace")
    view.set_selection(pos, pos + times)
    view.add_text(char * times)
    view.goto_pos(pos + times - 1)


def join_line(view: View, argument: object = None) -> None:
    line = current_line(view)
    if line + 1 >= view.line_count:
        return
    end = view.line_end_position(line)
    next_start, next_end = line_span(view, line + 1)
    following = view.text_range(next_start, next_end)
    stripped = following.lstrip(" \t")
    current = view.text_range(view.position_from_line(line), end)
    glue = "" if not stripped or not current or current.endswith((" ", "\t")) else " "
    view.set_selection(end, next_start + len(following) - len(stripped))
    view.add_text(glue)
    view.goto_pos(end)


def toggle_case(view: View, argument: object = None) -> None:
    pos = view.current_pos
    _, end = line_span(view)
    if pos >= end:
        return
    char = view.text_range(pos, pos + 1)
    swapped = char.swapcase()
    if swapped != char:
        view.set_selection(pos, pos + 1)
        view.add_text(swapped)
    view.goto_pos(min(pos + 1, end))


def insert_text(view: View, argument: object = None) -> None:
    if isinstance(argument, str) and argument:
        view.add_text(argument)


def append_position(view: View, argument: object = None) -> None:
    _, end = line_span(view)
    if view.current_pos < end:
        view.goto_pos(view.current_pos + 1)


def open_line_below(view: View, argument: object = None) -> None:
    _, end = line_span(view)
    view.goto_pos(end)
    view.add_text(view.eol)


def open_line_above(view: View, argument: object = None) -> None:
    start, _ = line_span(view)
    view.goto_pos(start)
    view.add_text(view.eol)
    view.goto_pos(start)


def _rewrite_lines(view: View, transform) -> None:
    if view.anchor == view.current_pos:
        first = last = current_line(view)
    else:
        first, last = selected_lines(view)
    start = view.position_from_line(first)
    end = view.line_end_position(last)
    lines = view.text_range(start, end).split(view.eol)
    view.set_selection(start, end)
    view.add_text(view.eol.join(transform(line) for line in lines))
    view.goto_pos(first_nonblank(view, first))


def indent_lines(view: View, argument: object = None) -> None:
    _rewrite_lines(view, lambda line: INDENT + line if line else line)


def dedent_lines(view: View, argument: object = None) -> None:
    _rewrite_lines(view, lambda line: _DEDENT.sub("", line, count=1))


def undo(view: View, argument: object = None) -> None:
    view.undo()


def redo(view: View, argument: object = None) -> None:
    view.redo()


__all__ = [
    "INDENT",
    "append_position",
    "change_selection",
    "copy_selection",
    "cut_selection",
    "dedent_lines",
    "indent_lines",
    "insert_text",
    "join_line",
    "open_line_above",
    "open_line_below",
    "paste_after",
    "paste_before",
    "redo",
    "replace_chars",
    "toggle_case",
    "undo",
]
