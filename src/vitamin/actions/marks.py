"""Character marks kept on the host view."""

from __future__ import annotations

from vitamin.errors import ActionError
from vitamin.host import View

from .motions import current_line, first_nonblank, select_lines


def _mark_name(argument: object) -> str:
    if not isinstance(argument, str) or len(argument) != 1 or argument.isspace():
        raise ActionError(f"invalid mark name {argument!r}")
    return argument


def _mark(view: View, argument: object) -> int:
    name = _mark_name(argument)
    try:
        pos = view.marks[name]
    except KeyError:
        raise ActionError(f"mark '{name}' is not set") from None
    return max(0, min(pos, view.length))


def set_mark(view: View, argument: object = None) -> None:
    view.marks[_mark_name(argument)] = view.current_pos


def jump_to_mark(view: View, argument: object = None) -> None:
    view.goto_pos(_mark(view, argument))


def jump_to_mark_line(view: View, argument: object = None) -> None:
    line = view.line_from_position(_mark(view, argument))
    view.goto_pos(first_nonblank(view, line))


def extend_to_mark(view: View, argument: object = None) -> None:
    view.set_current_pos(_mark(view, argument))


def select_to_mark_line(view: View, argument: object = None) -> None:
    target = view.line_from_position(_mark(view, argument))
    select_lines(view, current_line(view), target)


__all__ = [
    "extend_to_mark",
    "jump_to_mark",
    "jump_to_mark_line",
    "select_to_mark_line",
    "set_mark",
]
