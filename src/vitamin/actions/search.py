"""Character finds on the current line and prompted regex searches."""

from __future__ import annotations

import re
from typing import Callable, Optional, Tuple

from vitamin.errors import ActionError
from vitamin.host import View

from .motions import line_span


def _needle(argument: object) -> str:
    if not isinstance(argument, str) or len(argument) != 1:
        raise ActionError("find needs a single character")
    return re.escape(argument)


def _find_forward(view: View, argument: object, offset: int) -> int:
    _, end = line_span(view)
    start = view.current_pos + offset
    found = view.search(_needle(argument), start, end) if start <= end else None
    if found is None:
        raise ActionError(f"'{argument}' not found")
    return found[0]


def _find_backward(view: View, argument: object, offset: int) -> int:
    start, _ = line_span(view)
    if view.current_pos - offset <= start:
        raise ActionError(f"'{argument}' not found")
    found = view.search(_needle(argument), view.current_pos - offset, start)
    if found is None:
        raise ActionError(f"'{argument}' not found")
    return found[0]


def find_char(view: View, argument: object = None) -> None:
    view.goto_pos(_find_forward(view, argument, 1))


def till_char(view: View, argument: object = None) -> None:
    """Stop before the character; an adjacent match is skipped so counts advance."""

    view.goto_pos(_find_forward(view, argument, 2) - 1)


def find_char_back(view: View, argument: object = None) -> None:
    view.goto_pos(_find_backward(view, argument, 0))


def till_char_back(view: View, argument: object = None) -> None:
    view.goto_pos(_find_backward(view, argument, 1) + 1)


def _fresh(view: View) -> int:
    return 1 if view.anchor == view.current_pos else 0


def extend_find_char(view: View, argument: object = None) -> None:
    view.set_current_pos(_find_forward(view, argument, _fresh(view)) + 1)


def extend_till_char(view: View, argument: object = None) -> None:
    view.set_current_pos(_find_forward(view, argument, 1))


def extend_find_char_back(view: View, argument: object = None) -> None:
    view.set_current_pos(_find_backward(view, argument, 0))


def extend_till_char_back(view: View, argument: object = None) -> None:
    view.set_current_pos(_find_backward(view, argument, 1) + 1)


def _locate(view: View, pattern: str, forward: bool) -> Optional[Tuple[int, int]]:
    pos = view.current_pos
    if forward:
        return view.search(pattern, pos + 1, view.length) or view.search(pattern, 0, pos)
    return view.search(pattern, pos, 0) or view.search(pattern, view.length, pos)


def _searcher(forward: bool, extend: bool) -> Callable:
    def search(view: View, argument: object = None) -> None:
        if not argument:
            return
        pattern = str(argument)
        try:
            found = _locate(view, pattern, forward)
        except re.error as exc:
            raise ActionError(f"bad pattern: {exc}") from exc
        if found is None:
            raise ActionError(f"pattern not found: {pattern}")
        if extend:
            view.set_current_pos(found[0])
        else:
            view.goto_pos(found[0])

    return search


search_forward = _searcher(forward=True, extend=False)
search_backward = _searcher(forward=False, extend=False)
extend_search_forward = _searcher(forward=True, extend=True)
extend_search_backward = _searcher(forward=False, extend=True)


__all__ = [
    "extend_find_char",
    "extend_find_char_back",
    "extend_search_backward",
    "extend_search_forward",
    "extend_till_char",
    "extend_till_char_back",
    "find_char",
    "find_char_back",
    "search_backward",
    "search_forward",
    "till_char",
    "till_char_back",
]
