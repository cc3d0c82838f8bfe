"""Caret motions and their selection-extending counterparts.

Every motion is built from a *target* function returning the offset it would
move to. ``move_*`` collapses the selection onto that offset while
``extend_*`` only moves the caret so an operator can consume the range.
"""

from __future__ import annotations

import weakref
from typing import Callable, Optional, Tuple

from vitamin.host import View

Target = Callable[[View, object], int]

# views whose current selection is every line of a document lacking a final break
_BARE_LINES: "weakref.WeakKeyDictionary[View, Tuple[int, int]]" = weakref.WeakKeyDictionary()

WORD_START = r"(?<!\w)\w|(?<![^\w\s])[^\w\s]"
WORD_END = r"\w(?!\w)|[^\w\s](?![^\w\s])"
BIGWORD_START = r"(?<!\S)\S"
BIGWORD_END = r"\S(?!\S)"
SENTENCE_END = r"[.!?][)\]\"']*\s+(?=\S)"
BRACES = r"[()\[\]{}]"


def current_line(view: View) -> int:
    return view.line_from_position(view.current_pos)


def column(view: View) -> int:
    return view.current_pos - view.position_from_line(current_line(view))


def first_nonblank(view: View, line: int) -> int:
    start = view.position_from_line(line)
    end = view.line_end_position(line)
    found = view.search(r"[^ \t]", start, end)
    return found[0] if found else end


def _clamp_line(view: View, line: int) -> int:
    return max(0, min(line, view.line_count - 1))


def _line_column(view: View, line: int, col: int) -> int:
    line = _clamp_line(view, line)
    start = view.position_from_line(line)
    return min(start + col, view.line_end_position(line))


def _movers(target: Target, *, inclusive: bool = False) -> Tuple[Callable, Callable]:
    def move(view: View, argument: object = None) -> None:
        view.goto_pos(target(view, argument))

    def extend(view: View, argument: object = None) -> None:
        pos = target(view, argument)
        if inclusive and pos >= view.current_pos and pos < view.length:
            pos += 1
        view.set_current_pos(pos)

    return move, extend


# -- character and line steps -------------------------------------------------


def _char_left(view: View, argument: object = None) -> int:
    start = view.position_from_line(current_line(view))
    return max(start, view.current_pos - 1)


def _char_right(view: View, argument: object = None) -> int:
    end = view.line_end_position(current_line(view))
    return min(end, view.current_pos + 1)


def _line_down(view: View, argument: object = None) -> int:
    return _line_column(view, current_line(view) + 1, column(view))


def _line_up(view: View, argument: object = None) -> int:
    return _line_column(view, current_line(view) - 1, column(view))


def _line_start(view: View, argument: object = None) -> int:
    return view.position_from_line(current_line(view))


def _line_end(view: View, argument: object = None) -> int:
    return view.line_end_position(current_line(view))


def _line_home(view: View, argument: object = None) -> int:
    return first_nonblank(view, current_line(view))


def _column(view: View, argument: object = None) -> int:
    number = argument if isinstance(argument, int) else 1
    return _line_column(view, current_line(view), max(0, number - 1))


move_char_left, extend_char_left = _movers(_char_left)
move_char_right, extend_char_right = _movers(_char_right)
move_line_down, extend_line_down = _movers(_line_down)
move_line_up, extend_line_up = _movers(_line_up)
move_line_start, extend_line_start = _movers(_line_start)
move_line_end, extend_line_end = _movers(_line_end)
move_line_home, extend_line_home = _movers(_line_home)
move_column, extend_column = _movers(_column)


# -- words, sentences, paragraphs ---------------------------------------------


def _forward(pattern: str, *, skip: int = 1, use_end: bool = False) -> Target:
    def target(view: View, argument: object = None) -> int:
        found = view.search(pattern, view.current_pos + skip, view.length)
        if found is None:
            return view.length
        return found[1] if use_end else found[0]

    return target


def _backward(pattern: str, *, use_end: bool = False) -> Target:
    def target(view: View, argument: object = None) -> int:
        found = view.search(pattern, view.current_pos, 0)
        if found is None:
            return 0
        return found[1] if use_end else found[0]

    return target


move_word_right, extend_word_right = _movers(_forward(WORD_START))
move_word_left, extend_word_left = _movers(_backward(WORD_START))
move_word_end, extend_word_end = _movers(_forward(WORD_END), inclusive=True)
move_bigword_right, extend_bigword_right = _movers(_forward(BIGWORD_START))
move_bigword_left, extend_bigword_left = _movers(_backward(BIGWORD_START))
move_bigword_end, extend_bigword_end = _movers(_forward(BIGWORD_END), inclusive=True)
move_sentence_next, extend_sentence_next = _movers(
    _forward(SENTENCE_END, skip=0, use_end=True)
)
move_sentence_prev, extend_sentence_prev = _movers(
    _backward(SENTENCE_END, use_end=True)
)


def _is_blank_line(view: View, line: int) -> bool:
    start = view.position_from_line(line)
    return not view.text_range(start, view.line_end_position(line)).strip()


def _paragraph_down(view: View, argument: object = None) -> int:
    line = current_line(view) + 1
    while line < view.line_count and _is_blank_line(view, line):
        line += 1
    while line < view.line_count:
        if _is_blank_line(view, line):
            return view.position_from_line(line)
        line += 1
    return view.length


def _paragraph_up(view: View, argument: object = None) -> int:
    line = current_line(view) - 1
    while line >= 0 and _is_blank_line(view, line):
        line -= 1
    while line >= 0:
        if _is_blank_line(view, line):
            return view.position_from_line(line)
        line -= 1
    return 0


move_paragraph_down, extend_paragraph_down = _movers(_paragraph_down)
move_paragraph_up, extend_paragraph_up = _movers(_paragraph_up)


def _brace(view: View, argument: object = None) -> int:
    line = current_line(view)
    found = view.search(BRACES, view.current_pos, view.line_end_position(line))
    if found is None:
        return view.current_pos
    match = view.brace_match(found[0])
    return match if match >= 0 else view.current_pos


def move_brace_match(view: View, argument: object = None) -> None:
    view.goto_pos(_brace(view))


def extend_brace_match(view: View, argument: object = None) -> None:
    origin = view.current_pos
    target = _brace(view)
    if target >= origin:
        view.set_current_pos(target + 1)
    else:
        view.set_selection(origin + 1, target)


# -- absolute lines and the screen --------------------------------------------


def _line_number(argument: object, default: int) -> int:
    return argument - 1 if isinstance(argument, int) else default


def goto_line(view: View, argument: object = None) -> None:
    """``G``: line ``argument`` (1-based), or the last line without a count."""

    line = _clamp_line(view, _line_number(argument, view.line_count - 1))
    view.goto_pos(first_nonblank(view, line))


def goto_first_line(view: View, argument: object = None) -> None:
    line = _clamp_line(view, _line_number(argument, 0))
    view.goto_pos(first_nonblank(view, line))


def goto_line_below(view: View, argument: object = None) -> None:
    """``_``: first non-blank of the line ``argument - 1`` lines down."""

    offset = argument - 1 if isinstance(argument, int) else 0
    line = _clamp_line(view, current_line(view) + offset)
    view.goto_pos(first_nonblank(view, line))


def _visible_last(view: View) -> int:
    return _clamp_line(view, view.first_visible_line + view.lines_on_screen - 1)


def _screen_top(view: View, argument: object = None) -> int:
    offset = _line_number(argument, 0)
    return min(view.first_visible_line + offset, _visible_last(view))


def _screen_middle(view: View, argument: object = None) -> int:
    top = view.first_visible_line
    return top + (_visible_last(view) - top) // 2


def _screen_bottom(view: View, argument: object = None) -> int:
    offset = _line_number(argument, 0)
    return max(_visible_last(view) - offset, view.first_visible_line)


def screen_top(view: View, argument: object = None) -> None:
    view.goto_pos(first_nonblank(view, _screen_top(view, argument)))


def screen_middle(view: View, argument: object = None) -> None:
    view.goto_pos(first_nonblank(view, _screen_middle(view)))


def screen_bottom(view: View, argument: object = None) -> None:
    view.goto_pos(first_nonblank(view, _screen_bottom(view, argument)))


def _keep_caret_visible(view: View) -> None:
    line = current_line(view)
    if line < view.first_visible_line:
        view.goto_pos(first_nonblank(view, view.first_visible_line))
    elif line > _visible_last(view):
        view.goto_pos(first_nonblank(view, _visible_last(view)))


def _scroll_by(lines: Callable[[View], int]) -> Callable:
    def scroll(view: View, argument: object = None) -> None:
        delta = lines(view)
        view.scroll_lines(delta)
        target = _clamp_line(view, current_line(view) + delta)
        view.goto_pos(first_nonblank(view, target))
        _keep_caret_visible(view)

    return scroll


page_down = _scroll_by(lambda view: max(1, view.lines_on_screen - 2))
page_up = _scroll_by(lambda view: -max(1, view.lines_on_screen - 2))
half_page_down = _scroll_by(lambda view: max(1, view.lines_on_screen // 2))
half_page_up = _scroll_by(lambda view: -max(1, view.lines_on_screen // 2))


def scroll_down(view: View, argument: object = None) -> None:
    view.scroll_lines(1)
    _keep_caret_visible(view)


def scroll_up(view: View, argument: object = None) -> None:
    view.scroll_lines(-1)
    _keep_caret_visible(view)


# -- linewise selections ------------------------------------------------------


def anchor_here(view: View, argument: object = None) -> None:
    """Drop any selection so a motion extends from the caret."""

    view.goto_pos(view.current_pos)
    _BARE_LINES.pop(view, None)


def select_lines(view: View, first: int, last: int) -> None:
    """Select whole lines ``first``..``last``.

    A selection reaching the end of the document takes the line break before
    ``first`` instead of a trailing one.
    """

    first, last = sorted((_clamp_line(view, first), _clamp_line(view, last)))
    if last + 1 < view.line_count:
        view.set_selection(view.position_from_line(first), view.position_from_line(last + 1))
    elif first > 0:
        view.set_selection(view.line_end_position(first - 1), view.length)
    else:
        view.set_selection(0, view.length)
        if view.length and not view.text_range(0, view.length).endswith(view.eol):
            _BARE_LINES[view] = (0, view.length)


def is_bare_line_selection(view: View, low: int, high: int) -> bool:
    """True when ``[low, high)`` holds every line but no final line break."""

    return high == view.length and _BARE_LINES.get(view) == (low, high)


def is_tail_selection(view: View, low: int, high: int) -> bool:
    """True when ``[low, high)`` is a linewise selection ending the document."""

    if high != view.length or low >= high or low == 0:
        return False
    line = view.line_from_position(low)
    return low == view.line_end_position(line) and line < view.line_count - 1


def selected_lines(view: View) -> Tuple[int, int]:
    low, high = sorted((view.anchor, view.current_pos))
    first = view.line_from_position(low)
    if is_tail_selection(view, low, high):
        first += 1
    last = view.line_from_position(max(low, high - 1)) if high > low else first
    return first, max(first, last)


def select_line(view: View, argument: object = None) -> None:
    line = current_line(view)
    select_lines(view, line, line)


def extend_lines_down(view: View, argument: object = None) -> None:
    if view.anchor == view.current_pos:
        select_line(view)
        return
    first, last = selected_lines(view)
    select_lines(view, first, last + 1)


def extend_lines_up(view: View, argument: object = None) -> None:
    if view.anchor == view.current_pos:
        select_line(view)
        return
    first, last = selected_lines(view)
    select_lines(view, first - 1, last)


def select_to_line(view: View, argument: object = None) -> None:
    """Linewise ``G``: from the caret line to line ``argument`` (default last)."""

    select_lines(view, current_line(view), _line_number(argument, view.line_count - 1))


def select_to_first_line(view: View, argument: object = None) -> None:
    select_lines(view, current_line(view), _line_number(argument, 0))


def select_to_screen_top(view: View, argument: object = None) -> None:
    select_lines(view, current_line(view), _screen_top(view, argument))


def select_to_screen_bottom(view: View, argument: object = None) -> None:
    select_lines(view, current_line(view), _screen_bottom(view, argument))


def line_span(view: View, line: Optional[int] = None) -> Tuple[int, int]:
    line = current_line(view) if line is None else line
    return view.position_from_line(line), view.line_end_position(line)


__all__ = [
    "anchor_here",
    "column",
    "current_line",
    "first_nonblank",
    "goto_first_line",
    "goto_line",
    "goto_line_below",
    "is_bare_line_selection",
    "is_tail_selection",
    "line_span",
    "page_down",
    "page_up",
    "half_page_down",
    "half_page_up",
    "screen_bottom",
    "screen_middle",
    "screen_top",
    "scroll_down",
    "scroll_up",
    "select_line",
    "select_lines",
    "select_to_first_line",
    "select_to_line",
    "select_to_screen_bottom",
    "select_to_screen_top",
    "selected_lines",
    "extend_lines_down",
    "extend_lines_up",
    "move_brace_match",
    "extend_brace_match",
] + [
    f"{kind}_{name}"
    for kind in ("move", "extend")
    for name in (
        "char_left",
        "char_right",
        "line_down",
        "line_up",
        "line_start",
        "line_end",
        "line_home",
        "column",
        "word_right",
        "word_left",
        "word_end",
        "bigword_right",
        "bigword_left",
        "bigword_end",
        "sentence_next",
        "sentence_prev",
        "paragraph_down",
        "paragraph_up",
    )
]
