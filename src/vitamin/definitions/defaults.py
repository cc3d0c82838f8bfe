"""Built-in command and motion tables for the vi grammar."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from vitamin.actions import editing, marks, motions, search

from .models import Definition, State
from .table import DefinitionTable


def _count(command) -> Optional[int]:
    return command.count


def _repetitions(command) -> int:
    return command.repetitions


def _register_and_count(command):
    return command.register_contents(), command.repetitions


def _char_and_count(command):
    return command.argument, command.repetitions


def _typed_repeats(command) -> str:
    """Text typed in insert mode already reached the view once."""

    return (command.text or "") * (command.repetitions - 1)


def _move(*actions, **fields) -> Definition:
    return Definition(actions=actions, **fields)


def _motion(*actions, **fields) -> Definition:
    return Definition(actions=(motions.anchor_here, *actions), **fields)


def _operator(action, **fields) -> Definition:
    return Definition(
        actions=(action,),
        needs=State.SUBCOMMAND,
        pass_count=True,
        repeat=1,
        **fields,
    )


def default_commands() -> tuple[tuple[str, Definition], ...]:
    go_first = DefinitionTable(
        [
            (
                "g",
                _move(
                    motions.goto_first_line,
                    before=_count,
                    repeat=1,
                    description="Go to line (default first)",
                ),
            )
        ],
        name="commands.g",
    )
    left = _move(motions.move_char_left, description="Character left")
    right = _move(motions.move_char_right, description="Character right")
    next_line_home = _move(
        motions.move_line_down,
        after=motions.move_line_home,
        description="First non-blank of next line",
    )
    return (
        ("h", left),
        ("backspace", left),
        ("l", right),
        ("space", right),
        ("j", _move(motions.move_line_down, description="Line down")),
        ("k", _move(motions.move_line_up, description="Line up")),
        ("enter", next_line_home),
        ("+", next_line_home),
        (
            "-",
            _move(
                motions.move_line_up,
                after=motions.move_line_home,
                description="First non-blank of previous line",
            ),
        ),
        (
            "_",
            _move(motions.goto_line_below, before=_repetitions, repeat=1),
        ),
        ("w", _move(motions.move_word_right, description="Word right")),
        ("W", _move(motions.move_bigword_right)),
        ("b", _move(motions.move_word_left, description="Word left")),
        ("B", _move(motions.move_bigword_left)),
        ("e", _move(motions.move_word_end, description="End of word")),
        ("E", _move(motions.move_bigword_end)),
        ("0", _move(motions.move_line_start, repeat=1, description="Line start")),
        ("^", _move(motions.move_line_home, repeat=1)),
        ("$", _move(motions.move_line_end, repeat=1, description="Line end")),
        ("|", _move(motions.move_column, before=_repetitions, repeat=1)),
        (
            "G",
            _move(
                motions.goto_line,
                before=_count,
                repeat=1,
                description="Go to line (default last)",
            ),
        ),
        ("g", Definition(table=go_first, description="g prefix")),
        ("H", _move(motions.screen_top, before=_count, repeat=1)),
        ("M", _move(motions.screen_middle, repeat=1)),
        ("L", _move(motions.screen_bottom, before=_count, repeat=1)),
        ("%", _move(motions.move_brace_match, repeat=1, description="Matching brace")),
        ("(", _move(motions.move_sentence_prev)),
        (")", _move(motions.move_sentence_next)),
        ("{", _move(motions.move_paragraph_up)),
        ("}", _move(motions.move_paragraph_down)),
        ("ctrl+f", _move(motions.page_down)),
        ("ctrl+b", _move(motions.page_up)),
        ("ctrl+d", _move(motions.half_page_down)),
        ("ctrl+u", _move(motions.half_page_up)),
        ("ctrl+e", _move(motions.scroll_down)),
        ("ctrl+y", _move(motions.scroll_up)),
        ("f", _move(search.find_char, needs=State.ARG, description="Find character")),
        ("F", _move(search.find_char_back, needs=State.ARG)),
        ("t", _move(search.till_char, needs=State.ARG)),
        ("T", _move(search.till_char_back, needs=State.ARG)),
        (
            "r",
            _move(
                editing.replace_chars,
                needs=State.ARG,
                before=_char_and_count,
                repeat=1,
                description="Replace characters",
            ),
        ),
        ("m", _move(marks.set_mark, needs=State.ARG, repeat=1, description="Set mark")),
        ("`", _move(marks.jump_to_mark, needs=State.ARG, repeat=1)),
        ("'", _move(marks.jump_to_mark_line, needs=State.ARG, repeat=1)),
        (
            "x",
            _move(
                motions.anchor_here,
                motions.extend_char_right,
                after=editing.cut_selection,
                numbered=True,
                description="Delete characters under the caret",
            ),
        ),
        (
            "X",
            _move(
                motions.anchor_here,
                motions.extend_char_left,
                after=editing.cut_selection,
                numbered=True,
                description="Delete characters before the caret",
            ),
        ),
        ("d", _operator(editing.cut_selection, numbered=True, description="Delete")),
        ("D", Definition.alias("d", subcommand="$", description="Delete to line end")),
        ("y", _operator(editing.copy_selection, description="Yank")),
        ("Y", Definition.alias("y", subcommand="_", description="Yank lines")),
        (
            "c",
            _operator(
                editing.change_selection,
                numbered=True,
                chain="i",
                description="Change",
            ),
        ),
        ("C", Definition.alias("c", subcommand="$", description="Change to line end")),
        ("s", Definition.alias("c", subcommand="l", description="Substitute characters")),
        ("S", Definition.alias("c", subcommand="_", description="Substitute lines")),
        (
            "p",
            _move(
                editing.paste_after,
                before=_register_and_count,
                repeat=1,
                description="Put after",
            ),
        ),
        (
            "P",
            _move(
                editing.paste_before,
                before=_register_and_count,
                repeat=1,
                description="Put before",
            ),
        ),
        ("J", _move(editing.join_line, description="Join lines")),
        ("~", _move(editing.toggle_case, description="Toggle case")),
        (
            "i",
            _move(
                editing.insert_text,
                needs=State.INPUT,
                before=_typed_repeats,
                repeat=1,
                description="Insert",
            ),
        ),
        ("a", _move(editing.append_position, repeat=1, chain="i", description="Append")),
        ("A", _move(motions.move_line_end, repeat=1, chain="i")),
        ("I", _move(motions.move_line_home, repeat=1, chain="i")),
        ("o", _move(editing.open_line_below, repeat=1, chain="i", description="Open below")),
        ("O", _move(editing.open_line_above, repeat=1, chain="i", description="Open above")),
        ("<", _operator(editing.dedent_lines, description="Shift left")),
        (">", _operator(editing.indent_lines, description="Shift right")),
        (
            "/",
            _move(
                search.search_forward,
                needs=State.PROMPT,
                prompt="/",
                repeat=1,
                description="Search forward",
            ),
        ),
        (
            "?",
            _move(
                search.search_backward,
                needs=State.PROMPT,
                prompt="?",
                repeat=1,
                description="Search backward",
            ),
        ),
        ("u", _move(editing.undo, description="Undo")),
        ("ctrl+r", _move(editing.redo, description="Redo")),
    )


def default_motions() -> tuple[tuple[str, Definition], ...]:
    go_first = DefinitionTable(
        [("g", _motion(motions.select_to_first_line, before=_count, repeat=1))],
        name="motions.g",
    )
    right = _motion(motions.extend_char_right)
    return (
        ("h", _motion(motions.extend_char_left)),
        ("l", right),
        ("space", right),
        ("j", _motion(motions.select_line, motions.extend_lines_down)),
        ("k", _motion(motions.select_line, motions.extend_lines_up)),
        ("_", _motion(motions.extend_lines_down, description="Current line")),
        ("w", _motion(motions.extend_word_right)),
        ("W", _motion(motions.extend_bigword_right)),
        ("b", _motion(motions.extend_word_left)),
        ("B", _motion(motions.extend_bigword_left)),
        ("e", _motion(motions.extend_word_end)),
        ("E", _motion(motions.extend_bigword_end)),
        ("0", _motion(motions.extend_line_start, repeat=1)),
        ("^", _motion(motions.extend_line_home, repeat=1)),
        ("$", _motion(motions.extend_line_end, repeat=1)),
        ("|", _motion(motions.extend_column, before=_repetitions, repeat=1)),
        ("G", _motion(motions.select_to_line, before=_count, repeat=1)),
        ("g", Definition(table=go_first)),
        ("H", _motion(motions.select_to_screen_top, before=_count, repeat=1)),
        ("L", _motion(motions.select_to_screen_bottom, before=_count, repeat=1)),
        ("(", _motion(motions.extend_sentence_prev)),
        (")", _motion(motions.extend_sentence_next)),
        ("{", _motion(motions.extend_paragraph_up)),
        ("}", _motion(motions.extend_paragraph_down)),
        ("%", _motion(motions.extend_brace_match, repeat=1)),
        ("f", _motion(search.extend_find_char, needs=State.ARG)),
        ("F", _motion(search.extend_find_char_back, needs=State.ARG)),
        ("t", _motion(search.extend_till_char, needs=State.ARG)),
        ("T", _motion(search.extend_till_char_back, needs=State.ARG)),
        ("`", _motion(marks.extend_to_mark, needs=State.ARG, repeat=1)),
        ("'", _motion(marks.select_to_mark_line, needs=State.ARG, repeat=1)),
        (
            "/",
            _motion(search.extend_search_forward, needs=State.PROMPT, prompt="/", repeat=1),
        ),
        (
            "?",
            _motion(search.extend_search_backward, needs=State.PROMPT, prompt="?", repeat=1),
        ),
    )


def load_default_definitions(
    commands: DefinitionTable,
    motions_table: DefinitionTable,
    *,
    replace: bool = False,
    exclude: Sequence[str] | None = None,
    extra_commands: Iterable[tuple[str, Definition]] | None = None,
) -> None:
    """Register the built-in commands and motions into the given tables."""

    skipped = set(exclude or ())
    for keycode, definition in default_commands():
        if keycode not in skipped:
            commands.register(keycode, definition, replace=replace)
    for keycode, definition in default_motions():
        if keycode not in skipped:
            motions_table.register(keycode, definition, replace=replace)
    for keycode, definition in extra_commands or ():
        commands.register(keycode, definition, replace=replace)


__all__ = ["default_commands", "default_motions", "load_default_definitions"]
