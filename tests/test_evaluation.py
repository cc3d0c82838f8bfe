from __future__ import annotations

import gc
from typing import Any, List

import pytest

from vitamin.definitions import Definition, DefinitionTable, State
from vitamin.errors import ActionError, DefinitionError, GrammarError
from vitamin.grammar import Command, Context, Outcome
from vitamin.registers import UNNAMED, RegisterStore


class RecordingView:
    """Stands in for a host view; actions log onto it."""

    def __init__(self) -> None:
        self.calls: List[tuple[str, Any]] = []


def make_action(name: str, result: Any = None):
    def action(view: RecordingView, argument: Any = None) -> Any:
        view.calls.append((name, argument))
        return result

    action.__name__ = name
    return action


def make_context(
    commands: DefinitionTable | None = None, motions: DefinitionTable | None = None
) -> Context:
    return Context(
        view=RecordingView(),  # type: ignore[arg-type]
        registers=RegisterStore(),
        commands=commands or DefinitionTable(name="commands"),
        motions=motions or DefinitionTable(name="motions"),
    )


def make_command(context: Context, keycode: str, **fields: Any) -> Command:
    command = Command(table=context.commands, registers=context.registers, **fields)
    command.bind(keycode, context.commands[keycode])
    return command


def names(context: Context) -> List[str]:
    return [name for name, _ in context.view.calls]  # type: ignore[attr-defined]


@pytest.mark.parametrize("count", [None, 1, 2, 5])
def test_last_action_repeats_count_times_then_after_once(count: int | None) -> None:
    context = make_context()
    context.commands["k"] = Definition(
        actions=(make_action("first"), make_action("second"), make_action("last")),
        after=make_action("after"),
    )
    command = make_command(context, "k", count=count)

    assert command.evaluate(context) is Outcome.COMPLETE

    expected = ["first", "second"] + ["last"] * (count or 1) + ["after"]
    assert names(context) == expected
    assert command.finished


def test_before_prepares_the_argument_for_every_action() -> None:
    context = make_context()
    context.commands["k"] = Definition(
        actions=(make_action("a"), make_action("b")),
        before=lambda command: f"{command.argument}!",
        after=make_action("after"),
    )
    command = make_command(context, "k", argument="x")

    command.evaluate(context)

    assert {argument for _, argument in context.view.calls} == {"x!"}  # type: ignore[attr-defined]


def test_repeat_fixes_the_number_of_repetitions() -> None:
    context = make_context()
    context.commands["k"] = Definition(actions=(make_action("once"),), repeat=1)
    command = make_command(context, "k", count=7)

    command.evaluate(context)

    assert names(context) == ["once"]
    assert command.count == 7


def test_string_results_are_concatenated_into_the_register() -> None:
    context = make_context()
    context.commands["k"] = Definition(
        actions=(make_action("a", "ab"), make_action("b", 42), make_action("c", "c")),
        before=lambda command: "not collected",
        after=make_action("after", "!"),
    )
    command = make_command(context, "k", count=2, register="q")

    command.evaluate(context)

    assert context.registers.read("q").text == "abcc!"
    assert context.registers.read(UNNAMED).text == "abcc!"


def test_no_register_write_without_text() -> None:
    context = make_context()
    context.commands["k"] = Definition(actions=(make_action("a"),))
    context.registers.write("q", "keep")

    make_command(context, "k", register="q").evaluate(context)

    assert context.registers.read("q").text == "keep"


def test_failing_action_aborts_without_register_write() -> None:
    def explode(view, argument=None):
        raise ValueError("boom")

    context = make_context()
    context.commands["k"] = Definition(actions=(make_action("a", "cut"), explode))
    command = make_command(context, "k")

    with pytest.raises(ActionError) as excinfo:
        command.evaluate(context)

    assert excinfo.value.keycode == "k"
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert context.registers.read(UNNAMED).text == ""


def test_keycode_override_rebinds_with_forced_fields() -> None:
    context = make_context()
    context.commands["x"] = Definition(actions=(make_action("x"),))
    context.commands.alias("X", "x", count=3)
    command = make_command(context, "X")

    command.evaluate(context)

    assert command.keycode == "x"
    assert names(context) == ["x", "x", "x"]


def test_alias_loop_is_reported() -> None:
    context = make_context()
    context.commands["a"] = Definition.alias("b")
    context.commands["b"] = Definition.alias("a")

    with pytest.raises(DefinitionError):
        make_command(context, "a").evaluate(context)


def test_alias_to_removed_keycode_is_reported() -> None:
    context = make_context()
    context.commands["x"] = Definition(actions=(make_action("x"),))
    context.commands.alias("X", "x")
    del context.commands["x"]

    with pytest.raises(DefinitionError):
        make_command(context, "X").evaluate(context)


def test_nested_table_dispatches_on_the_argument() -> None:
    nested = DefinitionTable([("g", Definition(actions=(make_action("gg"),)))], name="g")
    context = make_context()
    context.commands["g"] = Definition(table=nested)
    command = make_command(context, "g")

    assert command.evaluate(context) is Outcome.PENDING
    assert command.needs is State.ARG

    command.argument = "g"
    command.satisfy(State.ARG)
    assert command.evaluate(context) is Outcome.COMPLETE
    assert command.keycode == "gg"
    assert names(context) == ["gg"]


def test_nested_table_rejects_unknown_second_key() -> None:
    nested = DefinitionTable(name="g")
    context = make_context()
    context.commands["g"] = Definition(table=nested)
    command = make_command(context, "g")
    command.evaluate(context)

    command.argument = "q"
    command.satisfy(State.ARG)
    with pytest.raises(GrammarError):
        command.evaluate(context)


def make_operator_context(pass_count: bool = True) -> Context:
    context = make_context()
    context.commands["d"] = Definition(
        actions=(make_action("cut", "text"),),
        needs=State.SUBCOMMAND,
        pass_count=pass_count,
        repeat=1,
    )
    context.motions["w"] = Definition(actions=(make_action("word", "<w>"),))
    return context


def attach_motion(context: Context, parent: Command, keycode: str, **fields: Any) -> Command:
    child = Command(table=context.motions, registers=context.registers, **fields)
    child.attach(parent)
    child.bind(keycode, context.motions[keycode])
    return child


def test_subcommand_resumes_parent_and_carries_results() -> None:
    context = make_operator_context()
    parent = make_command(context, "d", register="a")

    assert parent.evaluate(context) is Outcome.PENDING
    assert parent.needs is State.SUBCOMMAND

    child = attach_motion(context, parent, "w")
    assert parent.subcommand is child and child.parent is parent
    assert child.evaluate(context) is Outcome.COMPLETE

    assert names(context) == ["word", "cut"]
    assert child.parent is None
    assert parent.pending() is parent
    assert context.registers.read("a").text == "<w>text"


def test_operator_count_multiplies_motion_count() -> None:
    context = make_operator_context()
    parent = make_command(context, "d", count=2)
    parent.evaluate(context)

    attach_motion(context, parent, "w", count=3).evaluate(context)

    assert names(context).count("word") == 6


def test_operator_count_is_ignored_without_pass_count() -> None:
    context = make_operator_context(pass_count=False)
    parent = make_command(context, "d", count=2)
    parent.evaluate(context)

    attach_motion(context, parent, "w", count=3).evaluate(context)

    assert names(context).count("word") == 3


def test_preset_motion_runs_without_waiting() -> None:
    context = make_operator_context()
    context.commands["D"] = Definition.alias("d", subcommand="w")
    command = make_command(context, "D")

    assert command.evaluate(context) is Outcome.COMPLETE
    assert names(context) == ["word", "cut"]


def test_child_does_not_keep_parent_alive() -> None:
    context = make_operator_context()
    parent = make_command(context, "d")
    parent.evaluate(context)
    child = attach_motion(context, parent, "w")

    del parent
    gc.collect()

    assert child.parent is None


def test_pending_walks_to_the_innermost_unfinished_command() -> None:
    context = make_operator_context()
    context.motions["f"] = Definition(actions=(make_action("find"),), needs=State.ARG)
    parent = make_command(context, "d")
    parent.evaluate(context)
    child = attach_motion(context, parent, "f")

    assert child.evaluate(context) is Outcome.PENDING
    assert parent.pending() is child
    assert child.root() is parent


def test_register_contents_requires_a_store() -> None:
    command = Command(table=DefinitionTable())

    with pytest.raises(ActionError):
        command.register_contents()


def test_echo_accumulates_status_on_the_root() -> None:
    context = make_operator_context()
    parent = make_command(context, "d")
    parent.echo("d")
    child = Command(table=context.motions)
    child.attach(parent)
    child.echo("ctrl+f")

    assert parent.status == "d<ctrl+f>"
    assert child.status == "<ctrl+f>"
