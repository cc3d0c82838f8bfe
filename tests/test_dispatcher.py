from __future__ import annotations

from typing import Any, Callable, List, Optional

import pytest

from vitamin.config import VitaminConfig
from vitamin.definitions import Definition, DefinitionTable, State
from vitamin.grammar import (
    ENTERED_EVENT,
    EXITED_EVENT,
    Dispatcher,
    GrammarError,
    KeyResult,
    Outcome,
)
from vitamin.registers import UNNAMED


class RecordingView:
    def __init__(self) -> None:
        self.calls: List[tuple[str, Any]] = []


class FakePrompt:
    def __init__(self, *, answer: Optional[str] = None) -> None:
        self.answer = answer
        self.labels: List[str] = []
        self.callback: Optional[Callable[[str], None]] = None

    @property
    def active(self) -> bool:
        return self.callback is not None

    def run(self, label: str, on_submit: Callable[[str], None]) -> None:
        self.labels.append(label)
        if self.answer is not None:
            on_submit(self.answer)
            return
        self.callback = on_submit

    def submit(self, text: str) -> None:
        callback, self.callback = self.callback, None
        assert callback is not None
        callback(text)

    def lose_focus(self) -> None:
        self.callback = None


class FakeKeySource:
    def __init__(self) -> None:
        self.handlers: List[Callable[[str], bool]] = []

    def connect(self, handler: Callable[[str], bool]) -> None:
        self.handlers.append(handler)

    def disconnect(self, handler: Callable[[str], bool]) -> None:
        self.handlers.remove(handler)


def make_action(name: str, result: Any = None):
    def action(view: RecordingView, argument: Any = None) -> Any:
        view.calls.append((name, argument))
        return result

    return action


def make_tables() -> tuple[DefinitionTable, DefinitionTable]:
    commands = DefinitionTable(name="commands")
    motions = DefinitionTable(name="motions")
    commands["j"] = Definition(actions=(make_action("down"),))
    commands["n"] = Definition(actions=(make_action("count"),), before=lambda c: c.count, repeat=1)
    commands["y"] = Definition(
        actions=(make_action("yank", "yanked"),),
        needs=State.SUBCOMMAND,
        pass_count=True,
        repeat=1,
    )
    commands["f"] = Definition(actions=(make_action("find"),), needs=State.ARG)
    commands["i"] = Definition(
        actions=(make_action("insert"),),
        before=lambda c: c.text,
        needs=State.INPUT,
        repeat=1,
    )
    commands["/"] = Definition(
        actions=(make_action("search"),), needs=State.PROMPT, prompt="/", repeat=1
    )
    commands["o"] = Definition(actions=(make_action("open"),), chain="i", repeat=1)
    commands["r"] = Definition(actions=(make_action("explode"), _explode), needs=State.ARG)
    motions["_"] = Definition(actions=(make_action("line", "line\n"),))
    motions["w"] = Definition(actions=(make_action("word", "w"),))
    return commands, motions


def _explode(view, argument=None):
    raise RuntimeError("too few characters to replace")


def make_dispatcher(**kwargs: Any) -> tuple[Dispatcher, RecordingView, List[str]]:
    view = RecordingView()
    statuses: List[str] = []
    commands, motions = make_tables()
    dispatcher = Dispatcher(
        view,  # type: ignore[arg-type]
        commands=commands,
        motions=motions,
        status=statuses.append,
        **kwargs,
    )
    dispatcher.activate()
    return dispatcher, view, statuses


def feed(dispatcher: Dispatcher, *keys: str) -> List[KeyResult]:
    return [dispatcher.dispatch(key) for key in keys]


def calls(view: RecordingView) -> List[str]:
    return [name for name, _ in view.calls]


def test_count_prefix_repeats_the_command() -> None:
    dispatcher, view, _ = make_dispatcher()

    first, second = feed(dispatcher, "3", "j")

    assert first.outcome is Outcome.PENDING and first.state is State.COUNT
    assert second.outcome is Outcome.COMPLETE
    assert calls(view) == ["down", "down", "down"]
    assert dispatcher.state is State.START
    assert dispatcher.command is None


@pytest.mark.parametrize("digits", ["1", "42", "907", "1234", "10"])
def test_count_digits_accumulate_in_decimal(digits: str) -> None:
    dispatcher, view, _ = make_dispatcher()

    feed(dispatcher, *digits, "n")

    assert view.calls == [("count", int(digits))]


def test_count_saturates_at_configured_maximum() -> None:
    dispatcher, view, _ = make_dispatcher(config=VitaminConfig(max_count=500))

    results = feed(dispatcher, *"99999999999", "n")

    assert all(result.outcome is not Outcome.ERROR for result in results)
    assert view.calls == [("count", 500)]


def test_register_prefix_and_motion_write_named_register() -> None:
    dispatcher, view, _ = make_dispatcher()

    results = feed(dispatcher, '"', "a", "2", "y", "_")

    assert [result.state for result in results[:-1]] == [
        State.REGISTER,
        State.COUNT,
        State.COUNT,
        State.SUBCOMMAND,
    ]
    assert results[-1].outcome is Outcome.COMPLETE
    assert calls(view) == ["line", "line", "yank"]
    assert dispatcher.registers.read("a").text == "line\nline\nyanked\n"
    assert dispatcher.registers.read(UNNAMED) == dispatcher.registers.read("a")


def test_repeated_operator_key_is_a_ditto_for_the_default_motion() -> None:
    dispatcher, view, _ = make_dispatcher()

    feed(dispatcher, "y", "y")

    assert calls(view) == ["line", "yank"]


def test_unmapped_key_without_prefix_is_unhandled() -> None:
    dispatcher, _, statuses = make_dispatcher()

    result = dispatcher.dispatch("Z")

    assert result.outcome is Outcome.UNHANDLED
    assert result.consumed is False
    assert dispatcher.handle_key("Z") is False
    assert statuses == []


def test_unmapped_key_after_register_prefix_is_a_grammar_error() -> None:
    dispatcher, _, statuses = make_dispatcher()

    *_, result = feed(dispatcher, '"', "a", "Z")

    assert result.outcome is Outcome.ERROR
    assert result.consumed is True
    assert dispatcher.state is State.START
    assert dispatcher.command is None
    assert statuses[-1].startswith("ERROR:")


def test_unmapped_key_after_count_is_a_grammar_error() -> None:
    dispatcher, _, _ = make_dispatcher()

    *_, result = feed(dispatcher, "4", "Z")

    assert result.outcome is Outcome.ERROR


def test_unknown_motion_is_a_grammar_error() -> None:
    dispatcher, view, _ = make_dispatcher()

    *_, result = feed(dispatcher, "y", "Q")

    assert result.outcome is Outcome.ERROR
    assert calls(view) == []


def test_bad_register_name_is_a_grammar_error() -> None:
    dispatcher, _, _ = make_dispatcher()

    *_, result = feed(dispatcher, '"', "space")

    assert result.outcome is Outcome.ERROR
    assert dispatcher.state is State.START


def test_bad_argument_is_a_grammar_error() -> None:
    dispatcher, view, _ = make_dispatcher()

    *_, result = feed(dispatcher, "f", "ctrl+x")

    assert result.outcome is Outcome.ERROR
    assert calls(view) == []


@pytest.mark.parametrize(
    "keys",
    [
        ("3",),
        ('"',),
        ('"', "a"),
        ('"', "a", "2"),
        ("f",),
        ("y",),
        ("y", "3"),
        ("/",),
    ],
)
def test_escape_discards_the_command_without_side_effects(keys: tuple[str, ...]) -> None:
    dispatcher, view, _ = make_dispatcher(prompt=FakePrompt())

    feed(dispatcher, *keys)
    result = dispatcher.dispatch("esc")

    assert result.outcome is Outcome.CANCELLED
    assert dispatcher.state is State.START
    assert dispatcher.command is None
    assert calls(view) == []
    assert dispatcher.registers.read(UNNAMED).text == ""


def test_action_failure_resets_and_reports() -> None:
    dispatcher, view, statuses = make_dispatcher()

    *_, result = feed(dispatcher, "r", "x")

    assert result.outcome is Outcome.ERROR
    assert statuses[-1] == "ERROR: too few characters to replace"
    assert dispatcher.state is State.START
    assert dispatcher.registers.read(UNNAMED).text == ""
    assert feed(dispatcher, "j")[0].outcome is Outcome.COMPLETE


def test_status_echoes_keys_consumed_so_far() -> None:
    dispatcher, _, statuses = make_dispatcher()

    feed(dispatcher, '"', "a", "1", "2", "y")

    assert statuses[-1] == '"a12y'


def test_input_state_leaves_keys_to_the_host_until_escape() -> None:
    dispatcher, view, _ = make_dispatcher()

    feed(dispatcher, "i")
    assert dispatcher.state is State.INPUT
    assert dispatcher.handle_key("h") is False
    assert dispatcher.handle_key("space") is False
    assert dispatcher.handle_key("x") is False
    assert dispatcher.handle_key("backspace") is False
    assert dispatcher.handle_key("i") is False
    result = dispatcher.dispatch("esc")

    assert result.outcome is Outcome.COMPLETE
    assert view.calls == [("insert", "h i")]


def test_chained_command_starts_after_completion() -> None:
    dispatcher, view, _ = make_dispatcher()

    result = dispatcher.dispatch("o")

    assert result.outcome is Outcome.PENDING
    assert result.state is State.INPUT
    assert dispatcher.last_command is not None
    assert dispatcher.last_command.keycode == "o"
    assert calls(view) == ["open"]


def test_prompt_resumes_with_submitted_text() -> None:
    prompt = FakePrompt()
    dispatcher, view, _ = make_dispatcher(prompt=prompt)

    result = dispatcher.dispatch("/")
    assert result.state is State.PROMPT_WAIT
    assert prompt.labels == ["/"]

    prompt.submit("needle")

    assert view.calls == [("search", "needle")]
    assert dispatcher.state is State.START
    assert dispatcher.last_command is not None


def test_synchronous_prompt_answer_completes_immediately() -> None:
    dispatcher, view, _ = make_dispatcher(prompt=FakePrompt(answer="x"))

    result = dispatcher.dispatch("/")

    assert result.outcome is Outcome.COMPLETE
    assert view.calls == [("search", "x")]


def test_cancelled_prompt_resumes_with_empty_text() -> None:
    prompt = FakePrompt()
    dispatcher, view, _ = make_dispatcher(prompt=prompt)
    dispatcher.dispatch("/")
    assert dispatcher.dispatch("q").consumed is False

    prompt.lose_focus()
    result = dispatcher.dispatch("j")

    assert result.consumed is True
    assert view.calls == [("search", "")]
    assert dispatcher.state is State.START


def test_prompt_closed_notification_resumes_waiting_command() -> None:
    prompt = FakePrompt()
    dispatcher, view, _ = make_dispatcher(prompt=prompt)
    dispatcher.dispatch("/")
    prompt.lose_focus()

    result = dispatcher.prompt_closed()

    assert result.outcome is Outcome.COMPLETE
    assert view.calls == [("search", "")]


def test_stale_prompt_submission_is_ignored() -> None:
    prompt = FakePrompt()
    dispatcher, view, _ = make_dispatcher(prompt=prompt)
    dispatcher.dispatch("/")
    dispatcher.dispatch("esc")

    prompt.submit("late")

    assert view.calls == []


def test_prompt_without_host_prompt_is_an_action_error() -> None:
    dispatcher, _, _ = make_dispatcher()

    result = dispatcher.dispatch("/")

    assert result.outcome is Outcome.ERROR
    assert dispatcher.state is State.START


def test_table_edits_apply_to_the_next_lookup() -> None:
    dispatcher, view, _ = make_dispatcher()
    feed(dispatcher, "2")

    dispatcher.commands.remap("j", "J")
    first = dispatcher.dispatch("j")
    second = feed(dispatcher, "J")[0]

    assert first.outcome is Outcome.ERROR
    assert second.outcome is Outcome.COMPLETE
    assert calls(view) == ["down"]


def test_connect_subscribes_and_emits_entered() -> None:
    view = RecordingView()
    commands, motions = make_tables()
    dispatcher = Dispatcher(view, commands=commands, motions=motions)  # type: ignore[arg-type]
    events: List[str] = []
    dispatcher.bus.subscribe(ENTERED_EVENT, lambda payload: events.append("entered"))
    dispatcher.bus.subscribe(EXITED_EVENT, lambda payload: events.append(f"exited:{payload}"))
    source = FakeKeySource()

    dispatcher.connect(source)
    assert source.handlers == [dispatcher.handle_key]
    assert source.handlers[0]("j") is True

    assert dispatcher.handle_key("ctrl+esc") is True
    assert source.handlers == []
    assert events == ["entered", "exited:exit"]
    assert dispatcher.handle_key("j") is False
    assert calls(view) == ["down"]


def test_exit_key_drops_pending_continuation() -> None:
    dispatcher, view, _ = make_dispatcher()
    feed(dispatcher, "y")

    result = dispatcher.dispatch("ctrl+esc")

    assert result.outcome is Outcome.EXITED
    assert dispatcher.command is None
    assert dispatcher.active is False
    assert calls(view) == []


def test_unexpected_failure_tears_the_mode_down(monkeypatch: pytest.MonkeyPatch) -> None:
    dispatcher, _, statuses = make_dispatcher()
    exits: List[object] = []
    dispatcher.bus.subscribe(EXITED_EVENT, exits.append)
    source = FakeKeySource()
    dispatcher.connect(source)

    def broken(*_args: Any, **_kwargs: Any) -> KeyResult:
        raise KeyError("grammar bug")

    monkeypatch.setattr(dispatcher.grammar, "handle", broken)

    assert dispatcher.handle_key("j") is True
    assert dispatcher.active is False
    assert source.handlers == []
    assert exits == ["crash"]
    assert statuses[-1].startswith("ERROR:")


def test_failing_status_sink_still_tears_down_quietly() -> None:
    def broken_status(text: str) -> None:
        raise RuntimeError("ui gone")

    view = RecordingView()
    commands, motions = make_tables()
    dispatcher = Dispatcher(
        view, commands=commands, motions=motions, status=broken_status  # type: ignore[arg-type]
    )
    dispatcher.activate()

    result = dispatcher.dispatch("j")

    assert result.outcome is Outcome.EXITED
    assert dispatcher.active is False


@pytest.mark.parametrize("state", [State.COUNT, State.ARG, State.INPUT])
def test_continuation_state_without_a_command_is_a_grammar_error(state: State) -> None:
    dispatcher, view, _ = make_dispatcher()

    with pytest.raises(GrammarError):
        dispatcher.grammar.handle(state, None, "x")

    assert calls(view) == []
