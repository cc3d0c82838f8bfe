"""Dispatcher owning the in-flight command, the grammar state and mode lifecycle."""

from __future__ import annotations

from contextlib import suppress
from typing import Callable, Optional

from vitamin.config import VitaminConfig
from vitamin.definitions import DefinitionTable, State, load_default_definitions
from vitamin.errors import ActionError, DefinitionError, GrammarError
from vitamin.host import KeySource, Prompt, View
from vitamin.registers import RegisterNameError, RegisterStore
from vitamin.runtime import telemetry

from .base import Context, EventBus, KeyResult, Outcome
from .command import Command
from .states import Grammar

ENTERED_EVENT = "vitamin.entered"
EXITED_EVENT = "vitamin.exited"

StatusSink = Callable[[str], None]

_CONTAINED = (GrammarError, ActionError, DefinitionError, RegisterNameError)


def _record_status(text: str) -> None:
    telemetry.record_event("status", level="debug", data={"text": text})


class Dispatcher:
    """Feeds keys to the grammar one at a time and contains every failure.

    ``feed`` resets to ``START`` on grammar, action and definition errors;
    ``dispatch`` is the outer net that tears the mode down on anything else.
    """

    def __init__(
        self,
        view: View,
        *,
        registers: RegisterStore | None = None,
        commands: DefinitionTable | None = None,
        motions: DefinitionTable | None = None,
        config: VitaminConfig | None = None,
        prompt: Prompt | None = None,
        status: StatusSink | None = None,
        bus: EventBus | None = None,
        load_defaults: bool = True,
    ) -> None:
        own_tables = commands is None and motions is None
        self.context = Context(
            view=view,
            registers=registers if registers is not None else RegisterStore(),
            commands=commands if commands is not None else DefinitionTable(name="commands"),
            motions=motions if motions is not None else DefinitionTable(name="motions"),
            config=config or VitaminConfig(),
            prompt=prompt,
            bus=bus or EventBus(),
        )
        if load_defaults and own_tables:
            load_default_definitions(self.context.commands, self.context.motions)
        self.context.extras.setdefault("dispatcher", self)
        self.grammar = Grammar(self.context)
        self.grammar.on_prompt_submit = self._prompt_submitted
        self.status = status or _record_status
        self.logger = telemetry.get_logger("vitamin.dispatcher")
        self.command: Optional[Command] = None
        self.last_command: Optional[Command] = None
        self.active = False
        self._state = State.START
        self._source: Optional[KeySource] = None
        self._last_result: Optional[KeyResult] = None

    @property
    def state(self) -> State:
        return self._state

    @property
    def view(self) -> View:
        return self.context.view

    @property
    def commands(self) -> DefinitionTable:
        return self.context.commands

    @property
    def motions(self) -> DefinitionTable:
        return self.context.motions

    @property
    def registers(self) -> RegisterStore:
        return self.context.registers

    @property
    def bus(self) -> EventBus:
        return self.context.bus

    # -- lifecycle ----------------------------------------------------------

    def activate(self) -> None:
        if self.active:
            return
        self.active = True
        self.reset()
        telemetry.record_event("dispatcher.enter")
        self.bus.emit(ENTERED_EVENT, self)

    def connect(self, source: KeySource) -> None:
        """Subscribe to a host key source and enter the mode."""

        if self._source is not None:
            self._source.disconnect(self.handle_key)
        self._source = source
        source.connect(self.handle_key)
        self.activate()

    def teardown(self, reason: str = "exit") -> None:
        """Leave the mode: drop any continuation and unsubscribe from the host."""

        source, self._source = self._source, None
        if source is not None:
            source.disconnect(self.handle_key)
        was_active = self.active
        self.active = False
        self.reset()
        if was_active:
            telemetry.record_event("dispatcher.exit", data={"reason": reason})
            self.bus.emit(EXITED_EVENT, reason)

    def reset(self) -> None:
        self.command = None
        self._state = State.START

    # -- key handling -------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        """Key-press callback for hosts: ``True`` swallows the key.

        Keys arriving after the mode was left are passed through untouched.
        """

        if not self.active:
            return False
        return self.dispatch(key).consumed

    def dispatch(self, key: str) -> KeyResult:
        try:
            return self.feed(key)
        except Exception as exc:
            with suppress(Exception):
                self.logger.exception("dispatcher.crash", key=key)
            with suppress(Exception):
                self._report(f"ERROR: {exc}")
            with suppress(Exception):
                self.teardown(reason="crash")
            return KeyResult(consumed=True, outcome=Outcome.EXITED, message=str(exc))

    def feed(self, key: str) -> KeyResult:
        config = self.context.config
        if key == config.exit_keycode:
            self.teardown()
            return KeyResult(consumed=True, outcome=Outcome.EXITED)
        if key == config.escape_keycode and self._state is not State.INPUT:
            return self.cancel()
        leaf = self.command.pending() if self.command is not None else None
        with telemetry.span(
            "dispatcher::feed",
            component="dispatcher",
            metadata={"key": key, "state": self._state.value},
        ):
            try:
                return self._accept(self.grammar.handle(self._state, leaf, key))
            except _CONTAINED as exc:
                return self._fail(exc)

    def cancel(self) -> KeyResult:
        """Discard the command under construction without side effects."""

        status = self.command.status if self.command is not None else ""
        self.reset()
        telemetry.record_event("dispatcher.cancel", level="debug", data={"status": status})
        self._report("")
        return KeyResult(consumed=True, outcome=Outcome.CANCELLED)

    def prompt_closed(self, text: Optional[str] = None) -> KeyResult:
        """Host notification that the prompt closed without a submit callback."""

        if self.command is None or self._state is not State.PROMPT_WAIT:
            return KeyResult(consumed=False, outcome=Outcome.UNHANDLED, state=self._state)
        return self._resume(self.command.pending(), text or "")

    # -- internals ----------------------------------------------------------

    def _accept(self, result: KeyResult) -> KeyResult:
        self.command = result.command
        self._state = result.state if result.command is not None else State.START
        if result.completed is not None:
            self.last_command = result.completed
        self._last_result = result
        if result.state is State.PROMPT and self.command is not None:
            return self._open_prompt(self.command.pending())
        if result.outcome is not Outcome.UNHANDLED:
            self._report(result.message or "")
        return result

    def _open_prompt(self, leaf: Command) -> KeyResult:
        self._state = State.PROMPT_WAIT
        pending = self.grammar.prompt(leaf)
        if self.command is not None and leaf.needs is State.PROMPT_WAIT:
            self._last_result = pending
            self._report(pending.message or "")
            return pending
        # the host answered synchronously; _resume already settled the state
        assert self._last_result is not None
        return self._last_result

    def _prompt_submitted(self, command: Command, text: str) -> None:
        if self.command is None or self.command.pending() is not command:
            telemetry.record_event("dispatcher.stale_prompt", level="debug")
            return
        if command.needs is not State.PROMPT_WAIT:
            return
        self._resume(command, text)

    def _resume(self, command: Command, text: str) -> KeyResult:
        try:
            with telemetry.span(
                "dispatcher::prompt",
                component="dispatcher",
                metadata={"keycode": command.keycode},
            ):
                try:
                    result = self.grammar.resume_prompt(command, text)
                except _CONTAINED as exc:
                    return self._fail(exc)
                return self._accept(result)
        except Exception as exc:
            with suppress(Exception):
                self._report(f"ERROR: {exc}")
            with suppress(Exception):
                self.teardown(reason="crash")
            result = KeyResult(consumed=True, outcome=Outcome.EXITED, message=str(exc))
            self._last_result = result
            return result

    def _fail(self, exc: Exception) -> KeyResult:
        self.reset()
        message = str(exc)
        telemetry.record_event(
            "dispatcher.error",
            level="warning",
            data={"error": type(exc).__name__, "message": message},
        )
        self._report(f"ERROR: {message}")
        result = KeyResult(consumed=True, outcome=Outcome.ERROR, message=message)
        self._last_result = result
        return result

    def _report(self, text: str) -> None:
        self.status(text)


__all__ = ["Dispatcher", "ENTERED_EVENT", "EXITED_EVENT", "StatusSink"]
