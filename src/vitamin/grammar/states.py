"""The key grammar: one handler per state, each consuming a single key."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from vitamin.definitions import State
from vitamin.errors import ActionError, DefinitionError, GrammarError
from vitamin.registers import RegisterNameError, RegisterStore
from vitamin.runtime import telemetry

from .base import Context, KeyResult, Outcome
from .command import Command

Handler = Callable[[Command, str], KeyResult]

DIGITS = "0123456789"
NAMED_CHARS = {"space": " ", "tab": "\t"}
INPUT_CHARS = {**NAMED_CHARS, "enter": "\n"}


def _is_digit(key: str) -> bool:
    return len(key) == 1 and key in DIGITS


class Grammar:
    """Parses ``["reg][count]command[motion|arg|text]`` a key at a time.

    Handlers receive the innermost command awaiting input (``start`` takes
    only the key) and return a :class:`KeyResult` naming the next state.
    """

    def __init__(self, context: Context) -> None:
        self.context = context
        self.logger = telemetry.get_logger("vitamin.grammar")
        self.on_prompt_submit: Optional[Callable[[Command, str], None]] = None
        self._handlers: Dict[State, Handler] = {
            State.REGISTER: self.register,
            State.COUNT: self.count,
            State.COMMAND: self.command,
            State.ARG: self.arg,
            State.SUBCOMMAND: self.subcommand,
            State.INPUT: self.input,
            State.PROMPT: self.prompt_key,
            State.PROMPT_WAIT: self.prompt_wait,
        }

    def handle(self, state: State, command: Optional[Command], key: str) -> KeyResult:
        if state is State.START:
            return self.start(key)
        if command is None:
            raise GrammarError(f"no command awaits '{key}'", key=key, state=state.value)
        return self._handlers[state](command, key)

    def new_command(self) -> Command:
        return Command(table=self.context.commands, registers=self.context.registers)

    # -- states -------------------------------------------------------------

    def start(self, key: str) -> KeyResult:
        command = self.new_command()
        if key == self.context.config.register_prefix:
            command.echo(key)
            return self._pending(command, State.REGISTER)
        if _is_digit(key) and key != "0":
            return self.count(command, key)
        return self.command(command, key)

    def register(self, command: Command, key: str) -> KeyResult:
        try:
            name = RegisterStore.validate(key)
        except RegisterNameError:
            raise GrammarError(
                f"invalid register name {key!r}", key=key, state=State.REGISTER.value
            ) from None
        command.register = name
        command.echo(key)
        return self._pending(command, State.COUNT)

    def count(self, command: Command, key: str) -> KeyResult:
        if not _is_digit(key) or (key == "0" and command.count is None):
            return self.command(command, key)
        total = (command.count or 0) * 10 + int(key)
        command.count = min(total, self.context.config.max_count)
        command.echo(key)
        return self._pending(command, State.COUNT)

    def command(self, command: Command, key: str) -> KeyResult:
        keycode = key
        parent = command.parent
        if parent is not None and key == parent.keycode:
            keycode = self.context.config.ditto_for(key)
        definition = command.table.get(keycode)
        if definition is None:
            if parent is None and command.register is None and command.count is None:
                telemetry.record_event("grammar.unhandled", level="debug", data={"key": key})
                return KeyResult(consumed=False, outcome=Outcome.UNHANDLED)
            raise GrammarError(
                f"'{key}' is not defined in {command.table.name}",
                key=key,
                state=State.COMMAND.value,
            )
        command.echo(key)
        command.bind(keycode, definition)
        return self.advance(command)

    def arg(self, command: Command, key: str) -> KeyResult:
        char = NAMED_CHARS.get(key, key)
        if len(char) != 1 or not (char.isprintable() or char == "\t"):
            raise GrammarError(
                f"'{command.keycode}' needs a character, got '{key}'",
                key=key,
                state=State.ARG.value,
            )
        command.argument = char
        command.echo(key)
        command.satisfy(State.ARG)
        return self.advance(command)

    def subcommand(self, command: Command, key: str) -> KeyResult:
        child = Command(table=self.context.motions, registers=self.context.registers)
        child.attach(command)
        child.register = command.register
        return self.count(child, key)

    def input(self, command: Command, key: str) -> KeyResult:
        """Collect typed text; the host still inserts every key itself."""

        if key == self.context.config.escape_keycode:
            command.satisfy(State.INPUT)
            return self.advance(command)
        typed = command.text or ""
        if key == "backspace":
            typed = typed[:-1]
        else:
            char = INPUT_CHARS.get(key, key)
            if len(char) == 1:
                typed += char
        command.text = typed
        return KeyResult(
            consumed=False,
            outcome=Outcome.PENDING,
            state=State.INPUT,
            message=command.root().status,
            command=command.root(),
        )

    def prompt_key(self, command: Command, key: str) -> KeyResult:
        return self.prompt(command)

    def prompt(self, command: Command) -> KeyResult:
        """Hand over to the host prompt; resumption arrives via ``resume_prompt``."""

        host = self.context.prompt
        if host is None:
            raise ActionError("no prompt available", keycode=command.keycode)
        definition = command.definition
        label = (definition.prompt if definition else None) or self.context.config.default_prompt
        command.needs = State.PROMPT_WAIT
        telemetry.record_event(
            "grammar.prompt", level="debug", data={"keycode": command.keycode, "label": label}
        )
        host.run(label, self._submitter(command))
        return self._pending(command, State.PROMPT_WAIT)

    def prompt_wait(self, command: Command, key: str) -> KeyResult:
        host = self.context.prompt
        if host is not None and host.active:
            return KeyResult(
                consumed=False,
                outcome=Outcome.PENDING,
                state=State.PROMPT_WAIT,
                command=command.root(),
            )
        result = self.resume_prompt(command, "")
        result.consumed = True
        return result

    def resume_prompt(self, command: Command, text: str) -> KeyResult:
        command.argument = text
        command.root().status += text
        command.satisfy(State.PROMPT)
        command.satisfy(State.PROMPT_WAIT)
        return self.advance(command)

    def _submitter(self, command: Command) -> Callable[[str], None]:
        def submit(text: Optional[str]) -> None:
            if self.on_prompt_submit is not None:
                self.on_prompt_submit(command, text or "")

        return submit

    # -- evaluation ---------------------------------------------------------

    def advance(self, command: Command, *, depth: int = 0) -> KeyResult:
        root = command.root()
        outcome = command.evaluate(self.context)
        if outcome is Outcome.COMPLETE:
            return self._finish(root, depth=depth)
        leaf = root.pending()
        state = leaf.needs or State.START
        telemetry.record_event(
            "grammar.pending",
            level="debug",
            data={"keycode": leaf.keycode, "state": state.value},
        )
        return self._pending(root, state)

    def _finish(self, root: Command, *, depth: int) -> KeyResult:
        self.context.bus.emit("command.complete", root)
        telemetry.record_event(
            "command.complete",
            level="debug",
            data={"keycode": root.keycode, "count": root.count, "register": root.register},
        )
        definition = root.definition
        if definition is not None and definition.chain:
            result = self._chain(root, definition.chain, depth=depth + 1)
            if result.completed is None:
                result.completed = root
            return result
        return KeyResult(
            consumed=True,
            outcome=Outcome.COMPLETE,
            state=State.START,
            message=root.status,
            completed=root,
        )

    def _chain(self, root: Command, keycode: str, *, depth: int) -> KeyResult:
        if depth > self.context.config.max_alias_depth:
            raise DefinitionError(f"chain through '{keycode}' is too deep", keycode=keycode)
        definition = self.context.commands.get(keycode)
        if definition is None:
            raise DefinitionError(
                f"'{root.keycode}' chains to unknown keycode '{keycode}'",
                keycode=root.keycode,
            )
        follow = self.new_command()
        if root.definition is not None and not root.definition.pass_count:
            follow.count = root.count
        follow.status = root.status
        follow.bind(keycode, definition)
        return self.advance(follow, depth=depth)

    @staticmethod
    def _pending(command: Command, state: State) -> KeyResult:
        return KeyResult(
            consumed=True,
            outcome=Outcome.PENDING,
            state=state,
            message=command.root().status,
            command=command.root(),
        )


__all__ = ["DIGITS", "Grammar", "INPUT_CHARS", "NAMED_CHARS"]
