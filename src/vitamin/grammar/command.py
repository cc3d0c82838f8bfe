"""Command objects and the definition evaluation engine."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Optional, Set

from vitamin.definitions import Definition, DefinitionTable, State
from vitamin.errors import ActionError, DefinitionError, GrammarError
from vitamin.registers import Register, RegisterStore
from vitamin.runtime import telemetry

from .base import Context, Outcome


def _key_label(key: str) -> str:
    return key if len(key) == 1 else f"<{key}>"


@dataclass(eq=False)
class Command:
    """One grammar sentence: ``["reg][count]keycode[argument|motion|text]``.

    A command owns its live ``subcommand``; the subcommand only holds a weak
    reference back so the parent can be resumed once the motion finishes.
    """

    table: DefinitionTable
    registers: Optional[RegisterStore] = None
    keycode: Optional[str] = None
    register: Optional[str] = None
    count: Optional[int] = None
    argument: Optional[str] = None
    text: Optional[str] = None
    subcommand: Optional["Command"] = None
    needs: Optional[State] = None
    status: str = ""
    definition: Optional[Definition] = None
    finished: bool = False
    _parent: Optional["weakref.ReferenceType[Command]"] = field(
        default=None, init=False, repr=False
    )
    _satisfied: Set[State] = field(default_factory=set, init=False, repr=False)
    _merged: Optional[Definition] = field(default=None, init=False, repr=False)
    _preset_motion: Optional[str] = field(default=None, init=False, repr=False)
    _carried: list[str] = field(default_factory=list, init=False, repr=False)

    @property
    def parent(self) -> Optional["Command"]:
        return self._parent() if self._parent is not None else None

    @property
    def repetitions(self) -> int:
        return self.count or 1

    def attach(self, parent: "Command") -> None:
        self._parent = weakref.ref(parent)
        parent.subcommand = self

    def detach(self) -> None:
        self._parent = None

    def root(self) -> "Command":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def pending(self) -> "Command":
        """Return the innermost unfinished command awaiting keys."""

        node = self
        while node.subcommand is not None and not node.subcommand.finished:
            node = node.subcommand
        return node

    def echo(self, key: str) -> None:
        label = _key_label(key)
        self.status += label
        parent = self.parent
        if parent is not None:
            parent.root().status += label

    def bind(self, keycode: str, definition: Definition) -> None:
        self.keycode = keycode
        self.definition = definition

    def satisfy(self, state: State) -> None:
        self._satisfied.add(state)
        if self.needs is state:
            self.needs = None

    def register_contents(self) -> Register:
        if self.registers is None:
            raise ActionError("no register store bound", keycode=self.keycode)
        return self.registers.get(self.register)

    def evaluate(self, context: Context) -> Outcome:
        """Run the bound definition, or report which input it still awaits."""

        with telemetry.span(
            "command::evaluate",
            component="grammar",
            metadata={"keycode": self.keycode, "table": self.table.name},
        ) as handle:
            self._resolve(context)
            if self.needs is State.SUBCOMMAND and self._preset_motion is not None:
                keycode, self._preset_motion = self._preset_motion, None
                motion = context.motions.get(keycode)
                if motion is None:
                    raise DefinitionError(
                        f"'{self.keycode}' presets unknown motion '{keycode}'",
                        keycode=self.keycode,
                    )
                child = Command(table=context.motions, registers=self.registers)
                child.attach(self)
                child.register = self.register
                child.bind(keycode, motion)
                handle.add_metadata("preset_motion", keycode)
                return child.evaluate(context)
            if self.needs is not None:
                handle.add_metadata("needs", self.needs.value)
                return Outcome.PENDING
            results = self._execute(context)
        return self._complete(context, results)

    def _resolve(self, context: Context) -> None:
        depth = 0
        while True:
            definition = self.definition
            if definition is None:
                raise GrammarError(f"'{self.keycode}' has no definition", key=self.keycode)
            if definition is not self._merged:
                self._merged = definition
                if self._merge(definition):
                    depth += 1
                    if depth > context.config.max_alias_depth:
                        raise DefinitionError(
                            f"alias chain through '{self.keycode}' is too deep",
                            keycode=self.keycode,
                        )
                    continue
            if definition.table is not None:
                if State.ARG not in self._satisfied:
                    self.needs = State.ARG
                    return
                nested = definition.table.get(self.argument or "")
                if nested is None:
                    raise GrammarError(
                        f"'{self.keycode}{self.argument}' is not defined",
                        key=self.argument,
                        state=State.ARG.value,
                    )
                self.keycode = f"{self.keycode}{self.argument}"
                self.argument = None
                self._satisfied.discard(State.ARG)
                self.definition = nested
                continue
            break
        needs = self.definition.needs
        self.needs = needs if needs is not None and needs not in self._satisfied else None

    def _merge(self, definition: Definition) -> bool:
        for name, value in definition.overrides.items():
            if name == "keycode":
                continue
            if name == "subcommand":
                if self.subcommand is None:
                    self._preset_motion = str(value)
                continue
            setattr(self, name, value)
            if name == "argument":
                self._satisfied.add(State.ARG)
        target = definition.overrides.get("keycode")
        if target is None or target == self.keycode:
            return False
        replacement = self.table.get(str(target))
        if replacement is None:
            raise DefinitionError(
                f"'{self.keycode}' aliases unknown keycode '{target}'",
                keycode=self.keycode,
            )
        self.keycode = str(target)
        self.definition = replacement
        return True

    def _repeat_count(self, definition: Definition) -> int:
        if definition.repeat is not None:
            return definition.repeat
        times = self.repetitions
        parent = self.parent
        if parent is not None and parent.definition is not None:
            if parent.definition.pass_count:
                times *= parent.repetitions
        return times

    def _execute(self, context: Context) -> list[str]:
        definition = self.definition
        assert definition is not None
        view = context.view
        results = list(self._carried)
        try:
            if definition.before is not None:
                argument = definition.before(self)
            else:
                argument = self.argument
            actions = definition.actions
            for action in actions[:-1]:
                _collect(results, action(view, argument))
            if actions:
                last = actions[-1]
                for _ in range(self._repeat_count(definition)):
                    _collect(results, last(view, argument))
            if definition.after is not None:
                _collect(results, definition.after(view, argument))
        except ActionError as exc:
            if exc.keycode is None:
                exc.keycode = self.keycode
            raise
        except Exception as exc:
            raise ActionError(str(exc) or type(exc).__name__, keycode=self.keycode) from exc
        return results

    def _complete(self, context: Context, results: list[str]) -> Outcome:
        self.finished = True
        self.needs = None
        parent = self.parent
        if parent is not None:
            self.detach()
            parent._carried = results
            parent.satisfy(State.SUBCOMMAND)
            return parent.evaluate(context)
        text = "".join(results)
        if text:
            numbered = bool(self.definition and self.definition.numbered)
            context.registers.record(self.register, text, numbered=numbered)
        return Outcome.COMPLETE


def _collect(results: list[str], value: object) -> None:
    if isinstance(value, str) and value:
        results.append(value)


__all__ = ["Command"]
