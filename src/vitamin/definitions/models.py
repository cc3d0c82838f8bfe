"""Declarative command definitions and the grammar states they may await."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

if TYPE_CHECKING:
    from .table import DefinitionTable


class State(str, Enum):
    """Grammar states; a command's ``needs`` is one of the continuation states."""

    START = "start"
    REGISTER = "register"
    COUNT = "count"
    COMMAND = "command"
    ARG = "arg"
    SUBCOMMAND = "subcommand"
    INPUT = "input"
    PROMPT = "prompt"
    PROMPT_WAIT = "prompt_wait"


CONTINUATIONS = frozenset({State.ARG, State.SUBCOMMAND, State.INPUT, State.PROMPT})
OVERRIDABLE_FIELDS = frozenset({"keycode", "count", "register", "argument", "subcommand"})

Action = Callable[..., object]
Hook = Callable[[Any], object]


@dataclass(frozen=True, slots=True)
class Definition:
    """Recipe for one command or motion.

    Every action is called as ``action(view, argument)``. All but the last run
    once; the last runs ``count`` times (or ``repeat`` times when set), then
    ``after`` runs once. ``before`` receives the command and returns the
    ``argument`` handed to the actions. String results are collected into the
    command's register.
    """

    actions: tuple[Action, ...] = ()
    before: Optional[Hook] = None
    after: Optional[Action] = None
    needs: Optional[State] = None
    repeat: Optional[int] = None
    overrides: Mapping[str, object] = field(default_factory=dict)
    table: Optional["DefinitionTable"] = None
    prompt: Optional[str] = None
    chain: Optional[str] = None
    pass_count: bool = False
    numbered: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        actions = tuple(self.actions)
        for action in actions:
            if not callable(action):
                raise TypeError(f"action {action!r} must be callable")
        object.__setattr__(self, "actions", actions)
        for hook_name in ("before", "after"):
            hook = getattr(self, hook_name)
            if hook is not None and not callable(hook):
                raise TypeError(f"{hook_name} must be callable")
        if self.needs is not None:
            needs = State(self.needs)
            if needs not in CONTINUATIONS:
                raise ValueError(f"'{needs.value}' is not a continuation state")
            object.__setattr__(self, "needs", needs)
        if self.table is not None and self.needs is not None:
            raise ValueError("a nested table already awaits its key; drop `needs`")
        if self.repeat is not None and self.repeat < 1:
            raise ValueError("repeat must be positive")
        unknown = set(self.overrides) - OVERRIDABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot override {sorted(unknown)}")
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    @classmethod
    def alias(cls, keycode: str, *, description: str = "", **overrides: object) -> "Definition":
        """Definition that rewrites the command into ``keycode``."""

        return cls(overrides={"keycode": keycode, **overrides}, description=description)

    @property
    def awaits(self) -> Optional[State]:
        if self.table is not None:
            return State.ARG
        return self.needs


__all__ = [
    "Action",
    "CONTINUATIONS",
    "Definition",
    "Hook",
    "OVERRIDABLE_FIELDS",
    "State",
]
