"""Key grammar: command objects, the state machine and the dispatcher."""

from vitamin.definitions import State
from vitamin.errors import ActionError, DefinitionError, GrammarError

from .base import Context, EventBus, KeyResult, Outcome
from .command import Command
from .dispatcher import ENTERED_EVENT, EXITED_EVENT, Dispatcher, StatusSink
from .states import Grammar

__all__ = [
    "ActionError",
    "Command",
    "Context",
    "DefinitionError",
    "Dispatcher",
    "ENTERED_EVENT",
    "EXITED_EVENT",
    "EventBus",
    "Grammar",
    "GrammarError",
    "KeyResult",
    "Outcome",
    "State",
    "StatusSink",
]
