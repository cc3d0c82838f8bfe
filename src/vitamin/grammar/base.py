"""Shared result types, event bus, and evaluation context."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional

from vitamin.config import VitaminConfig
from vitamin.definitions import DefinitionTable, State
from vitamin.host import Prompt, View
from vitamin.registers import RegisterStore

if TYPE_CHECKING:
    from .command import Command


class Outcome(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    UNHANDLED = "unhandled"
    CANCELLED = "cancelled"
    ERROR = "error"
    EXITED = "exited"


@dataclass(slots=True)
class KeyResult:
    """Result of feeding one key to the grammar.

    ``command`` is the top-level command still in flight (``None`` once the
    sentence completed or was discarded); ``completed`` is set on the key that
    finished a command.
    """

    consumed: bool
    outcome: Outcome
    state: State = State.START
    message: Optional[str] = None
    command: Optional["Command"] = None
    completed: Optional["Command"] = None


class EventBus:
    """Minimal event bus for mode and command notifications."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[[object], None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


@dataclass(slots=True)
class Context:
    """Services every state and command evaluation can reach."""

    view: View
    registers: RegisterStore
    commands: DefinitionTable
    motions: DefinitionTable
    config: VitaminConfig = field(default_factory=VitaminConfig)
    prompt: Optional[Prompt] = None
    bus: EventBus = field(default_factory=EventBus)
    extras: Dict[str, object] = field(default_factory=dict)


__all__ = ["Context", "EventBus", "KeyResult", "Outcome"]
