"""Exceptions raised while parsing and evaluating key sequences."""

from __future__ import annotations

from typing import Optional


class GrammarError(RuntimeError):
    """Raised when a key does not fit the grammar at the current state."""

    def __init__(
        self, message: str, *, key: Optional[str] = None, state: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.key = key
        self.state = state


class ActionError(RuntimeError):
    """Raised when an action cannot be carried out; aborts the whole command."""

    def __init__(self, message: str, *, keycode: Optional[str] = None) -> None:
        super().__init__(message)
        self.keycode = keycode


class DefinitionError(RuntimeError):
    """Raised when a definition cannot be resolved (alias loops, bad targets)."""

    def __init__(self, message: str, *, keycode: Optional[str] = None) -> None:
        super().__init__(message)
        self.keycode = keycode


__all__ = ["ActionError", "DefinitionError", "GrammarError"]
