"""Mutable keycode -> Definition tables exposed for runtime remapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, MutableMapping, Optional, Tuple

from vitamin.runtime.telemetry import span

from .models import Definition


@dataclass(slots=True)
class TableStats:
    """Lightweight snapshot describing a table."""

    name: str
    definition_count: int
    revision: int


class DefinitionConflictError(RuntimeError):
    """Raised when registering a keycode that is already defined."""

    def __init__(self, table: str, keycode: str) -> None:
        super().__init__(f"Keycode '{keycode}' is already defined in '{table}'")
        self.table = table
        self.keycode = keycode


class DefinitionTable(MutableMapping[str, Definition]):
    """Keycode lookup read at dispatch time; edits apply to the next lookup."""

    def __init__(
        self,
        entries: Optional[Iterable[Tuple[str, Definition]]] = None,
        *,
        name: str = "commands",
        logger_name: str | None = None,
    ) -> None:
        self.name = name
        self._entries: Dict[str, Definition] = {}
        self._logger_name = logger_name
        self._revision = 0
        for keycode, definition in entries or ():
            self._store(keycode, definition)

    def __repr__(self) -> str:
        return f"DefinitionTable(name={self.name!r}, size={len(self)})"

    def __getitem__(self, keycode: str) -> Definition:
        return self._entries[keycode]

    def __setitem__(self, keycode: str, definition: Definition) -> None:
        with span(
            "definitions::set",
            logger_name=self._logger_name,
            component="definitions",
            metadata={"table": self.name, "keycode": keycode},
        ):
            self._store(keycode, definition)
            self._revision += 1

    def __delitem__(self, keycode: str) -> None:
        with span(
            "definitions::delete",
            logger_name=self._logger_name,
            component="definitions",
            metadata={"table": self.name, "keycode": keycode},
        ):
            del self._entries[keycode]
            self._revision += 1

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def revision(self) -> int:
        return self._revision

    def register(
        self, keycode: str, definition: Definition, *, replace: bool = False
    ) -> Definition:
        if not replace and keycode in self._entries:
            raise DefinitionConflictError(self.name, keycode)
        self[keycode] = definition
        return definition

    def alias(self, keycode: str, target: str, **overrides: object) -> Definition:
        """Define ``keycode`` as ``target`` with optional forced fields."""

        if target not in self._entries:
            raise KeyError(f"Cannot alias unknown keycode '{target}'")
        definition = Definition.alias(
            target, description=f"alias of {target}", **overrides
        )
        self[keycode] = definition
        return definition

    def remap(self, old: str, new: str) -> Definition:
        """Move the definition bound to ``old`` onto ``new``."""

        definition = self._entries[old]
        self[new] = definition
        del self[old]
        return definition

    def stats(self) -> TableStats:
        return TableStats(
            name=self.name,
            definition_count=len(self._entries),
            revision=self._revision,
        )

    def _store(self, keycode: str, definition: Definition) -> None:
        if not isinstance(keycode, str) or not keycode:
            raise ValueError("keycode must be a non-empty string")
        if not isinstance(definition, Definition):
            raise TypeError(f"'{keycode}' must map to a Definition")
        self._entries[keycode] = definition


__all__ = ["DefinitionConflictError", "DefinitionTable", "TableStats"]
