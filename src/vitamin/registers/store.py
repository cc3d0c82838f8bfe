"""Register storage with vi naming rules and line-ending portability."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, NamedTuple, Optional

from vitamin.runtime import telemetry

UNNAMED = '"'
CHAR = "char"
LINE = "line"

_TERMINATOR = re.compile(r"\r\n|\n|\r")
_RING = tuple(str(slot) for slot in range(1, 10))


class RegisterNameError(ValueError):
    """Raised when a register name is not a single printable character."""

    def __init__(self, name: object) -> None:
        super().__init__(f"Invalid register name {name!r}")
        self.name = name


class RegisterValue(NamedTuple):
    text: str
    mode: str


def infer_mode(text: str) -> str:
    return LINE if _TERMINATOR.search(text) else CHAR


def split_lines(text: str) -> List[str]:
    return _TERMINATOR.split(text)


@dataclass(slots=True)
class Register:
    """Text held as a list of lines so it can be re-joined with any EOL."""

    name: str
    lines: List[str] = field(default_factory=lambda: [""])
    mode: str = CHAR

    @property
    def empty(self) -> bool:
        return self.mode == CHAR and self.lines == [""]

    def text(self, eol: str = "\n") -> str:
        body = eol.join(self.lines)
        if self.mode == LINE:
            return body + eol
        return body

    def value(self, eol: str = "\n") -> RegisterValue:
        return RegisterValue(self.text(eol), self.mode)

    def assign(self, text: str) -> None:
        mode = infer_mode(text)
        lines = split_lines(text)
        if mode == LINE and len(lines) > 1 and lines[-1] == "":
            lines.pop()
        self.lines = lines
        self.mode = mode

    def extend(self, text: str) -> None:
        if self.empty:
            self.assign(text)
            return
        if self.mode == CHAR and infer_mode(text) == CHAR:
            self.lines[-1] += text
            return
        incoming = Register(self.name)
        incoming.assign(text)
        self.lines = self.lines + incoming.lines
        self.mode = LINE

    def copy_from(self, other: "Register") -> None:
        self.lines = list(other.lines)
        self.mode = other.mode

    def clear(self) -> None:
        self.lines = [""]
        self.mode = CHAR


class RegisterStore:
    """Tracks unnamed, named, and numbered registers.

    Uppercase names alias their lowercase register and append on write.
    Registers ``1``-``9`` form a ring: writing slot ``n`` pushes ``n``..``8``
    one place toward ``9`` (dropping ``9``) before storing into ``n``.
    Register ``0`` is an ordinary register outside the ring.
    """

    def __init__(self) -> None:
        self._registers: Dict[str, Register] = {}
        self.get(UNNAMED)
        for slot in range(10):
            self.get(str(slot))

    @staticmethod
    def validate(name: Optional[str]) -> str:
        if name is None or name == "":
            return UNNAMED
        if not isinstance(name, str) or len(name) != 1 or not name.isprintable():
            raise RegisterNameError(name)
        if name.isspace():
            raise RegisterNameError(name)
        return name

    @staticmethod
    def is_append(name: Optional[str]) -> bool:
        return bool(name) and name.isalpha() and name.isupper()  # type: ignore[union-attr]

    def get(self, name: Optional[str] = None) -> Register:
        key = self.validate(name)
        if self.is_append(key):
            key = key.lower()
        register = self._registers.get(key)
        if register is None:
            register = Register(key)
            self._registers[key] = register
        return register

    def read(self, name: Optional[str] = None, *, eol: str = "\n") -> RegisterValue:
        return self.get(name).value(eol)

    def write(self, name: Optional[str], text: str) -> Register:
        key = self.validate(name)
        if self.is_append(key):
            return self.append(key, text)
        if key in _RING:
            return self._insert_numbered(int(key), text)
        register = self.get(key)
        register.assign(text)
        self._trace("register.write", register)
        return register

    def append(self, name: str, text: str) -> Register:
        register = self.get(name)
        register.extend(text)
        self._trace("register.append", register)
        return register

    def shift(self, text: str) -> Register:
        return self._insert_numbered(1, text)

    def record(
        self, name: Optional[str], text: str, *, numbered: bool = False
    ) -> Register:
        """Store a command result and mirror it into the unnamed register."""

        target = self.validate(name)
        if target != UNNAMED:
            self.write(target, text)
        elif numbered:
            self.shift(text)
        unnamed = self.get(UNNAMED)
        unnamed.assign(text)
        self._trace("register.record", unnamed, source=target)
        return unnamed

    def names(self) -> Iterator[str]:
        return iter(sorted(self._registers))

    def serialize(self) -> Mapping[str, RegisterValue]:
        return {name: reg.value() for name, reg in self._registers.items()}

    def load(self, data: Mapping[str, RegisterValue]) -> None:
        for name, value in data.items():
            register = self.get(name)
            register.assign(value.text)
            if value.mode == LINE:
                register.mode = LINE

    def _insert_numbered(self, slot: int, text: str) -> Register:
        for index in range(9, slot, -1):
            self.get(str(index)).copy_from(self.get(str(index - 1)))
        register = self.get(str(slot))
        register.assign(text)
        self._trace("register.shift", register)
        return register

    @staticmethod
    def _trace(event: str, register: Register, **extra: object) -> None:
        telemetry.record_event(
            event,
            level="debug",
            data={"register": register.name, "mode": register.mode, **extra},
        )


__all__ = [
    "CHAR",
    "LINE",
    "UNNAMED",
    "Register",
    "RegisterNameError",
    "RegisterStore",
    "RegisterValue",
    "infer_mode",
    "split_lines",
]
