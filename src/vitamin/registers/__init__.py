"""Process-wide register (yank buffer) storage."""

from .store import (
    CHAR,
    LINE,
    UNNAMED,
    Register,
    RegisterNameError,
    RegisterStore,
    RegisterValue,
    infer_mode,
    split_lines,
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
