"""Runtime configuration shared by the grammar and its host adapters."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional

ENV_PREFIX = "VITAMIN_"


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool) -> bool:
    raw = env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def env_int(name: str, fallback: int) -> int:
    value = env(name)
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


@dataclass(frozen=True, slots=True)
class VitaminConfig:
    """Keycodes and limits used by the key grammar.

    ``dittos`` maps a repeated operator key (``dd``, ``yy``) to the motion it
    stands for; operators missing from the mapping use ``default_sub``.
    """

    escape_keycode: str = "esc"
    exit_keycode: str = "ctrl+esc"
    register_prefix: str = '"'
    default_prompt: str = "Vitamin:"
    default_sub: str = "_"
    dittos: Mapping[str, str] = field(default_factory=dict)
    max_count: int = 999_999
    max_alias_depth: int = 8

    def __post_init__(self) -> None:
        if not self.escape_keycode or not self.exit_keycode:
            raise ValueError("escape and exit keycodes cannot be empty")
        if self.escape_keycode == self.exit_keycode:
            raise ValueError("escape and exit keycodes must differ")
        if len(self.register_prefix) != 1:
            raise ValueError("register_prefix must be a single character")
        if self.max_count < 1:
            raise ValueError("max_count must be positive")
        object.__setattr__(self, "dittos", MappingProxyType(dict(self.dittos)))

    def ditto_for(self, keycode: str) -> str:
        return self.dittos.get(keycode, self.default_sub)

    @classmethod
    def from_env(cls, **overrides: object) -> "VitaminConfig":
        base = cls()
        config = replace(
            base,
            escape_keycode=env("ESCAPE_KEY") or base.escape_keycode,
            exit_keycode=env("EXIT_KEY") or base.exit_keycode,
            default_prompt=env("PROMPT") or base.default_prompt,
            max_count=max(1, env_int("MAX_COUNT", base.max_count)),
        )
        if overrides:
            config = replace(config, **overrides)
        return config


__all__ = ["ENV_PREFIX", "VitaminConfig", "env", "env_flag", "env_int"]
