"""Definition records, keycode tables and the built-in vi tables."""

from .models import CONTINUATIONS, OVERRIDABLE_FIELDS, Definition, State
from .table import DefinitionConflictError, DefinitionTable, TableStats
from .defaults import default_commands, default_motions, load_default_definitions

__all__ = [
    "CONTINUATIONS",
    "OVERRIDABLE_FIELDS",
    "Definition",
    "DefinitionConflictError",
    "DefinitionTable",
    "State",
    "TableStats",
    "default_commands",
    "default_motions",
    "load_default_definitions",
]
