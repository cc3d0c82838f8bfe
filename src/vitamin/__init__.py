"""Modal vi command interpreter driven by declarative command definitions."""

__all__ = [
    "actions",
    "adapters",
    "config",
    "definitions",
    "grammar",
    "host",
    "registers",
    "runtime",
]

__version__ = "0.1.0"
