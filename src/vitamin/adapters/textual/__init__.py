"""Textual adapter; the demo app lives in ``vitamin.adapters.textual.app``."""

from .controller import TextualPrompt, TextualUIHooks, TextualVitaminAdapter, normalize_key

__all__ = ["TextualPrompt", "TextualUIHooks", "TextualVitaminAdapter", "normalize_key"]
