"""Actions invoked by definitions as ``action(view, argument)``.

Actions return the text an operator captured (collected into the register)
or ``None``.
"""

from . import editing, marks, motions, search

__all__ = ["editing", "marks", "motions", "search"]
