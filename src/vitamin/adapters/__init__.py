"""Host adapters for the vitamin grammar."""

__all__ = ["textual"]
