"""Cosmetic text buffer with a single cursor, driven by the typing animation."""

from __future__ import annotations


class TypingBuffer:
    """An editable string and a cursor offset into it.

    The cursor is always within ``[0, len(text)]``.  Deleting stops at the
    start of the cursor's line, so a backspace can never run past column 0
    (and therefore never past the start of the buffer).
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._cursor = len(text)

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def column(self) -> int:
        """Cursor offset from the start of its line."""
        line_start = self._text.rfind("\n", 0, self._cursor) + 1
        return self._cursor - line_start

    def line_count(self) -> int:
        return self._text.count("\n") + 1

    def insert(self, chars: str) -> None:
        self._text = self._text[: self._cursor] + chars + self._text[self._cursor :]
        self._cursor += len(chars)

    def delete_before_cursor(self) -> bool:
        """Remove one character before the cursor; returns ``False`` at column 0."""
        if self.column == 0:
            return False
        self._text = self._text[: self._cursor - 1] + self._text[self._cursor :]
        self._cursor -= 1
        return True

    def move_to_end(self) -> None:
        self._cursor = len(self._text)

    def replace(self, text: str) -> None:
        """Replace the whole content; the cursor moves to the end."""
        self._text = text
        self._cursor = len(text)

    def __len__(self) -> int:
        return len(self._text)
