"""One-dimensional render buffer with a cursor.

Each physical line of captured output is replayed into its own
``LineBuffer``. Printable characters overwrite-or-append at the cursor;
cursor moves never pad on their own. Padding happens lazily on the next
write, so a large forward jump with nothing written after it costs nothing.
"""

from typing import List


class LineBuffer:
    """Mutable character sequence plus a zero-based cursor offset.

    The cursor may sit past the end of the buffer. Writes pad the gap
    with spaces first, which is how cursor-forward and tab output end up
    as visible blanks.
    """

    def __init__(self) -> None:
        self._chars: List[str] = []
        self.cursor = 0
        self.saved_cursor = 0

    def __len__(self) -> int:
        return len(self._chars)

    def __str__(self) -> str:
        return ''.join(self._chars)

    def __repr__(self) -> str:
        return f"LineBuffer({str(self)!r}, cursor={self.cursor})"

    # --- Writing ---

    def write(self, char: str) -> None:
        """Write one character at the cursor and advance it.

        Overwrites when the cursor is inside the buffer, appends when it
        sits at the end, and pads with spaces up to the cursor first when
        it sits beyond the end.
        """
        length = len(self._chars)
        if self.cursor < length:
            self._chars[self.cursor] = char
        else:
            if self.cursor > length:
                self._chars.extend(' ' * (self.cursor - length))
            self._chars.append(char)
        self.cursor += 1

    # --- Cursor movement ---

    def move_to(self, column: int) -> None:
        """Place the cursor at an absolute zero-based column (clamped at 0)."""
        self.cursor = max(0, column)

    def move_by(self, delta: int) -> None:
        """Move the cursor relative to its position (clamped at 0)."""
        self.cursor = max(0, self.cursor + delta)

    def save_cursor(self) -> None:
        self.saved_cursor = self.cursor

    def restore_cursor(self) -> None:
        self.cursor = self.saved_cursor

    # --- Erasing and shifting ---

    def erase_in_line(self, mode: int = 0) -> None:
        """Erase part of the line.

        Args:
            mode: 0 truncates at the cursor, 1 removes everything from the
                start through the cursor and shifts the rest to the start,
                2 clears the whole line and homes the cursor. Other values
                are ignored.
        """
        if mode == 0:
            del self._chars[self.cursor:]
        elif mode == 1:
            del self._chars[:self.cursor + 1]
        elif mode == 2:
            self._chars.clear()
            self.cursor = 0

    def erase_chars(self, count: int) -> None:
        """Blank up to ``count`` existing characters at the cursor in place."""
        end = min(len(self._chars), self.cursor + count)
        for index in range(self.cursor, end):
            self._chars[index] = ' '

    def insert_blanks(self, count: int) -> None:
        """Insert ``count`` spaces at the cursor, shifting the rest right.

        The cursor does not move. A cursor past the end of the buffer is
        padded up to first so the blanks land where the cursor is.
        """
        if count <= 0:
            return
        length = len(self._chars)
        if self.cursor > length:
            self._chars.extend(' ' * (self.cursor - length))
        self._chars[self.cursor:self.cursor] = [' '] * count

    def delete_chars(self, count: int) -> None:
        """Remove up to ``count`` characters at the cursor, shifting left."""
        if count <= 0:
            return
        del self._chars[self.cursor:self.cursor + count]

    # --- Output ---

    def render(self) -> str:
        """Return the visible text: the buffer without trailing blanks."""
        return ''.join(self._chars).rstrip(' ')
