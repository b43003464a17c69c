"""Single-byte control characters that move the cursor.

Only carriage return, backspace and horizontal tab have a cursor effect.
Line feed never reaches this module: the normalizer splits on it before
replaying a segment.
"""

from .line_buffer import LineBuffer

BS = '\x08'
TAB = '\x09'
LF = '\x0a'
CR = '\x0d'
ESC = '\x1b'
DEL = '\x7f'

DEFAULT_TAB_SIZE = 8

_CURSOR_CONTROLS = frozenset((CR, BS, TAB))


def is_control(char: str) -> bool:
    """Whether ``char`` is a C0 control character or DEL."""
    return char < ' ' or char == DEL


def handle_control(buffer: LineBuffer, char: str, tab_size: int = DEFAULT_TAB_SIZE) -> bool:
    """Apply a cursor control character to ``buffer``.

    Args:
        buffer: Line being replayed.
        char: The control character.
        tab_size: Tab stop width in columns.

    Returns:
        True if ``char`` was one of CR, BS or TAB and has been applied,
        False if it has no cursor effect.
    """
    if char not in _CURSOR_CONTROLS:
        return False

    if char == CR:
        # Content stays; following writes overwrite from column 0
        buffer.move_to(0)
    elif char == BS:
        buffer.move_by(-1)
    else:
        next_stop = (buffer.cursor // tab_size + 1) * tab_size
        while buffer.cursor < next_stop:
            buffer.write(' ')
    return True
