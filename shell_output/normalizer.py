"""Render captured terminal output into the text a user would see.

The input is split on line feeds into segments. Each segment is replayed
through its own ``LineBuffer``: escape sequences go to the interpreter in
``ansi``, CR/BS/TAB to ``control``, printable characters are written at
the cursor. Rendered segments are joined with CR LF.

Usage:
    from shell_output.normalizer import normalize

    normalize("Progress: 50%\\rProgress: 100%")   # 'Progress: 100%'
    normalize("A\\tB", tab_size=4)                # 'A   B'
"""

from typing import Optional

from .ansi import apply_escape, parse_escape
from .control import DEFAULT_TAB_SIZE, ESC, LF, handle_control, is_control
from .line_buffer import LineBuffer

LINE_TERMINATOR = '\r\n'


def render_segment(segment: str, tab_size: int = DEFAULT_TAB_SIZE) -> str:
    """Replay one line-feed-free segment and return its visible text.

    Args:
        segment: Raw characters of a single physical line.
        tab_size: Tab stop width in columns.

    Returns:
        The rendered line with trailing blanks removed.
    """
    buffer = LineBuffer()
    i = 0
    end = len(segment)
    while i < end:
        char = segment[i]
        if char == ESC:
            seq = parse_escape(segment, i)
            apply_escape(buffer, seq)
            i += seq.length
            continue
        if is_control(char):
            # Controls without a cursor effect (BEL, FF, DEL, ...) render nothing
            handle_control(buffer, char, tab_size)
        else:
            buffer.write(char)
        i += 1
    return buffer.render()


def normalize(text: Optional[str], tab_size: int = DEFAULT_TAB_SIZE) -> Optional[str]:
    """Normalize raw terminal output.

    Args:
        text: Raw captured output; may contain CR, BS, TAB and ANSI/VT
            escape sequences.
        tab_size: Tab stop width in columns (default 8).

    Numeric escape parameters are clamped to ``ansi.MAX_PARAM`` (65535), so
    ``ESC[99999C`` moves the cursor 65535 columns, not 99999.

    Returns:
        The rendered text with segments joined by CR LF. None and '' are
        returned unchanged.

    Raises:
        ValueError: If tab_size is less than 1.
    """
    if tab_size < 1:
        raise ValueError(f"tab_size must be >= 1, got {tab_size}")
    if not text:
        return text

    return LINE_TERMINATOR.join(
        render_segment(segment, tab_size) for segment in text.split(LF)
    )
