"""ANSI/VT escape sequence interpreter for captured shell output.

Escape sequences are parsed once into an ``EscapeSequence`` (command plus
numeric parameters) and then applied to a ``LineBuffer``. Only sequences
with a one-dimensional cursor or line effect change the buffer; styling
(SGR), row movement and everything unrecognised is consumed silently so
that no raw ESC/CSI bytes ever reach rendered text.

Grammar (ECMA-48):
- CSI: ESC [ params(0x30-0x3F)* intermediates(0x20-0x2F)* final(0x40-0x7E)
- OSC and other strings: ESC ] (or P, X, ^, _) ... BEL | ESC \\
- Other escapes: ESC intermediates(0x20-0x2F)* final(0x30-0x7E)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .control import ESC
from .line_buffer import LineBuffer

BEL = '\x07'

# Numeric parameters are clamped so a garbled sequence cannot request an
# absurd amount of padding on the next write.
MAX_PARAM = 65535

_PRIVATE_MARKERS = '<=>?'

# OSC, DCS, SOS, PM and APC carry a payload terminated by BEL or ST (ESC \\)
_STRING_INTRODUCERS = ']PX^_'


class CsiCommand(Enum):
    """Escape commands the interpreter knows about, keyed by final byte."""

    CURSOR_UP = 'A'
    CURSOR_DOWN = 'B'
    CURSOR_FORWARD = 'C'
    CURSOR_BACKWARD = 'D'
    CURSOR_COLUMN = 'G'
    CURSOR_POSITION = 'H'
    CURSOR_POSITION_HV = 'f'
    ERASE_IN_DISPLAY = 'J'
    ERASE_IN_LINE = 'K'
    ERASE_CHARS = 'X'
    INSERT_CHARS = '@'
    DELETE_CHARS = 'P'
    SELECT_GRAPHIC_RENDITION = 'm'
    SAVE_CURSOR = 's'
    RESTORE_CURSOR = 'u'


_CSI_COMMANDS = {command.value: command for command in CsiCommand}

# Two-byte escapes with a cursor effect: DEC save/restore (ESC 7 / ESC 8)
# and the ESC s / ESC u spelling some devices send.
_SHORT_ESCAPES = {
    '7': CsiCommand.SAVE_CURSOR,
    '8': CsiCommand.RESTORE_CURSOR,
    's': CsiCommand.SAVE_CURSOR,
    'u': CsiCommand.RESTORE_CURSOR,
}


@dataclass
class EscapeSequence:
    """A parsed escape sequence.

    Attributes:
        length: Number of characters consumed, counting the ESC. Always >= 1.
        command: The recognised command, or None when the sequence has no
            buffer effect (unknown final byte, private or malformed).
        params: Positional numeric parameters; None marks an empty or
            non-numeric position, which takes the command's default.
        final: The final byte, or '' when the sequence never terminated.
        private: True for CSI sequences with a private marker (e.g. ``?25h``).
    """
    length: int
    command: Optional[CsiCommand] = None
    params: List[Optional[int]] = field(default_factory=list)
    final: str = ''
    private: bool = False

    def param(self, index: int, default: int) -> int:
        """Parameter at ``index``, or ``default`` when omitted or empty."""
        if index < len(self.params) and self.params[index] is not None:
            return self.params[index]
        return default


def _parse_params(raw: str) -> List[Optional[int]]:
    if not raw:
        return []
    params: List[Optional[int]] = []
    for part in raw.split(';'):
        if part.isdigit():
            params.append(min(int(part), MAX_PARAM))
        else:
            params.append(None)
    return params


def _parse_csi(text: str, start: int) -> EscapeSequence:
    end = len(text)
    i = start + 2
    while i < end and '0' <= text[i] <= '?':
        i += 1
    raw_params = text[start + 2:i]
    params_end = i
    while i < end and ' ' <= text[i] <= '/':
        i += 1
    has_intermediates = i > params_end

    if i >= end:
        # Unterminated: everything left belongs to the sequence
        return EscapeSequence(length=end - start)

    final = text[i]
    if not '@' <= final <= '~':
        # Interrupted by a byte that cannot continue a CSI; resume there
        return EscapeSequence(length=i - start)

    private = bool(raw_params) and raw_params[0] in _PRIVATE_MARKERS
    command = None
    if not private and not has_intermediates:
        command = _CSI_COMMANDS.get(final)
    return EscapeSequence(
        length=i + 1 - start,
        command=command,
        params=[] if private else _parse_params(raw_params),
        final=final,
        private=private,
    )


def _parse_control_string(text: str, start: int) -> EscapeSequence:
    i = start + 2
    end = len(text)
    while i < end:
        if text[i] == BEL:
            return EscapeSequence(length=i + 1 - start, final=BEL)
        if text[i] == ESC and i + 1 < end and text[i + 1] == '\\':
            return EscapeSequence(length=i + 2 - start, final='\\')
        i += 1
    return EscapeSequence(length=end - start)


def parse_escape(text: str, start: int) -> EscapeSequence:
    """Parse the escape sequence beginning at ``text[start]`` (an ESC).

    Never raises. Truncated or malformed input yields a sequence with no
    command whose ``length`` covers only the bytes that cannot be printable
    output; at minimum the ESC itself is consumed.
    """
    end = len(text)
    if start + 1 >= end:
        return EscapeSequence(length=1)

    intro = text[start + 1]
    if intro == '[':
        return _parse_csi(text, start)
    if intro in _STRING_INTRODUCERS:
        return _parse_control_string(text, start)
    if intro in _SHORT_ESCAPES:
        return EscapeSequence(length=2, command=_SHORT_ESCAPES[intro], final=intro)

    # nF escapes such as charset designation (ESC ( B): intermediates then final
    i = start + 1
    while i < end and ' ' <= text[i] <= '/':
        i += 1
    if i < end and '0' <= text[i] <= '~':
        return EscapeSequence(length=i + 1 - start, final=text[i])
    return EscapeSequence(length=i - start)


def apply_escape(buffer: LineBuffer, seq: EscapeSequence) -> None:
    """Apply a parsed escape sequence to ``buffer``.

    Row addressing is not modelled: cursor up/down are no-ops and only the
    column part of a cursor position is honoured.
    """
    command = seq.command
    if command is None:
        return

    if command is CsiCommand.CURSOR_FORWARD:
        buffer.move_by(seq.param(0, 1))
    elif command is CsiCommand.CURSOR_BACKWARD:
        buffer.move_by(-seq.param(0, 1))
    elif command is CsiCommand.CURSOR_COLUMN:
        buffer.move_to(seq.param(0, 1) - 1)
    elif command in (CsiCommand.CURSOR_POSITION, CsiCommand.CURSOR_POSITION_HV):
        # row;col - the row is parsed but ignored
        buffer.move_to(seq.param(1, 1) - 1)
    elif command is CsiCommand.ERASE_IN_LINE:
        buffer.erase_in_line(seq.param(0, 0))
    elif command is CsiCommand.ERASE_IN_DISPLAY:
        mode = seq.param(0, 0)
        buffer.erase_in_line(2 if mode == 3 else mode)
    elif command is CsiCommand.ERASE_CHARS:
        buffer.erase_chars(seq.param(0, 1))
    elif command is CsiCommand.INSERT_CHARS:
        buffer.insert_blanks(seq.param(0, 1))
    elif command is CsiCommand.DELETE_CHARS:
        buffer.delete_chars(seq.param(0, 1))
    elif command is CsiCommand.SAVE_CURSOR:
        buffer.save_cursor()
    elif command is CsiCommand.RESTORE_CURSOR:
        buffer.restore_cursor()
    # CURSOR_UP, CURSOR_DOWN and SELECT_GRAPHIC_RENDITION: no line effect


def strip_ansi(text: Optional[str]) -> Optional[str]:
    """Remove escape sequences from ``text`` without interpreting them.

    Uses the same grammar as ``parse_escape``, so anything the normalizer
    would consume is removed here too. Other characters, including CR and
    backspace, are left alone.

    Args:
        text: Raw terminal output potentially containing ANSI codes.

    Returns:
        Text with all escape sequences removed; None and '' pass through.
    """
    if not text or ESC not in text:
        return text

    parts = []
    pos = 0
    while True:
        index = text.find(ESC, pos)
        if index < 0:
            parts.append(text[pos:])
            break
        parts.append(text[pos:index])
        pos = index + parse_escape(text, index).length
    return ''.join(parts)
