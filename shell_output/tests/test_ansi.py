"""Tests for escape sequence parsing and stripping."""

import pytest

from shell_output.ansi import MAX_PARAM, CsiCommand, apply_escape, parse_escape, strip_ansi
from shell_output.line_buffer import LineBuffer


class TestStripAnsi:
    """Test ANSI escape code removal."""

    def test_plain_text_unchanged(self):
        assert strip_ansi("hello world") == "hello world"

    def test_empty_string(self):
        assert strip_ansi("") == ""

    def test_none_passes_through(self):
        assert strip_ansi(None) is None

    def test_strip_color_codes(self):
        # Red text: ESC[31m ... ESC[0m
        colored = "\x1b[31mError\x1b[0m: something failed"
        assert strip_ansi(colored) == "Error: something failed"

    def test_strip_bold_and_colors(self):
        text = "\x1b[1;32mSuccess\x1b[0m"
        assert strip_ansi(text) == "Success"

    def test_strip_256_color(self):
        text = "\x1b[38;5;196mRed text\x1b[0m"
        assert strip_ansi(text) == "Red text"

    def test_strip_24bit_color(self):
        text = "\x1b[38;2;255;0;0mRed\x1b[0m"
        assert strip_ansi(text) == "Red"

    def test_strip_cursor_movement(self):
        # Cursor up 3 lines: ESC[3A
        text = "line1\x1b[3Aline2"
        assert strip_ansi(text) == "line1line2"

    def test_strip_erase_line(self):
        text = "partial\x1b[Ktext"
        assert strip_ansi(text) == "partialtext"

    def test_strip_osc_title(self):
        # Window title: ESC]0;title BEL
        text = "\x1b]0;My Terminal\x07prompt$ "
        assert strip_ansi(text) == "prompt$ "

    def test_strip_osc_with_st(self):
        # OSC terminated with ST (ESC \)
        text = "\x1b]0;title\x1b\\prompt$ "
        assert strip_ansi(text) == "prompt$ "

    def test_strip_character_set_designation(self):
        # ESC(B - set character set to ASCII
        text = "\x1b(Bhello"
        assert strip_ansi(text) == "hello"

    def test_strip_simple_escape(self):
        # ESC M - reverse index
        text = "\x1bMhello"
        assert strip_ansi(text) == "hello"

    def test_private_mode_sequences(self):
        # ESC[?25h - show cursor
        text = "\x1b[?25hhello\x1b[?25l"
        assert strip_ansi(text) == "hello"

    def test_prompt_with_escapes(self):
        text = "\x1b[01;32muser@host\x1b[00m:\x1b[01;34m~/project\x1b[00m$ "
        assert strip_ansi(text) == "user@host:~/project$ "

    def test_keeps_carriage_returns_and_backspaces(self):
        # Interpretation is normalize()'s job, not strip_ansi()'s
        text = "50%\r100%\x08!"
        assert strip_ansi(text) == text

    def test_multiline_with_colors(self):
        text = (
            "\x1b[1mheader\x1b[0m\n"
            "\x1b[32m  item 1\x1b[0m\n"
        )
        assert strip_ansi(text) == "header\n  item 1\n"


class TestParseCsi:
    """Test CSI parsing into EscapeSequence."""

    def test_sgr(self):
        seq = parse_escape("\x1b[31m", 0)
        assert seq.length == 5
        assert seq.command is CsiCommand.SELECT_GRAPHIC_RENDITION
        assert seq.params == [31]
        assert seq.final == 'm'

    def test_no_params(self):
        seq = parse_escape("\x1b[K", 0)
        assert seq.command is CsiCommand.ERASE_IN_LINE
        assert seq.params == []
        assert seq.param(0, 0) == 0

    def test_empty_positions_use_default(self):
        seq = parse_escape("\x1b[5;H", 0)
        assert seq.command is CsiCommand.CURSOR_POSITION
        assert seq.params == [5, None]
        assert seq.param(1, 1) == 1

    def test_empty_row_keeps_column(self):
        seq = parse_escape("\x1b[;5H", 0)
        assert seq.params == [None, 5]
        assert seq.param(1, 1) == 5

    def test_parses_at_offset(self):
        seq = parse_escape("ab\x1b[2Kcd", 2)
        assert seq.length == 4
        assert seq.command is CsiCommand.ERASE_IN_LINE

    @pytest.mark.parametrize("final, command", [
        ('A', CsiCommand.CURSOR_UP),
        ('B', CsiCommand.CURSOR_DOWN),
        ('C', CsiCommand.CURSOR_FORWARD),
        ('D', CsiCommand.CURSOR_BACKWARD),
        ('G', CsiCommand.CURSOR_COLUMN),
        ('H', CsiCommand.CURSOR_POSITION),
        ('f', CsiCommand.CURSOR_POSITION_HV),
        ('J', CsiCommand.ERASE_IN_DISPLAY),
        ('K', CsiCommand.ERASE_IN_LINE),
        ('X', CsiCommand.ERASE_CHARS),
        ('@', CsiCommand.INSERT_CHARS),
        ('P', CsiCommand.DELETE_CHARS),
        ('s', CsiCommand.SAVE_CURSOR),
        ('u', CsiCommand.RESTORE_CURSOR),
    ])
    def test_command_letters(self, final, command):
        assert parse_escape(f"\x1b[2{final}", 0).command is command

    def test_unknown_final_is_consumed_without_command(self):
        seq = parse_escape("\x1b[4hX", 0)
        assert seq.length == 4
        assert seq.command is None

    def test_private_marker_has_no_command(self):
        seq = parse_escape("\x1b[?2K", 0)
        assert seq.private
        assert seq.command is None
        assert seq.length == 5

    def test_intermediate_bytes_have_no_command(self):
        # DECSCUSR: ESC [ 2 SP q
        seq = parse_escape("\x1b[2 q", 0)
        assert seq.length == 5
        assert seq.command is None

    def test_unterminated_consumes_rest(self):
        seq = parse_escape("\x1b[12;3", 0)
        assert seq.length == 6
        assert seq.command is None

    def test_interrupted_stops_before_interrupting_byte(self):
        seq = parse_escape("\x1b[12\rX", 0)
        assert seq.length == 4
        assert seq.command is None

    def test_huge_parameter_is_clamped(self):
        seq = parse_escape("\x1b[99999999999C", 0)
        assert seq.params == [MAX_PARAM]

    def test_colon_subparameters_are_not_numeric(self):
        seq = parse_escape("\x1b[38:5:1m", 0)
        assert seq.command is CsiCommand.SELECT_GRAPHIC_RENDITION
        assert seq.params == [None]


class TestParseOtherEscapes:
    """Test non-CSI escapes."""

    def test_lone_esc(self):
        assert parse_escape("\x1b", 0).length == 1

    def test_dec_save_restore(self):
        assert parse_escape("\x1b7", 0).command is CsiCommand.SAVE_CURSOR
        assert parse_escape("\x1b8", 0).command is CsiCommand.RESTORE_CURSOR

    def test_short_save_restore(self):
        assert parse_escape("\x1bs", 0).command is CsiCommand.SAVE_CURSOR
        assert parse_escape("\x1bu", 0).command is CsiCommand.RESTORE_CURSOR

    def test_osc_with_bel(self):
        seq = parse_escape("\x1b]0;title\x07rest", 0)
        assert seq.length == 10
        assert seq.command is None

    def test_unterminated_osc_consumes_rest(self):
        assert parse_escape("\x1b]0;ti", 0).length == 6

    def test_dcs_string(self):
        assert parse_escape("\x1bPq#0\x1b\\X", 0).length == 7

    def test_charset_designation(self):
        assert parse_escape("\x1b(B", 0).length == 3

    def test_esc_before_non_ascii_consumes_only_esc(self):
        assert parse_escape("\x1b\u00e9", 0).length == 1

    def test_esc_before_control_consumes_only_esc(self):
        assert parse_escape("\x1b\r", 0).length == 1


class TestApplyEscape:
    """Test dispatch onto the line buffer."""

    def _buffer(self, text, cursor=None):
        buffer = LineBuffer()
        for char in text:
            buffer.write(char)
        if cursor is not None:
            buffer.cursor = cursor
        return buffer

    def test_sgr_has_no_effect(self):
        buffer = self._buffer("abc")
        apply_escape(buffer, parse_escape("\x1b[1;31m", 0))
        assert str(buffer) == "abc"
        assert buffer.cursor == 3

    def test_cursor_up_has_no_effect(self):
        buffer = self._buffer("abc")
        apply_escape(buffer, parse_escape("\x1b[3A", 0))
        assert buffer.cursor == 3

    def test_forward_does_not_pad(self):
        buffer = self._buffer("ab")
        apply_escape(buffer, parse_escape("\x1b[10C", 0))
        assert buffer.cursor == 12
        assert len(buffer) == 2

    def test_backward_clamps_at_zero(self):
        buffer = self._buffer("ab")
        apply_escape(buffer, parse_escape("\x1b[10D", 0))
        assert buffer.cursor == 0

    def test_column_zero_clamps(self):
        buffer = self._buffer("abc")
        apply_escape(buffer, parse_escape("\x1b[0G", 0))
        assert buffer.cursor == 0

    def test_erase_in_display_acts_on_line(self):
        buffer = self._buffer("abcdef", cursor=2)
        apply_escape(buffer, parse_escape("\x1b[J", 0))
        assert str(buffer) == "ab"

    def test_erase_in_display_mode_3_clears(self):
        buffer = self._buffer("abcdef", cursor=2)
        apply_escape(buffer, parse_escape("\x1b[3J", 0))
        assert str(buffer) == ""
        assert buffer.cursor == 0

    def test_no_command_is_noop(self):
        buffer = self._buffer("abc", cursor=1)
        apply_escape(buffer, parse_escape("\x1b[?25l", 0))
        assert str(buffer) == "abc"
        assert buffer.cursor == 1
