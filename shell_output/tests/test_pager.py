"""Tests for pager prompt detection and stripping."""

import pytest

from shell_output.pager import (
    contains_pager_prompt,
    strip_pager_artifacts,
    strip_pager_dismissal_artifacts,
)


class TestStripPagerArtifacts:
    """Test --More-- removal."""

    def test_inline_prompt(self):
        text, saw_pager = strip_pager_artifacts("Some text --More-- more text")
        assert saw_pager
        assert "More" not in text
        assert text == "Some text more text"

    @pytest.mark.parametrize("prompt", [
        "--More--",
        "-- More --",
        "---More---",
        "-More-",
        "--more--",
        "--MORE--",
        "\r--More--\r",
    ])
    def test_variants(self, prompt):
        text, saw_pager = strip_pager_artifacts(f"line1\r\n{prompt}")
        assert saw_pager
        assert text == "line1\r\n"

    def test_multiple_prompts(self):
        text, saw_pager = strip_pager_artifacts("a\r\n--More--b\r\n--More--c")
        assert saw_pager
        assert text == "a\r\nb\r\nc"

    @pytest.mark.parametrize("text", [
        "plain text",
        "show more text",
        "Furthermore, the results",
        "Moreover, it works",
        "",
    ])
    def test_no_prompt(self, text):
        assert strip_pager_artifacts(text) == (text, False)

    def test_none(self):
        assert strip_pager_artifacts(None) == (None, False)


class TestStripDismissalArtifacts:
    """Test removal of the redraw after the dismissal key."""

    def test_leading_redraw(self):
        result = strip_pager_dismissal_artifacts("\r           \rActual content")
        assert result == "Actual content"

    def test_no_spaces(self):
        assert strip_pager_dismissal_artifacts("\r\rX") == "X"

    def test_only_leading(self):
        assert strip_pager_dismissal_artifacts("a\r  \rb") == "a\r  \rb"

    def test_only_once(self):
        assert strip_pager_dismissal_artifacts("\r \r\r \rX") == "\r \rX"

    def test_no_artifact(self):
        assert strip_pager_dismissal_artifacts("content") == "content"

    def test_none_and_empty(self):
        assert strip_pager_dismissal_artifacts(None) is None
        assert strip_pager_dismissal_artifacts("") == ""


class TestContainsPagerPrompt:
    """Test the wider pager pattern set."""

    @pytest.mark.parametrize("text", [
        "output\r\n--More--",
        "-- More --",
        "--Press SPACE for more--",
        "(END)",
        "lines 1-24",
        "Press any key to continue",
        "press space",
    ])
    def test_detects(self, text):
        assert contains_pager_prompt(text)

    @pytest.mark.parametrize("text", [
        "router#",
        "The press release",
        "more lines follow",
        "",
        None,
    ])
    def test_ignores(self, text):
        assert not contains_pager_prompt(text)
