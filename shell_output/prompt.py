"""Shell prompt detection on normalized output.

Used by the session layer to decide when a command has finished: the
command is complete once the last non-empty line of the rendered output is
the device's prompt again. Prompts may change with the device mode
(``router#`` vs ``router (config)#``), so the regex built from a prompt
literal tolerates an optional parenthesised mode.
"""

import re
from typing import List, Optional, Pattern

from .ansi import strip_ansi

PROMPT_TERMINATORS = '#>$%'

# Only the tail of large buffers is examined
DEFAULT_LOOKBACK = 4096

_FALLBACK_PROMPT_RE = re.compile(r'^.*[#>$%][ \t]*$', re.MULTILINE)
_LINE_SPLIT_RE = re.compile(r'\r\n|\n|\r')


def _tail_lines(text: str, lookback: int) -> List[str]:
    return _LINE_SPLIT_RE.split(text[-lookback:])


def is_likely_prompt(line: Optional[str]) -> bool:
    """Whether ``line`` looks like a shell prompt (ends with # > $ or %)."""
    if not line or not line.strip():
        return False
    return line.rstrip()[-1] in PROMPT_TERMINATORS


def detect_prompt(text: Optional[str], lookback: int = DEFAULT_LOOKBACK) -> Optional[str]:
    """Return the last line of ``text`` that looks like a prompt.

    Args:
        text: Normalized output.
        lookback: Number of trailing characters to examine.

    Returns:
        The right-stripped prompt line, or None if no line qualifies.
    """
    if not text:
        return None
    for line in reversed(_tail_lines(text, lookback)):
        candidate = line.rstrip()
        if is_likely_prompt(candidate):
            return candidate
    return None


def build_prompt_regex(prompt: Optional[str]) -> Pattern:
    """Build a regex matching ``prompt`` and its mode variants.

    ``"fw01 (global)#"`` yields a pattern that also matches ``fw01#`` and
    ``fw01 (config)>``. Blank literals, or literals that do not end in a
    prompt terminator, produce a generic prompt pattern.
    """
    if not prompt or not prompt.strip():
        return _FALLBACK_PROMPT_RE

    trimmed = strip_ansi(prompt).rstrip()
    if not trimmed or trimmed[-1] not in PROMPT_TERMINATORS:
        return _FALLBACK_PROMPT_RE

    body = trimmed[:-1].rstrip()

    # Drop a mode/context suffix: "fw01 (global)" -> "fw01"
    paren = body.find('(')
    base_host = body[:paren].rstrip() if paren > 0 else body
    if not base_host.strip():
        base_host = body

    pattern = (
        rf'^{re.escape(base_host)}(?:\s*\([^)]+\))?\s*'
        rf'[{re.escape(PROMPT_TERMINATORS)}]\s*$'
    )
    return re.compile(pattern, re.MULTILINE)


def ends_with_prompt(text: Optional[str], prompt_regex: Pattern,
                     lookback: int = DEFAULT_LOOKBACK) -> bool:
    """Whether the last non-empty line of ``text`` matches ``prompt_regex``."""
    if not text:
        return False
    for line in reversed(_tail_lines(text, lookback)):
        if not line:
            continue
        return prompt_regex.search(line) is not None
    return False


def detect_different_prompt(text: Optional[str], prompt_regex: Pattern,
                            lookback: int = DEFAULT_LOOKBACK) -> Optional[str]:
    """Return a new prompt if the output now ends with one ``prompt_regex`` misses.

    Happens when a command switches the device mode (entering or leaving
    configuration mode, for instance).
    """
    if not text:
        return None
    for line in reversed(_tail_lines(text, lookback)):
        candidate = line.rstrip()
        if not candidate:
            continue
        if is_likely_prompt(candidate) and not prompt_regex.search(candidate):
            return candidate
        return None
    return None
