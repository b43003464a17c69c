"""Pager prompt detection and cleanup.

Network devices and remote shells page long output behind prompts such as
``--More--`` and wait for a keystroke. The session layer uses
``contains_pager_prompt`` to decide whether to send the dismissal key, and
the strip functions to keep the prompt and the device's redraw noise out
of captured text.
"""

import re
from typing import Optional, Tuple

# --More--, -- More --, ---More---, -More- (with optional leading CR, echoed
# space and trailing CR). At least one dash must touch the prompt so that
# ordinary prose containing "more" is left alone.
_MORE_PROMPT_RE = re.compile(
    r'\r?(?:-+ *(?<![A-Za-z])More(?![A-Za-z]) *-*'
    r'|-* *(?<![A-Za-z])More(?![A-Za-z]) *-+)'
    r'[ ]?\r?',
    re.IGNORECASE,
)

# After the dismissal key the device returns to column 0, blanks the prompt
# with spaces and returns again.
_DISMISSAL_RE = re.compile(r'^\r *\r')

# Prompts that mean "output is paused, press a key".
PAGER_PATTERNS = (
    r'-+\s*More\s*-+',                          # --More-- / -- More --
    r'--\s*Press\s+',                           # --Press SPACE--
    r'\(END\)',                                 # less at end of file
    r'lines\s+\d+-\d+',                         # lines 1-24
    r'Press\s+(?:SPACE|any\s+key)',             # Press SPACE / Press any key
)

_PAGER_PROMPT_RE = re.compile('|'.join(PAGER_PATTERNS), re.IGNORECASE)


def contains_pager_prompt(text: Optional[str]) -> bool:
    """Whether ``text`` contains any known pager prompt."""
    if not text:
        return False
    return _PAGER_PROMPT_RE.search(text) is not None


def strip_pager_artifacts(text: Optional[str]) -> Tuple[Optional[str], bool]:
    """Remove ``--More--`` style prompts from ``text``.

    Args:
        text: Captured output (raw or normalized).

    Returns:
        Tuple of (text without prompts, saw_pager). When no prompt is found
        the input is returned unchanged with saw_pager False.
    """
    if not text:
        return text, False

    stripped, count = _MORE_PROMPT_RE.subn('', text)
    if count == 0:
        return text, False
    return stripped, True


def strip_pager_dismissal_artifacts(text: Optional[str]) -> Optional[str]:
    """Remove a single leading CR, spaces, CR redraw left by dismissing a pager.

    Only call this on the chunk that arrives right after the dismissal key
    was sent. None and '' are returned as-is.
    """
    if not text:
        return text
    return _DISMISSAL_RE.sub('', text, count=1)
