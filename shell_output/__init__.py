"""Render captured shell output into the text a user would actually see.

Raw output from an interactive remote session carries carriage returns,
backspaces, tabs, ANSI/VT escape sequences and pager prompts. This package
replays that stream through a per-line cursor model and returns clean text
for display, history logs and variable capture.

Engine (pure, no I/O, safe to call concurrently):

- ``normalize``: escape and control-character resolution, CR LF joined lines.
- ``sanitize``: drop C0 control bytes outside BS, TAB, LF, CR, ESC.
- ``strip_pager_artifacts`` / ``strip_pager_dismissal_artifacts``: remove
  ``--More--`` prompts and the redraw left after dismissing them.

Session layer (pexpect): ``ShellSession`` and ``SessionManager`` capture
output from live processes and answer pager prompts automatically.
"""

from typing import Optional, Tuple

from .ansi import strip_ansi
from .config import OutputConfig, load_config
from .control import DEFAULT_TAB_SIZE
from .errors import SessionLimitError, SessionNotFoundError, ShellOutputError
from .normalizer import LINE_TERMINATOR, normalize
from .pager import contains_pager_prompt, strip_pager_artifacts, strip_pager_dismissal_artifacts
from .sanitizer import sanitize
from .session import CapturedOutput, ShellSession
from .manager import SessionManager


def clean_output(
    text: Optional[str],
    tab_size: int = DEFAULT_TAB_SIZE,
    sanitize_output: bool = True,
    strip_pager: bool = True,
) -> Tuple[Optional[str], bool]:
    """Normalize, then optionally sanitize and strip pager prompts.

    Returns:
        Tuple of (clean text, saw_pager).
    """
    result = normalize(text, tab_size)
    if sanitize_output:
        result = sanitize(result)
    if strip_pager:
        return strip_pager_artifacts(result)
    return result, False


__all__ = [
    'CapturedOutput',
    'LINE_TERMINATOR',
    'OutputConfig',
    'SessionLimitError',
    'SessionManager',
    'SessionNotFoundError',
    'ShellOutputError',
    'ShellSession',
    'clean_output',
    'contains_pager_prompt',
    'load_config',
    'normalize',
    'sanitize',
    'strip_ansi',
    'strip_pager_artifacts',
    'strip_pager_dismissal_artifacts',
]
