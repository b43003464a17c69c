"""Remove control bytes that are unsafe to persist or display.

Independent of normalization: it can run on raw chunks (before escape
processing) or on rendered text. BS, TAB, LF, CR and ESC survive so that a
later ``normalize`` still sees everything it needs.
"""

import re
from typing import Optional

ALLOWED_CONTROL_CHARS = frozenset('\x08\x09\x0a\x0d\x1b')

_DISALLOWED_CONTROL_RE = re.compile(r'[\x00-\x07\x0b\x0c\x0e-\x1a\x1c-\x1f]')


def sanitize(text: Optional[str]) -> Optional[str]:
    """Strip C0 control characters other than BS, TAB, LF, CR and ESC.

    Printable and non-ASCII characters pass through unchanged. None and ''
    are returned as-is.
    """
    if not text:
        return text
    return _DISALLOWED_CONTROL_RE.sub('', text)
