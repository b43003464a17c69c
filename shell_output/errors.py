"""Error types for the session layer.

The normalization engine never raises for malformed terminal output; these
cover session management and backend problems only.
"""

from typing import List, Optional


class ShellOutputError(Exception):
    """Base class for shell_output errors."""
    pass


class SessionLimitError(ShellOutputError):
    """Spawning would exceed the manager's concurrent session limit."""

    def __init__(self, max_sessions: int, active: Optional[List[str]] = None):
        self.max_sessions = max_sessions
        self.active = active or []
        super().__init__(
            f"Maximum concurrent sessions ({max_sessions}) reached. "
            f"Close an existing session first."
        )


class SessionNotFoundError(ShellOutputError):
    """No session is registered under the requested id."""

    def __init__(self, session_id: str, available: Optional[List[str]] = None):
        self.session_id = session_id
        self.available = available or []
        message = f"No session with id {session_id!r}."
        if self.available:
            message += f" Available: {', '.join(self.available)}"
        super().__init__(message)
