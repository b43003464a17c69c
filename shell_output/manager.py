"""Registry of named shell sessions with background reaping.

Callers that drive several remote sessions at once (one per device, say)
keep them here by id. A daemon reaper thread closes sessions whose process
exited, whose lifetime ran out, or that sat idle too long.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Pattern, Set, Tuple

from .config import OutputConfig
from .errors import SessionLimitError, SessionNotFoundError
from .session import DEFAULT_COLS, DEFAULT_MAX_LIFETIME, DEFAULT_ROWS, CapturedOutput, ShellSession

logger = logging.getLogger(__name__)

# Maximum concurrent sessions
DEFAULT_MAX_SESSIONS = 8

# Session reaper interval (seconds)
REAPER_INTERVAL = 30.0

# Max idle time before a session is reaped (seconds)
DEFAULT_MAX_IDLE = 300  # 5 minutes


class SessionManager:
    """Owns ``ShellSession`` objects keyed by session id.

    Configuration:
        config: OutputConfig passed to every spawned session.
        max_sessions: Maximum concurrent live sessions (default: 8).
        max_lifetime: Max session lifetime in seconds (default: 600).
        max_idle: Max idle time before reaping in seconds (default: 300).
        cwd: Working directory for spawned processes.
    """

    def __init__(
        self,
        config: Optional[OutputConfig] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        max_lifetime: float = DEFAULT_MAX_LIFETIME,
        max_idle: float = DEFAULT_MAX_IDLE,
        cwd: Optional[str] = None,
        reaper_interval: float = REAPER_INTERVAL,
    ):
        self.config = config or OutputConfig()
        self._max_sessions = max_sessions
        self._max_lifetime = max_lifetime
        self._max_idle = max_idle
        self._cwd = cwd
        self._reaper_interval = reaper_interval

        self._sessions: Dict[str, ShellSession] = {}
        self._starting: Set[str] = set()
        self._session_counter = 0
        self._lock = threading.Lock()

        self._reaper_thread: Optional[threading.Thread] = None
        self._reaper_stop = threading.Event()

    def __enter__(self) -> 'SessionManager':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def start(self) -> None:
        """Start the background reaper thread."""
        if self._reaper_thread is not None:
            return

        self._reaper_stop.clear()
        self._reaper_thread = threading.Thread(
            target=self._reaper_loop,
            daemon=True,
            name="shell-output-reaper",
        )
        self._reaper_thread.start()
        logger.debug("Reaper started (interval=%ss)", self._reaper_interval)

    def shutdown(self) -> None:
        """Stop the reaper and close every session."""
        self._reaper_stop.set()
        if self._reaper_thread is not None:
            self._reaper_thread.join(timeout=5.0)
            self._reaper_thread = None

        with self._lock:
            sessions = list(self._sessions.items())
            self._sessions.clear()

        for session_id, session in sessions:
            try:
                session.close()
            except Exception as exc:
                logger.warning("Failed to close session %s: %s", session_id, exc)
        logger.info("Session manager shut down (%d sessions closed)", len(sessions))

    def spawn(
        self,
        command: str,
        name: Optional[str] = None,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
    ) -> Tuple[str, CapturedOutput]:
        """Start a new session and read its initial output.

        Args:
            command: Command to run (e.g. ``ssh admin@fw01``).
            name: Optional session id; de-duplicated with a ``_N`` suffix.
                Auto-generated (``session_0``, ...) when omitted.
            rows: PTY height.
            cols: PTY width.

        Returns:
            Tuple of (session_id, initial output).

        Raises:
            ValueError: If command is empty.
            SessionLimitError: If max_sessions sessions are already live or
                still starting.
        """
        if not command:
            raise ValueError("command is required")

        with self._lock:
            alive = [sid for sid, s in self._sessions.items() if s.is_alive]
            # Sessions still starting up hold a slot and their id
            if len(alive) + len(self._starting) >= self._max_sessions:
                raise SessionLimitError(self._max_sessions, alive + sorted(self._starting))

            taken = self._sessions.keys() | self._starting
            if name:
                session_id = name
                if session_id in taken:
                    suffix = 1
                    while f"{session_id}_{suffix}" in taken:
                        suffix += 1
                    session_id = f"{session_id}_{suffix}"
            else:
                session_id = f"session_{self._session_counter}"
                self._session_counter += 1
            self._starting.add(session_id)

        session = None
        try:
            session = ShellSession(
                command=command,
                session_id=session_id,
                config=self.config,
                rows=rows,
                cols=cols,
                max_lifetime=self._max_lifetime,
                cwd=self._cwd,
            )
            initial = session.read_initial_output()
        except Exception:
            if session is not None:
                try:
                    session.close()
                except Exception as exc:
                    logger.warning("Failed to close session %s: %s", session_id, exc)
            with self._lock:
                self._starting.discard(session_id)
            raise

        with self._lock:
            self._starting.discard(session_id)
            self._sessions[session_id] = session

        if not session.is_alive:
            logger.info("Session %s exited immediately", session_id)
        return session_id, initial

    def get(self, session_id: str) -> ShellSession:
        """Look up a session by id.

        Raises:
            SessionNotFoundError: If no such session is registered.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                available = [sid for sid, s in self._sessions.items() if s.is_alive]
                raise SessionNotFoundError(session_id, available)
            return session

    def send(self, session_id: str, text: str) -> CapturedOutput:
        """Send raw input to a session and read the settled output."""
        return self.get(session_id).send_input(text)

    def run_command(self, session_id: str, command: str,
                    prompt_regex: Optional[Pattern] = None) -> CapturedOutput:
        """Run a command line in a session and read until its prompt returns."""
        return self.get(session_id).run_command(command, prompt_regex)

    def close(self, session_id: str) -> Dict[str, Any]:
        """Close a session and drop it from the registry."""
        session = self.get(session_id)
        try:
            return session.close()
        finally:
            with self._lock:
                self._sessions.pop(session_id, None)

    def list_sessions(self) -> List[Dict[str, Any]]:
        """Describe every registered session."""
        with self._lock:
            return [
                {
                    'session_id': sid,
                    'command': session.command,
                    'is_alive': session.is_alive,
                    'age_seconds': round(session.age_seconds, 1),
                    'idle_seconds': round(session.idle_seconds, 1),
                }
                for sid, session in self._sessions.items()
            ]

    # --- Reaper ---

    def _reaper_loop(self) -> None:
        """Periodically check for expired or dead sessions."""
        while not self._reaper_stop.wait(timeout=self._reaper_interval):
            self.reap()

    def reap(self) -> List[str]:
        """Close sessions that are dead, expired or idle.

        Returns:
            Ids of the sessions that were reaped.
        """
        to_reap = []

        with self._lock:
            for sid, session in self._sessions.items():
                reason = None
                if not session.is_alive:
                    reason = "process exited"
                elif session.is_expired:
                    reason = f"lifetime exceeded ({self._max_lifetime}s)"
                elif session.idle_seconds > self._max_idle:
                    reason = f"idle too long ({self._max_idle}s)"

                if reason:
                    to_reap.append((sid, session, reason))

        for sid, session, reason in to_reap:
            logger.info("Reaping session %s (%s)", sid, reason)
            try:
                session.close()
            except Exception as exc:
                logger.warning("Failed to close reaped session %s: %s", sid, exc)
            with self._lock:
                self._sessions.pop(sid, None)

        return [sid for sid, _, _ in to_reap]
