"""Shell session wrapper that captures rendered output with idle detection.

Reads until the process stops producing output for a configurable period,
then hands back what a user would have seen on screen: every chunk is
sanitized, stripped of pager prompts and normalized. Paused pagers
(``--More--``) are answered automatically with the dismissal key so long
listings from network devices arrive in one piece.

Backend selection:
- Unix/macOS: pexpect.spawn (PTY-based)
- Windows: pexpect.popen_spawn.PopenSpawn (subprocess pipes; no PTY, so
  the child sees no terminal dimensions)
"""

import logging
import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Pattern

import pexpect
from pexpect.popen_spawn import PopenSpawn

from .config import OutputConfig
from .normalizer import normalize
from .pager import (
    contains_pager_prompt,
    strip_pager_artifacts,
    strip_pager_dismissal_artifacts,
)
from .prompt import build_prompt_regex, detect_different_prompt, detect_prompt, ends_with_prompt
from .sanitizer import sanitize

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"

# Which backend is in use: 'pexpect' or 'popen_spawn'.
_BACKEND = 'popen_spawn' if IS_WINDOWS else 'pexpect'
_spawn = PopenSpawn if IS_WINDOWS else pexpect.spawn

# Default PTY dimensions
DEFAULT_ROWS = 24
DEFAULT_COLS = 80

# Default session lifetime ceiling (seconds).
DEFAULT_MAX_LIFETIME = 600  # 10 minutes

_READ_SIZE = 4096

CONTROL_KEYS = {
    'c-c': '\x03',
    'c': '\x03',
    'c-d': '\x04',
    'd': '\x04',
    'c-z': '\x1a',
    'z': '\x1a',
    'c-\\': '\x1c',
    '\\': '\x1c',
    'c-l': '\x0c',
    'l': '\x0c',
}


@dataclass
class CapturedOutput:
    """Result of one read from a session.

    Attributes:
        text: Normalized output with pager prompts removed.
        raw: Exactly what the process wrote, escape sequences included.
        pages: How many pager prompts were dismissed during the read.
        prompt_matched: Whether the read ended because the prompt came back.
    """
    text: str
    raw: str = ''
    pages: int = 0
    prompt_matched: bool = False


class ShellSession:
    """Wraps a single pexpect-spawned process with idle-based, normalized I/O.

    Instead of expect(pattern), reads run until the process goes quiet
    (or, for ``run_command``, until the prompt reappears). Output comes
    back as ``CapturedOutput`` whose ``text`` has already been through the
    sanitize, pager-strip and normalize pipeline.
    """

    def __init__(
        self,
        command: str,
        session_id: str,
        config: Optional[OutputConfig] = None,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
        max_lifetime: float = DEFAULT_MAX_LIFETIME,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ):
        self.session_id = session_id
        self.command = command
        self.config = config or OutputConfig()
        self.max_lifetime = max_lifetime
        self.created_at = time.time()
        self.last_interaction = time.time()
        self.prompt: Optional[str] = None
        self._prompt_regex: Optional[Pattern] = None

        spawn_env = os.environ.copy()
        # Local pagers would block; remote ones are dismissed on the fly
        spawn_env['PAGER'] = 'cat'
        spawn_env['GIT_PAGER'] = 'cat'
        # Force dumb terminal to reduce escape sequences
        spawn_env['TERM'] = 'dumb'
        # Prevent spawned shells from writing to the user's history file
        spawn_env['HISTFILE'] = ''
        spawn_env['HISTSIZE'] = '0'
        spawn_env['SAVEHIST'] = '0'
        if env:
            spawn_env.update(env)

        if _BACKEND == 'popen_spawn':
            self._process = _spawn(
                command,
                encoding='utf-8',
                timeout=self.config.max_wait,
                env=spawn_env,
                cwd=cwd,
            )
        else:
            self._process = _spawn(
                command,
                encoding='utf-8',
                codec_errors='replace',
                timeout=self.config.max_wait,
                dimensions=(rows, cols),
                env=spawn_env,
                cwd=cwd,
            )

        # Lock for thread-safe access to the process
        self._lock = threading.Lock()
        logger.info("Spawned session %s (%s backend): %s", session_id, _BACKEND, command)

    @property
    def is_alive(self) -> bool:
        """Check if the underlying process is still running."""
        return self._process.isalive()

    @property
    def age_seconds(self) -> float:
        """Seconds since this session was created."""
        return time.time() - self.created_at

    @property
    def idle_seconds(self) -> float:
        """Seconds since the last interaction (send or read)."""
        return time.time() - self.last_interaction

    @property
    def is_expired(self) -> bool:
        """Whether this session has exceeded its max lifetime."""
        return self.age_seconds > self.max_lifetime

    def read_initial_output(self) -> CapturedOutput:
        """Read the banner and first prompt after spawning.

        The last prompt-looking line is remembered and used by
        ``run_command`` to recognise when a command has finished.
        """
        with self._lock:
            captured = self._capture()
            self._remember_prompt(detect_prompt(captured.text))
            return captured

    def send_input(self, text: str) -> CapturedOutput:
        """Send text (include \\n for Enter) and read until the output settles."""
        with self._lock:
            self.last_interaction = time.time()
            self._process.send(text)
            return self._capture()

    def send_control(self, key: str) -> CapturedOutput:
        """Send a control key such as ``c-c`` and read the response.

        Raises:
            ValueError: If ``key`` is not one of ``CONTROL_KEYS``.
        """
        char = CONTROL_KEYS.get(key)
        if char is None:
            raise ValueError(
                f"Unknown control key: {key!r}. "
                f"Supported: {', '.join(sorted(CONTROL_KEYS.keys()))}"
            )

        with self._lock:
            self.last_interaction = time.time()
            self._process.send(char)
            return self._capture()

    def read_output(self, timeout: Optional[float] = None) -> CapturedOutput:
        """Read any pending output without sending input.

        Args:
            timeout: Idle period to wait for. Defaults to the configured
                idle_timeout.
        """
        with self._lock:
            self.last_interaction = time.time()
            return self._capture(
                idle_timeout=timeout if timeout is not None else self.config.idle_timeout
            )

    def run_command(self, command: str, prompt_regex: Optional[Pattern] = None) -> CapturedOutput:
        """Send a command line and read until the prompt returns.

        Args:
            command: Command text without the trailing newline.
            prompt_regex: Pattern for the prompt that marks completion.
                Defaults to the prompt seen at spawn time, or a generic
                prompt pattern when none was seen.

        Returns:
            The captured output. ``prompt_matched`` is False when the read
            ended on the idle timeout or max_wait instead.
        """
        regex = prompt_regex or self._prompt_regex or build_prompt_regex(None)
        with self._lock:
            self.last_interaction = time.time()
            self._process.send(command + '\n')
            captured = self._capture(prompt_regex=regex)

            new_prompt = detect_different_prompt(captured.text, regex)
            if new_prompt:
                logger.debug("Session %s prompt changed: %r", self.session_id, new_prompt)
                self._remember_prompt(new_prompt)
            elif self.prompt is None:
                self._remember_prompt(detect_prompt(captured.text))
            return captured

    def close(self) -> Dict[str, Any]:
        """Gracefully terminate the session.

        Escalation strategy:
        1. Send EOF and read remaining output.
        2. Request graceful termination.
        3. Force-kill if still alive.

        Returns:
            Dict with exit_status and final_output (normalized).
        """
        final_output = ''

        with self._lock:
            if self._process.isalive():
                try:
                    self._process.sendeof()
                    final_output = self._capture(idle_timeout=1.0).text
                except (pexpect.EOF, OSError) as exc:
                    logger.debug("Session %s: EOF during close: %s", self.session_id, exc)

            if self._process.isalive():
                try:
                    if hasattr(self._process, 'terminate'):
                        self._process.terminate(force=False)
                        self._process.wait()
                    elif hasattr(self._process, 'proc'):
                        # PopenSpawn: use the underlying subprocess.Popen
                        self._process.proc.terminate()
                        self._process.proc.wait(timeout=5)
                except Exception as exc:
                    logger.warning("Session %s: terminate failed: %s", self.session_id, exc)

            if self._process.isalive():
                try:
                    if hasattr(self._process, 'terminate'):
                        self._process.terminate(force=True)
                    elif hasattr(self._process, 'proc'):
                        self._process.proc.kill()
                except Exception as exc:
                    logger.warning("Session %s: kill failed: %s", self.session_id, exc)

        exit_status = self._process.exitstatus
        # PopenSpawn may not set exitstatus until wait() is called
        if exit_status is None and hasattr(self._process, 'proc'):
            exit_status = self._process.proc.returncode
        signal_status = getattr(self._process, 'signalstatus', None)

        logger.info("Closed session %s (exit_status=%s)", self.session_id, exit_status)
        return {
            'exit_status': exit_status if exit_status is not None else signal_status,
            'final_output': final_output,
        }

    def _remember_prompt(self, prompt: Optional[str]) -> None:
        if not prompt:
            return
        self.prompt = prompt
        self._prompt_regex = build_prompt_regex(prompt)

    def _clean_chunk(self, chunk: str, after_dismissal: bool):
        """Run one raw chunk through sanitize and pager stripping.

        Returns:
            Tuple of (cleaned chunk, saw_pager).
        """
        if self.config.sanitize:
            chunk = sanitize(chunk)
        # Wider pattern set first: (END), "Press any key" are not stripped
        saw_pager = contains_pager_prompt(chunk)
        chunk, stripped = strip_pager_artifacts(chunk)
        if after_dismissal:
            chunk = strip_pager_dismissal_artifacts(chunk)
        return chunk, saw_pager or stripped

    def _buffer_full(self, total_chars: int) -> bool:
        """Safety: cap buffer to prevent runaway accumulation."""
        if total_chars <= self.config.max_buffer:
            return False
        logger.warning(
            "Session %s: output exceeded %d chars, returning early",
            self.session_id, self.config.max_buffer,
        )
        return True

    def _capture(
        self,
        idle_timeout: Optional[float] = None,
        max_wait: Optional[float] = None,
        prompt_regex: Optional[Pattern] = None,
    ) -> CapturedOutput:
        """Read output until the process stops producing it.

        Reads in bursts; output is "settled" when no new data arrives for
        idle_timeout seconds. When prompt_regex is given the read also ends
        as soon as the normalized output ends with a matching line.

        Args:
            idle_timeout: Seconds of silence before output is settled.
            max_wait: Hard ceiling on total wait time.
            prompt_regex: Optional completion prompt.
        """
        idle_timeout = idle_timeout if idle_timeout is not None else self.config.idle_timeout
        max_wait = max_wait if max_wait is not None else self.config.max_wait
        deadline = time.time() + max_wait

        raw_chunks: List[str] = []
        cleaned_chunks: List[str] = []
        total_chars = 0
        pages = 0
        prompt_matched = False
        after_dismissal = False

        while time.time() < deadline:
            try:
                chunk = self._process.read_nonblocking(size=_READ_SIZE, timeout=idle_timeout)
            except pexpect.TIMEOUT:
                # No data for idle_timeout: output has settled
                break
            except pexpect.EOF:
                # Process exited
                break
            if not chunk:
                continue
            if isinstance(chunk, bytes):
                chunk = chunk.decode('utf-8', errors='replace')

            raw_chunks.append(chunk)
            total_chars += len(chunk)
            cleaned, saw_pager = self._clean_chunk(chunk, after_dismissal)
            cleaned_chunks.append(cleaned)
            after_dismissal = False
            logger.debug(
                "Session %s: received %d chars (pager=%s)",
                self.session_id, len(chunk), saw_pager,
            )

            if saw_pager and self.config.auto_dismiss_pager:
                if pages >= self.config.max_pages:
                    logger.warning(
                        "Session %s: pager limit (%d) reached, leaving it paused",
                        self.session_id, self.config.max_pages,
                    )
                    break
                if self._buffer_full(total_chars):
                    break
                pages += 1
                self._process.send(self.config.pager_dismiss_key)
                after_dismissal = True
                continue

            if prompt_regex is not None and ends_with_prompt(
                normalize(''.join(cleaned_chunks), self.config.tab_size), prompt_regex
            ):
                prompt_matched = True
                break

            if self._buffer_full(total_chars):
                break

        text = normalize(''.join(cleaned_chunks), self.config.tab_size)
        return CapturedOutput(
            text=text,
            raw=''.join(raw_chunks),
            pages=pages,
            prompt_matched=prompt_matched,
        )
