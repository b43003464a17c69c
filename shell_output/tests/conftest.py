"""Pytest fixtures for shell_output tests.

Session and manager tests run against ``FakeProcess``, a scripted stand-in
for a pexpect child, so they need no PTY and never sleep.
"""

from collections import deque

import pexpect
import pytest

from shell_output import session as session_module
from shell_output.config import OutputConfig


class FakeProcess:
    """Scripted pexpect child.

    Chunks queued with ``queue`` are returned by ``read_nonblocking`` one
    per call; once drained, reads raise ``pexpect.TIMEOUT`` (or
    ``pexpect.EOF`` after exit). ``responses`` maps sent text to chunks
    that become readable after the send.
    """

    def __init__(self):
        self.pending = deque()
        self.responses = {}
        self.sent = []
        self.alive = True
        self.exitstatus = None
        self.signalstatus = None
        self.command = None
        self.spawn_kwargs = {}

    def bind(self, command, kwargs):
        self.command = command
        self.spawn_kwargs = kwargs
        return self

    def queue(self, *chunks):
        self.pending.extend(chunks)

    def read_nonblocking(self, size=1, timeout=-1):
        if self.pending:
            return self.pending.popleft()
        if not self.alive:
            raise pexpect.EOF('process exited')
        raise pexpect.TIMEOUT('no output')

    def send(self, text):
        self.sent.append(text)
        self.pending.extend(self.responses.get(text, []))
        return len(text)

    def isalive(self):
        return self.alive

    def sendeof(self):
        self.alive = False
        self.exitstatus = 0

    def terminate(self, force=False):
        self.alive = False
        return True

    def wait(self):
        return self.exitstatus


@pytest.fixture
def config():
    """Fast config: the fake child never blocks, so timeouts only bound loops."""
    return OutputConfig(tab_size=8, idle_timeout=0.01, max_wait=5.0)


@pytest.fixture
def fake_process(monkeypatch):
    """A single FakeProcess returned by every spawn."""
    process = FakeProcess()
    monkeypatch.setattr(
        session_module, '_spawn',
        lambda command, **kwargs: process.bind(command, kwargs),
    )
    return process


@pytest.fixture
def spawned(monkeypatch):
    """Spawn a fresh FakeProcess per session; returns the list of them.

    Each process starts out printing a ``<command>$ `` prompt.
    """
    processes = []

    def fake_spawn(command, **kwargs):
        process = FakeProcess().bind(command, kwargs)
        process.queue(f"{command}$ ")
        processes.append(process)
        return process

    monkeypatch.setattr(session_module, '_spawn', fake_spawn)
    return processes


@pytest.fixture
def process_class():
    """The FakeProcess class, for tests that need to subclass it."""
    return FakeProcess
