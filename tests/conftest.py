"""Shared fixtures: an in-memory transport that plays back canned shell replies."""

import queue

import pytest

from oltshell.ssh.models import SessionConfig


class ScriptedTransport:
    """
    Stand-in for SSHTransport.

    Each line written is looked up in ``replies``. A bytes value is queued as
    the device response; a list is consumed one item per send of that line;
    b"" means the device stays silent. Lines without a scripted reply get the
    echo followed by ``prompt``, which is what a PTY shell does.
    """

    def __init__(self, banner=b"\r\nMA5800#", replies=None, prompt=b"MA5800#"):
        self.written = []
        self.replies = dict(replies or {})
        self.prompt = prompt
        self.connected = False
        self.closed = False
        self._queue = queue.Queue()
        if banner:
            self._queue.put(banner)

    def connect(self):
        self.connected = True

    def send(self, data: bytes):
        self.written.append(data)
        line = data.decode().rstrip("\n")
        reply = self.replies.get(line)
        if isinstance(reply, list):
            reply = reply.pop(0) if reply else None
        if reply is None:
            reply = line.encode() + b"\r\n" + self.prompt
        if reply:
            self._queue.put(reply)

    def feed(self, data: bytes):
        self._queue.put(data)

    def recv(self, timeout: float) -> bytes:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return b""

    def close(self):
        self.closed = True


@pytest.fixture
def make_transport():
    return ScriptedTransport


@pytest.fixture
def huawei_config():
    return SessionConfig(host="olt1", username="admin", password="secret", vendor="huawei", timeout=2.0)


@pytest.fixture
def vsol_config():
    return SessionConfig(host="olt2", username="admin", password="secret", vendor="vsol", timeout=2.0)
