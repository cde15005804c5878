"""SSH session layer - transport, expect engine and device session."""

from oltshell.ssh.expect import ExpectSession, SessionState
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.session import DeviceSession
from oltshell.ssh.transport import SSHTransport

__all__ = [
    "ExpectSession",
    "SessionState",
    "SessionConfig",
    "DeviceSession",
    "SSHTransport",
]
