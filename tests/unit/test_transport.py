"""Unit tests for SSHTransport with paramiko mocked out."""

import socket
from unittest.mock import Mock, patch

import paramiko
import pytest

from oltshell.core.errors import AuthenticationError, OLTConnectionError, SessionCloseError
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.transport import SSHTransport, filter_ansi_sequences


@pytest.fixture
def ssh_client():
    with patch("oltshell.ssh.transport.paramiko.SSHClient") as client_cls:
        client = Mock()
        client_cls.return_value = client
        yield client


class TestFilterAnsi:

    def test_strips_escapes_and_controls(self):
        raw = "\x1b[1;24r\x1b[24;1HMA5800#\x07\x1b[2K\tok\r\n"
        assert filter_ansi_sequences(raw) == "MA5800#\tok\r\n"

    def test_empty(self):
        assert filter_ansi_sequences("") == ""


class TestConnect:
    """Dial, legacy retry and error mapping."""

    def test_opens_pty_shell(self, ssh_client):
        transport = SSHTransport(SessionConfig(host="olt1", username="admin", password="x", timeout=7))

        transport.connect()
        transport.connect()

        ssh_client.connect.assert_called_once()
        kwargs = ssh_client.connect.call_args.kwargs
        assert kwargs["hostname"] == "olt1"
        assert kwargs["timeout"] == 7
        assert "disabled_algorithms" not in kwargs
        ssh_client.invoke_shell.assert_called_once_with(term="vt100", width=512, height=24)

    def test_legacy_mode_retries_without_restriction(self, ssh_client):
        ssh_client.connect.side_effect = [paramiko.SSHException("no matching host key type"), None]
        transport = SSHTransport(SessionConfig(host="olt1", username="admin", password="x", legacy_mode=True))

        transport.connect()

        first, second = ssh_client.connect.call_args_list
        assert "disabled_algorithms" in first.kwargs
        assert "disabled_algorithms" not in second.kwargs

    def test_auth_rejected(self, ssh_client):
        ssh_client.connect.side_effect = paramiko.AuthenticationException("bad password")
        transport = SSHTransport(SessionConfig(host="olt1", username="admin", password="x", legacy_mode=True))

        with pytest.raises(AuthenticationError) as exc_info:
            transport.connect()

        assert exc_info.value.username == "admin"
        assert ssh_client.connect.call_count == 1
        ssh_client.close.assert_called_once()

    def test_unreachable(self, ssh_client):
        ssh_client.connect.side_effect = socket.error("Connection refused")
        transport = SSHTransport(SessionConfig(host="olt1", port=2022))

        with pytest.raises(OLTConnectionError) as exc_info:
            transport.connect()
        assert exc_info.value.port == 2022

    def test_host_required(self):
        with pytest.raises(ValueError):
            SSHTransport(SessionConfig(host=""))


class TestIO:
    """send/recv over the shell channel."""

    def test_recv_timeout_is_empty(self, ssh_client):
        channel = ssh_client.invoke_shell.return_value
        channel.recv.side_effect = socket.timeout()
        transport = SSHTransport(SessionConfig(host="olt1"))
        transport.connect()

        assert transport.recv(0.1) == b""
        channel.settimeout.assert_called_with(0.1)

    def test_recv_closed_channel(self, ssh_client):
        ssh_client.invoke_shell.return_value.recv.return_value = b""
        transport = SSHTransport(SessionConfig(host="olt1"))
        transport.connect()

        with pytest.raises(OLTConnectionError):
            transport.recv(0.1)

    def test_send_before_connect(self):
        with pytest.raises(OLTConnectionError):
            SSHTransport(SessionConfig(host="olt1")).send(b"x\n")


class TestClose:
    """close() releases both resources and reports every failure."""

    def test_aggregates_failures(self, ssh_client):
        ssh_client.invoke_shell.return_value.close.side_effect = OSError("channel")
        ssh_client.close.side_effect = OSError("client")
        transport = SSHTransport(SessionConfig(host="olt1"))
        transport.connect()

        with pytest.raises(SessionCloseError) as exc_info:
            transport.close()

        assert len(exc_info.value.errors) == 2
        transport.close()

    def test_close_unopened(self):
        SSHTransport(SessionConfig(host="olt1")).close()
