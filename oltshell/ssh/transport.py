#!/usr/bin/env python3
"""
SSH Session Transport - interactive PTY shell over paramiko.

Path: oltshell/ssh/transport.py

Opens an authenticated SSH connection, invokes an interactive shell on a
pseudo-terminal and exposes raw send/recv primitives. It knows nothing about
prompts or commands; that is the expect engine's job.
"""

import logging
import os
import re
import socket
from typing import Optional

import paramiko

from oltshell.core.errors import AuthenticationError, OLTConnectionError, SessionCloseError
from oltshell.ssh.models import SessionConfig


logger = logging.getLogger(__name__)

# Catches \x1b[1;24r, \x1b[24;1H, \x1b[2K, \x1b[?25h, charset switches, BEL and
# C0 control characters other than TAB, LF and CR.
_ANSI_PATTERN = re.compile(r'\x1b\[[0-9;?]*[a-zA-Z]|\x1b[()][AB012]|\x07|[\x00-\x08\x0B\x0C\x0E-\x1F]')

TERM_TYPE = "vt100"
TERM_WIDTH = 512
TERM_HEIGHT = 24
RECV_SIZE = 4096


def filter_ansi_sequences(text):
    """
    Filter ANSI escape sequences and control characters.

    Args:
        text (str): Input text with potential ANSI sequences

    Returns:
        str: Cleaned text
    """
    if not text:
        return text
    return _ANSI_PATTERN.sub('', text)


class SSHTransport:
    """
    Authenticated SSH connection with one interactive shell channel.

    Usage:
        transport = SSHTransport(SessionConfig(host="10.0.0.1", username="admin", password="x"))
        transport.connect()
        transport.send(b"display version\\n")
        chunk = transport.recv(timeout=0.5)
        transport.close()
    """

    def __init__(self, config: SessionConfig):
        if not config.host:
            raise ValueError("Host is required")
        self._config = config
        self._client: Optional[paramiko.SSHClient] = None
        self._channel: Optional[paramiko.Channel] = None

    @property
    def config(self) -> SessionConfig:
        return self._config

    def is_connected(self) -> bool:
        if self._client is None or self._channel is None:
            return False
        transport = self._client.get_transport()
        return bool(transport and transport.is_active() and not self._channel.closed)

    def _connect_params(self) -> dict:
        cfg = self._config
        params = {
            'hostname': cfg.host,
            'port': cfg.port,
            'username': cfg.username,
            'timeout': cfg.timeout,
            'banner_timeout': cfg.timeout,
            'auth_timeout': cfg.timeout,
            'allow_agent': False,
            'look_for_keys': False,
            'compress': False,
        }
        if cfg.password is not None:
            params['password'] = cfg.password
        if cfg.key_file:
            params['key_filename'] = os.path.expanduser(cfg.key_file)
        if cfg.legacy_mode:
            # Older OLT firmware negotiates ssh-rsa only
            params['disabled_algorithms'] = {'pubkeys': ['rsa-sha2-512', 'rsa-sha2-256']}
        return params

    def connect(self) -> None:
        """
        Open the SSH connection and an interactive shell. No-op if already open.

        Raises:
            AuthenticationError: Credentials were rejected.
            OLTConnectionError: Dial, handshake or channel setup failed.
        """
        if self._client is not None:
            return

        cfg = self._config
        logger.debug(f"{cfg.host}: Connecting to {cfg.address}")

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        params = self._connect_params()

        try:
            try:
                client.connect(**params)
            except paramiko.AuthenticationException:
                raise
            except paramiko.SSHException:
                if 'disabled_algorithms' not in params:
                    raise
                logger.debug(f"{cfg.host}: Retrying with SHA2 RSA algorithms enabled")
                params.pop('disabled_algorithms')
                client.connect(**params)
        except paramiko.AuthenticationException as e:
            client.close()
            raise AuthenticationError(cfg.host, cfg.username, "SSH authentication rejected", e) from e
        except (paramiko.SSHException, socket.error, OSError) as e:
            client.close()
            raise OLTConnectionError(cfg.host, cfg.port, "SSH handshake failed", e) from e

        try:
            channel = client.invoke_shell(term=TERM_TYPE, width=TERM_WIDTH, height=TERM_HEIGHT)
        except (paramiko.SSHException, socket.error, OSError) as e:
            client.close()
            raise OLTConnectionError(cfg.host, cfg.port, "failed to open interactive shell", e) from e

        self._client = client
        self._channel = channel
        logger.info(f"{cfg.host}: Connected to {cfg.address}")

    def send(self, data: bytes) -> None:
        """Write raw bytes to the shell."""
        if self._channel is None:
            raise OLTConnectionError(self._config.host, self._config.port, "not connected")
        try:
            self._channel.sendall(data)
        except (socket.error, OSError) as e:
            raise OLTConnectionError(self._config.host, self._config.port, "write failed", e) from e

    def recv(self, timeout: float) -> bytes:
        """
        Read whatever the shell produced within timeout seconds.

        Returns:
            Raw bytes, or b"" when nothing arrived before the timeout.

        Raises:
            OLTConnectionError: The channel was closed by the device.
        """
        channel = self._channel
        if channel is None:
            raise OLTConnectionError(self._config.host, self._config.port, "not connected")
        channel.settimeout(timeout)
        try:
            data = channel.recv(RECV_SIZE)
        except socket.timeout:
            return b""
        except (socket.error, OSError) as e:
            raise OLTConnectionError(self._config.host, self._config.port, "read failed", e) from e
        if not data:
            raise OLTConnectionError(self._config.host, self._config.port, "channel closed by device")
        return data

    def close(self) -> None:
        """
        Release the shell channel and the SSH client. Safe to call twice.

        Raises:
            SessionCloseError: One or both resources failed to close. Both are
                still attempted and every failure is reported.
        """
        errors = []
        if self._channel is not None:
            try:
                self._channel.close()
            except Exception as e:
                errors.append(e)
            self._channel = None
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                errors.append(e)
            self._client = None

        if errors:
            logger.warning(f"{self._config.host}: Disconnect errors: {errors}")
            raise SessionCloseError(errors)
        logger.debug(f"{self._config.host}: Disconnected")
