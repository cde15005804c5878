"""
Device Session - one serialized CLI connection to one OLT.

Path: oltshell/ssh/session.py

Composes an SSHTransport and an ExpectSession behind a single lock. Every
vendor driver holds one of these instead of inheriting connection logic.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Pattern, Sequence, Union

from oltshell.core.errors import SessionNotConnectedError
from oltshell.core.vendor_tables import VendorTables
from oltshell.ssh.expect import DEFAULT_LIVENESS_TIMEOUT, ExpectSession
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.transport import SSHTransport


logger = logging.getLogger(__name__)


class DeviceSession:
    """
    Thread-safe wrapper around transport + expect engine.

    Usage:
        with DeviceSession(SessionConfig(host="10.0.0.1", username="admin",
                                         password="x", vendor="huawei")) as session:
            print(session.execute("display version"))

    Calling execute() from one thread while another calls close() is not
    supported; close waits for the lock but the caller must stop issuing
    commands first.
    """

    def __init__(
        self,
        config: SessionConfig,
        tables: Optional[VendorTables] = None,
        transport_factory: Callable[[SessionConfig], object] = SSHTransport,
        disable_pager: bool = True,
        liveness_timeout: float = DEFAULT_LIVENESS_TIMEOUT,
        prompt_pattern: Optional[Union[str, Pattern]] = None,
    ):
        self._config = config
        self._tables = tables
        self._transport_factory = transport_factory
        self._disable_pager = disable_pager
        self._liveness_timeout = liveness_timeout
        self._prompt_pattern = prompt_pattern
        # Reentrant so hold() can wrap execute() calls from the same thread
        self._lock = threading.RLock()
        self._expect: Optional[ExpectSession] = None

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def host(self) -> str:
        return self._config.host

    def connect(self, cancel: Optional[threading.Event] = None) -> None:
        """Dial, authenticate and wait for the shell. No-op when already connected."""
        with self._lock:
            if self._expect is not None:
                return
            transport = self._transport_factory(self._config)
            transport.connect()
            expect = ExpectSession(
                transport,
                self._config,
                tables=self._tables,
                prompt_pattern=self._prompt_pattern,
                disable_pager=self._disable_pager,
                liveness_timeout=self._liveness_timeout,
            )
            # open() closes the transport itself on any failure, pager step included
            expect.open(cancel)
            self._expect = expect

    def _session(self) -> ExpectSession:
        if self._expect is None:
            raise SessionNotConnectedError(f"{self._config.host}: not connected")
        return self._expect

    def is_connected(self) -> bool:
        return self._expect is not None

    @contextmanager
    def hold(self) -> Iterator["DeviceSession"]:
        """
        Keep the session to the calling thread for a multi-command sequence.

        Commands issued inside the block from the same thread still work; other
        threads wait until the block exits. Drivers use this around mode
        changes such as "interface gpon ..." / command / "quit".
        """
        with self._lock:
            yield self

    def execute(self, command: str, cancel: Optional[threading.Event] = None) -> str:
        with self._lock:
            return self._session().execute(command, cancel)

    def execute_batch(self, commands: Sequence[str], cancel: Optional[threading.Event] = None) -> List[str]:
        with self._lock:
            return self._session().execute_batch(commands, cancel)

    def execute_privileged(self, secret: Optional[str], command: str = "enable",
                           cancel: Optional[threading.Event] = None) -> str:
        with self._lock:
            return self._session().execute_privileged(secret, command, cancel)

    def disable_pager(self) -> str:
        with self._lock:
            return self._session().disable_pager()

    def set_prompt_pattern(self, pattern: Union[str, Pattern]) -> None:
        with self._lock:
            self._prompt_pattern = pattern
            if self._expect is not None:
                self._expect.set_prompt_pattern(pattern)

    def is_alive(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            if self._expect is None:
                return False
            return self._expect.is_alive(timeout)

    def close(self) -> None:
        """Release the shell and SSH client. Safe to call on a closed session."""
        with self._lock:
            expect, self._expect = self._expect, None
            if expect is not None:
                expect.close()
                logger.debug(f"{self._config.host}: Session closed")

    def __enter__(self) -> "DeviceSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
