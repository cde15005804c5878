"""
Expect engine - command/response protocol over an unframed shell stream.

Path: oltshell/ssh/expect.py

Vendor shells emit free-form text with no message framing. The engine turns
that stream into a request/response protocol by waiting for recognizable
patterns: the vendor prompt, a shell-level login banner, or a password
prompt. A session moves through explicit states:

    DISCONNECTED -> AWAITING_BANNER -> (LOGIN_USERNAME -> LOGIN_PASSWORD ->) READY
    READY <-> EXECUTING
    any -> CLOSED

Every wait runs on the session's background reader worker. The caller waits
for the worker, the deadline, or a cancel event, whichever comes first. A
session that timed out or was cancelled mid-read may be desynchronized and
should be closed and reopened by the caller.

The engine assumes one caller at a time; DeviceSession provides the lock.
"""

import codecs
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern, Sequence, Tuple, Union

from oltshell.core.errors import (
    AuthenticationError,
    BatchExecutionError,
    CommandError,
    CommandTimeoutError,
    OLTConnectionError,
    OltShellError,
    SessionCancelledError,
    SessionCloseError,
    SessionNotConnectedError,
)
from oltshell.core.vendor_tables import VendorTables, compile_prompt, get_default_tables
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.transport import filter_ansi_sequences


logger = logging.getLogger(__name__)

DEFAULT_LIVENESS_TIMEOUT = 5.0

# How long one transport read blocks before the worker rechecks its stop flag
READ_POLL_INTERVAL = 0.1

# How often the waiting caller rechecks the deadline and cancel event
CANCEL_POLL_INTERVAL = 0.05


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    AWAITING_BANNER = "awaiting_banner"
    LOGIN_USERNAME = "login_username"
    LOGIN_PASSWORD = "login_password"
    READY = "ready"
    EXECUTING = "executing"
    CLOSED = "closed"


_TRANSITIONS = {
    SessionState.DISCONNECTED: {SessionState.AWAITING_BANNER, SessionState.CLOSED},
    SessionState.AWAITING_BANNER: {SessionState.LOGIN_USERNAME, SessionState.READY, SessionState.CLOSED},
    SessionState.LOGIN_USERNAME: {SessionState.LOGIN_PASSWORD, SessionState.CLOSED},
    SessionState.LOGIN_PASSWORD: {SessionState.READY, SessionState.CLOSED},
    SessionState.READY: {SessionState.EXECUTING, SessionState.CLOSED},
    SessionState.EXECUTING: {SessionState.READY, SessionState.CLOSED},
    SessionState.CLOSED: set(),
}


@dataclass
class ExpectMatch:
    """Which pattern matched and the text consumed up to the end of the match."""
    tag: str
    output: str


class ExpectSession:
    """
    Interactive CLI session driven by pattern matching.

    Usage:
        transport = SSHTransport(config)
        transport.connect()
        session = ExpectSession(transport, config)
        session.open()
        output = session.execute("display ont info 0/1/1 1")
        session.close()
    """

    def __init__(
        self,
        transport,
        config: SessionConfig,
        tables: Optional[VendorTables] = None,
        prompt_pattern: Optional[Union[str, Pattern]] = None,
        disable_pager: bool = True,
        liveness_timeout: float = DEFAULT_LIVENESS_TIMEOUT,
    ):
        """
        Args:
            transport: Connected byte stream with send(bytes), recv(timeout) and close().
            config: Session configuration (credentials, vendor, timeout).
            tables: Vendor lookup tables. Defaults to the built-in tables.
            prompt_pattern: Overrides the vendor prompt pattern.
            disable_pager: Send the vendor pager-disable command once READY.
            liveness_timeout: Bound for is_alive(), independent of the command timeout.
        """
        self._transport = transport
        self._config = config
        self._tables = tables or get_default_tables()
        self._vendor = (config.vendor or "").lower()
        if prompt_pattern is not None:
            self._prompt = compile_prompt(prompt_pattern)
        else:
            self._prompt = self._tables.prompt_for(self._vendor)
        self._timeout = config.timeout
        self._disable_pager = disable_pager
        self._liveness_timeout = liveness_timeout

        self._state = SessionState.DISCONNECTED
        self._buffer = ""
        self._buffer_lock = threading.Lock()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._reader = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"expect-{config.host}")

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def vendor(self) -> str:
        return self._vendor

    @property
    def prompt_pattern(self) -> Pattern:
        return self._prompt

    @property
    def timeout(self) -> float:
        return self._timeout

    def set_prompt_pattern(self, pattern: Union[str, Pattern]) -> None:
        """Replace the active prompt pattern, e.g. after entering another shell mode."""
        self._prompt = compile_prompt(pattern)
        logger.debug(f"{self._config.host}: Prompt pattern set to {self._prompt.pattern!r}")

    def set_timeout(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = seconds

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"invalid session transition {self._state.value} -> {new_state.value}")
        logger.debug(f"{self._config.host}: {self._state.value} -> {new_state.value}")
        self._state = new_state

    def _require_ready(self) -> None:
        if self._state is not SessionState.READY:
            raise SessionNotConnectedError(
                f"{self._config.host}: session not connected (state={self._state.value})")

    def open(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Wait for the shell to become ready, logging in at the shell level if asked.

        Raises:
            OLTConnectionError: Neither a prompt nor a login banner appeared.
            AuthenticationError: Shell login could not complete.
        """
        self._transition(SessionState.AWAITING_BANNER)
        try:
            try:
                first = self._expect(
                    [("prompt", self._prompt), ("login", self._tables.login_prompt)],
                    self._timeout, "initial prompt", cancel)
            except CommandTimeoutError as e:
                raise OLTConnectionError(self._config.host, self._config.port,
                                         "no prompt or login banner received", e) from e

            if first.tag == "login":
                self._login(cancel)

            self._transition(SessionState.READY)
            logger.info(f"{self._config.host}: Shell ready (vendor={self._vendor or 'generic'})")

            # Command-level pager failures are tolerated; a dropped channel is not
            if self._disable_pager and not self._tables.requires_privileged_pager(self._vendor):
                self._try_disable_pager()
        except OltShellError:
            self._abort()
            raise

    def _login(self, cancel: Optional[threading.Event]) -> None:
        cfg = self._config
        self._transition(SessionState.LOGIN_USERNAME)
        if not cfg.username:
            raise AuthenticationError(cfg.host, "", "shell login required but no username configured")

        logger.debug(f"{cfg.host}: Shell login banner detected, sending username")
        self._send_line(cfg.username)
        try:
            self._expect([("password", self._tables.password_prompt)], self._timeout, "login password prompt", cancel)
        except CommandTimeoutError as e:
            raise AuthenticationError(cfg.host, cfg.username, "no password prompt after username", e) from e

        self._transition(SessionState.LOGIN_PASSWORD)
        self._send_line(cfg.password or "", secret=True)
        try:
            result = self._expect(
                [("prompt", self._prompt), ("login", self._tables.login_prompt)],
                self._timeout, "prompt after login", cancel)
        except CommandTimeoutError as e:
            raise AuthenticationError(cfg.host, cfg.username, "no prompt after password", e) from e

        if result.tag == "login":
            raise AuthenticationError(cfg.host, cfg.username, "shell login rejected")

    def _abort(self) -> None:
        """Tear down after a failed open. The primary error is re-raised by the caller."""
        try:
            self.close()
        except SessionCloseError as e:
            logger.warning(f"{self._config.host}: Cleanup after failed open also failed: {e}")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def execute(self, command: str, cancel: Optional[threading.Event] = None) -> str:
        """
        Send a command and return its cleaned output.

        Raises:
            SessionNotConnectedError: Session is not READY.
            CommandTimeoutError: Prompt did not return in time; carries partial output.
            CommandError: Output contains a CLI error banner; carries the output.
        """
        self._require_ready()
        self._transition(SessionState.EXECUTING)
        try:
            self._send_line(command)
            result = self._expect([("prompt", self._prompt)], self._timeout, f"execute {command!r}", cancel)
        finally:
            if self._state is SessionState.EXECUTING:
                self._transition(SessionState.READY)

        output = self.clean_output(result.output, command)
        matched = self._tables.find_error(output)
        if matched:
            raise CommandError(command, f"CLI error detected ({matched})", output=output)
        return output

    def execute_batch(self, commands: Sequence[str], cancel: Optional[threading.Event] = None) -> List[str]:
        """
        Run commands sequentially. The first failure aborts the rest.

        Raises:
            BatchExecutionError: Carries the outputs collected before the failure.
        """
        results = []
        for command in commands:
            try:
                results.append(self.execute(command, cancel))
            except OltShellError as e:
                raise BatchExecutionError(command, results, e) from e
        return results

    def execute_privileged(self, secret: Optional[str], command: str = "enable",
                           cancel: Optional[threading.Event] = None) -> str:
        """
        Run a privilege-escalation command that may prompt for a secondary password.

        Raises:
            AuthenticationError: The device asked for the password again.
            CommandTimeoutError: No prompt after the command or the password.
        """
        self._require_ready()
        self._transition(SessionState.EXECUTING)
        try:
            self._send_line(command)
            first = self._expect([("prompt", self._prompt), ("password", self._tables.password_prompt)],
                                 self._timeout, f"{command} response", cancel)
            output = first.output
            if first.tag == "password":
                self._send_line(secret or "", secret=True)
                second = self._expect([("prompt", self._prompt), ("password", self._tables.password_prompt)],
                                      self._timeout, f"{command} password", cancel)
                output += second.output
                if second.tag == "password":
                    raise AuthenticationError(self._config.host, self._config.username,
                                              f"{command} password rejected")
        finally:
            if self._state is SessionState.EXECUTING:
                self._transition(SessionState.READY)

        return self.clean_output(output, command)

    def disable_pager(self) -> str:
        """Send the vendor pager-disable command (for drivers that escalate first)."""
        return self.execute(self._tables.pager_command_for(self._vendor))

    def _try_disable_pager(self) -> None:
        try:
            self.disable_pager()
        except (CommandError, CommandTimeoutError) as e:
            logger.warning(f"{self._config.host}: Pager disable failed, continuing: {e}")

    def is_alive(self, timeout: Optional[float] = None) -> bool:
        """Send a blank line and expect the prompt within a short bound."""
        if self._state is not SessionState.READY:
            return False
        self._transition(SessionState.EXECUTING)
        try:
            self._send_line("")
            self._expect([("prompt", self._prompt)], timeout or self._liveness_timeout, "liveness probe")
            return True
        except (CommandTimeoutError, OLTConnectionError) as e:
            logger.debug(f"{self._config.host}: Liveness probe failed: {e}")
            return False
        finally:
            if self._state is SessionState.EXECUTING:
                self._transition(SessionState.READY)

    def clean_output(self, output: str, command: str) -> str:
        """
        Strip the command echo and prompt lines from raw output.

        The first line is dropped when it echoes the command; any line that
        matches the prompt pattern is dropped. Cleaning twice is a no-op.
        """
        text = output.replace("\r\n", "\n").replace("\r", "")
        cleaned = []
        for i, line in enumerate(text.split("\n")):
            if i == 0 and command and command in line:
                continue
            if self._prompt.search(line.strip()):
                continue
            cleaned.append(line)
        return "\n".join(cleaned).strip()

    # ------------------------------------------------------------------
    # Stream handling
    # ------------------------------------------------------------------

    def _send_line(self, text: str, secret: bool = False) -> None:
        logger.debug(f"{self._config.host}: Sending {'<secret>' if secret else repr(text)}")
        self._transport.send((text + "\n").encode("utf-8"))

    def _expect(
        self,
        patterns: Sequence[Tuple[str, Pattern]],
        timeout: float,
        operation: str,
        cancel: Optional[threading.Event] = None,
    ) -> ExpectMatch:
        """
        Race the reader worker against the deadline and the cancel event.

        The losing side is stopped explicitly: on timeout or cancel the worker
        is told to stop and the unmatched text is returned inside the error.
        """
        stop = threading.Event()
        future = self._reader.submit(self._read_until, patterns, stop)
        deadline = time.monotonic() + timeout
        try:
            while True:
                if not future.done():
                    if time.monotonic() >= deadline:
                        stop.set()
                        raise CommandTimeoutError(operation, timeout, output=self._take_partial())
                    if cancel is not None and cancel.is_set():
                        stop.set()
                        raise SessionCancelledError(operation, output=self._take_partial())
                try:
                    result = future.result(timeout=CANCEL_POLL_INTERVAL)
                except FutureTimeout:
                    continue
                if result is None:
                    raise CommandTimeoutError(operation, timeout, output=self._take_partial())
                return result
        finally:
            stop.set()

    def _read_until(self, patterns: Sequence[Tuple[str, Pattern]], stop: threading.Event) -> Optional[ExpectMatch]:
        while True:
            with self._buffer_lock:
                found = self._consume_match(patterns)
            if found is not None:
                return found
            if stop.is_set():
                return None
            chunk = self._transport.recv(READ_POLL_INTERVAL)
            if chunk:
                text = filter_ansi_sequences(self._decoder.decode(chunk))
                with self._buffer_lock:
                    self._buffer += text

    def _consume_match(self, patterns: Sequence[Tuple[str, Pattern]]) -> Optional[ExpectMatch]:
        # Earliest match wins; ties go to the first pattern listed
        best = None
        for tag, pattern in patterns:
            m = pattern.search(self._buffer)
            if m and (best is None or m.start() < best[1].start()):
                best = (tag, m)
        if best is None:
            return None
        tag, m = best
        output = self._buffer[:m.end()]
        self._buffer = self._buffer[m.end():]
        return ExpectMatch(tag=tag, output=output)

    def _take_partial(self) -> str:
        with self._buffer_lock:
            partial, self._buffer = self._buffer, ""
        return partial

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Close the session and the underlying transport. Safe to call twice.

        Raises:
            SessionCloseError: The transport failed to release its resources.
        """
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        self._reader.shutdown(wait=False, cancel_futures=True)
        self._transport.close()
