"""Unit tests for ExpectSession against a scripted transport.

Covers login handling, command execution, output cleaning, error
classification, privilege escalation, liveness and teardown without any
network I/O.
"""

import threading

import pytest

from oltshell.core.errors import (
    AuthenticationError,
    BatchExecutionError,
    CommandError,
    CommandTimeoutError,
    OLTConnectionError,
    SessionCancelledError,
    SessionNotConnectedError,
)
from oltshell.core.vendor_tables import VendorTables, get_default_tables
from oltshell.ssh.expect import ExpectSession, SessionState
from oltshell.ssh.models import SessionConfig


ONT_INFO = "display ont info 0/1/1 1"
ONT_INFO_REPLY = (
    b"display ont info 0/1/1 1\r\n"
    b"  F/S/P                   : 0/1/1\r\n"
    b"  ONT-ID                  : 1\r\n"
    b"  Run state               : online\r\n"
    b"MA5800#"
)


def open_session(transport, config, **kwargs):
    session = ExpectSession(transport, config, **kwargs)
    session.open()
    return session


class TestPromptPatterns:
    """Prompt and login pattern classification."""

    def test_generic_prompt_matches_hash_prompt(self):
        assert get_default_tables().default_prompt.search("MA5800#")

    def test_generic_prompt_matches_mode_prompt(self):
        assert get_default_tables().default_prompt.search("OLT(config)#")

    def test_username_banner_is_login_not_prompt(self):
        tables = get_default_tables()
        assert tables.login_prompt.search("Username:")
        assert not tables.default_prompt.search("Username:")

    def test_huawei_prompt_variants(self):
        prompt = get_default_tables().prompt_for("HUAWEI")
        for line in ("<MA5800>", "[MA5800-config]", "MA5800#", "MA5800(config)#"):
            assert prompt.search(line), line


class TestOpen:
    """Banner handling and shell-level login."""

    def test_prompt_banner_reaches_ready(self, make_transport, huawei_config):
        transport = make_transport()
        session = open_session(transport, huawei_config)

        assert session.state == SessionState.READY
        # Huawei pager is disabled right after the prompt
        assert transport.written == [b"screen-length 0 temporary\n"]

    def test_login_sequence(self, make_transport, huawei_config):
        transport = make_transport(
            banner=b"Login: ",
            replies={"admin": b"admin\r\nPassword: ", "secret": b"\r\nMA5800#"},
        )
        session = open_session(transport, huawei_config, disable_pager=False)

        assert transport.written == [b"admin\n", b"secret\n"]
        assert session.state == SessionState.READY

    def test_username_banner_triggers_login(self, make_transport, huawei_config):
        transport = make_transport(
            banner=b"Welcome\r\nUsername:",
            replies={"admin": b"admin\r\nPassword:", "secret": b"\r\nMA5800#"},
        )
        session = open_session(transport, huawei_config, disable_pager=False)

        assert transport.written[0] == b"admin\n"
        assert session.state == SessionState.READY

    def test_login_rejected(self, make_transport, huawei_config):
        transport = make_transport(
            banner=b"Login: ",
            replies={"admin": b"admin\r\nPassword: ", "secret": b"\r\nLogin incorrect\r\nLogin: "},
        )
        session = ExpectSession(transport, huawei_config, disable_pager=False)

        with pytest.raises(AuthenticationError):
            session.open()

        assert session.state == SessionState.CLOSED
        assert transport.closed

    def test_login_without_username(self, make_transport):
        config = SessionConfig(host="olt1", vendor="huawei", timeout=1.0)
        transport = make_transport(banner=b"Username: ")
        session = ExpectSession(transport, config, disable_pager=False)

        with pytest.raises(AuthenticationError):
            session.open()
        assert transport.written == []
        assert transport.closed

    def test_missing_password_prompt_is_auth_error(self, make_transport, huawei_config):
        config = SessionConfig(host="olt1", username="admin", password="secret", vendor="huawei", timeout=0.3)
        transport = make_transport(banner=b"Login: ", replies={"admin": b""})
        session = ExpectSession(transport, config, disable_pager=False)

        with pytest.raises(AuthenticationError) as exc_info:
            session.open()
        assert isinstance(exc_info.value.cause, CommandTimeoutError)

    def test_silent_device_is_connection_error(self, make_transport):
        config = SessionConfig(host="olt1", vendor="huawei", timeout=0.3)
        transport = make_transport(banner=None)
        session = ExpectSession(transport, config)

        with pytest.raises(OLTConnectionError):
            session.open()
        assert session.state == SessionState.CLOSED
        assert transport.closed

    def test_ansi_sequences_ignored(self, make_transport, huawei_config):
        transport = make_transport(banner=b"\x1b[2J\x1b[1;1H\r\nMA5800#")
        session = open_session(transport, huawei_config, disable_pager=False)
        assert session.state == SessionState.READY

    def test_pager_failure_is_not_fatal(self, make_transport, huawei_config):
        transport = make_transport(replies={
            "screen-length 0 temporary": b"screen-length 0 temporary\r\n% Unknown command\r\nMA5800#",
        })
        session = open_session(transport, huawei_config)
        assert session.state == SessionState.READY

    def test_privileged_pager_vendor_skips_pager(self, make_transport, vsol_config):
        transport = make_transport(banner=b"\r\nOLT>", prompt=b"OLT>")
        session = open_session(transport, vsol_config)

        assert session.state == SessionState.READY
        assert transport.written == []


class TestExecute:
    """Command execution and output cleaning."""

    def test_returns_body_without_echo_or_prompt(self, make_transport, huawei_config):
        transport = make_transport(replies={ONT_INFO: ONT_INFO_REPLY})
        session = open_session(transport, huawei_config)

        output = session.execute(ONT_INFO)

        assert ONT_INFO not in output
        assert "MA5800#" not in output
        assert output.startswith("F/S/P")
        assert "Run state               : online" in output
        assert transport.written[-1] == (ONT_INFO + "\n").encode()

    def test_error_banner_raises_with_output(self, make_transport, huawei_config):
        transport = make_transport(replies={
            "display foo": b"display foo\r\n% Unknown command, the error locates at '^'\r\nMA5800#",
        })
        session = open_session(transport, huawei_config)

        with pytest.raises(CommandError) as exc_info:
            session.execute("display foo")

        assert "% Unknown command" in exc_info.value.output
        assert exc_info.value.command == "display foo"
        assert session.state == SessionState.READY

    def test_timeout_keeps_partial_output(self, make_transport, huawei_config):
        transport = make_transport(replies={"display slow": b"display slow\r\npartial line"})
        session = open_session(transport, huawei_config)
        session.set_timeout(0.3)

        with pytest.raises(CommandTimeoutError) as exc_info:
            session.execute("display slow")

        assert "partial line" in exc_info.value.output
        assert session.state == SessionState.READY

    def test_cancel_event(self, make_transport, huawei_config):
        transport = make_transport(replies={"display hang": b""})
        session = open_session(transport, huawei_config)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(SessionCancelledError):
            session.execute("display hang", cancel=cancel)
        assert session.state == SessionState.READY

    def test_mode_prompt_after_config(self, make_transport, huawei_config):
        transport = make_transport(replies={"config": b"config\r\nMA5800(config)#"})
        session = open_session(transport, huawei_config)

        assert session.execute("config") == ""

    def test_execute_before_open(self, make_transport, huawei_config):
        session = ExpectSession(make_transport(), huawei_config)
        with pytest.raises(SessionNotConnectedError):
            session.execute("display version")

    def test_execute_after_close(self, make_transport, huawei_config):
        session = open_session(make_transport(), huawei_config)
        session.close()
        with pytest.raises(SessionNotConnectedError):
            session.execute("display version")

    def test_custom_tables(self, make_transport):
        tables = VendorTables.build(prompts={"acme": r"acme\$\s*$"}, error_patterns=["rejected"])
        config = SessionConfig(host="lab", vendor="acme", timeout=2.0)
        transport = make_transport(banner=b"\r\nacme$", prompt=b"acme$",
                                   replies={"bad": b"bad\r\nRejected by policy\r\nacme$"})
        session = open_session(transport, config, tables=tables, disable_pager=False)

        assert session.execute("show thing") == ""
        with pytest.raises(CommandError):
            session.execute("bad")


class TestCleanOutput:
    """clean_output() behaviour."""

    def test_idempotent(self, make_transport, huawei_config):
        session = ExpectSession(make_transport(), huawei_config)
        raw = ONT_INFO_REPLY.decode()

        once = session.clean_output(raw, ONT_INFO)
        assert session.clean_output(once, ONT_INFO) == once

    def test_normalizes_line_endings(self, make_transport, huawei_config):
        session = ExpectSession(make_transport(), huawei_config)
        cleaned = session.clean_output("cmd\r\nline one\r\nline two\r\nMA5800#", "cmd")
        assert cleaned == "line one\nline two"

    def test_keeps_first_line_without_echo(self, make_transport, huawei_config):
        session = ExpectSession(make_transport(), huawei_config)
        assert session.clean_output("result\nMA5800#", "cmd") == "result"


class TestBatch:
    """execute_batch() sequencing."""

    def test_all_succeed(self, make_transport, huawei_config):
        session = open_session(make_transport(), huawei_config)
        assert session.execute_batch(["display version", "display board 0"]) == ["", ""]

    def test_failure_keeps_partial_results(self, make_transport, huawei_config):
        transport = make_transport(replies={
            "display version": b"display version\r\nVERSION : MA5800V100R019\r\nMA5800#",
            "bogus": b"bogus\r\n% Invalid input\r\nMA5800#",
        })
        session = open_session(transport, huawei_config)

        with pytest.raises(BatchExecutionError) as exc_info:
            session.execute_batch(["display version", "bogus", "display board 0"])

        err = exc_info.value
        assert err.command == "bogus"
        assert err.results == ["VERSION : MA5800V100R019"]
        assert isinstance(err.cause, CommandError)
        assert b"display board 0\n" not in transport.written


class TestPrivileged:
    """execute_privileged() with and without a password prompt."""

    def test_password_prompt(self, make_transport, vsol_config):
        transport = make_transport(
            banner=b"\r\nOLT>", prompt=b"OLT#",
            replies={"enable": b"enable\r\nPassword: ", "s3cret": b"\r\nOLT#"},
        )
        session = open_session(transport, vsol_config)

        session.execute_privileged("s3cret")

        assert transport.written == [b"enable\n", b"s3cret\n"]
        assert session.state == SessionState.READY

    def test_no_password_prompt(self, make_transport, vsol_config):
        transport = make_transport(banner=b"\r\nOLT>", prompt=b"OLT#")
        session = open_session(transport, vsol_config)

        session.execute_privileged("s3cret")

        assert transport.written == [b"enable\n"]

    def test_password_rejected(self, make_transport, vsol_config):
        transport = make_transport(
            banner=b"\r\nOLT>", prompt=b"OLT#",
            replies={"enable": b"enable\r\nPassword: ", "wrong": b"\r\n% Bad password\r\nPassword: "},
        )
        session = open_session(transport, vsol_config)

        with pytest.raises(AuthenticationError):
            session.execute_privileged("wrong")
        assert session.state == SessionState.READY


class TestLiveness:
    """is_alive() liveness check."""

    def test_alive(self, make_transport, huawei_config):
        transport = make_transport()
        session = open_session(transport, huawei_config)

        assert session.is_alive()
        assert transport.written[-1] == b"\n"

    def test_silent_device(self, make_transport, huawei_config):
        transport = make_transport(replies={"": b""})
        session = open_session(transport, huawei_config, liveness_timeout=0.2)

        assert not session.is_alive()
        assert session.state == SessionState.READY

    def test_not_open(self, make_transport, huawei_config):
        assert not ExpectSession(make_transport(), huawei_config).is_alive()


class TestClose:
    """close() teardown."""

    def test_close_twice(self, make_transport, huawei_config):
        transport = make_transport()
        session = open_session(transport, huawei_config)

        session.close()
        session.close()

        assert transport.closed
        assert session.state == SessionState.CLOSED

    def test_set_prompt_pattern(self, make_transport, huawei_config):
        session = ExpectSession(make_transport(), huawei_config)
        session.set_prompt_pattern(r"diag>\s*$")
        assert session.prompt_pattern.search("diag>")
        assert not session.prompt_pattern.search("MA5800#")

    def test_set_timeout_rejects_zero(self, make_transport, huawei_config):
        session = ExpectSession(make_transport(), huawei_config)
        with pytest.raises(ValueError):
            session.set_timeout(0)
