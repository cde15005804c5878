"""
Exception hierarchy and error categorization.

Path: oltshell/core/errors.py

Every failure raised by the session layer, the capability model and the
driver registry derives from OltShellError. Errors raised after a command
was sent always carry the captured device text in ``output`` so callers can
log it for postmortem without re-running the command.
"""

import socket
from enum import Enum
from typing import Any, List, Optional


class OltShellError(Exception):
    """Base class for all oltshell errors."""


class OLTConnectionError(OltShellError):
    """Transport dial or handshake failure."""

    def __init__(self, host: str, port: int, message: str, cause: Optional[BaseException] = None):
        self.host = host
        self.port = port
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.cause is not None:
            return f"connection to {self.host}:{self.port} failed: {self.message} ({self.cause})"
        return f"connection to {self.host}:{self.port} failed: {self.message}"


class AuthenticationError(OltShellError):
    """Credential rejection at the SSH layer or at the device shell login."""

    def __init__(self, host: str, username: str, message: str, cause: Optional[BaseException] = None):
        self.host = host
        self.username = username
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.cause is not None:
            return f"authentication failed for {self.username}@{self.host}: {self.message} ({self.cause})"
        return f"authentication failed for {self.username}@{self.host}: {self.message}"


class CommandError(OltShellError):
    """
    A command was sent and its response indicates failure.

    ``output`` holds the captured device text. It is empty when the prompt
    never came back and populated when an error banner was detected.
    """

    def __init__(self, command: str, message: str, output: str = "", cause: Optional[BaseException] = None):
        self.command = command
        self.message = message
        self.output = output
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.output:
            return f"command {self.command!r} failed: {self.message} (output: {self.output})"
        if self.cause is not None:
            return f"command {self.command!r} failed: {self.message} ({self.cause})"
        return f"command {self.command!r} failed: {self.message}"


class CommandTimeoutError(OltShellError):
    """A blocking step exceeded its deadline."""

    def __init__(self, operation: str, timeout: float, message: str = "", output: str = ""):
        self.operation = operation
        self.timeout = timeout
        self.message = message or "no prompt received"
        self.output = output
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"operation {self.operation!r} timed out after {self.timeout:g}s: {self.message}"


class SessionCancelledError(OltShellError):
    """The caller cancelled a blocking wait. The session may be desynchronized."""

    def __init__(self, operation: str, output: str = ""):
        self.operation = operation
        self.output = output
        super().__init__(f"operation {operation!r} cancelled")


class SessionNotConnectedError(OltShellError):
    """Execute called on a session that is not open."""


class SessionCloseError(OltShellError):
    """One or more resources failed to close. All failures are kept."""

    def __init__(self, errors: List[BaseException]):
        self.errors = list(errors)
        detail = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"close errors: {detail}")


class BatchExecutionError(OltShellError):
    """A command in a sequential batch failed; earlier outputs are preserved."""

    def __init__(self, command: str, results: List[str], cause: BaseException):
        self.command = command
        self.results = list(results)
        self.cause = cause
        super().__init__(f"command {command!r} failed after {len(self.results)} completed: {cause}")


class UnsupportedOperationError(OltShellError):
    """The capability model says this vendor/model cannot do the operation."""

    def __init__(self, vendor: str, model: str, operation: str, reason: str = ""):
        self.vendor = vendor
        self.model = model
        self.operation = operation
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        target = f"{self.vendor} {self.model}" if self.model else self.vendor
        if self.reason:
            return f"operation {self.operation!r} not supported by {target}: {self.reason}"
        return f"operation {self.operation!r} not supported by {target}"


class UnsupportedVendorError(OltShellError):
    """No driver constructor is registered for the vendor."""

    def __init__(self, vendor: str, supported: Optional[List[str]] = None):
        self.vendor = vendor
        self.supported = list(supported or [])
        message = f"unsupported vendor: {vendor}"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message)


class ValidationError(OltShellError):
    """A caller-supplied argument is malformed. Raised before any I/O."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.value is not None:
            return f"validation failed for {self.field}={self.value}: {self.message}"
        return f"validation failed for {self.field}: {self.message}"


class ResourceNotFoundError(OltShellError):
    """An ONU, port or profile referenced by the caller is absent on the device."""

    def __init__(self, resource_type: str, identifier: str, message: str = ""):
        self.resource_type = resource_type
        self.identifier = identifier
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.message:
            return f"{self.resource_type} {self.identifier!r} not found: {self.message}"
        return f"{self.resource_type} {self.identifier!r} not found"


class ErrorCategory(Enum):
    """Categorized error types for batch and CLI reporting."""
    SUCCESS = "success"
    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    COMMAND = "command"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNSUPPORTED = "unsupported"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


_CATEGORY_BY_TYPE = (
    (AuthenticationError, ErrorCategory.AUTHENTICATION),
    (OLTConnectionError, ErrorCategory.CONNECTION),
    (SessionNotConnectedError, ErrorCategory.CONNECTION),
    (CommandTimeoutError, ErrorCategory.TIMEOUT),
    (SessionCancelledError, ErrorCategory.CANCELLED),
    (CommandError, ErrorCategory.COMMAND),
    (BatchExecutionError, ErrorCategory.COMMAND),
    (UnsupportedOperationError, ErrorCategory.UNSUPPORTED),
    (UnsupportedVendorError, ErrorCategory.UNSUPPORTED),
    (ValidationError, ErrorCategory.VALIDATION),
    (ResourceNotFoundError, ErrorCategory.NOT_FOUND),
)


def categorize_error(exception: BaseException) -> ErrorCategory:
    """
    Categorize an exception for reporting.

    Typed oltshell errors map directly. Anything else falls back to the
    message heuristics used for raw socket and paramiko failures.

    Args:
        exception: The caught exception.

    Returns:
        ErrorCategory for the failure.
    """
    for exc_type, category in _CATEGORY_BY_TYPE:
        if isinstance(exception, exc_type):
            return category

    error_msg = str(exception).lower()

    if "timed out" in error_msg or isinstance(exception, socket.timeout):
        return ErrorCategory.TIMEOUT

    if any(x in error_msg for x in ["auth", "permission denied", "no supported authentication"]):
        return ErrorCategory.AUTHENTICATION

    if "connection refused" in error_msg or "name or service not known" in error_msg:
        return ErrorCategory.CONNECTION

    if isinstance(exception, (socket.error, OSError)):
        return ErrorCategory.CONNECTION

    return ErrorCategory.UNKNOWN
