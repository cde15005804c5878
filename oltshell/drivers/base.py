"""
Driver contract and helpers shared by every vendor driver.

Path: oltshell/drivers/base.py

Drivers do not inherit connection logic. Each one composes a DeviceSession
and a VendorCapabilities value and satisfies the OLTDriver protocol.
"""

import logging
import threading
from typing import Optional, Protocol, Sequence, runtime_checkable

from oltshell.core.batch import BatchResult, run_batch
from oltshell.core.capabilities import VendorCapabilities
from oltshell.core.errors import SessionCloseError, ValidationError
from oltshell.ssh.session import DeviceSession


logger = logging.getLogger(__name__)


@runtime_checkable
class OLTDriver(Protocol):
    """What callers get back from DriverFactory.create_driver()."""

    @property
    def vendor(self) -> str: ...

    @property
    def model(self) -> str: ...

    def get_capabilities(self) -> VendorCapabilities: ...

    def connect(self, cancel: Optional[threading.Event] = None) -> None: ...

    def execute(self, command: str, cancel: Optional[threading.Event] = None) -> str: ...

    def close(self) -> None: ...


def abort_connect(session: DeviceSession, stage: str, error: Exception) -> None:
    """Close a half-initialized session after a failed connect step; the caller re-raises error."""
    logger.warning(f"{session.host}: {stage} failed: {error}")
    try:
        session.close()
    except SessionCloseError as close_error:
        logger.warning(f"{session.host}: Cleanup after {stage} failure also failed: {close_error}")


def validate_onu_target(caps: VendorCapabilities, pon_port: str, onu_id: int) -> None:
    """Reject malformed PON port / ONU id pairs before any command is sent."""
    if not pon_port:
        raise ValidationError("pon_port", pon_port, "PON port is required")
    expected = caps.port_format.count("/") + 1
    parts = pon_port.split("/")
    # Drivers accept the full address or the address without the leading frame/shelf
    if len(parts) not in (expected, expected - 1) or not all(p.isdigit() for p in parts):
        raise ValidationError("pon_port", pon_port, f"expected {caps.port_format}")
    if onu_id < 0:
        raise ValidationError("onu_id", onu_id, "must be non-negative")
    if caps.max_onus_per_port and onu_id >= caps.max_onus_per_port:
        raise ValidationError("onu_id", onu_id, f"exceeds {caps.max_onus_per_port} ONUs per port")


def run_commands(driver: OLTDriver, commands: Sequence[str], stop_on_error: bool = False,
                 cancel: Optional[threading.Event] = None) -> BatchResult:
    """
    Run commands through a connected driver, one BatchItemResult per command.

    Unlike ExpectSession.execute_batch this keeps going past failures unless
    stop_on_error is set.
    """
    return run_batch(
        commands,
        lambda command: driver.execute(command, cancel),
        stop_on_error=stop_on_error,
    )
