"""
Huawei MA5600T/MA5800 CLI driver.

Path: oltshell/drivers/huawei.py

Connect sequence: shell ready -> "enable" -> "config". Every operation
below runs from global config mode and returns there when done.

PON ports are addressed frame/slot/port ("0/1/1"). Board commands take the
frame/slot part; the port number is passed as an argument inside the board
context.
"""

import logging
import re
import threading
from typing import Optional, Tuple

from oltshell.core.capabilities import VendorCapabilities
from oltshell.core.errors import OltShellError, ValidationError
from oltshell.core.optical import OpticalDiagnostics, classify_rx_power
from oltshell.drivers.base import abort_connect, validate_onu_target
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.session import DeviceSession


logger = logging.getLogger(__name__)

VENDOR = "huawei"

_RX_POWER = re.compile(r"(?i)(?:rx|receive)[- ](?:optical[- ])?power\s*\(?dBm?\)?\s*:\s*([-\d.]+)")
_TX_POWER = re.compile(r"(?i)(?:tx|transmit)[- ](?:optical[- ])?power\s*\(?dBm?\)?\s*:\s*([-\d.]+)")
_OLT_RX_POWER = re.compile(r"(?i)OLT[- ]rx[- ](?:ONT[- ])?(?:optical[- ])?power\s*\(?dBm?\)?\s*:\s*([-\d.]+)")
_TEMPERATURE = re.compile(r"(?i)temperature\s*\(?\S?C?\)?\s*:\s*([-\d.]+)")
_VOLTAGE = re.compile(r"(?i)voltage\s*\(?V?\)?\s*:\s*([-\d.]+)")
_BIAS_CURRENT = re.compile(r"(?i)bias[- ]current\s*\(?mA?\)?\s*:\s*([-\d.]+)")


def _read_float(pattern, output: str) -> float:
    m = pattern.search(output)
    if not m:
        return 0.0
    try:
        return float(m.group(1))
    except ValueError:
        return 0.0


def parse_optical_info(output: str) -> OpticalDiagnostics:
    """Parse `display ont optical-info` output."""
    diag = OpticalDiagnostics(
        rx_power=_read_float(_RX_POWER, output),
        tx_power=_read_float(_TX_POWER, output),
        olt_rx_power=_read_float(_OLT_RX_POWER, output),
        temperature=_read_float(_TEMPERATURE, output),
        voltage=_read_float(_VOLTAGE, output),
        bias_current=_read_float(_BIAS_CURRENT, output),
    )
    diag.rx_power_status = classify_rx_power(diag.rx_power)
    diag.tx_power_status = classify_rx_power(diag.tx_power)
    return diag


class HuaweiDriver:
    """
    Capability-aware Huawei OLT driver.

    Usage:
        driver = HuaweiDriver(SessionConfig(host="10.0.0.1", username="root",
                                            password="x", vendor="huawei"), "MA5800-X7")
        driver.connect()
        driver.reboot_onu("0/1/1", 5)
        driver.close()
    """

    def __init__(
        self,
        config: SessionConfig,
        model: str = "",
        capabilities: Optional[VendorCapabilities] = None,
        session: Optional[DeviceSession] = None,
        **session_options,
    ):
        self._model = model
        if capabilities is None:
            from oltshell.drivers.registry import get_capabilities
            capabilities = get_capabilities(VENDOR, model)
        self._capabilities = capabilities
        self._session = session or DeviceSession(config.with_vendor(VENDOR), **session_options)

    @property
    def vendor(self) -> str:
        return VENDOR

    @property
    def model(self) -> str:
        return self._model

    @property
    def session(self) -> DeviceSession:
        return self._session

    def get_capabilities(self) -> VendorCapabilities:
        return self._capabilities

    def connect(self, cancel: Optional[threading.Event] = None) -> None:
        self._session.connect(cancel)
        for stage, command in (("enable mode", "enable"), ("config mode", "config")):
            try:
                self._session.execute(command, cancel)
            except OltShellError as e:
                abort_connect(self._session, stage, e)
                raise

    def execute(self, command: str, cancel: Optional[threading.Event] = None) -> str:
        return self._session.execute(command, cancel)

    def is_alive(self) -> bool:
        return self._session.is_alive()

    def close(self) -> None:
        self._session.close()

    # -- ONU operations ------------------------------------------------------

    def _board_and_port(self, pon_port: str, onu_id: int) -> Tuple[str, str]:
        validate_onu_target(self._capabilities, pon_port, onu_id)
        parts = pon_port.split("/")
        if len(parts) != 3:
            raise ValidationError("pon_port", pon_port, "expected frame/slot/port")
        return "/".join(parts[:2]), parts[2]

    def _in_board(self, board: str, command: str) -> str:
        with self._session.hold():
            self._session.execute(f"interface gpon {board}")
            try:
                output = self._session.execute(command)
            except OltShellError:
                self._leave_board()
                raise
            self._session.execute("quit")
            return output

    def _leave_board(self) -> None:
        try:
            self._session.execute("quit")
        except OltShellError as e:
            logger.warning(f"{self._session.host}: Could not leave board context: {e}")

    def reboot_onu(self, pon_port: str, onu_id: int) -> str:
        self._capabilities.require("reboot_onu")
        board, port = self._board_and_port(pon_port, onu_id)
        logger.info(f"{self._session.host}: Resetting ONT {pon_port} {onu_id}")
        return self._in_board(board, f"ont reset {port} {onu_id}")

    def delete_onu(self, pon_port: str, onu_id: int) -> str:
        self._capabilities.require("delete_onu")
        board, port = self._board_and_port(pon_port, onu_id)
        logger.info(f"{self._session.host}: Deleting ONT {pon_port} {onu_id}")
        return self._in_board(board, f"ont delete {port} {onu_id}")

    def get_onu_info(self, pon_port: str, onu_id: int) -> str:
        self._capabilities.require("get_onu_info")
        validate_onu_target(self._capabilities, pon_port, onu_id)
        return self._session.execute(f"display ont info {pon_port} {onu_id}")

    def get_optical_diagnostics(self, pon_port: str, onu_id: int) -> OpticalDiagnostics:
        self._capabilities.require("get_optical_diagnostics")
        board, port = self._board_and_port(pon_port, onu_id)
        output = self._in_board(board, f"display ont optical-info {port} {onu_id}")
        return parse_optical_info(output)

    def save_config(self) -> None:
        output = self._session.execute("save")
        if "Are you sure" in output or "Y/N" in output:
            self._session.execute("y")
