"""
V-SOL GPON OLT CLI driver.

Path: oltshell/drivers/vsol.py

V-SOL only accepts "terminal length 0" once privileged, so the shell opens
with the pager still on and the connect sequence is:

    shell ready -> enable (+ password prompt) -> pager disable -> configure terminal
"""

import logging
import re
import threading
import time
from typing import Optional

from oltshell.core.capabilities import VendorCapabilities
from oltshell.core.errors import CommandError, CommandTimeoutError, OltShellError
from oltshell.core.optical import OpticalDiagnostics, classify_with_thresholds
from oltshell.drivers.base import abort_connect, validate_onu_target
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.session import DeviceSession


logger = logging.getLogger(__name__)

VENDOR = "vsol"

# critical, warning thresholds in dBm
RX_THRESHOLDS = (-28.0, -25.0)
TX_THRESHOLDS = (-3.0, 0.5)

# "GPON0/1:1           -28.530(dbm)"
_POWER_READING = re.compile(r"(-?\d+(?:\.\d+)?)\s*\(?\s*dbm\s*\)?", re.IGNORECASE)

REACTIVATE_DELAY = 3.0


def parse_power_reading(output: str) -> float:
    m = _POWER_READING.search(output)
    return float(m.group(1)) if m else 0.0


class VSOLDriver:
    """
    Capability-aware V-SOL OLT driver.

    session_options (tables, disable_pager, liveness_timeout, ...) are passed
    to the DeviceSession built when no session is given. disable_pager=False
    also skips the post-enable "terminal length 0".
    """

    def __init__(
        self,
        config: SessionConfig,
        model: str = "",
        capabilities: Optional[VendorCapabilities] = None,
        session: Optional[DeviceSession] = None,
        **session_options,
    ):
        self._config = config.with_vendor(VENDOR)
        self._model = model
        if capabilities is None:
            from oltshell.drivers.registry import get_capabilities
            capabilities = get_capabilities(VENDOR, model)
        self._capabilities = capabilities
        self._session = session or DeviceSession(self._config, **session_options)
        self._disable_pager = session_options.get("disable_pager", True)

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
        try:
            self._session.execute_privileged(self._config.password, "enable", cancel)
        except OltShellError as e:
            abort_connect(self._session, "enable mode", e)
            raise

        if self._disable_pager:
            try:
                self._session.disable_pager()
            except (CommandError, CommandTimeoutError) as e:
                logger.warning(f"{self._session.host}: Pager disable failed, continuing: {e}")
            except OltShellError as e:
                abort_connect(self._session, "pager disable", e)
                raise

        try:
            self._session.execute("configure terminal", cancel)
        except OltShellError as e:
            abort_connect(self._session, "config mode", e)
            raise

    def execute(self, command: str, cancel: Optional[threading.Event] = None) -> str:
        return self._session.execute(command, cancel)

    def is_alive(self) -> bool:
        return self._session.is_alive()

    def close(self) -> None:
        self._session.close()

    # -- ONU operations ------------------------------------------------------

    def _in_interface(self, pon_port: str, *commands: str) -> list:
        with self._session.hold():
            self._session.execute(f"interface gpon {pon_port}")
            outputs = []
            try:
                for command in commands:
                    outputs.append(self._session.execute(command))
            except OltShellError:
                self._leave_interface()
                raise
            self._session.execute("exit")
            return outputs

    def _leave_interface(self) -> None:
        try:
            self._session.execute("exit")
        except OltShellError as e:
            logger.warning(f"{self._session.host}: Could not leave interface context: {e}")

    def delete_onu(self, pon_port: str, onu_id: int) -> str:
        self._capabilities.require("delete_onu")
        validate_onu_target(self._capabilities, pon_port, onu_id)
        return self._in_interface(pon_port, f"no onu {onu_id}")[0]

    def reboot_onu(self, pon_port: str, onu_id: int, delay: float = REACTIVATE_DELAY) -> None:
        """
        No direct reboot on V-SOL: deactivate, wait, activate.

        Runs regardless of supports_reboot, which only covers a native
        reboot command.
        """
        validate_onu_target(self._capabilities, pon_port, onu_id)
        with self._session.hold():
            self._session.execute(f"interface gpon {pon_port}")
            try:
                self._session.execute(f"onu {onu_id} deactivate")
                time.sleep(delay)
                self._session.execute(f"onu {onu_id} activate")
            except OltShellError:
                self._leave_interface()
                raise
            self._session.execute("exit")

    def get_optical_diagnostics(self, pon_port: str, onu_id: int) -> OpticalDiagnostics:
        self._capabilities.require("get_optical_diagnostics")
        validate_onu_target(self._capabilities, pon_port, onu_id)
        rx_output, tx_output = self._in_interface(
            pon_port, f"show pon onu {onu_id} rx-power", f"show pon onu {onu_id} tx-power")
        diag = OpticalDiagnostics(rx_power=parse_power_reading(rx_output),
                                  tx_power=parse_power_reading(tx_output))
        diag.rx_power_status = classify_with_thresholds(diag.rx_power, *RX_THRESHOLDS)
        diag.tx_power_status = classify_with_thresholds(diag.tx_power, *TX_THRESHOLDS)
        return diag

    def save_config(self) -> str:
        try:
            return self._session.execute("write memory")
        except CommandError:
            # Older firmware only knows "save"
            return self._session.execute("save")
