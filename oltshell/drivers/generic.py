"""
Generic CLI driver.

Used for vendors without a dedicated driver (zte, cdata, fiberhome): it
connects, disables the pager where the vendor allows it and passes commands
through unchanged.
"""

import threading
from typing import Optional

from oltshell.core.capabilities import VendorCapabilities
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.session import DeviceSession


class GenericDriver:
    """Pass-through driver for any vendor with a recognizable prompt."""

    def __init__(
        self,
        config: SessionConfig,
        model: str = "",
        capabilities: Optional[VendorCapabilities] = None,
        session: Optional[DeviceSession] = None,
        **session_options,
    ):
        self._vendor = (config.vendor or "generic").lower()
        self._model = model
        if capabilities is None:
            from oltshell.drivers.registry import get_capabilities
            capabilities = get_capabilities(self._vendor, model)
        self._capabilities = capabilities
        self._session = session or DeviceSession(config, **session_options)

    @property
    def vendor(self) -> str:
        return self._vendor

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

    def execute(self, command: str, cancel: Optional[threading.Event] = None) -> str:
        return self._session.execute(command, cancel)

    def is_alive(self) -> bool:
        return self._session.is_alive()

    def close(self) -> None:
        self._session.close()

    def __repr__(self) -> str:
        return f"GenericDriver({self._vendor}/{self._model or '-'} @ {self._session.host})"
