"""
oltshell - interactive CLI automation for multi-vendor OLTs.

Usage:
    oltshell vendors
    oltshell caps huawei MA5800-X7
    oltshell exec 10.0.0.1 -v huawei -u root -c "display version"
"""

__version__ = "0.1.0"

from oltshell.core.capabilities import VendorCapabilities
from oltshell.core.config import Config, get_config
from oltshell.core.errors import (
    AuthenticationError,
    CommandError,
    CommandTimeoutError,
    OLTConnectionError,
    OltShellError,
    UnsupportedOperationError,
    UnsupportedVendorError,
)
from oltshell.core.vendor_tables import VendorTables
from oltshell.drivers.registry import DriverFactory, create_driver, get_capabilities, get_default_factory
from oltshell.ssh.expect import ExpectSession, SessionState
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.session import DeviceSession

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    "get_config",
    "VendorTables",
    # Session
    "SessionConfig",
    "ExpectSession",
    "SessionState",
    "DeviceSession",
    # Capabilities / registry
    "VendorCapabilities",
    "DriverFactory",
    "create_driver",
    "get_capabilities",
    "get_default_factory",
    # Errors
    "OltShellError",
    "OLTConnectionError",
    "AuthenticationError",
    "CommandError",
    "CommandTimeoutError",
    "UnsupportedOperationError",
    "UnsupportedVendorError",
]
