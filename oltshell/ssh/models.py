"""
Session configuration model.

Dataclass describing how to reach and log into one OLT.
"""

from dataclasses import dataclass, replace
from typing import Optional


DEFAULT_PORT = 22
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class SessionConfig:
    """SSH and shell-login parameters for one device. Immutable once built."""

    host: str
    username: str = ""
    password: Optional[str] = None
    vendor: str = ""
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    key_file: Optional[str] = None
    legacy_mode: bool = False

    def __post_init__(self):
        # Unset values fall back to the defaults
        if not self.port or self.port <= 0:
            object.__setattr__(self, "port", DEFAULT_PORT)
        if not self.timeout or self.timeout <= 0:
            object.__setattr__(self, "timeout", DEFAULT_TIMEOUT)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def has_password(self) -> bool:
        return self.password is not None

    def with_vendor(self, vendor: str) -> "SessionConfig":
        return replace(self, vendor=vendor)

    def __repr__(self) -> str:
        # Never render the secret
        return (f"SessionConfig(host={self.host!r}, port={self.port}, username={self.username!r}, "
                f"vendor={self.vendor!r}, timeout={self.timeout:g})")
