"""
Device inventory and protocol validation.

Path: oltshell/core/inventory.py

Each managed OLT declares which management protocols are enabled. Vendors
need specific ones: a config protocol for changes and a telemetry protocol
for polling. Validation runs before any connection is attempted.

Inventory YAML:

    devices:
      - name: olt-core-01
        host: 10.0.0.1
        vendor: huawei
        model: MA5800-X7
        protocols: [cli, snmp]
        primary: cli
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from oltshell.core.errors import ValidationError


logger = logging.getLogger(__name__)

KNOWN_PROTOCOLS = ("cli", "snmp", "netconf", "gnmi", "rest")

# vendor -> (config protocol, telemetry protocol)
VENDOR_PROTOCOL_REQUIREMENTS: Dict[str, Tuple[str, str]] = {
    "huawei": ("cli", "snmp"),
    "zte": ("cli", "snmp"),
    "vsol": ("cli", "snmp"),
    "cdata": ("cli", "snmp"),
    "nokia": ("netconf", "gnmi"),
    "adtran": ("netconf", "snmp"),
}


@dataclass
class ProtocolSettings:
    """Enabled management protocols for one device. Legacy "ssh" counts as "cli"."""
    enabled: List[str] = field(default_factory=list)
    primary: str = ""

    def __post_init__(self):
        normalized = []
        for name in self.enabled:
            name = name.lower()
            if name == "ssh":
                name = "cli"
            if name not in normalized:
                normalized.append(name)
        self.enabled = normalized
        self.primary = self.primary.lower()

    def has_protocol(self, protocol: str) -> bool:
        protocol = (protocol or "").lower()
        if protocol == "ssh":
            protocol = "cli"
        return protocol in self.enabled

    def primary_protocol(self) -> str:
        """Explicit primary, else the first enabled in cli, snmp, netconf, gnmi, rest order."""
        if self.primary:
            return self.primary
        for name in KNOWN_PROTOCOLS:
            if name in self.enabled:
                return name
        return "cli"


@dataclass
class DeviceConfig:
    """One inventory entry."""
    name: str
    host: str
    vendor: str = ""
    model: str = ""
    port: int = 22
    protocols: ProtocolSettings = field(default_factory=ProtocolSettings)

    def validate(self) -> None:
        if not self.host:
            raise ValidationError("host", None, f"device {self.name!r} has no host")
        validate_protocols_for_vendor(self.vendor, self.protocols)


def validate_protocols_for_vendor(vendor: str, protocols: ProtocolSettings) -> None:
    """
    Check that the vendor's required protocols are enabled.

    Unknown or empty vendors pass; any protocol mix is allowed for them.

    Raises:
        ValidationError: A required config or telemetry protocol is missing.
    """
    vendor = (vendor or "").lower()
    if not vendor or vendor not in VENDOR_PROTOCOL_REQUIREMENTS:
        return

    config_method, telemetry_method = VENDOR_PROTOCOL_REQUIREMENTS[vendor]
    if not protocols.has_protocol(config_method):
        raise ValidationError(
            "protocols", protocols.enabled,
            f"vendor {vendor} requires config protocol {config_method} but it is not enabled")
    if not protocols.has_protocol(telemetry_method):
        raise ValidationError(
            "protocols", protocols.enabled,
            f"vendor {vendor} requires telemetry protocol {telemetry_method} but it is not enabled")


def _device_from_dict(entry: dict, index: int) -> DeviceConfig:
    if not isinstance(entry, dict):
        raise ValidationError(f"devices[{index}]", entry, "expected a mapping")
    protocols = entry.get("protocols") or []
    if isinstance(protocols, str):
        protocols = [p.strip() for p in protocols.split(",") if p.strip()]
    return DeviceConfig(
        name=str(entry.get("name") or entry.get("host") or f"device-{index}"),
        host=str(entry.get("host") or ""),
        vendor=str(entry.get("vendor") or "").lower(),
        model=str(entry.get("model") or ""),
        port=int(entry.get("port") or 22),
        protocols=ProtocolSettings(enabled=list(protocols), primary=str(entry.get("primary") or "")),
    )


def load_inventory(path: Path) -> List[DeviceConfig]:
    """
    Load device entries from an inventory YAML file.

    Entries are parsed but not validated; call validate() on each.

    Raises:
        FileNotFoundError: The file does not exist.
        ValueError: The file is not valid YAML or lacks a devices list.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Inventory not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}")

    devices = data.get("devices") if isinstance(data, dict) else None
    if not isinstance(devices, list):
        raise ValueError(f"{path}: expected a top-level 'devices' list")

    loaded = [_device_from_dict(entry, i) for i, entry in enumerate(devices)]
    logger.debug(f"Loaded {len(loaded)} devices from {path}")
    return loaded


def validate_inventory(devices: List[DeviceConfig]) -> Dict[str, Optional[ValidationError]]:
    """Validate every device, returning name -> error (None when valid)."""
    results = {}
    for device in devices:
        try:
            device.validate()
            results[device.name] = None
        except ValidationError as e:
            results[device.name] = e
    return results
