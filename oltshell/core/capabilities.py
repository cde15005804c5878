"""
Vendor capability model.

Path: oltshell/core/capabilities.py

A VendorCapabilities value answers "can this vendor/model do X" without
touching the device. Values are frozen and safe to share between any number
of connections. Derived predicates are computed from the flags on every call.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

from oltshell.core.errors import UnsupportedOperationError


# Operation name -> capability flag checked by supports()/require()
OPERATION_FLAGS: Dict[str, str] = {
    "add_onu": "supports_provision",
    "delete_onu": "supports_delete",
    "reboot_onu": "supports_reboot",
    "get_onu_info": "supports_onu_info",
    "list_pon_ports": "supports_port_list",
    "get_pon_port_info": "supports_port_list",
    "enable_pon_port": "supports_port_control",
    "disable_pon_port": "supports_port_control",
    "set_port_description": "supports_port_control",
    "configure_vlan": "supports_vlan",
    "get_vlan_config": "supports_vlan",
    "list_vlans": "supports_vlan",
    "add_vlan_translation": "supports_vlan_translation",
    "remove_vlan_translation": "supports_vlan_translation",
    "configure_service_port": "supports_service_ports",
    "list_line_profiles": "supports_line_profiles",
    "get_line_profile": "supports_line_profiles",
    "list_service_profiles": "supports_service_profiles",
    "get_service_profile": "supports_service_profiles",
    "list_traffic_profiles": "supports_traffic_profiles",
    "assign_traffic_profile": "supports_traffic_profiles",
    "list_dba_profiles": "supports_dba_profiles",
    "batch_provision": "supports_batch_provision",
    "batch_configure_vlan": "supports_batch_vlan",
    "export_config": "supports_config_export",
    "get_onu_diagnostics": "supports_diagnostics",
    "get_optical_diagnostics": "supports_optical_diag",
    "get_onu_counters": "supports_performance_counters",
    "clear_onu_counters": "supports_performance_counters",
}

# Protocol token -> flag; "ssh" and "http" are aliases
PROTOCOL_FLAGS: Dict[str, str] = {
    "snmp": "has_snmp",
    "cli": "has_cli",
    "ssh": "has_cli",
    "netconf": "has_netconf",
    "gnmi": "has_gnmi",
    "rest": "has_rest",
    "http": "has_rest",
}


@dataclass(frozen=True)
class VendorCapabilities:
    """Feature support matrix for a vendor/model combination."""

    vendor: str
    model: str = ""
    firmware: str = ""

    # ONU management
    supports_provision: bool = False
    supports_delete: bool = False
    supports_reboot: bool = False
    supports_onu_info: bool = False

    # Port management
    supports_port_list: bool = False
    supports_port_control: bool = False

    # VLAN management
    supports_vlan: bool = False
    supports_vlan_translation: bool = False
    supports_service_ports: bool = False

    # Profile management
    supports_line_profiles: bool = False
    supports_service_profiles: bool = False
    supports_traffic_profiles: bool = False
    supports_dba_profiles: bool = False

    # Batch operations
    supports_batch_provision: bool = False
    supports_batch_vlan: bool = False
    supports_config_export: bool = False

    # Diagnostics
    supports_diagnostics: bool = False
    supports_optical_diag: bool = False
    supports_performance_counters: bool = False

    # Protocol availability
    has_snmp: bool = False
    has_cli: bool = False
    has_netconf: bool = False
    has_gnmi: bool = False
    has_rest: bool = False

    # Addressing: "frame/slot/port", "shelf/slot/port", "slot/port", ...
    port_format: str = "slot/port"
    max_onus_per_port: int = 0
    max_pon_ports: int = 0

    # -- derived predicates -------------------------------------------------

    def can_provision_onu(self) -> bool:
        return self.supports_provision and self.supports_delete

    def can_manage_onu(self) -> bool:
        """Full ONU lifecycle: provision, delete, reboot and info retrieval."""
        return (self.supports_provision and self.supports_delete
                and self.supports_reboot and self.supports_onu_info)

    def can_manage_ports(self) -> bool:
        return self.supports_port_list and self.supports_port_control

    def can_manage_vlan(self) -> bool:
        return self.supports_vlan

    def can_manage_profiles(self) -> bool:
        return (self.supports_line_profiles or self.supports_service_profiles
                or self.supports_traffic_profiles)

    def can_batch_provision(self) -> bool:
        return self.supports_batch_provision and self.supports_provision

    def can_run_diagnostics(self) -> bool:
        return self.supports_diagnostics or self.supports_optical_diag

    def is_read_only(self) -> bool:
        return (not self.supports_provision and not self.supports_delete
                and not self.supports_reboot and not self.supports_port_control)

    def has_protocol(self, protocol: str) -> bool:
        """Check protocol availability. Unknown tokens are never available."""
        flag = PROTOCOL_FLAGS.get((protocol or "").lower())
        if flag is None:
            return False
        return getattr(self, flag)

    # -- operation gating ---------------------------------------------------

    def supports(self, operation: str) -> bool:
        """Check a named driver operation (e.g. "reboot_onu") against the matrix."""
        flag = OPERATION_FLAGS.get(operation)
        if flag is None:
            return False
        return getattr(self, flag)

    def require(self, operation: str, reason: str = "") -> None:
        """
        Raise UnsupportedOperationError unless the operation is supported.

        Args:
            operation: Driver operation name, see OPERATION_FLAGS.
            reason: Optional human-readable explanation for the caller.
        """
        if self.supports(operation):
            return
        if not reason:
            flag = OPERATION_FLAGS.get(operation)
            reason = f"{flag} is disabled" if flag else "unknown operation"
        raise UnsupportedOperationError(self.vendor, self.model, operation, reason)

    def with_overrides(self, **fields: Any) -> "VendorCapabilities":
        """Return a copy with the given fields replaced."""
        return replace(self, **fields)

    def enabled_protocols(self) -> list:
        names = []
        for label, flag in (("SNMP", "has_snmp"), ("CLI", "has_cli"), ("NETCONF", "has_netconf"),
                            ("gNMI", "has_gnmi"), ("REST", "has_rest")):
            if getattr(self, flag):
                names.append(label)
        return names

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        model = self.model or "generic"
        return f"{self.vendor}/{model} [{self.port_format}] protocols={','.join(self.enabled_protocols())}"


# =============================================================================
# Presets
# =============================================================================

def full_capabilities(vendor: str, model: str = "") -> VendorCapabilities:
    """All features enabled. For vendors with complete CLI support."""
    return VendorCapabilities(
        vendor=vendor,
        model=model,
        supports_provision=True,
        supports_delete=True,
        supports_reboot=True,
        supports_onu_info=True,
        supports_port_list=True,
        supports_port_control=True,
        supports_vlan=True,
        supports_vlan_translation=True,
        supports_service_ports=True,
        supports_line_profiles=True,
        supports_service_profiles=True,
        supports_traffic_profiles=True,
        supports_dba_profiles=True,
        supports_batch_provision=True,
        supports_batch_vlan=True,
        supports_config_export=True,
        supports_diagnostics=True,
        supports_optical_diag=True,
        supports_performance_counters=True,
        has_snmp=True,
        has_cli=True,
        port_format="frame/slot/port",
        max_onus_per_port=128,
    )


def read_only_capabilities(vendor: str, model: str = "") -> VendorCapabilities:
    """Read operations only. For vendors with limited CLI write support."""
    return VendorCapabilities(
        vendor=vendor,
        model=model,
        supports_onu_info=True,
        supports_port_list=True,
        supports_vlan=True,
        supports_line_profiles=True,
        supports_service_profiles=True,
        supports_traffic_profiles=True,
        supports_config_export=True,
        supports_diagnostics=True,
        supports_optical_diag=True,
        supports_performance_counters=True,
        has_snmp=True,
        has_cli=True,
        port_format="slot/port",
        max_onus_per_port=64,
    )


def minimal_capabilities(vendor: str, model: str = "") -> VendorCapabilities:
    """Basic provisioning and diagnostics. The fallback for unknown vendors."""
    return VendorCapabilities(
        vendor=vendor,
        model=model,
        supports_provision=True,
        supports_delete=True,
        supports_onu_info=True,
        supports_port_list=True,
        supports_vlan=True,
        supports_diagnostics=True,
        supports_optical_diag=True,
        has_snmp=True,
        has_cli=True,
        port_format="slot/port",
        max_onus_per_port=32,
    )


PRESETS = {
    "full": full_capabilities,
    "readonly": read_only_capabilities,
    "read-only": read_only_capabilities,
    "minimal": minimal_capabilities,
}


def preset_capabilities(name: str, vendor: str, model: str = "",
                        overrides: Optional[Dict[str, Any]] = None) -> VendorCapabilities:
    """
    Build a named preset and apply field overrides on top.

    Used when capability overrides come from YAML rather than code.
    """
    try:
        builder = PRESETS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown capability preset: {name!r} (expected one of {sorted(PRESETS)})")
    caps = builder(vendor, model)
    if overrides:
        caps = caps.with_overrides(**overrides)
    return caps


# =============================================================================
# Vendor/model presets
# =============================================================================

def huawei_ma5800_capabilities() -> VendorCapabilities:
    return full_capabilities("huawei", "MA5800").with_overrides(
        has_netconf=True, port_format="frame/slot/port", max_onus_per_port=128, max_pon_ports=256)


def huawei_ma5600t_capabilities() -> VendorCapabilities:
    # Older platform, no NETCONF
    return full_capabilities("huawei", "MA5600T").with_overrides(
        has_netconf=False, port_format="frame/slot/port", max_onus_per_port=64, max_pon_ports=128)


def zte_c300_capabilities() -> VendorCapabilities:
    return full_capabilities("zte", "C300").with_overrides(
        port_format="shelf/slot/port", max_onus_per_port=128)


def zte_c600_capabilities() -> VendorCapabilities:
    return full_capabilities("zte", "C600").with_overrides(
        has_netconf=True, port_format="shelf/slot/port", max_onus_per_port=128, max_pon_ports=512)


def nokia_isam_capabilities() -> VendorCapabilities:
    return full_capabilities("nokia", "ISAM").with_overrides(
        has_netconf=True, port_format="rack/shelf/slot/port", max_onus_per_port=128)


def vsol_capabilities(model: str = "") -> VendorCapabilities:
    return minimal_capabilities("vsol", model).with_overrides(
        supports_provision=True, supports_delete=True, supports_vlan=True,
        port_format="slot/port", max_onus_per_port=64)


def cdata_capabilities(model: str = "") -> VendorCapabilities:
    return minimal_capabilities("cdata", model).with_overrides(
        port_format="slot/port", max_onus_per_port=32)


def fiberhome_capabilities(model: str = "") -> VendorCapabilities:
    return full_capabilities("fiberhome", model).with_overrides(
        has_netconf=True, port_format="frame/slot/port", max_onus_per_port=128)
