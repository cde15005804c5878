"""Unit tests for protocol settings, vendor validation and inventory loading."""

import pytest

from oltshell.core.errors import ValidationError
from oltshell.core.inventory import (
    DeviceConfig,
    ProtocolSettings,
    load_inventory,
    validate_inventory,
    validate_protocols_for_vendor,
)


class TestProtocolSettings:
    """Protocol enablement and primary resolution."""

    def test_legacy_ssh_counts_as_cli(self):
        p = ProtocolSettings(enabled=["SSH", "snmp"])
        assert p.enabled == ["cli", "snmp"]
        assert p.has_protocol("cli")
        assert p.has_protocol("ssh")

    def test_primary_defaults_to_first_known(self):
        assert ProtocolSettings(enabled=["snmp", "netconf"]).primary_protocol() == "snmp"
        assert ProtocolSettings(enabled=[]).primary_protocol() == "cli"
        assert ProtocolSettings(enabled=["cli"], primary="NETCONF").primary_protocol() == "netconf"


class TestVendorValidation:
    """validate_protocols_for_vendor()."""

    def test_nokia_requires_netconf(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_protocols_for_vendor("nokia", ProtocolSettings(enabled=["snmp"]))

        message = str(exc_info.value)
        assert "vendor nokia requires config protocol netconf but it is not enabled" in message

    def test_telemetry_protocol_checked(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_protocols_for_vendor("huawei", ProtocolSettings(enabled=["cli"]))
        assert "requires telemetry protocol snmp" in exc_info.value.message

    def test_valid_combination(self):
        validate_protocols_for_vendor("Huawei", ProtocolSettings(enabled=["ssh", "snmp"]))
        validate_protocols_for_vendor("adtran", ProtocolSettings(enabled=["netconf", "snmp"]))

    def test_unknown_and_empty_vendor_pass(self):
        validate_protocols_for_vendor("acme", ProtocolSettings())
        validate_protocols_for_vendor("", ProtocolSettings())

    def test_device_without_host(self):
        with pytest.raises(ValidationError):
            DeviceConfig(name="x", host="").validate()


class TestLoadInventory:
    """YAML inventory files."""

    def test_load_and_validate(self, tmp_path):
        path = tmp_path / "inventory.yaml"
        path.write_text(
            "devices:\n"
            "  - name: core-1\n"
            "    host: 10.0.0.1\n"
            "    vendor: Huawei\n"
            "    model: MA5800-X7\n"
            "    protocols: [cli, snmp]\n"
            "  - name: edge-1\n"
            "    host: 10.0.0.2\n"
            "    vendor: nokia\n"
            "    protocols: snmp\n"
        )

        devices = load_inventory(path)

        assert [d.name for d in devices] == ["core-1", "edge-1"]
        assert devices[0].vendor == "huawei"
        assert devices[1].protocols.enabled == ["snmp"]

        results = validate_inventory(devices)
        assert results["core-1"] is None
        assert isinstance(results["edge-1"], ValidationError)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_inventory(tmp_path / "nope.yaml")

    def test_missing_devices_key(self, tmp_path):
        path = tmp_path / "inventory.yaml"
        path.write_text("olts: []\n")
        with pytest.raises(ValueError):
            load_inventory(path)
