"""
Driver registry and capability resolution.

Path: oltshell/drivers/registry.py

DriverFactory maps a vendor name to a driver constructor and resolves the
capability matrix for a vendor/model pair. Resolution order for
get_capabilities(vendor, model):

    1. exact "vendor:model" override
    2. vendor default registered with an empty model ("vendor:")
    3. built-in model-prefix heuristic for known vendors
    4. minimal capabilities for anything else

Vendor and model keys are case-insensitive.

The process-wide factory is built on the first call to get_default_factory(),
which registers every built-in driver before returning. Extra vendors
register against it afterwards; registration and lookup are thread-safe.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from oltshell.core import capabilities as caps
from oltshell.core.capabilities import VendorCapabilities
from oltshell.core.errors import UnsupportedVendorError
from oltshell.ssh.models import SessionConfig


logger = logging.getLogger(__name__)

# Called as constructor(config, model, **session_options)
DriverConstructor = Callable[..., object]


def _capability_key(vendor: str, model: str) -> str:
    return f"{vendor}:{model}".lower()


class DriverFactory:
    """Vendor -> constructor registry with capability overrides."""

    def __init__(self):
        self._lock = threading.Lock()
        self._constructors: Dict[str, DriverConstructor] = {}
        self._model_capabilities: Dict[str, VendorCapabilities] = {}

    def register_driver(self, vendor: str, constructor: DriverConstructor) -> None:
        """Register a constructor. Re-registering a vendor replaces the previous one."""
        with self._lock:
            self._constructors[vendor.lower()] = constructor
        logger.debug(f"Registered driver for {vendor.lower()}")

    def register_model_capabilities(self, vendor: str, model: str, capabilities: VendorCapabilities) -> None:
        """Register an override for vendor/model. An empty model sets the vendor default."""
        with self._lock:
            self._model_capabilities[_capability_key(vendor, model)] = capabilities

    def create_driver(self, config: SessionConfig, model: str = "", **session_options):
        """
        Build a driver for config.vendor.

        Args:
            config: Connection parameters.
            model: OLT model, used for capability lookup.
            **session_options: DeviceSession keyword arguments (tables,
                disable_pager, liveness_timeout, transport_factory, ...).

        Raises:
            UnsupportedVendorError: No constructor registered for the vendor.
        """
        vendor = (config.vendor or "").lower()
        with self._lock:
            constructor = self._constructors.get(vendor)
        if constructor is None:
            raise UnsupportedVendorError(config.vendor, self.supported_vendors())
        logger.debug(f"Creating {vendor} driver for {config.host} (model={model or '-'})")
        return constructor(config, model, **session_options)

    def get_capabilities(self, vendor: str, model: str = "") -> VendorCapabilities:
        vendor = (vendor or "").lower()
        with self._lock:
            if model:
                exact = self._model_capabilities.get(_capability_key(vendor, model))
                if exact is not None:
                    return exact
            vendor_default = self._model_capabilities.get(_capability_key(vendor, ""))
            if vendor_default is not None:
                return vendor_default
        return default_capabilities(vendor, model)

    def supported_vendors(self) -> List[str]:
        with self._lock:
            return sorted(self._constructors)

    def is_vendor_supported(self, vendor: str) -> bool:
        with self._lock:
            return (vendor or "").lower() in self._constructors


def default_capabilities(vendor: str, model: str = "") -> VendorCapabilities:
    """Built-in capabilities by vendor and model prefix, minimal for unknown vendors."""
    vendor = (vendor or "").lower()
    upper = (model or "").upper()

    if vendor == "huawei":
        if upper.startswith("MA5800"):
            return caps.huawei_ma5800_capabilities()
        if upper.startswith("MA5600"):
            return caps.huawei_ma5600t_capabilities()
        return caps.full_capabilities(vendor, model)

    if vendor == "zte":
        if upper.startswith("C600"):
            return caps.zte_c600_capabilities()
        if upper.startswith("C300"):
            return caps.zte_c300_capabilities()
        return caps.full_capabilities(vendor, model)

    if vendor == "nokia":
        return caps.nokia_isam_capabilities()
    if vendor == "vsol":
        return caps.vsol_capabilities(model)
    if vendor == "cdata":
        return caps.cdata_capabilities(model)
    if vendor == "fiberhome":
        return caps.fiberhome_capabilities(model)

    return caps.minimal_capabilities(vendor, model)


HUAWEI_MA5800_MODELS = ("MA5800", "MA5800-X2", "MA5800-X7", "MA5800-X15", "MA5800-X17")
HUAWEI_MA5600T_MODELS = ("MA5600T", "MA5608T", "MA5683T")
VSOL_MODELS = ("V1600D", "V1600G", "V1600G4", "V1600D4")
GENERIC_VENDORS = ("zte", "cdata", "fiberhome")


def register_builtin_drivers(factory: DriverFactory) -> None:
    """Register the bundled drivers and their model capabilities on factory."""
    from oltshell.drivers.generic import GenericDriver
    from oltshell.drivers.huawei import HuaweiDriver
    from oltshell.drivers.vsol import VSOLDriver

    factory.register_driver("huawei", lambda config, model, **options: HuaweiDriver(
        config, model, capabilities=factory.get_capabilities("huawei", model), **options))
    for model in HUAWEI_MA5800_MODELS:
        factory.register_model_capabilities("huawei", model, caps.huawei_ma5800_capabilities())
    for model in HUAWEI_MA5600T_MODELS:
        factory.register_model_capabilities("huawei", model, caps.huawei_ma5600t_capabilities())
    factory.register_model_capabilities("huawei", "", caps.full_capabilities("huawei", ""))

    factory.register_driver("vsol", lambda config, model, **options: VSOLDriver(
        config, model, capabilities=factory.get_capabilities("vsol", model), **options))
    for model in VSOL_MODELS:
        factory.register_model_capabilities("vsol", model, caps.vsol_capabilities(model))
    factory.register_model_capabilities("vsol", "", caps.vsol_capabilities(""))

    for vendor in GENERIC_VENDORS:
        factory.register_driver(vendor, _generic_constructor(factory, vendor, GenericDriver))


def _generic_constructor(factory: DriverFactory, vendor: str, driver_cls) -> DriverConstructor:
    def construct(config: SessionConfig, model: str, **options):
        return driver_cls(config.with_vendor(vendor), model,
                          capabilities=factory.get_capabilities(vendor, model), **options)
    return construct


# Singleton instance
_default_factory: Optional[DriverFactory] = None
_default_factory_lock = threading.Lock()


def get_default_factory() -> DriverFactory:
    """
    Get the process-wide factory, registering the built-in drivers on first use.
    """
    global _default_factory

    with _default_factory_lock:
        if _default_factory is None:
            factory = DriverFactory()
            register_builtin_drivers(factory)
            _default_factory = factory
            logger.debug(f"Default driver factory ready: {factory.supported_vendors()}")
    return _default_factory


def register_driver(vendor: str, constructor: DriverConstructor) -> None:
    get_default_factory().register_driver(vendor, constructor)


def register_model_capabilities(vendor: str, model: str, capabilities: VendorCapabilities) -> None:
    get_default_factory().register_model_capabilities(vendor, model, capabilities)


def create_driver(config: SessionConfig, model: str = "", **session_options):
    return get_default_factory().create_driver(config, model, **session_options)


def get_capabilities(vendor: str, model: str = "") -> VendorCapabilities:
    return get_default_factory().get_capabilities(vendor, model)


def supported_vendors() -> List[str]:
    return get_default_factory().supported_vendors()


def is_vendor_supported(vendor: str) -> bool:
    return get_default_factory().is_vendor_supported(vendor)
