"""Vendor drivers and the driver registry."""

from oltshell.drivers.base import OLTDriver
from oltshell.drivers.registry import DriverFactory, get_default_factory

__all__ = [
    "OLTDriver",
    "DriverFactory",
    "get_default_factory",
]
