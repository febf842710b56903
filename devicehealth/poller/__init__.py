"""Live SNMP device polling: identity, platform, performance, interfaces."""

from devicehealth.poller.device import (
    DevicePoller,
    get_interface_names,
    identify_device,
    query_device,
    test_connection,
)
from devicehealth.poller.models import (
    DeviceAddress,
    DeviceMetrics,
    InterfaceDescriptor,
    PerformanceSnapshot,
    PlatformFamily,
    SystemInfo,
)
from devicehealth.poller.platform import detect_platform

__all__ = [
    "DevicePoller",
    "query_device",
    "get_interface_names",
    "test_connection",
    "identify_device",
    "detect_platform",
    "DeviceAddress",
    "DeviceMetrics",
    "InterfaceDescriptor",
    "PerformanceSnapshot",
    "PlatformFamily",
    "SystemInfo",
]
