"""Pydantic models and enums for live device metrics."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from devicehealth.settings import MAX_INTERFACES
from devicehealth.snmp.oids import PlatformFamily
from devicehealth.snmp.session import DeviceAddress

__all__ = [
    "DeviceAddress",
    "PlatformFamily",
    "Metric",
    "HaMode",
    "OperStatus",
    "SystemInfo",
    "PerformanceSnapshot",
    "FortinetExtras",
    "InterfaceDescriptor",
    "InterfaceSummary",
    "DeviceMetrics",
    "DeviceIdentity",
    "ConnectionResult",
]


class Metric(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"
    SESSIONS = "sessions"
    STORAGE = "storage"


class HaMode(str, Enum):
    STANDALONE = "Standalone"
    ACTIVE_ACTIVE = "Active-Active"
    ACTIVE_PASSIVE = "Active-Passive"
    MIXED = "Mixed"
    UNKNOWN = "Unknown"

    @classmethod
    def from_code(cls, code: object) -> HaMode:
        """Map a fgHaSystemMode integer to an HA mode, ``UNKNOWN`` otherwise."""
        try:
            value = int(code)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return cls.UNKNOWN
        return _HA_MODE_CODES.get(value, cls.UNKNOWN)


_HA_MODE_CODES: dict[int, HaMode] = {
    1: HaMode.STANDALONE,
    2: HaMode.ACTIVE_ACTIVE,
    3: HaMode.ACTIVE_PASSIVE,
    4: HaMode.MIXED,
}


class OperStatus(str, Enum):
    UP = "Up"
    DOWN = "Down"


class SystemInfo(BaseModel):
    """Device identity from the SNMPv2-MIB system group."""

    hostname: str = "Unknown"
    description: str = "Unknown"
    uptime: str = ""  # e.g. "3d 4h 12m"
    uptime_seconds: float = 0.0
    location: str = "Unknown"
    contact: str = "Unknown"
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    object_id: str = ""


class PerformanceSnapshot(BaseModel):
    """Best-effort performance values; unsupported metrics stay at 0 / None."""

    cpu_usage_percent: int = 0
    memory_usage_percent: int = 0
    total_memory_mb: int = 0
    free_memory_mb: int = 0
    session_count: Optional[int] = None
    storage_usage_percent: Optional[int] = None

    @field_validator("cpu_usage_percent", "memory_usage_percent", "storage_usage_percent")
    @classmethod
    def _clamp_percent(cls, v: int | None) -> int | None:
        if v is None:
            return v
        return max(0, min(v, 100))


class FortinetExtras(BaseModel):
    ha_mode: HaMode = HaMode.UNKNOWN
    session_rate_per_second: int = 0
    antivirus_detection_count: int = 0


class InterfaceDescriptor(BaseModel):
    index: str  # agent-assigned ifIndex, kept verbatim
    name: str
    status: OperStatus = OperStatus.DOWN
    speed_label: str = ""
    mac_address: Optional[str] = None
    in_octets: int = 0
    out_octets: int = 0


class InterfaceSummary(BaseModel):
    count: int = 0
    items: list[InterfaceDescriptor] = Field(default_factory=list)

    @field_validator("items")
    @classmethod
    def _cap_items(cls, v: list[InterfaceDescriptor]) -> list[InterfaceDescriptor]:
        return v[:MAX_INTERFACES]


class DeviceMetrics(BaseModel):
    """Aggregate result of one live device query.

    ``online=False`` with ``error`` set is a failed query and carries no other
    data.  ``online=True`` with ``performance_error`` set is a partial result:
    identity (and possibly interfaces) known, performance unknown.
    """

    online: bool = False
    platform: Optional[PlatformFamily] = None
    system_info: Optional[SystemInfo] = None
    performance: Optional[PerformanceSnapshot] = None
    interfaces: Optional[InterfaceSummary] = None
    fortinet_extras: Optional[FortinetExtras] = None
    error: Optional[str] = None
    performance_error: Optional[str] = None

    @model_validator(mode="after")
    def _offline_has_no_data(self) -> DeviceMetrics:
        if not self.online and (
            self.system_info is not None or self.performance is not None or self.interfaces is not None
        ):
            raise ValueError("offline device metrics cannot carry system, performance or interface data")
        return self


class DeviceIdentity(BaseModel):
    vendor: str = ""
    model: str = ""
    version: str = ""
    description: str = ""


class ConnectionResult(BaseModel):
    success: bool
    message: str
