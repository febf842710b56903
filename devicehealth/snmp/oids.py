"""OID registry: symbolic metric names to dotted-decimal OIDs per platform family."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class PlatformFamily(str, Enum):
    GENERIC = "generic"
    LINUX = "linux"
    FORTINET = "fortinet"
    CISCO = "cisco"


# ── Enterprise prefixes ────────────────────────────────────────────────
FORTINET_ENTERPRISE = "1.3.6.1.4.1.12356"
CISCO_ENTERPRISE = "1.3.6.1.4.1.9"

# ── SNMPv2-MIB system group ────────────────────────────────────────────
OID_SYS_DESCR = "1.3.6.1.2.1.1.1.0"
OID_SYS_OBJECT_ID = "1.3.6.1.2.1.1.2.0"
OID_SYS_UPTIME = "1.3.6.1.2.1.1.3.0"
OID_SYS_CONTACT = "1.3.6.1.2.1.1.4.0"
OID_SYS_NAME = "1.3.6.1.2.1.1.5.0"
OID_SYS_LOCATION = "1.3.6.1.2.1.1.6.0"

# ── IF-MIB ─────────────────────────────────────────────────────────────
OID_IF_NUMBER = "1.3.6.1.2.1.2.1.0"
OID_IF_ENTRY = "1.3.6.1.2.1.2.2.1"  # ifTable.ifEntry
OID_IF_DESCR = "1.3.6.1.2.1.2.2.1.2"
OID_IF_SPEED = "1.3.6.1.2.1.2.2.1.5"
OID_IF_PHYS_ADDRESS = "1.3.6.1.2.1.2.2.1.6"
OID_IF_OPER_STATUS = "1.3.6.1.2.1.2.2.1.8"
OID_IF_IN_OCTETS = "1.3.6.1.2.1.2.2.1.10"
OID_IF_OUT_OCTETS = "1.3.6.1.2.1.2.2.1.16"
OID_IF_NAME = "1.3.6.1.2.1.31.1.1.1.1"  # IF-MIB::ifXTable ifName

# ifEntry column numbers, relative to OID_IF_ENTRY
IF_COL_DESCR = 2
IF_COL_SPEED = 5
IF_COL_PHYS_ADDRESS = 6
IF_COL_OPER_STATUS = 8
IF_COL_IN_OCTETS = 10
IF_COL_OUT_OCTETS = 16

# Identity batch, fetched once per query in this exact order
SYSTEM_OIDS: tuple[str, ...] = (
    OID_SYS_DESCR,
    OID_SYS_UPTIME,
    OID_SYS_NAME,
    OID_SYS_LOCATION,
    OID_IF_NUMBER,
    OID_SYS_OBJECT_ID,
    OID_SYS_CONTACT,
)

_GENERIC: dict[str, str] = {
    "sys_descr": OID_SYS_DESCR,
    "sys_object_id": OID_SYS_OBJECT_ID,
    "sys_uptime": OID_SYS_UPTIME,
    "sys_contact": OID_SYS_CONTACT,
    "sys_name": OID_SYS_NAME,
    "sys_location": OID_SYS_LOCATION,
    "if_number": OID_IF_NUMBER,
    "if_entry": OID_IF_ENTRY,
    "if_descr": OID_IF_DESCR,
    "if_oper_status": OID_IF_OPER_STATUS,
    "if_name": OID_IF_NAME,
}

_LINUX: dict[str, str] = {
    "cpu_user": "1.3.6.1.4.1.2021.11.9.0",  # UCD-SNMP-MIB::ssCpuUser
    "cpu_system": "1.3.6.1.4.1.2021.11.10.0",  # UCD-SNMP-MIB::ssCpuSystem
    "mem_total": "1.3.6.1.4.1.2021.4.5.0",  # memTotalReal (kB)
    "mem_avail": "1.3.6.1.4.1.2021.4.6.0",  # memAvailReal (kB)
    "disk_percent": "1.3.6.1.4.1.2021.9.1.9.1",  # dskPercent.1
}

_FORTINET: dict[str, str] = {
    "cpu": "1.3.6.1.4.1.12356.101.4.1.3.0",  # fgSysCpuUsage (0-100)
    "mem": "1.3.6.1.4.1.12356.101.4.1.4.0",  # fgSysMemUsage (0-100)
    "sessions": "1.3.6.1.4.1.12356.101.4.1.8.0",  # fgSysSesCount
    "disk": "1.3.6.1.4.1.12356.101.4.1.6.0",  # fgSysDiskUsage
    "serial": "1.3.6.1.4.1.12356.100.1.1.1.0",  # fnSysSerial
    "firmware": "1.3.6.1.4.1.12356.101.4.1.1.0",  # fgSysVersion
    "ha_mode": "1.3.6.1.4.1.12356.101.13.1.1.0",  # fgHaSystemMode
    "session_rate": "1.3.6.1.4.1.12356.101.4.1.11.0",  # fgSysSesRate1
    "av_detected": "1.3.6.1.4.1.12356.101.8.2.1.1.1.1",  # fgAvVirusDetected, root VDOM
}

_CISCO: dict[str, str] = {
    "cpu_5min": "1.3.6.1.4.1.9.2.1.58.0",  # OLD-CISCO-CPU-MIB::avgBusy5
    "mem_used": "1.3.6.1.4.1.9.9.48.1.1.1.5.1",  # ciscoMemoryPoolUsed, pool 1
    "mem_free": "1.3.6.1.4.1.9.9.48.1.1.1.6.1",  # ciscoMemoryPoolFree, pool 1
    "entity_serial": "1.3.6.1.2.1.47.1.1.1.1.11.1",  # ENTITY-MIB::entPhysicalSerialNum.1
}

OID_REGISTRY: Mapping[PlatformFamily, Mapping[str, str]] = MappingProxyType(
    {
        PlatformFamily.GENERIC: MappingProxyType(_GENERIC),
        PlatformFamily.LINUX: MappingProxyType(_LINUX),
        PlatformFamily.FORTINET: MappingProxyType(_FORTINET),
        PlatformFamily.CISCO: MappingProxyType(_CISCO),
    }
)


def oid_for(family: PlatformFamily, name: str) -> str:
    """Look up the OID registered for *name* under *family*.

    Raises:
        KeyError: If the family has no such metric.
    """
    try:
        return OID_REGISTRY[family][name]
    except KeyError:
        raise KeyError(f"No OID registered for {family.value}:{name}") from None
