"""SNMPv2c transport and OID registry."""

from devicehealth.snmp.oids import OID_REGISTRY, PlatformFamily, oid_for
from devicehealth.snmp.session import DeviceAddress, SnmpSession

__all__ = [
    "OID_REGISTRY",
    "PlatformFamily",
    "oid_for",
    "DeviceAddress",
    "SnmpSession",
]
