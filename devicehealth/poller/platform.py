"""Platform detection and vendor/model/version heuristics from sysDescr / sysObjectID."""

from __future__ import annotations

from devicehealth.poller.models import DeviceIdentity, PlatformFamily
from devicehealth.snmp.oids import CISCO_ENTERPRISE, FORTINET_ENTERPRISE


def _under(object_id: str, prefix: str) -> bool:
    """True if *object_id* equals *prefix* or lies beneath it."""
    oid = object_id.strip().strip(".")
    return oid == prefix or oid.startswith(prefix + ".")


def detect_platform(description: str, object_id: str = "") -> PlatformFamily:
    """Classify a device into a platform family.

    Checked in order, first match wins: Fortinet, then Cisco, else Linux.
    Fortinet is tested first because some Fortinet sysObjectIDs share
    branches that a Cisco check would also accept.
    """
    descr = (description or "").lower()
    oid = object_id or ""
    if "forti" in descr or _under(oid, FORTINET_ENTERPRISE):
        return PlatformFamily.FORTINET
    if "cisco" in descr or _under(oid, CISCO_ENTERPRISE):
        return PlatformFamily.CISCO
    return PlatformFamily.LINUX


def identify_from_description(description: str) -> DeviceIdentity:
    """Derive vendor, model and version from a sysDescr string.

    Examples::

        'FortiGate-60F v7.0.5,build0304,220208 (GA)'  -> Fortinet / FortiGate-60F / v7.0.5
        'Cisco IOS Software, C2960 Software ...'     -> Cisco
        'Linux node 5.10.0-21-amd64 #1 SMP ...'       -> Linux / Generic Linux / 5.10.0-21-amd64
    """
    descr = description or ""
    lower = descr.lower()
    identity = DeviceIdentity(description=descr)

    if "fortinet" in lower or "fortigate" in lower:
        identity.vendor = "Fortinet"
        parts = descr.split(" ")
        if parts:
            identity.model = parts[0].replace(",", "")
        version = next((p for p in parts if p.startswith("v") and "." in p), None)
        if version:
            identity.version = version.split(",")[0]
    elif "cisco" in lower:
        identity.vendor = "Cisco"
    elif "linux" in lower:
        identity.vendor = "Linux"
        identity.model = "Generic Linux"
        parts = descr.split(" ")
        if len(parts) > 2:
            identity.version = parts[2]

    return identity
