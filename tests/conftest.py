"""Shared fixtures for the devicehealth test suite."""

from __future__ import annotations

from typing import Any

import pytest

from devicehealth.exceptions import TransportError
from devicehealth.poller.models import (
    DeviceMetrics,
    InterfaceDescriptor,
    InterfaceSummary,
    PerformanceSnapshot,
    PlatformFamily,
    SystemInfo,
)
from devicehealth.settings import PollSettings
from devicehealth.snmp.oids import (
    OID_IF_NUMBER,
    OID_SYS_CONTACT,
    OID_SYS_DESCR,
    OID_SYS_LOCATION,
    OID_SYS_NAME,
    OID_SYS_OBJECT_ID,
    OID_SYS_UPTIME,
)

# ── in-memory SNMP session ────────────────────────────────────────────


class FakeSession:
    """Stand-in for SnmpSession backed by an OID -> value dict.

    ``walks`` maps a walk root to its ``(suffix, value)`` rows, or to an
    exception raised when that root is walked.  ``get_errors`` maps an OID to
    an exception raised by any GET that includes it.
    """

    def __init__(
        self,
        address: Any = None,
        settings: PollSettings | None = None,
        *,
        values: dict[str, Any] | None = None,
        walks: dict[str, Any] | None = None,
        get_errors: dict[str, Exception] | None = None,
        open_error: Exception | None = None,
    ) -> None:
        self.address = address
        self.settings = settings or PollSettings()
        self.values = values or {}
        self.walks = walks or {}
        self.get_errors = get_errors or {}
        self.open_error = open_error
        self.get_calls: list[list[str]] = []
        self.walk_calls: list[str] = []
        self.opened = False
        self.closed = False

    @property
    def host(self) -> str:
        return getattr(self.address, "host", "fake-host")

    async def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def close(self) -> None:
        self.closed = True

    async def get(self, oids):
        oids = list(oids)
        self.get_calls.append(oids)
        for oid in oids:
            if oid in self.get_errors:
                raise self.get_errors[oid]
        return [(oid, self.values.get(oid)) for oid in oids]

    async def walk(self, root):
        self.walk_calls.append(root)
        rows = self.walks.get(root, [])
        if isinstance(rows, Exception):
            raise rows
        for row in rows:
            yield row

    async def walk_all(self, root):
        return [row async for row in self.walk(root)]


@pytest.fixture()
def fake_session():
    """Factory fixture returning a FakeSession with the given behaviour."""

    def _make(**kwargs):
        return FakeSession(**kwargs)

    return _make


@pytest.fixture()
def session_factory():
    """Factory fixture returning ``(factory, created)`` for query functions.

    ``factory`` matches ``SessionFactory``; every session it builds is
    appended to ``created``.
    """

    def _make(**kwargs):
        created: list[FakeSession] = []

        def factory(address, settings):
            session = FakeSession(address, settings, **kwargs)
            created.append(session)
            return session

        return factory, created

    return _make


@pytest.fixture()
def system_values():
    """Factory fixture returning the identity batch as an OID -> value dict."""

    def _make(**kwargs):
        defaults = {
            "descr": "Linux node 5.10.0-21-amd64 #1 SMP Debian",
            "object_id": "1.3.6.1.4.1.8072.3.2.10",
            "uptime": 360000,  # 1h in ticks
            "name": "node",
            "location": "rack 4",
            "contact": "noc@example.com",
            "if_number": 2,
        }
        defaults.update(kwargs)
        return {
            OID_SYS_DESCR: defaults["descr"],
            OID_SYS_OBJECT_ID: defaults["object_id"],
            OID_SYS_UPTIME: defaults["uptime"],
            OID_SYS_NAME: defaults["name"],
            OID_SYS_LOCATION: defaults["location"],
            OID_SYS_CONTACT: defaults["contact"],
            OID_IF_NUMBER: defaults["if_number"],
        }

    return _make


@pytest.fixture()
def unreachable():
    """A TransportError as raised for a timed-out exchange."""
    return TransportError("No SNMP response received before timeout", "10.0.0.1")


# ── model fixtures ────────────────────────────────────────────────────


@pytest.fixture()
def sample_metrics():
    """Factory fixture returning online DeviceMetrics with customizable fields."""

    def _make(cpu=10, memory=20, storage=None, interfaces=None, **kwargs):
        items = [
            InterfaceDescriptor(index=str(i), name=name, status=status)
            for i, (name, status) in enumerate(interfaces or [], start=1)
        ]
        defaults = {
            "online": True,
            "platform": PlatformFamily.LINUX,
            "system_info": SystemInfo(hostname="node", description="Linux node 5.10.0"),
            "performance": PerformanceSnapshot(
                cpu_usage_percent=cpu,
                memory_usage_percent=memory,
                storage_usage_percent=storage,
            ),
            "interfaces": InterfaceSummary(count=len(items), items=items) if interfaces is not None else None,
        }
        defaults.update(kwargs)
        return DeviceMetrics(**defaults)

    return _make
