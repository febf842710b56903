"""Device query orchestration: identity gate, platform detection, interfaces, performance."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Sequence

from loguru import logger

from devicehealth.exceptions import DecodeError, DeviceHealthError, TransportError, UnreachableError
from devicehealth.poller._util import format_uptime, parse_metrics, to_int, to_str
from devicehealth.poller.interfaces import enumerate_interfaces, list_interface_names
from devicehealth.poller.models import (
    ConnectionResult,
    DeviceAddress,
    DeviceIdentity,
    DeviceMetrics,
    InterfaceDescriptor,
    InterfaceSummary,
    Metric,
    SystemInfo,
)
from devicehealth.poller.performance import PerformanceResult, build_plan, collect_performance
from devicehealth.poller.platform import detect_platform, identify_from_description
from devicehealth.settings import MAX_INTERFACES, PollSettings
from devicehealth.snmp.oids import SYSTEM_OIDS
from devicehealth.snmp.session import SnmpSession

SessionFactory = Callable[[DeviceAddress, PollSettings], SnmpSession]
MetricNames = str | Iterable[str] | None


def _decode_system(values: Sequence[Any]) -> tuple[SystemInfo, int]:
    """Decode the identity batch (see ``SYSTEM_OIDS`` for the order)."""
    if len(values) != len(SYSTEM_OIDS):
        raise DecodeError(f"Expected {len(SYSTEM_OIDS)} system values, got {len(values)}")
    descr, uptime, name, location, if_number, object_id, contact = values
    seconds = to_int(uptime) / 100
    info = SystemInfo(
        hostname=to_str(name) or "Unknown",
        description=to_str(descr) or "Unknown",
        uptime=format_uptime(seconds),
        uptime_seconds=seconds,
        location=to_str(location) or "Unknown",
        contact=to_str(contact) or "Unknown",
        object_id=to_str(object_id).strip("."),
    )
    return info, to_int(if_number)


async def _fetch_interfaces(session: SnmpSession, settings: PollSettings) -> list[InterfaceDescriptor]:
    """Interface enumeration for a live query; failures yield an empty list."""
    try:
        items = await enumerate_interfaces(session, settings.interface_strategy, MAX_INTERFACES)
    except (TransportError, DecodeError) as exc:
        logger.warning(f"[{session.host}] interface enumeration failed: {exc}")
        return []
    logger.info(f"[{session.host}] found {len(items)} interfaces")
    return items


async def _query_open_session(
    session: SnmpSession,
    requested: frozenset[Metric],
    settings: PollSettings,
) -> DeviceMetrics:
    host = session.host

    # Identity batch is the reachability gate for the whole query
    try:
        response = await session.get(SYSTEM_OIDS)
        system_info, if_count = _decode_system([val for _, val in response])
    except TransportError as exc:
        logger.error(f"[{host}] unreachable: {exc}")
        return DeviceMetrics(online=False, error=str(exc))
    except DecodeError as exc:
        logger.error(f"[{host}] cannot decode system info: {exc}")
        return DeviceMetrics(online=False, error=f"Parse error: {exc}")

    family = detect_platform(system_info.description, system_info.object_id)
    logger.info(f"[{host}] connected: {system_info.description!r} (oid {system_info.object_id or '-'}) -> {family.value}")

    interfaces_task = asyncio.create_task(_fetch_interfaces(session, settings))
    try:
        plan = build_plan(family, requested)
        items = await interfaces_task
    finally:
        if not interfaces_task.done():
            interfaces_task.cancel()

    interfaces: InterfaceSummary | None = None
    if if_count > 0 or items:
        interfaces = InterfaceSummary(count=if_count if if_count > 0 else len(items), items=items)

    perf: PerformanceResult | None = None
    perf_error: str | None = None
    if plan.oids:
        try:
            perf = await collect_performance(session, plan)
        except (TransportError, DecodeError) as exc:
            logger.warning(f"[{host}] performance fetch failed: {exc}")
            perf_error = f"Failed to fetch metrics: {exc}"

    if perf is not None:
        if perf.serial_number:
            system_info.serial_number = perf.serial_number
        if perf.firmware_version:
            system_info.firmware_version = perf.firmware_version

    return DeviceMetrics(
        online=True,
        platform=family,
        system_info=system_info,
        performance=perf.performance if perf is not None else None,
        interfaces=interfaces,
        fortinet_extras=perf.fortinet_extras if perf is not None else None,
        performance_error=perf_error,
    )


async def query_device(
    address: DeviceAddress,
    metrics: MetricNames = None,
    *,
    settings: PollSettings | None = None,
    session_factory: SessionFactory = SnmpSession,
) -> DeviceMetrics:
    """Get full live metrics for one device.

    Args:
        address: Device host, community and port.
        metrics: Requested metric names (``"cpu,memory"`` or an iterable of
            ``cpu``/``memory``/``sessions``/``storage``).  ``None`` requests
            cpu and memory.
        settings: SNMP timeout/retry settings.
        session_factory: Builds the (unopened) session; tests inject fakes.

    Returns:
        DeviceMetrics.  Never raises for device-side failures: an unreachable
        device yields ``online=False`` with ``error`` set, a failed
        performance fetch yields ``performance_error`` set.
    """
    settings = settings or PollSettings()
    requested = parse_metrics(metrics)
    logger.info(f"Querying {address.host}:{address.port} (metrics: {sorted(m.value for m in requested)})")

    session = session_factory(address, settings)
    try:
        await session.open()
        return await _query_open_session(session, requested, settings)
    except TransportError as exc:
        logger.error(f"[{address.host}] cannot open session: {exc}")
        return DeviceMetrics(online=False, error=str(exc))
    finally:
        session.close()


async def test_connection(
    address: DeviceAddress,
    *,
    settings: PollSettings | None = None,
    session_factory: SessionFactory = SnmpSession,
) -> ConnectionResult:
    """Report reachability plus hostname. Never raises."""
    try:
        result = await query_device(address, settings=settings, session_factory=session_factory)
    except DeviceHealthError as exc:
        return ConnectionResult(success=False, message=str(exc))
    if result.online and result.system_info:
        return ConnectionResult(success=True, message=f"Connected to {result.system_info.hostname}")
    return ConnectionResult(success=False, message=result.error or "Device not responding")


async def get_interface_names(
    address: DeviceAddress,
    *,
    settings: PollSettings | None = None,
    session_factory: SessionFactory = SnmpSession,
) -> list[str]:
    """Lightweight interface-name discovery.

    Raises:
        UnreachableError: If the device does not answer the probe.
        TransportError: If the walk fails after a successful probe.
    """
    session = session_factory(address, settings or PollSettings())
    try:
        try:
            await session.open()
        except TransportError as exc:
            raise UnreachableError(f"Device unreachable: {exc}", address.host) from exc
        return await list_interface_names(session)
    finally:
        session.close()


async def identify_device(
    address: DeviceAddress,
    *,
    settings: PollSettings | None = None,
    session_factory: SessionFactory = SnmpSession,
) -> DeviceIdentity:
    """Detect vendor, model and version from the device's sysDescr.

    Raises:
        DeviceHealthError: If the device is unreachable.
    """
    result = await query_device(address, [], settings=settings, session_factory=session_factory)
    if not result.online or result.system_info is None:
        raise DeviceHealthError(result.error or "Device unreachable for identification")
    return identify_from_description(result.system_info.description)


class DevicePoller:
    """Synchronous facade over the async query functions for one device."""

    def __init__(
        self,
        host: str,
        community: str = "public",
        port: int = 161,
        settings: PollSettings | None = None,
    ) -> None:
        self.address = DeviceAddress(host=host, community=community, port=port)
        self.settings = settings or PollSettings()

    def poll(self, metrics: MetricNames = None) -> DeviceMetrics:
        return asyncio.run(query_device(self.address, metrics, settings=self.settings))

    def interface_names(self) -> list[str]:
        return asyncio.run(get_interface_names(self.address, settings=self.settings))

    def check_connection(self) -> ConnectionResult:
        return asyncio.run(test_connection(self.address, settings=self.settings))

    def identify(self) -> DeviceIdentity:
        return asyncio.run(identify_device(self.address, settings=self.settings))
