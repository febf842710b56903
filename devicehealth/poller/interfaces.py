"""Interface enumeration: ifTable walk, per-column walks, and name discovery."""

from __future__ import annotations

from typing import Any

from loguru import logger

from devicehealth.exceptions import DecodeError, TransportError, UnreachableError
from devicehealth.poller._util import format_mac, format_speed, to_int, to_str
from devicehealth.poller.models import InterfaceDescriptor, OperStatus
from devicehealth.settings import MAX_INTERFACES, InterfaceStrategy
from devicehealth.snmp.oids import (
    IF_COL_DESCR,
    IF_COL_IN_OCTETS,
    IF_COL_OPER_STATUS,
    IF_COL_OUT_OCTETS,
    IF_COL_PHYS_ADDRESS,
    IF_COL_SPEED,
    OID_IF_DESCR,
    OID_IF_ENTRY,
    OID_IF_NAME,
    OID_IF_OPER_STATUS,
    OID_SYS_DESCR,
)
from devicehealth.snmp.session import SnmpSession

_TABLE_COLUMNS = frozenset(
    {IF_COL_DESCR, IF_COL_SPEED, IF_COL_PHYS_ADDRESS, IF_COL_OPER_STATUS, IF_COL_IN_OCTETS, IF_COL_OUT_OCTETS}
)


def oper_status(val: Any) -> OperStatus:
    """ifOperStatus 1 is up; every other code (down, testing, unknown, ...) is down."""
    if val is None:
        return OperStatus.DOWN
    return OperStatus.UP if to_int(val) == 1 else OperStatus.DOWN


def _fallback_name(index: str) -> str:
    return f"Port {index}"


def _descriptor_from_table_row(index: str, row: dict[int, Any]) -> InterfaceDescriptor:
    descr = to_str(row.get(IF_COL_DESCR))
    speed = to_int(row.get(IF_COL_SPEED))
    return InterfaceDescriptor(
        index=index,
        name=descr if descr.strip() else _fallback_name(index),
        status=oper_status(row.get(IF_COL_OPER_STATUS)),
        speed_label=format_speed(speed) if speed else "0",
        mac_address=format_mac(row.get(IF_COL_PHYS_ADDRESS)) or None,
        in_octets=to_int(row.get(IF_COL_IN_OCTETS)),
        out_octets=to_int(row.get(IF_COL_OUT_OCTETS)),
    )


async def walk_interface_table(session: SnmpSession, limit: int = MAX_INTERFACES) -> list[InterfaceDescriptor]:
    """Walk ifEntry once and build one descriptor per row.

    Rows keep the order in which the agent first returned their index.

    Raises:
        TransportError: If the walk fails.
        DecodeError: If a row holds undecodable values.
    """
    rows: dict[str, dict[int, Any]] = {}
    async for suffix, val in session.walk(OID_IF_ENTRY):
        column, _, index = suffix.partition(".")
        if not index or not column.isdigit():
            continue
        col = int(column)
        if col in _TABLE_COLUMNS:
            rows.setdefault(index, {})[col] = val

    descriptors = [_descriptor_from_table_row(index, row) for index, row in rows.items()]
    logger.debug(f"[{session.host}] ifTable walk: {len(descriptors)} rows")
    return descriptors[:limit]


async def walk_interface_columns(session: SnmpSession, limit: int = MAX_INTERFACES) -> list[InterfaceDescriptor]:
    """Walk ifDescr, ifOperStatus and ifName separately and merge rows by index.

    A failed column walk leaves that column empty; rows missing from a column
    get defaults.  Name preference: ifName, then ifDescr, then ``'Port <index>'``.

    Raises:
        TransportError: If all three walks fail.
    """
    columns: dict[str, list[tuple[str, Any]]] = {}
    last_error: TransportError | None = None
    failed = 0
    for key, root in (("descr", OID_IF_DESCR), ("status", OID_IF_OPER_STATUS), ("name", OID_IF_NAME)):
        try:
            columns[key] = await session.walk_all(root)
        except TransportError as exc:
            logger.warning(f"[{session.host}] {key} walk failed: {exc}")
            columns[key] = []
            last_error = exc
            failed += 1

    if failed == len(columns):
        raise TransportError(f"All interface column walks failed: {last_error}", session.host) from last_error

    merged: dict[str, dict[str, Any]] = {}
    for key in ("descr", "status", "name"):
        for index, val in columns[key]:
            merged.setdefault(index, {})[key] = val

    descriptors: list[InterfaceDescriptor] = []
    for index, row in merged.items():
        name = to_str(row.get("name")).strip() or to_str(row.get("descr")).strip() or _fallback_name(index)
        descriptors.append(InterfaceDescriptor(index=index, name=name, status=oper_status(row.get("status"))))

    logger.debug(f"[{session.host}] per-column walk: {len(descriptors)} rows")
    return descriptors[:limit]


async def enumerate_interfaces(
    session: SnmpSession,
    strategy: InterfaceStrategy = InterfaceStrategy.AUTO,
    limit: int = MAX_INTERFACES,
) -> list[InterfaceDescriptor]:
    """Enumerate up to *limit* interfaces using *strategy*.

    ``AUTO`` walks the table first and falls back to per-column walks when the
    table walk fails or returns nothing.
    """
    if strategy is InterfaceStrategy.TABLE:
        return await walk_interface_table(session, limit)
    if strategy is InterfaceStrategy.COLUMNS:
        return await walk_interface_columns(session, limit)

    try:
        rows = await walk_interface_table(session, limit)
    except (TransportError, DecodeError) as exc:
        logger.debug(f"[{session.host}] ifTable walk failed ({exc}), falling back to per-column walks")
    else:
        if rows:
            return rows
        logger.debug(f"[{session.host}] ifTable walk empty, falling back to per-column walks")
    return await walk_interface_columns(session, limit)


async def list_interface_names(session: SnmpSession) -> list[str]:
    """Return bare interface names for discovery UIs.

    Probes sysDescr first so an unreachable device raises instead of
    returning an empty list.  Walks ifDescr, or ifName if ifDescr is empty.

    Raises:
        UnreachableError: If the probe gets no answer.
        TransportError: If the probe succeeded but the walk failed.
    """
    try:
        await session.get([OID_SYS_DESCR])
    except (TransportError, DecodeError) as exc:
        raise UnreachableError(f"Device unreachable: {exc}", session.host) from exc

    names: list[str] = []
    for root in (OID_IF_DESCR, OID_IF_NAME):
        rows = await session.walk_all(root)
        names = [to_str(val).strip() or _fallback_name(index) for index, val in rows]
        if names:
            break
        logger.debug(f"[{session.host}] no rows under {root}")

    logger.info(f"[{session.host}] discovered {len(names)} interface names")
    return names
