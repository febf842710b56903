"""Async SNMPv2c session: batched GET and subtree walk against one device."""

from __future__ import annotations

import asyncio
from types import TracebackType
from typing import Any, AsyncIterator, Self, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pysnmp.error import PySnmpError
from pysnmp.hlapi.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    bulk_walk_cmd,
    get_cmd,
)
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from devicehealth.exceptions import DecodeError, TransportError
from devicehealth.settings import PollSettings

_ABSENT_VALUES = (NoSuchObject, NoSuchInstance, EndOfMibView)


class DeviceAddress(BaseModel):
    """Where and how to reach one SNMP agent."""

    model_config = ConfigDict(frozen=True)

    host: str
    community: str = "public"
    port: int = Field(default=161, ge=1, le=65535)


def _dotted(name: Any) -> str:
    """Return the numeric dotted form of a response OID."""
    get_oid = getattr(name, "getOid", None)
    return str(get_oid() if get_oid is not None else name).strip(".")


def _value(val: Any) -> Any:
    """Map SNMP exception values (noSuchObject, ...) to ``None``."""
    if isinstance(val, _ABSENT_VALUES):
        return None
    return val


class SnmpSession:
    """One SNMPv2c session against a single device.

    Exchanges are serialized with a lock, so several tasks may share a
    session without interleaving requests.  Use as an async context manager::

        async with SnmpSession(address, settings) as session:
            values = await session.get([OID_SYS_DESCR])
    """

    def __init__(self, address: DeviceAddress, settings: PollSettings | None = None) -> None:
        self.address = address
        self.settings = settings or PollSettings()
        self._engine: Any = None
        self._auth: Any = None
        self._target: Any = None
        self._lock = asyncio.Lock()

    @property
    def host(self) -> str:
        return self.address.host

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Create the engine and resolve the UDP transport target."""
        if self.is_open:
            return
        self._engine = SnmpEngine()
        self._auth = CommunityData(self.address.community, mpModel=1)
        try:
            self._target = await UdpTransportTarget.create(
                (self.address.host, self.address.port),
                timeout=self.settings.timeout,
                retries=self.settings.retries,
            )
        except (PySnmpError, OSError) as exc:
            self.close()
            raise TransportError(f"Cannot open transport: {exc}", self.host) from exc

    def close(self) -> None:
        """Release the engine dispatcher. Safe to call more than once."""
        if self._engine is not None:
            self._engine.close_dispatcher()
        self._engine = None
        self._auth = None
        self._target = None

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        self.close()

    def _require_open(self) -> tuple[Any, Any, Any]:
        if not self.is_open:
            raise TransportError("Session is not open", self.host)
        return self._engine, self._auth, self._target

    async def get(self, oids: Sequence[str]) -> list[tuple[str, Any]]:
        """GET *oids* in one request.

        Returns ``(oid, value)`` pairs in request order; values the agent does
        not have decode to ``None``.

        Raises:
            TransportError: On timeout, error indication or error status.
            DecodeError: If the response lacks a requested varbind.
        """
        requested = [oid.strip(".") for oid in oids]
        if not requested:
            return []
        engine, auth, target = self._require_open()
        tag = f" [{self.host}]"

        async with self._lock:
            try:
                error_indication, error_status, error_index, var_binds = await get_cmd(
                    engine,
                    auth,
                    target,
                    ContextData(),
                    *[ObjectType(ObjectIdentity(oid)) for oid in requested],
                )
            except (PySnmpError, OSError) as exc:
                raise TransportError(f"SNMP GET failed: {exc}", self.host) from exc

        if error_indication:
            logger.warning(f"SNMP error{tag}: {error_indication}")
            raise TransportError(str(error_indication), self.host)
        if error_status:
            logger.warning(f"SNMP error{tag}: {error_status.prettyPrint()}")
            raise TransportError(f"{error_status.prettyPrint()} at index {int(error_index)}", self.host)

        received = {_dotted(name): _value(val) for name, val in var_binds}
        result: list[tuple[str, Any]] = []
        for oid in requested:
            if oid not in received:
                raise DecodeError(f"Response from {self.host} is missing varbind {oid}")
            result.append((oid, received[oid]))
        return result

    async def walk(self, root: str) -> AsyncIterator[tuple[str, Any]]:
        """Bulk-walk the subtree under *root*.

        Yields ``(suffix, value)`` where *suffix* is the OID remainder after
        *root* (``"5"`` for a column walk, ``"8.5"`` for an ``ifEntry`` walk).
        Stops at the end of the subtree.

        Raises:
            TransportError: On timeout, error indication or error status.
        """
        engine, auth, target = self._require_open()
        root = root.strip(".")
        prefix = root + "."
        walker = bulk_walk_cmd(
            engine,
            auth,
            target,
            ContextData(),
            0,
            self.settings.max_repetitions,  # nonRepeaters, maxRepetitions
            ObjectType(ObjectIdentity(root)),
            lexicographicMode=False,
        )
        try:
            while True:
                async with self._lock:
                    try:
                        error_indication, error_status, _, var_binds = await anext(walker)
                    except StopAsyncIteration:
                        return
                    except (PySnmpError, OSError) as exc:
                        raise TransportError(f"SNMP walk on {root} failed: {exc}", self.host) from exc

                if error_indication:
                    logger.warning(f"SNMP walk error [{self.host}] on {root}: {error_indication}")
                    raise TransportError(str(error_indication), self.host)
                if error_status:
                    logger.warning(f"SNMP walk error [{self.host}] on {root}: {error_status.prettyPrint()}")
                    raise TransportError(error_status.prettyPrint(), self.host)

                for name, val in var_binds:
                    oid = _dotted(name)
                    if not oid.startswith(prefix) or isinstance(val, _ABSENT_VALUES):
                        return
                    yield oid[len(prefix) :], val
        finally:
            await walker.aclose()

    async def walk_all(self, root: str) -> list[tuple[str, Any]]:
        """Collect a full :meth:`walk` into a list."""
        return [row async for row in self.walk(root)]
