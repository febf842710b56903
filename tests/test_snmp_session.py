"""Tests for devicehealth.snmp.session with the pysnmp calls monkeypatched."""

from __future__ import annotations

import asyncio

import pytest
from pysnmp.proto import rfc1905

import devicehealth.snmp.session as session_mod
from devicehealth.exceptions import DecodeError, TransportError
from devicehealth.settings import PollSettings
from devicehealth.snmp.session import DeviceAddress, SnmpSession


class FakeEngine:
    instances: list["FakeEngine"] = []

    def __init__(self):
        self.closed = 0
        FakeEngine.instances.append(self)

    def close_dispatcher(self):
        self.closed += 1


class FakeTarget:
    create_error: Exception | None = None
    created: list[tuple] = []

    @classmethod
    async def create(cls, address, timeout=1, retries=5):
        if cls.create_error is not None:
            raise cls.create_error
        cls.created.append((address, timeout, retries))
        return cls()


class ErrorStatus:
    def __init__(self, text):
        self.text = text

    def __bool__(self):
        return True

    def prettyPrint(self):
        return self.text


@pytest.fixture()
def transport(monkeypatch):
    """Patch engine and transport; returns a dict to configure get/walk replies."""
    FakeEngine.instances = []
    FakeTarget.create_error = None
    FakeTarget.created = []
    replies = {"get": (None, 0, 0, []), "walk": [], "walk_closed": []}

    async def fake_get_cmd(engine, auth, target, context, *var_binds):
        reply = replies["get"]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def fake_bulk_walk_cmd(engine, auth, target, context, non_repeaters, max_repetitions, *var_binds, **kwargs):
        replies["walk_args"] = (non_repeaters, max_repetitions, kwargs)

        async def _gen():
            try:
                for reply in replies["walk"]:
                    yield reply
            finally:
                replies["walk_closed"].append(True)

        return _gen()

    monkeypatch.setattr(session_mod, "SnmpEngine", FakeEngine)
    monkeypatch.setattr(session_mod, "UdpTransportTarget", FakeTarget)
    monkeypatch.setattr(session_mod, "get_cmd", fake_get_cmd)
    monkeypatch.setattr(session_mod, "bulk_walk_cmd", fake_bulk_walk_cmd)
    return replies


def _session(**settings):
    return SnmpSession(DeviceAddress(host="10.0.0.1", community="private"), PollSettings(**settings))


async def _get(session, oids):
    async with session:
        return await session.get(oids)


async def _walk(session, root):
    async with session:
        return await session.walk_all(root)


class TestDeviceAddress:
    """Test DeviceAddress validation."""

    def test_defaults(self):
        """Community defaults to public, port to 161."""
        addr = DeviceAddress(host="192.168.1.1")
        assert addr.community == "public"
        assert addr.port == 161

    def test_port_out_of_range(self):
        """Port 0 is rejected."""
        with pytest.raises(ValueError):
            DeviceAddress(host="192.168.1.1", port=0)


class TestOpenClose:
    """Test session lifecycle."""

    def test_open_uses_settings(self, transport):
        """Timeout and retries are passed to the transport target."""
        session = _session(timeout=2.5, retries=3)
        asyncio.run(session.open())
        assert session.is_open
        assert FakeTarget.created == [(("10.0.0.1", 161), 2.5, 3)]

    def test_close_is_idempotent(self, transport):
        """Closing twice releases the dispatcher once."""
        session = _session()
        asyncio.run(session.open())
        session.close()
        session.close()
        assert not session.is_open
        assert FakeEngine.instances[0].closed == 1

    def test_open_failure_raises_transport_error(self, transport):
        """Resolution errors surface as TransportError and close the engine."""
        FakeTarget.create_error = OSError("Name or service not known")
        session = _session()
        with pytest.raises(TransportError) as exc_info:
            asyncio.run(session.open())
        assert exc_info.value.host == "10.0.0.1"
        assert not session.is_open
        assert FakeEngine.instances[0].closed == 1

    def test_get_requires_open(self, transport):
        """GET on an unopened session raises."""
        with pytest.raises(TransportError, match="not open"):
            asyncio.run(_session().get(["1.3.6.1.2.1.1.1.0"]))

    def test_context_manager_closes_on_error(self, transport):
        """The session is closed when the body raises."""
        transport["get"] = (None, ErrorStatus("genErr"), 1, [])
        session = _session()
        with pytest.raises(TransportError):
            asyncio.run(_get(session, ["1.3.6.1.2.1.1.1.0"]))
        assert not session.is_open


class TestGet:
    """Test batched GET."""

    def test_values_in_request_order(self, transport):
        """Values come back in request order even when the agent reorders them."""
        transport["get"] = (
            None,
            0,
            0,
            [("1.3.6.1.2.1.1.5.0", "router"), ("1.3.6.1.2.1.1.1.0", "Linux router")],
        )
        result = asyncio.run(_get(_session(), ["1.3.6.1.2.1.1.1.0", ".1.3.6.1.2.1.1.5.0"]))
        assert result == [("1.3.6.1.2.1.1.1.0", "Linux router"), ("1.3.6.1.2.1.1.5.0", "router")]

    def test_absent_value_decodes_to_none(self, transport):
        """noSuchInstance is reported as None."""
        transport["get"] = (None, 0, 0, [("1.3.6.1.2.1.47.1.1.1.1.11.1", rfc1905.noSuchInstance)])
        result = asyncio.run(_get(_session(), ["1.3.6.1.2.1.47.1.1.1.1.11.1"]))
        assert result == [("1.3.6.1.2.1.47.1.1.1.1.11.1", None)]

    def test_error_indication(self, transport):
        """A timeout indication raises TransportError."""
        transport["get"] = ("No SNMP response received before timeout", 0, 0, [])
        with pytest.raises(TransportError, match="timeout"):
            asyncio.run(_get(_session(), ["1.3.6.1.2.1.1.1.0"]))

    def test_error_status(self, transport):
        """A non-zero error status raises TransportError."""
        transport["get"] = (None, ErrorStatus("noSuchName"), 1, [])
        with pytest.raises(TransportError, match="noSuchName at index 1"):
            asyncio.run(_get(_session(), ["1.3.6.1.2.1.1.1.0"]))

    def test_library_exception(self, transport):
        """Socket errors during the exchange raise TransportError."""
        transport["get"] = OSError("Network is unreachable")
        with pytest.raises(TransportError, match="unreachable"):
            asyncio.run(_get(_session(), ["1.3.6.1.2.1.1.1.0"]))

    def test_missing_varbind(self, transport):
        """A response without a requested OID raises DecodeError."""
        transport["get"] = (None, 0, 0, [("1.3.6.1.2.1.1.1.0", "x")])
        with pytest.raises(DecodeError, match="1.3.6.1.2.1.1.5.0"):
            asyncio.run(_get(_session(), ["1.3.6.1.2.1.1.1.0", "1.3.6.1.2.1.1.5.0"]))

    def test_empty_request(self, transport):
        """An empty OID list returns nothing without a request."""
        transport["get"] = OSError("should not be called")
        assert asyncio.run(_get(_session(), [])) == []


class TestWalk:
    """Test subtree walks."""

    def test_yields_suffixes(self, transport):
        """Rows are returned as (suffix, value) relative to the root."""
        transport["walk"] = [
            (None, 0, 0, [("1.3.6.1.2.1.2.2.1.2.1", "eth0"), ("1.3.6.1.2.1.2.2.1.2.2", "eth1")]),
        ]
        rows = asyncio.run(_walk(_session(), "1.3.6.1.2.1.2.2.1.2"))
        assert rows == [("1", "eth0"), ("2", "eth1")]

    def test_uses_max_repetitions(self, transport):
        """GETBULK uses the configured max-repetitions, non-lexicographic."""
        asyncio.run(_walk(_session(max_repetitions=10), "1.3.6.1.2.1.2.2.1.2"))
        non_repeaters, max_repetitions, kwargs = transport["walk_args"]
        assert (non_repeaters, max_repetitions) == (0, 10)
        assert kwargs["lexicographicMode"] is False

    def test_stops_at_subtree_end(self, transport):
        """Rows outside the subtree end the walk."""
        transport["walk"] = [
            (None, 0, 0, [("1.3.6.1.2.1.2.2.1.2.1", "eth0"), ("1.3.6.1.2.1.2.2.1.3.1", 6)]),
            (None, 0, 0, [("1.3.6.1.2.1.2.2.1.2.9", "never")]),
        ]
        rows = asyncio.run(_walk(_session(), "1.3.6.1.2.1.2.2.1.2"))
        assert rows == [("1", "eth0")]
        assert transport["walk_closed"] == [True]

    def test_sibling_prefix_not_included(self, transport):
        """Column 2 walk does not accept column 20 rows."""
        transport["walk"] = [(None, 0, 0, [("1.3.6.1.2.1.2.2.1.20.1", 0)])]
        assert asyncio.run(_walk(_session(), "1.3.6.1.2.1.2.2.1.2")) == []

    def test_stops_at_end_of_mib(self, transport):
        """endOfMibView ends the walk."""
        transport["walk"] = [(None, 0, 0, [("1.3.6.1.2.1.31.1.1.1.1.1", rfc1905.endOfMibView)])]
        assert asyncio.run(_walk(_session(), "1.3.6.1.2.1.31.1.1.1.1")) == []

    def test_error_indication(self, transport):
        """A walk timeout raises TransportError."""
        transport["walk"] = [("No SNMP response received before timeout", 0, 0, [])]
        with pytest.raises(TransportError):
            asyncio.run(_walk(_session(), "1.3.6.1.2.1.2.2.1"))


class TestSerialization:
    """Test that exchanges sharing one session never overlap."""

    @pytest.fixture()
    def events(self, transport, monkeypatch):
        events: list[tuple[str, str]] = []
        calls = iter(range(1, 100))

        async def slow_get_cmd(engine, auth, target, context, *var_binds):
            tag = f"get{next(calls)}"
            events.append(("enter", tag))
            await asyncio.sleep(0.01)
            events.append(("exit", tag))
            return None, 0, 0, [("1.3.6.1.2.1.1.1.0", "descr"), ("1.3.6.1.2.1.1.5.0", "name")]

        def slow_bulk_walk_cmd(engine, auth, target, context, non_repeaters, max_repetitions, *var_binds, **kwargs):
            async def _gen():
                for page in range(1, 4):
                    tag = f"walk{page}"
                    events.append(("enter", tag))
                    await asyncio.sleep(0.01)
                    events.append(("exit", tag))
                    yield None, 0, 0, [(f"1.3.6.1.2.1.2.2.1.2.{page}", f"eth{page}")]

            return _gen()

        monkeypatch.setattr(session_mod, "get_cmd", slow_get_cmd)
        monkeypatch.setattr(session_mod, "bulk_walk_cmd", slow_bulk_walk_cmd)
        return events

    @staticmethod
    def _assert_not_interleaved(events):
        assert len(events) % 2 == 0
        for enter, leave in zip(events[::2], events[1::2]):
            assert enter[0] == "enter"
            assert leave == ("exit", enter[1])

    def test_concurrent_gets(self, events):
        """Two gathered GETs run one after the other."""

        async def _run():
            async with _session() as session:
                return await asyncio.gather(
                    session.get(["1.3.6.1.2.1.1.1.0"]),
                    session.get(["1.3.6.1.2.1.1.5.0"]),
                )

        first, second = asyncio.run(_run())
        assert first == [("1.3.6.1.2.1.1.1.0", "descr")]
        assert second == [("1.3.6.1.2.1.1.5.0", "name")]
        assert len(events) == 4
        self._assert_not_interleaved(events)

    def test_get_during_walk(self, events):
        """A GET issued while a walk is running waits between walk pages."""

        async def _run():
            async with _session() as session:
                return await asyncio.gather(
                    session.walk_all("1.3.6.1.2.1.2.2.1.2"),
                    session.get(["1.3.6.1.2.1.1.1.0"]),
                )

        rows, values = asyncio.run(_run())
        assert rows == [("1", "eth1"), ("2", "eth2"), ("3", "eth3")]
        assert values == [("1.3.6.1.2.1.1.1.0", "descr")]
        assert len(events) == 8
        self._assert_not_interleaved(events)
