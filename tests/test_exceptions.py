"""Tests for devicehealth.exceptions."""

from __future__ import annotations

import pytest

from devicehealth.exceptions import DecodeError, DeviceHealthError, TransportError, UnreachableError


class TestExceptionHierarchy:
    """Test exception inheritance."""

    @pytest.mark.parametrize("exc_class", [TransportError, UnreachableError, DecodeError])
    def test_inherits_base(self, exc_class):
        """All errors derive from DeviceHealthError."""
        assert issubclass(exc_class, DeviceHealthError)

    def test_unreachable_is_transport_error(self):
        """UnreachableError can be caught as TransportError."""
        assert issubclass(UnreachableError, TransportError)


class TestTransportError:
    """Test TransportError attributes."""

    def test_message_and_host(self):
        """Message and host are stored."""
        exc = TransportError("timeout", "10.0.0.1")
        assert exc.message == "timeout"
        assert exc.host == "10.0.0.1"
        assert str(exc) == "timeout"

    def test_host_defaults_empty(self):
        """Host is optional."""
        assert TransportError("boom").host == ""
