"""Exception hierarchy for device polling."""


class DeviceHealthError(Exception):
    """Base exception for all device polling errors."""


class TransportError(DeviceHealthError):
    """SNMP exchange failed (timeout, unreachable host, error status)."""

    def __init__(self, message: str, host: str = ""):
        self.message = message
        self.host = host
        super().__init__(message)


class UnreachableError(TransportError):
    """Device did not answer the reachability probe."""


class DecodeError(DeviceHealthError):
    """Response received but could not be decoded into the expected values."""
