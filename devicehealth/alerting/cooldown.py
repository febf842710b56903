"""Alert cooldown tracking, injected into the monitor."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

DEFAULT_COOLDOWN = timedelta(minutes=15)


class CooldownTracker(Protocol):
    """Remembers when an alert was last sent for a key (usually an asset id)."""

    def should_suppress(self, key: str, now: datetime) -> bool: ...

    def record_sent(self, key: str, now: datetime) -> None: ...


class InMemoryCooldownTracker:
    """Process-local cooldown: suppress repeats within *cooldown* of the last send."""

    def __init__(self, cooldown: timedelta = DEFAULT_COOLDOWN) -> None:
        self.cooldown = cooldown
        self._last_sent: dict[str, datetime] = {}

    def should_suppress(self, key: str, now: datetime) -> bool:
        last = self._last_sent.get(key)
        return last is not None and now - last < self.cooldown

    def record_sent(self, key: str, now: datetime) -> None:
        self._last_sent[key] = now

    def last_sent(self, key: str) -> datetime | None:
        return self._last_sent.get(key)
