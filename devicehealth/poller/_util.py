"""Private helper functions for decoding and formatting SNMP values."""

from __future__ import annotations

import math
from typing import Any, Iterable

from loguru import logger

from devicehealth.exceptions import DecodeError
from devicehealth.poller.models import Metric

DEFAULT_METRICS: frozenset[Metric] = frozenset({Metric.CPU, Metric.MEMORY})


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated config value, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_metrics(names: str | Iterable[str] | None) -> frozenset[Metric]:
    """Parse requested metric names (``"cpu,memory"`` or an iterable).

    ``None`` selects the default cpu + memory set; an empty value selects
    nothing.  Unknown names are logged and ignored.
    """
    if names is None:
        return DEFAULT_METRICS
    raw = split_csv(names) if isinstance(names, str) else list(names)
    selected: set[Metric] = set()
    for name in raw:
        if isinstance(name, Metric):
            selected.add(name)
            continue
        try:
            selected.add(Metric(str(name).strip().lower()))
        except ValueError:
            logger.warning(f"Ignoring unknown metric name: {name!r}")
    return frozenset(selected)


def to_int(val: Any) -> int:
    """Decode an integer-valued varbind; absent values decode to 0.

    Raises:
        DecodeError: If the value is present but not integer-like.
    """
    if val is None:
        return 0
    try:
        return int(val)
    except (TypeError, ValueError):
        pass
    try:
        return int(str(val).strip())
    except ValueError:
        raise DecodeError(f"Expected an integer value, got {val!r}") from None


def to_str(val: Any) -> str:
    """Decode a string-valued varbind; absent values decode to ``""``."""
    if val is None:
        return ""
    if isinstance(val, bytes):
        return val.decode("utf-8", errors="replace")
    return str(val)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def format_uptime(seconds: float) -> str:
    """Return e.g. ``'3d 4h 12m'``; zero parts are omitted, ``'< 1m'`` below a minute."""
    total = int(seconds)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    return " ".join(parts) if parts else "< 1m"


def format_speed(bps: int) -> str:
    """Convert ifSpeed (bits/s) to a compact label: ``'1.0G'``, ``'100M'``, ``'64K'``."""
    if bps >= 1_000_000_000:
        return f"{round_half_up(bps / 100_000_000) / 10:.1f}G"
    if bps >= 1_000_000:
        return f"{round_half_up(bps / 1_000_000)}M"
    return f"{round_half_up(bps / 1000)}K"


def format_mac(val: Any) -> str:
    """Format an ifPhysAddress octet string as ``aa:bb:cc:dd:ee:ff``."""
    if val is None:
        return ""
    if isinstance(val, str):
        val = val.encode("latin-1")
    raw = val if isinstance(val, bytes) else bytes(val)
    return ":".join(f"{b:02x}" for b in raw)
