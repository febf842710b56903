"""Vendor-specific performance OID selection and response decoding.

A :class:`FetchPlan` is an ordered list of :class:`PlanStep` entries, each
owning the OIDs it requests and the decoder for exactly those values.  The
flat OID list sent to the agent and the slices handed back to each decoder
are both derived from the same steps, so positions cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Collection, Sequence

from loguru import logger

from devicehealth.exceptions import DecodeError
from devicehealth.poller._util import round_half_up, to_int, to_str
from devicehealth.poller.models import FortinetExtras, HaMode, Metric, PerformanceSnapshot, PlatformFamily
from devicehealth.snmp.oids import oid_for
from devicehealth.snmp.session import SnmpSession


@dataclass
class _Draft:
    """Mutable accumulator filled in by step decoders."""

    perf: dict[str, Any] = field(default_factory=dict)
    serial_number: str | None = None
    firmware_version: str | None = None
    fortinet: FortinetExtras | None = None


Decoder = Callable[[_Draft, list[Any]], None]


@dataclass(frozen=True)
class PlanStep:
    name: str
    oids: tuple[str, ...]
    decode: Decoder


@dataclass
class PerformanceResult:
    """Decoded output of one performance fetch."""

    performance: PerformanceSnapshot
    serial_number: str | None = None
    firmware_version: str | None = None
    fortinet_extras: FortinetExtras | None = None


@dataclass
class FetchPlan:
    family: PlatformFamily
    steps: list[PlanStep] = field(default_factory=list)

    @property
    def oids(self) -> list[str]:
        return [oid for step in self.steps for oid in step.oids]

    def decode(self, values: Sequence[Any]) -> PerformanceResult:
        """Decode positional response *values* (same order as :attr:`oids`).

        Raises:
            DecodeError: On a value count mismatch or a wrongly typed value.
        """
        expected = sum(len(step.oids) for step in self.steps)
        if len(values) != expected:
            raise DecodeError(f"Expected {expected} performance values, got {len(values)}")

        draft = _Draft()
        pos = 0
        for step in self.steps:
            width = len(step.oids)
            try:
                step.decode(draft, list(values[pos : pos + width]))
            except DecodeError as exc:
                raise DecodeError(f"{step.name}: {exc}") from exc
            pos += width

        return PerformanceResult(
            performance=PerformanceSnapshot(**draft.perf),
            serial_number=draft.serial_number,
            firmware_version=draft.firmware_version,
            fortinet_extras=draft.fortinet,
        )


# ── Decoders ───────────────────────────────────────────────────────────


def _set_int(key: str) -> Decoder:
    def _decode(draft: _Draft, values: list[Any]) -> None:
        draft.perf[key] = to_int(values[0])

    return _decode


def _set_serial(draft: _Draft, values: list[Any]) -> None:
    draft.serial_number = to_str(values[0]).strip() or None


def _set_firmware(draft: _Draft, values: list[Any]) -> None:
    draft.firmware_version = to_str(values[0]).strip() or None


def _fortinet_extras(draft: _Draft, values: list[Any]) -> None:
    ha_code, session_rate, av_detected = values
    draft.fortinet = FortinetExtras(
        ha_mode=HaMode.from_code(ha_code),
        session_rate_per_second=to_int(session_rate),
        antivirus_detection_count=to_int(av_detected),
    )


def _cisco_memory(draft: _Draft, values: list[Any]) -> None:
    used, free = (to_int(v) for v in values)
    total = used + free
    draft.perf["memory_usage_percent"] = round_half_up(used / total * 100) if total > 0 else 0
    # Pool counters are treated as bytes
    draft.perf["total_memory_mb"] = round_half_up(total / 1024 / 1024)
    draft.perf["free_memory_mb"] = round_half_up(free / 1024 / 1024)


def _linux_cpu(draft: _Draft, values: list[Any]) -> None:
    user, system = (to_int(v) for v in values)
    draft.perf["cpu_usage_percent"] = min(user + system, 100)


def _linux_memory(draft: _Draft, values: list[Any]) -> None:
    total, avail = (to_int(v) for v in values)
    if total > 0:
        draft.perf["memory_usage_percent"] = round_half_up((total - avail) / total * 100)
        # UCD counters are kB
        draft.perf["total_memory_mb"] = round_half_up(total / 1024)
        draft.perf["free_memory_mb"] = round_half_up(avail / 1024)


# ── Plan builders ──────────────────────────────────────────────────────


def _step(name: str, family: PlatformFamily, keys: Sequence[str], decode: Decoder) -> PlanStep:
    return PlanStep(name=name, oids=tuple(oid_for(family, k) for k in keys), decode=decode)


def _fortinet_plan(metrics: Collection[Metric]) -> list[PlanStep]:
    fam = PlatformFamily.FORTINET
    steps: list[PlanStep] = []
    if Metric.CPU in metrics:
        steps.append(_step("cpu", fam, ["cpu"], _set_int("cpu_usage_percent")))
    if Metric.MEMORY in metrics:
        steps.append(_step("memory", fam, ["mem"], _set_int("memory_usage_percent")))
    if Metric.SESSIONS in metrics:
        steps.append(_step("sessions", fam, ["sessions"], _set_int("session_count")))
    if Metric.STORAGE in metrics:
        steps.append(_step("storage", fam, ["disk"], _set_int("storage_usage_percent")))
    steps.append(_step("serial", fam, ["serial"], _set_serial))
    steps.append(_step("firmware", fam, ["firmware"], _set_firmware))
    steps.append(_step("fortinet_extras", fam, ["ha_mode", "session_rate", "av_detected"], _fortinet_extras))
    return steps


def _cisco_plan(metrics: Collection[Metric]) -> list[PlanStep]:
    fam = PlatformFamily.CISCO
    steps: list[PlanStep] = []
    if Metric.CPU in metrics:
        steps.append(_step("cpu", fam, ["cpu_5min"], _set_int("cpu_usage_percent")))
    if Metric.MEMORY in metrics:
        steps.append(_step("memory", fam, ["mem_used", "mem_free"], _cisco_memory))
    steps.append(_step("serial", fam, ["entity_serial"], _set_serial))
    return steps


def _linux_plan(metrics: Collection[Metric]) -> list[PlanStep]:
    fam = PlatformFamily.LINUX
    steps: list[PlanStep] = []
    if Metric.CPU in metrics:
        steps.append(_step("cpu", fam, ["cpu_user", "cpu_system"], _linux_cpu))
    if Metric.MEMORY in metrics:
        steps.append(_step("memory", fam, ["mem_total", "mem_avail"], _linux_memory))
    if Metric.STORAGE in metrics:
        steps.append(_step("storage", fam, ["disk_percent"], _set_int("storage_usage_percent")))
    return steps


_PLAN_BUILDERS: dict[PlatformFamily, Callable[[Collection[Metric]], list[PlanStep]]] = {
    PlatformFamily.FORTINET: _fortinet_plan,
    PlatformFamily.CISCO: _cisco_plan,
    PlatformFamily.LINUX: _linux_plan,
    PlatformFamily.GENERIC: _linux_plan,
}


def build_plan(family: PlatformFamily, metrics: Collection[Metric]) -> FetchPlan:
    """Build the ordered fetch plan for *family* and the requested *metrics*."""
    plan = FetchPlan(family=family, steps=_PLAN_BUILDERS[family](metrics))
    logger.debug(
        f"{family.value} plan: {len(plan.oids)} OIDs for "
        f"{sorted(m.value for m in metrics) or 'no metrics'} ({', '.join(s.name for s in plan.steps) or '-'})"
    )
    return plan


async def collect_performance(session: SnmpSession, plan: FetchPlan) -> PerformanceResult:
    """Issue the plan's batched GET and decode the response.

    Raises:
        TransportError: If the GET fails.
        DecodeError: If the response cannot be decoded.
    """
    response = await session.get(plan.oids)
    return plan.decode([val for _, val in response])
