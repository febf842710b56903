"""Threshold evaluation of live device metrics."""

from __future__ import annotations

from typing import Iterable

from loguru import logger

from devicehealth.alerting.models import AlertEvaluationResult, AlertRule, Thresholds
from devicehealth.poller._util import split_csv
from devicehealth.poller.models import DeviceMetrics, OperStatus


def parse_alert_rules(rules: str | Iterable[str | AlertRule] | None) -> frozenset[AlertRule]:
    """Parse ``"cpu,memory,interface"`` (or an iterable) into rule members.

    Unknown rule names are logged and ignored.
    """
    if rules is None:
        return frozenset()
    raw = split_csv(rules) if isinstance(rules, str) else list(rules)
    parsed: set[AlertRule] = set()
    for rule in raw:
        if isinstance(rule, AlertRule):
            parsed.add(rule)
            continue
        try:
            parsed.add(AlertRule(str(rule).strip().lower()))
        except ValueError:
            logger.warning(f"Ignoring unknown alert rule: {rule!r}")
    return frozenset(parsed)


def evaluate_thresholds(
    metrics: DeviceMetrics,
    thresholds: Thresholds | None = None,
    rules: str | Iterable[str | AlertRule] | None = "cpu,memory",
) -> AlertEvaluationResult:
    """Compare *metrics* against *thresholds* for each enabled rule.

    Pure: the result depends only on the arguments.  The interface rule
    reports every interface in ``metrics.interfaces`` that is down, so the
    caller narrows that list to watched interfaces beforehand.  The ``ha``
    rule is recognised but produces no alerts.
    """
    thresholds = thresholds or Thresholds()
    enabled = parse_alert_rules(rules)
    alerts: list[str] = []

    perf = metrics.performance
    if perf is not None:
        if AlertRule.CPU in enabled and perf.cpu_usage_percent > thresholds.cpu:
            alerts.append(f"CPU usage at {perf.cpu_usage_percent}% (threshold: {thresholds.cpu}%)")
        if AlertRule.MEMORY in enabled and perf.memory_usage_percent > thresholds.memory:
            alerts.append(f"Memory usage at {perf.memory_usage_percent}% (threshold: {thresholds.memory}%)")
        if (
            AlertRule.STORAGE in enabled
            and perf.storage_usage_percent is not None
            and perf.storage_usage_percent > thresholds.storage
        ):
            alerts.append(f"Storage usage at {perf.storage_usage_percent}% (threshold: {thresholds.storage}%)")

    if AlertRule.INTERFACE in enabled and metrics.interfaces is not None:
        for iface in metrics.interfaces.items:
            if iface.status is OperStatus.DOWN:
                alerts.append(f"Interface {iface.name} is DOWN")

    # TODO: evaluate HA health once an fgHaStatsSyncStatus check is added
    return AlertEvaluationResult(exceeded=bool(alerts), alerts=alerts)


def check_thresholds(
    metrics: DeviceMetrics,
    cpu_threshold: int,
    memory_threshold: int,
    storage_threshold: int = 90,
    alert_rules: str | Iterable[str | AlertRule] | None = "cpu,memory",
) -> AlertEvaluationResult:
    """:func:`evaluate_thresholds` with the thresholds passed individually."""
    return evaluate_thresholds(
        metrics,
        Thresholds(cpu=cpu_threshold, memory=memory_threshold, storage=storage_threshold),
        alert_rules,
    )
