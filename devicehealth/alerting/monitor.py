"""Per-asset polling, watched-interface filtering and alert dispatch."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable

from loguru import logger

from devicehealth.alerting.cooldown import CooldownTracker, InMemoryCooldownTracker
from devicehealth.alerting.models import AlertEvaluationResult, AlertNotice, AssetConfig, AssetStatus
from devicehealth.alerting.thresholds import evaluate_thresholds
from devicehealth.poller._util import split_csv
from devicehealth.poller.device import SessionFactory, query_device
from devicehealth.poller.models import DeviceMetrics
from devicehealth.settings import PollSettings
from devicehealth.snmp.session import SnmpSession

Notifier = Callable[[AlertNotice], Awaitable[bool]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def filter_watched_interfaces(metrics: DeviceMetrics, watched: Iterable[str] | None) -> DeviceMetrics:
    """Keep only interfaces named in *watched*; no watch list empties the list.

    The interface count is left untouched.
    """
    if metrics.interfaces is None:
        return metrics
    names = set(watched or ())
    items = [iface for iface in metrics.interfaces.items if iface.name in names] if names else []
    interfaces = metrics.interfaces.model_copy(update={"items": items})
    return metrics.model_copy(update={"interfaces": interfaces})


def alert_severity_counts(alerts: list[str]) -> tuple[int, int]:
    """Return ``(critical, high)``: one critical if any interface is down, the rest high."""
    is_critical = any("interface" in a.lower() and "down" in a.lower() for a in alerts)
    if is_critical:
        return 1, max(0, len(alerts) - 1)
    return 0, len(alerts)


async def log_notifier(notice: AlertNotice) -> bool:
    """Notifier that only logs the alert."""
    logger.warning(
        f"ALERT {notice.asset_name} (critical: {notice.critical_count}, high: {notice.high_count}): "
        f"{', '.join(notice.result.alerts)}"
    )
    return True


class AssetMonitor:
    """Poll assets, evaluate their thresholds and hand alerts to a notifier.

    Repeat notifications for the same asset are suppressed through the
    injected :class:`CooldownTracker`.
    """

    def __init__(
        self,
        notifier: Notifier = log_notifier,
        cooldown: CooldownTracker | None = None,
        settings: PollSettings | None = None,
        session_factory: SessionFactory = SnmpSession,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.notifier = notifier
        self.cooldown = cooldown if cooldown is not None else InMemoryCooldownTracker()
        self.settings = settings or PollSettings()
        self.session_factory = session_factory
        self.clock = clock

    async def poll_asset(self, asset: AssetConfig) -> AssetStatus:
        """Query one asset and evaluate its alert rules."""
        status = AssetStatus(asset_id=asset.id, asset_name=asset.display_name)
        if not asset.snmp_enabled or not asset.ip_address or not asset.snmp_community:
            status.error = "SNMP not configured for this asset"
            return status

        metrics = await query_device(
            asset.address,
            asset.snmp_metrics,
            settings=self.settings,
            session_factory=self.session_factory,
        )
        watched = split_csv(asset.watched_interfaces)
        if watched and metrics.interfaces is not None:
            available = [iface.name for iface in metrics.interfaces.items]
            logger.debug(f"{asset.display_name}: watched {watched}, available {available}")
        metrics = filter_watched_interfaces(metrics, watched)
        status.metrics = metrics

        if metrics.online:
            result = evaluate_thresholds(metrics, asset.thresholds, asset.alert_rules)
            logger.debug(f"{asset.display_name}: exceeded={result.exceeded} alerts={result.alerts}")
            status.evaluation = result
            if result.exceeded:
                status.notified = await self._dispatch(asset, result)
        return status

    async def poll_assets(self, assets: Iterable[AssetConfig]) -> list[AssetStatus]:
        """Poll all assets concurrently; one failing asset does not affect others."""
        asset_list = list(assets)
        results = await asyncio.gather(*(self.poll_asset(a) for a in asset_list), return_exceptions=True)

        statuses: list[AssetStatus] = []
        for asset, r in zip(asset_list, results):
            if isinstance(r, BaseException):
                logger.error(f"Polling {asset.display_name} failed: {r}")
                statuses.append(AssetStatus(asset_id=asset.id, asset_name=asset.display_name, error=str(r)))
            else:
                statuses.append(r)
        return statuses

    async def _dispatch(self, asset: AssetConfig, result: AlertEvaluationResult) -> bool:
        now = self.clock()
        if self.cooldown.should_suppress(asset.id, now):
            logger.info(f"Alert throttled for {asset.display_name}")
            return False

        critical, high = alert_severity_counts(result.alerts)
        notice = AlertNotice(
            asset_id=asset.id,
            asset_name=asset.display_name,
            result=result,
            critical_count=critical,
            high_count=high,
        )
        try:
            sent = await self.notifier(notice)
        except Exception as e:
            logger.error(f"Failed to send alert for {asset.display_name}: {e}")
            return False

        if sent:
            self.cooldown.record_sent(asset.id, now)
            logger.info(f"Alert sent for {asset.display_name}")
        else:
            logger.warning(f"Notifier declined alert for {asset.display_name}")
        return bool(sent)

    def run(self, assets: Iterable[AssetConfig]) -> list[AssetStatus]:
        """Synchronous entry point wrapping :meth:`poll_assets`."""
        return asyncio.run(self.poll_assets(assets))
