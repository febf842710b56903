"""Threshold evaluation and alerting for polled devices."""

from devicehealth.alerting.cooldown import CooldownTracker, InMemoryCooldownTracker
from devicehealth.alerting.models import AlertEvaluationResult, AlertRule, AssetConfig, Thresholds
from devicehealth.alerting.monitor import AssetMonitor, filter_watched_interfaces
from devicehealth.alerting.thresholds import check_thresholds, evaluate_thresholds, parse_alert_rules

__all__ = [
    "AssetMonitor",
    "filter_watched_interfaces",
    "evaluate_thresholds",
    "check_thresholds",
    "parse_alert_rules",
    "AlertEvaluationResult",
    "AlertRule",
    "AssetConfig",
    "Thresholds",
    "CooldownTracker",
    "InMemoryCooldownTracker",
]
