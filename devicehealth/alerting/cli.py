"""CLI entry point for polling a set of assets and dispatching alerts."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from tabulate import tabulate

from devicehealth.alerting.models import AssetConfig, AssetStatus
from devicehealth.alerting.monitor import AssetMonitor
from devicehealth.settings import PollSettings

_ASSETS = TypeAdapter(list[AssetConfig])


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Build argparse parser for the asset monitor."""
    parser = argparse.ArgumentParser(
        description="Poll SNMP-enabled assets and evaluate their alert thresholds.",
    )
    parser.add_argument("assets", help="JSON file with a list of asset records")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-request timeout in seconds (default: 5, env DEVICEHEALTH_SNMP_TIMEOUT)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Retries per request (default: 1, env DEVICEHEALTH_SNMP_RETRIES)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full status of every asset as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(args)


def load_assets(path: str | Path) -> list[AssetConfig]:
    """Read asset records from a JSON file."""
    return _ASSETS.validate_json(Path(path).read_bytes())


def _summary_row(status: AssetStatus) -> list[str]:
    m = status.metrics
    if status.error:
        state = "error"
    elif m is not None and m.online:
        state = "online"
    else:
        state = "offline"
    cpu = mem = "-"
    if m is not None and m.performance is not None:
        cpu = f"{m.performance.cpu_usage_percent}%"
        mem = f"{m.performance.memory_usage_percent}%"
    if status.evaluation is not None and status.evaluation.alerts:
        detail = "; ".join(status.evaluation.alerts)
    else:
        detail = status.error or (m.error if m is not None else None) or ""
    return [status.asset_name, state, cpu, mem, "yes" if status.notified else "", detail]


def format_summary(statuses: list[AssetStatus]) -> str:
    rows = [_summary_row(s) for s in statuses]
    return tabulate(rows, headers=["Asset", "State", "CPU", "Memory", "Notified", "Alerts / Error"], tablefmt="simple")


def main(args: list[str] | None = None) -> None:
    """Main entry point for the asset monitor CLI."""
    parsed = parse_args(args)

    if not parsed.verbose:
        logger.remove()
        logger.add(sys.stderr, level="INFO")

    try:
        assets = load_assets(parsed.assets)
    except (OSError, ValidationError) as e:
        logger.error(f"Cannot load assets from {parsed.assets}: {e}")
        sys.exit(2)

    settings = PollSettings.from_env(timeout=parsed.timeout, retries=parsed.retries)
    statuses = AssetMonitor(settings=settings).run(assets)

    if parsed.json:
        print(json.dumps([s.model_dump(mode="json") for s in statuses], indent=2))
    else:
        print(format_summary(statuses))

    if any(s.evaluation is not None and s.evaluation.exceeded for s in statuses):
        sys.exit(1)
