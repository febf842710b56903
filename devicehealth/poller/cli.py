"""CLI entry point for live device queries (poll, interfaces, test, identify)."""

from __future__ import annotations

import argparse
import json
import sys

from loguru import logger

from devicehealth.alerting.models import Thresholds
from devicehealth.alerting.thresholds import evaluate_thresholds
from devicehealth.exceptions import DeviceHealthError, UnreachableError
from devicehealth.poller.device import DevicePoller
from devicehealth.poller.formatters import MarkdownFormatter, TerminalFormatter
from devicehealth.settings import InterfaceStrategy, PollSettings


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("ip", help="Device IP address or hostname")
    parser.add_argument(
        "community",
        nargs="?",
        default="public",
        help="SNMP community string (default: public)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=161,
        help="SNMP port (default: 161)",
    )
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
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose logging",
    )


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Build argparse parser for device queries."""
    parser = argparse.ArgumentParser(
        description="Query SNMPv2c devices for identity, performance and interfaces.",
    )
    sub = parser.add_subparsers(dest="action", required=True)

    poll = sub.add_parser("poll", help="Full live metrics for one device")
    _add_target_args(poll)
    poll.add_argument(
        "-m",
        "--metrics",
        default="cpu,memory",
        help="Comma-separated metrics: cpu, memory, sessions, storage (default: cpu,memory)",
    )
    poll.add_argument(
        "-s",
        "--strategy",
        choices=[s.value for s in InterfaceStrategy],
        help="Interface enumeration strategy (default: auto)",
    )
    poll.add_argument(
        "--rules",
        help="Evaluate alert rules, comma-separated: cpu, memory, storage, interface, ha",
    )
    poll.add_argument("--cpu-threshold", type=int, default=80, help="CPU alert threshold %% (default: 80)")
    poll.add_argument("--memory-threshold", type=int, default=90, help="Memory alert threshold %% (default: 90)")
    poll.add_argument("--storage-threshold", type=int, default=90, help="Storage alert threshold %% (default: 90)")
    poll.add_argument(
        "--format",
        choices=["terminal", "markdown", "json"],
        default="terminal",
        help="Output format (default: terminal)",
    )
    poll.add_argument(
        "-o",
        "--output",
        help="Output file for --format markdown/json (default: stdout)",
    )

    interfaces = sub.add_parser("interfaces", help="Discover interface names")
    _add_target_args(interfaces)

    test = sub.add_parser("test", help="Test SNMP connectivity")
    _add_target_args(test)

    identify = sub.add_parser("identify", help="Detect vendor, model and version")
    _add_target_args(identify)

    return parser.parse_args(args)


def _write(output: str, path: str | None) -> None:
    if path:
        with open(path, "w") as f:
            f.write(output + "\n")
        logger.info(f"Output written to {path}")
    else:
        print(output)


def main(args: list[str] | None = None) -> None:
    """Main entry point for device query CLI."""
    parsed = parse_args(args)

    if not parsed.verbose:
        logger.remove()
        logger.add(sys.stderr, level="INFO")

    settings = PollSettings.from_env(
        timeout=parsed.timeout,
        retries=parsed.retries,
        interface_strategy=getattr(parsed, "strategy", None),
    )
    poller = DevicePoller(parsed.ip, parsed.community, parsed.port, settings=settings)

    if parsed.action == "test":
        result = poller.check_connection()
        print(("OK   " if result.success else "FAIL ") + result.message)
        sys.exit(0 if result.success else 1)

    if parsed.action == "interfaces":
        try:
            names = poller.interface_names()
        except UnreachableError as e:
            logger.error(str(e))
            sys.exit(2)
        except DeviceHealthError as e:
            logger.error(f"Interface discovery failed: {e}")
            sys.exit(1)
        if not names:
            logger.warning("No interfaces found")
            sys.exit(1)
        for name in names:
            print(name)
        return

    if parsed.action == "identify":
        try:
            identity = poller.identify()
        except DeviceHealthError as e:
            logger.error(str(e))
            sys.exit(1)
        print(json.dumps(identity.model_dump(), indent=2))
        return

    metrics = poller.poll(parsed.metrics)
    evaluation = None
    if parsed.rules is not None and metrics.online:
        thresholds = Thresholds(
            cpu=parsed.cpu_threshold,
            memory=parsed.memory_threshold,
            storage=parsed.storage_threshold,
        )
        evaluation = evaluate_thresholds(metrics, thresholds, parsed.rules)

    if parsed.format == "json":
        payload = {"metrics": metrics.model_dump(mode="json")}
        if evaluation is not None:
            payload["alerts"] = evaluation.model_dump(mode="json")
        _write(json.dumps(payload, indent=2), parsed.output)
    elif parsed.format == "markdown":
        _write(MarkdownFormatter(metrics, evaluation).format(), parsed.output)
    else:
        print(TerminalFormatter(metrics, evaluation).format())

    if not metrics.online:
        sys.exit(1)
